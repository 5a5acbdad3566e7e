"""
Counting Engine
Walks the court calendar from the start date under the selected counting mode
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from .audit_log import AuditLogBuilder
from .calendar_repository import CalendarView
from .models import AuditEntry, CountingMode, ReasonKind

logger = logging.getLogger(__name__)


@dataclass
class CountingOutcome:
    due_date: Optional[date]
    due_at: Optional[datetime] = None
    entries: List[AuditEntry] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    no_fixed_term: bool = False


class CountingEngine:
    """
    Deterministic deadline counter

    Pure computation: everything it needs comes from the calendar view, and it
    never raises on valid input.
    """

    def count(self,
              start_date: date,
              effective_days: int,
              counting_mode: CountingMode,
              calendar: CalendarView,
              extends_on_non_business_day: bool = True,
              start_time: Optional[time] = None) -> CountingOutcome:
        """
        Count a deadline

        Args:
            start_date: Start-of-count date (excluded from the count)
            effective_days: Days (or hours, in HOURS mode) after doubling
            counting_mode: Counting mode
            calendar: Calendar view for the tribunal
            extends_on_non_business_day: Landing rule for calendar-day deadlines
            start_time: Time of day the count starts (HOURS mode)

        Returns:
            CountingOutcome
        """

        if effective_days < 0:
            raise ValueError(f"effective_days must not be negative, got {effective_days}")

        if effective_days == 0:
            return CountingOutcome(due_date=None, no_fixed_term=True)

        warnings = []

        if counting_mode == CountingMode.HOURS:
            outcome = self._count_hours(start_date, effective_days, start_time)
        else:
            suspension = calendar.suspension_on(start_date)
            if suspension:
                resume = calendar.next_countable(suspension.end_date + timedelta(days=1))
                warnings.append(
                    f"Start date {start_date.isoformat()} falls inside '{suspension.name}'; "
                    f"counting resumes on {resume.isoformat()}"
                )

            if counting_mode == CountingMode.BUSINESS_DAYS:
                outcome = self._count_business_days(start_date, effective_days, calendar)
            else:
                outcome = self._count_calendar_days(
                    start_date, effective_days, calendar, extends_on_non_business_day
                )

        outcome.warnings = warnings + outcome.warnings
        outcome.warnings.extend(self._coverage_warnings(start_date, outcome.due_date, calendar))

        logger.debug(
            f"{counting_mode.value}: {effective_days} from {start_date.isoformat()} -> "
            f"{outcome.due_date.isoformat() if outcome.due_date else None} "
            f"({len(outcome.entries)} log entries)"
        )
        return outcome

    def _count_business_days(self,
                             start_date: date,
                             effective_days: int,
                             calendar: CalendarView) -> CountingOutcome:
        log = AuditLogBuilder()
        cursor = start_date
        remaining = effective_days

        while remaining > 0:
            cursor += timedelta(days=1)
            reason = calendar.classify(cursor)
            if reason:
                log.record(cursor, *reason)
            else:
                remaining -= 1

        cursor = self._land(cursor, calendar, log)
        return CountingOutcome(due_date=cursor, entries=log.entries)

    def _count_calendar_days(self,
                             start_date: date,
                             effective_days: int,
                             calendar: CalendarView,
                             extends_on_non_business_day: bool) -> CountingOutcome:
        log = AuditLogBuilder()
        warnings = []
        candidate = start_date + timedelta(days=effective_days)

        tolled: List[AuditEntry] = []
        applied = set()
        changed = True

        # Each pass applies at least one new suspension or stops
        while changed:
            changed = False
            for index, suspension in enumerate(calendar.suspensions):
                if index in applied or suspension.start_date > candidate:
                    continue

                first_frozen = max(suspension.start_date, start_date + timedelta(days=1))
                if first_frozen > suspension.end_date:
                    continue

                span = (suspension.end_date - first_frozen).days + 1
                candidate += timedelta(days=span)
                applied.add(index)
                changed = True

                tolled.append(AuditEntry(
                    first_frozen,
                    ReasonKind.TOLLING,
                    f"{suspension.name}: clock frozen until {suspension.end_date.isoformat()}",
                    span,
                ))

        log.extend(sorted(tolled, key=lambda e: e.date))

        if extends_on_non_business_day:
            candidate = self._land(candidate, calendar, log)
        elif not calendar.is_countable(candidate):
            _, detail = calendar.classify(candidate)
            warnings.append(
                f"Due date {candidate.isoformat()} is not a business day ({detail}); "
                f"this deadline does not extend"
            )

        return CountingOutcome(due_date=candidate, entries=log.entries, warnings=warnings)

    def _count_hours(self,
                     start_date: date,
                     effective_hours: int,
                     start_time: Optional[time]) -> CountingOutcome:
        start_at = datetime.combine(start_date, start_time or time(0, 0))
        due_at = start_at + timedelta(hours=effective_hours)
        return CountingOutcome(due_date=due_at.date(), due_at=due_at)

    @staticmethod
    def _land(cursor: date, calendar: CalendarView, log: AuditLogBuilder) -> date:
        """Roll a non-countable landing day forward, recording each skip"""

        while True:
            reason = calendar.classify(cursor)
            if reason is None:
                return cursor
            log.record(cursor, *reason)
            cursor += timedelta(days=1)

    @staticmethod
    def _coverage_warnings(start_date: date,
                           due_date: Optional[date],
                           calendar: CalendarView) -> List[str]:
        if due_date is None:
            return []
        warnings = [
            f"No {year} calendar published for {calendar.tribunal_code}; "
            f"only weekends were considered in that year"
            for year in range(start_date.year, due_date.year + 1)
            if year not in calendar.covered_years
        ]

        # The year-end recess (Art. 220 CPC) runs until January 20 and is
        # published with the year it starts in
        previous = start_date.year - 1
        if (start_date.month == 1
                and previous not in calendar.covered_years
                and calendar.suspension_on(date(start_date.year, 1, 1)) is None):
            warnings.insert(0,
                f"No {previous} calendar published for {calendar.tribunal_code}; "
                f"a recess carried over from {previous} into January may be missing"
            )
        return warnings

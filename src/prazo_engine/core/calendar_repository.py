"""
Calendar Repository
Read-only access to published court calendars keyed by (tribunal, year)
"""

import json
import logging
from dataclasses import replace
from datetime import date, timedelta
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional, Tuple

from .exceptions import CalendarDataError, ConfigurationNotFound
from .models import CourtCalendar, CourtHoliday, CourtSuspension, ReasonKind

logger = logging.getLogger(__name__)


def merge_suspensions(suspensions: Iterable[CourtSuspension]) -> Tuple[CourtSuspension, ...]:
    """
    Merge overlapping or adjacent suspensions into disjoint ranges

    The merged range keeps the first suspension's flags and category and
    joins the distinct names with "; ".
    """

    merged: List[CourtSuspension] = []
    for suspension in sorted(suspensions, key=lambda s: (s.start_date, s.end_date)):
        last = merged[-1] if merged else None
        if last is None or suspension.start_date > last.end_date + timedelta(days=1):
            merged.append(suspension)
            continue

        names = last.name.split("; ")
        merged[-1] = replace(
            last,
            end_date=max(last.end_date, suspension.end_date),
            name=last.name if suspension.name in names else f"{last.name}; {suspension.name}",
        )
    return tuple(merged)


class CalendarView:
    """
    Merged calendar facts for one tribunal and state across every published year

    A view is what the resolvers and the counting engine consult. It never
    changes after construction. Deadline-suspending ranges are merged into
    disjoint intervals, so a day frozen by two overlapping suspensions is
    skipped or tolled once.
    """

    def __init__(self,
                 tribunal_code: str,
                 state_code: Optional[str],
                 calendars: Iterable[CourtCalendar],
                 extra_suspensions: Iterable[CourtSuspension] = ()):
        self.tribunal_code = tribunal_code
        self.state_code = state_code.upper() if state_code else None

        calendars = sorted(calendars, key=lambda c: c.year)
        self.covered_years = frozenset(c.year for c in calendars)

        closed: Dict[date, CourtHoliday] = {}
        observances: Dict[date, CourtHoliday] = {}
        suspensions: List[CourtSuspension] = []

        for calendar in calendars:
            for holiday in calendar.holidays:
                if not holiday.applies_to(self.state_code):
                    continue
                if holiday.suspends_business:
                    closed.setdefault(holiday.date, holiday)
                else:
                    observances.setdefault(holiday.date, holiday)

            for suspension in calendar.suspensions:
                if suspension.suspends_deadlines and suspension.applies_to(self.state_code):
                    suspensions.append(suspension)

        suspensions.extend(s for s in extra_suspensions if s.suspends_deadlines)

        self._closed = MappingProxyType(closed)
        self._observances = MappingProxyType(observances)
        self.suspensions: Tuple[CourtSuspension, ...] = merge_suspensions(suspensions)

    def holiday_on(self, day: date) -> Optional[CourtHoliday]:
        """Holiday closing the court on this day, if any"""
        return self._closed.get(day)

    def observance_on(self, day: date) -> Optional[CourtHoliday]:
        return self._observances.get(day)

    def suspension_on(self, day: date) -> Optional[CourtSuspension]:
        for suspension in self.suspensions:
            if suspension.contains(day):
                return suspension
            if suspension.start_date > day:
                break
        return None

    def classify(self, day: date) -> Optional[Tuple[ReasonKind, str]]:
        """
        Classify a day for counting purposes

        Args:
            day: Calendar day

        Returns:
            None when the day is countable, else (reason kind, detail)
        """

        suspension = self.suspension_on(day)
        if suspension:
            return ReasonKind.SUSPENSION, suspension.name

        holiday = self.holiday_on(day)
        if holiday:
            return ReasonKind.HOLIDAY, holiday.name

        if day.weekday() >= 5:
            return ReasonKind.WEEKEND, "weekend"

        return None

    def is_countable(self, day: date) -> bool:
        return self.classify(day) is None

    def next_countable(self, day: date) -> date:
        """First countable day on or after the given day"""
        while not self.is_countable(day):
            day += timedelta(days=1)
        return day

    def previous_countable(self, day: date) -> date:
        while not self.is_countable(day):
            day -= timedelta(days=1)
        return day

    def holidays_between(self, first: date, last: date) -> List[CourtHoliday]:
        """Business-suspending holidays within [first, last]"""
        return [h for d, h in sorted(self._closed.items()) if first <= d <= last]

    def suspended_days_between(self, first: date, last: date) -> int:
        total = 0
        for suspension in self.suspensions:
            lo = max(first, suspension.start_date)
            hi = min(last, suspension.end_date)
            if lo <= hi:
                total += (hi - lo).days + 1
        return total


class CalendarRepository:
    """
    Immutable set of published court calendars

    Administrative updates build a new repository; an existing instance is
    never mutated, so computations holding it see a stable snapshot.
    """

    def __init__(self, calendars: Iterable[CourtCalendar] = ()):
        index: Dict[Tuple[str, int], CourtCalendar] = {}

        for calendar in calendars:
            key = (calendar.tribunal_code.upper(), calendar.year)
            if key in index:
                raise CalendarDataError(
                    f"Duplicate calendar for {key[0]}/{key[1]}",
                    {"tribunal_code": key[0], "year": key[1]}
                )
            index[key] = calendar

            for holiday in calendar.holidays:
                if holiday.suspends_business and not holiday.deadlines_extend:
                    logger.warning(
                        f"{key[0]}/{key[1]}: '{holiday.name}' closes the court but is marked as "
                        f"not extending deadlines; due dates still never land on it"
                    )

        self._calendars = MappingProxyType(index)
        logger.debug(f"Calendar repository loaded with {len(index)} calendars")

    def __len__(self) -> int:
        return len(self._calendars)

    def __iter__(self):
        return iter(self._calendars.values())

    def has(self, tribunal_code: str, year: int) -> bool:
        return (tribunal_code.upper(), year) in self._calendars

    def get(self, tribunal_code: str, year: int) -> CourtCalendar:
        """
        Fetch the calendar published for a tribunal and year

        Raises:
            ConfigurationNotFound: no calendar published for the pair
        """

        calendar = self._calendars.get((tribunal_code.upper(), year))
        if calendar is None:
            raise ConfigurationNotFound(
                f"No calendar published for tribunal {tribunal_code} in {year}",
                {"kind": "calendar", "tribunal_code": tribunal_code, "year": year}
            )
        return calendar

    def tribunals(self) -> List[str]:
        return sorted({code for code, _ in self._calendars})

    def years_for(self, tribunal_code: str) -> List[int]:
        code = tribunal_code.upper()
        return sorted(year for c, year in self._calendars if c == code)

    def view(self,
             tribunal_code: str,
             year: int,
             state_code: Optional[str] = None,
             extra_suspensions: Iterable[CourtSuspension] = ()) -> CalendarView:
        """
        Build the merged view used by a computation

        Args:
            tribunal_code: Tribunal identifier
            year: Year of the triggering event (must be published)
            state_code: State scope; defaults to the tribunal's own state
            extra_suspensions: Per-computation suspensions (system unavailability)

        Returns:
            CalendarView over every published year of the tribunal
        """

        anchor = self.get(tribunal_code, year)
        code = anchor.tribunal_code.upper()
        calendars = [c for (c_code, _), c in self._calendars.items() if c_code == code]

        return CalendarView(code, state_code or anchor.state_code, calendars, extra_suspensions)

    def to_dict(self) -> Dict:
        return {"calendars": [c.to_dict() for c in self._calendars.values()]}

    @classmethod
    def from_dict(cls, data: Dict) -> "CalendarRepository":
        return cls(CourtCalendar.from_dict(item) for item in data.get("calendars", []))

    @classmethod
    def load_json(cls, path) -> "CalendarRepository":
        with open(Path(path), 'r', encoding='utf-8') as f:
            data = json.load(f)
        logger.info(f"Loading calendars from {path}")
        return cls.from_dict(data)

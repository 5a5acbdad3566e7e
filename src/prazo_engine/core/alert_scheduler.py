"""
Alert Scheduler
Internal safety-margin date, reminder dates and remaining-time labels
"""

import logging
from datetime import date, timedelta
from typing import List, Optional

from .calendar_repository import CalendarView
from .models import DeadlineClass

logger = logging.getLogger(__name__)

PEREMPTORY_ALERT_OFFSETS = (5, 3, 2, 1, 0)
DEFAULT_ALERT_OFFSETS = (7, 3, 1, 0)


class AlertScheduler:
    """Derives office-side dates from a computed due date"""

    def __init__(self, internal_margin_days: int = 2):
        if internal_margin_days < 0:
            raise ValueError("internal_margin_days must not be negative")
        self.internal_margin_days = internal_margin_days

    def internal_due_date(self,
                          due_date: date,
                          start_date: date,
                          calendar: CalendarView) -> date:
        """
        Due date moved back by the internal margin, in business days

        Never earlier than the start-of-count date.
        """

        cursor = due_date
        remaining = self.internal_margin_days
        while remaining > 0 and cursor > start_date:
            cursor -= timedelta(days=1)
            if calendar.is_countable(cursor):
                remaining -= 1

        return max(cursor, start_date)

    def alert_dates(self,
                    due_date: date,
                    start_date: date,
                    deadline_class: DeadlineClass,
                    calendar: CalendarView) -> List[date]:
        """
        Reminder dates before the due date

        Each offset is rolled back to the previous business day; dates before
        the start of the count are dropped.
        """

        offsets = (
            PEREMPTORY_ALERT_OFFSETS if deadline_class == DeadlineClass.PEREMPTORY
            else DEFAULT_ALERT_OFFSETS
        )

        dates = set()
        for offset in offsets:
            alert = calendar.previous_countable(due_date - timedelta(days=offset))
            if alert >= start_date:
                dates.add(alert)

        return sorted(dates)


def business_days_between(reference: date, due_date: date, calendar: CalendarView) -> int:
    """
    Countable days from reference (exclusive) to due date (inclusive)

    Negative when the due date has already passed.
    """

    if due_date == reference:
        return 0

    step = 1 if due_date > reference else -1
    lo, hi = (reference, due_date) if step > 0 else (due_date, reference)

    total = 0
    cursor = lo + timedelta(days=1)
    while cursor <= hi:
        if calendar.is_countable(cursor):
            total += 1
        cursor += timedelta(days=1)

    return total * step


def urgency_label(reference: date, due_date: Optional[date], calendar: CalendarView) -> str:
    if due_date is None:
        return "NO_FIXED_TERM"
    if due_date < reference:
        return "OVERDUE"
    if due_date == reference:
        return "DUE_TODAY"

    remaining = business_days_between(reference, due_date, calendar)
    if remaining <= 2:
        return "URGENT"
    if remaining <= 5:
        return "ATTENTION"
    return "ON_TRACK"

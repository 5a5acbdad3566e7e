"""
Audit Log Builder
Ordered trail of every skip and adjustment, and replay of the due date from it
"""

from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence

from .models import AuditEntry, CountingMode, ReasonKind


class AuditLogBuilder:
    """Accumulates audit entries in strictly increasing date order"""

    def __init__(self):
        self._entries: List[AuditEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def record(self,
               day: date,
               reason_kind: ReasonKind,
               reason_detail: str,
               span_days: int = 1) -> AuditEntry:
        if self._entries and day <= self._entries[-1].date:
            raise ValueError(
                f"Audit entry for {day.isoformat()} is not after {self._entries[-1].date.isoformat()}"
            )
        if span_days < 1:
            raise ValueError(f"Audit entry span must be positive, got {span_days}")

        entry = AuditEntry(day, reason_kind, reason_detail, span_days)
        self._entries.append(entry)
        return entry

    def extend(self, entries: Iterable[AuditEntry]):
        for entry in entries:
            self.record(entry.date, entry.reason_kind, entry.reason_detail, entry.span_days)

    @property
    def entries(self) -> List[AuditEntry]:
        return list(self._entries)


def replay_due_date(start_date: date,
                    effective_days: int,
                    counting_mode: CountingMode,
                    entries: Sequence[AuditEntry]) -> Optional[date]:
    """
    Re-derive the due date from the audit log alone, without any calendar

    Args:
        start_date: Start-of-count date
        effective_days: Day count after doubling
        counting_mode: Counting mode used
        entries: Audit log produced by the counting engine

    Returns:
        Due date, or None for no-fixed-term and hour-based deadlines
    """

    if effective_days == 0 or counting_mode == CountingMode.HOURS:
        return None

    if counting_mode == CountingMode.CALENDAR_DAYS:
        tolled = sum(e.span_days for e in entries if e.reason_kind == ReasonKind.TOLLING)
        rolled = sum(1 for e in entries if e.reason_kind != ReasonKind.TOLLING)
        return start_date + timedelta(days=effective_days + tolled + rolled)

    skipped = {e.date for e in entries}
    cursor = start_date
    remaining = effective_days
    while remaining > 0:
        cursor += timedelta(days=1)
        if cursor not in skipped:
            remaining -= 1
    return cursor


def summarize(entries: Sequence[AuditEntry]) -> List[str]:
    """Human-readable lines for the audit trail"""

    lines = []
    for entry in entries:
        if entry.span_days > 1:
            when = f"{entry.date.isoformat()} .. {entry.last_day.isoformat()}"
            lines.append(f"{when}  {entry.reason_kind.value}  {entry.reason_detail} ({entry.span_days} days)")
        else:
            lines.append(f"{entry.date.isoformat()}  {entry.reason_kind.value}  {entry.reason_detail}")
    return lines

"""
Reference Snapshot
Versioned, read-only bundle of calendars and catalog handed to each computation
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from .calendar_repository import CalendarRepository
from .court_calendars import CourtCalendarBuilder
from .deadline_catalog import DeadlineCatalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceSnapshot:
    version: str
    calendars: CalendarRepository
    catalog: DeadlineCatalog

    @classmethod
    def build(cls,
              years: Iterable[int],
              calendar_seed_path=None,
              catalog_path=None,
              version: Optional[str] = None) -> "ReferenceSnapshot":
        """
        Build a snapshot from the seed documents

        Args:
            years: Calendar years to publish
            calendar_seed_path: Optional calendar seed document
            catalog_path: Optional catalog document
            version: Explicit version label (defaults to seed versions)

        Returns:
            ReferenceSnapshot
        """

        builder = CourtCalendarBuilder.from_file(calendar_seed_path)
        calendars = CalendarRepository(builder.build(years))
        catalog = DeadlineCatalog.load_json(catalog_path)

        label = version or f"calendars-{builder.version}+catalog-{catalog.version}"
        logger.info(f"Reference snapshot {label} ready ({len(calendars)} calendars, {len(catalog)} deadlines)")

        return cls(version=label, calendars=calendars, catalog=catalog)

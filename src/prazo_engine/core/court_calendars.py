"""
Court Calendar Builder
Seeds yearly court calendars from statutory holidays and court-specific rules
"""

import json
import logging
from dataclasses import replace
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import holidays
from dateutil.easter import easter

from .exceptions import CalendarDataError
from .models import (
    CourtCalendar,
    CourtHoliday,
    CourtSuspension,
    HolidayCategory,
    SuspensionCategory,
    TribunalCategory,
)

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent / "data"
DEFAULT_SEED_FILE = DATA_DIR / "court_calendars.json"


class CourtCalendarBuilder:
    """
    Builds CourtCalendar records for a range of years

    National and state holidays come from the ``holidays`` package; court
    days (Dia da Justiça, Carnival, Holy Thursday...), court-specific
    holidays and recess ranges come from the seed document.
    """

    def __init__(self, seed: Dict):
        """
        Initialize builder

        Args:
            seed: Parsed seed document (see data/court_calendars.json)
        """

        if not seed.get("tribunals"):
            raise CalendarDataError("Calendar seed lists no tribunals")

        self.seed = seed
        self.version = seed.get("version", "unversioned")
        self.country = seed.get("country", "BR")

        logger.info(
            f"Calendar builder initialized with {len(seed['tribunals'])} tribunals "
            f"(seed version {self.version})"
        )

    @classmethod
    def from_file(cls, path=None) -> "CourtCalendarBuilder":
        path = Path(path) if path else DEFAULT_SEED_FILE
        with open(path, 'r', encoding='utf-8') as f:
            return cls(json.load(f))

    def build(self, years: Iterable[int], tribunals: Optional[List[str]] = None) -> List[CourtCalendar]:
        """
        Build calendars for every tribunal and year

        Args:
            years: Years to publish
            tribunals: Optional subset of tribunal codes

        Returns:
            List of CourtCalendar
        """

        wanted = {code.upper() for code in tribunals} if tribunals else None
        calendars = []

        for year in sorted(set(years)):
            for tribunal in self.seed["tribunals"]:
                code = tribunal["code"].upper()
                if wanted is not None and code not in wanted:
                    continue
                calendars.append(self.build_calendar(tribunal, year))

        logger.info(f"Built {len(calendars)} court calendars")
        return calendars

    def build_calendar(self, tribunal: Dict, year: int) -> CourtCalendar:
        code = tribunal["code"].upper()
        state_code = tribunal.get("state_code")

        by_date: Dict[date, CourtHoliday] = {}

        # Statutory holidays first, court rules override them on the same date
        for holiday in self._statutory_holidays(year, state_code):
            by_date[holiday.date] = holiday

        for rule in self.seed.get("movable_holidays", []):
            if not self._applies(rule, code):
                continue
            day = easter(year) + timedelta(days=int(rule["easter_offset"]))
            by_date[day] = self._holiday_from_rule(rule, day)

        for rule in self.seed.get("fixed_holidays", []):
            if not self._applies(rule, code):
                continue
            day = date(year, int(rule["month"]), int(rule["day"]))
            by_date[day] = self._holiday_from_rule(rule, day)

        suspensions = []
        for rule in self.seed.get("suspensions", []):
            if not self._applies(rule, code):
                continue
            suspension = self._suspension_from_rule(rule, year)
            if suspension.end_date.year > year:
                # Tail of the previous year's range, so the calendar stands alone
                carried = self._suspension_from_rule(rule, year - 1)
                suspensions.append(replace(carried, start_date=date(year, 1, 1)))
            suspensions.append(suspension)

        return CourtCalendar(
            tribunal_code=code,
            tribunal_name=tribunal.get("name", code),
            category=TribunalCategory(tribunal["category"]),
            year=year,
            state_code=state_code,
            holidays=tuple(by_date[d] for d in sorted(by_date)),
            suspensions=tuple(suspensions),
        )

    def _statutory_holidays(self, year: int, state_code: Optional[str]) -> List[CourtHoliday]:
        """National holidays plus the state's own, from the holidays package"""

        national = holidays.country_holidays(self.country, years=year)
        regional = (
            holidays.country_holidays(self.country, subdiv=state_code, years=year)
            if state_code else national
        )

        result = []
        for day, name in sorted(regional.items()):
            is_national = day in national
            result.append(CourtHoliday(
                date=day,
                name=name,
                category=HolidayCategory.NATIONAL if is_national else HolidayCategory.STATE,
                suspends_business=True,
                deadlines_extend=True,
                state_code=None if is_national else state_code,
            ))
        return result

    @staticmethod
    def _applies(rule: Dict, tribunal_code: str) -> bool:
        scope = rule.get("tribunals")
        return not scope or tribunal_code in {c.upper() for c in scope}

    @staticmethod
    def _holiday_from_rule(rule: Dict, day: date) -> CourtHoliday:
        return CourtHoliday(
            date=day,
            name=rule["name"],
            category=HolidayCategory(rule.get("category", "JUDICIAL")),
            suspends_business=bool(rule.get("suspends_business", True)),
            deadlines_extend=bool(rule.get("deadlines_extend", True)),
            state_code=rule.get("state_code"),
            legal_basis=rule.get("legal_basis"),
        )

    @staticmethod
    def _suspension_from_rule(rule: Dict, year: int) -> CourtSuspension:
        start = date(year, rule["start"]["month"], rule["start"]["day"])
        end = date(year, rule["end"]["month"], rule["end"]["day"])
        name = rule["name"]

        if end < start:
            # Range crosses into the next year, e.g. Dec 20 -> Jan 20
            end = date(year + 1, rule["end"]["month"], rule["end"]["day"])
            name = f"{name} {year}/{year + 1}"
        else:
            name = f"{name} {year}"

        return CourtSuspension(
            start_date=start,
            end_date=end,
            name=name,
            category=SuspensionCategory(rule.get("category", "AD_HOC")),
            suspends_deadlines=bool(rule.get("suspends_deadlines", True)),
            suspends_hearings=bool(rule.get("suspends_hearings", True)),
            suspends_sessions=bool(rule.get("suspends_sessions", True)),
            emergency_duty=bool(rule.get("emergency_duty", False)),
            state_code=rule.get("state_code"),
            legal_basis=rule.get("legal_basis"),
        )

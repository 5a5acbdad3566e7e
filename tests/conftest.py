"""Shared fixtures: small hand-built calendars and the bundled catalog."""

from datetime import date

import pytest

from prazo_engine.core.calendar_repository import CalendarRepository
from prazo_engine.core.deadline_catalog import DeadlineCatalog
from prazo_engine.core.models import (
    CourtCalendar,
    CourtHoliday,
    CourtSuspension,
    HolidayCategory,
    SuspensionCategory,
    TribunalCategory,
)
from prazo_engine.core.snapshot import ReferenceSnapshot


def _recess(year: int) -> CourtSuspension:
    return CourtSuspension(
        start_date=date(year, 12, 20),
        end_date=date(year + 1, 1, 20),
        name=f"Recesso Forense {year}/{year + 1}",
        category=SuspensionCategory.YEAR_END_RECESS,
        emergency_duty=True,
        legal_basis="Art. 220 CPC",
    )


def make_calendars():
    tjxx_2026 = CourtCalendar(
        tribunal_code="TJXX",
        tribunal_name="Tribunal de Justiça de Teste",
        category=TribunalCategory.STATE_COURT,
        year=2026,
        state_code="SP",
        holidays=[
            CourtHoliday(date(2026, 7, 9), "Revolução Constitucionalista",
                         HolidayCategory.STATE, state_code="SP"),
            CourtHoliday(date(2026, 10, 28), "Dia do Servidor Público", HolidayCategory.OPTIONAL,
                         suspends_business=False, deadlines_extend=False),
            CourtHoliday(date(2026, 11, 2), "Finados"),
            CourtHoliday(date(2026, 11, 20), "Consciência Negra"),
            CourtHoliday(date(2026, 12, 8), "Dia da Justiça", HolidayCategory.JUDICIAL),
            CourtHoliday(date(2026, 12, 25), "Natal"),
        ],
        suspensions=[_recess(2026)],
    )
    tjxx_2027 = CourtCalendar(
        tribunal_code="TJXX",
        tribunal_name="Tribunal de Justiça de Teste",
        category=TribunalCategory.STATE_COURT,
        year=2027,
        state_code="SP",
        holidays=[
            CourtHoliday(date(2027, 1, 1), "Confraternização Universal"),
            CourtHoliday(date(2027, 2, 8), "Carnaval (segunda-feira)", HolidayCategory.JUDICIAL),
            CourtHoliday(date(2027, 2, 9), "Carnaval (terça-feira)", HolidayCategory.JUDICIAL),
        ],
        suspensions=[_recess(2027)],
    )
    tjyy_2026 = CourtCalendar(
        tribunal_code="TJYY",
        tribunal_name="Tribunal sem feriados",
        category=TribunalCategory.STATE_COURT,
        year=2026,
        state_code="RJ",
    )
    return [tjxx_2026, tjxx_2027, tjyy_2026]


@pytest.fixture
def calendars():
    return CalendarRepository(make_calendars())


@pytest.fixture
def view(calendars):
    return calendars.view("TJXX", 2026)


@pytest.fixture
def quiet_view(calendars):
    """Calendar with weekends only"""
    return calendars.view("TJYY", 2026)


@pytest.fixture(scope="session")
def catalog():
    return DeadlineCatalog.load_json()


@pytest.fixture
def snapshot(calendars, catalog):
    return ReferenceSnapshot(version="test-1", calendars=calendars, catalog=catalog)


@pytest.fixture
def contestacao_payload():
    return {
        "deadline_type_or_catalog_code": "CPC-001",
        "trigger_date": "2026-12-07",
        "service_method": "POSTAL_SERVICE",
        "tribunal_code": "TJXX",
        "parties": [
            {"pole": "CLAIMANT", "party_type": "INDIVIDUAL", "counsel_id": "OAB-SP-1"},
            {"pole": "RESPONDENT", "party_type": "FEDERAL_TREASURY", "counsel_id": "AGU"},
        ],
    }

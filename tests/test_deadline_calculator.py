"""End-to-end tests for a single deadline computation."""

from datetime import date, datetime

import pytest

from prazo_engine.core.deadline_calculator import DeadlineCalculator
from prazo_engine.core.exceptions import ConfigurationNotFound
from prazo_engine.core.models import CountingMode, ReasonKind, StartRule
from prazo_engine.utils.data_validator import DataValidator


@pytest.fixture(scope="module")
def calculator():
    return DeadlineCalculator()


def _request(payload, **changes):
    body = dict(payload)
    body.update(changes)
    return DataValidator().build_request(body)


class TestContestacaoOverRecess:
    """Contestação served by mail on a Monday, federal treasury as defendant"""

    @pytest.fixture
    def result(self, calculator, snapshot, contestacao_payload):
        return calculator.calculate(_request(contestacao_payload), snapshot)

    def test_doubled_to_thirty_days(self, result):
        assert result.original_days == 15
        assert result.effective_days == 30
        assert result.doubling_applied
        assert "Art. 183" in result.doubling_reason

    def test_start_skips_dia_da_justica(self, result):
        assert result.trigger_date == date(2026, 12, 7)
        assert result.start_date == date(2026, 12, 9)
        assert result.start_rule == StartRule.NEXT_BUSINESS_DAY
        assert [e.reason_detail for e in result.start_adjustments] == ["Dia da Justiça"]

    def test_due_date(self, result):
        assert result.due_date == date(2027, 2, 24)
        assert result.counting_mode == CountingMode.BUSINESS_DAYS

    def test_audit_log_is_ordered_and_bounded(self, result):
        dates = [e.date for e in result.audit_log]
        assert all(a < b for a, b in zip(dates, dates[1:]))
        assert all(result.start_date <= d <= result.due_date for d in dates)
        assert len(result.audit_log) == 47

    def test_every_recess_day_is_logged(self, result):
        suspended = [e.date for e in result.audit_log if e.reason_kind == ReasonKind.SUSPENSION]
        assert suspended[0] == date(2026, 12, 20)
        assert suspended[-1] == date(2027, 1, 20)
        assert len(suspended) == 32

    def test_carnival_is_skipped(self, result):
        holidays = [e.date for e in result.audit_log if e.reason_kind == ReasonKind.HOLIDAY]
        assert holidays == [date(2027, 2, 8), date(2027, 2, 9)]

    def test_encounter_counts(self, result):
        assert result.holidays_encountered == 4
        assert result.suspension_days_encountered == 32

    def test_office_dates(self, result):
        assert result.internal_due_date == date(2027, 2, 22)
        assert result.alert_dates[-1] == result.due_date
        assert result.alert_dates[0] == date(2027, 2, 19)

    def test_metadata(self, result):
        assert result.snapshot_version == "test-1"
        assert result.legal_basis == "Art. 335, CPC/2015"
        assert result.tribunal_code == "TJXX"
        assert [p.entitled_to_double for p in result.parties] == [False, True]
        assert any(w.startswith("Peremptory deadline") for w in result.warnings)

    def test_serializes(self, result):
        data = result.to_dict()
        assert data["due_date"] == "2027-02-24"
        assert data["audit_log"][0] == {
            "date": "2026-12-12", "reason_kind": "WEEKEND", "reason_detail": "weekend", "span_days": 1,
        }


class TestCalculatorVariants:
    def test_without_privileged_party(self, calculator, snapshot, contestacao_payload):
        request = _request(contestacao_payload, parties=[{"pole": "RESPONDENT", "party_type": "INDIVIDUAL"}])
        result = calculator.calculate(request, snapshot)
        assert result.effective_days == 15
        assert not result.doubling_applied
        assert result.due_date == date(2027, 2, 1)

    def test_overrides_are_reported(self, calculator, snapshot, contestacao_payload):
        request = _request(contestacao_payload, base_days_override=10, counting_mode="CALENDAR_DAYS", parties=[])
        result = calculator.calculate(request, snapshot)
        assert result.original_days == 10
        assert result.counting_mode == CountingMode.CALENDAR_DAYS
        assert any("Day count overridden" in w for w in result.warnings)
        assert any("Counting mode overridden" in w for w in result.warnings)

    def test_no_fixed_term(self, calculator, snapshot, contestacao_payload):
        request = _request(contestacao_payload, deadline_type_or_catalog_code="ESP-006")
        result = calculator.calculate(request, snapshot)
        assert result.no_fixed_term
        assert result.due_date is None
        assert result.audit_log == []
        assert result.internal_due_date is None
        assert result.alert_dates == []
        assert any("no fixed term" in w for w in result.warnings)

    def test_hours_from_hearing(self, calculator, snapshot):
        request = DataValidator().build_request({
            "deadline_type_or_catalog_code": "ELE-001",
            "trigger_date": "2026-03-02T14:30:00",
            "service_method": "IN_HEARING",
            "tribunal_code": "TJXX",
        })
        result = calculator.calculate(request, snapshot)
        assert result.start_date == date(2026, 3, 2)
        assert result.due_at == datetime(2026, 3, 3, 14, 30)
        assert result.internal_due_date is None

    def test_improper_deadline_warning(self, calculator, snapshot, contestacao_payload):
        request = _request(contestacao_payload, deadline_type_or_catalog_code="CPC-025")
        result = calculator.calculate(request, snapshot)
        assert not result.doubling_applied
        assert any(w.startswith("Improper deadline") for w in result.warnings)

    def test_lookup_by_name(self, calculator, snapshot, contestacao_payload):
        request = _request(contestacao_payload, deadline_type_or_catalog_code="contestacao")
        assert calculator.calculate(request, snapshot).catalog_code == "CPC-001"

    def test_unknown_catalog_code(self, calculator, snapshot, contestacao_payload):
        with pytest.raises(ConfigurationNotFound):
            calculator.calculate(_request(contestacao_payload, deadline_type_or_catalog_code="XYZ-1"), snapshot)

    def test_unpublished_year(self, calculator, snapshot, contestacao_payload):
        with pytest.raises(ConfigurationNotFound):
            calculator.calculate(_request(contestacao_payload, trigger_date="2030-03-04"), snapshot)


class TestSpecialRules:
    def test_system_unavailability_on_due_date_extends(self, calculator, snapshot, contestacao_payload):
        outage = {"start": "2027-02-24", "end": "2027-02-24"}
        result = calculator.calculate(_request(contestacao_payload, system_unavailability=outage), snapshot)

        assert result.due_date == date(2027, 2, 25)
        last = result.audit_log[-1]
        assert (last.date, last.reason_kind) == (date(2027, 2, 24), ReasonKind.SUSPENSION)
        assert last.reason_detail.startswith("Indisponibilidade do sistema (CNJ Res. 185)")
        assert result.suspension_days_encountered == 33
        assert any("Res. CNJ 185/2013" in note for note in result.audit_notes)
        assert result.to_dict()["system_unavailability"]["category"] == "SYSTEM_UNAVAILABILITY"

    def test_outage_overlapping_recess_is_counted_once(self, calculator, snapshot, contestacao_payload):
        outage = {"start": "2027-01-19", "end": "2027-01-22"}
        result = calculator.calculate(_request(contestacao_payload, system_unavailability=outage), snapshot)

        # Only Thu 21 and Fri 22 are new frozen days
        assert result.due_date == date(2027, 2, 26)
        assert result.suspension_days_encountered == 34
        suspended = [e for e in result.audit_log if e.reason_kind == ReasonKind.SUSPENSION]
        assert len(suspended) == 34
        assert "Indisponibilidade do sistema" in suspended[-1].reason_detail

    def test_outage_does_not_leak_into_other_computations(self, calculator, snapshot, contestacao_payload):
        outage = {"start": "2027-02-24", "end": "2027-02-24"}
        calculator.calculate(_request(contestacao_payload, system_unavailability=outage), snapshot)
        assert calculator.calculate(_request(contestacao_payload), snapshot).due_date == date(2027, 2, 24)

    def test_embargos_pending_interrupts(self, calculator, snapshot, contestacao_payload):
        result = calculator.calculate(_request(contestacao_payload, embargos_pending=True), snapshot)

        assert result.due_date == date(2027, 2, 24)
        assert result.embargos_pending
        assert any("Art. 1.026 CPC" in w for w in result.warnings)
        [note] = result.audit_notes
        assert note.startswith("Art. 1.026 CPC")
        assert "15 business days" in note
        assert result.to_dict()["embargos_pending"] is True

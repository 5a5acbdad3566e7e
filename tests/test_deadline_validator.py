"""Tests for independent re-verification of computed deadlines."""

import dataclasses
from datetime import date

import pytest

from prazo_engine.core.deadline_calculator import DeadlineCalculator
from prazo_engine.core.deadline_validator import DeadlineValidator
from prazo_engine.core.models import AuditEntry, ReasonKind
from prazo_engine.utils.data_validator import DataValidator


@pytest.fixture(scope="module")
def calculator():
    return DeadlineCalculator()


@pytest.fixture
def validator(calculator):
    return DeadlineValidator(calculator)


@pytest.fixture
def request_(contestacao_payload):
    return DataValidator().build_request(contestacao_payload)


@pytest.fixture
def result(calculator, snapshot, request_):
    return calculator.calculate(request_, snapshot)


def _failed(report):
    return {c["name"] for c in report["checks"] if not c["passed"]}


class TestVerify:
    def test_fresh_result_is_valid(self, validator, result, snapshot, request_):
        report = validator.verify(result, snapshot, request_)
        assert report["valid"], report["errors"]
        names = {c["name"] for c in report["checks"]}
        assert {"lands_on_business_day", "replay_matches", "recompute_matches"} <= names

    def test_calendar_day_result_is_valid(self, validator, calculator, snapshot, contestacao_payload):
        payload = dict(contestacao_payload, deadline_type_or_catalog_code="RJ-001", trigger_date="2026-11-25")
        request = DataValidator().build_request(payload)
        result = calculator.calculate(request, snapshot)
        assert any(e.reason_kind == ReasonKind.TOLLING for e in result.audit_log)
        assert validator.verify(result, snapshot, request)["valid"]

    def test_shifted_due_date_fails_replay(self, validator, result, snapshot, request_):
        tampered = dataclasses.replace(result, due_date=date(2027, 2, 25))
        report = validator.verify(tampered, snapshot, request_)
        assert not report["valid"]
        assert {"replay_matches", "recompute_matches"} <= _failed(report)

    def test_weekend_due_date_fails_landing(self, validator, result, snapshot):
        tampered = dataclasses.replace(result, due_date=date(2027, 2, 27))
        assert "lands_on_business_day" in _failed(validator.verify(tampered, snapshot))

    def test_unordered_log_fails(self, validator, result, snapshot):
        log = list(result.audit_log)
        log[0], log[1] = log[1], log[0]
        tampered = dataclasses.replace(result, audit_log=log)
        assert "log_strictly_increasing" in _failed(validator.verify(tampered, snapshot))

    def test_log_outside_bounds_fails(self, validator, result, snapshot):
        log = [AuditEntry(date(2026, 12, 5), ReasonKind.WEEKEND, "weekend")] + list(result.audit_log)
        tampered = dataclasses.replace(result, audit_log=log)
        assert "log_within_bounds" in _failed(validator.verify(tampered, snapshot))

    def test_no_fixed_term_shape(self, validator, result, snapshot):
        tampered = dataclasses.replace(result, no_fixed_term=True)
        assert "no_fixed_term_shape" in _failed(validator.verify(tampered, snapshot))

    def test_snapshot_mismatch_warns(self, validator, result, snapshot):
        tampered = dataclasses.replace(result, snapshot_version="older")
        report = validator.verify(tampered, snapshot)
        assert report["valid"]
        assert "older" in report["warnings"][0]


class TestStatistics:
    def test_aggregates_reports(self, validator, result, snapshot):
        good = validator.verify(result, snapshot)
        bad = validator.verify(dataclasses.replace(result, due_date=date(2027, 2, 27)), snapshot)
        stats = validator.get_validation_statistics([good, bad])
        assert stats["total"] == 2
        assert stats["valid"] == 1
        assert stats["valid_percentage"] == 50.0
        assert stats["failed_checks"]["lands_on_business_day"] == 1

    def test_empty(self, validator):
        assert validator.get_validation_statistics([])["total"] == 0


class TestVerifyWithOutage:
    def test_outage_result_is_valid(self, validator, calculator, snapshot, contestacao_payload):
        request = DataValidator().build_request(dict(
            contestacao_payload, system_unavailability={"start": "2027-02-24", "end": "2027-02-24"}
        ))
        result = calculator.calculate(request, snapshot)
        report = validator.verify(result, snapshot, request)
        assert report["valid"], report["errors"]


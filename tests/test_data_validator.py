"""Tests for request validation."""

from datetime import date, time

import pytest

from prazo_engine.core.exceptions import InvalidPartyComposition, InvalidRequest, InvalidServiceMethod
from prazo_engine.core.models import CountingMode, ServiceMethod, SuspensionCategory
from prazo_engine.utils.data_validator import DataValidator


@pytest.fixture
def validator():
    return DataValidator()


class TestBuildRequest:
    def test_valid_request(self, validator, contestacao_payload):
        request = validator.build_request(contestacao_payload)
        assert request.catalog_code == "CPC-001"
        assert request.trigger_date == date(2026, 12, 7)
        assert request.service_method == ServiceMethod.POSTAL_SERVICE
        assert request.tribunal_code == "TJXX"
        assert len(request.parties) == 2
        assert request.trigger_time is None

    def test_alternative_catalog_key(self, validator, contestacao_payload):
        payload = dict(contestacao_payload)
        del payload["deadline_type_or_catalog_code"]
        payload["catalog_code"] = "CPC-002"
        assert validator.build_request(payload).catalog_code == "CPC-002"

    def test_trigger_time_kept(self, validator, contestacao_payload):
        payload = dict(contestacao_payload, trigger_date="2026-12-07T16:45:00")
        assert validator.build_request(payload).trigger_time == time(16, 45)

    def test_state_code_normalized(self, validator, contestacao_payload):
        assert validator.build_request(dict(contestacao_payload, state_code="rj")).state_code == "RJ"

    def test_counting_mode_override(self, validator, contestacao_payload):
        request = validator.build_request(dict(contestacao_payload, counting_mode="calendar_days"))
        assert request.counting_mode == CountingMode.CALENDAR_DAYS

    @pytest.mark.parametrize("field", ["deadline_type_or_catalog_code", "tribunal_code", "trigger_date", "service_method"])
    def test_required_fields(self, validator, contestacao_payload, field):
        payload = dict(contestacao_payload)
        del payload[field]
        with pytest.raises((InvalidRequest, InvalidServiceMethod)) as exc:
            validator.build_request(payload)
        assert exc.value.details["field"] == field

    def test_malformed_trigger_date(self, validator, contestacao_payload):
        with pytest.raises(InvalidRequest):
            validator.build_request(dict(contestacao_payload, trigger_date="next monday"))

    def test_unknown_service_method(self, validator, contestacao_payload):
        with pytest.raises(InvalidServiceMethod):
            validator.build_request(dict(contestacao_payload, service_method="FAX"))

    @pytest.mark.parametrize("days", [-1, 1.5, "15", True, 5000])
    def test_invalid_base_days(self, validator, contestacao_payload, days):
        with pytest.raises(InvalidRequest):
            validator.build_request(dict(contestacao_payload, base_days_override=days))

    def test_zero_base_days_allowed(self, validator, contestacao_payload):
        assert validator.build_request(dict(contestacao_payload, base_days_override=0)).base_days_override == 0

    def test_invalid_state_code(self, validator, contestacao_payload):
        with pytest.raises(InvalidRequest):
            validator.build_request(dict(contestacao_payload, state_code="São Paulo"))

    def test_parties_must_be_a_list(self, validator, contestacao_payload):
        with pytest.raises(InvalidPartyComposition):
            validator.build_request(dict(contestacao_payload, parties={"pole": "CLAIMANT"}))

    def test_party_without_type(self, validator, contestacao_payload):
        with pytest.raises(InvalidPartyComposition) as exc:
            validator.build_request(dict(contestacao_payload, parties=[{"pole": "CLAIMANT"}]))
        assert exc.value.details["field"] == "party_type"

    def test_body_must_be_an_object(self, validator):
        with pytest.raises(InvalidRequest):
            validator.build_request(["CPC-001"])

    def test_system_unavailability(self, validator, contestacao_payload):
        request = validator.build_request(dict(
            contestacao_payload, system_unavailability={"start": "2027-02-24", "end": "2027-02-24"}
        ))
        outage = request.system_unavailability
        assert (outage.start_date, outage.end_date) == (date(2027, 2, 24), date(2027, 2, 24))
        assert outage.category == SuspensionCategory.SYSTEM_UNAVAILABILITY
        assert request.to_dict()["system_unavailability"] == {"start": "2027-02-24", "end": "2027-02-24"}

    @pytest.mark.parametrize("window", [
        {"start": "2027-02-24"},
        {"start": "2027-02-25", "end": "2027-02-24"},
        {"start": "24/02/2027", "end": "2027-02-24"},
        "2027-02-24",
    ])
    def test_invalid_system_unavailability(self, validator, contestacao_payload, window):
        with pytest.raises(InvalidRequest) as exc:
            validator.build_request(dict(contestacao_payload, system_unavailability=window))
        assert exc.value.details["field"].startswith("system_unavailability")

    def test_embargos_pending(self, validator, contestacao_payload):
        assert not validator.build_request(contestacao_payload).embargos_pending
        assert validator.build_request(dict(contestacao_payload, embargos_pending=True)).embargos_pending
        with pytest.raises(InvalidRequest):
            validator.build_request(dict(contestacao_payload, embargos_pending="yes"))


class TestValidateApiRequest:
    def test_valid(self, validator, contestacao_payload):
        assert validator.validate_api_request(contestacao_payload) == {
            "valid": True, "errors": [], "warnings": [],
        }

    def test_error_reported(self, validator, contestacao_payload):
        report = validator.validate_api_request(dict(contestacao_payload, service_method="FAX"))
        assert not report["valid"]
        assert report["errors"][0]["code"] == "INVALID_SERVICE_METHOD"

    def test_warnings_without_parties(self, validator, contestacao_payload):
        report = validator.validate_api_request(dict(contestacao_payload, parties=[]))
        assert report["valid"]
        assert report["warnings"]


class TestValidateBatch:
    def test_envelope(self, validator):
        assert validator.validate_batch("x") == "requests must be a list"
        assert validator.validate_batch([]) == "requests must not be empty"
        assert validator.validate_batch([{}] * 501).startswith("batch larger")
        assert validator.validate_batch([{}]) is None

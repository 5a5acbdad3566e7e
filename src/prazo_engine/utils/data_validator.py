"""
Data Validator Utility
Validates raw computation requests before they reach the engine
"""

import logging
import re
from datetime import datetime
from typing import Dict, Optional

from ..core.exceptions import DeadlineEngineError, InvalidPartyComposition, InvalidRequest
from ..core.models import (
    CountingMode,
    CourtSuspension,
    DeadlineRequest,
    Party,
    ServiceMethod,
    parse_date,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

CATALOG_KEY_FIELDS = ('deadline_type_or_catalog_code', 'catalog_code', 'deadline_type')
STATE_CODE_PATTERN = re.compile(r'^[A-Z]{2}$')


class DataValidator:
    """
    Turns request payloads into DeadlineRequest objects

    Every problem is reported as a typed error before any computation:
    InvalidRequest, InvalidServiceMethod or InvalidPartyComposition.
    """

    MAX_BASE_DAYS = 3650
    MAX_BATCH_SIZE = 500

    def build_request(self, payload: Dict) -> DeadlineRequest:
        """
        Build a validated request

        Args:
            payload: Raw request body

        Returns:
            DeadlineRequest

        Raises:
            DeadlineEngineError subclass describing the first problem found
        """

        if not isinstance(payload, dict):
            raise InvalidRequest("Request body must be a JSON object")

        catalog_key = next((payload[f] for f in CATALOG_KEY_FIELDS if payload.get(f)), None)
        if not isinstance(catalog_key, str) or not catalog_key.strip():
            raise InvalidRequest(
                "deadline_type_or_catalog_code is required",
                {"field": "deadline_type_or_catalog_code"}
            )

        tribunal_code = payload.get('tribunal_code')
        if not isinstance(tribunal_code, str) or not tribunal_code.strip():
            raise InvalidRequest("tribunal_code is required", {"field": "tribunal_code"})

        if payload.get('trigger_date') in (None, ""):
            raise InvalidRequest("trigger_date is required", {"field": "trigger_date"})
        trigger_at = parse_timestamp(payload['trigger_date'], 'trigger_date')
        trigger_date = parse_date(payload['trigger_date'], 'trigger_date')
        raw_trigger = payload["trigger_date"]
        has_time = isinstance(raw_trigger, datetime) or (
            isinstance(raw_trigger, str) and len(raw_trigger.strip()) > 10
        )

        if payload.get('service_method') in (None, ""):
            raise InvalidRequest("service_method is required", {"field": "service_method"})
        service_method = ServiceMethod.parse(payload['service_method'])

        state_code = payload.get('state_code')
        if state_code not in (None, ""):
            state_code = str(state_code).strip().upper()
            if not STATE_CODE_PATTERN.match(state_code):
                raise InvalidRequest(f"Invalid state_code: {payload['state_code']!r}", {"field": "state_code"})
        else:
            state_code = None

        base_days = payload.get('base_days_override')
        if base_days is not None:
            if isinstance(base_days, bool) or not isinstance(base_days, int):
                raise InvalidRequest(
                    f"base_days_override must be an integer, got {base_days!r}",
                    {"field": "base_days_override"}
                )
            if not 0 <= base_days <= self.MAX_BASE_DAYS:
                raise InvalidRequest(
                    f"base_days_override must be between 0 and {self.MAX_BASE_DAYS}",
                    {"field": "base_days_override"}
                )

        counting_mode = None
        if payload.get('counting_mode') not in (None, ""):
            counting_mode = CountingMode.parse(payload['counting_mode'])

        unavailability = None
        if payload.get('system_unavailability') not in (None, {}):
            unavailability = self._system_unavailability(payload['system_unavailability'])

        embargos_pending = payload.get('embargos_pending', False)
        if not isinstance(embargos_pending, bool):
            raise InvalidRequest(
                f"embargos_pending must be a boolean, got {embargos_pending!r}",
                {"field": "embargos_pending"}
            )

        raw_parties = payload.get('parties', [])
        if not isinstance(raw_parties, list):
            raise InvalidPartyComposition("parties must be a list", {"field": "parties"})
        parties = [Party.from_dict(item, index) for index, item in enumerate(raw_parties)]

        return DeadlineRequest(
            catalog_code=catalog_key.strip(),
            trigger_date=trigger_date,
            service_method=service_method,
            tribunal_code=tribunal_code.strip().upper(),
            state_code=state_code,
            parties=parties,
            base_days_override=base_days,
            counting_mode=counting_mode,
            electronic_process=bool(payload.get('electronic_process', False)),
            trigger_time=trigger_at.time() if has_time else None,
            system_unavailability=unavailability,
            embargos_pending=embargos_pending,
            reference=payload.get('reference'),
        )

    @staticmethod
    def _system_unavailability(value) -> CourtSuspension:
        """Parse a {"start", "end"} outage window into a one-off suspension"""

        if not isinstance(value, dict) or not value.get('start') or not value.get('end'):
            raise InvalidRequest(
                "system_unavailability must be an object with 'start' and 'end' dates",
                {"field": "system_unavailability"}
            )

        start = parse_date(value['start'], 'system_unavailability.start')
        end = parse_date(value['end'], 'system_unavailability.end')
        if end < start:
            raise InvalidRequest(
                "system_unavailability ends before it starts",
                {"field": "system_unavailability"}
            )
        return CourtSuspension.system_unavailability(start, end)

    def validate_api_request(self, payload: Dict) -> Dict:
        """
        Validate a request without raising

        Returns:
            Validation results
        """

        results = {
            "valid": True,
            "errors": [],
            "warnings": []
        }

        try:
            request = self.build_request(payload)
        except DeadlineEngineError as e:
            results["valid"] = False
            results["errors"].append(e.to_dict())
            return results

        if not request.parties:
            results["warnings"].append("No parties given; doubling rules cannot apply")

        counsel = [p.counsel_id for p in request.parties]
        if request.parties and all(c is None for c in counsel):
            results["warnings"].append("No counsel identifiers given; joinder doubling cannot apply")

        return results

    def validate_batch(self, payloads) -> Optional[str]:
        """Return an error message when the batch envelope itself is unusable"""

        if not isinstance(payloads, list):
            return "requests must be a list"
        if not payloads:
            return "requests must not be empty"
        if len(payloads) > self.MAX_BATCH_SIZE:
            return f"batch larger than {self.MAX_BATCH_SIZE} requests"
        return None

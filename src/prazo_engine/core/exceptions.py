"""
Engine Errors
Typed failures reported to the caller before any counting starts
"""

from typing import Dict, Optional


class DeadlineEngineError(Exception):
    """Base class for all engine errors"""

    code = "DEADLINE_ENGINE_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationNotFound(DeadlineEngineError):
    """No calendar for the tribunal/year, or no catalog entry for the code"""

    code = "CONFIGURATION_NOT_FOUND"
    status_code = 404


class InvalidServiceMethod(DeadlineEngineError):
    code = "INVALID_SERVICE_METHOD"


class InvalidPartyComposition(DeadlineEngineError):
    code = "INVALID_PARTY_COMPOSITION"


class InvalidRequest(DeadlineEngineError):
    """Malformed dates, day counts or other request fields"""

    code = "INVALID_REQUEST"


class CalendarDataError(DeadlineEngineError):
    """Administrative reference data violates an invariant"""

    code = "CALENDAR_DATA_ERROR"
    status_code = 500

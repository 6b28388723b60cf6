"""
Roster error hierarchy.

Every failure carries a deterministic error code so the API layer can map it
to an HTTP status and a stable response body.

Error Codes:
- ROSTER_INVALID_DATE: date string is not a valid YYYY-MM-DD calendar date
- ROSTER_NO_LEGAL_SERVICE_DAY: policy allows no weekday at all
- ROSTER_NOT_A_SERVICE_DAY: write targets a date the policy does not allow
- ROSTER_SCHEDULE_NOT_FOUND: unknown schedule id
- ROSTER_HOLIDAY_NOT_FOUND: unknown holiday id
- ROSTER_PRESET_NOT_FOUND: unknown church-type preset id
- ROSTER_INVALID_POLICY: policy write without a primary day
- ROSTER_REPOSITORY_ERROR: the document store failed
"""

from typing import Any, Dict, Optional


class RosterError(Exception):
    """Base exception for all roster errors."""

    code: str = "ROSTER_INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class InvalidDate(RosterError):
    """Raised when a date string cannot be parsed as YYYY-MM-DD."""

    code: str = "ROSTER_INVALID_DATE"


class NoLegalServiceDay(RosterError):
    """
    Raised when a date scan exhausts a full week without finding a legal date.

    Only reachable with corrupted policy data (no primary day, no
    additional days, custom dates off).
    """

    code: str = "ROSTER_NO_LEGAL_SERVICE_DAY"


class NotAServiceDay(RosterError):
    code: str = "ROSTER_NOT_A_SERVICE_DAY"


class ScheduleNotFound(RosterError):
    code: str = "ROSTER_SCHEDULE_NOT_FOUND"


class HolidayNotFound(RosterError):
    code: str = "ROSTER_HOLIDAY_NOT_FOUND"


class PresetNotFound(RosterError):
    code: str = "ROSTER_PRESET_NOT_FOUND"


class InvalidPolicy(RosterError):
    """Raised when a policy write would leave the schedule with no primary day."""

    code: str = "ROSTER_INVALID_POLICY"


class RepositoryError(RosterError):
    """Raised when the document store fails. Never retried by the core."""

    code: str = "ROSTER_REPOSITORY_ERROR"

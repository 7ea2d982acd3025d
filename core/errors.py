"""
Exception types shared by the matching engine and the policy executor.
"""

from __future__ import annotations


class AllowlistError(Exception):
    """Base class for every error raised by this package."""


class InvalidAddressError(AllowlistError, ValueError):
    pass


class InvalidRangeError(AllowlistError, ValueError):
    pass


class MatchContractError(AllowlistError):
    """Matcher called with arguments that never went through validation."""


class ClientPolicyError(AllowlistError):
    """
    Policy rejection raised by the executor. `error` is the machine-readable
    reason code returned to the caller, `status_code` the HTTP status.
    """

    def __init__(self, message: str, error: str = "invalid_request", status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.error = error
        self.status_code = status_code

    def to_dict(self) -> dict:
        return {"error": self.error, "error_description": self.message}

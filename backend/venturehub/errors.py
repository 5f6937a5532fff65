"""Domain errors surfaced by the relay and aggregation services.

Every error carries an HTTP status, a stable machine-readable code and a
human-readable reason so callers can always tell success from failure and
diagnose what went wrong.
"""
from typing import Any, Optional


class RelayError(Exception):
    """Base class for all errors rendered to API callers"""

    status_code: int = 500
    code: str = "relay_error"
    message: str = "Request failed"

    def __init__(self, details: str, message: Optional[str] = None):
        super().__init__(details)
        self.details = details
        if message is not None:
            self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message, "error": self.code, "details": self.details}


class PrecursorMissing(RelayError):
    """A required prior linkage (e.g. a linked wallet) is absent"""

    status_code = 400
    code = "precursor_missing"
    message = "A required prerequisite is missing"


class NotFound(RelayError):
    status_code = 404
    code = "not_found"
    message = "Resource not found"


class Forbidden(RelayError):
    """The caller may not act on another user's record"""

    status_code = 403
    code = "forbidden"
    message = "Not permitted"


class ConflictingState(RelayError):
    """An off-chain uniqueness or state-transition rule was violated"""

    status_code = 409
    code = "conflicting_state"
    message = "Request conflicts with existing state"


class ExternalServiceFailure(RelayError):
    """Transport failure or revert from the content store or the ledger"""

    status_code = 502
    code = "external_service_failure"
    message = "An external service failed"


class CriticalChainStateMismatch(RelayError):
    """A ledger call succeeded but its expected event is missing.

    Never retried: the transaction is included, so resubmitting would apply
    the effect twice. Requires operator investigation.
    """

    status_code = 500
    code = "critical_chain_state_mismatch"
    message = "Ledger state does not match the expected effect"


class PartialHydrationFailure(RelayError):
    """One item in a batch could not be hydrated with live ledger state.

    Recorded alongside the batch result, never raised to the caller.
    """

    code = "partial_hydration_failure"
    message = "Item could not be hydrated"

    def __init__(self, key: Any, details: str):
        super().__init__(details)
        self.key = key

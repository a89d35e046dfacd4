"""
ACR Gate Exceptions

Lookup errors are raised before any search starts. Malformed history
timestamps are never errors.
"""


class AcrError(Exception):
    """Base class for all ACR Gate domain errors."""
    pass


class UnknownSessionError(AcrError):
    """Raised when a session id does not exist in the model."""
    pass


class UnknownUserError(AcrError):
    """Raised when a session references a user that does not exist."""
    pass


class UnknownPolicyError(AcrError):
    """Raised when the requested ACR is not defined in the catalog."""
    pass


class UnknownMethodError(AcrError):
    """Raised when enrolling an AMR id that is not in the catalog."""
    pass


class MethodNotEnrolledError(AcrError):
    """Raised when recording an authentication with a non-enrolled AMR."""
    pass


class UnknownActionError(AcrError):
    """Raised when revoking a past action position that does not exist."""
    pass


class SearchBudgetExceededError(AcrError):
    """Raised when the action search visits more nodes than allowed."""

    def __init__(self, budget: int) -> None:
        super().__init__(f"Action search exceeded budget of {budget} nodes")
        self.budget = budget


class ModelStoreUnavailableError(AcrError):
    """Raised when the stored model cannot be read (store unreachable)."""
    pass

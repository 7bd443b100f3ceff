"""Session coordination between storage, exchange and presentation."""

from .coordinator import OperationResult, SessionCoordinator, SessionState

__all__ = ["OperationResult", "SessionCoordinator", "SessionState"]

"""Custom exception hierarchy for the brokerage engine."""


class BrokerageError(Exception):
    """Base exception for all brokerage engine errors."""


class ValidationError(BrokerageError):
    """Raised when input data is malformed or a required field is missing.

    Raised before any mutation is attempted, so the store is never left
    partially updated.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class EntityNotFoundError(BrokerageError):
    """Raised when a referenced entity does not exist."""


class InvalidEntityStateError(BrokerageError):
    """Raised when an entity is in an invalid state for the operation."""


class IllegalTransitionError(InvalidEntityStateError):
    """Raised when a status change is not in the transition table."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot transition from '{current}' to '{target}'")
        self.current = current
        self.target = target


class AlreadyCompletedError(InvalidEntityStateError):
    """Raised when completing a milestone that is already completed."""

    def __init__(self, milestone_id: str) -> None:
        super().__init__(f"Milestone {milestone_id} is already completed")
        self.milestone_id = milestone_id


class TransportError(BrokerageError):
    """Raised when the persistence boundary fails an operation."""

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class ConfigurationError(BrokerageError):
    """Raised when configuration is invalid or missing."""


class SinkError(BrokerageError):
    """Raised when a sink operation fails."""

"""Exception hierarchy for diff chunking."""

from typing import Optional


class ChunkingError(Exception):
    """Base exception for all chunking-related errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ChunkValidationError(ChunkingError):
    """Raised when the produced chunks do not reassemble into the input diff."""

    def __init__(self, message: str, expected_length: Optional[int] = None,
                 actual_length: Optional[int] = None):
        super().__init__(message, {
            "expected_length": expected_length,
            "actual_length": actual_length
        })
        self.expected_length = expected_length
        self.actual_length = actual_length


class InvalidBudgetError(ChunkingError):
    """Raised when a size check is asked to use a non-positive budget."""

    def __init__(self, budget: float):
        super().__init__(f"Token budget must be positive, got {budget}", {"budget": budget})
        self.budget = budget

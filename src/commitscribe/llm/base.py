"""Model client contract and error taxonomy."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional


logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Base exception for model client errors."""
    pass


class ContextOverflowError(LLMError):
    """Raised when the model rejects the prompt as too large for its context."""
    pass


class TransportError(LLMError):
    """Raised for network, timeout and non-overflow service failures."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class RateLimitError(TransportError):
    """Raised when the provider throttles requests."""
    pass


class OutcomeKind(str, Enum):
    """Classification of a single model call."""

    OK = "ok"
    OVERFLOW = "overflow"
    TRANSPORT_FAILURE = "transport_failure"


@dataclass(frozen=True)
class GenerationOutcome:
    """Tagged result of one model call: ``Ok(text) | Overflow | TransportFailure(cause)``."""

    kind: OutcomeKind
    text: Optional[str] = None
    error: Optional[LLMError] = None

    @classmethod
    def ok(cls, text: str) -> "GenerationOutcome":
        return cls(kind=OutcomeKind.OK, text=text)

    @classmethod
    def overflow(cls, error: LLMError) -> "GenerationOutcome":
        return cls(kind=OutcomeKind.OVERFLOW, error=error)

    @classmethod
    def transport_failure(cls, error: LLMError) -> "GenerationOutcome":
        return cls(kind=OutcomeKind.TRANSPORT_FAILURE, error=error)

    @property
    def succeeded(self) -> bool:
        return self.kind == OutcomeKind.OK

    @property
    def is_overflow(self) -> bool:
        return self.kind == OutcomeKind.OVERFLOW


class BaseLLMClient(ABC):
    """Base class for model clients used by the request orchestrator."""

    @abstractmethod
    def generate(self, system_role: str, user_content: str, max_output_tokens: int) -> str:
        """Return generated text.

        Raises:
            ContextOverflowError: the prompt exceeds the model's context window
            TransportError: network, timeout or service failure
        """
        pass

    def attempt(self, system_role: str, user_content: str, max_output_tokens: int) -> GenerationOutcome:
        """Call :meth:`generate` and classify the result instead of raising."""
        try:
            text = self.generate(system_role, user_content, max_output_tokens)
        except ContextOverflowError as e:
            logger.warning(f"Model rejected {len(user_content)} characters as too large: {e}")
            return GenerationOutcome.overflow(e)
        except TransportError as e:
            logger.error(f"Model request failed: {e}")
            return GenerationOutcome.transport_failure(e)
        except Exception as e:
            logger.error(f"Model request failed with unexpected error: {e}")
            return GenerationOutcome.transport_failure(TransportError(str(e), cause=e))
        return GenerationOutcome.ok(text)

"""Core data models for commitscribe."""

import re
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from ..chunking.models import Chunk, ChunkingResult, PriorityTier
from ..llm.prompts import TaskKind


class OrchestrationState(str, Enum):
    """States of the request/fallback state machine."""

    IDLE = "idle"
    AWAITING_PRIMARY = "awaiting_primary"
    RETRYING = "retrying"
    AWAITING_FALLBACK = "awaiting_fallback"
    SUCCESS = "success"
    EXHAUSTED_FALLBACK = "exhausted_fallback"
    FAILED = "failed"


class OrchestrationStatus(str, Enum):
    """Final status reported to the caller."""

    SUCCESS = "success"                        # Primary chunk analyzed
    FALLBACK_SUCCESS = "fallback_success"      # Primary overflowed, a fallback chunk was analyzed
    EMPTY_INPUT = "empty_input"                # Nothing to analyze, no model call made
    OVERFLOW = "overflow"                      # Overflow with no chunk left to fall back to
    EXHAUSTED_FALLBACK = "exhausted_fallback"  # Even the reduced input could not be analyzed
    FAILED = "failed"                          # Transport or service failure, not retried


class OutputFormat(str, Enum):
    """Supported output formats."""

    TEXT = "text"
    JSON = "json"
    MARKDOWN = "markdown"


class FallbackExhaustedError(Exception):
    """Raised when the fallback chunk could not be analyzed either."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class AnalysisOutcome(BaseModel):
    """Result of one orchestrated request."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    task: TaskKind
    status: OrchestrationStatus
    text: Optional[str] = None

    # Chunk actually analyzed
    chunk_label: Optional[str] = None
    chunk_priority: Optional[PriorityTier] = None

    # Set when the text came from a fallback chunk
    used_fallback: bool = False
    original_label: Optional[str] = None
    original_priority: Optional[PriorityTier] = None

    unanalyzed_count: int = 0
    llm_calls: int = 0
    states: List[OrchestrationState] = Field(default_factory=list)

    error_message: Optional[str] = None
    error: Optional[BaseException] = Field(default=None, exclude=True)

    @property
    def succeeded(self) -> bool:
        return self.status in (OrchestrationStatus.SUCCESS, OrchestrationStatus.FALLBACK_SUCCESS)

    @property
    def is_empty(self) -> bool:
        return self.status == OrchestrationStatus.EMPTY_INPUT

    def raise_for_status(self) -> None:
        """Re-raise the preserved error of a failed request."""
        if self.succeeded or self.is_empty:
            return
        if self.error is not None:
            raise self.error
        raise FallbackExhaustedError(self.error_message or f"Request ended with status {self.status.value}")


class ChunkReview(BaseModel):
    """Review of a single chunk during a remaining-chunks walk."""

    label: str
    priority: PriorityTier
    text: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error_message is None


class WorkflowResult(BaseModel):
    """Chunking plus the orchestrated request made against it."""

    chunking: ChunkingResult
    outcome: AnalysisOutcome

    @property
    def unanalyzed_chunks(self) -> List[Chunk]:
        """Chunks after the last one the request sent to the model."""
        if self.outcome.used_fallback:
            return self.chunking.chunks[self.outcome.llm_calls:]
        return self.chunking.remaining


class PreviewResult(BaseModel):
    """PR details and code review generated side by side for the primary chunk."""

    chunking: ChunkingResult
    excerpt: str = ""
    pr_details: AnalysisOutcome
    code_review: AnalysisOutcome

    @property
    def succeeded(self) -> bool:
        return self.pr_details.succeeded and self.code_review.succeeded

    @property
    def remaining_count(self) -> int:
        return len(self.chunking.remaining)

    def raise_for_status(self) -> None:
        self.pr_details.raise_for_status()
        self.code_review.raise_for_status()


_TITLE_RE = re.compile(r"\[TITLE\]:\s*(.*)", re.IGNORECASE)
_DESCRIPTION_RE = re.compile(r"\[DESCRIPTION\]:\s*(.*)", re.IGNORECASE | re.DOTALL)


class PRDetails(BaseModel):
    """Pull request title and markdown description."""

    title: str = ""
    description: str

    @classmethod
    def parse(cls, text: str) -> "PRDetails":
        """Parse the ``[TITLE]: ... [DESCRIPTION]: ...`` response format.

        Falls back to the whole text as description when the markers are missing.
        """
        title_match = _TITLE_RE.search(text)
        description_match = _DESCRIPTION_RE.search(text)
        if not title_match and not description_match:
            return cls(description=text.strip())

        title = title_match.group(1).strip() if title_match else ""
        if description_match:
            description = description_match.group(1).strip()
        else:
            description = text[title_match.end():].strip()
        return cls(title=title, description=description)

"""Core module for commitscribe."""

from .models import (
    AnalysisOutcome,
    ChunkReview,
    FallbackExhaustedError,
    OrchestrationState,
    OrchestrationStatus,
    OutputFormat,
    PRDetails,
    PreviewResult,
    WorkflowResult,
)

from .config import (
    Config,
    ConfigurationError,
    LLMConfig,
    GitConfig,
    OutputConfig,
)

from .orchestrator import RequestOrchestrator
from .assistant import CommitAssistant

__all__ = [
    # Models
    "AnalysisOutcome",
    "ChunkReview",
    "FallbackExhaustedError",
    "OrchestrationState",
    "OrchestrationStatus",
    "OutputFormat",
    "PRDetails",
    "PreviewResult",
    "WorkflowResult",
    # Configuration
    "Config",
    "ConfigurationError",
    "LLMConfig",
    "GitConfig",
    "OutputConfig",
    # Orchestration
    "RequestOrchestrator",
    "CommitAssistant",
]

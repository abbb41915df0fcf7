"""
commitscribe: LLM-written commit messages and pull requests for diffs of any size.

Large diffs are split into prioritized chunks that fit the model's context
window, and requests fall back to a smaller chunk when the model rejects
the input as too large.
"""

__version__ = "0.1.0"

from .chunking import ChunkingConfig, ChunkingResult, Chunk, PriorityTier, chunk_diff
from .core.models import AnalysisOutcome, OrchestrationStatus
from .core.orchestrator import RequestOrchestrator
from .core.assistant import CommitAssistant
from .core.config import Config

# For convenient imports
from .cli.main import main as cli_main

__all__ = [
    "ChunkingConfig",
    "ChunkingResult",
    "Chunk",
    "PriorityTier",
    "chunk_diff",
    "AnalysisOutcome",
    "OrchestrationStatus",
    "RequestOrchestrator",
    "CommitAssistant",
    "Config",
    "cli_main",
]

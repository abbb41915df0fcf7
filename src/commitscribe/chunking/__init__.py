"""Diff partitioning and prioritization for model context windows."""

from typing import Optional

from .orchestrator import ChunkingOrchestrator, create_chunking_orchestrator
from .config import ChunkingConfig
from .models import Chunk, ChunkingResult, DiffSegment, PriorityTier, FULL_DIFF_LABEL
from .estimator import SizeEstimator
from .partitioner import FilePartitioner
from .classifier import PriorityClassifier
from .sub_chunker import SubChunker
from .ordering import ChunkOrderer
from .metrics import MetricsCollector
from .exceptions import ChunkingError, ChunkValidationError, InvalidBudgetError

__all__ = [
    # Pipeline
    "ChunkingOrchestrator",
    "create_chunking_orchestrator",

    # Configuration
    "ChunkingConfig",

    # Data models
    "Chunk",
    "ChunkingResult",
    "DiffSegment",
    "PriorityTier",
    "FULL_DIFF_LABEL",

    # Components
    "SizeEstimator",
    "FilePartitioner",
    "PriorityClassifier",
    "SubChunker",
    "ChunkOrderer",
    "MetricsCollector",

    # Exceptions
    "ChunkingError",
    "ChunkValidationError",
    "InvalidBudgetError",
]


def chunk_diff(diff_text: str, config: Optional[ChunkingConfig] = None) -> ChunkingResult:
    """
    Quick chunking function for simple use cases.

    Args:
        diff_text: Raw unified diff text
        config: Optional chunking configuration

    Returns:
        ChunkingResult with chunks ordered by priority
    """
    return create_chunking_orchestrator(config).chunk(diff_text)

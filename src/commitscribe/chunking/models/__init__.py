"""Data models for diff chunking."""

from .chunk import (
    FULL_DIFF_LABEL,
    NO_EXTENSION,
    PriorityTier,
    DiffSegment,
    Chunk,
    ChunkingResult
)

__all__ = [
    "FULL_DIFF_LABEL",
    "NO_EXTENSION",
    "PriorityTier",
    "DiffSegment",
    "Chunk",
    "ChunkingResult"
]

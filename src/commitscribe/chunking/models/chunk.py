"""Data models for diff segments and prioritized chunks."""

from enum import Enum
from pathlib import PurePosixPath
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, computed_field


FULL_DIFF_LABEL = "Full Diff"
NO_EXTENSION = "(none)"


class PriorityTier(str, Enum):
    """Analysis priority of a chunk.

    Tiers compare by their position in ``_TIER_ORDER`` rather than by
    value, so a new tier only needs to be inserted there.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)

    @classmethod
    def highest(cls) -> "PriorityTier":
        return _TIER_ORDER[-1]

    def __lt__(self, other):
        if not isinstance(other, PriorityTier):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, PriorityTier):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, PriorityTier):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, PriorityTier):
            return NotImplemented
        return self.rank >= other.rank


_TIER_ORDER = (PriorityTier.LOW, PriorityTier.MEDIUM, PriorityTier.HIGH)


class DiffSegment(BaseModel):
    """One file's worth of diff text, including its ``diff --git`` header."""

    model_config = ConfigDict(frozen=True)

    path: str
    content: str
    index: int = 0

    @property
    def display_name(self) -> str:
        return self.path or FULL_DIFF_LABEL


class Chunk(BaseModel):
    """A labeled, prioritized unit of diff text offered to the model."""

    model_config = ConfigDict(frozen=True)

    label: str
    content: str
    priority: PriorityTier

    # Provenance, used to restore the original order
    path: Optional[str] = None
    part: Optional[int] = Field(default=None, ge=1)
    source_index: int = 0

    @computed_field
    @property
    def size(self) -> int:
        """Content length in characters."""
        return len(self.content)

    @property
    def extension(self) -> str:
        if not self.path:
            return NO_EXTENSION
        suffix = PurePosixPath(self.path).suffix.lower()
        return suffix or NO_EXTENSION

    @property
    def is_full_diff(self) -> bool:
        return self.path is None and self.label == FULL_DIFF_LABEL


class ChunkingResult(BaseModel):
    """Ordered chunks produced for one diff."""

    chunks: List[Chunk] = Field(default_factory=list)
    source_length: int = 0
    fast_path: bool = False
    processing_time: float = 0.0

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)

    @property
    def total_size(self) -> int:
        return sum(chunk.size for chunk in self.chunks)

    @property
    def primary(self) -> Optional[Chunk]:
        """Highest-priority chunk, if any."""
        return self.chunks[0] if self.chunks else None

    @property
    def remaining(self) -> List[Chunk]:
        return self.chunks[1:]

    @property
    def is_chunked(self) -> bool:
        return len(self.chunks) > 1

    def file_types(self) -> Dict[str, int]:
        """Chunk count per file extension, in first-seen order."""
        counts: Dict[str, int] = {}
        for chunk in self.chunks:
            counts[chunk.extension] = counts.get(chunk.extension, 0) + 1
        return counts

    def summary(self) -> str:
        """Human-readable summary of the chunking outcome."""
        file_types = ", ".join(f"{ext}: {count}" for ext, count in self.file_types().items())
        lines = [
            "Diff Analysis Summary:",
            f"- Total chunks: {self.chunk_count}",
            f"- Total size: {self.total_size:,} characters",
            f"- File types: {file_types}",
        ]
        return "\n".join(lines) + "\n"

    def in_source_order(self) -> List[Chunk]:
        """Chunks sorted back into file order, then part order."""
        return sorted(self.chunks, key=lambda c: (c.source_index, c.part or 0))

    def reassemble(self) -> str:
        """Concatenate chunk contents in original order."""
        return "".join(chunk.content for chunk in self.in_source_order())

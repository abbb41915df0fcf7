"""Priority ordering of chunks."""

from typing import Iterable, List

from .models import Chunk


class ChunkOrderer:
    """Stable sort by priority, highest first.

    Python's sort is stable, so equal-priority chunks keep file order and,
    within a file, ascending part order.
    """

    def order(self, chunks: Iterable[Chunk]) -> List[Chunk]:
        return sorted(chunks, key=lambda chunk: chunk.priority.rank, reverse=True)

"""Line-based splitting of a single oversized file segment."""

import logging
from typing import List, Optional

from .classifier import PriorityClassifier
from .estimator import SizeEstimator
from .models import Chunk, DiffSegment
from .partitioner import split_lines


logger = logging.getLogger(__name__)


def part_label(name: str, part: int) -> str:
    return f"{name} (Part {part})"


class SubChunker:
    """Split one segment into sequential parts under the sub-chunk budget.

    Lines are accumulated into a buffer; when the next line would take the
    buffer past the sub-budget, the buffer is emitted as the next part.
    A single line larger than the sub-budget is never cut and becomes a
    part of its own, so a segment that is one such line yields exactly
    one part even though it does not fit the budget. Every other
    oversized segment yields two or more parts. Every part inherits the
    priority of the file.
    """

    def __init__(self,
                 estimator: SizeEstimator,
                 classifier: PriorityClassifier):
        self.estimator = estimator
        self.classifier = classifier

    def split(self, segment: DiffSegment) -> List[Chunk]:
        priority = self.classifier.classify(segment.path)
        name = segment.display_name
        chunks: List[Chunk] = []
        buffer: List[str] = []
        buffer_length = 0

        def emit() -> None:
            chunks.append(Chunk(
                label=part_label(name, len(chunks) + 1),
                content="".join(buffer),
                priority=priority,
                path=segment.path or None,
                part=len(chunks) + 1,
                source_index=segment.index,
            ))

        for line in split_lines(segment.content):
            candidate = buffer_length + len(line)
            if buffer and not self.estimator.fits_length(candidate, self.estimator.sub_budget):
                emit()
                buffer = []
                buffer_length = 0
            buffer.append(line)
            buffer_length += len(line)

        if buffer or not chunks:
            emit()

        logger.debug(f"Split {name} into {len(chunks)} part(s)")
        return chunks

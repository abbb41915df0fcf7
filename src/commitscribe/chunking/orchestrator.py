"""Diff chunking pipeline: fast path, partition, classify, split, order."""

import time
import logging
from typing import Any, Dict, List, Optional

from .config import ChunkingConfig
from .models import Chunk, ChunkingResult, DiffSegment, FULL_DIFF_LABEL, PriorityTier
from .estimator import SizeEstimator
from .partitioner import FilePartitioner
from .classifier import PriorityClassifier
from .sub_chunker import SubChunker
from .ordering import ChunkOrderer
from .metrics import MetricsCollector
from .exceptions import ChunkValidationError


logger = logging.getLogger(__name__)


class ChunkingOrchestrator:
    """Turns raw diff text into prioritized chunks that fit the model budget."""

    def __init__(self,
                 config: Optional[ChunkingConfig] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.config = config or ChunkingConfig()
        self.metrics = metrics

        self.estimator = SizeEstimator(self.config)
        self.partitioner = FilePartitioner()
        self.classifier = PriorityClassifier(self.config)
        self.sub_chunker = SubChunker(self.estimator, self.classifier)
        self.orderer = ChunkOrderer()

        self._total_diffs_processed = 0
        self._total_chunks_created = 0

        logger.debug(
            f"ChunkingOrchestrator initialized with budget {self.config.token_budget} "
            f"and sub-budget {self.config.sub_chunk_budget:.0f}"
        )

    def chunk(self, diff_text: str) -> ChunkingResult:
        """Partition and order a diff. Total over all string input."""
        start_time = time.perf_counter()

        if self.estimator.fits(diff_text):
            chunks = [Chunk(
                label=FULL_DIFF_LABEL,
                content=diff_text,
                priority=PriorityTier.highest(),
            )]
            fast_path = True
        else:
            segments = self.partitioner.partition(diff_text)
            chunks = self.orderer.order(self._chunk_segments(segments))
            fast_path = False

        result = ChunkingResult(
            chunks=chunks,
            source_length=len(diff_text),
            fast_path=fast_path,
            processing_time=time.perf_counter() - start_time,
        )

        if self.config.validate_chunks:
            self._validate(result, diff_text)

        self._total_diffs_processed += 1
        self._total_chunks_created += result.chunk_count
        if self.metrics:
            self.metrics.record_chunking(len(diff_text), [c.priority.value for c in chunks])

        logger.info(
            f"Chunked {len(diff_text)} characters into {result.chunk_count} chunk(s)"
            f"{' (fast path)' if fast_path else ''}"
        )
        return result

    def _chunk_segments(self, segments: List[DiffSegment]) -> List[Chunk]:
        chunks: List[Chunk] = []
        for segment in segments:
            if self.estimator.fits(segment.content):
                chunks.append(Chunk(
                    label=segment.display_name,
                    content=segment.content,
                    priority=self.classifier.classify(segment.path),
                    path=segment.path or None,
                    source_index=segment.index,
                ))
            else:
                logger.debug(f"{segment.display_name} exceeds the budget, splitting into parts")
                chunks.extend(self.sub_chunker.split(segment))
        return chunks

    def _validate(self, result: ChunkingResult, diff_text: str) -> None:
        """Check that the chunks reassemble into the input."""
        reassembled = result.reassemble()
        if reassembled != diff_text:
            raise ChunkValidationError(
                "Chunks do not reassemble into the original diff",
                expected_length=len(diff_text),
                actual_length=len(reassembled),
            )

    def get_orchestrator_stats(self) -> Dict[str, Any]:
        """Get pipeline statistics."""
        stats: Dict[str, Any] = {
            'total_diffs_processed': self._total_diffs_processed,
            'total_chunks_created': self._total_chunks_created,
            'token_budget': self.config.token_budget,
            'sub_chunk_budget': self.config.sub_chunk_budget,
        }
        if self.metrics:
            stats['metrics'] = self.metrics.get_summary()
        return stats


def create_chunking_orchestrator(config: Optional[ChunkingConfig] = None,
                                 metrics: Optional[MetricsCollector] = None) -> ChunkingOrchestrator:
    """Create a chunking orchestrator with default configuration if none given."""
    return ChunkingOrchestrator(config or ChunkingConfig(), metrics)

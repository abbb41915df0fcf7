"""Request orchestration with overflow fallback over prioritized chunks."""

import logging
from typing import List, Optional, Sequence

from .models import AnalysisOutcome, FallbackExhaustedError, OrchestrationState, OrchestrationStatus
from ..chunking.models import Chunk
from ..chunking.metrics import MetricsCollector
from ..llm.base import BaseLLMClient, GenerationOutcome, LLMError
from ..llm.prompts import TaskKind, get_task_prompt


logger = logging.getLogger(__name__)


class RequestOrchestrator:
    """Drive model calls against an ordered chunk list.

    The first chunk is tried; if the model reports an overflow, the next
    chunks are tried in order, at most ``fallback_depth`` of them. Any
    other failure ends the request without a retry. With the default
    depth of 1 a request makes at most two model calls. Chunks beyond
    those are never analyzed automatically; callers continue explicitly
    with :meth:`analyze_chunk`.
    """

    def __init__(self,
                 client: BaseLLMClient,
                 fallback_depth: int = 1,
                 metrics: Optional[MetricsCollector] = None):
        if fallback_depth < 0:
            raise ValueError("fallback_depth must be >= 0")
        self.client = client
        self.fallback_depth = fallback_depth
        self.metrics = metrics

    def run(self, task: TaskKind, chunks: Sequence[Chunk]) -> AnalysisOutcome:
        """Analyze the highest-priority chunk, falling back on overflow."""
        states: List[OrchestrationState] = [OrchestrationState.IDLE]

        if not chunks:
            logger.info(f"No chunks to analyze for {task.value}")
            return self._finish(AnalysisOutcome(
                task=task,
                status=OrchestrationStatus.EMPTY_INPUT,
                states=states,
            ))

        remaining = len(chunks) - 1
        primary = chunks[0]

        states.append(OrchestrationState.AWAITING_PRIMARY)
        result = self._call(task, primary)
        calls = 1

        if result.succeeded:
            states.append(OrchestrationState.SUCCESS)
            return self._finish(AnalysisOutcome(
                task=task,
                status=OrchestrationStatus.SUCCESS,
                text=result.text,
                chunk_label=primary.label,
                chunk_priority=primary.priority,
                unanalyzed_count=remaining,
                llm_calls=calls,
                states=states,
            ))

        if not result.is_overflow:
            states.append(OrchestrationState.FAILED)
            return self._finish(self._failure(
                task, OrchestrationStatus.FAILED, result.error, primary, calls, states, remaining
            ))

        fallbacks = list(chunks[1:1 + self.fallback_depth])
        if not fallbacks:
            logger.warning(f"{primary.label} is too large for the model and there is no smaller chunk")
            states.append(OrchestrationState.FAILED)
            return self._finish(self._failure(
                task, OrchestrationStatus.OVERFLOW, result.error, primary, calls, states, remaining
            ))

        last_error: Optional[LLMError] = result.error
        for fallback in fallbacks:
            logger.warning(f"Token limit exceeded for {primary.label}, retrying with {fallback.label}")
            states.extend([OrchestrationState.RETRYING, OrchestrationState.AWAITING_FALLBACK])
            result = self._call(task, fallback)
            calls += 1

            if result.succeeded:
                states.append(OrchestrationState.SUCCESS)
                return self._finish(AnalysisOutcome(
                    task=task,
                    status=OrchestrationStatus.FALLBACK_SUCCESS,
                    text=result.text,
                    chunk_label=fallback.label,
                    chunk_priority=fallback.priority,
                    used_fallback=True,
                    original_label=primary.label,
                    original_priority=primary.priority,
                    unanalyzed_count=remaining,
                    llm_calls=calls,
                    states=states,
                ))

            last_error = result.error
            if not result.is_overflow:
                break

        states.append(OrchestrationState.EXHAUSTED_FALLBACK)
        error = FallbackExhaustedError(
            "Unable to analyze the changes: even the reduced input could not be analyzed. "
            "Reduce the scope of the diff and try again.",
            cause=last_error,
        )
        return self._finish(self._failure(
            task, OrchestrationStatus.EXHAUSTED_FALLBACK, error, primary, calls, states, remaining
        ))

    def analyze_chunk(self, task: TaskKind, chunk: Chunk) -> AnalysisOutcome:
        """Single model call for one chunk, no fallback."""
        states = [OrchestrationState.IDLE, OrchestrationState.AWAITING_PRIMARY]
        result = self._call(task, chunk)

        if result.succeeded:
            states.append(OrchestrationState.SUCCESS)
            return self._finish(AnalysisOutcome(
                task=task,
                status=OrchestrationStatus.SUCCESS,
                text=result.text,
                chunk_label=chunk.label,
                chunk_priority=chunk.priority,
                llm_calls=1,
                states=states,
            ))

        states.append(OrchestrationState.FAILED)
        status = OrchestrationStatus.OVERFLOW if result.is_overflow else OrchestrationStatus.FAILED
        return self._finish(self._failure(task, status, result.error, chunk, 1, states, 0))

    def _call(self, task: TaskKind, chunk: Chunk) -> GenerationOutcome:
        prompt = get_task_prompt(task)
        logger.debug(f"Requesting {task.value} for {chunk.label} ({chunk.size} characters)")
        result = self.client.attempt(prompt.system_role, chunk.content, prompt.max_output_tokens)
        if self.metrics:
            self.metrics.record_llm_call(result.kind.value)
        return result

    @staticmethod
    def _failure(task: TaskKind,
                 status: OrchestrationStatus,
                 error: Optional[BaseException],
                 chunk: Chunk,
                 calls: int,
                 states: List[OrchestrationState],
                 remaining: int) -> AnalysisOutcome:
        return AnalysisOutcome(
            task=task,
            status=status,
            chunk_label=chunk.label,
            chunk_priority=chunk.priority,
            unanalyzed_count=remaining,
            llm_calls=calls,
            states=states,
            error_message=str(error) if error is not None else None,
            error=error,
        )

    def _finish(self, outcome: AnalysisOutcome) -> AnalysisOutcome:
        if self.metrics:
            self.metrics.record_orchestration(outcome.task.value, outcome.status.value)
        logger.info(
            f"{outcome.task.value} finished with status {outcome.status.value} "
            f"after {outcome.llm_calls} model call(s)"
        )
        return outcome

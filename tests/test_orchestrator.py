"""Tests for request orchestration with overflow fallback."""

import pytest

from commitscribe.chunking import MetricsCollector
from commitscribe.chunking.models import Chunk, PriorityTier
from commitscribe.core.models import (
    FallbackExhaustedError,
    OrchestrationState,
    OrchestrationStatus,
)
from commitscribe.core.orchestrator import RequestOrchestrator
from commitscribe.llm import ContextOverflowError, TaskKind, TransportError
from commitscribe.llm.prompts import get_task_prompt

from conftest import ScriptedLLMClient


def make_chunks(*specs):
    return [
        Chunk(label=label, content=f"content of {label}\n", priority=priority, path=label)
        for label, priority in specs
    ]


@pytest.fixture
def three_chunks():
    return make_chunks(
        ("src/App.cs", PriorityTier.HIGH),
        ("App.csproj", PriorityTier.MEDIUM),
        ("README.md", PriorityTier.LOW),
    )


class TestRequestOrchestrator:
    """Tests for the primary-then-fallback request flow."""

    def test_empty_input_makes_no_call(self):
        client = ScriptedLLMClient()
        outcome = RequestOrchestrator(client).run(TaskKind.COMMIT_MESSAGE, [])

        assert outcome.status == OrchestrationStatus.EMPTY_INPUT
        assert outcome.is_empty
        assert client.calls == []
        assert outcome.llm_calls == 0
        outcome.raise_for_status()

    def test_primary_success(self, three_chunks):
        client = ScriptedLLMClient(["feat: add app"])
        outcome = RequestOrchestrator(client).run(TaskKind.COMMIT_MESSAGE, three_chunks)

        assert outcome.status == OrchestrationStatus.SUCCESS
        assert outcome.text == "feat: add app"
        assert outcome.chunk_label == "src/App.cs"
        assert not outcome.used_fallback
        assert outcome.unanalyzed_count == 2
        assert client.contents == ["content of src/App.cs\n"]
        assert outcome.states == [
            OrchestrationState.IDLE,
            OrchestrationState.AWAITING_PRIMARY,
            OrchestrationState.SUCCESS,
        ]

    def test_task_prompt_and_output_limit_are_used(self, three_chunks):
        client = ScriptedLLMClient(["ok"])
        RequestOrchestrator(client).run(TaskKind.CODE_REVIEW, three_chunks)

        system_role, _, max_tokens = client.calls[0]
        prompt = get_task_prompt(TaskKind.CODE_REVIEW)
        assert system_role == prompt.system_role
        assert max_tokens == 1000

    def test_overflow_falls_back_to_second_chunk_once(self, three_chunks):
        client = ScriptedLLMClient([ContextOverflowError("too big"), "fix: smaller"])
        outcome = RequestOrchestrator(client).run(TaskKind.PR_DETAILS, three_chunks)

        assert outcome.status == OrchestrationStatus.FALLBACK_SUCCESS
        assert outcome.succeeded
        assert outcome.text == "fix: smaller"
        assert outcome.used_fallback
        assert outcome.chunk_label == "App.csproj"
        assert outcome.chunk_priority == PriorityTier.MEDIUM
        assert outcome.original_label == "src/App.cs"
        assert outcome.original_priority == PriorityTier.HIGH
        assert outcome.llm_calls == 2
        assert outcome.unanalyzed_count == 2
        assert client.contents == ["content of src/App.cs\n", "content of App.csproj\n"]
        assert OrchestrationState.RETRYING in outcome.states

    def test_single_chunk_overflow_has_no_fallback(self):
        client = ScriptedLLMClient([ContextOverflowError("too big")])
        chunks = make_chunks(("Full Diff", PriorityTier.HIGH))

        outcome = RequestOrchestrator(client).run(TaskKind.COMMIT_MESSAGE, chunks)

        assert outcome.status == OrchestrationStatus.OVERFLOW
        assert len(client.calls) == 1
        assert OrchestrationState.RETRYING not in outcome.states
        with pytest.raises(ContextOverflowError):
            outcome.raise_for_status()

    def test_fallback_overflow_is_exhausted(self, three_chunks):
        client = ScriptedLLMClient([ContextOverflowError("too big"), ContextOverflowError("still too big")])
        outcome = RequestOrchestrator(client).run(TaskKind.COMMIT_MESSAGE, three_chunks)

        assert outcome.status == OrchestrationStatus.EXHAUSTED_FALLBACK
        assert len(client.calls) == 2
        assert outcome.states[-1] == OrchestrationState.EXHAUSTED_FALLBACK
        with pytest.raises(FallbackExhaustedError) as exc_info:
            outcome.raise_for_status()
        assert isinstance(exc_info.value.cause, ContextOverflowError)

    def test_fallback_transport_failure_is_exhausted(self, three_chunks):
        client = ScriptedLLMClient([ContextOverflowError("too big"), TransportError("down")])
        outcome = RequestOrchestrator(client).run(TaskKind.COMMIT_MESSAGE, three_chunks)

        assert outcome.status == OrchestrationStatus.EXHAUSTED_FALLBACK
        assert len(client.calls) == 2
        assert isinstance(outcome.error.cause, TransportError)

    def test_transport_failure_is_not_retried(self, three_chunks):
        client = ScriptedLLMClient([TransportError("connection reset")])
        outcome = RequestOrchestrator(client).run(TaskKind.COMMIT_MESSAGE, three_chunks)

        assert outcome.status == OrchestrationStatus.FAILED
        assert len(client.calls) == 1
        assert "connection reset" in outcome.error_message
        with pytest.raises(TransportError):
            outcome.raise_for_status()

    def test_unexpected_error_is_a_transport_failure(self, three_chunks):
        client = ScriptedLLMClient([RuntimeError("boom")])
        outcome = RequestOrchestrator(client).run(TaskKind.COMMIT_MESSAGE, three_chunks)

        assert outcome.status == OrchestrationStatus.FAILED
        assert isinstance(outcome.error, TransportError)
        assert isinstance(outcome.error.cause, RuntimeError)

    def test_deeper_fallback(self, three_chunks):
        client = ScriptedLLMClient([
            ContextOverflowError("1"),
            ContextOverflowError("2"),
            "docs: readme",
        ])
        outcome = RequestOrchestrator(client, fallback_depth=2).run(TaskKind.COMMIT_MESSAGE, three_chunks)

        assert outcome.status == OrchestrationStatus.FALLBACK_SUCCESS
        assert outcome.chunk_label == "README.md"
        assert outcome.llm_calls == 3

    def test_zero_fallback_depth(self, three_chunks):
        client = ScriptedLLMClient([ContextOverflowError("too big")])
        outcome = RequestOrchestrator(client, fallback_depth=0).run(TaskKind.COMMIT_MESSAGE, three_chunks)

        assert outcome.status == OrchestrationStatus.OVERFLOW
        assert len(client.calls) == 1

    def test_negative_fallback_depth_rejected(self):
        with pytest.raises(ValueError):
            RequestOrchestrator(ScriptedLLMClient(), fallback_depth=-1)

    def test_analyze_chunk_has_no_fallback(self, three_chunks):
        client = ScriptedLLMClient([ContextOverflowError("too big")])
        outcome = RequestOrchestrator(client).analyze_chunk(TaskKind.CODE_REVIEW, three_chunks[2])

        assert outcome.status == OrchestrationStatus.OVERFLOW
        assert outcome.chunk_label == "README.md"
        assert len(client.calls) == 1

    def test_metrics_recorded(self, three_chunks):
        metrics = MetricsCollector()
        client = ScriptedLLMClient([ContextOverflowError("too big"), "ok"])
        RequestOrchestrator(client, metrics=metrics).run(TaskKind.COMMIT_MESSAGE, three_chunks)

        summary = metrics.get_summary()
        assert summary['llm_overflow'] == 1
        assert summary['llm_ok'] == 1
        assert summary['requests_fallback_success'] == 1

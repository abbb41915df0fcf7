"""Tests for the commit assistant workflows."""

import threading
from unittest.mock import Mock

import pytest

from commitscribe.chunking import ChunkingConfig
from commitscribe.core import CommitAssistant, Config, ConfigurationError
from commitscribe.core.assistant import TRUNCATION_MARKER, truncate_for_display
from commitscribe.core.models import OrchestrationStatus
from commitscribe.git import GitRepository, UnstagedFile, UnstagedStatus
from commitscribe.llm import ContextOverflowError, TaskKind, TransportError
from commitscribe.llm.base import BaseLLMClient

from conftest import ScriptedLLMClient, file_diff


@pytest.fixture
def config(no_groq_api_key):
    return Config(chunking=ChunkingConfig(token_budget=1200))


@pytest.fixture
def repository():
    return Mock(spec=GitRepository)


class TestTruncation:
    """Tests for the preview excerpt."""

    def test_short_content_untouched(self):
        assert truncate_for_display("abc", 10) == "abc"

    def test_long_content_truncated_with_marker(self):
        text = truncate_for_display("x" * 50, 20)
        assert text == "x" * 20 + TRUNCATION_MARKER
        assert text.endswith("... [Content truncated for display] ...")


class TestCommitAssistant:
    """Tests for diff-level workflows."""

    def test_requires_llm_client(self, config):
        assistant = CommitAssistant(config)
        with pytest.raises(ConfigurationError):
            assistant.generate_commit_message(file_diff("a.py"))

    def test_chunking_works_without_llm_client(self, config, two_file_diff):
        result = CommitAssistant(config).chunk_diff(two_file_diff)
        assert result.chunk_count == 2

    def test_empty_diff_is_noop(self, config):
        client = ScriptedLLMClient()
        result = CommitAssistant(config, llm_client=client).generate_commit_message("  \n")

        assert result.outcome.status == OrchestrationStatus.EMPTY_INPUT
        assert result.chunking.chunk_count == 0
        assert client.calls == []

    def test_commit_message_from_primary_chunk(self, config, two_file_diff):
        client = ScriptedLLMClient(["feat: app"])
        result = CommitAssistant(config, llm_client=client).generate_commit_message(two_file_diff)

        assert result.outcome.text == "feat: app"
        assert result.outcome.chunk_label == "src/App.cs"
        assert result.outcome.unanalyzed_count == 1
        assert client.calls[0][1].startswith("diff --git a/src/App.cs")

    def test_pr_details_fallback(self, config, two_file_diff):
        client = ScriptedLLMClient([ContextOverflowError("too big"), "[TITLE]: Docs\n[DESCRIPTION]:\nReadme"])
        result = CommitAssistant(config, llm_client=client).generate_pr_details(two_file_diff)

        assert result.outcome.status == OrchestrationStatus.FALLBACK_SUCCESS
        assert result.outcome.chunk_label == "README.md"
        assert result.outcome.original_label == "src/App.cs"

    def test_fallback_depth_from_config(self, no_groq_api_key, mixed_diff):
        config = Config(chunking=ChunkingConfig(token_budget=2000, fallback_depth=0))
        client = ScriptedLLMClient([ContextOverflowError("too big")])
        result = CommitAssistant(config, llm_client=client).generate_commit_message(mixed_diff)

        assert result.outcome.status == OrchestrationStatus.OVERFLOW
        assert len(client.calls) == 1

    def test_unanalyzed_chunks_exclude_fallback(self, no_groq_api_key, mixed_diff):
        config = Config(chunking=ChunkingConfig(token_budget=2000))
        assistant = CommitAssistant(config, llm_client=ScriptedLLMClient([ContextOverflowError("too big"), "msg"]))

        result = assistant.generate_commit_message(mixed_diff)

        assert result.outcome.chunk_label == "src/Service.cs"
        assert [c.label for c in result.unanalyzed_chunks] == [
            "project/App.csproj", "docs/guide.md", "obj/out.bin",
        ]

        direct = assistant.generate_commit_message(mixed_diff)
        assert direct.outcome.status == OrchestrationStatus.SUCCESS
        assert direct.unanalyzed_chunks == direct.chunking.remaining


class TestPreview:
    """Tests for the concurrent preview."""

    def test_both_requests_target_primary_chunk(self, config, two_file_diff):
        client = ScriptedLLMClient(default="text")
        result = CommitAssistant(config, llm_client=client).preview(two_file_diff)

        assert result.succeeded
        assert len(client.calls) == 2
        assert {call[2] for call in client.calls} == {500, 1000}
        assert all(call[1].startswith("diff --git a/src/App.cs") for call in client.calls)
        assert result.pr_details.task == TaskKind.PR_DETAILS
        assert result.code_review.task == TaskKind.CODE_REVIEW
        assert result.remaining_count == 1
        assert result.pr_details.unanalyzed_count == 1

    def test_requests_run_concurrently(self, config, two_file_diff):
        barrier = threading.Barrier(2, timeout=5)

        class BarrierClient(BaseLLMClient):
            def generate(self, system_role, user_content, max_output_tokens):
                # Only returns once both requests are in flight
                barrier.wait()
                return "done"

        result = CommitAssistant(config, llm_client=BarrierClient()).preview(two_file_diff)
        assert result.succeeded

    def test_one_failure_does_not_cancel_the_other(self, config, two_file_diff):
        class ReviewFails(BaseLLMClient):
            def generate(self, system_role, user_content, max_output_tokens):
                if max_output_tokens == 1000:
                    raise TransportError("review down")
                return "[TITLE]: t\n[DESCRIPTION]: d"

        result = CommitAssistant(config, llm_client=ReviewFails()).preview(two_file_diff)

        assert result.pr_details.succeeded
        assert result.code_review.status == OrchestrationStatus.FAILED
        assert not result.succeeded
        with pytest.raises(TransportError):
            result.raise_for_status()

    def test_excerpt_is_truncated(self, no_groq_api_key, oversized_file_diff):
        config = Config()
        config.output.preview_excerpt_chars = 100
        result = CommitAssistant(config, llm_client=ScriptedLLMClient()).preview(oversized_file_diff)

        assert result.excerpt == oversized_file_diff[:100] + TRUNCATION_MARKER

    def test_empty_preview(self, config):
        client = ScriptedLLMClient()
        result = CommitAssistant(config, llm_client=client).preview("")

        assert result.pr_details.is_empty
        assert result.code_review.is_empty
        assert client.calls == []


class TestChunkReviews:
    """Tests for walking the remaining chunks."""

    def test_capped_at_review_limit(self, no_groq_api_key, mixed_diff):
        config = Config(chunking=ChunkingConfig(token_budget=2000))
        assistant = CommitAssistant(config, llm_client=ScriptedLLMClient())
        chunks = assistant.chunk_diff(mixed_diff).remaining

        reviews = assistant.review_chunks(chunks)

        assert len(chunks) == 4
        assert [r.label for r in reviews] == [c.label for c in chunks[:3]]

    def test_failure_is_isolated_per_chunk(self, no_groq_api_key, mixed_diff):
        config = Config(chunking=ChunkingConfig(token_budget=2000))
        client = ScriptedLLMClient(["first", TransportError("flaky"), "third"])
        assistant = CommitAssistant(config, llm_client=client)
        chunks = assistant.chunk_diff(mixed_diff).remaining

        reviews = assistant.review_chunks(chunks)

        assert [r.succeeded for r in reviews] == [True, False, True]
        assert "flaky" in reviews[1].error_message
        assert reviews[2].text == "third"

    def test_stops_when_declined(self, no_groq_api_key, mixed_diff):
        config = Config(chunking=ChunkingConfig(token_budget=2000))
        client = ScriptedLLMClient()
        assistant = CommitAssistant(config, llm_client=client)
        chunks = assistant.chunk_diff(mixed_diff).remaining

        asked = []
        reviews = assistant.review_chunks(chunks, should_continue=lambda r: asked.append(r) or False)

        assert len(reviews) == 1
        assert len(asked) == 1
        assert len(client.calls) == 1

    def test_not_asked_after_last_review(self, no_groq_api_key, mixed_diff):
        config = Config(chunking=ChunkingConfig(token_budget=2000))
        assistant = CommitAssistant(config, llm_client=ScriptedLLMClient())
        chunks = assistant.chunk_diff(mixed_diff).remaining

        asked = []
        reviews = assistant.review_chunks(chunks, limit=2, should_continue=lambda r: asked.append(r) or True)

        assert len(reviews) == 2
        assert len(asked) == 1


class TestRepositoryWorkflows:
    """Tests for workflows that read from git."""

    def test_staged_commit_message(self, config, repository, two_file_diff):
        repository.has_staged_changes.return_value = True
        repository.get_staged_diff.return_value = two_file_diff
        client = ScriptedLLMClient(["feat: staged"])

        result = CommitAssistant(config, llm_client=client, repository=repository).staged_commit_message()

        assert result.outcome.text == "feat: staged"

    def test_nothing_staged(self, config, repository):
        repository.has_staged_changes.return_value = False
        client = ScriptedLLMClient()

        result = CommitAssistant(config, llm_client=client, repository=repository).staged_commit_message()

        assert result.outcome.is_empty
        repository.get_staged_diff.assert_not_called()

    def test_unstaged_files(self, config, repository):
        files = [UnstagedFile(path="a.py", status=UnstagedStatus.MODIFIED)]
        repository.get_diff_for_files.return_value = file_diff("a.py")
        client = ScriptedLLMClient(["fix: a"])

        result = CommitAssistant(config, llm_client=client, repository=repository).unstaged_commit_message(files)

        repository.get_diff_for_files.assert_called_once_with(files)
        assert result.outcome.text == "fix: a"

    def test_commit_preview(self, config, repository):
        repository.get_commit_diff.return_value = file_diff("a.py")
        result = CommitAssistant(
            config, llm_client=ScriptedLLMClient(), repository=repository
        ).commit_preview("abc123")

        repository.get_commit_diff.assert_called_once_with("abc123")
        assert result.succeeded

    def test_branch_overview(self, config, repository, two_file_diff):
        repository.get_commits_for_branch.return_value = ["abc123 - dev, 2 days ago : work"]
        repository.get_branch_diff.return_value = two_file_diff

        commits, chunking = CommitAssistant(config, repository=repository).branch_overview("feature")

        repository.get_commits_for_branch.assert_called_once_with("feature", "main")
        assert commits == ["abc123 - dev, 2 days ago : work"]
        assert chunking.chunk_count == 2

    def test_missing_repository(self, config):
        with pytest.raises(ConfigurationError):
            CommitAssistant(config, llm_client=ScriptedLLMClient()).commit_pr_details("abc")

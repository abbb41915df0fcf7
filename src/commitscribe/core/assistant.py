"""Commit and pull-request workflows over chunked diffs."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from .config import Config, ConfigurationError
from .models import (
    AnalysisOutcome,
    ChunkReview,
    OrchestrationState,
    OrchestrationStatus,
    PreviewResult,
    WorkflowResult,
)
from .orchestrator import RequestOrchestrator
from ..chunking import ChunkingOrchestrator, ChunkingResult, Chunk, MetricsCollector
from ..git import GitRepository, UnstagedFile
from ..llm import BaseLLMClient, GroqClient, GroqError, TaskKind


logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n\n... [Content truncated for display] ..."


def truncate_for_display(content: str, max_length: int) -> str:
    if len(content) <= max_length:
        return content
    return content[:max_length] + TRUNCATION_MARKER


class CommitAssistant:
    """Generates commit messages, PR details and reviews from diffs."""

    def __init__(self,
                 config: Optional[Config] = None,
                 llm_client: Optional[BaseLLMClient] = None,
                 repository: Optional[GitRepository] = None):
        self.config = config or Config.get_default_config()
        self.logger = logging.getLogger(__name__)

        config_issues = self.config.validate_config()
        if config_issues:
            self.logger.warning(f"Configuration issues: {config_issues}")

        self.metrics = MetricsCollector(self.config.metrics_port)
        self.chunker = ChunkingOrchestrator(self.config.chunking, self.metrics)
        self.repository = repository

        self.llm_client = llm_client
        if self.llm_client is None and self.config.llm.api_key:
            try:
                self.llm_client = GroqClient(
                    api_key=self.config.llm.api_key,
                    model=self.config.llm.model,
                    base_url=self.config.llm.base_url,
                    temperature=self.config.llm.temperature,
                    timeout=self.config.llm.timeout_seconds,
                    max_retries=self.config.llm.max_retries,
                    requests_per_minute=self.config.llm.requests_per_minute,
                    tokens_per_minute=self.config.llm.tokens_per_minute,
                    context_window=self.config.llm.context_window,
                )
                self.logger.info("LLM client initialized successfully")
            except GroqError as e:
                self.logger.error(f"Failed to initialize LLM client: {e}")
                self.llm_client = None

        self._orchestrator: Optional[RequestOrchestrator] = None

    @property
    def orchestrator(self) -> RequestOrchestrator:
        if self.llm_client is None:
            raise ConfigurationError("No LLM client configured; set GROQ_API_KEY or llm.api_key")
        if self._orchestrator is None:
            self._orchestrator = RequestOrchestrator(
                self.llm_client,
                fallback_depth=self.config.chunking.fallback_depth,
                metrics=self.metrics,
            )
        return self._orchestrator

    def _repo(self) -> GitRepository:
        if self.repository is None:
            raise ConfigurationError("No repository configured")
        return self.repository

    # Diff-level workflows

    def chunk_diff(self, diff_text: str) -> ChunkingResult:
        return self.chunker.chunk(diff_text)

    def run(self, task: TaskKind, diff_text: str) -> WorkflowResult:
        """Chunk a diff and run one orchestrated request against it."""
        if not diff_text.strip():
            self.logger.info("No changes to analyze")
            return WorkflowResult(
                chunking=ChunkingResult(),
                outcome=AnalysisOutcome(
                    task=task,
                    status=OrchestrationStatus.EMPTY_INPUT,
                    states=[OrchestrationState.IDLE],
                ),
            )

        chunking = self.chunk_diff(diff_text)
        if chunking.is_chunked:
            self.logger.info(
                f"Large diff detected, generating {task.value} from {chunking.primary.label}"
            )
        outcome = self.orchestrator.run(task, chunking.chunks)
        return WorkflowResult(chunking=chunking, outcome=outcome)

    def generate_commit_message(self, diff_text: str) -> WorkflowResult:
        return self.run(TaskKind.COMMIT_MESSAGE, diff_text)

    def generate_pr_details(self, diff_text: str) -> WorkflowResult:
        return self.run(TaskKind.PR_DETAILS, diff_text)

    def preview(self, diff_text: str) -> PreviewResult:
        """Generate PR details and a code review of the primary chunk concurrently.

        Both requests are independent; their failures are reported after
        both have finished.
        """
        if not diff_text.strip():
            empty = [
                AnalysisOutcome(task=task, status=OrchestrationStatus.EMPTY_INPUT,
                                states=[OrchestrationState.IDLE])
                for task in (TaskKind.PR_DETAILS, TaskKind.CODE_REVIEW)
            ]
            return PreviewResult(chunking=ChunkingResult(), pr_details=empty[0], code_review=empty[1])

        chunking = self.chunk_diff(diff_text)
        primary = chunking.primary
        orchestrator = self.orchestrator

        with ThreadPoolExecutor(max_workers=2) as executor:
            pr_future = executor.submit(orchestrator.analyze_chunk, TaskKind.PR_DETAILS, primary)
            review_future = executor.submit(orchestrator.analyze_chunk, TaskKind.CODE_REVIEW, primary)
            pr_details = pr_future.result()
            code_review = review_future.result()

        remaining = len(chunking.remaining)
        return PreviewResult(
            chunking=chunking,
            excerpt=truncate_for_display(primary.content, self.config.output.preview_excerpt_chars),
            pr_details=pr_details.model_copy(update={'unanalyzed_count': remaining}),
            code_review=code_review.model_copy(update={'unanalyzed_count': remaining}),
        )

    def iter_chunk_reviews(self, chunks: Sequence[Chunk], limit: Optional[int] = None) -> Iterator[ChunkReview]:
        """Review chunks one at a time, capped at ``limit``.

        A failure is reported for its chunk and the walk moves on; callers
        stop early by no longer consuming the iterator.
        """
        limit = self.config.chunking.review_chunk_limit if limit is None else limit
        for chunk in list(chunks)[:limit]:
            outcome = self.orchestrator.analyze_chunk(TaskKind.CODE_REVIEW, chunk)
            if outcome.succeeded:
                yield ChunkReview(label=chunk.label, priority=chunk.priority, text=outcome.text)
            else:
                self.logger.warning(f"Error reviewing {chunk.label}: {outcome.error_message}")
                yield ChunkReview(
                    label=chunk.label,
                    priority=chunk.priority,
                    error_message=outcome.error_message or outcome.status.value,
                )

    def review_chunks(self,
                      chunks: Sequence[Chunk],
                      limit: Optional[int] = None,
                      should_continue: Optional[Callable[[ChunkReview], bool]] = None) -> List[ChunkReview]:
        """Collect chunk reviews, asking ``should_continue`` between chunks."""
        limit = self.config.chunking.review_chunk_limit if limit is None else limit
        planned = min(limit, len(chunks))
        reviews: List[ChunkReview] = []
        for review in self.iter_chunk_reviews(chunks, limit):
            reviews.append(review)
            if len(reviews) < planned and should_continue is not None and not should_continue(review):
                break
        return reviews

    # Repository-level workflows

    def staged_commit_message(self) -> WorkflowResult:
        repo = self._repo()
        if not repo.has_staged_changes():
            return self.run(TaskKind.COMMIT_MESSAGE, "")
        return self.generate_commit_message(repo.get_staged_diff())

    def unstaged_commit_message(self, files: Sequence[UnstagedFile]) -> WorkflowResult:
        return self.generate_commit_message(self._repo().get_diff_for_files(files))

    def commit_pr_details(self, commit_hash: str) -> WorkflowResult:
        return self.generate_pr_details(self._repo().get_commit_diff(commit_hash))

    def commit_preview(self, commit_hash: str) -> PreviewResult:
        return self.preview(self._repo().get_commit_diff(commit_hash))

    def branch_overview(self, branch: str) -> Tuple[List[str], ChunkingResult]:
        """Commits unique to ``branch`` and the chunking of its full diff."""
        repo = self._repo()
        base = self.config.git.base_branch
        commits = repo.get_commits_for_branch(branch, base)
        if not commits:
            return commits, ChunkingResult()
        return commits, self.chunk_diff(repo.get_branch_diff(branch, base))

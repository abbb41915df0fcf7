"""Output formatting utilities."""

import json
from typing import Any, Dict, List

from ..chunking.models import ChunkingResult
from ..core.models import (
    AnalysisOutcome,
    ChunkReview,
    OrchestrationStatus,
    OutputFormat,
    PRDetails,
    PreviewResult,
    WorkflowResult,
)
from ..core.config import OutputConfig
from ..llm.prompts import TaskKind


_TASK_TITLES = {
    TaskKind.COMMIT_MESSAGE: "Commit Message",
    TaskKind.PR_DETAILS: "PR Details",
    TaskKind.CODE_REVIEW: "Code Review",
}


def task_title(task: TaskKind) -> str:
    return _TASK_TITLES[task]


class OutputFormatter:
    """Formats chunking and generation results for different output formats."""

    def __init__(self, config: OutputConfig):
        self.config = config

    # Chunking

    def format_chunking(self, result: ChunkingResult, list_chunks: bool = False) -> str:
        if self.config.format == OutputFormat.JSON:
            return json.dumps(self._chunking_dict(result), indent=2)

        output = [result.summary().rstrip("\n")]
        if list_chunks:
            output.append("")
            output.append("Chunks (analysis order):")
            for i, chunk in enumerate(result.chunks, 1):
                output.append(f"  {i}. [{chunk.priority.value.upper()}] {chunk.label} ({chunk.size:,} chars)")
        if self.config.format == OutputFormat.MARKDOWN:
            return "```\n" + "\n".join(output) + "\n```"
        return "\n".join(output)

    def _chunking_dict(self, result: ChunkingResult) -> Dict[str, Any]:
        # Chunk contents are left out on purpose; they can be megabytes
        return {
            'total_chunks': result.chunk_count,
            'total_size': result.total_size,
            'fast_path': result.fast_path,
            'file_types': result.file_types(),
            'chunks': [
                {
                    'label': chunk.label,
                    'priority': chunk.priority.value,
                    'size': chunk.size,
                    'path': chunk.path,
                    'part': chunk.part,
                }
                for chunk in result.chunks
            ],
        }

    # Generation

    def format_workflow(self, result: WorkflowResult) -> str:
        if self.config.format == OutputFormat.JSON:
            return json.dumps({
                'chunking': self._chunking_dict(result.chunking),
                'outcome': self._outcome_dict(result.outcome),
            }, indent=2)

        output: List[str] = []
        if self.config.show_summary and result.chunking.is_chunked:
            output.append("Large diff detected. Using smart chunking.")
            output.append(self.format_chunking(result.chunking))
            output.append("")
        output.append(self.format_outcome(result.outcome))
        return "\n".join(output)

    def format_outcome(self, outcome: AnalysisOutcome) -> str:
        if self.config.format == OutputFormat.JSON:
            return json.dumps(self._outcome_dict(outcome), indent=2)

        title = task_title(outcome.task)
        markdown = self.config.format == OutputFormat.MARKDOWN

        if outcome.status == OrchestrationStatus.EMPTY_INPUT:
            return "No changes to analyze."
        if outcome.status == OrchestrationStatus.OVERFLOW:
            return (f"Unable to generate {title.lower()}: the changes are too large for the model. "
                    "Reduce the scope of the diff and try again.")
        if outcome.status == OrchestrationStatus.EXHAUSTED_FALLBACK:
            return f"Unable to generate {title.lower()}: {outcome.error_message}"
        if outcome.status == OrchestrationStatus.FAILED:
            return f"Error generating {title.lower()}: {outcome.error_message}"

        header = f"Generated {title}"
        if outcome.used_fallback:
            header += f" (from {outcome.chunk_label})"
        output = [f"## {header}" if markdown else header, "" if markdown else "=" * len(header)]
        output.append(self._format_text(outcome))

        if outcome.used_fallback:
            output.append("")
            output.append(
                f"Note: {outcome.original_label} ({outcome.original_priority.value} priority) "
                f"was too large for the model; this result comes from a smaller chunk."
            )
        if outcome.unanalyzed_count:
            output.append("")
            output.append(
                f"Note: This was generated from {outcome.chunk_label}. "
                f"There are {outcome.unanalyzed_count} additional chunks that weren't analyzed."
            )
        return "\n".join(output)

    def _format_text(self, outcome: AnalysisOutcome) -> str:
        text = outcome.text or ""
        if outcome.task != TaskKind.PR_DETAILS:
            return text
        details = PRDetails.parse(text)
        if not details.title:
            return details.description
        if self.config.format == OutputFormat.MARKDOWN:
            return f"### {details.title}\n\n{details.description}"
        return f"Title: {details.title}\n\n{details.description}"

    def _outcome_dict(self, outcome: AnalysisOutcome) -> Dict[str, Any]:
        data = outcome.model_dump(mode='json')
        if outcome.task == TaskKind.PR_DETAILS and outcome.text:
            data['pr_details'] = PRDetails.parse(outcome.text).model_dump()
        return data

    # Preview and reviews

    def format_preview(self, result: PreviewResult) -> str:
        if self.config.format == OutputFormat.JSON:
            return json.dumps({
                'chunking': self._chunking_dict(result.chunking),
                'excerpt': result.excerpt,
                'pr_details': self._outcome_dict(result.pr_details),
                'code_review': self._outcome_dict(result.code_review),
            }, indent=2)

        if result.pr_details.is_empty:
            return "No changes to analyze."

        primary = result.chunking.primary
        output = []
        if self.config.show_summary:
            output.append(self.format_chunking(result.chunking))
            output.append("")
        output.append(f"Changes ({primary.label}):")
        output.append("```diff" if self.config.format == OutputFormat.MARKDOWN else "-" * 40)
        output.append(result.excerpt.rstrip("\n"))
        output.append("```" if self.config.format == OutputFormat.MARKDOWN else "-" * 40)
        output.append("")
        output.append(self.format_outcome(result.pr_details.model_copy(update={'unanalyzed_count': 0})))
        output.append("")
        output.append(self.format_outcome(result.code_review.model_copy(update={'unanalyzed_count': 0})))
        if result.remaining_count:
            output.append("")
            output.append(f"{result.remaining_count} more chunk(s) were not included in this preview.")
        return "\n".join(output)

    def format_review(self, review: ChunkReview) -> str:
        header = f"Code Review - {review.label}"
        if not review.succeeded:
            return f"Error reviewing {review.label}: {review.error_message}"
        if self.config.format == OutputFormat.MARKDOWN:
            return f"## {header}\n\n{review.text}"
        return f"{header}\n{'=' * len(header)}\n{review.text}"

    def format_reviews(self, reviews: List[ChunkReview]) -> str:
        if self.config.format == OutputFormat.JSON:
            return json.dumps([review.model_dump(mode='json') for review in reviews], indent=2)
        return "\n\n".join(self.format_review(review) for review in reviews)

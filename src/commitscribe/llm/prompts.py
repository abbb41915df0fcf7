"""System prompts and output limits for each generation task."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class TaskKind(str, Enum):
    """Kinds of text the assistant asks the model for."""

    COMMIT_MESSAGE = "commit_message"
    PR_DETAILS = "pr_details"
    CODE_REVIEW = "code_review"


@dataclass(frozen=True)
class TaskPrompt:
    system_role: str
    max_output_tokens: int


COMMIT_MESSAGE_PROMPT = (
    "You are an expert programmer. You write concise, high-quality git commit "
    "messages in the conventional commit format. Based on the following git diff, "
    "generate a descriptive commit message. Do not include any preamble or extra "
    "text, only the commit message itself."
)

PR_DETAILS_PROMPT = (
    "You are a senior software developer writing a pull request. Based on the "
    "following git diff, generate a PR Title and a PR Description. The description "
    "should be in Markdown format, outlining the key changes and their purpose. "
    "Respond ONLY in the format: [TITLE]: Your PR Title\n\n[DESCRIPTION]:\n"
    "Your PR Description in markdown. Keep it short and sweet."
)

CODE_REVIEW_PROMPT = (
    "You are a senior software developer conducting a code review. Analyze the "
    "following git diff and provide constructive feedback. Focus on: "
    "1. Code quality and best practices "
    "2. Potential bugs or issues "
    "3. Performance considerations "
    "4. Security concerns "
    "5. Maintainability improvements "
    "Format your response as markdown with clear sections. Be concise but thorough. "
    "If the code looks good, mention what's done well."
)

TASK_PROMPTS: Dict[TaskKind, TaskPrompt] = {
    TaskKind.COMMIT_MESSAGE: TaskPrompt(COMMIT_MESSAGE_PROMPT, 500),
    TaskKind.PR_DETAILS: TaskPrompt(PR_DETAILS_PROMPT, 500),
    TaskKind.CODE_REVIEW: TaskPrompt(CODE_REVIEW_PROMPT, 1000),
}


def get_task_prompt(task: TaskKind) -> TaskPrompt:
    return TASK_PROMPTS[task]

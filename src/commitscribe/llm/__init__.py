"""LLM integration module for commitscribe."""

from .base import (
    BaseLLMClient,
    GenerationOutcome,
    OutcomeKind,
    LLMError,
    ContextOverflowError,
    TransportError,
    RateLimitError,
)
from .groq_client import GroqClient, GroqError, LLMResponse, classify_error
from .prompts import TaskKind, TaskPrompt, get_task_prompt

__all__ = [
    "BaseLLMClient",
    "GenerationOutcome",
    "OutcomeKind",
    "LLMError",
    "ContextOverflowError",
    "TransportError",
    "RateLimitError",
    "GroqClient",
    "GroqError",
    "LLMResponse",
    "classify_error",
    "TaskKind",
    "TaskPrompt",
    "get_task_prompt",
]

"""Groq LLM client for commitscribe."""

import os
import time
import logging
import threading
from typing import Dict, List, Optional, Any, Tuple
from dataclasses import dataclass
from tenacity import Retrying, stop_after_attempt, wait_exponential, retry_if_exception_type
import tiktoken

from groq import Groq
from groq.types.chat import ChatCompletion
from groq.types.chat.chat_completion_message_param import ChatCompletionMessageParam

from .base import BaseLLMClient, LLMError, ContextOverflowError, TransportError, RateLimitError


logger = logging.getLogger(__name__)

# Error-body fragments meaning the prompt did not fit the model
_OVERFLOW_MARKERS = (
    "context length",
    "context_length",
    "context window",
    "maximum context",
    "token limit",
    "too many tokens",
    "request too large",
    "reduce the length",
)
# Request rejected outright by the service
_OVERFLOW_STATUS_CODES = {400, 413}


@dataclass
class LLMResponse:
    """Response from LLM with metadata."""
    content: str
    model: str
    tokens_used: int
    finish_reason: str
    response_time: float
    metadata: Dict[str, Any]


class GroqError(LLMError):
    """Raised when the Groq client cannot be set up."""
    pass


def classify_error(error: Exception) -> LLMError:
    """Map a raw SDK or network error onto the client error taxonomy."""
    status = getattr(error, "status_code", None)
    message = str(error).lower()

    if status in _OVERFLOW_STATUS_CODES or any(marker in message for marker in _OVERFLOW_MARKERS):
        return ContextOverflowError(
            "Token limit exceeded. The diff content is too large for the model's context window."
        )
    if status == 429 or 'rate limit' in message or 'too many requests' in message:
        return RateLimitError(f"Rate limit exceeded: {error}", cause=error)
    if 'timeout' in message or 'timed out' in message:
        return TransportError(f"Request timeout: {error}", cause=error)
    return TransportError(f"API request failed: {error}", cause=error)


class GroqClient(BaseLLMClient):
    """Client for interacting with Groq API."""

    def __init__(self,
                 api_key: Optional[str] = None,
                 model: str = "llama-3.3-70b-versatile",
                 base_url: Optional[str] = None,
                 temperature: float = 0.3,
                 timeout: int = 15,
                 max_retries: int = 3,
                 requests_per_minute: int = 30,
                 tokens_per_minute: int = 60000,
                 context_window: int = 128000):

        self.api_key = api_key or os.getenv('GROQ_API_KEY')
        if not self.api_key:
            raise GroqError("Groq API key not provided")

        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.context_window = context_window

        # Rate limiting
        self.requests_per_minute = requests_per_minute
        self.tokens_per_minute = tokens_per_minute
        self._request_times: List[float] = []
        self._token_usage: List[Tuple[float, int]] = []  # (timestamp, tokens)
        self._usage_lock = threading.Lock()

        # Retries happen here, not in the SDK
        self.client = Groq(api_key=self.api_key, base_url=base_url, max_retries=0)

        self._encoder: Optional[tiktoken.Encoding] = None
        self.logger = logging.getLogger(__name__)

    @property
    def encoder(self) -> Optional[tiktoken.Encoding]:
        if self._encoder is None:
            try:
                self._encoder = tiktoken.get_encoding("cl100k_base")
            except Exception as e:
                self.logger.warning(f"Failed to load tokenizer, using estimates: {e}")
        return self._encoder

    def count_tokens(self, text: str) -> int:
        """Count tokens in text."""
        encoder = self.encoder
        if encoder is None:
            return len(text) // 4
        try:
            return len(encoder.encode(text))
        except Exception as e:
            self.logger.warning(f"Failed to count tokens: {e}")
            # Fallback estimation: ~4 chars per token
            return len(text) // 4

    def count_message_tokens(self, messages: List[Dict[str, str]]) -> int:
        """Count tokens in a list of messages."""
        total_tokens = 0

        for message in messages:
            total_tokens += self.count_tokens(message.get("role", ""))
            total_tokens += self.count_tokens(message.get("content", ""))
            total_tokens += 4  # Overhead per message

        total_tokens += 2  # Overhead for the conversation
        return total_tokens

    def _check_rate_limits(self, estimated_tokens: int) -> None:
        """Sleep if the request would exceed rate limits."""
        current_time = time.time()
        request_wait = 0.0
        token_wait = 0.0

        with self._usage_lock:
            # Clean old entries (older than 1 minute)
            self._request_times = [t for t in self._request_times if current_time - t < 60]
            self._token_usage = [(t, tokens) for t, tokens in self._token_usage if current_time - t < 60]

            if len(self._request_times) >= self.requests_per_minute:
                request_wait = 60 - (current_time - self._request_times[0])

            current_token_usage = sum(tokens for _, tokens in self._token_usage)
            if self._token_usage and current_token_usage + estimated_tokens > self.tokens_per_minute:
                oldest_usage_time = min(t for t, _ in self._token_usage)
                token_wait = 60 - (current_time - oldest_usage_time)

        if request_wait > 0:
            self.logger.warning(f"Rate limit reached, sleeping for {request_wait:.2f} seconds")
            time.sleep(request_wait)
        if token_wait > 0:
            self.logger.warning(f"Token limit would be exceeded, sleeping for {token_wait:.2f} seconds")
            time.sleep(token_wait)

    def _record_usage(self, tokens_used: int) -> None:
        """Record usage for rate limiting."""
        current_time = time.time()
        with self._usage_lock:
            self._request_times.append(current_time)
            self._token_usage.append((current_time, tokens_used))

    def _send(self, messages: List[ChatCompletionMessageParam], max_tokens: int) -> ChatCompletion:
        """Make a single request, classifying any failure."""
        try:
            return self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=self.temperature,
                timeout=self.timeout,
            )
        except Exception as e:
            raise classify_error(e) from e

    def _make_request(self, messages: List[ChatCompletionMessageParam], max_tokens: int) -> ChatCompletion:
        """Make a request, retrying only when throttled."""
        retryer = Retrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=4, max=60),
            retry=retry_if_exception_type(RateLimitError),
            reraise=True,
        )
        return retryer(self._send, messages, max_tokens)

    def chat_completion(self, system_role: str, user_content: str, max_tokens: int) -> LLMResponse:
        """Send a system + user chat completion request."""
        start_time = time.time()

        messages: List[Dict[str, str]] = [
            {"role": "system", "content": system_role},
            {"role": "user", "content": user_content},
        ]
        formatted_messages: List[ChatCompletionMessageParam] = [
            {"role": "system", "content": system_role},
            {"role": "user", "content": user_content},
        ]

        input_tokens = self.count_message_tokens(messages)
        estimated_total_tokens = input_tokens + max_tokens

        if estimated_total_tokens > self.context_window:
            raise ContextOverflowError(
                f"Total tokens ({estimated_total_tokens}) exceed the model context window "
                f"({self.context_window})"
            )

        self._check_rate_limits(estimated_total_tokens)

        try:
            response = self._make_request(formatted_messages, max_tokens)
        except LLMError as e:
            response_time = time.time() - start_time
            self.logger.error(f"Groq request failed after {response_time:.2f}s: {e}")
            raise

        content = (response.choices[0].message.content or "").strip()
        finish_reason = response.choices[0].finish_reason

        output_tokens = self.count_tokens(content)
        total_tokens = input_tokens + output_tokens
        self._record_usage(total_tokens)

        response_time = time.time() - start_time
        self.logger.debug(
            f"Groq request completed: {input_tokens} input tokens, "
            f"{output_tokens} output tokens, {response_time:.2f}s"
        )

        return LLMResponse(
            content=content,
            model=self.model,
            tokens_used=total_tokens,
            finish_reason=finish_reason,
            response_time=response_time,
            metadata={
                'input_tokens': input_tokens,
                'output_tokens': output_tokens,
                'usage': getattr(response, 'usage', None),
            }
        )

    def generate(self, system_role: str, user_content: str, max_output_tokens: int) -> str:
        self.logger.info(f"Sending {len(user_content)} characters to {self.model}")
        return self.chat_completion(system_role, user_content, max_output_tokens).content

    def get_usage_stats(self) -> Dict[str, Any]:
        """Get current usage statistics."""
        current_time = time.time()

        with self._usage_lock:
            request_times = list(self._request_times)
            token_usage = list(self._token_usage)

        recent_requests = [t for t in request_times if current_time - t < 60]
        recent_tokens = [(t, tokens) for t, tokens in token_usage if current_time - t < 60]

        return {
            'requests_last_minute': len(recent_requests),
            'tokens_last_minute': sum(tokens for _, tokens in recent_tokens),
            'requests_per_minute_limit': self.requests_per_minute,
            'tokens_per_minute_limit': self.tokens_per_minute,
            'model': self.model,
            'total_requests': len(request_times),
            'total_tokens': sum(tokens for _, tokens in token_usage),
        }

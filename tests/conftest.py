"""Test configuration."""

import os
import tempfile
import threading
from pathlib import Path
from typing import List, Tuple, Union

import pytest

from commitscribe.chunking import ChunkingConfig
from commitscribe.llm.base import BaseLLMClient


def file_diff(path: str, body_lines: int = 3, line: str = "+added line") -> str:
    """Build a small unified diff for one file."""
    lines = [
        f"diff --git a/{path} b/{path}",
        "index 1111111..2222222 100644",
        f"--- a/{path}",
        f"+++ b/{path}",
        f"@@ -1,{body_lines} +1,{body_lines} @@",
    ]
    lines.extend(f"{line} {i}" for i in range(body_lines))
    return "\n".join(lines) + "\n"


class ScriptedLLMClient(BaseLLMClient):
    """In-memory model client returning scripted replies in call order.

    Each reply is either the text to return or an exception to raise.
    """

    def __init__(self, replies: List[Union[str, Exception]] = None, default: str = "generated"):
        self.replies = list(replies or [])
        self.default = default
        self.calls: List[Tuple[str, str, int]] = []
        self._lock = threading.Lock()

    def generate(self, system_role: str, user_content: str, max_output_tokens: int) -> str:
        with self._lock:
            self.calls.append((system_role, user_content, max_output_tokens))
            reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def contents(self) -> List[str]:
        return [content for _, content, _ in self.calls]


# Test fixtures
@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def small_config():
    """Chunking config with a budget small enough to force chunking."""
    return ChunkingConfig(token_budget=1200)


@pytest.fixture
def two_file_diff():
    """A source file and a readme, each well under the small budget."""
    return file_diff("src/App.cs", 3) + file_diff("README.md", 3)


@pytest.fixture
def mixed_diff():
    """Diff touching files of every priority tier, in low-to-high order.

    Each file fits a 2000-token budget, the whole diff does not.
    """
    return (
        file_diff("docs/guide.md", 10)
        + file_diff("obj/out.bin", 10)
        + file_diff("project/App.csproj", 10)
        + file_diff("config/appsettings.json", 10)
        + file_diff("src/Service.cs", 10)
    )


@pytest.fixture
def oversized_file_diff():
    """A single file far larger than the small budget."""
    return file_diff("src/Big.cs", 40, line="+var total = items.Sum(x => x.Price);")


@pytest.fixture
def scripted_client():
    return ScriptedLLMClient()


@pytest.fixture
def mock_groq_api_key():
    """Mock Groq API key for testing."""
    original = os.environ.get('GROQ_API_KEY')
    os.environ['GROQ_API_KEY'] = 'test-key'
    yield
    if original is not None:
        os.environ['GROQ_API_KEY'] = original
    else:
        os.environ.pop('GROQ_API_KEY', None)


@pytest.fixture
def no_groq_api_key(monkeypatch):
    """Make sure no API key leaks in from the environment."""
    monkeypatch.delenv('GROQ_API_KEY', raising=False)

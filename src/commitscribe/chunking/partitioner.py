"""Split a multi-file unified diff into per-file segments."""

import logging
import re
from typing import List, Optional

from .models import DiffSegment


logger = logging.getLogger(__name__)

# Per-file header emitted by ``git diff`` / ``git show``
_DIFF_HEADER_RE = re.compile(r"^diff --git a/(.+) b/(.+)$")
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+")


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` only, keeping terminators (``\\r\\n`` stays intact)."""
    return _LINE_RE.findall(text)


def match_file_header(line: str) -> Optional[str]:
    """Return the file path if ``line`` is a per-file diff header."""
    m = _DIFF_HEADER_RE.match(line.rstrip("\r\n"))
    if m:
        return m.group(1)
    return None


class FilePartitioner:
    """Partition diff text on ``diff --git a/<path> b/<path>`` boundaries.

    Each header starts a new segment and belongs to that segment. Text
    before the first header is folded into the first segment. Lines keep
    their original terminators, so joining the segment contents yields
    the input unchanged. Input without any header becomes one segment
    with an empty path.
    """

    def partition(self, diff_text: str) -> List[DiffSegment]:
        segments: List[DiffSegment] = []
        preamble: List[str] = []
        current_path: Optional[str] = None
        current_lines: List[str] = []

        for line in split_lines(diff_text):
            path = match_file_header(line)
            if path is not None:
                if current_path is not None:
                    segments.append(self._make_segment(current_path, current_lines, len(segments)))
                    current_lines = []
                else:
                    # Leading preamble goes with the first file
                    current_lines = preamble
                current_path = path
            elif current_path is None:
                preamble.append(line)
                continue
            current_lines.append(line)

        if current_path is not None:
            segments.append(self._make_segment(current_path, current_lines, len(segments)))
        else:
            logger.debug("No file headers found, treating diff as a single segment")
            segments.append(DiffSegment(path="", content=diff_text, index=0))

        logger.debug(f"Partitioned diff into {len(segments)} segment(s)")
        return segments

    @staticmethod
    def _make_segment(path: str, lines: List[str], index: int) -> DiffSegment:
        return DiffSegment(path=path, content="".join(lines), index=index)

"""File-path heuristics for chunk priority."""

import logging
from functools import lru_cache
from pathlib import PurePosixPath
from typing import Optional

from .config import ChunkingConfig
from .models import PriorityTier


logger = logging.getLogger(__name__)


class PriorityClassifier:
    """Assign a priority tier to a diff path.

    Rules are checked top to bottom and the first match wins:

    1. source-code extension -> HIGH
    2. structured-config extension with a settings marker in the path -> HIGH
    3. build/project-descriptor extension -> MEDIUM
    4. documentation extension -> LOW
    5. generated-artifact marker in the path -> LOW
    6. anything else -> MEDIUM

    Hand-written logic is reviewed first, boilerplate and build output last.
    """

    def __init__(self, config: Optional[ChunkingConfig] = None):
        self.config = config or ChunkingConfig()
        self._source = frozenset(self.config.source_extensions)
        self._config_ext = frozenset(self.config.config_extensions)
        self._build = frozenset(self.config.build_extensions)
        self._docs = frozenset(self.config.doc_extensions)
        self._settings_markers = tuple(self.config.settings_markers)
        self._generated_markers = tuple(self.config.generated_markers)
        self.classify = lru_cache(maxsize=256)(self._classify)

    def _classify(self, path: str) -> PriorityTier:
        lowered = path.lower()
        extension = PurePosixPath(lowered).suffix

        if extension in self._source:
            return PriorityTier.HIGH
        if extension in self._config_ext and any(m in lowered for m in self._settings_markers):
            return PriorityTier.HIGH
        if extension in self._build:
            return PriorityTier.MEDIUM
        if extension in self._docs:
            return PriorityTier.LOW
        if self.is_generated(lowered):
            return PriorityTier.LOW
        return PriorityTier.MEDIUM

    def is_generated(self, path: str) -> bool:
        lowered = path.lower()
        return any(marker in lowered for marker in self._generated_markers)

"""Character-ratio size estimation against the configured token budget."""

import logging
from typing import Optional

from .config import ChunkingConfig
from .exceptions import InvalidBudgetError


logger = logging.getLogger(__name__)


class SizeEstimator:
    """Approximate model-token cost of text from its character length.

    The estimate is ``len(text) * chars_to_tokens_ratio`` and a text fits
    when the estimate is strictly below the budget. No tokenizer is
    involved, so the check is cheap enough to run on every line.
    """

    def __init__(self, config: Optional[ChunkingConfig] = None):
        self.config = config or ChunkingConfig()
        self.ratio = self.config.chars_to_tokens_ratio
        self.budget = self.config.token_budget
        self.sub_budget = self.config.sub_chunk_budget

    def estimate_tokens(self, text: str) -> float:
        return len(text) * self.ratio

    def estimate_length(self, length: int) -> float:
        """Estimate for a text of ``length`` characters."""
        return length * self.ratio

    def fits(self, text: str, budget: Optional[float] = None) -> bool:
        """Check whether text fits the budget (the full budget by default)."""
        return self.fits_length(len(text), budget)

    def fits_length(self, length: int, budget: Optional[float] = None) -> bool:
        limit = self.budget if budget is None else budget
        if limit <= 0:
            raise InvalidBudgetError(limit)
        return self.estimate_length(length) < limit

    def fits_sub_budget(self, text: str) -> bool:
        """Check text against the reduced budget used for sub-chunks."""
        return self.fits(text, self.sub_budget)

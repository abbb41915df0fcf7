"""Configuration for diff chunking and request fallback."""

from typing import Dict, List
from pydantic import BaseModel, Field, field_validator, model_validator


class ChunkingConfig(BaseModel):
    """Budget constants and classification tables for diff chunking."""

    # Size budget
    token_budget: int = Field(default=100000, gt=0)
    chars_to_tokens_ratio: float = Field(default=4.0, gt=0)
    sub_chunk_fraction: float = Field(default=1 / 3, gt=0.0, le=1.0)

    # Orchestration limits
    fallback_depth: int = Field(default=1, ge=0, le=10)
    review_chunk_limit: int = Field(default=3, ge=1)

    # Post-processing
    validate_chunks: bool = True

    # Priority heuristics (matched case-insensitively)
    source_extensions: List[str] = Field(default_factory=lambda: [
        ".cs", ".py", ".js", ".jsx", ".ts", ".tsx", ".java", ".go", ".rs",
        ".rb", ".php", ".c", ".h", ".cpp", ".hpp", ".kt", ".swift", ".scala"
    ])
    config_extensions: List[str] = Field(default_factory=lambda: [
        ".json", ".yaml", ".yml", ".toml", ".ini"
    ])
    settings_markers: List[str] = Field(default_factory=lambda: [
        "appsettings", "settings"
    ])
    build_extensions: List[str] = Field(default_factory=lambda: [
        ".csproj", ".sln", ".props", ".targets", ".gradle", ".cmake"
    ])
    doc_extensions: List[str] = Field(default_factory=lambda: [
        ".md", ".txt", ".rst"
    ])
    generated_markers: List[str] = Field(default_factory=lambda: [
        "generated", ".designer.", "obj/", "bin/", "dist/", "build/"
    ])

    @field_validator(
        'source_extensions', 'config_extensions', 'settings_markers',
        'build_extensions', 'doc_extensions', 'generated_markers'
    )
    @classmethod
    def normalize_case(cls, v: List[str]) -> List[str]:
        return [item.lower() for item in v]

    @model_validator(mode='after')
    def validate_sub_budget(self) -> 'ChunkingConfig':
        """Make sure the sub-chunk budget is still usable."""
        if self.sub_chunk_budget < 1:
            raise ValueError(
                f"Sub-chunk budget rounds below one token "
                f"(token_budget={self.token_budget}, fraction={self.sub_chunk_fraction})"
            )
        return self

    @property
    def sub_chunk_budget(self) -> float:
        """Token budget applied to the parts of an oversized file."""
        return self.token_budget * self.sub_chunk_fraction

    @classmethod
    def from_dict(cls, config_dict: Dict) -> 'ChunkingConfig':
        """Create configuration from dictionary."""
        return cls(**config_dict)

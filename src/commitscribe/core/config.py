"""Configuration management for commitscribe."""

import os
import yaml
from pathlib import Path
from typing import Dict, List, Optional, Any
from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv

from .models import OutputFormat
from ..chunking.config import ChunkingConfig


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


class LLMConfig(BaseModel):
    """Configuration for LLM integration."""

    # Provider settings
    provider: str = "groq"
    model: str = "llama-3.3-70b-versatile"
    api_key: Optional[str] = Field(default=None, validate_default=True)
    base_url: Optional[str] = None

    # Request configuration
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    timeout_seconds: int = Field(default=15, gt=0)
    max_retries: int = Field(default=3, ge=1)

    # Rate limiting
    requests_per_minute: int = 30
    tokens_per_minute: int = 60000

    # Model context window in tokens
    context_window: int = Field(default=128000, gt=0)

    @field_validator('api_key')
    @classmethod
    def load_api_key(cls, v: Optional[str]) -> Optional[str]:
        """Load API key from environment if not provided."""
        if v is None:
            return os.getenv('GROQ_API_KEY')
        return v


class GitConfig(BaseModel):
    """Configuration for repository access."""

    base_branch: str = "main"
    repository_search_root: Optional[Path] = None
    command_timeout: int = Field(default=30, gt=0)


class OutputConfig(BaseModel):
    """Configuration for output formatting."""

    format: OutputFormat = OutputFormat.TEXT
    output_file: Optional[Path] = None
    preview_excerpt_chars: int = Field(default=2000, ge=100)
    show_summary: bool = True

    # Verbosity
    verbose: bool = False
    quiet: bool = False


class Config(BaseModel):
    """Main configuration class for commitscribe."""

    # Sub-configurations
    llm: LLMConfig = Field(default_factory=LLMConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    # Global settings
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_file: Optional[Path] = None
    metrics_port: Optional[int] = Field(default=None, ge=1024, le=65535)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "Config":
        """Load configuration from a YAML file or a pyproject.toml."""
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.name == "pyproject.toml":
            return cls.load_from_pyproject(config_path)

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)

    @classmethod
    def load_from_dict(cls, config_dict: Dict[str, Any]) -> "Config":
        """Load configuration from dictionary."""
        return cls(**config_dict)

    @classmethod
    def get_default_config(cls) -> "Config":
        """Get default configuration."""
        load_dotenv()
        return cls()

    @classmethod
    def find_config_file(cls, start_path: Optional[Path] = None) -> Optional[Path]:
        """Find configuration file in current directory or parent directories."""
        if start_path is None:
            start_path = Path.cwd()

        config_names = [
            ".commitscribe.yaml",
            ".commitscribe.yml",
            "commitscribe.yaml",
            "commitscribe.yml",
            "pyproject.toml"  # Look for [tool.commitscribe] section
        ]

        current_path = start_path.resolve()

        # Search up the directory tree
        while current_path != current_path.parent:
            for config_name in config_names:
                config_file = current_path / config_name
                if config_file.exists():
                    if config_name == "pyproject.toml":
                        if cls._has_commitscribe_config(config_file):
                            return config_file
                    else:
                        return config_file
            current_path = current_path.parent

        return None

    @classmethod
    def _has_commitscribe_config(cls, pyproject_path: Path) -> bool:
        """Check if pyproject.toml has commitscribe configuration."""
        import tomllib

        try:
            with open(pyproject_path, 'rb') as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError):
            return False
        return "tool" in data and "commitscribe" in data["tool"]

    @classmethod
    def load_from_pyproject(cls, pyproject_path: Path) -> "Config":
        """Load configuration from pyproject.toml file."""
        import tomllib

        with open(pyproject_path, 'rb') as f:
            data = tomllib.load(f)

        if "tool" not in data or "commitscribe" not in data["tool"]:
            raise ValueError("No [tool.commitscribe] section found in pyproject.toml")

        return cls(**data["tool"]["commitscribe"])

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        # Never write secrets to disk
        config_dict = self.model_dump(mode='json', exclude={'llm': {'api_key'}})

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(config_dict, f, default_flow_style=False, indent=2, sort_keys=False)

    def validate_config(self) -> List[str]:
        """Validate configuration and return list of issues."""
        issues = []

        if self.llm.api_key is None:
            issues.append("LLM API key not configured (set GROQ_API_KEY)")

        max_output_tokens = 1000
        if self.chunking.token_budget + max_output_tokens > self.llm.context_window:
            issues.append(
                f"Chunk token budget ({self.chunking.token_budget}) leaves no room for output "
                f"in a {self.llm.context_window}-token context window"
            )

        if self.git.repository_search_root and not self.git.repository_search_root.is_dir():
            issues.append(f"Repository search root does not exist: {self.git.repository_search_root}")

        if self.output.output_file and self.output.output_file.parent:
            if not self.output.output_file.parent.exists():
                issues.append(f"Output directory does not exist: {self.output.output_file.parent}")

        return issues

    def merge_with_cli_args(self, **cli_args) -> "Config":
        """Merge configuration with CLI arguments."""
        config_dict = self.model_dump()

        cli_mapping = {
            'verbose': 'output.verbose',
            'quiet': 'output.quiet',
            'format': 'output.format',
            'output': 'output.output_file',
            'base_branch': 'git.base_branch',
            'model': 'llm.model',
            'token_budget': 'chunking.token_budget',
            'review_limit': 'chunking.review_chunk_limit',
        }

        for cli_key, cli_value in cli_args.items():
            if cli_value is not None and cli_key in cli_mapping:
                config_path = cli_mapping[cli_key].split('.')
                current = config_dict

                for path_part in config_path[:-1]:
                    current = current[path_part]

                current[config_path[-1]] = cli_value

        return Config(**config_dict)

"""Configuration management for the repository client."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

ENV_COMMIT_DEPTH = "REPO_CLIENT_COMMIT_DEPTH"
ENV_REFERENCE = "REPO_CLIENT_REFERENCE"


class CloneConfig(BaseModel):
    """Configuration for materializing remote repositories."""

    timeout: Optional[float] = Field(
        default=300.0,
        description="Seconds allowed for clone and fetch (None: no limit)",
    )
    filter_blobs: bool = Field(
        default=False,
        description="Clone with --filter=blob:none and fetch blobs on demand",
    )


class SearchConfig(BaseModel):
    """Configuration for content search defaults."""

    case_sensitive: bool = Field(
        default=True, description="Match queries case-sensitively by default"
    )
    batch_read_bytes: int = Field(
        default=32 * 1024 * 1024,
        ge=1,
        description="Blob content read per git cat-file call during a search",
    )


class WalkerConfig(BaseModel):
    """Configuration for commit history traversal."""

    first_parent_only: bool = Field(
        default=False,
        description="Follow only the first parent of merge commits",
    )
    prefetch_batch_size: int = Field(
        default=500,
        ge=1,
        description="Commits read per git log call when walking history",
    )


class ClientConfig(BaseModel):
    """Main configuration for the repository client."""

    reference: str = Field(
        default="HEAD", description="Reference history traversal starts from"
    )
    # Non-positive values mean the whole reachable history
    commit_depth: int = Field(
        default=30, description="Maximum number of commits to materialize"
    )

    clone: CloneConfig = Field(default_factory=CloneConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    walker: WalkerConfig = Field(default_factory=WalkerConfig)

    @field_validator("reference")
    @classmethod
    def validate_reference(cls, v: str) -> str:
        """Strip whitespace and reject empty references."""
        v = v.strip()
        if not v:
            raise ValueError("reference must not be empty")
        return v


class ConfigManager:
    """Manages configuration loading and saving."""

    DEFAULT_CONFIG_PATH = Path(".repo-client/config.json")

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = (
            Path(config_path) if config_path else self.DEFAULT_CONFIG_PATH
        )
        self._config: Optional[ClientConfig] = None

    def load(self) -> ClientConfig:
        """Load configuration from file, then apply environment overrides."""
        data: Dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise ValueError(f"Failed to load config from {self.config_path}: {e}")

        data.update(self._environment_overrides())

        try:
            self._config = ClientConfig(**data)
        except ValueError as e:
            raise ValueError(f"Invalid config in {self.config_path}: {e}")

        return self._config

    @staticmethod
    def _environment_overrides() -> Dict[str, Any]:
        overrides: Dict[str, Any] = {}
        depth = os.environ.get(ENV_COMMIT_DEPTH)
        if depth is not None:
            try:
                overrides["commit_depth"] = int(depth)
            except ValueError:
                raise ValueError(
                    f"{ENV_COMMIT_DEPTH} must be an integer, got {depth!r}"
                )
        reference = os.environ.get(ENV_REFERENCE)
        if reference is not None:
            overrides["reference"] = reference
        return overrides

    def save(self, config: Optional[ClientConfig] = None) -> None:
        """Save configuration to file."""
        if config is None:
            config = self._config

        if config is None:
            raise ValueError("No configuration to save")

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, "w") as f:
            json.dump(config.model_dump(), f, indent=2)

    def get_config(self) -> ClientConfig:
        """Get current configuration, loading it on first use."""
        if self._config is None:
            return self.load()
        return self._config

    @staticmethod
    def find_config_path(start_dir: Optional[Path] = None) -> Optional[Path]:
        """Find .repo-client/config.json by walking up the directory tree.

        Args:
            start_dir: Directory to start searching from (default: current directory)

        Returns:
            Path to config.json if found, None otherwise
        """
        current = Path(start_dir) if start_dir else Path.cwd()

        for path in [current] + list(current.parents):
            config_path = path / ".repo-client" / "config.json"
            if config_path.exists():
                return config_path

        return None

    @classmethod
    def create_with_backtrack(cls, start_dir: Optional[Path] = None) -> "ConfigManager":
        """Create ConfigManager by finding config through directory backtracking.

        Falls back to the default location under ``start_dir`` when no
        config file exists yet.
        """
        config_path = cls.find_config_path(start_dir)
        if config_path is None:
            start = Path(start_dir) if start_dir else Path.cwd()
            config_path = start / ".repo-client" / "config.json"
        return cls(config_path)

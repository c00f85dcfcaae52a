"""
Analysis Configuration
======================

Environment-driven settings for a routelens analysis pass.

Values are read from the process environment after an optional ``.env`` file
has been loaded with python-dotenv. Variables:

  - GITHUB_TOKEN                    Token handed to the gh CLI for remote sources
  - ROUTELENS_FRAMEWORK             Force a framework instead of detecting one
  - ROUTELENS_PROJECT_ROOT          Project root inside the repository ("" = repo root)
  - ROUTELENS_GLOB_MAX_DEPTH        Directory depth limit for remote glob walks
  - ROUTELENS_RESOLVE_CONCURRENCY   Max concurrent existence probes per import
  - ROUTELENS_GH_TIMEOUT            Per-call gh timeout in seconds
  - ROUTELENS_GH_MAX_RETRIES        gh retry attempts on timeout/server errors
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from core.errors import ConfigError

DEFAULT_GLOB_MAX_DEPTH = 20
DEFAULT_RESOLVE_CONCURRENCY = 8
DEFAULT_GH_TIMEOUT = 30.0
DEFAULT_GH_MAX_RETRIES = 3


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got '{raw}'") from None


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got '{raw}'") from None


@dataclass
class AnalysisConfig:
    """Configuration for one analysis pass."""

    github_token: str | None = None
    framework: str | None = None
    project_root: str = ""
    glob_max_depth: int = DEFAULT_GLOB_MAX_DEPTH
    resolve_concurrency: int = DEFAULT_RESOLVE_CONCURRENCY
    gh_timeout: float = DEFAULT_GH_TIMEOUT
    gh_max_retries: int = DEFAULT_GH_MAX_RETRIES

    @classmethod
    def from_env(cls, env_file: Path | None = None) -> AnalysisConfig:
        """Create config from environment variables.

        Args:
            env_file: Optional .env file loaded before reading the environment.
                Existing environment variables are not overridden.

        Raises:
            ConfigError: If a numeric variable cannot be parsed.
        """
        if env_file is not None and env_file.exists():
            load_dotenv(env_file, override=False)

        return cls(
            github_token=os.environ.get("GITHUB_TOKEN") or None,
            framework=os.environ.get("ROUTELENS_FRAMEWORK") or None,
            project_root=os.environ.get("ROUTELENS_PROJECT_ROOT", "").strip("/"),
            glob_max_depth=_env_int("ROUTELENS_GLOB_MAX_DEPTH", DEFAULT_GLOB_MAX_DEPTH),
            resolve_concurrency=_env_int(
                "ROUTELENS_RESOLVE_CONCURRENCY", DEFAULT_RESOLVE_CONCURRENCY
            ),
            gh_timeout=_env_float("ROUTELENS_GH_TIMEOUT", DEFAULT_GH_TIMEOUT),
            gh_max_retries=_env_int("ROUTELENS_GH_MAX_RETRIES", DEFAULT_GH_MAX_RETRIES),
        )

    def validate(self) -> list[str]:
        """Return a list of configuration problems (empty if valid)."""
        problems = []
        if self.glob_max_depth < 1:
            problems.append("glob_max_depth must be at least 1")
        if self.resolve_concurrency < 1:
            problems.append("resolve_concurrency must be at least 1")
        if self.gh_timeout <= 0:
            problems.append("gh_timeout must be positive")
        if self.gh_max_retries < 1:
            problems.append("gh_max_retries must be at least 1")
        if ".." in self.project_root.split("/"):
            problems.append("project_root must not contain '..'")
        return problems

    def is_valid(self) -> bool:
        """Check if config has no problems."""
        return not self.validate()

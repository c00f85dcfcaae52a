"""
GitHub CLI Executable Finder
============================

Locates the gh executable used by the remote file source.
"""

from __future__ import annotations

import os
import shutil
import subprocess

_cached_gh_path: str | None = None

# Well-known install locations checked after PATH
_FALLBACK_PATHS = {
    "posix": [
        "/opt/homebrew/bin/gh",  # Apple Silicon
        "/usr/local/bin/gh",
        "/home/linuxbrew/.linuxbrew/bin/gh",
    ],
    "nt": [
        r"%PROGRAMFILES%\GitHub CLI\gh.exe",
        r"%LOCALAPPDATA%\Programs\GitHub CLI\gh.exe",
    ],
}


def invalidate_gh_cache() -> None:
    """Forget the cached gh path (e.g. after GITHUB_CLI_PATH changed)."""
    global _cached_gh_path
    _cached_gh_path = None


def _verify_gh_executable(path: str) -> bool:
    """Return True if ``path --version`` exits cleanly."""
    try:
        result = subprocess.run(
            [path, "--version"],
            capture_output=True,
            text=True,
            encoding="utf-8",
            timeout=5,
        )
        return result.returncode == 0
    except (subprocess.TimeoutExpired, OSError):
        return False


def _candidate_paths() -> list[str]:
    candidates = []
    env_path = os.environ.get("GITHUB_CLI_PATH")
    if env_path:
        candidates.append(env_path)
    which_path = shutil.which("gh")
    if which_path:
        candidates.append(which_path)
    for raw in _FALLBACK_PATHS.get(os.name, []):
        candidates.append(os.path.expandvars(raw))
    return candidates


def get_gh_executable() -> str | None:
    """Find the gh executable.

    Priority order: GITHUB_CLI_PATH, PATH lookup, then platform install
    locations. The first verified hit is cached until
    ``invalidate_gh_cache()`` is called or the file disappears.
    """
    global _cached_gh_path

    if _cached_gh_path is not None and os.path.isfile(_cached_gh_path):
        return _cached_gh_path

    _cached_gh_path = None
    for path in _candidate_paths():
        if os.path.isfile(path) and _verify_gh_executable(path):
            _cached_gh_path = path
            break
    return _cached_gh_path

"""
File Sources
============

Async view over "a project's files", backed by local disk or the GitHub
contents API. Adapters and the import graph builder only ever talk to a
``FileSource``, so the same logic runs against a checkout or a remote ref.

All paths are relative to the source root and use forward slashes.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from core.errors import GitHubError

from .paths import basename, dirname, join_paths, normalize_path, relative_path
from .types import RepoInfo

logger = logging.getLogger(__name__)

DEFAULT_GLOB_MAX_DEPTH = 20

# Directory names never descended into by glob()
GLOB_SKIP_DIRS = {"node_modules"}


@runtime_checkable
class FileSource(Protocol):
    """Capability set for reading a project tree."""

    async def exists(self, path: str) -> bool: ...

    async def read(self, path: str) -> str:
        """Return file content. Raises FileNotFoundError if missing."""
        ...

    async def readdir(self, path: str) -> list[str]:
        """Return entry names (not paths) of a directory."""
        ...

    async def is_directory(self, path: str) -> bool: ...

    async def glob(self, pattern: str, base_path: str = "") -> list[str]:
        """Files under ``base_path`` whose relative path matches ``pattern``."""
        ...


@runtime_checkable
class ContentsClient(Protocol):
    """The slice of a GitHub client that GitHubFileSource needs."""

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: str
    ) -> str: ...

    async def get_directory_contents(
        self, owner: str, repo: str, path: str, ref: str
    ) -> list[dict[str, Any]]: ...


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """
    Convert a glob pattern to a regex over forward-slash paths.

    ``**`` matches across directories (``a/**/b`` also matches ``a/b``),
    ``*`` and ``?`` stay inside one segment.
    """
    regex = ""
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            regex += "(?:.*/)?"
            i += 3
        elif pattern.startswith("**", i):
            regex += ".*"
            i += 2
        elif pattern[i] == "*":
            regex += "[^/]*"
            i += 1
        elif pattern[i] == "?":
            regex += "[^/]"
            i += 1
        else:
            regex += re.escape(pattern[i])
            i += 1
    return re.compile(f"^{regex}$")


def matches_glob(path: str, pattern: str) -> bool:
    return bool(glob_to_regex(pattern).match(path))


def could_match_in_directory(dir_path: str, pattern: str) -> bool:
    """Whether any file below ``dir_path`` could match ``pattern``.

    Used to prune remote walks: compares the directory's segments against the
    pattern's leading segments until a ``**`` makes everything possible.
    """
    pattern_parts = pattern.split("/")
    dir_parts = dir_path.split("/") if dir_path else []

    # The last pattern segment names files, so the directory must be shallower
    if "**" not in pattern and len(dir_parts) >= len(pattern_parts):
        return False

    for pattern_part, dir_part in zip(pattern_parts, dir_parts):
        if pattern_part == "**":
            return True
        if not glob_to_regex(pattern_part).match(dir_part):
            return False
    return True


class LocalFileSource:
    """FileSource backed directly by the local filesystem."""

    def __init__(self, root_path: Path | str):
        self.root_path = Path(root_path)

    def _resolve(self, path: str) -> Path:
        relative = join_paths(path)
        return self.root_path / relative if relative else self.root_path

    async def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    async def read(self, path: str) -> str:
        full_path = self._resolve(path)
        if not full_path.is_file():
            raise FileNotFoundError(f"No such file: {path}")
        return full_path.read_text(encoding="utf-8", errors="replace")

    async def readdir(self, path: str) -> list[str]:
        full_path = self._resolve(path)
        if not full_path.is_dir():
            return []
        return sorted(os.listdir(full_path))

    async def is_directory(self, path: str) -> bool:
        return self._resolve(path).is_dir()

    async def glob(self, pattern: str, base_path: str = "") -> list[str]:
        regex = glob_to_regex(pattern)
        base = self._resolve(base_path)
        base_relative = join_paths(base_path)
        files: list[str] = []
        if not base.is_dir():
            return files

        for current, dirs, filenames in os.walk(base):
            # Skip node_modules and hidden directories
            dirs[:] = sorted(
                d for d in dirs if not d.startswith(".") and d not in GLOB_SKIP_DIRS
            )
            current_relative = Path(current).relative_to(base).as_posix()
            if current_relative == ".":
                current_relative = ""
            for filename in sorted(filenames):
                entry_relative = join_paths(current_relative, filename)
                if regex.match(entry_relative):
                    files.append(join_paths(base_relative, entry_relative))
        return files

    def __repr__(self) -> str:
        return f"LocalFileSource({str(self.root_path)!r})"


class GitHubFileSource:
    """
    FileSource backed by the GitHub contents API, with per-run caches.

    Four independent caches (content, listing, existence, is-directory) are
    keyed by ``owner/repo/ref/path``. A ref is immutable for the lifetime of
    one analysis run, so entries never expire. Listing a directory also seeds
    existence and type for every child, which makes most discovery walks cost
    one request per directory. A child missing from a listed directory (or
    any path below a known file) is answered as absent without a request.
    """

    def __init__(
        self,
        client: ContentsClient,
        owner: str,
        repo: str,
        ref: str,
        max_depth: int = DEFAULT_GLOB_MAX_DEPTH,
    ):
        self.client = client
        self.owner = owner
        self.repo = repo
        self.ref = ref
        self.max_depth = max_depth

        self._file_cache: dict[str, str] = {}
        self._dir_cache: dict[str, list[str]] = {}
        self._exists_cache: dict[str, bool] = {}
        self._is_dir_cache: dict[str, bool] = {}

    @classmethod
    def from_repo_info(
        cls,
        client: ContentsClient,
        repo_info: RepoInfo,
        max_depth: int = DEFAULT_GLOB_MAX_DEPTH,
    ) -> GitHubFileSource:
        return cls(client, repo_info.owner, repo_info.repo, repo_info.ref, max_depth)

    def _cache_key(self, path: str) -> str:
        return f"{self.owner}/{self.repo}/{self.ref}/{normalize_path(path)}"

    def _known_absent(self, path: str) -> bool:
        """True if the cached parent state rules ``path`` out without a request.

        That is the case when the parent was listed without ``path`` in it, or
        when the parent is already known not to be a directory.
        """
        path = join_paths(path)
        if not path:
            return False
        parent_key = self._cache_key(dirname(path))
        if self._is_dir_cache.get(parent_key) is False:
            return True
        siblings = self._dir_cache.get(parent_key)
        return siblings is not None and basename(path) not in siblings

    async def exists(self, path: str) -> bool:
        key = self._cache_key(path)
        if key in self._exists_cache:
            return self._exists_cache[key]
        if self._known_absent(path):
            self._exists_cache[key] = False
            self._is_dir_cache[key] = False
            return False

        try:
            await self.read(path)
            result = True
        except (FileNotFoundError, IsADirectoryError):
            # Could be a directory
            result = await self.is_directory(path)
        except GitHubError as e:
            logger.warning(f"Existence check failed for {path}: {e}")
            return False

        self._exists_cache[key] = result
        return result

    async def read(self, path: str) -> str:
        path = join_paths(path)
        key = self._cache_key(path)
        if key in self._file_cache:
            return self._file_cache[key]
        if self._is_dir_cache.get(key):
            raise IsADirectoryError(f"Is a directory: {path}")
        if self._exists_cache.get(key) is False or self._known_absent(path):
            raise FileNotFoundError(f"No such file: {path}")

        content = await self.client.get_file_content(
            self.owner, self.repo, path, self.ref
        )
        self._file_cache[key] = content
        self._exists_cache[key] = True
        self._is_dir_cache[key] = False
        return content

    async def readdir(self, path: str) -> list[str]:
        path = join_paths(path)
        key = self._cache_key(path)
        if key in self._dir_cache:
            return list(self._dir_cache[key])
        if self._is_dir_cache.get(key) is False:
            raise NotADirectoryError(f"Not a directory: {path}")
        if self._known_absent(path):
            raise FileNotFoundError(f"No such directory: {path}")

        contents = await self.client.get_directory_contents(
            self.owner, self.repo, path, self.ref
        )
        names = [item["name"] for item in contents]
        self._dir_cache[key] = names
        self._exists_cache[key] = True
        self._is_dir_cache[key] = True

        # Seed existence and type for every child
        for item in contents:
            child_key = self._cache_key(join_paths(path, item["name"]))
            self._exists_cache[child_key] = True
            self._is_dir_cache[child_key] = item.get("type") == "dir"

        logger.debug(f"Listed {path or '/'}: {len(names)} entries")
        return list(names)

    async def is_directory(self, path: str) -> bool:
        key = self._cache_key(path)
        if key in self._is_dir_cache:
            return self._is_dir_cache[key]
        if self._known_absent(path):
            self._is_dir_cache[key] = False
            return False

        try:
            await self.readdir(path)
            return True
        except (FileNotFoundError, NotADirectoryError):
            self._is_dir_cache[key] = False
            return False
        except GitHubError as e:
            logger.warning(f"Directory check failed for {path}: {e}")
            return False

    async def glob(self, pattern: str, base_path: str = "") -> list[str]:
        """
        Walk directories to emulate a recursive glob.

        The walk is bounded by ``max_depth``, guarded by a visited set, and
        prunes subtrees whose path can no longer match ``pattern``.
        """
        regex = glob_to_regex(pattern)
        base = join_paths(base_path)
        files: list[str] = []
        visited: set[str] = set()
        stack: list[tuple[str, int]] = [(base, 0)]

        while stack:
            dir_path, depth = stack.pop()
            if depth > self.max_depth or dir_path in visited:
                continue
            visited.add(dir_path)

            try:
                entries = await self.readdir(dir_path)
            except (FileNotFoundError, NotADirectoryError):
                continue

            subdirs = []
            for entry in sorted(entries):
                # Skip hidden and node_modules
                if entry.startswith(".") or entry in GLOB_SKIP_DIRS:
                    continue
                entry_path = join_paths(dir_path, entry)
                entry_relative = relative_path(base, entry_path)
                if await self.is_directory(entry_path):
                    if could_match_in_directory(entry_relative, pattern):
                        subdirs.append(entry_path)
                elif regex.match(entry_relative):
                    files.append(entry_path)

            # Reverse so the stack pops subdirectories in name order
            for subdir in reversed(subdirs):
                stack.append((subdir, depth + 1))

        return sorted(files)

    def clear_cache(self) -> None:
        self._file_cache.clear()
        self._dir_cache.clear()
        self._exists_cache.clear()
        self._is_dir_cache.clear()

    def cache_stats(self) -> dict[str, int]:
        return {
            "files": len(self._file_cache),
            "dirs": len(self._dir_cache),
            "exists": len(self._exists_cache),
            "is_dir": len(self._is_dir_cache),
        }

    def __repr__(self) -> str:
        return f"GitHubFileSource({self.owner}/{self.repo}@{self.ref})"


def create_file_source(
    root_path: Path | str | None = None,
    *,
    client: ContentsClient | None = None,
    repo_info: RepoInfo | None = None,
    max_depth: int = DEFAULT_GLOB_MAX_DEPTH,
) -> FileSource:
    """
    Create a local source for ``root_path`` or a GitHub source for ``repo_info``.

    Raises:
        ValueError: If neither (or both) a local path and a remote repo are given.
    """
    if root_path is not None and repo_info is not None:
        raise ValueError("Pass either root_path or repo_info, not both")
    if root_path is not None:
        return LocalFileSource(root_path)
    if repo_info is not None and client is not None:
        return GitHubFileSource.from_repo_info(client, repo_info, max_depth)
    raise ValueError("A local root_path or a client with repo_info is required")

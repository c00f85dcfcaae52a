#!/usr/bin/env python3
"""
Pytest Configuration and Shared Fixtures
=========================================

Provides common fixtures for the routelens test suite: throwaway project
trees on disk, adapter contexts over them, and an in-memory GitHub contents
client for the remote file source.
"""

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Add apps/backend directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "apps" / "backend"))

from frameworks.file_source import GitHubFileSource, LocalFileSource  # noqa: E402
from frameworks.types import AdapterContext, ImportGraph  # noqa: E402


# =============================================================================
# PROJECT TREE FIXTURES
# =============================================================================


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Write ``{relative_path: content}`` under ``root``.

    A path ending in "/" creates an empty directory.
    """
    for relative, content in files.items():
        target = root / relative
        if relative.endswith("/"):
            target.mkdir(parents=True, exist_ok=True)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def project(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Factory writing a file tree into tmp_path and returning its root."""

    def _make(files: dict[str, str]) -> Path:
        return write_tree(tmp_path, files)

    return _make


@pytest.fixture
def make_ctx() -> Callable[..., AdapterContext]:
    """Factory for an AdapterContext over a local directory."""

    def _make(root: Path, project_root: str = "") -> AdapterContext:
        return AdapterContext(file_source=LocalFileSource(root), project_root=project_root)

    return _make


def graph_from_edges(edges: list[tuple[str, str]]) -> ImportGraph:
    graph = ImportGraph()
    for importer, imported in edges:
        graph.add_edge(importer, imported)
    return graph


@pytest.fixture
def make_graph() -> Callable[[list[tuple[str, str]]], ImportGraph]:
    """Factory building an ImportGraph from (importer, imported) edges."""
    return graph_from_edges


# =============================================================================
# GITHUB FIXTURES
# =============================================================================


class FakeContentsClient:
    """In-memory stand-in for GitHubContentsClient.

    ``files`` maps repository paths to content; directories are implied by
    the paths. Every call is recorded in ``calls``.
    """

    def __init__(self, files: dict[str, str]):
        self.files = dict(files)
        self.calls: list[tuple[str, str]] = []
        self.dirs: set[str] = {""}
        for path in self.files:
            parts = path.split("/")
            for i in range(1, len(parts)):
                self.dirs.add("/".join(parts[:i]))

    async def get_file_content(self, owner: str, repo: str, path: str, ref: str) -> str:
        self.calls.append(("file", path))
        if path in self.dirs:
            raise IsADirectoryError(path)
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]

    async def get_directory_contents(
        self, owner: str, repo: str, path: str, ref: str
    ) -> list[dict[str, Any]]:
        self.calls.append(("dir", path))
        if path in self.files:
            raise NotADirectoryError(path)
        if path not in self.dirs:
            raise FileNotFoundError(path)

        prefix = f"{path}/" if path else ""
        entries: dict[str, str] = {}
        for candidate in sorted(self.files.keys() | self.dirs):
            if not candidate or not candidate.startswith(prefix):
                continue
            rest = candidate[len(prefix):]
            if rest and "/" not in rest:
                entries[rest] = "dir" if candidate in self.dirs else "file"
        return [
            {"name": name, "path": prefix + name, "type": kind}
            for name, kind in entries.items()
        ]


@pytest.fixture
def github_source() -> Callable[[dict[str, str]], GitHubFileSource]:
    """Factory for a GitHubFileSource over an in-memory repository."""

    def _make(files: dict[str, str], max_depth: int = 20) -> GitHubFileSource:
        return GitHubFileSource(
            FakeContentsClient(files), "acme", "shop", "main", max_depth=max_depth
        )

    return _make

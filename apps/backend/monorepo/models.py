"""
Monorepo Models
===============

Data structures describing a JavaScript monorepo and its workspaces.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MonorepoType(Enum):
    NPM_WORKSPACES = "npm-workspaces"
    YARN_WORKSPACES = "yarn-workspaces"
    PNPM_WORKSPACES = "pnpm-workspaces"
    TURBOREPO = "turborepo"
    NX = "nx"
    LERNA = "lerna"
    NONE = "none"


@dataclass
class WorkspaceInfo:
    """
    One workspace (app or package) inside a monorepo.

    Attributes:
        name: package.json name, or the directory name when unreadable
        path: Path relative to the monorepo root
        framework: Detected framework id, filled in by annotate_frameworks()
        has_visual_components: Set by filter_visual_workspaces()
    """

    name: str
    path: str
    framework: str | None = None
    has_visual_components: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "framework": self.framework,
            "has_visual_components": self.has_visual_components,
        }


@dataclass
class MonorepoConfig:
    type: MonorepoType
    root_path: str
    workspaces: list[WorkspaceInfo] = field(default_factory=list)
    patterns: list[str] = field(default_factory=list)

    def find_workspace(self, name_or_path: str) -> WorkspaceInfo | None:
        """Look a workspace up by package name, path, or trailing path segment."""
        for workspace in self.workspaces:
            if (
                workspace.name == name_or_path
                or workspace.path == name_or_path
                or workspace.path.endswith(f"/{name_or_path}")
            ):
                return workspace
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "root_path": self.root_path,
            "workspaces": [w.to_dict() for w in self.workspaces],
            "patterns": list(self.patterns),
        }

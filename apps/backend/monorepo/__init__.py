"""
Monorepo Package
================

Workspace detection for npm/yarn/pnpm workspaces, Turborepo, Nx and Lerna.
"""

from __future__ import annotations

from .detector import (
    annotate_frameworks,
    detect_monorepo,
    filter_visual_workspaces,
    resolve_workspace_patterns,
)
from .models import MonorepoConfig, MonorepoType, WorkspaceInfo

__all__ = [
    "MonorepoConfig",
    "MonorepoType",
    "WorkspaceInfo",
    "annotate_frameworks",
    "detect_monorepo",
    "filter_visual_workspaces",
    "resolve_workspace_patterns",
]

"""
Frameworks Package
==================

File-based routing adapters behind one structural contract.

Main exports:
- FrameworkAdapter: Protocol every adapter satisfies
- FrameworkRegistry / build_default_registry: name -> adapter lookup
- FrameworkDetector: picks the adapter for a project
- LocalFileSource / GitHubFileSource: where project files come from
"""

from __future__ import annotations

from .detector import DETECTION_ORDER, FrameworkDetector
from .file_source import (
    FileSource,
    GitHubFileSource,
    LocalFileSource,
    create_file_source,
)
from .nextjs import NextJsAdapter
from .nuxt import NuxtAdapter
from .react_router import ReactRouterAdapter
from .registry import FrameworkRegistry, build_default_registry
from .remix import RemixAdapter
from .sveltekit import SvelteKitAdapter
from .types import (
    AdapterContext,
    Confidence,
    FrameworkAdapter,
    FrameworkDetectionResult,
    FrameworkType,
    HttpMethod,
    ImpactReason,
    ImportAlias,
    ImportGraph,
    LoginPageInfo,
    RepoInfo,
    Route,
)

__all__ = [
    "AdapterContext",
    "Confidence",
    "DETECTION_ORDER",
    "FileSource",
    "FrameworkAdapter",
    "FrameworkDetectionResult",
    "FrameworkDetector",
    "FrameworkRegistry",
    "FrameworkType",
    "GitHubFileSource",
    "HttpMethod",
    "ImpactReason",
    "ImportAlias",
    "ImportGraph",
    "LocalFileSource",
    "LoginPageInfo",
    "NextJsAdapter",
    "NuxtAdapter",
    "ReactRouterAdapter",
    "RemixAdapter",
    "RepoInfo",
    "Route",
    "SvelteKitAdapter",
    "build_default_registry",
    "create_file_source",
]

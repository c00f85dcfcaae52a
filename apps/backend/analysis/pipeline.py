"""
Analysis Pipeline
=================

One ordered pass over a project: detect the framework, discover routes,
build the import graph, then map the changed files onto routes. The graph
is complete before any impact is computed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from core.errors import RouteAnalysisError
from frameworks.detector import FrameworkDetector
from frameworks.file_source import FileSource
from frameworks.registry import FrameworkRegistry, build_default_registry
from frameworks.types import (
    AdapterContext,
    Confidence,
    FrameworkAdapter,
    FrameworkDetectionResult,
    ImportGraph,
    RepoInfo,
    Route,
)

from .impact_mapper import ChangeImpactMapper, RouteImpact
from .import_graph import ImportGraphBuilder

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    detection: FrameworkDetectionResult
    routes: list[Route] = field(default_factory=list)
    graph: ImportGraph = field(default_factory=ImportGraph)
    impacts: dict[str, RouteImpact] = field(default_factory=dict)

    @property
    def affected_routes(self) -> list[Route]:
        return [impact.route for impact in self.impacts.values()]

    def evidence(self) -> dict[str, list[str]]:
        return {key: list(impact.files) for key, impact in self.impacts.items()}


async def analyze_changes(
    file_source: FileSource,
    changed_files: list[str],
    project_root: str = "",
    framework: str | None = None,
    registry: FrameworkRegistry | None = None,
    repo_info: RepoInfo | None = None,
    resolve_concurrency: int = 8,
) -> AnalysisResult:
    """
    Run detection, discovery, graph construction and impact mapping.

    Args:
        file_source: Where the project's files come from
        changed_files: Changed paths relative to the source root
        project_root: Subdirectory holding the app (monorepo workspace)
        framework: Force an adapter by name instead of detecting one
        registry: Adapter registry; the built-in one when omitted

    Raises:
        FrameworkNotFoundError: If ``framework`` names no registered adapter
        RouteAnalysisError: If no framework could be detected
    """
    registry = registry or build_default_registry()
    ctx = AdapterContext(
        file_source=file_source,
        project_root=project_root,
        repo_info=repo_info,
        resolve_concurrency=resolve_concurrency,
    )

    if framework:
        adapter: FrameworkAdapter = registry.get(framework)
        detection = FrameworkDetectionResult(
            framework=adapter.name,
            confidence=Confidence.HIGH,
            reason="Framework selected explicitly",
        )
    else:
        detection = await FrameworkDetector(registry).detect(ctx)
        if detection.framework is None:
            raise RouteAnalysisError(
                f"No supported framework detected under '{project_root or '/'}'"
            )
        adapter = registry.get(detection.framework)

    logger.info(f"Analyzing {project_root or 'project root'} as {adapter.display_name}")

    routes = await adapter.discover_routes(ctx)
    logger.info(f"Discovered {len(routes)} routes")

    graph = await ImportGraphBuilder(ctx, adapter).build()

    mapper = ChangeImpactMapper(adapter, ctx)
    impacts = mapper.find_affected_routes(changed_files, routes, graph)

    return AnalysisResult(detection=detection, routes=routes, graph=graph, impacts=impacts)

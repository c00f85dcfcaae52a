"""
Change Impact Mapper
====================

Turns a set of changed files into per-route evidence: which routes each file
implicates, and why (direct, layout cascade or transitive import).

The mapper only collects evidence. Deciding what an amount of evidence means
(priorities, test budgets) is left to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from frameworks.paths import normalize_path
from frameworks.types import (
    AdapterContext,
    FrameworkAdapter,
    ImpactReason,
    ImportGraph,
    Route,
)

logger = logging.getLogger(__name__)

__all__ = ["ChangeImpactMapper", "ImpactReason", "RouteImpact"]


@dataclass
class RouteImpact:
    """All evidence gathered against one route."""

    route: Route
    files: list[str] = field(default_factory=list)
    reasons: list[ImpactReason] = field(default_factory=list)

    def add(self, file_path: str, reason: ImpactReason) -> None:
        if file_path not in self.files:
            self.files.append(file_path)
        if reason not in self.reasons:
            self.reasons.append(reason)

    @property
    def reason_count(self) -> int:
        return len(self.reasons)


class ChangeImpactMapper:
    """Applies an adapter's impact rules to every changed file."""

    def __init__(self, adapter: FrameworkAdapter, ctx: AdapterContext | None = None):
        self.adapter = adapter
        self.ctx = ctx
        self._impacts: dict[str, RouteImpact] = {}

    def _to_project_path(self, file_path: str) -> str | None:
        path = normalize_path(file_path)
        if self.ctx is None or not self.ctx.project_root:
            return path
        return self.ctx.to_project_path(path)

    def map_file(
        self, file_path: str, routes: list[Route], graph: ImportGraph
    ) -> list[tuple[Route, ImpactReason]]:
        """Routes implicated by one changed file, each with its reason."""
        path = self._to_project_path(file_path)
        if path is None:
            logger.debug(f"Ignoring {file_path}: outside project root")
            return []
        return self.adapter.explain_file_impact(path, routes, graph)

    def find_affected_routes(
        self, changed_files: list[str], routes: list[Route], graph: ImportGraph
    ) -> dict[str, RouteImpact]:
        """
        Aggregate evidence over all changed files.

        Returns a map keyed by ``Route.key``. Routes appear in the order they
        were first implicated; each route lists its contributing files in
        insertion order without repeats.
        """
        impacts: dict[str, RouteImpact] = {}
        for file_path in changed_files:
            path = self._to_project_path(file_path)
            if path is None:
                logger.debug(f"Ignoring {file_path}: outside project root")
                continue
            for route, reason in self.adapter.explain_file_impact(path, routes, graph):
                impact = impacts.get(route.key)
                if impact is None:
                    impact = impacts[route.key] = RouteImpact(route=route)
                impact.add(path, reason)

        logger.info(
            f"{len(changed_files)} changed files affect {len(impacts)} of {len(routes)} routes"
        )
        self._impacts = impacts
        return impacts

    def evidence(self) -> dict[str, list[str]]:
        """Route key -> contributing files from the last ``find_affected_routes``."""
        return {key: list(impact.files) for key, impact in self._impacts.items()}

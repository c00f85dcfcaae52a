"""
React Router Adapter
====================

React Router v7 file routes (the Remix successor). Route files follow the
flat-file convention in flat_routes; detection steps aside when a Remix
dependency is present so that the Remix adapter claims those projects.
"""

from __future__ import annotations

import logging
import re

from . import defaults, flat_routes
from .types import (
    AdapterContext,
    Confidence,
    FrameworkDetectionResult,
    FrameworkType,
    ImpactReason,
    ImportAlias,
    ImportGraph,
    LoginPageInfo,
    Route,
)

logger = logging.getLogger(__name__)

REACT_ROUTER_LAYOUT_PATTERN = re.compile(r"^(layout|_layout)\.(tsx?|jsx?)$")
REACT_ROUTER_DEPENDENCIES = ("react-router", "react-router-dom", "@react-router/dev")


def _has_remix_dependency(package: dict | None) -> bool:
    if not package:
        return False
    for section in ("dependencies", "devDependencies"):
        deps = package.get(section)
        if isinstance(deps, dict) and any(name.startswith("@remix-run/") for name in deps):
            return True
    return False


class ReactRouterAdapter:
    """Adapter for React Router v7 framework-mode projects."""

    name = FrameworkType.REACT_ROUTER.value
    display_name = "React Router"
    routes_directory = "app/routes"

    def __init__(self) -> None:
        self.page_extensions = list(flat_routes.ROUTE_MODULE_EXTENSIONS)
        self.import_aliases = [
            ImportAlias("~/", "app/"),
            ImportAlias("@/", "src/"),
        ]

    async def detect(self, ctx: AdapterContext) -> FrameworkDetectionResult:
        package = await defaults.read_package_json(ctx)
        if _has_remix_dependency(package):
            return FrameworkDetectionResult(
                framework=None,
                confidence=Confidence.NONE,
                reason="Remix dependency present; handled by the Remix adapter",
            )

        version = None
        for dependency in REACT_ROUTER_DEPENDENCIES:
            version = defaults.dependency_version(package, dependency)
            if version:
                break

        found = {
            "react-router.config": await defaults.any_exists(
                ctx, ["react-router.config.ts", "react-router.config.js"]
            )
            is not None,
            "app/routes/": await defaults.is_directory(ctx, self.routes_directory),
            "react-router dependency": version is not None,
        }
        return defaults.detection_result(
            self.name, self.display_name, found, version=version
        )

    async def discover_routes(self, ctx: AdapterContext) -> list[Route]:
        routes = await flat_routes.discover_flat_routes(
            ctx, self.routes_directory, REACT_ROUTER_LAYOUT_PATTERN
        )
        logger.debug(f"React Router discovery found {len(routes)} routes")
        return defaults.finalize_routes(routes)

    def _is_folder_route(self, route: Route) -> bool:
        return flat_routes.is_folder_route(route, self.routes_directory)

    def _layout_scope(self, file_path: str) -> str | None:
        return flat_routes.flat_layout_scope(file_path, self.routes_directory)

    def map_file_to_routes(
        self, file_path: str, routes: list[Route], graph: ImportGraph
    ) -> list[Route]:
        return defaults.map_file_to_routes(
            self,
            file_path,
            routes,
            graph,
            is_folder_route=self._is_folder_route,
            layout_scope=self._layout_scope,
        )

    def explain_file_impact(
        self, file_path: str, routes: list[Route], graph: ImportGraph
    ) -> list[tuple[Route, ImpactReason]]:
        return defaults.explain_file_impact(
            self,
            file_path,
            routes,
            graph,
            is_folder_route=self._is_folder_route,
            layout_scope=self._layout_scope,
        )

    async def resolve_import(
        self, specifier: str, from_file: str, ctx: AdapterContext
    ) -> str | None:
        return await defaults.resolve_import(self, specifier, from_file, ctx)

    async def find_login_pages(self, ctx: AdapterContext) -> list[LoginPageInfo]:
        return await defaults.find_login_pages(ctx, self.login_page_candidates)

    def login_page_candidates(self, pattern: str) -> list[str]:
        return flat_routes.login_candidates(self.routes_directory, pattern)

    def get_routes_directory(self) -> str:
        return self.routes_directory

    def is_route_file(self, file_path: str) -> bool:
        return flat_routes.is_flat_route_file(file_path, self.routes_directory)

    def is_layout_file(self, file_path: str) -> bool:
        return flat_routes.is_flat_layout_file(
            file_path, self.routes_directory, REACT_ROUTER_LAYOUT_PATTERN
        )

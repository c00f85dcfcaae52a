"""
Remix Adapter
=============

Handles Remix flat-file routing under app/routes (see flat_routes for the
naming rules). Route modules are scanned for loader/action exports; a
module without a default export is a resource route.
"""

from __future__ import annotations

import logging
import re

from . import defaults, flat_routes
from .types import (
    AdapterContext,
    FrameworkDetectionResult,
    FrameworkType,
    ImpactReason,
    ImportAlias,
    ImportGraph,
    LoginPageInfo,
    Route,
)

logger = logging.getLogger(__name__)

REMIX_LAYOUT_PATTERN = re.compile(r"^(layout|_layout)\.(tsx?|jsx?)$")
REMIX_DEPENDENCIES = ("@remix-run/react", "@remix-run/node")


class RemixAdapter:
    """Adapter for Remix projects."""

    name = FrameworkType.REMIX.value
    display_name = "Remix"
    routes_directory = "app/routes"
    layout_pattern = REMIX_LAYOUT_PATTERN

    def __init__(self) -> None:
        self.page_extensions = list(flat_routes.ROUTE_MODULE_EXTENSIONS)
        self.import_aliases = [
            ImportAlias("~/", "app/"),
            ImportAlias("@remix-run/", is_internal=True),
        ]

    async def detect(self, ctx: AdapterContext) -> FrameworkDetectionResult:
        package = await defaults.read_package_json(ctx)
        version = None
        for dependency in REMIX_DEPENDENCIES:
            version = defaults.dependency_version(package, dependency)
            if version:
                break

        found = {
            "remix config": await self._has_remix_config(ctx),
            "app/routes/": await defaults.is_directory(ctx, self.routes_directory),
            "@remix-run dependency": version is not None,
        }
        return defaults.detection_result(
            self.name, self.display_name, found, version=version
        )

    @staticmethod
    async def _has_remix_config(ctx: AdapterContext) -> bool:
        config = await defaults.any_exists(
            ctx,
            ["remix.config.js", "remix.config.ts", "remix.config.cjs", "remix.config.mjs"],
        )
        if config:
            return True

        # Remix on Vite configures itself through the vite plugin
        vite_config = await defaults.any_exists(
            ctx, ["vite.config.ts", "vite.config.js", "vite.config.mjs"]
        )
        if not vite_config:
            return False
        try:
            content = await ctx.file_source.read(ctx.source_path(vite_config))
        except OSError as e:
            logger.debug(f"Could not read {vite_config}: {e}")
            return False
        return "@remix-run/dev" in content

    async def discover_routes(self, ctx: AdapterContext) -> list[Route]:
        routes = await flat_routes.discover_flat_routes(
            ctx, self.routes_directory, self.layout_pattern
        )
        logger.debug(f"{self.display_name} discovery found {len(routes)} routes")
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
        return flat_routes.login_candidates(
            self.routes_directory, pattern, pathless_prefix="_auth"
        )

    def get_routes_directory(self) -> str:
        return self.routes_directory

    def is_route_file(self, file_path: str) -> bool:
        return flat_routes.is_flat_route_file(file_path, self.routes_directory)

    def is_layout_file(self, file_path: str) -> bool:
        return flat_routes.is_flat_layout_file(
            file_path, self.routes_directory, self.layout_pattern
        )

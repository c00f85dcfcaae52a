"""
SvelteKit Adapter
=================

Handles SvelteKit's directory-based routing:
- Routes in src/routes/
- Page files: +page.svelte, +page.ts, +page.server.ts
- Layout files: +layout.svelte, +layout.ts, +layout.server.ts
- API endpoints: +server.ts (exported GET/POST/... handlers)
- Route groups: (groupName)
- Dynamic routes: [param], [...rest], [[optional]] (kept as-is in the URL)
"""

from __future__ import annotations

import logging
import re

from . import defaults
from .paths import (
    basename,
    extract_route_group,
    is_auth_protected_path,
    is_route_group,
    join_paths,
    relative_path,
    to_url_path,
)
from .server_analysis import extract_api_methods, extract_form_actions
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

SERVER_ENDPOINT_PATTERN = re.compile(r"^\+server\.(ts|js)$")
PAGE_SERVER_PATTERN = re.compile(r"^\+page\.server\.(ts|js)$")
LAYOUT_SERVER_PATTERN = re.compile(r"^\+layout\.server\.(ts|js)$")


class SvelteKitAdapter:
    """Adapter for SvelteKit projects."""

    name = FrameworkType.SVELTEKIT.value
    display_name = "SvelteKit"
    routes_directory = "src/routes"

    def __init__(self) -> None:
        self.page_extensions = [".svelte"]
        self.import_aliases = [
            ImportAlias("$lib/", "src/lib/"),
            ImportAlias("$lib", "src/lib"),
            ImportAlias("$app/", is_internal=True),
            ImportAlias("$app", is_internal=True),
            ImportAlias("$env/", is_internal=True),
            ImportAlias("$env", is_internal=True),
            ImportAlias("$service-worker", is_internal=True),
        ]

    async def detect(self, ctx: AdapterContext) -> FrameworkDetectionResult:
        package = await defaults.read_package_json(ctx)
        version = defaults.dependency_version(package, "@sveltejs/kit")

        found = {
            "svelte.config": await defaults.any_exists(
                ctx, ["svelte.config.js", "svelte.config.ts"]
            )
            is not None,
            "src/routes/": await defaults.is_directory(ctx, self.routes_directory),
            "@sveltejs/kit dependency": version is not None,
        }
        return defaults.detection_result(
            self.name, self.display_name, found, version=version
        )

    async def discover_routes(self, ctx: AdapterContext) -> list[Route]:
        routes: list[Route] = []
        if not await defaults.is_directory(ctx, self.routes_directory):
            return routes

        visited: set[str] = set()
        stack = [self.routes_directory]
        while stack:
            directory = stack.pop()
            if directory in visited:
                continue
            visited.add(directory)

            try:
                entries = sorted(await ctx.file_source.readdir(ctx.source_path(directory)))
            except OSError as e:
                logger.debug(f"Skipping unreadable directory {directory}: {e}")
                continue

            page_files: list[str] = []
            server_files: list[str] = []
            has_layout = False
            subdirs: list[str] = []

            for entry in entries:
                entry_path = join_paths(directory, entry)
                if await ctx.file_source.is_directory(ctx.source_path(entry_path)):
                    subdirs.append(entry_path)
                    continue
                if entry.startswith("+page"):
                    page_files.append(entry)
                elif entry.startswith("+layout"):
                    has_layout = True
                if (
                    SERVER_ENDPOINT_PATTERN.match(entry)
                    or PAGE_SERVER_PATTERN.match(entry)
                    or LAYOUT_SERVER_PATTERN.match(entry)
                ):
                    server_files.append(entry)

            stack.extend(reversed(subdirs))

            has_endpoint = any(SERVER_ENDPOINT_PATTERN.match(f) for f in server_files)
            if not page_files and not has_endpoint:
                continue

            relative = relative_path(self.routes_directory, directory)
            url_path = self._directory_to_url_path(relative)
            route = Route(
                path=url_path,
                directory=directory,
                has_layout=has_layout,
                is_auth_protected=is_auth_protected_path(relative),
                page_files=page_files,
                is_dynamic="[" in url_path,
                group=extract_route_group(relative),
                server_files=server_files,
            )
            await self._analyze_server_files(ctx, route)
            routes.append(route)

        logger.debug(f"SvelteKit discovery found {len(routes)} routes")
        return defaults.finalize_routes(routes)

    async def _analyze_server_files(self, ctx: AdapterContext, route: Route) -> None:
        for server_file in route.server_files:
            is_endpoint = bool(SERVER_ENDPOINT_PATTERN.match(server_file))
            is_page_server = bool(PAGE_SERVER_PATTERN.match(server_file))
            if not (is_endpoint or is_page_server):
                continue

            path = join_paths(route.directory, server_file)
            try:
                content = await ctx.file_source.read(ctx.source_path(path))
            except OSError as e:
                logger.warning(f"Could not read server file {path}: {e}")
                continue

            if is_endpoint:
                route.has_api_endpoint = True
                for method in extract_api_methods(content):
                    if method not in route.api_methods:
                        route.api_methods.append(method)
            else:
                for action in extract_form_actions(content):
                    if action not in route.actions:
                        route.actions.append(action)
                route.has_form_handler = bool(route.actions)

    @staticmethod
    def _directory_to_url_path(relative: str) -> str:
        """
        Examples:
        - "" -> "/"
        - "(auth)/dashboard" -> "/dashboard"
        - "blog/[slug]" -> "/blog/[slug]"
        """
        return to_url_path([s for s in relative.split("/") if not is_route_group(s)])

    def map_file_to_routes(
        self, file_path: str, routes: list[Route], graph: ImportGraph
    ) -> list[Route]:
        return defaults.map_file_to_routes(self, file_path, routes, graph)

    def explain_file_impact(
        self, file_path: str, routes: list[Route], graph: ImportGraph
    ) -> list[tuple[Route, ImpactReason]]:
        return defaults.explain_file_impact(self, file_path, routes, graph)

    async def resolve_import(
        self, specifier: str, from_file: str, ctx: AdapterContext
    ) -> str | None:
        return await defaults.resolve_import(self, specifier, from_file, ctx)

    async def find_login_pages(self, ctx: AdapterContext) -> list[LoginPageInfo]:
        return await defaults.find_login_pages(ctx, self.login_page_candidates)

    def login_page_candidates(self, pattern: str) -> list[str]:
        candidates = [f"{self.routes_directory}/{pattern}/+page.svelte"]
        if not pattern.startswith("("):
            candidates.append(f"{self.routes_directory}/(auth)/{pattern}/+page.svelte")
            candidates.append(f"{self.routes_directory}/(public)/{pattern}/+page.svelte")
        return candidates

    def get_routes_directory(self) -> str:
        return self.routes_directory

    def is_route_file(self, file_path: str) -> bool:
        name = basename(file_path)
        return name.startswith(("+page", "+error", "+server"))

    def is_layout_file(self, file_path: str) -> bool:
        return basename(file_path).startswith("+layout")

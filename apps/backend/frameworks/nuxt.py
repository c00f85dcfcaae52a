"""
Nuxt Adapter
============

Handles Nuxt 3 file-based routing:
- Routes in pages/, every .vue file is a page
- index.vue collapses to its folder
- Dynamic routes: [id] -> :id, [...slug] -> :slug*, [[id]] -> :id?
- Nested routes: pages/parent.vue renders pages/parent/**
- Layouts in layouts/ plus app.vue wrap every page
"""

from __future__ import annotations

import logging

from . import defaults
from .paths import (
    basename,
    dirname,
    extract_route_group,
    is_auth_protected_path,
    is_route_group,
    is_under,
    join_paths,
    normalize_path,
    parse_bracket_segment,
    relative_path,
    to_url_path,
)
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

PAGE_EXTENSION = ".vue"


def translate_segment(segment: str) -> str:
    """Nuxt URL form of one pages/ path segment."""
    if is_route_group(segment):
        return ""
    bracket = parse_bracket_segment(segment)
    if bracket is None:
        return segment
    kind, param = bracket
    if kind in ("catch_all", "optional_catch_all"):
        return f":{param}*"
    if kind == "optional":
        return f":{param}?"
    return f":{param}"


class NuxtAdapter:
    """Adapter for Nuxt projects."""

    name = FrameworkType.NUXT.value
    display_name = "Nuxt"
    routes_directory = "pages"
    layouts_directory = "layouts"

    def __init__(self) -> None:
        self.page_extensions = [PAGE_EXTENSION]
        self.import_aliases = [
            ImportAlias("~~/", ""),
            ImportAlias("@@/", ""),
            ImportAlias("~/", ""),
            ImportAlias("@/", ""),
            ImportAlias("#imports", is_internal=True),
            ImportAlias("#app", is_internal=True),
            ImportAlias("#components", is_internal=True),
            ImportAlias("#build", is_internal=True),
        ]

    async def detect(self, ctx: AdapterContext) -> FrameworkDetectionResult:
        package = await defaults.read_package_json(ctx)
        version = defaults.dependency_version(package, "nuxt")

        found = {
            "nuxt.config": await defaults.any_exists(
                ctx, ["nuxt.config.ts", "nuxt.config.js", "nuxt.config.mjs"]
            )
            is not None,
            "pages/": await defaults.is_directory(ctx, self.routes_directory),
            "nuxt dependency": version is not None,
        }
        return defaults.detection_result(
            self.name, self.display_name, found, version=version
        )

    async def discover_routes(self, ctx: AdapterContext) -> list[Route]:
        if not await defaults.is_directory(ctx, self.routes_directory):
            return []

        page_paths = await self._collect_pages(ctx)
        has_layouts = await defaults.is_directory(ctx, self.layouts_directory)
        known = set(page_paths)

        routes: list[Route] = []
        for page_path in page_paths:
            directory = dirname(page_path)
            file_name = basename(page_path)
            relative = relative_path(self.routes_directory, directory)
            base_name = file_name[: -len(PAGE_EXTENSION)]

            segments = [s for s in relative.split("/") if s]
            if base_name != "index":
                segments.append(base_name)
            url_path = to_url_path([translate_segment(s) for s in segments])

            # pages/blog.vue is the parent view of everything in pages/blog/
            has_parent_view = (
                directory != self.routes_directory
                and f"{directory}{PAGE_EXTENSION}" in known
            )
            routes.append(
                Route(
                    path=url_path,
                    directory=directory,
                    has_layout=has_layouts or has_parent_view,
                    is_auth_protected=is_auth_protected_path("/".join(segments)),
                    page_files=[file_name],
                    is_dynamic=any(parse_bracket_segment(s) for s in segments),
                    group=extract_route_group(relative),
                )
            )

        logger.debug(f"Nuxt discovery found {len(routes)} pages")
        return defaults.finalize_routes(routes)

    async def _collect_pages(self, ctx: AdapterContext) -> list[str]:
        pages: list[str] = []
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

            subdirs = []
            for entry in entries:
                entry_path = join_paths(directory, entry)
                if await ctx.file_source.is_directory(ctx.source_path(entry_path)):
                    subdirs.append(entry_path)
                elif entry.endswith(PAGE_EXTENSION):
                    pages.append(entry_path)
            stack.extend(reversed(subdirs))
        return pages

    @staticmethod
    def _is_folder_route(route: Route) -> bool:
        return False

    def _layout_scope(self, file_path: str) -> str | None:
        # Global layouts and app.vue wrap every page
        return ""

    def map_file_to_routes(
        self, file_path: str, routes: list[Route], graph: ImportGraph
    ) -> list[Route]:
        return [route for route, _ in self.explain_file_impact(file_path, routes, graph)]

    def explain_file_impact(
        self, file_path: str, routes: list[Route], graph: ImportGraph
    ) -> list[tuple[Route, ImpactReason]]:
        results = defaults.explain_file_impact(
            self,
            file_path,
            routes,
            graph,
            is_folder_route=self._is_folder_route,
            layout_scope=self._layout_scope,
        )

        path = normalize_path(file_path)
        if not (self.is_route_file(path) and path.endswith(PAGE_EXTENSION)):
            return results

        # A parent view also affects its nested child pages
        child_directory = path[: -len(PAGE_EXTENSION)]
        seen = {route.key for route, _ in results}
        for route in routes:
            if route.key not in seen and is_under(route.directory, child_directory):
                seen.add(route.key)
                results.append((route, ImpactReason.LAYOUT))
        return results

    async def resolve_import(
        self, specifier: str, from_file: str, ctx: AdapterContext
    ) -> str | None:
        return await defaults.resolve_import(self, specifier, from_file, ctx)

    async def find_login_pages(self, ctx: AdapterContext) -> list[LoginPageInfo]:
        return await defaults.find_login_pages(ctx, self.login_page_candidates)

    def login_page_candidates(self, pattern: str) -> list[str]:
        candidates = [
            f"{self.routes_directory}/{pattern}.vue",
            f"{self.routes_directory}/{pattern}/index.vue",
        ]
        if not pattern.startswith("("):
            candidates.append(f"{self.routes_directory}/(auth)/{pattern}.vue")
            candidates.append(f"{self.routes_directory}/(public)/{pattern}.vue")
        return candidates

    def get_routes_directory(self) -> str:
        return self.routes_directory

    def is_route_file(self, file_path: str) -> bool:
        path = normalize_path(file_path)
        return path.startswith(self.routes_directory + "/") and path.endswith(PAGE_EXTENSION)

    def is_layout_file(self, file_path: str) -> bool:
        path = normalize_path(file_path)
        if path == "app.vue":
            return True
        return path.startswith(self.layouts_directory + "/") and path.endswith(PAGE_EXTENSION)

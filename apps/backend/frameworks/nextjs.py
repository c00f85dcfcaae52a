"""
Next.js Adapter
===============

Handles both Next.js routers, alone or side by side:

App Router (app/ or src/app/):
- Page files: page.tsx, page.ts, page.jsx, page.js, page.mdx, page.md
- Layout files: layout.tsx (template.tsx also wraps children)
- Route handlers: route.ts exporting GET/POST/... outside api/ (e.g. rss/route.ts)
- Route groups (group) and parallel slots @slot add no URL segment
- api/ folders, private folders _name and intercepting segments (.)x are skipped

Pages Router (pages/ or src/pages/):
- Every script file is a page; index collapses to its folder
- _app, _document, _error and pages/api/** are not pages
"""

from __future__ import annotations

import logging
import re

from . import defaults
from .paths import (
    basename,
    dirname,
    extract_route_group,
    is_auth_protected_path,
    is_intercepting_segment,
    is_route_group,
    is_under,
    join_paths,
    relative_path,
    to_url_path,
)
from .server_analysis import extract_api_methods
from .types import (
    NEXTJS_HTTP_METHODS,
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

APP_PAGE_PATTERN = re.compile(r"^page\.(tsx?|jsx?|mdx?)$")
APP_LAYOUT_PATTERN = re.compile(r"^(layout|template)\.(tsx?|jsx?)$")
APP_ROUTE_HANDLER_PATTERN = re.compile(r"^route\.(tsx?|jsx?)$")
PAGES_FILE_PATTERN = re.compile(r"\.(tsx?|jsx?)$")
PAGES_LAYOUT_PATTERN = re.compile(r"^_(app|document)\.(tsx?|jsx?)$")

APP_ROOTS = ["app", "src/app"]
PAGES_ROOTS = ["pages", "src/pages"]

ROUTER_FRAMEWORKS = {
    "app": FrameworkType.NEXTJS_APP.value,
    "pages": FrameworkType.NEXTJS_PAGES.value,
    "hybrid": FrameworkType.NEXTJS.value,
}

DISPLAY_NAMES = {
    "app": "Next.js (App Router)",
    "pages": "Next.js (Pages Router)",
    "hybrid": "Next.js",
}


class NextJsAdapter:
    """Adapter for Next.js; ``router_type`` is "app", "pages" or "hybrid"."""

    def __init__(self, router_type: str = "hybrid") -> None:
        if router_type not in ROUTER_FRAMEWORKS:
            raise ValueError(f"Unknown Next.js router type: {router_type}")
        self.router_type = router_type
        self.name = ROUTER_FRAMEWORKS[router_type]
        self.display_name = DISPLAY_NAMES[router_type]
        self.page_extensions = [".tsx", ".ts", ".jsx", ".js"]
        self.import_aliases = [
            ImportAlias("@/", "src/"),
            ImportAlias("~/", "src/"),
            ImportAlias("next/", is_internal=True),
        ]

    @property
    def uses_app_router(self) -> bool:
        return self.router_type in ("app", "hybrid")

    @property
    def uses_pages_router(self) -> bool:
        return self.router_type in ("pages", "hybrid")

    async def detect(self, ctx: AdapterContext) -> FrameworkDetectionResult:
        package = await defaults.read_package_json(ctx)
        version = defaults.dependency_version(package, "next")

        has_config = await defaults.any_exists(
            ctx,
            ["next.config.js", "next.config.mjs", "next.config.cjs", "next.config.ts"],
        )
        app_root = await self._find_root(ctx, APP_ROOTS)
        pages_root = await self._find_root(ctx, PAGES_ROOTS)

        router_type = None
        if app_root and pages_root:
            router_type = "hybrid"
        elif app_root:
            router_type = "app"
        elif pages_root:
            router_type = "pages"

        found = {
            "next.config": has_config is not None,
            f"{router_type or 'app/pages'} router directory": router_type is not None,
            "next dependency": version is not None,
        }
        framework = ROUTER_FRAMEWORKS[router_type] if router_type else self.name
        return defaults.detection_result(
            framework, "Next.js", found, version=version, router_type=router_type
        )

    @staticmethod
    async def _find_root(ctx: AdapterContext, candidates: list[str]) -> str | None:
        for candidate in candidates:
            if await defaults.is_directory(ctx, candidate):
                return candidate
        return None

    async def discover_routes(self, ctx: AdapterContext) -> list[Route]:
        routes: list[Route] = []

        if self.uses_app_router:
            app_root = await self._find_root(ctx, APP_ROOTS)
            if app_root:
                routes.extend(await self._discover_app_routes(ctx, app_root))

        if self.uses_pages_router:
            pages_root = await self._find_root(ctx, PAGES_ROOTS)
            if pages_root:
                app_paths = {r.path for r in routes}
                for route in await self._discover_pages_routes(ctx, pages_root):
                    # App Router wins when both routers define a path
                    if route.path not in app_paths:
                        routes.append(route)

        logger.debug(f"{self.display_name} discovery found {len(routes)} routes")
        return defaults.finalize_routes(routes)

    async def _discover_app_routes(self, ctx: AdapterContext, app_root: str) -> list[Route]:
        routes: list[Route] = []
        visited: set[str] = set()
        stack = [app_root]

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
            handler_files: list[str] = []
            has_layout = False
            subdirs: list[str] = []

            for entry in entries:
                entry_path = join_paths(directory, entry)
                if await ctx.file_source.is_directory(ctx.source_path(entry_path)):
                    # API, private and intercepted folders hold no pages
                    if entry == "api" or entry.startswith("_"):
                        continue
                    if is_intercepting_segment(entry):
                        continue
                    subdirs.append(entry_path)
                elif APP_PAGE_PATTERN.match(entry):
                    page_files.append(entry)
                elif APP_LAYOUT_PATTERN.match(entry):
                    has_layout = True
                elif APP_ROUTE_HANDLER_PATTERN.match(entry):
                    handler_files.append(entry)

            stack.extend(reversed(subdirs))

            if not page_files and not handler_files:
                continue

            relative = relative_path(app_root, directory)
            url_path = self._app_directory_to_url_path(relative)
            route = Route(
                path=url_path,
                directory=directory,
                has_layout=has_layout,
                is_auth_protected=is_auth_protected_path(relative),
                page_files=page_files or handler_files,
                is_dynamic="[" in url_path,
                group=extract_route_group(relative),
            )
            if handler_files:
                await self._analyze_route_handler(ctx, route, handler_files[0])
            routes.append(route)

        return routes

    async def _analyze_route_handler(
        self, ctx: AdapterContext, route: Route, handler_file: str
    ) -> None:
        route.has_api_endpoint = True
        route.server_files.append(handler_file)
        path = join_paths(route.directory, handler_file)
        try:
            content = await ctx.file_source.read(ctx.source_path(path))
        except OSError as e:
            logger.warning(f"Could not read route handler {path}: {e}")
            return
        route.api_methods.extend(extract_api_methods(content, NEXTJS_HTTP_METHODS))

    @staticmethod
    def _app_directory_to_url_path(relative: str) -> str:
        return to_url_path(
            [
                s
                for s in relative.split("/")
                if not is_route_group(s) and not s.startswith("@")
            ]
        )

    async def _discover_pages_routes(
        self, ctx: AdapterContext, pages_root: str
    ) -> list[Route]:
        routes: list[Route] = []
        has_app_file = False
        visited: set[str] = set()
        stack = [pages_root]

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
                    if directory == pages_root and entry == "api":
                        continue
                    subdirs.append(entry_path)
                    continue
                if directory == pages_root and PAGES_LAYOUT_PATTERN.match(entry):
                    has_app_file = True
                if not self._is_pages_page_file(entry):
                    continue

                relative = relative_path(pages_root, directory)
                url_path = self._pages_file_to_url_path(relative, entry)
                routes.append(
                    Route(
                        path=url_path,
                        directory=directory,
                        is_auth_protected=is_auth_protected_path(url_path.lstrip("/")),
                        page_files=[entry],
                        is_dynamic="[" in url_path,
                    )
                )
            stack.extend(reversed(subdirs))

        for route in routes:
            route.has_layout = has_app_file
        return routes

    @staticmethod
    def _is_pages_page_file(file_name: str) -> bool:
        return (
            bool(PAGES_FILE_PATTERN.search(file_name))
            and not file_name.endswith(".d.ts")
            and not file_name.startswith("_")
        )

    @staticmethod
    def _pages_file_to_url_path(relative: str, file_name: str) -> str:
        """
        Examples:
        - ("", "index.tsx") -> "/"
        - ("blog", "index.tsx") -> "/blog"
        - ("blog", "[slug].tsx") -> "/blog/[slug]"
        """
        base_name = PAGES_FILE_PATTERN.sub("", file_name)
        segments = [s for s in relative.split("/") if s]
        if base_name != "index":
            segments.append(base_name)
        return to_url_path(segments)

    @staticmethod
    def _is_app_route(route: Route) -> bool:
        return not any(is_under(route.directory, root) for root in PAGES_ROOTS)

    def map_file_to_routes(
        self, file_path: str, routes: list[Route], graph: ImportGraph
    ) -> list[Route]:
        return defaults.map_file_to_routes(
            self, file_path, routes, graph, is_folder_route=self._is_app_route
        )

    def explain_file_impact(
        self, file_path: str, routes: list[Route], graph: ImportGraph
    ) -> list[tuple[Route, ImpactReason]]:
        return defaults.explain_file_impact(
            self, file_path, routes, graph, is_folder_route=self._is_app_route
        )

    async def resolve_import(
        self, specifier: str, from_file: str, ctx: AdapterContext
    ) -> str | None:
        return await defaults.resolve_import(self, specifier, from_file, ctx)

    async def find_login_pages(self, ctx: AdapterContext) -> list[LoginPageInfo]:
        return await defaults.find_login_pages(ctx, self.login_page_candidates)

    def login_page_candidates(self, pattern: str) -> list[str]:
        candidates = []
        if self.uses_pages_router:
            candidates.append(f"pages/{pattern}.tsx")
            candidates.append(f"pages/{pattern}/index.tsx")
        if self.uses_app_router:
            candidates.append(f"app/{pattern}/page.tsx")
            if not pattern.startswith("("):
                candidates.append(f"app/(auth)/{pattern}/page.tsx")
                candidates.append(f"app/(public)/{pattern}/page.tsx")
        return candidates

    def get_routes_directory(self) -> str:
        return "pages" if self.router_type == "pages" else "app"

    def is_route_file(self, file_path: str) -> bool:
        name = basename(file_path)
        if APP_PAGE_PATTERN.match(name) or APP_ROUTE_HANDLER_PATTERN.match(name):
            return True
        for root in PAGES_ROOTS:
            if is_under(file_path, root) and not is_under(file_path, f"{root}/api"):
                return self._is_pages_page_file(name)
        return False

    def is_layout_file(self, file_path: str) -> bool:
        name = basename(file_path)
        if APP_LAYOUT_PATTERN.match(name):
            return True
        return dirname(file_path) in PAGES_ROOTS and bool(PAGES_LAYOUT_PATTERN.match(name))

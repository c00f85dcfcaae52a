"""
Shared Adapter Behaviour
========================

Composable default implementations used by every framework adapter:

- explain_file_impact / map_file_to_routes: direct, layout-cascade and
  import-graph rules for a changed file
- resolve_import / resolve_to_actual_file: alias rewriting, relative
  resolution and concurrent extension/index probing
- find_login_pages: login page lookup across common URL patterns
- detection helpers: package.json dependencies and indicator scoring

Adapters call these functions with their own predicates instead of
inheriting them.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from collections.abc import Awaitable, Callable, Iterable

from .paths import (
    dirname,
    is_under,
    normalize_path,
    resolve_relative,
    strip_route_groups,
)
from .types import (
    AdapterContext,
    Confidence,
    FrameworkDetectionResult,
    ImpactReason,
    ImportAlias,
    ImportGraph,
    LoginPageInfo,
    Route,
)

logger = logging.getLogger(__name__)

COMMON_LOGIN_PATTERNS = [
    "login",
    "signin",
    "sign-in",
    "auth/login",
    "(auth)/login",
    "(public)/login",
]

# Probed after the adapter's own page extensions
SCRIPT_EXTENSIONS = [".ts", ".js", ".tsx", ".jsx"]

# TypeScript ESM imports name the emitted .js file
_TS_SOURCE_FOR_JS = {".js": [".ts", ".tsx"], ".jsx": [".tsx"], ".mjs": [".mts"]}


# =============================================================================
# Change impact
# =============================================================================


def _folder_route(route: Route) -> bool:
    return True


def collect_dependents(file_path: str, graph: ImportGraph) -> list[str]:
    """All files that transitively import ``file_path``, breadth-first."""
    visited = {file_path}
    order: list[str] = []
    queue = deque([file_path])
    while queue:
        current = queue.popleft()
        for dependent in graph.imported_by.get(current, []):
            if dependent in visited:
                continue
            visited.add(dependent)
            order.append(dependent)
            queue.append(dependent)
    return order


def owning_routes(
    file_path: str,
    routes: list[Route],
    is_folder_route: Callable[[Route], bool] = _folder_route,
) -> list[Route]:
    """
    Routes a file belongs to.

    A file that backs a route directly (one of its page files) belongs to
    that route. It also belongs to every folder route whose directory
    contains it, so a component under ``blog/[slug]/`` is owned by
    ``/blog/[slug]``, ``/blog`` and ``/``. File-based routes sharing one
    routes directory only own their listed page files.
    """
    owners = [r for r in routes if file_path in r.page_file_paths()]
    keys = {r.key for r in owners}
    for route in routes:
        if route.key in keys:
            continue
        if is_folder_route(route) and is_under(file_path, route.directory):
            keys.add(route.key)
            owners.append(route)
    return owners


def explain_file_impact(
    adapter,
    file_path: str,
    routes: list[Route],
    graph: ImportGraph,
    is_folder_route: Callable[[Route], bool] = _folder_route,
    layout_scope: Callable[[str], str | None] | None = None,
) -> list[tuple[Route, ImpactReason]]:
    """
    Apply the three impact rules to one changed file.

    1. direct: a route or layout file that backs a route (same folder for
       folder routes, listed page file for file routes)
    2. layout: a layout file implicates every route at or below its scope
    3. import-graph: every route owning a file that transitively imports it

    Each route appears once, tagged with the first rule that matched.
    """
    path = normalize_path(file_path)
    results: list[tuple[Route, ImpactReason]] = []
    seen: set[str] = set()

    def add(route: Route, reason: ImpactReason) -> None:
        if route.key not in seen:
            seen.add(route.key)
            results.append((route, reason))

    is_route_file = adapter.is_route_file(path)
    is_layout_file = adapter.is_layout_file(path)

    if is_route_file or is_layout_file:
        parent = dirname(path)
        for route in routes:
            if path in route.page_file_paths() or (
                is_folder_route(route) and route.directory == parent
            ):
                add(route, ImpactReason.DIRECT)

    if is_layout_file:
        scope = layout_scope(path) if layout_scope else dirname(path)
        if scope is not None:
            for route in routes:
                if is_under(route.directory, scope):
                    add(route, ImpactReason.LAYOUT)

    for dependent in collect_dependents(path, graph):
        for route in owning_routes(dependent, routes, is_folder_route):
            add(route, ImpactReason.IMPORT_GRAPH)

    return results


def map_file_to_routes(
    adapter,
    file_path: str,
    routes: list[Route],
    graph: ImportGraph,
    is_folder_route: Callable[[Route], bool] = _folder_route,
    layout_scope: Callable[[str], str | None] | None = None,
) -> list[Route]:
    return [
        route
        for route, _ in explain_file_impact(
            adapter, file_path, routes, graph, is_folder_route, layout_scope
        )
    ]


# =============================================================================
# Import resolution
# =============================================================================


def match_alias(specifier: str, aliases: Iterable[ImportAlias]) -> ImportAlias | None:
    """First alias whose pattern prefixes ``specifier``."""
    for alias in aliases:
        if specifier.startswith(alias.pattern):
            return alias
    return None


def rewrite_alias(specifier: str, alias: ImportAlias) -> str:
    return alias.replacement + specifier[len(alias.pattern) :]


async def _probe(
    ctx: AdapterContext,
    candidates: list[str],
    check: Callable[[str], Awaitable[bool]],
) -> str | None:
    """Run ``check`` over candidates concurrently; first hit in list order wins."""
    if not candidates:
        return None
    semaphore = asyncio.Semaphore(max(1, ctx.resolve_concurrency))

    async def bounded(candidate: str) -> bool:
        async with semaphore:
            return bool(await check(candidate))

    hits = await asyncio.gather(*(bounded(c) for c in candidates))
    for candidate, hit in zip(candidates, hits):
        if hit:
            return candidate
    return None


async def resolve_to_actual_file(
    base_path: str, ctx: AdapterContext, page_extensions: list[str]
) -> str | None:
    """
    Resolve an extensionless module path to a real project file.

    Probes ``base_path`` with each extension, then (for a directory) the
    conventional index files. Returns a project-relative path or None.
    """
    if not base_path:
        return None

    extensions = list(dict.fromkeys(["", *page_extensions, *SCRIPT_EXTENSIONS]))
    candidates = [base_path + ext for ext in extensions]

    # "./util.js" in TypeScript sources refers to util.ts
    for js_ext, ts_exts in _TS_SOURCE_FOR_JS.items():
        if base_path.endswith(js_ext):
            stem = base_path[: -len(js_ext)]
            candidates.extend(stem + ts_ext for ts_ext in ts_exts)

    async def is_file(candidate: str) -> bool:
        source_path = ctx.source_path(candidate)
        if not await ctx.file_source.exists(source_path):
            return False
        return not await ctx.file_source.is_directory(source_path)

    resolved = await _probe(ctx, candidates, is_file)
    if resolved:
        return resolved

    if not await ctx.file_source.is_directory(ctx.source_path(base_path)):
        return None

    index_files = list(
        dict.fromkeys(
            ["index.ts", "index.js", *(f"index{ext}" for ext in page_extensions)]
        )
    )
    index_candidates = [f"{base_path}/{name}" for name in index_files]

    async def exists(candidate: str) -> bool:
        return await ctx.file_source.exists(ctx.source_path(candidate))

    return await _probe(ctx, index_candidates, exists)


def rewrite_specifier(
    specifier: str, from_file: str, aliases: list[ImportAlias]
) -> str | None:
    """
    Turn an import specifier into an extensionless project-relative path.

    Returns None for bare package specifiers, internal-only aliases, and
    relative paths that climb above the project root.
    """
    alias = match_alias(specifier, aliases)
    if not specifier.startswith((".", "/")) and alias is None:
        return None
    if alias is not None and alias.is_internal:
        return None

    target = rewrite_alias(specifier, alias) if alias is not None else specifier
    if target.startswith("."):
        return resolve_relative(dirname(from_file), target)
    return resolve_relative("", target)


async def resolve_import(
    adapter,
    specifier: str,
    from_file: str,
    ctx: AdapterContext,
    extra_aliases: list[ImportAlias] | None = None,
) -> str | None:
    """Default ``resolve_import`` shared by all adapters."""
    aliases = list(adapter.import_aliases) + list(extra_aliases or [])
    target = rewrite_specifier(specifier, normalize_path(from_file), aliases)
    if target is None:
        return None
    return await resolve_to_actual_file(target, ctx, adapter.page_extensions)


# =============================================================================
# Login pages
# =============================================================================


async def find_login_pages(
    ctx: AdapterContext,
    candidates_for: Callable[[str], list[str]],
    route_for: Callable[[str], str] = strip_route_groups,
) -> list[LoginPageInfo]:
    """
    Look up login pages for the common login URL patterns.

    ``candidates_for`` expands a pattern into project-relative file paths
    for one framework. Results are de-duplicated by file path.
    """
    pages: list[LoginPageInfo] = []
    seen: set[str] = set()

    for pattern in COMMON_LOGIN_PATTERNS:
        for candidate in candidates_for(pattern):
            if candidate in seen:
                continue
            seen.add(candidate)
            source_path = ctx.source_path(candidate)
            if not await ctx.file_source.exists(source_path):
                continue
            try:
                content = await ctx.file_source.read(source_path)
            except OSError as e:
                logger.warning(f"Login page {candidate} exists but is unreadable: {e}")
                continue
            pages.append(
                LoginPageInfo(file_path=candidate, route=route_for(pattern), content=content)
            )

    return pages


# =============================================================================
# Detection helpers
# =============================================================================


async def read_package_json(ctx: AdapterContext) -> dict | None:
    """Parse the project's package.json, or None if missing or malformed."""
    try:
        content = await ctx.file_source.read(ctx.source_path("package.json"))
        data = json.loads(content)
    except (OSError, json.JSONDecodeError) as e:
        logger.debug(f"No usable package.json under '{ctx.project_root}': {e}")
        return None
    return data if isinstance(data, dict) else None


def dependency_version(package: dict | None, name: str) -> str | None:
    """Declared version of ``name`` in dependencies or devDependencies."""
    if not package:
        return None
    for section in ("dependencies", "devDependencies"):
        deps = package.get(section)
        if isinstance(deps, dict) and deps.get(name):
            return str(deps[name])
    return None


def has_dependency(package: dict | None, *names: str) -> bool:
    return any(dependency_version(package, name) for name in names)


async def any_exists(ctx: AdapterContext, names: list[str]) -> str | None:
    """First of ``names`` (project-relative) that exists, probed concurrently."""

    async def exists(candidate: str) -> bool:
        return await ctx.file_source.exists(ctx.source_path(candidate))

    return await _probe(ctx, names, exists)


async def is_directory(ctx: AdapterContext, path: str) -> bool:
    return await ctx.file_source.is_directory(ctx.source_path(path))


def score_indicators(indicators: list[bool]) -> Confidence:
    """Confidence from independent structural indicators (3 => high ... 0 => none)."""
    return Confidence.from_indicator_count(sum(1 for found in indicators if found))


def detection_result(
    framework: str | None,
    display_name: str,
    found: dict[str, bool],
    version: str | None = None,
    router_type: str | None = None,
) -> FrameworkDetectionResult:
    """Build a detection result from named indicators."""
    confidence = score_indicators(list(found.values()))
    matched = [name for name, present in found.items() if present]

    if confidence == Confidence.NONE or framework is None:
        return FrameworkDetectionResult(
            framework=None,
            confidence=Confidence.NONE,
            reason=f"Not a {display_name} project",
        )

    if confidence == Confidence.HIGH:
        reason = f"Found {', '.join(matched)}"
    else:
        reason = (
            f"Found {len(matched)} of {len(found)} {display_name} indicators: "
            f"{', '.join(matched)}"
        )
    return FrameworkDetectionResult(
        framework=framework,
        confidence=confidence,
        reason=reason,
        router_type=router_type,
        version=version,
    )


# =============================================================================
# Route list helpers
# =============================================================================


def finalize_routes(routes: list[Route]) -> list[Route]:
    """Sort by path and keep one route per path.

    Ties are broken by directory and page files so the surviving route does
    not depend on directory enumeration order.
    """
    ordered = sorted(routes, key=lambda r: (r.path, r.directory, r.page_files))
    unique: list[Route] = []
    seen: set[str] = set()
    for route in ordered:
        if route.key in seen:
            logger.debug(f"Dropping duplicate route {route.path} from {route.directory}")
            continue
        seen.add(route.key)
        unique.append(route)
    return unique

"""
Flat File Routes
================

Route discovery shared by Remix and React Router (v7 file routes).

Naming rules inside ``app/routes``:
- "." separates URL segments:      blog.posts.tsx    -> /blog/posts
- "_." is an escaped literal dot:  robots_.txt.tsx   -> /robots.txt
- "$param" is dynamic, "$" alone is a splat:  blog.$slug.tsx -> /blog/:slug
- "_name" segments are pathless:   _auth.login.tsx   -> /login
- "_index" is the parent's index:  blog._index.tsx   -> /blog
- folders hold a route module:     blog.$slug/route.tsx -> /blog/:slug
"""

from __future__ import annotations

import logging
import re

from .paths import (
    basename,
    dirname,
    is_auth_protected_path,
    is_route_group,
    join_paths,
    parse_bracket_segment,
    relative_path,
    to_url_path,
)
from .server_analysis import scan_route_module
from .types import AdapterContext, Route

logger = logging.getLogger(__name__)

ROUTE_MODULE_EXTENSIONS = [".tsx", ".ts", ".jsx", ".js"]
ROUTE_MODULE_PATTERN = re.compile(r"^route\.(tsx?|jsx?)$")
SCRIPT_FILE_PATTERN = re.compile(r"\.(tsx?|jsx?)$")

# Framework root modules that wrap every route
ROOT_MODULES = {"root.tsx", "root.ts", "root.jsx", "root.js"}


def split_flat_name(name: str) -> list[str]:
    """Split a flat route name on "." while honouring "_." escapes."""
    parts: list[str] = []
    current = ""
    i = 0
    while i < len(name):
        char = name[i]
        if char == "_" and i + 1 < len(name) and name[i + 1] == ".":
            current += "."
            i += 2
        elif char == ".":
            if current:
                parts.append(current)
            current = ""
            i += 1
        else:
            current += char
            i += 1
    if current:
        parts.append(current)
    return parts


def translate_flat_segment(segment: str) -> str:
    """URL segment for one flat-route segment ("" when it adds nothing)."""
    if segment == "$":
        return "*"
    if segment.startswith("$"):
        return ":" + segment[1:]
    if segment == "_index" or segment.startswith("_"):
        return ""
    if is_route_group(segment):
        return ""
    bracket = parse_bracket_segment(segment)
    if bracket:
        kind, param = bracket
        if kind in ("catch_all", "optional_catch_all"):
            return "*"
        if kind == "optional":
            return f":{param}?"
        return f":{param}"
    return segment


def flat_name_to_url(name: str) -> str:
    """URL path for a flat route base name (extension already removed)."""
    return to_url_path([translate_flat_segment(s) for s in split_flat_name(name)])


def folder_to_url(relative: str) -> str:
    """URL path for a folder route directory relative to the routes root."""
    segments: list[str] = []
    for folder in relative.split("/"):
        if folder:
            segments.extend(translate_flat_segment(s) for s in split_flat_name(folder))
    return to_url_path(segments)


def _segment_path(relative: str) -> str:
    """Flat segments joined with "/" so auth heuristics see every segment."""
    return "/".join(
        segment for folder in relative.split("/") for segment in split_flat_name(folder)
    )


def flat_group(relative: str) -> str | None:
    for folder in relative.split("/"):
        for segment in split_flat_name(folder):
            if is_route_group(segment):
                return segment[1:-1]
    return None


def strip_script_extension(file_name: str) -> str:
    return SCRIPT_FILE_PATTERN.sub("", file_name)


def is_script_file(file_name: str) -> bool:
    return bool(SCRIPT_FILE_PATTERN.search(file_name)) and not file_name.endswith(".d.ts")


def is_pathless_layout_name(file_name: str) -> bool:
    """A single "_name" segment other than "_index" is a layout, not a route."""
    segments = split_flat_name(strip_script_extension(file_name))
    return len(segments) == 1 and segments[0].startswith("_") and segments[0] != "_index"


def is_flat_route_file(file_path: str, routes_root: str) -> bool:
    if not file_path.startswith(routes_root + "/"):
        return False
    name = basename(file_path)
    if dirname(file_path) == routes_root:
        return is_script_file(name) and not is_pathless_layout_name(name)
    return bool(ROUTE_MODULE_PATTERN.match(name))


def is_flat_layout_file(
    file_path: str, routes_root: str, layout_pattern: re.Pattern[str]
) -> bool:
    name = basename(file_path)
    app_dir = dirname(routes_root)
    if dirname(file_path) == app_dir and name in ROOT_MODULES:
        return True
    if not file_path.startswith(routes_root + "/"):
        return False
    if layout_pattern.match(name):
        return True
    return (
        dirname(file_path) == routes_root
        and is_script_file(name)
        and is_pathless_layout_name(name)
    )


def flat_layout_scope(file_path: str, routes_root: str) -> str:
    """Root modules wrap the whole app; other layouts wrap the routes tree below them."""
    if basename(file_path) in ROOT_MODULES:
        return ""
    parent = dirname(file_path)
    return routes_root if parent == routes_root else parent


def is_folder_route(route: Route, routes_root: str) -> bool:
    return route.directory != routes_root


def login_candidates(
    routes_root: str, pattern: str, pathless_prefix: str | None = None
) -> list[str]:
    """Concrete file paths a login URL pattern could live at."""
    segments = pattern.split("/")
    groups = [s[1:-1] for s in segments if is_route_group(s)]
    flat = ".".join(s for s in segments if not is_route_group(s))

    candidates = [
        f"{routes_root}/{flat}.tsx",
        f"{routes_root}/{flat}._index.tsx",
    ]
    if groups:
        candidates.append(f"{routes_root}/_{groups[0]}.{flat}.tsx")
    elif pathless_prefix:
        candidates.append(f"{routes_root}/{pathless_prefix}.{flat}.tsx")
    candidates.append(f"{routes_root}/{flat}/route.tsx")
    candidates.append(f"{routes_root}/{flat}/_index.tsx")
    return candidates


async def _analyze_module(ctx: AdapterContext, route: Route) -> None:
    """Fill loader/action/resource-route metadata from the route module."""
    module_path = route.page_file_paths()[0]
    try:
        content = await ctx.file_source.read(ctx.source_path(module_path))
    except OSError as e:
        logger.debug(f"Could not read route module {module_path}: {e}")
        return

    exports = scan_route_module(content)
    if exports.has_loader:
        route.api_methods.append("GET")
    if exports.has_action:
        route.actions.append("default")
        route.has_form_handler = True
    if exports.has_loader or exports.has_action:
        route.server_files.append(route.page_files[0])
    if exports.is_resource_route:
        route.has_api_endpoint = True


async def discover_flat_routes(
    ctx: AdapterContext,
    routes_root: str,
    layout_pattern: re.Pattern[str],
) -> list[Route]:
    """
    Discover flat-file and folder routes under ``routes_root``.

    Top-level files are flat routes; directories are walked with an explicit
    stack and visited set, producing a route wherever a ``route.*`` module
    exists.
    """
    routes: list[Route] = []
    source_root = ctx.source_path(routes_root)
    if not await ctx.file_source.is_directory(source_root):
        return routes

    try:
        entries = sorted(await ctx.file_source.readdir(source_root))
    except OSError as e:
        logger.debug(f"Could not list {routes_root}: {e}")
        return routes

    folders: list[str] = []
    for entry in entries:
        entry_path = join_paths(routes_root, entry)
        if await ctx.file_source.is_directory(ctx.source_path(entry_path)):
            folders.append(entry_path)
            continue
        if not is_script_file(entry) or is_pathless_layout_name(entry):
            continue

        base_name = strip_script_extension(entry)
        url_path = flat_name_to_url(base_name)
        routes.append(
            Route(
                path=url_path,
                directory=routes_root,
                is_auth_protected=is_auth_protected_path(_segment_path(base_name)),
                page_files=[entry],
                is_dynamic=":" in url_path or "*" in url_path,
                group=flat_group(base_name),
            )
        )

    visited: set[str] = set()
    stack = list(reversed(folders))
    while stack:
        folder = stack.pop()
        if folder in visited:
            continue
        visited.add(folder)

        try:
            children = sorted(await ctx.file_source.readdir(ctx.source_path(folder)))
        except OSError as e:
            logger.debug(f"Could not list {folder}: {e}")
            continue

        route_modules = [c for c in children if ROUTE_MODULE_PATTERN.match(c)]
        if route_modules:
            # route.tsx before route.ts before route.jsx before route.js
            route_modules.sort(key=lambda n: ROUTE_MODULE_EXTENSIONS.index("." + n.split(".", 1)[1]))
            relative = relative_path(routes_root, folder)
            url_path = folder_to_url(relative)
            routes.append(
                Route(
                    path=url_path,
                    directory=folder,
                    has_layout=any(layout_pattern.match(c) for c in children),
                    is_auth_protected=is_auth_protected_path(_segment_path(relative)),
                    page_files=[route_modules[0]],
                    is_dynamic=":" in url_path or "*" in url_path,
                    group=flat_group(relative),
                )
            )

        subfolders = []
        for child in children:
            child_path = join_paths(folder, child)
            if await ctx.file_source.is_directory(ctx.source_path(child_path)):
                subfolders.append(child_path)
        stack.extend(reversed(subfolders))

    for route in routes:
        await _analyze_module(ctx, route)

    return routes

"""
Import Graph Builder
====================

Builds the project-wide static import graph used for change-impact analysis.

Every source file under the project root is scanned lexically for import
specifiers:
- ES imports: import X from '...', import {a, b} from '...', import * as X
  from '...', import type ... from '...', bare import '...'
- Re-exports: export * from '...', export { x } from '...'
- Dynamic imports: import('...')
- CommonJS: require('...')

Comments are not stripped, so commented-out imports still produce edges.
Specifiers that do not resolve to a project file (packages, internal
framework aliases, missing files) are left out of the graph.
"""

from __future__ import annotations

import json
import logging
import re
from collections import deque

from frameworks import defaults
from frameworks.paths import join_paths, normalize_path, resolve_relative
from frameworks.registry import build_default_registry
from frameworks.types import AdapterContext, FrameworkAdapter, ImportAlias, ImportGraph

logger = logging.getLogger(__name__)

SOURCE_EXTENSIONS = (".svelte", ".vue", ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")

SKIP_DIRS = {
    "node_modules",
    "dist",
    "build",
    "coverage",
    ".svelte-kit",
    ".next",
    ".nuxt",
    ".output",
    "vendor",
}

TSCONFIG_FILES = ("tsconfig.json", "jsconfig.json")

# import X from '..' / import {a} from '..' / import type T from '..' / import '..'
STATIC_IMPORT_PATTERN = re.compile(
    r"""\bimport\s+(?:[\w*${}\s,]+?\s+from\s+)?['"]([^'"\n]+)['"]"""
)
# export * from '..' / export * as ns from '..' / export { x } from '..'
REEXPORT_PATTERN = re.compile(
    r"""\bexport\s+(?:type\s+)?(?:\*(?:\s+as\s+[\w$]+)?|\{[^}]*\})\s*from\s+['"]([^'"\n]+)['"]"""
)
DYNAMIC_IMPORT_PATTERN = re.compile(r"""\bimport\s*\(\s*['"]([^'"\n]+)['"]\s*\)""")
REQUIRE_PATTERN = re.compile(r"""\brequire\s*\(\s*['"]([^'"\n]+)['"]\s*\)""")

_SPECIFIER_PATTERNS = (
    STATIC_IMPORT_PATTERN,
    REEXPORT_PATTERN,
    DYNAMIC_IMPORT_PATTERN,
    REQUIRE_PATTERN,
)


def extract_import_specifiers(content: str) -> list[str]:
    """All import specifiers in ``content``, de-duplicated, in source order."""
    found: list[tuple[int, str]] = []
    for pattern in _SPECIFIER_PATTERNS:
        for match in pattern.finditer(content):
            found.append((match.start(1), match.group(1).strip()))

    specifiers: list[str] = []
    for _, specifier in sorted(found):
        if specifier and specifier not in specifiers:
            specifiers.append(specifier)
    return specifiers


def is_source_file(file_name: str) -> bool:
    return file_name.endswith(SOURCE_EXTENSIONS) and not file_name.endswith(".d.ts")


def _walk(start: str, edges: dict[str, list[str]]) -> list[str]:
    visited = {start}
    order: list[str] = []
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for neighbour in edges.get(current, []):
            if neighbour not in visited:
                visited.add(neighbour)
                order.append(neighbour)
                queue.append(neighbour)
    return order


def find_all_dependents(graph: ImportGraph, file_path: str) -> list[str]:
    """Every file that imports ``file_path`` directly or transitively."""
    return _walk(normalize_path(file_path), graph.imported_by)


def find_all_dependencies(graph: ImportGraph, file_path: str) -> list[str]:
    """Every file ``file_path`` imports directly or transitively."""
    return _walk(normalize_path(file_path), graph.imports)


def strip_json_comments(content: str) -> str:
    """
    Remove // and /* */ comments from tsconfig-style JSON.

    Comment markers inside strings are kept so path patterns such as "@/*"
    survive.
    """
    result: list[str] = []
    i = 0
    in_string = False
    while i < len(content):
        char = content[i]
        if in_string:
            result.append(char)
            if char == "\\" and i + 1 < len(content):
                result.append(content[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
        elif char == '"':
            in_string = True
            result.append(char)
            i += 1
        elif content.startswith("//", i):
            end = content.find("\n", i)
            i = len(content) if end == -1 else end
        elif content.startswith("/*", i):
            end = content.find("*/", i + 2)
            i = len(content) if end == -1 else end + 2
        else:
            result.append(char)
            i += 1
    return "".join(result)


def _strip_trailing_commas(content: str) -> str:
    return re.sub(r",(\s*[}\]])", r"\1", content)


class ImportGraphBuilder:
    """
    Scans a project through its FileSource and builds an ImportGraph.

    With an adapter, specifiers resolve through that adapter's
    ``resolve_import``; without one, through the union of every built-in
    adapter's non-internal aliases. tsconfig/jsconfig ``paths`` apply in both
    cases and take precedence.
    """

    def __init__(
        self,
        ctx: AdapterContext,
        adapter: FrameworkAdapter | None = None,
        extra_aliases: list[ImportAlias] | None = None,
    ):
        self.ctx = ctx
        self.adapter = adapter
        self.extra_aliases = list(extra_aliases or [])
        self._ts_paths: dict[str, list[str]] | None = None
        self._ts_base_url = ""
        self._fallback_aliases, self._fallback_extensions = self._builtin_resolution()

    @staticmethod
    def _builtin_resolution() -> tuple[list[ImportAlias], list[str]]:
        aliases: list[ImportAlias] = []
        extensions: list[str] = []
        seen: set[str] = set()
        for adapter in build_default_registry().get_all():
            for alias in adapter.import_aliases:
                if not alias.is_internal and alias.pattern not in seen:
                    seen.add(alias.pattern)
                    aliases.append(alias)
            for ext in adapter.page_extensions:
                if ext not in extensions:
                    extensions.append(ext)
        return aliases, extensions

    async def build(self) -> ImportGraph:
        """Scan every source file and return the forward and reverse maps."""
        # Listing first lets the config lookups below hit the listing cache
        files = await self.list_source_files()
        await self._load_ts_paths()
        graph = ImportGraph()

        for file_path in files:
            graph.imports.setdefault(file_path, [])
            try:
                content = await self.ctx.file_source.read(self.ctx.source_path(file_path))
            except OSError as e:
                logger.warning(f"Skipping unreadable file {file_path}: {e}")
                continue

            for specifier in extract_import_specifiers(content):
                resolved = await self.resolve(specifier, file_path)
                if resolved is None:
                    logger.debug(f"Unresolved import '{specifier}' in {file_path}")
                    continue
                graph.add_edge(file_path, resolved)

        logger.info(
            f"Import graph built: {len(files)} files, {graph.edge_count} edges"
        )
        return graph

    async def list_source_files(self) -> list[str]:
        """Project-relative source files, skipping hidden and dependency dirs."""
        files: list[str] = []
        visited: set[str] = set()
        stack = [""]
        while stack:
            directory = stack.pop()
            if directory in visited:
                continue
            visited.add(directory)
            try:
                entries = sorted(
                    await self.ctx.file_source.readdir(self.ctx.source_path(directory))
                )
            except OSError as e:
                logger.debug(f"Skipping unreadable directory {directory or '/'}: {e}")
                continue

            subdirs = []
            for entry in entries:
                entry_path = join_paths(directory, entry)
                if await self.ctx.file_source.is_directory(self.ctx.source_path(entry_path)):
                    if not entry.startswith(".") and entry not in SKIP_DIRS:
                        subdirs.append(entry_path)
                elif is_source_file(entry):
                    files.append(entry_path)
            stack.extend(reversed(subdirs))
        return files

    async def resolve(self, specifier: str, from_file: str) -> str | None:
        """Resolve one specifier from ``from_file`` to a project file, or None."""
        target = self._match_ts_path(specifier)
        if target is not None:
            extensions = (
                self.adapter.page_extensions if self.adapter else self._fallback_extensions
            )
            return await defaults.resolve_to_actual_file(target, self.ctx, extensions)

        if self.adapter is not None:
            if self.extra_aliases:
                return await defaults.resolve_import(
                    self.adapter, specifier, from_file, self.ctx, self.extra_aliases
                )
            return await self.adapter.resolve_import(specifier, from_file, self.ctx)

        rewritten = defaults.rewrite_specifier(
            specifier, normalize_path(from_file), self._fallback_aliases + self.extra_aliases
        )
        if rewritten is None:
            return None
        return await defaults.resolve_to_actual_file(
            rewritten, self.ctx, self._fallback_extensions
        )

    # -------------------------------------------------------------------------
    # tsconfig / jsconfig paths
    # -------------------------------------------------------------------------

    async def _load_json_safe(self, file_path: str) -> dict | None:
        """Load a tsconfig-style JSON file (comments and trailing commas allowed)."""
        source_path = self.ctx.source_path(file_path)
        try:
            if not await self.ctx.file_source.exists(source_path):
                return None
            content = await self.ctx.file_source.read(source_path)
        except OSError as e:
            logger.debug(f"Could not read {file_path}: {e}")
            return None

        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            try:
                data = json.loads(_strip_trailing_commas(strip_json_comments(content)))
            except json.JSONDecodeError as e:
                logger.warning(f"Could not parse {file_path}: {e}")
                return None
        return data if isinstance(data, dict) else None

    async def _load_ts_paths(self) -> None:
        self._ts_paths = None
        for config_name in TSCONFIG_FILES:
            config = await self._load_json_safe(config_name)
            if not config:
                continue

            paths: dict[str, list[str]] = {}
            base_url = ""

            # Follow "extends" one level for relative base configs
            extends = config.get("extends")
            if isinstance(extends, str) and extends.startswith("."):
                base_path = resolve_relative("", extends)
                base_config = await self._load_json_safe(base_path) if base_path else None
                if base_config:
                    options = base_config.get("compilerOptions") or {}
                    paths.update(options.get("paths") or {})
                    base_url = options.get("baseUrl") or base_url

            options = config.get("compilerOptions") or {}
            paths.update(options.get("paths") or {})
            base_url = options.get("baseUrl") or base_url

            if paths:
                self._ts_paths = paths
                self._ts_base_url = normalize_path(base_url) if base_url != "." else ""
                logger.debug(f"Loaded {len(paths)} path aliases from {config_name}")
            return

    def _match_ts_path(self, specifier: str) -> str | None:
        """Project-relative, extensionless target for a tsconfig alias, or None."""
        if not self._ts_paths:
            return None
        for alias_pattern, targets in self._ts_paths.items():
            if not isinstance(targets, list) or not targets:
                continue
            regex = "^" + re.escape(alias_pattern).replace(r"\*", "(.*)") + "$"
            match = re.match(regex, specifier)
            if match:
                suffix = match.group(1) if match.lastindex else ""
                # First target wins
                target = targets[0].replace("*", suffix)
                return resolve_relative(self._ts_base_url, target)
        return None

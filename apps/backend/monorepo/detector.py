"""
Monorepo Detector
=================

Detects JavaScript monorepo layouts through a FileSource and lists their
workspaces. Strategies run in order and the first match wins:

1. Turborepo (turbo.json on top of npm/pnpm workspaces)
2. Nx (nx.json, workspaces or apps/* + packages/*)
3. npm / yarn workspaces (package.json "workspaces")
4. pnpm workspaces (pnpm-workspace.yaml)
5. Lerna (lerna.json "packages")

Detection is best-effort: unreadable or malformed files mean "not this
kind of monorepo", never an exception.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable

import yaml

from core.errors import GitHubError, PathTraversalError
from frameworks.detector import FrameworkDetector
from frameworks.file_source import FileSource
from frameworks.paths import basename, dirname, join_paths
from frameworks.registry import FrameworkRegistry
from frameworks.types import AdapterContext

from .models import MonorepoConfig, MonorepoType, WorkspaceInfo

logger = logging.getLogger(__name__)

# Directories that suggest a workspace renders UI
VISUAL_INDICATOR_DIRS = ["pages", "src/routes", "app", "components", "src/components"]


async def _read_json(file_source: FileSource, path: str) -> dict | None:
    try:
        data = json.loads(await file_source.read(path))
    except (OSError, GitHubError, json.JSONDecodeError) as e:
        logger.debug(f"Could not load {path}: {e}")
        return None
    return data if isinstance(data, dict) else None


async def _workspace_name(file_source: FileSource, full_path: str, fallback: str) -> str:
    package = await _read_json(file_source, join_paths(full_path, "package.json"))
    if package and isinstance(package.get("name"), str) and package["name"]:
        return package["name"]
    return fallback


async def resolve_workspace_patterns(
    file_source: FileSource, root_path: str, patterns: list[str]
) -> list[WorkspaceInfo]:
    """
    Expand workspace patterns to workspace directories.

    "dir/*" lists the directory, other globs match "<pattern>/package.json"
    through FileSource.glob, and plain paths are taken as-is.
    """
    workspaces: list[WorkspaceInfo] = []
    seen: set[str] = set()

    async def add(path: str) -> None:
        if path in seen:
            return
        full_path = join_paths(root_path, path)
        if not await file_source.is_directory(full_path):
            return
        seen.add(path)
        name = await _workspace_name(file_source, full_path, basename(path) or path)
        workspaces.append(WorkspaceInfo(name=name, path=path))

    for pattern in patterns:
        if not isinstance(pattern, str) or pattern.startswith("!"):
            continue
        pattern = pattern.strip().rstrip("/")
        try:
            if pattern.endswith("/*") and "*" not in pattern[:-2]:
                base_dir = pattern[:-2]
                for entry in sorted(await file_source.readdir(join_paths(root_path, base_dir))):
                    await add(join_paths(base_dir, entry))
            elif "*" in pattern:
                for match in await file_source.glob(f"{pattern}/package.json", root_path):
                    relative = match[len(root_path) + 1 :] if root_path else match
                    await add(dirname(relative))
            else:
                await add(join_paths(pattern))
        except (OSError, GitHubError, PathTraversalError) as e:
            logger.warning(f"Workspace pattern '{pattern}' did not resolve: {e}")

    return workspaces


async def _detect_npm_workspaces(
    file_source: FileSource, root_path: str
) -> MonorepoConfig | None:
    package = await _read_json(file_source, join_paths(root_path, "package.json"))
    if not package or not package.get("workspaces"):
        return None

    workspaces_field = package["workspaces"]
    if isinstance(workspaces_field, list):
        patterns = workspaces_field
    elif isinstance(workspaces_field, dict) and isinstance(
        workspaces_field.get("packages"), list
    ):
        patterns = workspaces_field["packages"]
    else:
        return None

    workspaces = await resolve_workspace_patterns(file_source, root_path, patterns)
    has_yarn_lock = await file_source.exists(join_paths(root_path, "yarn.lock"))
    return MonorepoConfig(
        type=MonorepoType.YARN_WORKSPACES if has_yarn_lock else MonorepoType.NPM_WORKSPACES,
        root_path=root_path,
        workspaces=workspaces,
        patterns=list(patterns),
    )


async def _detect_pnpm_workspaces(
    file_source: FileSource, root_path: str
) -> MonorepoConfig | None:
    yaml_path = join_paths(root_path, "pnpm-workspace.yaml")
    if not await file_source.exists(yaml_path):
        return None
    try:
        data = yaml.safe_load(await file_source.read(yaml_path))
    except (OSError, GitHubError, yaml.YAMLError) as e:
        logger.warning(f"Could not parse {yaml_path}: {e}")
        return None

    patterns = data.get("packages") if isinstance(data, dict) else None
    if not isinstance(patterns, list) or not patterns:
        return None

    workspaces = await resolve_workspace_patterns(file_source, root_path, patterns)
    return MonorepoConfig(
        type=MonorepoType.PNPM_WORKSPACES,
        root_path=root_path,
        workspaces=workspaces,
        patterns=[str(p) for p in patterns],
    )


async def _detect_with_base(
    file_source: FileSource, root_path: str
) -> MonorepoConfig | None:
    return await _detect_npm_workspaces(
        file_source, root_path
    ) or await _detect_pnpm_workspaces(file_source, root_path)


async def _detect_turborepo(
    file_source: FileSource, root_path: str
) -> MonorepoConfig | None:
    if not await file_source.exists(join_paths(root_path, "turbo.json")):
        return None
    # Turborepo runs on top of the package manager's workspaces
    base = await _detect_with_base(file_source, root_path)
    if base is None:
        return None
    base.type = MonorepoType.TURBOREPO
    return base


async def _detect_nx(file_source: FileSource, root_path: str) -> MonorepoConfig | None:
    if not await file_source.exists(join_paths(root_path, "nx.json")):
        return None

    base = await _detect_with_base(file_source, root_path)
    if base is not None:
        base.type = MonorepoType.NX
        return base

    workspaces = await resolve_workspace_patterns(
        file_source, root_path, ["apps/*", "packages/*"]
    )
    if not workspaces:
        return None
    # Nx-only layouts name workspaces after their directory
    for workspace in workspaces:
        workspace.name = basename(workspace.path)
    return MonorepoConfig(type=MonorepoType.NX, root_path=root_path, workspaces=workspaces)


async def _detect_lerna(file_source: FileSource, root_path: str) -> MonorepoConfig | None:
    lerna_path = join_paths(root_path, "lerna.json")
    if not await file_source.exists(lerna_path):
        return None
    config = await _read_json(file_source, lerna_path)
    if config is None:
        return None

    patterns = config.get("packages")
    if not isinstance(patterns, list) or not patterns:
        patterns = ["packages/*"]
    workspaces = await resolve_workspace_patterns(file_source, root_path, patterns)
    return MonorepoConfig(
        type=MonorepoType.LERNA,
        root_path=root_path,
        workspaces=workspaces,
        patterns=list(patterns),
    )


Strategy = Callable[[FileSource, str], Awaitable[MonorepoConfig | None]]

# Turborepo and Nx sit on top of package-manager workspaces, so they go first
STRATEGIES: list[Strategy] = [
    _detect_turborepo,
    _detect_nx,
    _detect_npm_workspaces,
    _detect_pnpm_workspaces,
    _detect_lerna,
]


async def detect_monorepo(
    file_source: FileSource, root: str = ""
) -> MonorepoConfig | None:
    """
    Detect a monorepo at ``root`` and list its workspaces.

    Returns:
        MonorepoConfig for the first matching strategy, or None
    """
    logger.debug("Checking for monorepo structure...")
    for strategy in STRATEGIES:
        try:
            config = await strategy(file_source, root)
        except (OSError, GitHubError) as e:
            logger.debug(f"{strategy.__name__} failed: {e}")
            continue
        if config is not None:
            logger.info(
                f"Detected {config.type.value} monorepo with "
                f"{len(config.workspaces)} workspaces"
            )
            return config
    return None


async def filter_visual_workspaces(
    file_source: FileSource, config: MonorepoConfig
) -> list[WorkspaceInfo]:
    """Workspaces that look like they render pages or components."""
    visual: list[WorkspaceInfo] = []
    for workspace in config.workspaces:
        workspace_path = join_paths(config.root_path, workspace.path)
        for indicator in VISUAL_INDICATOR_DIRS:
            if await file_source.is_directory(join_paths(workspace_path, indicator)):
                workspace.has_visual_components = True
                visual.append(workspace)
                break
    return visual


async def annotate_frameworks(
    file_source: FileSource, config: MonorepoConfig, registry: FrameworkRegistry
) -> list[WorkspaceInfo]:
    """Run framework detection inside every workspace and record the result."""
    detector = FrameworkDetector(registry)
    for workspace in config.workspaces:
        ctx = AdapterContext(
            file_source=file_source,
            project_root=join_paths(config.root_path, workspace.path),
        )
        result = await detector.detect(ctx)
        workspace.framework = result.framework
        if result.framework:
            logger.debug(f"Workspace {workspace.name}: {result.framework}")
    return config.workspaces

"""
Framework Types
===============

Data model and adapter contract shared by every framework adapter.

All Protocol interfaces use structural subtyping via typing.Protocol, so an
adapter only has to provide the attributes and methods, not inherit from
anything.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .paths import join_paths

if TYPE_CHECKING:
    from .file_source import FileSource


class FrameworkType(Enum):
    """Framework identifiers known to the default registry."""

    SVELTEKIT = "sveltekit"
    NEXTJS_APP = "nextjs-app"
    NEXTJS_PAGES = "nextjs-pages"
    NEXTJS = "nextjs"
    NUXT = "nuxt"
    REMIX = "remix"
    REACT_ROUTER = "react-router"


class Confidence(Enum):
    """Coarse framework-detection certainty."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]

    @classmethod
    def from_indicator_count(cls, count: int) -> Confidence:
        """Map the number of matched indicators (out of 3) to a confidence."""
        if count >= 3:
            return cls.HIGH
        if count == 2:
            return cls.MEDIUM
        if count == 1:
            return cls.LOW
        return cls.NONE


_CONFIDENCE_RANK = {
    Confidence.HIGH: 3,
    Confidence.MEDIUM: 2,
    Confidence.LOW: 1,
    Confidence.NONE: 0,
}


class ImpactReason(Enum):
    """Why a changed file implicates a route."""

    DIRECT = "direct"
    LAYOUT = "layout"
    IMPORT_GRAPH = "import-graph"


class HttpMethod(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


# Methods recognised in SvelteKit +server files and Remix/React Router modules
STANDARD_HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")
# Next.js route handlers additionally export HEAD and OPTIONS
NEXTJS_HTTP_METHODS = STANDARD_HTTP_METHODS + ("HEAD", "OPTIONS")


@dataclass
class ImportAlias:
    """An import prefix rewritten to a project path, or skipped when internal."""

    pattern: str
    replacement: str = ""
    is_internal: bool = False


@dataclass
class Route:
    """One navigable URL pattern discovered from file-based routing."""

    path: str
    directory: str
    has_layout: bool = False
    is_auth_protected: bool = False
    page_files: list[str] = field(default_factory=list)
    is_dynamic: bool = False
    group: str | None = None
    server_files: list[str] = field(default_factory=list)
    actions: list[str] = field(default_factory=list)
    api_methods: list[str] = field(default_factory=list)
    has_form_handler: bool = False
    has_api_endpoint: bool = False

    @property
    def key(self) -> str:
        """Identity of the route within one discovery pass."""
        return self.path

    def page_file_paths(self) -> list[str]:
        """Project-relative paths of the files backing this route."""
        return [join_paths(self.directory, name) for name in self.page_files]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ImportGraph:
    """Forward and reverse static-import maps over project-relative paths."""

    imports: dict[str, list[str]] = field(default_factory=dict)
    imported_by: dict[str, list[str]] = field(default_factory=dict)

    def dependencies_of(self, path: str) -> list[str]:
        return list(self.imports.get(path, []))

    def dependents_of(self, path: str) -> list[str]:
        return list(self.imported_by.get(path, []))

    def add_edge(self, importer: str, imported: str) -> None:
        """Record ``importer -> imported``, ignoring self-edges and duplicates."""
        if importer == imported:
            return
        targets = self.imports.setdefault(importer, [])
        if imported in targets:
            return
        targets.append(imported)
        self.imported_by.setdefault(imported, []).append(importer)

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self.imports.values())


@dataclass
class FrameworkDetectionResult:
    framework: str | None
    confidence: Confidence
    reason: str
    router_type: str | None = None
    version: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "framework": self.framework,
            "confidence": self.confidence.value,
            "reason": self.reason,
            "router_type": self.router_type,
            "version": self.version,
        }


@dataclass
class LoginPageInfo:
    file_path: str
    route: str
    content: str


@dataclass
class RepoInfo:
    owner: str
    repo: str
    ref: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass
class AdapterContext:
    """Everything an adapter may touch: the file source and where the project lives.

    Adapters never use a concrete filesystem API; every path they build is
    project-relative and turned into a source path with ``source_path()``.
    """

    file_source: FileSource
    project_root: str = ""
    repo_info: RepoInfo | None = None
    resolve_concurrency: int = 8

    def source_path(self, *parts: str) -> str:
        """Join project-relative parts onto the project root."""
        return join_paths(self.project_root, *parts)

    def to_project_path(self, source_path: str) -> str | None:
        """Strip the project root from a source path (None if outside it)."""
        root = self.project_root.strip("/")
        path = source_path.replace("\\", "/").strip("/")
        if path.startswith("./"):
            path = path[2:]
        if not root:
            return path
        if path == root:
            return ""
        if path.startswith(root + "/"):
            return path[len(root) + 1 :]
        return None


@runtime_checkable
class FrameworkAdapter(Protocol):
    """Capability set every framework adapter provides."""

    name: str
    display_name: str
    page_extensions: list[str]
    import_aliases: list[ImportAlias]

    async def detect(self, ctx: AdapterContext) -> FrameworkDetectionResult:
        """Score how likely the project uses this framework."""
        ...

    async def discover_routes(self, ctx: AdapterContext) -> list[Route]:
        """Walk the routes tree; result is sorted by path."""
        ...

    def map_file_to_routes(
        self, file_path: str, routes: list[Route], graph: ImportGraph
    ) -> list[Route]:
        """Routes implicated by a change to ``file_path``."""
        ...

    def explain_file_impact(
        self, file_path: str, routes: list[Route], graph: ImportGraph
    ) -> list[tuple[Route, ImpactReason]]:
        """Same routes as ``map_file_to_routes``, each with its reason."""
        ...

    async def resolve_import(
        self, specifier: str, from_file: str, ctx: AdapterContext
    ) -> str | None:
        """Resolve an import specifier to a project-relative file, or None."""
        ...

    async def find_login_pages(self, ctx: AdapterContext) -> list[LoginPageInfo]:
        ...

    def get_routes_directory(self) -> str:
        ...

    def is_route_file(self, file_path: str) -> bool:
        ...

    def is_layout_file(self, file_path: str) -> bool:
        ...

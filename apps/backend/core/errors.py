"""
RouteLens Exceptions
====================

Exception hierarchy shared by the route discovery and impact analysis engine.

Every error carries a short machine-readable ``code`` next to its message so
callers (CLI wrappers, CI bots) can branch on the failure kind without parsing
strings.
"""

from __future__ import annotations


class RouteLensError(Exception):
    """Base class for all routelens errors."""

    def __init__(self, message: str, code: str = "ROUTELENS_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class PathTraversalError(RouteLensError):
    """Raised when a joined path would escape the project root."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Path traversal detected in '{path}'", code="PATH_TRAVERSAL"
        )


class FrameworkNotFoundError(RouteLensError):
    """Raised when an unregistered framework name is looked up."""

    def __init__(self, framework: str, registered: list[str]):
        self.framework = framework
        self.registered = list(registered)
        super().__init__(
            f"Unknown framework: {framework}. "
            f"Available frameworks: {', '.join(self.registered)}",
            code="FRAMEWORK_NOT_FOUND",
        )


class RouteAnalysisError(RouteLensError):
    """Raised when an analysis pass cannot produce a result at all."""

    def __init__(self, message: str):
        super().__init__(message, code="ROUTE_ANALYSIS_FAILED")


class ConfigError(RouteLensError):
    """Raised when configuration values are missing or malformed."""

    def __init__(self, message: str):
        super().__init__(message, code="CONFIG_ERROR")


class GitHubError(RouteLensError):
    """Raised when the GitHub contents API returns an unrecoverable error."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message, code="GITHUB_ERROR")


class GitHubTimeoutError(GitHubError):
    """Raised when a gh CLI call times out after all retry attempts."""

    def __init__(self, message: str):
        super().__init__(message)
        self.code = "GITHUB_TIMEOUT"

"""
Path Helpers
============

Pure string helpers for project-relative, forward-slash paths.

``join_paths`` is the single place untrusted path fragments (remote directory
listings, import specifiers) are combined, so it is also where traversal
attempts are rejected.
"""

from __future__ import annotations

import re
from urllib.parse import unquote

from core.errors import PathTraversalError

# Route group: "(marketing)". Intercepting segments "(.)x", "(..)x" are not groups.
ROUTE_GROUP_PATTERN = re.compile(r"^\((?!\.)([^()/]+)\)$")

# Intercepting route segment prefixes (Next.js): (.)photo, (..)photo, (...)photo
INTERCEPTING_PATTERN = re.compile(r"^\(\.{1,3}\)")

# Bracket segments, most specific first
_BRACKET_PATTERNS = [
    ("optional_catch_all", re.compile(r"^\[\[\.\.\.([^\[\]]+)\]\]$")),
    ("optional", re.compile(r"^\[\[([^\[\]]+)\]\]$")),
    ("catch_all", re.compile(r"^\[\.\.\.([^\[\]]+)\]$")),
    ("required", re.compile(r"^\[([^\[\]]+)\]$")),
]

AUTH_GROUP_NAMES = {"auth", "protected", "private", "authenticated"}
AUTH_SEGMENT_NAMES = {"dashboard", "admin", "portal", "account", "settings", "profile"}


def _is_traversal(segment: str) -> bool:
    if segment == "..":
        return True
    if "%" not in segment:
        return False
    # URL-encoded traversal (%2e%2e, %2e., .%2e, with encoded separators)
    decoded = unquote(unquote(segment))
    return any(part == ".." for part in re.split(r"[/\\]", decoded))


def join_paths(*parts: str) -> str:
    """
    Join path fragments into one normalised project-relative path.

    Empty fragments and "." segments are dropped, backslashes become "/",
    and the result has no leading or trailing slash.

    Raises:
        PathTraversalError: If any segment is ".." or a URL-encoded variant.
            Bracket syntax such as "[...slug]" is a normal segment.
    """
    segments: list[str] = []
    for part in parts:
        if not part:
            continue
        for segment in part.replace("\\", "/").split("/"):
            if segment in ("", "."):
                continue
            if _is_traversal(segment):
                raise PathTraversalError("/".join(p for p in parts if p))
            segments.append(segment)
    return "/".join(segments)


def resolve_relative(base_dir: str, specifier: str) -> str | None:
    """
    Resolve a relative import specifier against ``base_dir``.

    Unlike ``join_paths`` this interprets ".." the way a module resolver
    does. Returns None when the result would climb above the project root.
    """
    segments = [s for s in base_dir.split("/") if s]
    for segment in specifier.replace("\\", "/").split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not segments:
                return None
            segments.pop()
        else:
            segments.append(segment)
    return "/".join(segments)


def normalize_path(path: str) -> str:
    """Forward slashes, no leading "./" and no leading or trailing slash."""
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path.strip("/")


def dirname(path: str) -> str:
    path = normalize_path(path)
    if "/" not in path:
        return ""
    return path.rsplit("/", 1)[0]


def basename(path: str) -> str:
    return normalize_path(path).rsplit("/", 1)[-1]


def relative_path(base: str, target: str) -> str:
    """Path of ``target`` relative to ``base`` after their common prefix."""
    base_parts = [p for p in base.split("/") if p]
    target_parts = [p for p in target.split("/") if p]
    common = 0
    while (
        common < len(base_parts)
        and common < len(target_parts)
        and base_parts[common] == target_parts[common]
    ):
        common += 1
    return "/".join(target_parts[common:])


def is_under(path: str, directory: str) -> bool:
    """True if ``path`` is ``directory`` itself or somewhere below it."""
    if not directory:
        return True
    return path == directory or path.startswith(directory + "/")


def strip_extension(name: str, extensions: list[str] | tuple[str, ...]) -> str:
    for ext in sorted(extensions, key=len, reverse=True):
        if name.endswith(ext):
            return name[: -len(ext)]
    return name


def is_route_group(segment: str) -> bool:
    return bool(ROUTE_GROUP_PATTERN.match(segment))


def is_intercepting_segment(segment: str) -> bool:
    return bool(INTERCEPTING_PATTERN.match(segment))


def extract_route_group(relative: str) -> str | None:
    """Name of the first route group in ``relative``, e.g. "auth" for "(auth)/login"."""
    for segment in relative.split("/"):
        match = ROUTE_GROUP_PATTERN.match(segment)
        if match:
            return match.group(1)
    return None


def parse_bracket_segment(segment: str) -> tuple[str, str] | None:
    """Classify a bracketed segment.

    Returns (kind, param) where kind is one of "required", "catch_all",
    "optional" or "optional_catch_all", or None for a static segment.
    """
    for kind, pattern in _BRACKET_PATTERNS:
        match = pattern.match(segment)
        if match:
            return kind, match.group(1)
    return None


def to_url_path(segments: list[str]) -> str:
    """Build a canonical URL path: "/"-prefixed, no trailing slash except root."""
    cleaned = [s for s in segments if s]
    if not cleaned:
        return "/"
    return "/" + "/".join(cleaned)


def strip_route_groups(pattern: str) -> str:
    """URL form of a login pattern such as "(auth)/login" -> "/login"."""
    return to_url_path([s for s in pattern.split("/") if not is_route_group(s)])


def is_auth_protected_path(relative: str) -> bool:
    """Naming heuristic: auth route groups or well-known private sections."""
    for segment in relative.split("/"):
        match = ROUTE_GROUP_PATTERN.match(segment)
        if match and match.group(1).lower() in AUTH_GROUP_NAMES:
            return True
        if segment.lower() in AUTH_SEGMENT_NAMES:
            return True
    return False

"""
Server Module Scanning
======================

Best-effort lexical scanning of route modules for:
- HTTP method handlers (SvelteKit +server, Next.js route handlers)
- SvelteKit form action names (+page.server)
- Remix / React Router ``loader``, ``action`` and default exports

This is text scanning, not parsing. Known misses: handlers re-exported from
another module (``export * from``), actions objects built programmatically,
and declarations hidden behind unusual formatting. Commented-out exports are
still matched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .types import STANDARD_HTTP_METHODS

_IDENT = r"[A-Za-z_$][\w$]*"

# export { handler as GET, POST }
_EXPORT_LIST_PATTERN = re.compile(r"export\s*\{([^}]*)\}")

# export const actions = {   /   const actions: Actions = {
_ACTIONS_START_PATTERN = re.compile(
    r"(?:export\s+)?(?:const|let|var)\s+actions\s*(?::\s*[\w$.<>\[\], ]+?\s*)?=\s*\{"
)

# Key at the start of a top-level object member
_ACTION_KEY_PATTERN = re.compile(
    rf"""^\s*(?:async\s+)?\*?\s*(?:["']([^"']+)["']|({_IDENT}))\s*(?::|\()"""
)


def _exported_names(content: str) -> list[str]:
    """Names exported through ``export { a, b as c }`` lists (the exported side)."""
    names = []
    for match in _EXPORT_LIST_PATTERN.finditer(content):
        for item in match.group(1).split(","):
            item = item.strip()
            if not item:
                continue
            parts = re.split(r"\s+as\s+", item)
            names.append(parts[-1].strip())
    return names


def _declares_export(content: str, name: str) -> bool:
    patterns = [
        rf"export\s+(?:async\s+)?function\s*\*?\s*{re.escape(name)}\b",
        rf"export\s+(?:const|let|var)\s+{re.escape(name)}\b",
    ]
    if any(re.search(pattern, content) for pattern in patterns):
        return True
    return name in _exported_names(content)


def extract_api_methods(
    content: str, allowed: tuple[str, ...] = STANDARD_HTTP_METHODS
) -> list[str]:
    """
    HTTP methods a module exports as handlers, in order of first appearance.

    Recognises ``export function GET``, ``export async function POST``,
    ``export const DELETE =``, ``export let GET =`` and export lists.
    """
    alternatives = "|".join(allowed)
    declaration = re.compile(
        rf"export\s+(?:(?:async\s+)?function\s*\*?\s*|(?:const|let|var)\s+)({alternatives})\b"
    )

    found: list[tuple[int, str]] = [(m.start(), m.group(1)) for m in declaration.finditer(content)]
    for match in _EXPORT_LIST_PATTERN.finditer(content):
        for name in _exported_names(match.group(0)):
            if name in allowed:
                found.append((match.start(), name))

    methods: list[str] = []
    for _, method in sorted(found):
        if method not in methods:
            methods.append(method)
    return methods


def _object_members(content: str, open_brace: int) -> list[str]:
    """Split the object literal starting at ``open_brace`` into top-level members."""
    members: list[str] = []
    current: list[str] = []
    brace_depth = 0
    paren_depth = 0
    quote: str | None = None
    i = open_brace

    while i < len(content):
        char = content[i]

        if quote:
            if char == "\\":
                if brace_depth == 1 and paren_depth == 0:
                    current.append(content[i : i + 2])
                i += 2
                continue
            if char == quote:
                quote = None
            if brace_depth == 1 and paren_depth == 0:
                current.append(char)
            i += 1
            continue

        if char in "\"'`":
            quote = char
            if brace_depth == 1 and paren_depth == 0:
                current.append(char)
        elif char == "{":
            brace_depth += 1
        elif char == "}":
            brace_depth -= 1
            if brace_depth == 0:
                break
        elif brace_depth == 1:
            if char == "(":
                if paren_depth == 0:
                    current.append(char)
                paren_depth += 1
            elif char == ")":
                paren_depth = max(0, paren_depth - 1)
                if paren_depth == 0:
                    current.append(char)
            elif char == "," and paren_depth == 0:
                members.append("".join(current))
                current = []
            elif paren_depth == 0:
                current.append(char)
        i += 1

    if "".join(current).strip():
        members.append("".join(current))
    return members


def extract_form_actions(content: str) -> list[str]:
    """
    Names of SvelteKit form actions declared in a +page.server module.

    Handles ``export const actions = {...}``, a type annotation
    (``actions: Actions``), and ``const actions = {...} satisfies Actions``.
    Only top-level keys count; nested objects inside an action are ignored.
    """
    match = _ACTIONS_START_PATTERN.search(content)
    if not match:
        return []

    actions: list[str] = []
    for member in _object_members(content, match.end() - 1):
        key_match = _ACTION_KEY_PATTERN.match(member)
        if not key_match:
            continue
        name = key_match.group(1) or key_match.group(2)
        if name and name not in actions:
            actions.append(name)
    return actions


@dataclass
class RouteModuleExports:
    """Remix / React Router route module conventions found in a file."""

    has_loader: bool = False
    has_action: bool = False
    has_default_export: bool = False

    @property
    def is_resource_route(self) -> bool:
        """A module without a default component only serves data."""
        return not self.has_default_export


def scan_route_module(content: str) -> RouteModuleExports:
    has_default = bool(re.search(r"export\s+default\b", content)) or (
        "default" in _exported_names(content)
    )
    return RouteModuleExports(
        has_loader=_declares_export(content, "loader"),
        has_action=_declares_export(content, "action"),
        has_default_export=has_default,
    )

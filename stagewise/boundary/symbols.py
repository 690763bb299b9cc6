"""Symbol and token extraction from diff lines.

Contains:
- Definition: A function, class or type defined on a diff line
- extract_definitions: Find definitions in a list of source lines
- removed_public_symbols: Public definitions removed without replacement
- identifier_tokens: Identifier frequency counts for similarity scoring
"""

import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from stagewise.boundary.models import GitChange
from stagewise.boundary.paths import extension


@dataclass(frozen=True)
class Definition:
    """A named definition found on a diff line."""

    name: str
    public: bool


# Each pattern captures the defined name in group 1.
DEFINITION_PATTERNS: list[re.Pattern] = [
    # Python
    re.compile(r"^\s*(?:async\s+)?def\s+([A-Za-z_]\w*)"),
    # Classes (Python, JS/TS, Java, Kotlin, C#)
    re.compile(r"^\s*(?:export\s+)?(?:default\s+)?(?:public\s+|internal\s+)?(?:abstract\s+|final\s+|data\s+)?class\s+([A-Za-z_$][\w$]*)"),
    # JS/TS functions and arrow functions
    re.compile(r"^\s*(?:export\s+)?(?:default\s+)?(?:async\s+)?function\*?\s+([A-Za-z_$][\w$]*)"),
    re.compile(r"^\s*(?:export\s+)?(?:const|let|var)\s+([A-Za-z_$][\w$]*)\s*=\s*(?:async\s+)?(?:function\b|\([^)]*\)\s*=>|[A-Za-z_$][\w$]*\s*=>)"),
    # TS interfaces, types and enums
    re.compile(r"^\s*(?:export\s+)?(?:declare\s+)?interface\s+([A-Za-z_$][\w$]*)"),
    re.compile(r"^\s*(?:export\s+)?type\s+([A-Za-z_$][\w$]*)\s*(?:<[^>]*>)?\s*="),
    re.compile(r"^\s*(?:export\s+)?(?:const\s+)?enum\s+([A-Za-z_$][\w$]*)"),
    # Go
    re.compile(r"^\s*func\s+(?:\([^)]*\)\s*)?([A-Za-z_]\w*)"),
    # Rust
    re.compile(r"^\s*(?:pub(?:\([^)]*\))?\s+)?(?:async\s+)?fn\s+([A-Za-z_]\w*)"),
    re.compile(r"^\s*(?:pub(?:\([^)]*\))?\s+)?(?:struct|trait)\s+([A-Za-z_]\w*)"),
    # Ruby
    re.compile(r"^\s*def\s+(?:self\.)?([A-Za-z_]\w*[?!]?)"),
    # Java / C# methods (a visibility modifier is required)
    re.compile(r"^\s*(?:public|protected|private)\s+(?:static\s+)?(?:final\s+)?(?:async\s+)?[\w<>\[\], ?]+?\s+([A-Za-z_]\w*)\s*\("),
]

_JS_EXTENSIONS = {".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".vue", ".svelte"}
_VISIBILITY_EXTENSIONS = {".java", ".cs", ".scala"}

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_CAMEL_RE = re.compile(r"([a-z0-9])([A-Z])")

# Keywords and boilerplate that say nothing about what a change is about
STOP_TOKENS = {
    "and", "any", "are", "args", "async", "await", "bool", "break", "case", "catch", "class",
    "const", "continue", "def", "default", "del", "elif", "else", "end", "enum", "export",
    "extends", "false", "final", "for", "from", "func", "function", "get", "if", "impl",
    "import", "in", "int", "interface", "is", "kwargs", "let", "new", "none", "not", "null",
    "number", "object", "or", "pass", "private", "protected", "pub", "public", "raise",
    "require", "return", "self", "set", "static", "str", "string", "struct", "super",
    "switch", "the", "this", "throw", "true", "try", "type", "undefined", "use", "var",
    "void", "while", "with", "yield",
}


def _is_public(name: str, line: str, ext: str) -> bool:
    stripped = line.lstrip()
    if ext in _JS_EXTENSIONS:
        return stripped.startswith("export")
    if ext in _VISIBILITY_EXTENSIONS:
        return stripped.startswith("public")
    if ext == ".go":
        return name[:1].isupper()
    if ext == ".rs":
        return stripped.startswith("pub")
    return not name.startswith("_")


def extract_definitions(lines: Iterable[str], path: str) -> list[Definition]:
    """Find function, class and type definitions in source lines.

    Args:
        lines: Source lines without diff markers.
        path: File path, used to decide what counts as public.

    Returns:
        Definitions in line order, without duplicates.
    """
    ext = extension(path)
    seen: set[str] = set()
    definitions: list[Definition] = []
    for line in lines:
        for pattern in DEFINITION_PATTERNS:
            match = pattern.match(line)
            if not match:
                continue
            name = match.group(1)
            if name not in seen:
                seen.add(name)
                definitions.append(Definition(name, _is_public(name, line, ext)))
            break
    return definitions


def defined_names(lines: Iterable[str], path: str) -> set[str]:
    return {d.name for d in extract_definitions(lines, path)}


def removed_public_symbols(change: GitChange) -> list[str]:
    """Public definitions on removed lines that are not re-added.

    A renamed or re-signatured function whose name survives on an added line
    is not reported.
    """
    if not change.content_readable:
        return []
    added = defined_names(change.added_lines, change.path)
    return [
        d.name
        for d in extract_definitions(change.removed_lines, change.path)
        if d.public and d.name not in added
    ]


def identifier_tokens(lines: Iterable[str]) -> Counter:
    """Count lowercased identifier parts, splitting camelCase and snake_case."""
    counts: Counter = Counter()
    for line in lines:
        for identifier in _IDENTIFIER_RE.findall(line):
            spaced = _CAMEL_RE.sub(r"\1_\2", identifier)
            for part in spaced.lower().split("_"):
                if len(part) >= 3 and part not in STOP_TOKENS:
                    counts[part] += 1
    return counts

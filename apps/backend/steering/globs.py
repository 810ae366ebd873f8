"""
Path Glob Matching
==================

Glob semantics used by fileMatch steering documents.

Matching rules:
- ``*`` matches any run of characters within one path segment
- ``**`` matches across segments; ``**/`` matches zero or more directories
- ``?`` matches one character other than ``/``
- ``[seq]`` / ``[!seq]`` match one character other than ``/`` in / not in ``seq``
- Patterns without ``/`` are matched against the final path segment, so
  ``*.tsx`` matches both ``Foo.tsx`` and ``src/components/Foo.tsx``
- Patterns with ``/`` are anchored at the project root
- Matching is always whole-path; there are no partial matches

Usage:
    from steering.globs import matches_glob

    matches_glob("src/components/Button.tsx", "*.tsx")          # True
    matches_glob("src/components/Button.tsx", "src/**/*.tsx")   # True
    matches_glob("src/components/Button.ts", "*.tsx")           # False
"""

from __future__ import annotations

import re

# Compiled regex cache, keyed by normalized pattern
_compiled_patterns: dict[str, re.Pattern[str]] = {}


def normalize_path(path: str) -> str:
    """
    Normalize a path for matching.

    Converts backslashes to forward slashes, collapses duplicate separators
    and drops leading ``./`` components.

    Examples:
        >>> normalize_path("src\\\\app\\\\main.py")
        'src/app/main.py'
        >>> normalize_path("./docs//guide.md")
        'docs/guide.md'
    """
    normalized = path.strip().replace("\\", "/")

    while "//" in normalized:
        normalized = normalized.replace("//", "/")

    while normalized.startswith("./"):
        normalized = normalized[2:]

    return normalized


def normalize_pattern(pattern: str) -> str:
    """
    Normalize a glob pattern for consistent matching.

    Same rules as normalize_path, plus a leading ``/`` is dropped because
    patterns are always anchored at the project root.
    """
    return normalize_path(pattern).lstrip("/")


def pattern_to_regex(pattern: str) -> str:
    """
    Convert a glob pattern to an anchored regex pattern.

    Args:
        pattern: Normalized glob pattern

    Returns:
        Regex pattern string matching whole paths
    """
    parts: list[str] = []
    i = 0
    n = len(pattern)

    while i < n:
        char = pattern[i]

        if char == "*":
            if pattern.startswith("**", i):
                i += 2
                # Swallow runs like "***"
                while i < n and pattern[i] == "*":
                    i += 1
                if i < n and pattern[i] == "/":
                    # "**/" means zero or more whole directories
                    parts.append("(?:.*/)?")
                    i += 1
                else:
                    parts.append(".*")
                continue
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        elif char == "[":
            # The first class character may itself be "]"
            end = pattern.find("]", i + 3 if pattern.startswith("[!", i) else i + 2)
            if end == -1:
                parts.append(re.escape(char))
            else:
                body = pattern[i + 1:end]
                negate = body.startswith("!")
                if negate:
                    body = body[1:]
                body = body.replace("\\", "\\\\").replace("[", "\\[")
                if negate:
                    parts.append(f"[^/{body}]")
                else:
                    if body.startswith("^"):
                        body = "\\" + body
                    # A class never matches the separator, even via a range
                    parts.append(f"(?!/)[{body}]")
                i = end
        else:
            parts.append(re.escape(char))
        i += 1

    return r"\A" + "".join(parts) + r"\Z"


def compile_glob(pattern: str) -> re.Pattern[str]:
    """
    Compile a glob pattern, using the module cache.

    Raises:
        ValueError: If the pattern is empty or produces an invalid regex
    """
    normalized = normalize_pattern(pattern)
    if not normalized:
        raise ValueError("Glob pattern must not be empty")

    compiled = _compiled_patterns.get(normalized)
    if compiled is None:
        try:
            compiled = re.compile(pattern_to_regex(normalized))
        except re.error as e:
            raise ValueError(f"Invalid glob pattern '{pattern}': {e}") from e
        _compiled_patterns[normalized] = compiled
    return compiled


def matches_glob(path: str, pattern: str) -> bool:
    """
    Check whether a path matches a glob pattern.

    Args:
        path: File path (relative to the project root for anchored patterns)
        pattern: Glob pattern

    Returns:
        True if the whole path (or, for patterns without ``/``, its final
        segment) matches the pattern
    """
    compiled = compile_glob(pattern)
    candidate = normalize_path(path)

    if "/" not in normalize_pattern(pattern):
        candidate = candidate.rsplit("/", 1)[-1]

    return compiled.match(candidate) is not None


def validate_glob(pattern: str) -> None:
    """
    Validate that a pattern compiles.

    Raises:
        ValueError: If the pattern is empty or invalid
    """
    compile_glob(pattern)


def clear_pattern_cache() -> None:
    """Drop all compiled patterns."""
    _compiled_patterns.clear()

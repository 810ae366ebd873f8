"""
Steering Document Headers
=========================

Parses and validates the inclusion header at the top of a steering document.

A header is a block of ``key: value`` lines between two ``---`` delimiter
lines. Everything after the closing delimiter is the document body:

    ---
    inclusion: fileMatch
    fileMatchPattern: *.tsx
    description: React component conventions
    ---
    # Component Standards
    ...

Recognised keys:
- inclusion: ``always`` (default), ``fileMatch`` or ``manual``
- fileMatchPattern (alias ``pattern``): glob for fileMatch documents
- tag: tag a task must reference for manual documents
- description: optional one-line summary

Documents without a header are always included.

Usage:
    from steering.header import InvalidMetadataError, parse_document

    try:
        document = parse_document(text, identifier="frontend/react.md")
    except InvalidMetadataError as e:
        print(f"Skipping {e.identifier} ({e.field}): {e}")
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Optional

import yaml

from .globs import validate_glob
from .models import InclusionMode, SteeringDocument, normalize_tag


# =============================================================================
# EXCEPTIONS
# =============================================================================

class InvalidMetadataError(Exception):
    """Exception raised when a document's inclusion header is malformed."""

    def __init__(self, message: str, identifier: Optional[str] = None, field: Optional[str] = None):
        """
        Initialize metadata error.

        Args:
            message: Error message
            identifier: Identifier of the offending document (if known)
            field: Header field that caused the error (if applicable)
        """
        self.identifier = identifier
        self.field = field
        super().__init__(message)

    def __str__(self) -> str:
        message = super().__str__()
        if self.identifier:
            return f"{self.identifier}: {message}"
        return message


# =============================================================================
# HEADER FORMAT
# =============================================================================

HEADER_DELIMITER = "---"

HEADER_KEYS = {"inclusion", "fileMatchPattern", "pattern", "tag", "description"}

_BOM = "\ufeff"

# Top-level "key: value" line whose value YAML would read as syntax (alias,
# anchor, tag, flow collection) rather than as a plain string
_BARE_VALUE = re.compile(
    r"^(?P<key>[A-Za-z_][\w-]*)(?P<sep>[ \t]*:[ \t]+)"
    r"(?P<value>[*&!\[\]{}%@`][^\r\n]*?)[ \t]*(?P<eol>\r?)$",
    re.MULTILINE,
)


def _quote_bare_values(header: str) -> str:
    """Single-quote values like ``*.sql`` so they load as literal strings."""

    def quote(match: re.Match[str]) -> str:
        value = match.group("value").replace("'", "''")
        return f"{match.group('key')}{match.group('sep')}'{value}'{match.group('eol')}"

    return _BARE_VALUE.sub(quote, header)


def split_header(text: str, identifier: Optional[str] = None) -> tuple[Optional[str], str]:
    """
    Split a document into its raw header block and body.

    Args:
        text: Full document text
        identifier: Document identifier (for error messages)

    Returns:
        Tuple of (header text or None when there is no header, body)

    Raises:
        InvalidMetadataError: If a header is opened but never closed
    """
    if text.startswith(_BOM):
        text = text[len(_BOM):]

    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != HEADER_DELIMITER:
        return None, text

    for index in range(1, len(lines)):
        if lines[index].strip() == HEADER_DELIMITER:
            header = "".join(lines[1:index])
            body = "".join(lines[index + 1:])
            return header, body.lstrip("\r\n")

    raise InvalidMetadataError(
        f"Header opened with '{HEADER_DELIMITER}' but never closed",
        identifier=identifier,
        field="header",
    )


def parse_header(header: str, identifier: Optional[str] = None) -> dict[str, Any]:
    """
    Parse a raw header block into a mapping.

    Every scalar is kept as a string (``tag: 2024`` and ``tag: yes`` stay
    ``"2024"`` and ``"yes"``), and bare values starting with YAML syntax
    characters such as ``*.sql`` are read literally.

    Raises:
        InvalidMetadataError: If the block is not a YAML mapping or has unknown keys
    """
    try:
        data = yaml.load(_quote_bare_values(header), Loader=yaml.BaseLoader)
    except yaml.YAMLError as e:
        raise InvalidMetadataError(
            f"Header is not valid key-value metadata: {e}",
            identifier=identifier,
            field="header",
        ) from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise InvalidMetadataError(
            "Header must be a set of 'key: value' lines",
            identifier=identifier,
            field="header",
        )

    unknown_keys = {str(key) for key in data} - HEADER_KEYS
    if unknown_keys:
        raise InvalidMetadataError(
            f"Unknown header keys: {', '.join(sorted(unknown_keys))}",
            identifier=identifier,
            field="header",
        )

    return data


def _string_field(data: dict[str, Any], key: str, identifier: Optional[str]) -> Optional[str]:
    """Fetch an optional string field, rejecting other types."""
    if key not in data or data[key] is None:
        return None
    value = data[key]
    if not isinstance(value, str):
        raise InvalidMetadataError(
            f"'{key}' must be a string, got {type(value).__name__}",
            identifier=identifier,
            field=key,
        )
    return value.strip()


# =============================================================================
# DOCUMENT PARSING
# =============================================================================

def parse_document(
    text: str,
    identifier: str,
    source_path: Optional[Path] = None,
) -> SteeringDocument:
    """
    Parse document text into a validated SteeringDocument.

    Validation:
    - inclusion must name a known mode (missing means ``always``)
    - fileMatch requires a non-empty, compilable pattern
    - manual requires a non-empty tag
    - pattern and tag are only accepted for the mode that uses them

    Args:
        text: Full document text, header included
        identifier: Document identifier (path relative to the document directory)
        source_path: Absolute path the text was read from

    Returns:
        SteeringDocument

    Raises:
        InvalidMetadataError: If the header is malformed
    """
    header, body = split_header(text, identifier)
    data = parse_header(header, identifier) if header is not None else {}

    mode_value = data.get("inclusion", InclusionMode.ALWAYS.value)
    if not isinstance(mode_value, str):
        raise InvalidMetadataError(
            f"'inclusion' must be a string, got {type(mode_value).__name__}",
            identifier=identifier,
            field="inclusion",
        )
    try:
        mode = InclusionMode.parse(mode_value)
    except ValueError:
        valid_modes = [m.value for m in InclusionMode]
        raise InvalidMetadataError(
            f"Invalid inclusion mode '{mode_value}'. Must be one of: {', '.join(valid_modes)}",
            identifier=identifier,
            field="inclusion",
        )

    if "fileMatchPattern" in data and "pattern" in data:
        raise InvalidMetadataError(
            "Use either 'fileMatchPattern' or 'pattern', not both",
            identifier=identifier,
            field="fileMatchPattern",
        )
    pattern_key = "pattern" if "pattern" in data else "fileMatchPattern"
    pattern = _string_field(data, pattern_key, identifier)
    tag = _string_field(data, "tag", identifier)
    description = _string_field(data, "description", identifier) or ""

    if mode == InclusionMode.FILE_MATCH:
        if not pattern:
            raise InvalidMetadataError(
                "fileMatch documents require a non-empty 'fileMatchPattern'",
                identifier=identifier,
                field="fileMatchPattern",
            )
        try:
            validate_glob(pattern)
        except ValueError as e:
            raise InvalidMetadataError(str(e), identifier=identifier, field=pattern_key)
    elif pattern:
        raise InvalidMetadataError(
            f"'{pattern_key}' is only valid for fileMatch documents (inclusion is '{mode.value}')",
            identifier=identifier,
            field=pattern_key,
        )

    if mode == InclusionMode.MANUAL:
        if not tag or not normalize_tag(tag):
            raise InvalidMetadataError(
                "manual documents require a non-empty 'tag'",
                identifier=identifier,
                field="tag",
            )
        tag = tag.lstrip("#").strip()
    elif tag:
        raise InvalidMetadataError(
            f"'tag' is only valid for manual documents (inclusion is '{mode.value}')",
            identifier=identifier,
            field="tag",
        )

    return SteeringDocument(
        identifier=identifier,
        mode=mode,
        content=body,
        match_pattern=pattern if mode == InclusionMode.FILE_MATCH else None,
        tag=tag if mode == InclusionMode.MANUAL else None,
        description=description,
        source_path=source_path,
    )

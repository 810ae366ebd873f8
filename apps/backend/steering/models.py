"""
Data Models for Steering Context Loading
=========================================

Defines the core data structures for selecting which steering documents
(standards, architecture decisions, workflow guides) apply to a development
task.

This module provides:
- InclusionMode: When a document becomes active
- SteeringDocument: A loaded, validated document
- TaskContext: What the current task is working on
- Activation / ActivationResult: Documents selected for a task
- RankedDocument: A selected document fitted into a budget
- RegistrySnapshot: Immutable view of every loaded document
- SteeringConfig: Per-project configuration
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterator


# =============================================================================
# ENUMS
# =============================================================================

class InclusionMode(str, Enum):
    """
    Policy governing when a steering document is active.

    Attributes:
        ALWAYS: Included in every task context
        FILE_MATCH: Included when the active file matches the document's glob
        MANUAL: Included only when the task references the document's tag
    """

    ALWAYS = "always"
    FILE_MATCH = "fileMatch"
    MANUAL = "manual"

    @classmethod
    def parse(cls, value: str) -> "InclusionMode":
        """
        Parse a header value into an InclusionMode.

        Accepts the canonical values case-insensitively, plus the
        ``file_match`` and ``file-match`` spellings.

        Raises:
            ValueError: If the value names no known mode
        """
        key = value.strip().lower().replace("_", "").replace("-", "")
        for mode in cls:
            if mode.value.lower() == key:
                return mode
        raise ValueError(f"Unknown inclusion mode '{value}'")


# =============================================================================
# DOCUMENTS
# =============================================================================

@dataclass(frozen=True)
class SteeringDocument:
    """
    A steering document loaded from the document directory.

    Documents are immutable once loaded. Exactly one inclusion mode applies;
    ``match_pattern`` is set only for FILE_MATCH and ``tag`` only for MANUAL.

    Attributes:
        identifier: Path relative to the document directory (POSIX separators)
        mode: Inclusion mode
        content: Document body with the header removed
        match_pattern: Glob the active file must match (FILE_MATCH only)
        tag: Tag a task must reference (MANUAL only)
        description: Optional one-line summary from the header
        source_path: Absolute path the document was read from
    """

    identifier: str
    mode: InclusionMode
    content: str
    match_pattern: str | None = None
    tag: str | None = None
    description: str = ""
    source_path: Path | None = None

    def __post_init__(self):
        """Enforce the one-mode-one-field invariant."""
        if self.mode == InclusionMode.FILE_MATCH and not self.match_pattern:
            raise ValueError(f"{self.identifier}: fileMatch document requires a pattern")
        if self.mode == InclusionMode.MANUAL and not self.tag:
            raise ValueError(f"{self.identifier}: manual document requires a tag")
        if self.mode != InclusionMode.FILE_MATCH and self.match_pattern:
            raise ValueError(f"{self.identifier}: only fileMatch documents take a pattern")
        if self.mode != InclusionMode.MANUAL and self.tag:
            raise ValueError(f"{self.identifier}: only manual documents take a tag")

    @property
    def size(self) -> int:
        """Size of the content in characters."""
        return len(self.content)

    def to_dict(self, include_content: bool = True) -> dict:
        """Convert to JSON-serializable dict."""
        data = {
            "identifier": self.identifier,
            "mode": self.mode.value,
            "match_pattern": self.match_pattern,
            "tag": self.tag,
            "description": self.description,
        }
        if include_content:
            data["content"] = self.content
        return data


# =============================================================================
# TASK CONTEXT
# =============================================================================

# "#tag" references typed into a prompt; a tag starts with a letter or digit
_TAG_REFERENCE = re.compile(r"(?<![\w#])#([A-Za-z0-9](?:[A-Za-z0-9_.\-]*[A-Za-z0-9_])?)")


def normalize_tag(tag: str) -> str:
    """Canonical form used when comparing tags."""
    return tag.strip().lstrip("#").strip().casefold()


@dataclass(frozen=True)
class TaskContext:
    """
    The development task documents are being selected for.

    Attributes:
        active_file: Path of the file being edited (optional)
        tags: Tags explicitly referenced by the task
        description: Free-text task description
    """

    active_file: str | None = None
    tags: frozenset[str] = frozenset()
    description: str = ""

    def __post_init__(self):
        # Accept any iterable of tags, store a frozenset
        if not isinstance(self.tags, frozenset):
            object.__setattr__(self, "tags", frozenset(self.tags))

    @classmethod
    def from_prompt(
        cls,
        prompt: str,
        active_file: str | None = None,
        extra_tags: list[str] | None = None,
    ) -> "TaskContext":
        """
        Build a context from a free-text prompt.

        ``#tag`` references in the prompt are collected as explicit tags and
        the prompt itself becomes the description.

        Args:
            prompt: The task as typed by the user
            active_file: Path of the file being edited
            extra_tags: Additional tags to reference

        Returns:
            TaskContext for the prompt
        """
        tags = set(_TAG_REFERENCE.findall(prompt))
        tags.update(extra_tags or [])
        return cls(active_file=active_file, tags=frozenset(tags), description=prompt)

    @property
    def normalized_tags(self) -> frozenset[str]:
        return frozenset(normalize_tag(t) for t in self.tags if normalize_tag(t))


# =============================================================================
# RESULTS
# =============================================================================

@dataclass(frozen=True)
class Activation:
    """A selected document and the rule that selected it."""

    document: SteeringDocument
    reason: InclusionMode

    def to_dict(self) -> dict:
        return {"identifier": self.document.identifier, "reason": self.reason.value}


@dataclass(frozen=True)
class ActivationResult:
    """
    Ordered set of documents selected for a TaskContext.

    Order follows registry order, never match strength.
    """

    activations: tuple[Activation, ...] = ()

    def __iter__(self) -> Iterator[SteeringDocument]:
        return (a.document for a in self.activations)

    def __len__(self) -> int:
        return len(self.activations)

    def __contains__(self, item: object) -> bool:
        """Membership by SteeringDocument or by identifier."""
        if isinstance(item, SteeringDocument):
            return any(a.document == item for a in self.activations)
        return item in self.identifiers

    @property
    def identifiers(self) -> list[str]:
        return [a.document.identifier for a in self.activations]

    @property
    def documents(self) -> list[SteeringDocument]:
        return [a.document for a in self.activations]

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {"activations": [a.to_dict() for a in self.activations]}


@dataclass(frozen=True)
class RankedDocument:
    """
    A document placed into a budgeted context.

    Attributes:
        document: The source document
        content: Content handed to the assembler (possibly truncated)
        score: Lexical relevance score against the task description
        truncated: Whether ``content`` is shorter than the document
    """

    document: SteeringDocument
    content: str
    score: float = 0.0
    truncated: bool = False

    @property
    def identifier(self) -> str:
        return self.document.identifier

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "identifier": self.document.identifier,
            "mode": self.document.mode.value,
            "score": round(self.score, 6),
            "truncated": self.truncated,
            "content": self.content,
        }


@dataclass(frozen=True)
class RegistrySnapshot:
    """
    Immutable view of a loaded document directory.

    Attributes:
        directory: Directory the documents were loaded from
        documents: Documents in registry order (lexicographic by identifier)
        errors: Metadata errors for documents excluded during loading
        loaded_at: When the snapshot was built (ISO 8601, UTC)
    """

    directory: Path
    documents: tuple[SteeringDocument, ...] = ()
    errors: tuple[Exception, ...] = ()
    loaded_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def get(self, identifier: str) -> SteeringDocument | None:
        for document in self.documents:
            if document.identifier == identifier:
                return document
        return None


# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_STOP_WORDS = (
    "about", "after", "all", "also", "and", "any", "are", "but", "can", "for",
    "from", "has", "have", "how", "into", "its", "not", "now", "our", "should",
    "that", "the", "their", "then", "there", "these", "this", "use", "using",
    "was", "what", "when", "where", "which", "will", "with", "you", "your",
)


@dataclass(frozen=True)
class SteeringConfig:
    """
    Configuration for steering context loading.

    Loaded from .steering/steering.json or equivalent. Immutable, since one
    cached instance is shared by every loader for a project.

    Attributes:
        documents_dir: Document directory, relative to the project directory
        extensions: File suffixes treated as steering documents
        recursive: Whether subdirectories are scanned
        strict: If True, any invalid document fails the whole load
        default_budget: Character budget used when none is given (None = unbounded)
        min_term_length: Shortest description term used for ranking
        stop_words: Terms ignored when ranking
        version: Config schema version for migration
    """

    documents_dir: str = ".steering/documents"
    extensions: tuple[str, ...] = (".md",)
    recursive: bool = True
    strict: bool = False
    default_budget: int | None = None
    min_term_length: int = 3
    stop_words: tuple[str, ...] = DEFAULT_STOP_WORDS
    version: str = "1.0"

    def __post_init__(self):
        # Accept any sequence of strings, store tuples
        object.__setattr__(self, "extensions", tuple(self.extensions))
        object.__setattr__(self, "stop_words", tuple(self.stop_words))

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "documents_dir": self.documents_dir,
            "extensions": list(self.extensions),
            "recursive": self.recursive,
            "strict": self.strict,
            "default_budget": self.default_budget,
            "min_term_length": self.min_term_length,
            "stop_words": list(self.stop_words),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SteeringConfig":
        """Load from dict."""
        return cls(
            documents_dir=data.get("documents_dir", ".steering/documents"),
            extensions=data.get("extensions", (".md",)),
            recursive=data.get("recursive", True),
            strict=data.get("strict", False),
            default_budget=data.get("default_budget"),
            min_term_length=data.get("min_term_length", 3),
            stop_words=data.get("stop_words", DEFAULT_STOP_WORDS),
            version=data.get("version", "1.0"),
        )

    def documents_path(self, project_dir: Path) -> Path:
        """Resolve the document directory against a project directory."""
        path = Path(self.documents_dir)
        if path.is_absolute():
            return path
        return Path(project_dir) / path

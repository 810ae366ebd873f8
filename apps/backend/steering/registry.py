"""
Steering Document Registry
==========================

Loads every steering document from a directory, validates its inclusion
header and keeps the result as an immutable snapshot.

Loading rules:
- A missing document directory is fatal (DirectoryNotFoundError)
- Files that cannot be read or decoded are logged and skipped
- Documents with malformed headers are excluded; their InvalidMetadataError
  is kept on the snapshot so callers can surface it. In strict mode the load
  fails instead, listing every offending document.
- Documents are ordered lexicographically by identifier

Reloading builds a complete new snapshot and swaps it in with a single
reference assignment, so callers holding the previous snapshot never see a
half-updated document set.

Usage:
    from steering.registry import DocumentRegistry

    registry = DocumentRegistry(Path("/project/.steering/documents"))
    registry.load()
    for document in registry.all():
        print(document.identifier, document.mode.value)
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from .header import InvalidMetadataError, parse_document
from .models import RegistrySnapshot, SteeringConfig, SteeringDocument

logger = logging.getLogger(__name__)


DEFAULT_EXTENSIONS = (".md",)


# =============================================================================
# EXCEPTIONS
# =============================================================================

class DirectoryNotFoundError(Exception):
    """Exception raised when the configured document directory does not exist."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        super().__init__(f"Steering document directory not found: {self.directory}")


# =============================================================================
# SCANNING
# =============================================================================

def _normalize_extensions(extensions: Iterable[str]) -> set[str]:
    normalized = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if ext and not ext.startswith("."):
            ext = f".{ext}"
        if ext:
            normalized.add(ext)
    return normalized


def scan_directory(
    directory: Path,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    recursive: bool = True,
) -> list[Path]:
    """
    List candidate document files under a directory.

    Hidden files and hidden directories are skipped.

    Args:
        directory: Directory to scan
        extensions: File suffixes to include (case-insensitive)
        recursive: Whether to descend into subdirectories

    Returns:
        Sorted list of file paths
    """
    wanted = _normalize_extensions(extensions)
    candidates = directory.rglob("*") if recursive else directory.glob("*")

    files = []
    for path in candidates:
        relative_parts = path.relative_to(directory).parts
        if any(part.startswith(".") for part in relative_parts):
            continue
        if not path.is_file():
            continue
        if path.suffix.lower() not in wanted:
            continue
        files.append(path)

    return sorted(files)


def load_snapshot(
    directory: Path,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    recursive: bool = True,
    strict: bool = False,
) -> RegistrySnapshot:
    """
    Load and validate every document in a directory.

    Args:
        directory: Document directory
        extensions: File suffixes treated as documents
        recursive: Whether subdirectories are scanned
        strict: If True, raise when any document has malformed metadata

    Returns:
        RegistrySnapshot with valid documents and collected metadata errors

    Raises:
        DirectoryNotFoundError: If the directory does not exist
        InvalidMetadataError: In strict mode, if any document is malformed
    """
    directory = Path(directory).resolve()
    if not directory.is_dir():
        raise DirectoryNotFoundError(directory)

    documents: list[SteeringDocument] = []
    errors: list[InvalidMetadataError] = []

    for path in scan_directory(directory, extensions, recursive):
        identifier = path.relative_to(directory).as_posix()

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping unreadable steering document {identifier}: {e}")
            continue

        try:
            documents.append(parse_document(text, identifier=identifier, source_path=path))
        except InvalidMetadataError as e:
            logger.warning(f"Excluding steering document with invalid metadata: {e}")
            errors.append(e)

    if strict and errors:
        error_msg = f"Invalid steering document metadata in {directory}:\n"
        error_msg += "\n".join(f"  - {err}" for err in errors)
        raise InvalidMetadataError(error_msg) from errors[0]

    documents.sort(key=lambda d: d.identifier)
    return RegistrySnapshot(
        directory=directory,
        documents=tuple(documents),
        errors=tuple(errors),
    )


# =============================================================================
# REGISTRY
# =============================================================================

class DocumentRegistry:
    """
    Holds the current snapshot of loaded steering documents.

    The registry is safe to share between threads: readers take the current
    snapshot reference and work on it; load() and reload() build a new
    snapshot outside the lock and only the reference swap happens under it.

    Attributes:
        directory: Document directory (set by the constructor or load())
        extensions: File suffixes treated as documents
        recursive: Whether subdirectories are scanned
        strict: Whether malformed metadata fails the whole load
    """

    def __init__(
        self,
        directory: Path | None = None,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        recursive: bool = True,
        strict: bool = False,
    ):
        self.directory = Path(directory).resolve() if directory else None
        self.extensions = tuple(extensions)
        self.recursive = recursive
        self.strict = strict
        self._lock = threading.Lock()
        self._snapshot: RegistrySnapshot | None = None

    @classmethod
    def from_config(cls, project_dir: Path, config: SteeringConfig) -> "DocumentRegistry":
        """Create a registry for a project using its steering configuration."""
        return cls(
            directory=config.documents_path(Path(project_dir)),
            extensions=config.extensions,
            recursive=config.recursive,
            strict=config.strict,
        )

    def load(self, directory: Path | None = None) -> list[SteeringDocument]:
        """
        Load all documents from the document directory.

        Args:
            directory: Directory to load from; defaults to the registry's directory

        Returns:
            Loaded documents in registry order

        Raises:
            DirectoryNotFoundError: If the directory does not exist
            InvalidMetadataError: In strict mode, if any document is malformed
            ValueError: If no directory was given here or to the constructor
        """
        if directory is not None:
            self.directory = Path(directory).resolve()
        if self.directory is None:
            raise ValueError("No steering document directory configured")

        snapshot = load_snapshot(
            self.directory,
            extensions=self.extensions,
            recursive=self.recursive,
            strict=self.strict,
        )
        self._swap(snapshot)
        return list(snapshot.documents)

    def reload(self) -> RegistrySnapshot:
        """
        Re-scan the document directory and swap in the new snapshot.

        If the re-scan fails the previous snapshot stays current.

        Returns:
            The newly installed snapshot
        """
        self.load()
        return self.snapshot()

    def _swap(self, snapshot: RegistrySnapshot) -> None:
        with self._lock:
            previous = self._snapshot
            self._snapshot = snapshot

        logger.info(
            f"Loaded {len(snapshot.documents)} steering documents from {snapshot.directory}"
            f" ({len(snapshot.errors)} excluded)"
        )
        if previous is not None:
            logger.debug(
                f"Replaced snapshot from {previous.loaded_at} "
                f"({len(previous.documents)} documents)"
            )

    def snapshot(self) -> RegistrySnapshot:
        """
        Get the current snapshot.

        Returns an empty snapshot if nothing has been loaded yet.
        """
        with self._lock:
            snapshot = self._snapshot
        if snapshot is None:
            return RegistrySnapshot(directory=self.directory or Path("."))
        return snapshot

    def is_loaded(self) -> bool:
        return self._snapshot is not None

    def all(self) -> list[SteeringDocument]:
        """All documents, ordered lexicographically by identifier."""
        return list(self.snapshot().documents)

    def get(self, identifier: str) -> SteeringDocument | None:
        """Look up a document by identifier."""
        return self.snapshot().get(identifier)

    def get_load_errors(self) -> list[InvalidMetadataError]:
        """Metadata errors for documents excluded by the last load."""
        return list(self.snapshot().errors)

    def __len__(self) -> int:
        return len(self.snapshot().documents)

    def __iter__(self) -> Iterator[SteeringDocument]:
        return iter(self.snapshot().documents)

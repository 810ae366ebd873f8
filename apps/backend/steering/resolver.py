"""
Inclusion Resolver
==================

Decides which steering documents apply to a task.

For each document, in registry order:
- always: included
- fileMatch: included iff the task's active file matches the document's glob
- manual: included iff the task explicitly references the document's tag

The rules are mutually exclusive, so a document is selected by at most one
of them. A task with no active file and no tags gets only the always
documents. resolve() is a pure function of its inputs.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from .globs import matches_glob, normalize_path
from .models import (
    Activation,
    ActivationResult,
    InclusionMode,
    SteeringDocument,
    TaskContext,
    normalize_tag,
)

logger = logging.getLogger(__name__)


def relative_active_file(active_file: str, project_dir: Optional[Path] = None) -> str:
    """
    Express an active file path relative to the project directory.

    Absolute paths inside the project are made relative so root-anchored
    patterns like ``src/**/*.ts`` can match them. Other paths are only
    normalized. Purely lexical: the file system is never consulted and
    symlinks are not followed.
    """
    if project_dir is not None and os.path.isabs(active_file):
        root = os.path.normpath(os.fspath(project_dir))
        candidate = os.path.normpath(active_file)
        try:
            if os.path.commonpath([root, candidate]) == root:
                return normalize_path(os.path.relpath(candidate, root))
        except ValueError:
            # Relative project_dir, or different drives on Windows
            pass
    return normalize_path(active_file)


def activation_reason(
    document: SteeringDocument,
    active_file: Optional[str],
    tags: frozenset[str],
) -> Optional[InclusionMode]:
    """
    Decide whether one document is active.

    Args:
        document: Document to check
        active_file: Normalized active file path (or None)
        tags: Normalized explicit tags

    Returns:
        The rule that selected the document, or None if it is not active
    """
    if document.mode == InclusionMode.ALWAYS:
        return InclusionMode.ALWAYS

    if document.mode == InclusionMode.FILE_MATCH:
        if active_file and matches_glob(active_file, document.match_pattern):
            return InclusionMode.FILE_MATCH
        return None

    if document.mode == InclusionMode.MANUAL:
        if normalize_tag(document.tag) in tags:
            return InclusionMode.MANUAL
        return None

    return None


def resolve(
    context: TaskContext,
    documents: Iterable[SteeringDocument],
    project_dir: Optional[Path] = None,
) -> ActivationResult:
    """
    Compute which documents apply to a task.

    Args:
        context: The task being worked on
        documents: Documents in registry order (a snapshot's documents, or a registry)
        project_dir: Project root used to relativize an absolute active file

    Returns:
        ActivationResult in registry order
    """
    active_file = None
    if context.active_file:
        active_file = relative_active_file(context.active_file, project_dir) or None
    tags = context.normalized_tags

    activations = []
    for document in documents:
        reason = activation_reason(document, active_file, tags)
        if reason is None:
            continue
        logger.debug(f"Activated {document.identifier} ({reason.value})")
        activations.append(Activation(document=document, reason=reason))

    return ActivationResult(activations=tuple(activations))

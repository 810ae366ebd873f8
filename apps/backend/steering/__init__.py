"""
Steering Context System
=======================

Selects which steering documents (engineering standards, architecture
decisions, workflow guides) apply to a development task, and fits them into
the context handed to an AI coding assistant.

This package provides:
- Data models for documents, task contexts and results
- Header parsing and validation for document inclusion metadata
- Glob matching for fileMatch documents
- A document registry with atomic reload
- The inclusion resolver and relevance ranker
- Per-project configuration

Main exports:
- InclusionMode: always / fileMatch / manual
- SteeringDocument: A loaded, validated document
- TaskContext: The task documents are selected for
- ActivationResult: Documents selected for a task
- RankedDocument: A selected document fitted into a budget
- DocumentRegistry: Loads and holds documents
- resolve / rank: Selection and prioritization
- SteeringContextLoader: Config + registry + resolve + rank in one object
"""

# Data models
from .models import (
    Activation,
    ActivationResult,
    InclusionMode,
    RankedDocument,
    RegistrySnapshot,
    SteeringConfig,
    SteeringDocument,
    TaskContext,
    normalize_tag,
)

# Glob matching
from .globs import matches_glob, normalize_path, normalize_pattern, pattern_to_regex

# Header parsing
from .header import InvalidMetadataError, parse_document, split_header

# Registry
from .registry import DirectoryNotFoundError, DocumentRegistry, load_snapshot, scan_directory

# Resolution and ranking
from .resolver import resolve
from .ranker import extract_terms, rank, score_document, total_size, truncate_content

# Configuration loading
from .config import (
    SteeringConfigLoader,
    clear_config_cache,
    get_config_file_path,
    get_steering_config,
    load_steering_config,
)

# Facade
from .loader import SteeringContextLoader

__all__ = [
    # Models
    "Activation",
    "ActivationResult",
    "InclusionMode",
    "RankedDocument",
    "RegistrySnapshot",
    "SteeringConfig",
    "SteeringDocument",
    "TaskContext",
    "normalize_tag",
    # Glob matching
    "matches_glob",
    "normalize_path",
    "normalize_pattern",
    "pattern_to_regex",
    # Header parsing
    "InvalidMetadataError",
    "parse_document",
    "split_header",
    # Registry
    "DirectoryNotFoundError",
    "DocumentRegistry",
    "load_snapshot",
    "scan_directory",
    # Resolution and ranking
    "resolve",
    "rank",
    "extract_terms",
    "score_document",
    "total_size",
    "truncate_content",
    # Configuration loading
    "SteeringConfigLoader",
    "load_steering_config",
    "get_steering_config",
    "clear_config_cache",
    "get_config_file_path",
    # Facade
    "SteeringContextLoader",
]

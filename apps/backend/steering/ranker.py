"""
Relevance Ranker
================

Orders activated steering documents by lexical relevance to a task
description and fits them into a character budget.

Scoring:
    Description terms are lower-cased alphanumeric runs of at least
    ``min_term_length`` characters, minus stop words. For each distinct term
    found in a document's content, the document scores ``1 + ln(tf)`` where
    ``tf`` is the term's count in the content.

Ordering:
    Score descending, ties broken by registry order.

Budget:
    Always documents are funded first, then fileMatch and manual documents,
    each group in ranked order. Documents are taken whole while they fit; the
    first one that does not fit is truncated to the remaining budget and
    allocation stops. The returned content never exceeds the budget, and a
    smaller budget never returns more documents.
"""

from __future__ import annotations

import logging
import math
import re
from collections import Counter
from typing import Iterable, Optional, Sequence, Union

from .models import (
    DEFAULT_STOP_WORDS,
    ActivationResult,
    InclusionMode,
    RankedDocument,
    SteeringDocument,
)

logger = logging.getLogger(__name__)

_TERM_PATTERN = re.compile(r"[a-z0-9]+")

TRUNCATION_MARKER = "\n..."


# =============================================================================
# SCORING
# =============================================================================

def extract_terms(
    text: str,
    min_term_length: int = 3,
    stop_words: Iterable[str] = DEFAULT_STOP_WORDS,
) -> list[str]:
    """
    Split text into lower-cased ranking terms.

    Args:
        text: Text to split
        min_term_length: Shortest term kept
        stop_words: Terms dropped from the result

    Returns:
        Terms in order of appearance (duplicates kept)
    """
    ignored = {w.lower() for w in stop_words}
    return [
        term
        for term in _TERM_PATTERN.findall(text.lower())
        if len(term) >= min_term_length and term not in ignored
    ]


def score_document(document: SteeringDocument, query_terms: set[str]) -> float:
    """Lexical overlap between a document's content and a set of query terms."""
    if not query_terms:
        return 0.0
    counts = Counter(_TERM_PATTERN.findall(document.content.lower()))
    return sum(1.0 + math.log(counts[term]) for term in query_terms if counts[term] > 0)


# =============================================================================
# TRUNCATION
# =============================================================================

def truncate_content(text: str, limit: int) -> str:
    """
    Cut text to at most ``limit`` characters.

    When there is room, the cut text ends with TRUNCATION_MARKER so the reader
    can tell content is missing.
    """
    if len(text) <= limit:
        return text
    if limit <= len(TRUNCATION_MARKER) * 2:
        return text[:limit]
    return text[: limit - len(TRUNCATION_MARKER)].rstrip() + TRUNCATION_MARKER


# =============================================================================
# RANKING
# =============================================================================

def rank(
    activated: Union[ActivationResult, Sequence[SteeringDocument]],
    description: str,
    budget: Optional[int] = None,
    *,
    min_term_length: int = 3,
    stop_words: Iterable[str] = DEFAULT_STOP_WORDS,
) -> list[RankedDocument]:
    """
    Rank activated documents and fit them into a character budget.

    Args:
        activated: Activated documents in registry order
        description: Free-text task description
        budget: Maximum total characters of returned content (None = unbounded)
        min_term_length: Shortest description term used for scoring
        stop_words: Description terms ignored for scoring

    Returns:
        RankedDocument list, score descending with ties in registry order

    Raises:
        ValueError: If budget is negative
    """
    if budget is not None and budget < 0:
        raise ValueError(f"Budget must be non-negative, got {budget}")

    documents = list(activated)
    query_terms = set(extract_terms(description, min_term_length, stop_words))

    scored = [
        (index, document, score_document(document, query_terms))
        for index, document in enumerate(documents)
    ]
    ordered = sorted(scored, key=lambda entry: (-entry[2], entry[0]))

    if budget is None:
        return [
            RankedDocument(document=document, content=document.content, score=score)
            for _, document, score in ordered
        ]

    # Always documents keep their content longest
    allocation = [e for e in ordered if e[1].mode == InclusionMode.ALWAYS]
    allocation += [e for e in ordered if e[1].mode != InclusionMode.ALWAYS]

    fitted: dict[int, tuple[str, bool]] = {}
    remaining = budget
    for index, document, _ in allocation:
        if remaining <= 0:
            break
        if document.size <= remaining:
            fitted[index] = (document.content, False)
            remaining -= document.size
            continue
        content = truncate_content(document.content, remaining)
        fitted[index] = (content, True)
        logger.debug(
            f"Truncated {document.identifier} from {document.size} to {len(content)} characters"
        )
        break

    dropped = len(documents) - len(fitted)
    if dropped:
        logger.debug(f"Budget of {budget} characters dropped {dropped} steering documents")

    return [
        RankedDocument(
            document=document,
            content=fitted[index][0],
            score=score,
            truncated=fitted[index][1],
        )
        for index, document, score in ordered
        if index in fitted
    ]


def total_size(ranked: Iterable[RankedDocument]) -> int:
    """Total characters of ranked content."""
    return sum(len(r.content) for r in ranked)

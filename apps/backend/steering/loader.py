"""
Steering Context Loader
=======================

Single entry point for the context assembler: loads the project's steering
configuration and documents, then selects and ranks documents per task.

Usage:
    from steering.loader import SteeringContextLoader
    from steering.models import TaskContext

    loader = SteeringContextLoader(Path("/project"))
    context = TaskContext.from_prompt(
        "Add an index to the orders table #compliance",
        active_file="db/schema.sql",
    )
    for ranked in loader.build_context(context, budget=8000):
        print(ranked.identifier, len(ranked.content))
"""

from __future__ import annotations

import logging
from pathlib import Path

from .config import load_steering_config
from .models import ActivationResult, RankedDocument, RegistrySnapshot, SteeringConfig, TaskContext
from .ranker import rank
from .registry import DocumentRegistry
from .resolver import resolve

logger = logging.getLogger(__name__)


class SteeringContextLoader:
    """
    Loads steering documents for a project and serves them per task.

    Documents are loaded once on construction. Each call works on the
    snapshot current at the time of the call, so a concurrent reload() never
    affects a request already in progress.

    Attributes:
        project_dir: Root directory of the project
        config: Steering configuration in effect
        registry: Document registry for the project
    """

    def __init__(self, project_dir: Path, config: SteeringConfig | None = None):
        """
        Initialize the loader and load the project's documents.

        Args:
            project_dir: Root directory of the project
            config: Configuration to use; loaded from .steering/ when omitted

        Raises:
            DirectoryNotFoundError: If the document directory does not exist
            InvalidMetadataError: In strict mode, if any document is malformed
            ValueError: If the project config file is invalid
        """
        self.project_dir = Path(project_dir).resolve()
        self.config = config or load_steering_config(self.project_dir)
        self.registry = DocumentRegistry.from_config(self.project_dir, self.config)
        self.registry.load()

        errors = self.registry.get_load_errors()
        if errors:
            logger.warning(
                f"{len(errors)} steering documents were excluded because of invalid metadata"
            )

    def snapshot(self) -> RegistrySnapshot:
        return self.registry.snapshot()

    def reload(self) -> RegistrySnapshot:
        """Re-scan the document directory and swap in the new snapshot."""
        return self.registry.reload()

    def activate(self, context: TaskContext) -> ActivationResult:
        """Select the documents that apply to a task."""
        snapshot = self.registry.snapshot()
        return resolve(context, snapshot.documents, project_dir=self.project_dir)

    def build_context(
        self,
        context: TaskContext,
        budget: int | None = None,
    ) -> list[RankedDocument]:
        """
        Select, rank and budget documents for a task.

        Args:
            context: The task being worked on
            budget: Character budget; falls back to config.default_budget

        Returns:
            RankedDocument list ready for the context assembler
        """
        if budget is None:
            budget = self.config.default_budget

        activated = self.activate(context)
        ranked = rank(
            activated,
            context.description,
            budget,
            min_term_length=self.config.min_term_length,
            stop_words=self.config.stop_words,
        )
        logger.debug(
            f"Built steering context: {len(ranked)} of {len(activated)} activated documents"
        )
        return ranked

    def build_context_dict(self, context: TaskContext, budget: int | None = None) -> dict:
        """JSON-serializable form of build_context() for the assembler."""
        ranked = self.build_context(context, budget)
        return {
            "active_file": context.active_file,
            "tags": sorted(context.tags),
            "budget": budget if budget is not None else self.config.default_budget,
            "documents": [r.to_dict() for r in ranked],
        }

"""
Smoke Tests for Steering Context Loading
========================================

End-to-end checks against the sample document set in
tests/fixtures/sample_steering: load, select, rank and budget.

Usage:
    pytest tests/test_steering_smoke.py -v
"""

import sys
from pathlib import Path

import pytest

# Add backend to path
backend_path = Path(__file__).parent.parent / "apps" / "backend"
sys.path.insert(0, str(backend_path))

from steering import (
    DocumentRegistry,
    InclusionMode,
    SteeringConfig,
    SteeringContextLoader,
    TaskContext,
    clear_config_cache,
    rank,
    resolve,
    total_size,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "sample_steering"


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def clean_cache():
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def registry() -> DocumentRegistry:
    registry = DocumentRegistry(FIXTURES_DIR)
    registry.load()
    return registry


@pytest.fixture
def loader(tmp_path: Path) -> SteeringContextLoader:
    config = SteeringConfig(documents_dir=str(FIXTURES_DIR))
    return SteeringContextLoader(tmp_path, config=config)


# =============================================================================
# SMOKE TESTS
# =============================================================================

def test_sample_documents_load(registry):
    """Valid samples load in registry order; the broken one is reported."""
    assert [d.identifier for d in registry.all()] == [
        "compliance.md",
        "database/sql-style.md",
        "frontend/react-components.md",
        "legacy-system-integration.md",
        "security-standards.md",
        "tech-stack.md",
    ]
    errors = registry.get_load_errors()
    assert [e.identifier for e in errors] == ["broken/missing-pattern.md"]
    assert errors[0].field == "fileMatchPattern"


def test_sample_modes(registry):
    assert registry.get("tech-stack.md").mode == InclusionMode.ALWAYS
    assert registry.get("security-standards.md").description == "Cross-cutting security rules"
    assert registry.get("database/sql-style.md").match_pattern == "**/*.sql"
    assert registry.get("legacy-system-integration.md").tag == "legacy-system-integration"


def test_no_file_no_tags_gets_always_documents(registry):
    result = resolve(TaskContext(), registry.all())
    assert result.identifiers == ["security-standards.md", "tech-stack.md"]


def test_sql_file_activates_sql_style(registry):
    result = resolve(TaskContext(active_file="db/schema.sql"), registry.all())
    assert result.identifiers == [
        "database/sql-style.md",
        "security-standards.md",
        "tech-stack.md",
    ]


def test_tsx_file_with_tag(registry):
    context = TaskContext(active_file="src/App.tsx", tags={"compliance"})
    result = resolve(context, registry.all())
    assert result.identifiers == [
        "compliance.md",
        "frontend/react-components.md",
        "security-standards.md",
        "tech-stack.md",
    ]


def test_manual_document_needs_explicit_tag(registry):
    context = TaskContext(description="Talk to the legacy system integration bridge")
    assert "legacy-system-integration.md" not in resolve(context, registry.all())

    context = TaskContext.from_prompt("Retry failed batches #legacy-system-integration")
    assert "legacy-system-integration.md" in resolve(context, registry.all())


def test_ranking_and_budget(registry):
    context = TaskContext.from_prompt(
        "Create an index on the customer table #compliance",
        active_file="db/schema.sql",
    )
    activated = resolve(context, registry.all())

    ranked = rank(activated, context.description)
    assert [r.identifier for r in ranked] == [
        "database/sql-style.md",
        "compliance.md",
        "security-standards.md",
        "tech-stack.md",
    ]

    always_size = sum(d.size for d in activated if d.mode == InclusionMode.ALWAYS)
    budgeted = rank(activated, context.description, budget=always_size)
    assert {r.identifier for r in budgeted} == {"security-standards.md", "tech-stack.md"}
    assert total_size(budgeted) <= always_size


def test_loader_end_to_end(loader):
    context = TaskContext.from_prompt(
        "Add a typed props interface #compliance",
        active_file="web/src/components/Header.tsx",
    )
    data = loader.build_context_dict(context, budget=400)

    identifiers = [d["identifier"] for d in data["documents"]]
    assert "database/sql-style.md" not in identifiers
    assert "legacy-system-integration.md" not in identifiers
    assert sum(len(d["content"]) for d in data["documents"]) <= 400
    assert loader.registry.get_load_errors()

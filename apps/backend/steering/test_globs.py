"""
Tests for Path Glob Matching
============================

Tests the glob semantics used by fileMatch steering documents.
"""

import pytest

from steering.globs import (
    clear_pattern_cache,
    compile_glob,
    matches_glob,
    normalize_path,
    normalize_pattern,
    pattern_to_regex,
)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def fresh_pattern_cache():
    """Start every test with an empty compiled-pattern cache."""
    clear_pattern_cache()
    yield
    clear_pattern_cache()


# =============================================================================
# Normalization Tests
# =============================================================================

class TestNormalization:
    """Tests for path and pattern normalization."""

    def test_backslashes_become_forward_slashes(self):
        assert normalize_path("src\\app\\main.py") == "src/app/main.py"

    def test_duplicate_separators_collapse(self):
        assert normalize_path("docs//guides///setup.md") == "docs/guides/setup.md"

    def test_leading_dot_slash_removed(self):
        assert normalize_path("./src/app.ts") == "src/app.ts"
        assert normalize_path("././src/app.ts") == "src/app.ts"

    def test_absolute_path_kept_absolute(self):
        assert normalize_path("/repo/src/app.ts") == "/repo/src/app.ts"

    def test_pattern_leading_slash_removed(self):
        assert normalize_pattern("/src/*.ts") == "src/*.ts"


# =============================================================================
# Single Segment Wildcards
# =============================================================================

class TestSingleStar:
    """Tests for '*' matching within one path segment."""

    def test_extension_pattern(self):
        """*.tsx includes Foo.tsx and excludes Foo.ts."""
        assert matches_glob("Foo.tsx", "*.tsx")
        assert not matches_glob("Foo.ts", "*.tsx")

    def test_slashless_pattern_matches_final_segment(self):
        assert matches_glob("src/components/Foo.tsx", "*.tsx")
        assert not matches_glob("src/components/Foo.ts", "*.tsx")

    def test_star_does_not_cross_segments(self):
        assert matches_glob("src/app.ts", "src/*.ts")
        assert not matches_glob("src/lib/app.ts", "src/*.ts")

    def test_no_partial_matches(self):
        assert not matches_glob("Foo.tsx", "*.ts")
        assert not matches_glob("Foo.ts.bak", "*.ts")
        assert not matches_glob("other/src/app.ts", "src/*.ts")

    def test_question_mark(self):
        assert matches_glob("test_a.py", "test_?.py")
        assert not matches_glob("test_ab.py", "test_?.py")
        assert not matches_glob("dir/x", "dir?x")


# =============================================================================
# Double Star
# =============================================================================

class TestDoubleStar:
    """Tests for '**' matching across path segments."""

    def test_double_star_slash_matches_zero_directories(self):
        assert matches_glob("src/app.ts", "src/**/*.ts")
        assert matches_glob("schema.sql", "**/*.sql")

    def test_double_star_matches_many_directories(self):
        assert matches_glob("src/lib/deep/nested/app.ts", "src/**/*.ts")
        assert matches_glob("db/migrations/001_init.sql", "**/*.sql")

    def test_double_star_is_anchored(self):
        assert not matches_glob("lib/app.ts", "src/**/*.ts")

    def test_trailing_double_star(self):
        assert matches_glob("docs/a.md", "docs/**")
        assert matches_glob("docs/guides/b/c.md", "docs/**")
        assert not matches_glob("docs", "docs/**")
        assert not matches_glob("other/docs/a.md", "docs/**")

    def test_double_star_inside_segment_crosses_segments(self):
        assert matches_glob("api/v1/users/handler.go", "api/**handler.go")


# =============================================================================
# Character Classes and Literals
# =============================================================================

class TestCharacterClasses:
    """Tests for [seq] and [!seq] classes."""

    def test_class(self):
        assert matches_glob("a.md", "[abc].md")
        assert not matches_glob("d.md", "[abc].md")

    def test_negated_class(self):
        assert matches_glob("d.md", "[!abc].md")
        assert not matches_glob("a.md", "[!abc].md")

    def test_negated_class_never_matches_separator(self):
        assert not matches_glob("x/y", "x[!a]y")

    def test_class_never_matches_separator(self):
        assert not matches_glob("a/b.py", "a[/]b.py")
        assert not matches_glob("a/b.py", "a[/_]b.py")
        assert matches_glob("a_b.py", "a[/_]b.py")

    def test_range_spanning_separator_excludes_it(self):
        # "+-0" covers "/" (0x2F)
        assert matches_glob("a.b", "a[+-0]b")
        assert not matches_glob("a/b", "a[+-0]b")

    def test_unclosed_bracket_is_literal(self):
        assert matches_glob("[abc.md", "[abc.md")

    def test_regex_metacharacters_are_literal(self):
        assert matches_glob("notes(v1)+draft.md", "notes(v1)+draft.md")
        assert not matches_glob("notesv1draft.md", "notes(v1)+draft.md")


# =============================================================================
# Regex Conversion and Compilation
# =============================================================================

class TestPatternToRegex:
    """Tests for glob to regex conversion."""

    def test_single_star(self):
        assert pattern_to_regex("build/*.js") == r"\Abuild/[^/]*\.js\Z"

    def test_double_star_directory(self):
        assert pattern_to_regex("**/*.py") == r"\A(?:.*/)?[^/]*\.py\Z"

    def test_trailing_double_star(self):
        assert pattern_to_regex("docs/**") == r"\Adocs/.*\Z"

    def test_empty_pattern_rejected(self):
        with pytest.raises(ValueError):
            compile_glob("")
        with pytest.raises(ValueError):
            compile_glob("   ")

    def test_compiled_patterns_are_cached(self):
        assert compile_glob("src/*.ts") is compile_glob("./src/*.ts")

    def test_windows_style_path_matches(self):
        assert matches_glob("src\\lib\\app.ts", "src/**/*.ts")

"""Tests for documentation search."""

import pytest

from mcp_filament_documentation.models import Index, Page, Section
from mcp_filament_documentation.search import SearchEngine
from fakes import NOW


def make_page(title: str, content: str, section: str = "Forms", subsection: str | None = None) -> Page:
    """Create a page for searching.

    Args:
        title: Page title.
        content: Normalised page body.
        section: Section title.
        subsection: Optional subsection name.

    Returns:
        Page instance.
    """
    slug = title.lower().replace(" ", "-")
    return Page(
        title=title,
        url=f"https://github.com/filamentphp/filament/blob/3.x/packages/forms/docs/{slug}.md",
        content=content,
        version="3.x",
        section=section,
        subsection=subsection,
    )


@pytest.fixture
def engine() -> SearchEngine:
    """Create a SearchEngine instance.

    Returns:
        SearchEngine instance.
    """
    return SearchEngine()


@pytest.fixture
def index() -> Index:
    """Create an index with a few pages.

    Returns:
        Index instance.
    """
    forms = Section(
        title="Forms",
        pages=[
            make_page("Installation", "Install the forms package with composer."),
            make_page("Getting started", "Build forms quickly with the form builder."),
        ],
        subsections={
            "Advanced Usage": [
                make_page(
                    "Validation",
                    "Add validation rules. Custom validation messages. Validation errors.",
                    subsection="Advanced Usage",
                )
            ]
        },
    )
    tables = Section(title="Tables", pages=[make_page("Columns", "Display data in columns.", section="Tables")])
    return Index(version="3.x", last_updated=NOW, sections={"Forms": forms, "Tables": tables})


def test_score_title_and_body(engine: SearchEngine) -> None:
    """Test that title matches weigh ten and body matches one each."""
    page = make_page("Validation", "validation here, Validation there, and VALIDATION everywhere")

    assert engine.score(page, engine.tokenize("forms validation")) == 13


def test_score_no_match(engine: SearchEngine) -> None:
    """Test that unrelated pages score zero."""
    page = make_page("Columns", "Display data in columns.")

    assert engine.score(page, engine.tokenize("forms validation")) == 0


def test_tokenize_ignores_extra_whitespace(engine: SearchEngine) -> None:
    """Test that surrounding and repeated whitespace yields no empty terms."""
    assert engine.tokenize("  Form   Builder ") == ["form", "builder"]


def test_snippet_window_at_start(engine: SearchEngine) -> None:
    """Test a match near the start of a long body."""
    content = "0123456789" + "MATCH" + "X" * 385

    snippet = engine.snippet(content, ["match"])

    assert len(content) == 400
    assert snippet == content[:210] + "..."


def test_snippet_window_in_middle(engine: SearchEngine) -> None:
    """Test a leading ellipsis when the window starts after the beginning."""
    content = "a" * 150 + "match" + "b" * 50

    snippet = engine.snippet(content, ["match"])

    assert snippet == "..." + content[50:]


def test_snippet_uses_earliest_term(engine: SearchEngine) -> None:
    """Test that the window centres on whichever term appears first."""
    content = "x" * 300 + "second" + "y" * 100 + "first" + "z" * 300

    snippet = engine.snippet(content, ["first", "second"])

    assert snippet == "..." + content[200:500] + "..."


def test_snippet_without_body_match(engine: SearchEngine) -> None:
    """Test the fallback snippet when only the title matched."""
    content = "Display data in columns. " * 20

    assert engine.snippet(content, ["validation"]) == content[:200] + "..."


def test_rank_orders_by_score(engine: SearchEngine, index: Index) -> None:
    """Test result ordering, keeping index order for ties."""
    results = engine.rank(index, "forms validation")

    assert [(result.title, result.score) for result in results] == [
        ("Validation", 13),
        ("Installation", 1),
        ("Getting started", 1),
    ]
    assert results[0].subsection == "Advanced Usage"
    assert results[0].section == "Forms"


def test_search_report(engine: SearchEngine, index: Index) -> None:
    """Test the formatted search report."""
    report = engine.search(index, "columns")

    assert report.startswith('# Search Results for "columns"')
    assert "Found 1 result(s)" in report
    assert "## [Columns](https://github.com/filamentphp/filament/blob/3.x/packages/forms/docs/columns.md)" in report
    assert "Display data in columns." in report


def test_search_no_results(engine: SearchEngine, index: Index) -> None:
    """Test the explicit report when nothing matches."""
    assert engine.search(index, "nonexistent") == 'No results found for query: "nonexistent"'


def test_search_empty_query(engine: SearchEngine, index: Index) -> None:
    """Test that a blank query matches nothing."""
    assert engine.search(index, "   ") == 'No results found for query: "   "'

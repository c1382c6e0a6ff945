"""Tests for index storage."""

import json
from datetime import timedelta
from pathlib import Path

from mcp_filament_documentation.models import Index, Page, Section
from mcp_filament_documentation.store import IndexStore
from fakes import NOW, FakeClock


def make_page(path: str = "packages/forms/docs/01-installation.md") -> Page:
    """Create a sample page.

    Args:
        path: Source path of the page.

    Returns:
        Page instance.
    """
    return Page(
        title="Installation",
        url=f"https://github.com/filamentphp/filament/blob/3.x/{path}",
        content="Install the forms package.",
        version="3.x",
        section="Forms",
        source_path=path,
        raw_content="# Installation\n\nInstall the forms package.",
    )


def test_load_creates_empty_index(store: IndexStore) -> None:
    """Test that the first load creates and saves an empty index."""
    index = store.load("3.x")

    assert index.version == "3.x"
    assert index.sections == {}
    assert index.last_updated == NOW
    assert store.path_for("3.x").exists()


def test_path_for_version(store: IndexStore) -> None:
    """Test the per-version file name."""
    assert store.path_for("2.x").name == "index_2.x.json"
    assert store.path_for("2.x").parent == store.cache_dir


def test_save_and_load(store: IndexStore) -> None:
    """Test that a saved index loads back unchanged."""
    section = Section(title="Forms", pages=[make_page()])
    section.subsections["Advanced Usage"] = [make_page("packages/forms/docs/advanced-usage/01-validation.md")]
    index = Index(version="3.x", last_updated=NOW - timedelta(days=2), sections={"Forms": section})

    store.save(index)
    loaded = store.load("3.x")

    assert loaded == index


def test_save_creates_directory(tmp_path: Path, clock: FakeClock) -> None:
    """Test that saving creates missing cache directories."""
    store = IndexStore(tmp_path / "nested" / "cache", clock=clock)

    store.save(Index(version="3.x", last_updated=NOW))
    store.save(Index(version="3.x", last_updated=NOW))

    assert (tmp_path / "nested" / "cache" / "index_3.x.json").exists()


def test_save_writes_one_file_per_version(store: IndexStore) -> None:
    """Test that versions are stored separately."""
    store.save(Index(version="3.x", last_updated=NOW))
    store.save(Index(version="2.x", last_updated=NOW))

    assert sorted(path.name for path in store.cache_dir.iterdir()) == ["index_2.x.json", "index_3.x.json"]


def test_load_corrupt_file_starts_empty(store: IndexStore) -> None:
    """Test that unreadable JSON is replaced by an empty index."""
    store.cache_dir.mkdir(parents=True)
    store.path_for("3.x").write_text("{not json")

    index = store.load("3.x")

    assert index.sections == {}
    assert json.loads(store.path_for("3.x").read_text())["version"] == "3.x"


def test_load_wrong_shape_starts_empty(store: IndexStore) -> None:
    """Test that valid JSON with the wrong structure is treated as empty."""
    store.cache_dir.mkdir(parents=True)
    store.path_for("3.x").write_text(json.dumps({"version": "3.x"}))

    index = store.load("3.x")

    assert index.sections == {}
    assert index.last_updated == NOW


def test_saved_file_is_plain_json(store: IndexStore) -> None:
    """Test the on-disk layout of a saved index."""
    store.save(Index(version="3.x", last_updated=NOW, sections={"Forms": Section(title="Forms", pages=[make_page()])}))

    data = json.loads(store.path_for("3.x").read_text())

    assert data["last_updated"] == NOW.isoformat()
    page = data["sections"]["Forms"]["pages"][0]
    assert page["source_path"] == "packages/forms/docs/01-installation.md"
    assert page["subsection"] is None

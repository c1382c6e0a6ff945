"""Shared fixtures for documentation cache tests."""

from pathlib import Path

import pytest
from fakes import FakeClock, FakeContentSource

from mcp_filament_documentation.indexer import FilamentDocsIndexer
from mcp_filament_documentation.store import IndexStore


@pytest.fixture
def clock() -> FakeClock:
    """Create a clock fixed at a known time.

    Returns:
        FakeClock instance.
    """
    return FakeClock()


@pytest.fixture
def store(tmp_path: Path, clock: FakeClock) -> IndexStore:
    """Create an index store in a temporary directory.

    Args:
        tmp_path: Pytest temporary directory fixture.
        clock: FakeClock fixture.

    Returns:
        IndexStore instance.
    """
    return IndexStore(tmp_path / "cache", clock=clock)


@pytest.fixture
def source() -> FakeContentSource:
    """Create a fake repository with Forms and Tables documentation.

    Returns:
        FakeContentSource populated with sample pages.
    """
    fake = FakeContentSource()
    fake.add_file(
        "packages/forms/docs/01-installation.md",
        "---\ntitle: Installation\n---\n\nInstall the forms package with composer.",
    )
    fake.add_file(
        "packages/forms/docs/02-getting-started.md",
        "# Getting started\n\nBuild forms quickly.\n\n```php\nForm::make();\n```",
    )
    fake.add_file("packages/forms/docs/03-empty.md", "")
    fake.add_file("packages/forms/docs/logo.png", "binary")
    fake.add_file(
        "packages/forms/docs/advanced-usage/01-validation.md",
        "# Validation\n\nAdd validation rules. Custom validation messages. Validation errors.",
    )
    fake.add_file("packages/tables/docs/01-installation.md", "# Tables\n\nInstall the tables package.")
    return fake


@pytest.fixture
def indexer(source: FakeContentSource, store: IndexStore, clock: FakeClock) -> FilamentDocsIndexer:
    """Create an indexer over the fake repository.

    Args:
        source: FakeContentSource fixture.
        store: IndexStore fixture.
        clock: FakeClock fixture.

    Returns:
        FilamentDocsIndexer instance.
    """
    return FilamentDocsIndexer(source, store, clock=clock)

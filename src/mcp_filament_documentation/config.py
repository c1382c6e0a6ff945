"""Static configuration for the Filament documentation cache."""

import os
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

FILAMENT_REPO = "filamentphp/filament"
GITHUB_API_BASE = "https://api.github.com"
GITHUB_RAW_CONTENT_BASE = "https://raw.githubusercontent.com"
GITHUB_BLOB_BASE = "https://github.com"

DEFAULT_VERSION = "3.x"
DEFAULT_BRANCH = "3.x"

STALENESS_THRESHOLD = timedelta(days=7)
MAX_RETRIES = 3
RATE_LIMIT_WAIT_CAP = 60.0
REQUEST_TIMEOUT = 30.0

MARKDOWN_EXTENSION = ".md"
DEFAULT_CACHE_DIR = Path.home() / ".cache" / "mcp-filament-documentation"


class CategoryTable:
    """Bidirectional lookup between package names and section titles."""

    def __init__(self, titles: Mapping[str, str]) -> None:
        """Initialise the table.

        Args:
            titles: Mapping of package name to display title, in display order.
        """
        self._titles = dict(titles)
        self._names = {title: name for name, title in self._titles.items()}

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._titles.items())

    def __len__(self) -> int:
        return len(self._titles)

    def title_for(self, name: str) -> str | None:
        """Return the section title for a package name, if known."""
        return self._titles.get(name)

    def name_for(self, title: str) -> str | None:
        """Return the package name for a section title, if known."""
        return self._names.get(title)

    def titles(self) -> list[str]:
        """Return all section titles in display order."""
        return list(self._titles.values())

    @staticmethod
    def docs_root(name: str) -> str:
        """Return the remote documentation root for a package.

        Args:
            name: Package name, e.g. ``forms``.

        Returns:
            Repository path of the package's docs directory.
        """
        return f"packages/{name}/docs"


CATEGORIES = CategoryTable(
    {
        "actions": "Actions",
        "forms": "Forms",
        "infolists": "Infolists",
        "notifications": "Notifications",
        "panels": "Panels",
        "support": "Support",
        "tables": "Tables",
        "widgets": "Widgets",
    }
)


@dataclass(frozen=True)
class Settings:
    """Deployment settings read from the environment."""

    cache_dir: Path = DEFAULT_CACHE_DIR
    github_token: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        ``FILAMENT_DOCS_CACHE_DIR`` overrides the cache directory and
        ``GITHUB_TOKEN`` (or ``GH_TOKEN``) authenticates API calls.

        Returns:
            Settings instance.
        """
        cache_dir = os.environ.get("FILAMENT_DOCS_CACHE_DIR")
        token = os.environ.get("GITHUB_TOKEN") or os.environ.get("GH_TOKEN")
        return cls(
            cache_dir=Path(cache_dir).expanduser() if cache_dir else DEFAULT_CACHE_DIR,
            github_token=token or None,
        )

"""JSON file storage for versioned documentation indexes."""

import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from mcp_filament_documentation.models import Index

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class IndexStore:
    """Loads and persists one index file per documentation version."""

    def __init__(self, cache_dir: Path, clock: Callable[[], datetime] = utc_now) -> None:
        """Initialise the store.

        Args:
            cache_dir: Directory holding the index files.
            clock: Returns the current time, used for new indexes.
        """
        self.cache_dir = cache_dir
        self._clock = clock

    def path_for(self, version: str) -> Path:
        """Return the index file path for a version.

        Args:
            version: Documentation version, e.g. ``3.x``.

        Returns:
            Path of the JSON file.
        """
        return self.cache_dir / f"index_{version}.json"

    def load(self, version: str) -> Index:
        """Load the index for a version, creating an empty one if needed.

        A missing or unreadable file is treated as an empty index, which is
        saved straight away.

        Args:
            version: Documentation version.

        Returns:
            Index instance.
        """
        path = self.path_for(version)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return Index.from_dict(data)
        except FileNotFoundError:
            logger.info("No cached index for version %s, creating one", version)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning("Unreadable index file %s, starting empty: %s", path, exc)

        index = Index(version=version, last_updated=self._clock(), sections={})
        self.save(index)
        return index

    def save(self, index: Index) -> None:
        """Write the index to its version's file.

        Args:
            index: Index to persist.
        """
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(index.version)
        temp_path = path.with_suffix(".json.tmp")
        temp_path.write_text(json.dumps(index.to_dict(), indent=2), encoding="utf-8")
        temp_path.replace(path)
        logger.debug("Saved index for version %s to %s", index.version, path)

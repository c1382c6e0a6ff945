"""Indexer for Filament documentation from the filamentphp/filament repository."""

import logging
from collections.abc import Callable
from datetime import datetime

from mcp_filament_documentation.config import (
    CATEGORIES,
    DEFAULT_VERSION,
    MARKDOWN_EXTENSION,
    STALENESS_THRESHOLD,
    CategoryTable,
)
from mcp_filament_documentation.errors import (
    ContentSourceError,
    DocsError,
    UnclassifiablePathError,
    UnknownSectionError,
)
from mcp_filament_documentation.models import (
    CategoryOutcome,
    DirectoryEntry,
    Index,
    Section,
    SyncReport,
    format_timestamp,
)
from mcp_filament_documentation.parser import PageFetcher, format_subsection_name
from mcp_filament_documentation.source import ContentSource
from mcp_filament_documentation.store import IndexStore, utc_now

logger = logging.getLogger(__name__)

# packages/<name>/docs/<file>.md
SECTION_PAGE_SEGMENTS = 4


def _is_markdown(entry: DirectoryEntry) -> bool:
    return entry.type == "file" and entry.name.endswith(MARKDOWN_EXTENSION)


class FilamentDocsIndexer:
    """Keeps the cached documentation index in step with the GitHub repository."""

    def __init__(
        self,
        source: ContentSource,
        store: IndexStore,
        categories: CategoryTable = CATEGORIES,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialise indexer with its collaborators.

        Args:
            source: Remote content source.
            store: Index storage.
            categories: Mapping between package names and section titles.
            clock: Returns the current time.
        """
        self.source = source
        self.store = store
        self.fetcher = PageFetcher(source)
        self.categories = categories
        self._clock = clock

    def classify_path(self, path: str) -> tuple[str, str | None]:
        """Work out which section and subsection a remote file belongs to.

        Args:
            path: Repository path, e.g. ``packages/forms/docs/fields/01-text.md``.

        Returns:
            Tuple of section title and subsection name (None for direct pages).

        Raises:
            UnclassifiablePathError: If the path is too short or its package
                is not a known category.
        """
        segments = path.split("/")
        if len(segments) < SECTION_PAGE_SEGMENTS:
            raise UnclassifiablePathError(path)

        title = self.categories.title_for(segments[1])
        if title is None:
            raise UnclassifiablePathError(path)

        if len(segments) > SECTION_PAGE_SEGMENTS:
            return title, format_subsection_name(segments[3])
        return title, None

    def is_stale(self, index: Index) -> bool:
        """Return whether the index is older than the staleness threshold."""
        return self._clock() - index.last_updated > STALENESS_THRESHOLD

    async def _add_page(self, section: Section, path: str, version: str) -> None:
        title, subsection = self.classify_path(path)
        page = await self.fetcher.fetch(path, version, title, subsection)
        if page:
            section.bucket(subsection).append(page)
            logger.debug("Indexed: %s", path)

    async def _build_section(self, name: str, title: str, version: str) -> tuple[Section, int]:
        """Fetch every page of one category into a new section.

        Files directly under the docs root become section pages; files one
        directory deeper become subsection pages.

        Args:
            name: Package name of the category.
            title: Section title.
            version: Version ref to read from.

        Returns:
            The new section and the number of entries found at the docs root.
        """
        section = Section(title=title)
        entries = await self.source.list_directory(self.categories.docs_root(name), version)
        entries.sort(key=lambda entry: entry.name)

        for entry in entries:
            if entry.type == "dir":
                children = await self.source.list_directory(entry.path, version)
                children.sort(key=lambda child: child.name)
                for child in children:
                    if _is_markdown(child):
                        await self._add_page(section, child.path, version)
            elif _is_markdown(entry):
                await self._add_page(section, entry.path, version)

        return section, len(entries)

    async def sync_all(self, version: str = DEFAULT_VERSION) -> SyncReport:
        """Rebuild every section from the repository.

        A category that cannot be listed or fetched keeps whatever the index
        held for it before, and the sync moves on to the next category.

        Args:
            version: Documentation version to sync.

        Returns:
            SyncReport with the saved index and one outcome per category.
        """
        previous = self.store.load(version)
        sections: dict[str, Section] = {}
        outcomes: list[CategoryOutcome] = []

        for name, title in self.categories:
            try:
                section, entry_count = await self._build_section(name, title, version)
            except DocsError as exc:
                logger.warning("Error syncing section %s, keeping cached pages: %s", title, exc)
                outcomes.append(CategoryOutcome(name=name, title=title, status="failed", error=str(exc)))
                sections[title] = previous.sections.get(title) or Section(title=title)
                continue

            if entry_count == 0:
                logger.info("No documentation found for section %s", title)
                outcomes.append(CategoryOutcome(name=name, title=title, status="empty"))
                sections[title] = previous.sections.get(title) or Section(title=title)
                continue

            page_count = len(section.iter_pages())
            logger.info("Indexed %d pages for section %s", page_count, title)
            outcomes.append(CategoryOutcome(name=name, title=title, status="ok", page_count=page_count))
            sections[title] = section

        index = Index(version=version, last_updated=self._clock(), sections=sections)
        self.store.save(index)
        return SyncReport(index=index, outcomes=outcomes)

    async def sync_section(self, version: str, section_title: str) -> Index:
        """Replace one section with a fresh copy from the repository.

        Args:
            version: Documentation version to sync.
            section_title: Title of the section, e.g. ``Forms``.

        Returns:
            The saved index.

        Raises:
            UnknownSectionError: If the title is not a known section.
            ContentSourceError: If a page could not be fetched.
        """
        name = self.categories.name_for(section_title)
        if name is None:
            raise UnknownSectionError(section_title)

        section, _ = await self._build_section(name, section_title, version)
        index = self.store.load(version)
        sections = dict(index.sections)
        sections[section_title] = section

        updated = Index(version=version, last_updated=self._clock(), sections=sections)
        self.store.save(updated)
        logger.info("Indexed %d pages for section %s", len(section.iter_pages()), section_title)
        return updated

    async def find_modified_files(self, version: str, since: datetime) -> list[str]:
        """Return documentation files changed in the repository since a time."""
        return await self.source.list_changes_since(version, since)

    async def apply_modified_file(self, path: str, version: str) -> bool:
        """Insert or replace the page for one remote file.

        Args:
            path: Repository path of the changed file.
            version: Documentation version.

        Returns:
            True if a page was produced and saved, False if the file had no
            usable content.

        Raises:
            UnclassifiablePathError: If the path does not map to a section.
            ContentSourceError: If the file could not be fetched.
        """
        title, subsection = self.classify_path(path)
        page = await self.fetcher.fetch(path, version, title, subsection)
        if page is None:
            return False

        index = self.store.load(version)
        section = index.sections.setdefault(title, Section(title=title))
        bucket = [existing for existing in section.bucket(subsection) if existing.source_path != path]
        bucket.append(page)
        if subsection is None:
            section.pages = bucket
        else:
            section.subsections[subsection] = bucket

        self.store.save(index)
        return True

    def _section_of(self, path: str) -> str | None:
        try:
            return self.classify_path(path)[0]
        except UnclassifiablePathError:
            return None

    async def _apply_changes(self, files: list[str], version: str) -> tuple[list[str], int]:
        """Upsert each changed file, then mark the index as freshly updated.

        Returns:
            Report lines and the number of files stored.
        """
        lines: list[str] = []
        updated_count = 0

        for path in files:
            lines.append(f"Updating file: {path}")
            try:
                if await self.apply_modified_file(path, version):
                    updated_count += 1
            except UnclassifiablePathError:
                logger.debug("Skipping file outside known sections: %s", path)
                lines.append(f"Skipped file outside known sections: {path}")
            except ContentSourceError as exc:
                logger.warning("Error processing modified file %s: %s", path, exc)
                lines.append(f"Failed to update file: {path}")

        index = self.store.load(version)
        index.last_updated = self._clock()
        self.store.save(index)
        return lines, updated_count

    async def _update_section(self, version: str, section: str, force: bool) -> list[str]:
        if self.categories.name_for(section) is None:
            raise UnknownSectionError(section)

        index = self.store.load(version)
        if force or section not in index.sections or self.is_stale(index):
            await self.sync_section(version, section)
            return [
                f"Updating documentation for section '{section}' (version {version})...",
                f"Documentation for section '{section}' (version {version}) has been updated from GitHub.",
            ]

        modified = await self.find_modified_files(version, index.last_updated)
        section_files = [path for path in modified if self._section_of(path) == section]
        if not section_files:
            return [
                f"Documentation for section '{section}' (version {version}) is already up to date "
                f"(last updated {format_timestamp(index.last_updated)})."
            ]

        lines = [f"Found {len(section_files)} modified files for section '{section}' since last update."]
        file_lines, updated_count = await self._apply_changes(section_files, version)
        lines.extend(file_lines)
        lines.append(f"Updated {updated_count} files for section '{section}' (version {version}).")
        return lines

    async def _full_sync(self, version: str, heading: str, done: str) -> list[str]:
        report = await self.sync_all(version)
        lines = [heading]
        for outcome in report.failed:
            lines.append(f"Warning: could not sync section '{outcome.title}': {outcome.error}")
        lines.append(done)
        return lines

    async def update(
        self,
        version: str | None = None,
        force: bool = False,
        section: str | None = None,
        check_versions: bool = False,
    ) -> str:
        """Bring the cached documentation up to date.

        A forced, missing or stale target gets a full rebuild (of the whole
        index, or of ``section`` alone). Otherwise only files changed since
        the last update are fetched again.

        Args:
            version: Documentation version, defaults to ``3.x``.
            force: Rebuild even if the cache looks fresh.
            section: Restrict the update to one section title.
            check_versions: Validate ``version`` against the repository's
                version branches, falling back to the default.

        Returns:
            Narrative report of what was done.

        Raises:
            UnknownSectionError: If ``section`` is not a known section.
        """
        target = version or DEFAULT_VERSION
        lines: list[str] = []

        if check_versions:
            available = await self.source.list_versions()
            lines.extend([f"Available versions: {', '.join(available)}", ""])
            if version and version not in available:
                lines.extend(
                    [
                        f"Warning: Requested version '{version}' not found. "
                        f"Using default version '{DEFAULT_VERSION}' instead.",
                        "",
                    ]
                )
                target = DEFAULT_VERSION

        if section:
            lines.extend(await self._update_section(target, section, force))
            return "\n".join(lines)

        if force:
            lines.extend(
                await self._full_sync(
                    target,
                    f"Forcefully updating all documentation for version {target}...",
                    f"Documentation for version {target} has been forcefully updated from GitHub.",
                )
            )
            return "\n".join(lines)

        index = self.store.load(target)
        if not index.sections or self.is_stale(index):
            lines.extend(
                await self._full_sync(
                    target,
                    f"Updating all documentation for version {target}...",
                    f"Documentation for version {target} has been updated from GitHub.",
                )
            )
            return "\n".join(lines)

        modified = await self.find_modified_files(target, index.last_updated)
        if not modified:
            lines.append(
                f"Documentation for version {target} is already up to date "
                f"(last updated {format_timestamp(index.last_updated)})."
            )
            return "\n".join(lines)

        lines.append(f"Found {len(modified)} modified files since last update.")
        file_lines, updated_count = await self._apply_changes(modified, target)
        lines.extend(file_lines)
        lines.append(f"Updated {updated_count} files for version {target}.")
        return "\n".join(lines)

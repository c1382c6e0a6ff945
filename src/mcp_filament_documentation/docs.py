"""Documentation operations exposed to the MCP request handler."""

import logging
from collections.abc import Awaitable

from mcp_filament_documentation.config import DEFAULT_VERSION, FILAMENT_REPO, Settings
from mcp_filament_documentation.indexer import FilamentDocsIndexer
from mcp_filament_documentation.models import Index, ToolResult, format_timestamp
from mcp_filament_documentation.search import SearchEngine
from mcp_filament_documentation.source import GitHubContentSource
from mcp_filament_documentation.store import IndexStore

logger = logging.getLogger(__name__)


def format_outline(index: Index) -> str:
    """Render the index as a markdown outline of sections and page links.

    Args:
        index: Index to render.

    Returns:
        Markdown text.
    """
    lines = [
        f"# Filament Documentation (v{index.version})",
        "",
        f"Last updated: {format_timestamp(index.last_updated)}",
        "",
    ]
    for section in index.sections.values():
        lines.extend([f"## {section.title}", ""])
        lines.extend(f"- [{page.title}]({page.url})" for page in section.pages)
        for name, pages in section.subsections.items():
            lines.extend(["", f"### {name}", ""])
            lines.extend(f"- [{page.title}]({page.url})" for page in pages)
        lines.append("")
    return "\n".join(lines)


def format_info(index: Index) -> str:
    """Describe the index version, freshness and size."""
    return "\n".join(
        [
            "# Filament Documentation Information",
            "",
            f"Version: {index.version}",
            f"Last Updated: {format_timestamp(index.last_updated)}",
            "",
            f"Source: GitHub Repository ({FILAMENT_REPO})",
            "",
            f"Total Sections: {len(index.sections)}",
            f"Total Subsections: {index.subsection_count()}",
            f"Total Pages: {index.page_count()}",
        ]
    )


class DocumentationService:
    """The list, search, info and update operations over the documentation cache."""

    def __init__(self, indexer: FilamentDocsIndexer, search_engine: SearchEngine | None = None) -> None:
        """Initialise the service.

        Args:
            indexer: Indexer owning the content source and index store.
            search_engine: Search engine, a default one if omitted.
        """
        self.indexer = indexer
        self.search_engine = search_engine or SearchEngine()

    @classmethod
    def create(cls, settings: Settings | None = None) -> "DocumentationService":
        """Wire the service to GitHub and the on-disk cache.

        Args:
            settings: Deployment settings, read from the environment if omitted.

        Returns:
            DocumentationService instance. Close it with ``aclose``.
        """
        settings = settings or Settings.from_env()
        source = GitHubContentSource.create(settings.github_token)
        store = IndexStore(settings.cache_dir)
        return cls(FilamentDocsIndexer(source, store))

    async def aclose(self) -> None:
        """Release the content source's HTTP client, if it has one."""
        aclose = getattr(self.indexer.source, "aclose", None)
        if aclose is not None:
            await aclose()

    @staticmethod
    async def _run(operation: str, work: Awaitable[str]) -> ToolResult:
        try:
            return ToolResult(text=await work)
        except Exception as exc:
            logger.exception("Error in %s", operation)
            return ToolResult(text=f"Error executing tool: {exc}", is_error=True)

    async def _list(self, version: str) -> str:
        report = await self.indexer.sync_all(version)
        return format_outline(report.index)

    async def _search(self, query: str, version: str) -> str:
        index = self.indexer.store.load(version)
        if not index.sections:
            index = (await self.indexer.sync_all(version)).index
        return self.search_engine.search(index, query)

    async def _info(self, version: str) -> str:
        return format_info(self.indexer.store.load(version))

    async def list_docs(self, version: str | None = None) -> ToolResult:
        """Sync all documentation and return an outline of it."""
        return await self._run("list_docs", self._list(version or DEFAULT_VERSION))

    async def search_docs(self, query: str, version: str | None = None) -> ToolResult:
        """Search the documentation, syncing it first if the cache is empty.

        Args:
            query: Free-text query.
            version: Documentation version, defaults to ``3.x``.

        Returns:
            ToolResult with the search report.
        """
        return await self._run("search_docs", self._search(query, version or DEFAULT_VERSION))

    async def docs_info(self, version: str | None = None) -> ToolResult:
        """Return version, freshness and size information for the cache."""
        return await self._run("docs_info", self._info(version or DEFAULT_VERSION))

    async def update_docs(
        self,
        version: str | None = None,
        force: bool = False,
        section: str | None = None,
        check_versions: bool = False,
    ) -> ToolResult:
        """Update the cached documentation.

        Args:
            version: Documentation version, defaults to ``3.x``.
            force: Rebuild even if the cache looks fresh.
            section: Restrict the update to one section title.
            check_versions: Validate ``version`` against the repository.

        Returns:
            ToolResult with the update report.
        """
        return await self._run("update_docs", self.indexer.update(version, force, section, check_versions))

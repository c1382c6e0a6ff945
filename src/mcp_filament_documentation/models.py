"""Data models for Filament documentation."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal


@dataclass
class Page:
    """Represents a documentation page."""

    title: str
    url: str
    content: str
    version: str
    section: str
    subsection: str | None = None
    source_path: str | None = None
    raw_content: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Page":
        """Build a page from its serialised form.

        Args:
            data: Dictionary produced by ``asdict``.

        Returns:
            Page instance.
        """
        return cls(
            title=data["title"],
            url=data["url"],
            content=data["content"],
            version=data["version"],
            section=data["section"],
            subsection=data.get("subsection"),
            source_path=data.get("source_path"),
            raw_content=data.get("raw_content"),
        )


@dataclass
class Section:
    """A top-level grouping of pages, with optional subsections."""

    title: str
    pages: list[Page] = field(default_factory=list)
    subsections: dict[str, list[Page]] = field(default_factory=dict)

    def bucket(self, subsection: str | None) -> list[Page]:
        """Return the page list for a subsection, or the section's own pages."""
        if subsection is None:
            return self.pages
        return self.subsections.setdefault(subsection, [])

    def iter_pages(self) -> list[Page]:
        """Return direct pages followed by subsection pages, in order."""
        pages = list(self.pages)
        for subsection_pages in self.subsections.values():
            pages.extend(subsection_pages)
        return pages

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Section":
        """Build a section from its serialised form."""
        return cls(
            title=data["title"],
            pages=[Page.from_dict(page) for page in data.get("pages", [])],
            subsections={
                name: [Page.from_dict(page) for page in pages]
                for name, pages in (data.get("subsections") or {}).items()
            },
        )


@dataclass
class Index:
    """The persisted documentation index for one version."""

    version: str
    last_updated: datetime
    sections: dict[str, Section] = field(default_factory=dict)

    def page_count(self) -> int:
        """Return the total number of pages across all sections."""
        return sum(len(section.iter_pages()) for section in self.sections.values())

    def subsection_count(self) -> int:
        """Return the total number of subsections across all sections."""
        return sum(len(section.subsections) for section in self.sections.values())

    def to_dict(self) -> dict[str, Any]:
        """Serialise the index to JSON-compatible data.

        Returns:
            Dictionary with an ISO-8601 ``last_updated`` timestamp.
        """
        return {
            "version": self.version,
            "last_updated": self.last_updated.isoformat(),
            "sections": {title: asdict(section) for title, section in self.sections.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Index":
        """Build an index from its serialised form.

        Args:
            data: Dictionary produced by ``to_dict``.

        Returns:
            Index instance.

        Raises:
            KeyError: If a required field is missing.
            ValueError: If the timestamp is malformed.
        """
        last_updated = datetime.fromisoformat(data["last_updated"])
        if last_updated.tzinfo is None:
            last_updated = last_updated.replace(tzinfo=timezone.utc)
        return cls(
            version=data["version"],
            last_updated=last_updated,
            sections={title: Section.from_dict(section) for title, section in data["sections"].items()},
        )


@dataclass
class DirectoryEntry:
    """An entry in a remote directory listing."""

    name: str
    path: str
    type: str


@dataclass
class SearchResult:
    """Represents a search result."""

    title: str
    url: str
    snippet: str
    score: int
    section: str
    subsection: str | None = None


@dataclass
class CategoryOutcome:
    """Result of syncing one documentation category."""

    name: str
    title: str
    status: Literal["ok", "empty", "failed"]
    page_count: int = 0
    error: str | None = None


@dataclass
class SyncReport:
    """The index produced by a full sync and how each category fared."""

    index: Index
    outcomes: list[CategoryOutcome] = field(default_factory=list)

    @property
    def failed(self) -> list[CategoryOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == "failed"]

    @property
    def page_count(self) -> int:
        return sum(outcome.page_count for outcome in self.outcomes)


@dataclass
class ToolResult:
    """Text handed back to the request shell, flagged when it reports an error."""

    text: str
    is_error: bool = False


def format_timestamp(value: datetime) -> str:
    """Format a timestamp for reports, in UTC."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")

"""Parser for Filament documentation markdown files."""

import logging
import re

from mcp_filament_documentation.config import FILAMENT_REPO, GITHUB_BLOB_BASE
from mcp_filament_documentation.models import Page
from mcp_filament_documentation.source import ContentSource

logger = logging.getLogger(__name__)

UNTITLED = "Untitled Document"

FRONT_MATTER = re.compile(r"---\s+(.*?)---", re.DOTALL)
FRONT_MATTER_TITLE = re.compile(r"title:\s*(.+)$", re.MULTILINE)
HEADING = re.compile(r"^#[ \t]+(.+)$", re.MULTILINE)

CODE_BLOCK = re.compile(r"```.*?```", re.DOTALL)
HTML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
IMAGE = re.compile(r"!\[.*?\]\(.*?\)")
LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
HTML_TAG = re.compile(r"<[^>]*>")


def extract_title(raw: str) -> str:
    """Extract a page title from markdown.

    Tries a ``title:`` field in leading front matter, then the first ``#``
    heading, then the first non-empty line.

    Args:
        raw: Markdown source.

    Returns:
        The title, or ``"Untitled Document"`` for an empty document.
    """
    front_matter = FRONT_MATTER.match(raw)
    if front_matter:
        title = FRONT_MATTER_TITLE.search(front_matter.group(1))
        if title and title.group(1).strip():
            return title.group(1).strip()

    heading = HEADING.search(raw)
    if heading and heading.group(1).strip():
        return heading.group(1).strip()

    for line in raw.splitlines():
        if line.strip():
            return line.strip()

    return UNTITLED


def normalize_body(raw: str) -> str:
    """Reduce markdown to plain text for searching.

    Images are removed before links are unwrapped so that image syntax is
    not mistaken for a link.

    Args:
        raw: Markdown source.

    Returns:
        Best-effort plain text.
    """
    content = CODE_BLOCK.sub("", raw)
    content = HTML_COMMENT.sub("", content)
    content = IMAGE.sub("", content)
    content = LINK.sub(r"\1", content)
    content = HTML_TAG.sub("", content)
    return content.strip()


def format_subsection_name(directory: str) -> str:
    """Turn a directory name such as ``advanced-usage`` into ``Advanced Usage``."""
    return " ".join(word[:1].upper() + word[1:] for word in directory.split("-"))


def compute_url(path: str, version: str) -> str:
    """Return the GitHub link to a file at a version."""
    return f"{GITHUB_BLOB_BASE}/{FILAMENT_REPO}/blob/{version}/{path}"


class PageFetcher:
    """Turns remote markdown files into Page records."""

    def __init__(self, source: ContentSource) -> None:
        """Initialise the fetcher.

        Args:
            source: Content source to read files from.
        """
        self.source = source

    async def fetch(self, path: str, version: str, section: str, subsection: str | None = None) -> Page | None:
        """Fetch and normalise one markdown file.

        Args:
            path: Repository path of the file.
            version: Version ref to read the file at.
            section: Section title the page belongs to.
            subsection: Optional subsection name.

        Returns:
            Page instance, or None if the file has no title or no content.

        Raises:
            ContentSourceError: If the file could not be fetched.
        """
        raw = await self.source.get_file(path, version)
        title = extract_title(raw)
        content = normalize_body(raw)

        if not title or not content:
            logger.debug("Skipping empty document: %s", path)
            return None

        return Page(
            title=title,
            url=compute_url(path, version),
            content=content,
            version=version,
            section=section,
            subsection=subsection,
            source_path=path,
            raw_content=raw,
        )

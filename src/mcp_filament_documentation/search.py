"""Keyword search over a cached documentation index."""

from mcp_filament_documentation.models import Index, Page, SearchResult

TITLE_MATCH_WEIGHT = 10
SNIPPET_BEFORE = 100
SNIPPET_AFTER = 200
ELLIPSIS = "..."


class SearchEngine:
    """Scores pages against a free-text query and renders the results."""

    @staticmethod
    def tokenize(query: str) -> list[str]:
        """Split a query into lower-cased whitespace-separated terms."""
        return query.lower().split()

    @staticmethod
    def score(page: Page, terms: list[str]) -> int:
        """Score a page against query terms.

        Each term found in the title adds a fixed weight; each occurrence in
        the body adds one.

        Args:
            page: Page to score.
            terms: Lower-cased query terms.

        Returns:
            Score, zero when nothing matched.
        """
        title = page.title.lower()
        content = page.content.lower()
        total = 0
        for term in terms:
            if term in title:
                total += TITLE_MATCH_WEIGHT
            total += content.count(term)
        return total

    @staticmethod
    def snippet(content: str, terms: list[str]) -> str:
        """Cut a preview of the body around the earliest term match.

        Args:
            content: Normalised page body.
            terms: Lower-cased query terms.

        Returns:
            Snippet with ``...`` marking text cut from either end.
        """
        lowered = content.lower()
        positions = [position for position in (lowered.find(term) for term in terms) if position != -1]
        if not positions:
            return content[:SNIPPET_AFTER] + ELLIPSIS

        first = min(positions)
        start = max(0, first - SNIPPET_BEFORE)
        end = min(len(content), first + SNIPPET_AFTER)
        text = content[start:end]
        if start > 0:
            text = ELLIPSIS + text
        if end < len(content):
            text = text + ELLIPSIS
        return text

    def rank(self, index: Index, query: str) -> list[SearchResult]:
        """Return matching pages ordered by descending score.

        Pages with equal scores keep the order they appear in the index.

        Args:
            index: Index to search.
            query: Free-text query.

        Returns:
            List of SearchResult instances.
        """
        terms = self.tokenize(query)
        results = []
        for section in index.sections.values():
            for page in section.iter_pages():
                page_score = self.score(page, terms)
                if page_score > 0:
                    results.append(
                        SearchResult(
                            title=page.title,
                            url=page.url,
                            snippet=self.snippet(page.content, terms),
                            score=page_score,
                            section=page.section,
                            subsection=page.subsection,
                        )
                    )
        results.sort(key=lambda result: result.score, reverse=True)
        return results

    def search(self, index: Index, query: str) -> str:
        """Search the index and format the results as markdown.

        Args:
            index: Index to search.
            query: Free-text query.

        Returns:
            Markdown report, or a "no results" message.
        """
        results = self.rank(index, query)
        if not results:
            return f'No results found for query: "{query}"'

        parts = [f'# Search Results for "{query}"\n', f"Found {len(results)} result(s)\n"]
        for result in results:
            parts.append(f"## [{result.title}]({result.url})\n")
            parts.append(f"{result.snippet}\n")
        return "\n".join(parts)

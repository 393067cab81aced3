"""Literal search across the catalog and installed steering documents.

Queries are plain substrings matched case-insensitively. They are never
compiled as regular expressions, so patterns like `(a+)+` are just text.
Query length, scanned bytes per document and result count are all capped,
which keeps the worst case linear in the amount of text scanned.
"""

import logging
from enum import Enum
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict

from .catalog import FrameworkCatalog
from .exceptions import SearchQueryError
from .protocols import FileSystemProtocol

logger = logging.getLogger(__name__)

SNIPPET_RADIUS = 50

# Rank by where the match was found
_FIELD_SCORES = {"name": 100, "description": 50, "category": 25, "content": 10}


class SearchResultKind(str, Enum):
    DESCRIPTOR = "descriptor"
    DOCUMENT = "document"


class SearchResult(BaseModel):
    """One match, with a snippet and the surrounding lines."""

    model_config = ConfigDict(frozen=True)

    source: str
    kind: SearchResultKind
    matched_field: str
    snippet: str
    context: str
    score: int
    line_number: int | None = None
    path: Path | None = None


def _lower_with_offsets(text: str) -> tuple[str, list[int]]:
    """Lowercase `text`, recording for each lowered character its index in `text`."""
    parts = []
    offsets: list[int] = []
    for index, char in enumerate(text):
        lowered = char.lower()
        parts.append(lowered)
        offsets.extend([index] * len(lowered))
    return "".join(parts), offsets


def extract_snippet(text: str, query: str, radius: int = SNIPPET_RADIUS) -> str:
    """
    Cut the match out of `text` with up to `radius` characters either side.

    Example:
        >>> extract_snippet("x" * 60 + "needle" + "y" * 60, "needle", radius=3)
        '...xxxneedleyyy...'
    """
    needle = query.lower()
    lowered, offsets = _lower_with_offsets(text)
    index = lowered.find(needle) if needle else -1
    if index == -1:
        return text[: radius * 2]

    # Lowercasing can change length (e.g. "İ"), so map back to positions in `text`
    match_start = offsets[index]
    match_end = offsets[index + len(needle) - 1] + 1
    start = max(0, match_start - radius)
    end = min(len(text), match_end + radius)
    snippet = text[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(text):
        snippet = snippet + "..."
    return snippet


class FrameworkSearchEngine:
    """
    Search descriptors and steering documents.

    Example:
        >>> engine = FrameworkSearchEngine(catalog, file_system, steering_path)
        >>> for result in await engine.search("test"):
        ...     print(result.source, result.snippet)
    """

    def __init__(
        self,
        catalog: FrameworkCatalog,
        file_system: FileSystemProtocol,
        steering_path: Path,
        context_lines: int = 1,
        max_query_length: int = 256,
        max_results: int = 200,
        max_scan_bytes: int = 2 * 1024 * 1024,
    ):
        self.catalog = catalog
        self.file_system = file_system
        self.steering_path = steering_path
        self.context_lines = context_lines
        self.max_query_length = max_query_length
        self.max_results = max_results
        self.max_scan_bytes = max_scan_bytes

    async def search(self, query: str, include_documents: bool = True) -> list[SearchResult]:
        """
        Find `query` in descriptor fields and, optionally, document bodies.

        Args:
            query: Literal text; case-insensitive
            include_documents: Also scan *.md files in the steering directory

        Returns:
            Results sorted by score (descriptor name matches first), at most max_results.
            Empty query returns [].

        Raises:
            SearchQueryError: If the query is longer than max_query_length
        """
        needle = query.strip()
        if not needle:
            return []
        if len(needle) > self.max_query_length:
            raise SearchQueryError(
                f"Search query is {len(needle)} characters; the limit is {self.max_query_length}",
                context={"length": len(needle), "limit": self.max_query_length},
            )
        lowered = needle.lower()

        results = await self._search_descriptors(needle, lowered)
        if include_documents:
            results.extend(await self._search_documents(needle, lowered, self.max_results - len(results)))

        # sorted() is stable: equal scores keep catalog and line order
        results = sorted(results, key=lambda r: -r.score)[: self.max_results]
        logger.debug(f"Search for {needle!r} returned {len(results)} results")
        return results

    async def _search_descriptors(self, needle: str, lowered: str) -> list[SearchResult]:
        results = []
        for descriptor in await self.catalog.list_descriptors():
            fields = {
                "name": descriptor.name,
                "description": descriptor.description,
                "category": descriptor.category.value,
            }
            for field_name, text in fields.items():
                if lowered in text.lower():
                    results.append(
                        SearchResult(
                            source=descriptor.id,
                            kind=SearchResultKind.DESCRIPTOR,
                            matched_field=field_name,
                            snippet=extract_snippet(text, needle),
                            context=text,
                            score=_FIELD_SCORES[field_name],
                        )
                    )
                    # One result per descriptor, from its best-ranked field
                    break
        return results

    async def _search_documents(self, needle: str, lowered: str, budget: int) -> list[SearchResult]:
        results: list[SearchResult] = []
        if budget <= 0:
            return results

        for path in await self.file_system.list_files(self.steering_path, "*.md"):
            content = await self.file_system.read_file(path)
            encoded = content.encode("utf-8")
            if len(encoded) > self.max_scan_bytes:
                logger.warning(f"Only the first {self.max_scan_bytes} bytes of {path} are searched")
                # A character split by the cut is dropped
                content = encoded[: self.max_scan_bytes].decode("utf-8", errors="ignore")

            if lowered not in content.lower():
                continue

            descriptor = await self.catalog.find_by_file_name(path.name)
            source = descriptor.id if descriptor is not None else path.name
            lines = content.split("\n")
            for index, line in enumerate(lines):
                if lowered not in line.lower():
                    continue
                start = max(0, index - self.context_lines)
                end = min(len(lines), index + self.context_lines + 1)
                results.append(
                    SearchResult(
                        source=source,
                        kind=SearchResultKind.DOCUMENT,
                        matched_field="content",
                        snippet=extract_snippet(line.strip(), needle),
                        context="\n".join(lines[start:end]),
                        score=_FIELD_SCORES["content"],
                        line_number=index + 1,
                        path=path,
                    )
                )
                if len(results) >= budget:
                    return results
        return results

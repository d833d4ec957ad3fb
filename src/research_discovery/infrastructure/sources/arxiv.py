"""
arXiv API Integration

Preprints for physics, mathematics, computer science, quantitative biology,
finance, statistics and electrical engineering, served as an Atom feed.

API Documentation: https://info.arxiv.org/help/api/user-manual.html

arXiv has no DOI for most preprints, so the identifier ``arxiv:<id>`` stands
in as the DOI-like key. Citation and reference counts are not provided.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import defusedxml.ElementTree as ET  # Security: prevent XML attacks

from research_discovery.domain.entities import ArxivRecord
from research_discovery.shared.exceptions import ParseError

from .base_client import DEFAULT_PAGE_SIZE, BaseAPIClient

if TYPE_CHECKING:
    from xml.etree.ElementTree import Element

logger = logging.getLogger(__name__)

ARXIV_API_URL = "https://export.arxiv.org/api/query"

NAMESPACES = {
    "atom": "http://www.w3.org/2005/Atom",
    "arxiv": "http://arxiv.org/schemas/atom",
}


def _text(entry: Element, path: str) -> str | None:
    element = entry.find(path, NAMESPACES)
    if element is None or not element.text:
        return None
    return " ".join(element.text.split())


def parse_atom_feed(xml_text: str) -> list[ArxivRecord]:
    """
    Parse an arXiv Atom response into raw records.

    Raises:
        ParseError: If the document is not well-formed XML
    """
    try:
        root = ET.fromstring(xml_text)
    except (ET.ParseError, ValueError) as e:
        raise ParseError(str(e), source="arXiv") from e

    records: list[ArxivRecord] = []
    for entry in root.findall("atom:entry", NAMESPACES):
        entry_data: dict[str, Any] = {
            "id": _text(entry, "atom:id"),
            "title": _text(entry, "atom:title"),
            "summary": _text(entry, "atom:summary"),
            "published": _text(entry, "atom:published"),
            "journal_ref": _text(entry, "arxiv:journal_ref"),
            "authors": [
                name
                for name in (_text(author, "atom:name") for author in entry.findall("atom:author", NAMESPACES))
                if name
            ],
            "categories": [
                term for term in (cat.get("term") for cat in entry.findall("atom:category", NAMESPACES)) if term
            ],
            "pdf_url": next(
                (link.get("href") for link in entry.findall("atom:link", NAMESPACES) if link.get("title") == "pdf"),
                None,
            ),
        }
        records.append(ArxivRecord.from_api(entry_data))
    return records


class ArXivClient(BaseAPIClient):
    """
    arXiv adapter.

    Usage:
        async with ArXivClient() as client:
            records = await client.fetch("transformer interpretability", page=1)
    """

    name = "arxiv"
    _service_name = "arXiv"

    def __init__(self, timeout: float = 30.0, page_size: int = DEFAULT_PAGE_SIZE):
        # arXiv asks clients to keep to one request every three seconds
        super().__init__(timeout=timeout, min_interval=3.0, page_size=page_size)

    async def _fetch(self, query: str, page: int) -> list[ArxivRecord]:
        escaped_query = query.replace(":", " ").replace("(", " ").replace(")", " ")
        xml_text = await self._make_request(
            ARXIV_API_URL,
            params={
                "search_query": f"all:{escaped_query}",
                "start": self._offset(page),
                "max_results": self.page_size,
            },
            expect_json=False,
        )
        if not xml_text:
            return []
        try:
            return parse_atom_feed(xml_text)
        except ParseError as e:
            logger.error(f"arXiv feed rejected: {e}")
            return []

"""
Raw source records - one variant per upstream catalog.

Each catalog returns a different, loosely-typed payload. Instead of duck-typed
field access, every adapter builds one of the dataclasses below and the
normalizer has one mapping function per variant.

``from_api()`` never raises: fields with an unexpected type are read as missing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _str_or_none(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _str_list(value: Any) -> list[str]:
    return [item for item in (_str_or_none(v) for v in _list(value)) if item]


def _first_str(value: Any) -> str | None:
    """Crossref wraps most scalars in single-element lists."""
    if isinstance(value, list):
        return next((v for v in (_str_or_none(x) for x in value) if v), None)
    return _str_or_none(value)


@dataclass
class CrossrefRecord:
    """Item of a Crossref ``/works`` response."""

    doi: str | None = None
    title: str | None = None
    authors: list[str] = field(default_factory=list)
    date_parts: list[int] = field(default_factory=list)
    container_title: str | None = None
    abstract: str | None = None
    subjects: list[str] = field(default_factory=list)
    cited_by: Any = None
    reference_count: Any = None

    source = "crossref"

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> CrossrefRecord:
        authors: list[str] = []
        for author in _list(item.get("author")):
            if not isinstance(author, dict):
                continue
            name = _str_or_none(author.get("name"))
            if not name:
                parts = [_str_or_none(author.get("given")), _str_or_none(author.get("family"))]
                name = " ".join(p for p in parts if p)
            if name:
                authors.append(name)

        date_parts: list[int] = []
        for key in ("published", "published-print", "published-online", "created"):
            date_info = item.get(key)
            if not isinstance(date_info, dict):
                continue
            parts = date_info.get("date-parts")
            if isinstance(parts, list) and parts and isinstance(parts[0], list):
                date_parts = [p for p in parts[0][:3] if isinstance(p, int)]
                if date_parts:
                    break

        references = item.get("reference")
        reference_count = len(references) if isinstance(references, list) else item.get("references-count")

        return cls(
            doi=_str_or_none(item.get("DOI")),
            title=_first_str(item.get("title")),
            authors=authors,
            date_parts=date_parts,
            container_title=_first_str(item.get("container-title")),
            abstract=_str_or_none(item.get("abstract")),
            subjects=_str_list(item.get("subject")),
            cited_by=item.get("is-referenced-by-count"),
            reference_count=reference_count,
        )


@dataclass
class CoreRecord:
    """Result of CORE v3 ``search/works``."""

    title: str | None = None
    authors: list[str] = field(default_factory=list)
    date_published: str | None = None
    publisher: str | None = None
    subjects: list[str] = field(default_factory=list)
    abstract: str | None = None
    doi: str | None = None
    citation_count: Any = None
    download_url: str | None = None

    source = "core"

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> CoreRecord:
        authors = [
            name
            for name in (
                _str_or_none(a.get("name")) if isinstance(a, dict) else _str_or_none(a)
                for a in _list(item.get("authors"))
            )
            if name
        ]
        subjects = _str_list(item.get("subjects")) or _str_list(item.get("topics"))

        download_url = _str_or_none(item.get("downloadUrl"))
        if not download_url:
            identifier = item.get("fullTextIdentifier")
            download_url = _str_or_none(identifier)

        return cls(
            title=_str_or_none(item.get("title")),
            authors=authors,
            date_published=_str_or_none(item.get("datePublished")) or _str_or_none(item.get("yearPublished")),
            publisher=_str_or_none(item.get("publisher")),
            subjects=subjects,
            abstract=_str_or_none(item.get("abstract")),
            doi=_str_or_none(item.get("doi")),
            citation_count=item.get("citationCount"),
            download_url=download_url,
        )


@dataclass
class ArxivRecord:
    """Entry of the arXiv Atom feed, already pulled out of the XML."""

    arxiv_id: str | None = None
    title: str | None = None
    authors: list[str] = field(default_factory=list)
    published: str | None = None
    journal_ref: str | None = None
    categories: list[str] = field(default_factory=list)
    summary: str | None = None
    pdf_url: str | None = None

    source = "arxiv"

    @classmethod
    def from_api(cls, entry: dict[str, Any]) -> ArxivRecord:
        raw_id = _str_or_none(entry.get("id")) or ""
        # http://arxiv.org/abs/2401.12345v1 -> 2401.12345v1
        arxiv_id = raw_id.rsplit("/abs/", 1)[-1].strip() or None
        return cls(
            arxiv_id=arxiv_id,
            title=_str_or_none(entry.get("title")),
            authors=_str_list(entry.get("authors")),
            published=_str_or_none(entry.get("published")),
            journal_ref=_str_or_none(entry.get("journal_ref")),
            categories=_str_list(entry.get("categories")),
            summary=_str_or_none(entry.get("summary")),
            pdf_url=_str_or_none(entry.get("pdf_url")),
        )


@dataclass
class PapersWithCodeRecord:
    """Result of the Papers with Code ``/search/`` endpoint."""

    arxiv_id: str | None = None
    title: str | None = None
    authors: list[str] = field(default_factory=list)
    published: str | None = None
    venue: str | None = None
    abstract: str | None = None
    pdf_url: str | None = None
    repository_url: str | None = None

    source = "paperswithcode"

    @classmethod
    def from_api(cls, result: dict[str, Any]) -> PapersWithCodeRecord:
        paper = result.get("paper") if isinstance(result.get("paper"), dict) else result
        repository = result.get("repository")
        repository_url = _str_or_none(repository.get("url")) if isinstance(repository, dict) else None
        return cls(
            arxiv_id=_str_or_none(paper.get("arxiv_id")),
            title=_str_or_none(paper.get("title")),
            authors=_str_list(paper.get("authors")),
            published=_str_or_none(paper.get("published")),
            venue=_str_or_none(paper.get("conference")) or _str_or_none(paper.get("proceeding")),
            abstract=_str_or_none(paper.get("abstract")),
            pdf_url=_str_or_none(paper.get("url_pdf")),
            repository_url=repository_url,
        )


type RawRecord = CrossrefRecord | CoreRecord | ArxivRecord | PapersWithCodeRecord

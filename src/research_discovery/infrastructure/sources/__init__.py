"""
Source Adapters

One adapter per external catalog. Every adapter exposes ``name``,
``async fetch(query, page) -> list[RawRecord]`` and ``close()``; ``fetch``
never raises.

Available sources:
- crossref: Crossref works (citation and reference counts)
- core: CORE open access aggregator (download links)
- arxiv: arXiv preprints
- paperswithcode: Papers with Code (repository links)
"""

from __future__ import annotations

from research_discovery.shared.exceptions import ConfigurationError

from .arxiv import ArXivClient, parse_atom_feed
from .base_client import DEFAULT_PAGE_SIZE, BaseAPIClient
from .core import COREClient
from .crossref import CrossrefClient
from .paperswithcode import PapersWithCodeClient

SOURCE_NAMES = ("crossref", "core", "arxiv", "paperswithcode")


def build_sources(
    names: list[str] | tuple[str, ...] = SOURCE_NAMES,
    *,
    email: str | None = None,
    core_api_key: str | None = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    timeout: float = 30.0,
) -> list[BaseAPIClient]:
    """
    Build the adapters named in ``names``, in that order.

    Raises:
        ConfigurationError: If a name is not a known source
    """
    unknown = [name for name in names if name not in SOURCE_NAMES]
    if unknown:
        raise ConfigurationError(f"Unknown source(s): {', '.join(unknown)}. Available: {', '.join(SOURCE_NAMES)}")

    sources: list[BaseAPIClient] = []
    for name in dict.fromkeys(names):
        if name == "crossref":
            sources.append(CrossrefClient(email=email, timeout=timeout, page_size=page_size))
        elif name == "core":
            sources.append(COREClient(api_key=core_api_key, timeout=timeout, page_size=page_size))
        elif name == "arxiv":
            sources.append(ArXivClient(timeout=timeout, page_size=page_size))
        else:
            sources.append(PapersWithCodeClient(timeout=timeout, page_size=page_size))
    return sources


__all__ = [
    "BaseAPIClient",
    "CrossrefClient",
    "COREClient",
    "ArXivClient",
    "PapersWithCodeClient",
    "parse_atom_feed",
    "build_sources",
    "SOURCE_NAMES",
    "DEFAULT_PAGE_SIZE",
]

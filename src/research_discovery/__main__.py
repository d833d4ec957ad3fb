"""
Research Discovery - command-line search

Runs one research session: a search, optional extra pages, filters and a sort
order, then prints the view.

Usage:
    # Top results for a query
    python -m research_discovery "quantum computing"

    # Three pages, most cited first, published since 2020, as JSON
    python -m research_discovery "graph neural networks" --pages 3 \\
        --sort citationCount --start-date 2020-01-01 --json

    # Embedding-based relevance (needs the "semantic" extra)
    python -m research_discovery "protein folding" --scoring hybrid

Environment Variables:
    CROSSREF_EMAIL: Contact email for the Crossref polite pool
    CORE_API_KEY: CORE API key
    RESEARCH_DISCOVERY_SCORING_MODE: lexical | semantic | hybrid
    RESEARCH_DISCOVERY_SOURCES: Comma-separated source names
    RESEARCH_DISCOVERY_RANKING_PRESET: default | citation_focused | recency_focused
    RESEARCH_DISCOVERY_RANKING_<FIELD>: Override one ranking constant (e.g. _BM25_K1=1.5)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import TYPE_CHECKING

from research_discovery.application.search.filters import ArticleFilters
from research_discovery.container import close_sources, create_container
from research_discovery.domain.entities import SortOption
from research_discovery.shared.exceptions import ResearchDiscoveryError

if TYPE_CHECKING:
    from research_discovery.domain.entities import EnhancedArticle

logger = logging.getLogger("research_discovery")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="research_discovery",
        description="Search scholarly catalogs, deduplicate and rank the results",
    )
    parser.add_argument("query", help="Free-text search query")
    parser.add_argument("--pages", type=int, default=1, help="Pages to fetch from every source (default: 1)")
    parser.add_argument(
        "--sort",
        choices=[option.value for option in SortOption],
        default=SortOption.RELEVANCE.value,
        help="Sort key of the view (default: relevance)",
    )
    parser.add_argument("--start-date", help="Earliest publication date (YYYY, YYYY-MM or YYYY-MM-DD)")
    parser.add_argument("--end-date", help="Latest publication date (YYYY, YYYY-MM or YYYY-MM-DD)")
    parser.add_argument("--journal", action="append", default=[], help="Keep only this venue (repeatable)")
    parser.add_argument("--min-citations", type=int, help="Minimum citation count")
    parser.add_argument(
        "--scoring",
        choices=["lexical", "semantic", "hybrid"],
        help="Relevance strategy (default: RESEARCH_DISCOVERY_SCORING_MODE or lexical)",
    )
    parser.add_argument(
        "--ranking-preset",
        choices=["default", "citation_focused", "recency_focused"],
        help="Ranking weight preset (default: RESEARCH_DISCOVERY_RANKING_PRESET or default)",
    )
    parser.add_argument("--sources", help="Comma-separated sources (default: all)")
    parser.add_argument("--enrich-citations", action="store_true", help="Refresh citation counts from Crossref")
    parser.add_argument("--limit", type=int, default=20, help="Articles to print (default: 20, 0 for all)")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return parser


def format_article(rank: int, article: EnhancedArticle) -> str:
    lines = [
        f"{rank:>3}. {article.title}",
        f"     {article.authors}",
        f"     {article.journal} | {article.date} | citations: {article.citation_count} | "
        f"relevance: {article.relevance_score:.3f} | score: {article.ranking_score:.3f}",
    ]
    if article.has_doi:
        lines.append(f"     {article.doi}")
    if article.repository_url:
        lines.append(f"     code: {article.repository_url}")
    return "\n".join(lines)


async def run(args: argparse.Namespace) -> int:
    container = create_container(
        {
            "scoring_mode": args.scoring,
            "sources": args.sources,
            "ranking_preset": args.ranking_preset,
            "enrich_citations": True if args.enrich_citations else None,
        }
    )
    session = container.session()
    try:
        filters = ArticleFilters(
            start_date=args.start_date,
            end_date=args.end_date,
            journals=frozenset(args.journal),
            min_citations=args.min_citations,
        )
        await session.search(args.query)
        for _ in range(max(args.pages, 1) - 1):
            await session.load_more()
        session.set_sort(args.sort)
        view = session.apply_filters(filters)
    finally:
        await close_sources(container)

    shown = view if args.limit <= 0 else view[: args.limit]
    if args.json:
        payload = {
            "summary": session.get_session_summary(),
            "available_journals": session.available_journals,
            "articles": [article.to_dict() for article in shown],
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        stats = session.stats
        if stats is not None:
            print(
                f"{len(view)} of {len(session.all_articles)} articles for {stats.query!r} "
                f"(sources: {stats.by_source}, duplicates removed: {stats.duplicates_removed})\n"
            )
        for rank, article in enumerate(shown, start=1):
            print(format_article(rank, article))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        return asyncio.run(run(args))
    except ResearchDiscoveryError as e:
        logger.error(str(e))
        print(json.dumps(e.to_dict()) if args.json else f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())

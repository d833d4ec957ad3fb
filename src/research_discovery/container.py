"""
Application DI Container (dependency-injector).

Centralizes service creation and lifecycle management.

Usage::

    from research_discovery.container import create_container

    container = create_container({"scoring_mode": "hybrid"})
    session = container.session()
    await session.search("quantum computing")

    # In tests, override any provider:
    container.sources.override(providers.Object([fake_source]))
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

from dependency_injector import containers, providers

from research_discovery.shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_SOURCES = "crossref,core,arxiv,paperswithcode"

DEFAULT_CONFIG: dict[str, Any] = {
    "crossref_email": None,
    "core_api_key": None,
    "items_per_source": 25,
    "source_timeout": 30.0,
    "embedding_timeout": 10.0,
    "embedding_concurrency": 4,
    "embedding_model": "all-MiniLM-L6-v2",
    "scoring_mode": "lexical",
    "enrich_citations": False,
    "citation_cache_ttl": 86400.0,
    "citation_cache_size": 4096,
    "sources": DEFAULT_SOURCES,
    "ranking_preset": "default",
    "ranking": {},
}

_TRUTHY = {"1", "true", "yes", "on"}

_RANKING_ENV_PREFIX = "RESEARCH_DISCOVERY_RANKING_"


def load_config_from_env(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """
    Build the configuration dict from environment variables.

    Recognised variables: CROSSREF_EMAIL, CORE_API_KEY and
    RESEARCH_DISCOVERY_<KEY> for every other key (e.g.
    RESEARCH_DISCOVERY_SCORING_MODE, RESEARCH_DISCOVERY_SOURCES).
    RESEARCH_DISCOVERY_RANKING_<FIELD> sets one RankingConfig field (e.g.
    RESEARCH_DISCOVERY_RANKING_CITATION_WEIGHT=0.5).

    Raises:
        ConfigurationError: If a numeric variable cannot be parsed
    """
    env = os.environ if environ is None else environ
    config = dict(DEFAULT_CONFIG)
    config["crossref_email"] = env.get("CROSSREF_EMAIL") or None
    config["core_api_key"] = env.get("CORE_API_KEY") or None
    config["ranking"] = {}

    for key, default in DEFAULT_CONFIG.items():
        raw = env.get(f"RESEARCH_DISCOVERY_{key.upper()}")
        if raw is None or raw == "":
            continue
        if isinstance(default, dict):
            continue
        if isinstance(default, bool):
            config[key] = raw.strip().lower() in _TRUTHY
        elif isinstance(default, int):
            config[key] = int(raw)
        elif isinstance(default, float):
            config[key] = float(raw)
        else:
            config[key] = raw.strip()

    for name, raw in env.items():
        if not name.startswith(_RANKING_ENV_PREFIX) or name == f"{_RANKING_ENV_PREFIX}PRESET" or raw == "":
            continue
        field_name = name.removeprefix(_RANKING_ENV_PREFIX).lower()
        try:
            config["ranking"][field_name] = float(raw)
        except ValueError as e:
            raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e
    return config


# =============================================================================
# Lazy factories (avoid importing optional stacks at module import)
# =============================================================================


def _source_names(sources: str | list[str] | tuple[str, ...] | None) -> list[str]:
    if sources is None:
        sources = DEFAULT_SOURCES
    if isinstance(sources, str):
        sources = sources.split(",")
    return [name.strip().lower() for name in sources if name and name.strip()]


def _create_sources(
    sources: str | list[str] | None,
    email: str | None,
    core_api_key: str | None,
    page_size: int | None,
    timeout: float | None,
) -> list[object]:
    from research_discovery.infrastructure.sources import build_sources

    return list(
        build_sources(
            _source_names(sources),
            email=email,
            core_api_key=core_api_key,
            page_size=page_size or 25,
            timeout=timeout or 30.0,
        )
    )


def _create_citation_cache(max_size: int | None, ttl: float | None) -> object:
    from research_discovery.infrastructure.cache import CitationCache

    return CitationCache(max_size=max_size or 4096, ttl=ttl or 86400.0)


def _create_embedder(model_name: str | None) -> object:
    from research_discovery.infrastructure.embedding import DEFAULT_MODEL, SentenceEmbedder

    return SentenceEmbedder(model_name=model_name or DEFAULT_MODEL)


def _create_scorer(
    mode: str | None,
    embedder: object,
    ranking_config: Any,
    timeout: float | None,
    concurrency: int | None,
) -> object:
    from research_discovery.application.search.relevance import build_scorer

    return build_scorer(
        mode or "lexical",
        embedder,  # type: ignore[arg-type]
        k1=ranking_config.bm25_k1,
        b=ranking_config.bm25_b,
        timeout=timeout or 10.0,
        concurrency=concurrency or 4,
        semantic_weight=ranking_config.semantic_weight,
    )


def _create_citation_enricher(
    enabled: bool | None,
    sources: list[object],
    cache: object,
    email: str | None,
    concurrency: int | None,
) -> object | None:
    if not enabled:
        return None
    from research_discovery.application.search.citations import CitationEnricher
    from research_discovery.infrastructure.sources import CrossrefClient

    crossref = next((s for s in sources if isinstance(s, CrossrefClient)), None)
    if crossref is None:
        crossref = CrossrefClient(email=email)
    return CitationEnricher(crossref.get_citation_count, cache, concurrency=concurrency or 4)  # type: ignore[arg-type]


def _create_pipeline(
    sources: list[object],
    scorer: object,
    ranking_config: Any,
    enricher: object | None,
    source_timeout: float | None,
) -> object:
    from research_discovery.application.search.pipeline import SearchPipeline
    from research_discovery.application.search.ranking import RankingCombiner

    return SearchPipeline(
        sources,  # type: ignore[arg-type]
        scorer,  # type: ignore[arg-type]
        combiner=RankingCombiner(ranking_config),
        enricher=enricher,  # type: ignore[arg-type]
        source_timeout=source_timeout or 30.0,
    )


def _create_session(pipeline: object, ranking_config: object | None = None) -> object:
    from research_discovery.application.session.manager import ResearchSession

    return ResearchSession(pipeline, ranking_config=ranking_config)  # type: ignore[arg-type]


def _create_feature_extractor() -> object:
    from research_discovery.application.insights import FeatureExtractor

    return FeatureExtractor()


def _create_ranking_config(preset: str | None, overrides: Mapping[str, float] | None) -> object:
    from research_discovery.application.search.ranking import RankingConfig

    return RankingConfig.from_options(preset or "default", **dict(overrides or {}))


class ApplicationContainer(containers.DeclarativeContainer):
    """Central DI container for Research Discovery.

    Manages creation and lifecycle of all core services:
    - ``sources``: catalog adapters (one HTTP client each)
    - ``citation_cache``: per-process citation count cache
    - ``scorer``: relevance strategy selected by ``scoring_mode``
    - ``pipeline``: fan-out search pipeline
    - ``session``: a new research session per call; pass
      ``ranking_config=`` to rank one session differently
    """

    config = providers.Configuration()

    ranking_config = providers.Singleton(
        _create_ranking_config,
        preset=config.ranking_preset,
        overrides=config.ranking,
    )

    sources = providers.Singleton(
        _create_sources,
        sources=config.sources,
        email=config.crossref_email,
        core_api_key=config.core_api_key,
        page_size=config.items_per_source,
        timeout=config.source_timeout,
    )

    citation_cache = providers.Singleton(
        _create_citation_cache,
        max_size=config.citation_cache_size,
        ttl=config.citation_cache_ttl,
    )

    embedder = providers.Singleton(
        _create_embedder,
        model_name=config.embedding_model,
    )

    scorer = providers.Singleton(
        _create_scorer,
        mode=config.scoring_mode,
        embedder=embedder,
        ranking_config=ranking_config,
        timeout=config.embedding_timeout,
        concurrency=config.embedding_concurrency,
    )

    citation_enricher = providers.Singleton(
        _create_citation_enricher,
        enabled=config.enrich_citations,
        sources=sources,
        cache=citation_cache,
        email=config.crossref_email,
        concurrency=config.embedding_concurrency,
    )

    pipeline = providers.Singleton(
        _create_pipeline,
        sources=sources,
        scorer=scorer,
        ranking_config=ranking_config,
        enricher=citation_enricher,
        source_timeout=config.source_timeout,
    )

    session = providers.Factory(
        _create_session,
        pipeline=pipeline,
    )

    feature_extractor = providers.Singleton(_create_feature_extractor)


def create_container(overrides: Mapping[str, Any] | None = None) -> ApplicationContainer:
    """Container configured from the environment, then ``overrides``."""
    container = ApplicationContainer()
    config = load_config_from_env()
    config.update({k: v for k, v in (overrides or {}).items() if v is not None})
    container.config.from_dict(config)
    logger.debug(f"Container configured: scoring_mode={config['scoring_mode']}, sources={config['sources']}")
    return container


async def close_sources(container: ApplicationContainer) -> None:
    """Close the HTTP clients of every instantiated source."""
    for source in container.sources():
        close = getattr(source, "close", None)
        if close is not None:
            await close()


__all__ = ["ApplicationContainer", "create_container", "load_config_from_env", "close_sources", "DEFAULT_CONFIG"]

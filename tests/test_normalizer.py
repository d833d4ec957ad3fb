"""Tests for raw record parsing and normalization onto Article."""

from __future__ import annotations

import pytest

from research_discovery.application.search.normalizer import (
    clean_abstract,
    coerce_count,
    normalize_article,
    normalize_record,
    normalize_records,
)
from research_discovery.domain.entities import (
    NO_ABSTRACT,
    NO_AUTHORS,
    NO_DATE,
    NO_DOI,
    NO_JOURNAL,
    NO_TITLE,
    Article,
    ArxivRecord,
    CoreRecord,
    CrossrefRecord,
    PapersWithCodeRecord,
)

CROSSREF_ITEM = {
    "DOI": "10.1103/PhysRevLett.1",
    "title": ["Quantum  supremacy using a programmable processor"],
    "author": [{"given": "John", "family": "Martinis"}, {"name": "Google AI Quantum"}],
    "published": {"date-parts": [[2019, 10, 23]]},
    "container-title": ["Nature"],
    "abstract": "<jats:p>The promise of quantum computers &amp; their speed-up.</jats:p>",
    "subject": ["Physics", "Physics", "Multidisciplinary"],
    "is-referenced-by-count": 42,
    "reference": [{}, {}, {}],
}


# ============================================================
# Field helpers
# ============================================================


class TestCleanAbstract:
    def test_strips_jats_and_html(self):
        text = '<jats:p>Qubits <jats:italic>and</jats:italic> <b class="x">gates</b></jats:p>'
        assert clean_abstract(text) == "Qubits and gates"

    def test_decodes_entities(self):
        assert clean_abstract("a&nbsp;b &lt;c&gt; &quot;d&quot; &#39;e&#39;") == "a b <c> \"d\" 'e'"

    def test_entities_decoded_once_in_order(self):
        # &amp; is decoded after &lt;, so a double-escaped entity stays escaped once
        assert clean_abstract("&amp;lt;") == "&lt;"

    def test_empty(self):
        assert clean_abstract(None) == ""
        assert clean_abstract("   ") == ""


class TestCoerceCount:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (12, 12),
            (-5, 0),
            (3.7, 3),
            ("17", 17),
            (" 8 ", 8),
            ("n/a", 0),
            (None, 0),
            (True, 0),
            (float("nan"), 0),
            (float("inf"), 0),
            ([1], 0),
        ],
    )
    def test_coerce(self, value, expected):
        assert coerce_count(value) == expected


# ============================================================
# Per-source mappings
# ============================================================


class TestNormalizeCrossref:
    def test_full_record(self):
        article = normalize_record(CrossrefRecord.from_api(CROSSREF_ITEM))
        assert article.title == "Quantum supremacy using a programmable processor"
        assert article.authors == "John Martinis, Google AI Quantum"
        assert article.date == "2019-10-23"
        assert article.journal == "Nature"
        assert article.abstract == "The promise of quantum computers & their speed-up."
        assert article.tags == ("Physics", "Multidisciplinary")
        assert article.doi == "10.1103/PhysRevLett.1"
        assert article.citation_count == 42
        assert article.reference_count == 3
        assert article.source == "crossref"

    def test_falls_back_to_references_count(self):
        record = CrossrefRecord.from_api({"references-count": 7})
        assert normalize_record(record).reference_count == 7

    def test_published_print_date(self):
        record = CrossrefRecord.from_api({"published-print": {"date-parts": [[2020, 2]]}})
        assert normalize_record(record).date == "2020-2"

    def test_missing_fields_become_placeholders(self):
        article = normalize_record(CrossrefRecord.from_api({}))
        assert article.title == NO_TITLE
        assert article.authors == NO_AUTHORS
        assert article.date == NO_DATE
        assert article.journal == NO_JOURNAL
        assert article.abstract == NO_ABSTRACT
        assert article.doi == NO_DOI
        assert article.citation_count == 0

    def test_unexpected_types_are_ignored(self):
        record = CrossrefRecord.from_api(
            {"title": None, "author": "not-a-list", "is-referenced-by-count": "n/a", "published": []}
        )
        article = normalize_record(record)
        assert article.title == NO_TITLE
        assert article.authors == NO_AUTHORS
        assert article.citation_count == 0

    def test_non_list_authors_read_as_missing(self):
        assert CrossrefRecord.from_api({"author": 5}).authors == []
        assert CrossrefRecord.from_api({"author": True}).authors == []


class TestNormalizeCore:
    def test_record(self):
        record = CoreRecord.from_api(
            {
                "title": "Open access at scale",
                "authors": [{"name": "Petr Knoth"}, "Drahomira Herrmannova"],
                "datePublished": "2021-04-01T00:00:00",
                "publisher": "CORE",
                "abstract": "<p>Aggregating repositories.</p>",
                "doi": "10.5555/core.1",
                "citationCount": "5",
                "downloadUrl": "https://core.ac.uk/download/1.pdf",
            }
        )
        article = normalize_record(record)
        assert article.authors == "Petr Knoth, Drahomira Herrmannova"
        assert article.date == "2021-04-01"
        assert article.journal == "CORE"
        assert article.abstract == "Aggregating repositories."
        assert article.citation_count == 5
        assert article.reference_count == 0
        assert article.pdf_url == "https://core.ac.uk/download/1.pdf"

    def test_year_published_fallback(self):
        record = CoreRecord.from_api({"yearPublished": 2018})
        assert normalize_record(record).date == "2018"

    def test_non_list_authors_read_as_missing(self):
        assert CoreRecord.from_api({"title": "T", "authors": 5}).authors == []
        assert CoreRecord.from_api({"title": "T", "authors": True}).authors == []
        assert CoreRecord.from_api({"title": "T", "authors": "Petr Knoth"}).authors == []


class TestNormalizeArxiv:
    def test_record(self):
        record = ArxivRecord.from_api(
            {
                "id": "http://arxiv.org/abs/2401.12345v2",
                "title": "Scaling laws",
                "summary": "We study scaling.",
                "published": "2024-01-15T18:00:00Z",
                "authors": ["A. Author", "B. Author"],
                "categories": ["cs.LG", "stat.ML"],
                "pdf_url": "http://arxiv.org/pdf/2401.12345v2",
            }
        )
        article = normalize_record(record)
        assert article.doi == "arxiv:2401.12345v2"
        assert article.arxiv_id == "2401.12345v2"
        assert article.date == "2024-01-15"
        assert article.journal == "arXiv"
        assert article.tags == ("cs.LG", "stat.ML")
        assert article.citation_count == 0
        assert article.source == "arxiv"

    def test_journal_ref_used_as_venue(self):
        record = ArxivRecord.from_api({"id": "http://arxiv.org/abs/1", "journal_ref": "Phys. Rev. A 1"})
        assert normalize_record(record).journal == "Phys. Rev. A 1"


class TestNormalizePapersWithCode:
    def test_record_with_repository(self):
        record = PapersWithCodeRecord.from_api(
            {
                "paper": {
                    "arxiv_id": "1706.03762",
                    "title": "Attention Is All You Need",
                    "authors": ["Ashish Vaswani"],
                    "published": "2017-06-12",
                    "abstract": "The dominant sequence transduction models...",
                    "url_pdf": "https://arxiv.org/pdf/1706.03762v5.pdf",
                },
                "repository": {"url": "https://github.com/tensorflow/tensor2tensor"},
            }
        )
        article = normalize_record(record)
        assert article.doi == "arxiv:1706.03762"
        assert article.journal == "Papers with Code"
        assert article.repository_url == "https://github.com/tensorflow/tensor2tensor"
        assert article.source == "paperswithcode"

    def test_flat_result(self):
        record = PapersWithCodeRecord.from_api({"title": "Flat", "conference": "NeurIPS"})
        article = normalize_record(record)
        assert article.journal == "NeurIPS"
        assert article.doi == NO_DOI


# ============================================================
# Idempotence and dispatch
# ============================================================


class TestNormalizeArticle:
    def test_idempotent(self):
        once = normalize_record(CrossrefRecord.from_api(CROSSREF_ITEM))
        twice = normalize_record(once)
        assert twice == once

    def test_clean_article_returned_unchanged(self):
        article = normalize_record(CrossrefRecord.from_api(CROSSREF_ITEM))
        assert normalize_article(article) is article

    def test_repairs_blank_fields(self):
        article = normalize_article(Article(title="  ", abstract="", doi="", citation_count=-3))
        assert article.title == NO_TITLE
        assert article.abstract == NO_ABSTRACT
        assert article.doi == NO_DOI
        assert article.citation_count == 0


class TestDispatch:
    def test_unknown_type_raises(self):
        with pytest.raises(TypeError):
            normalize_record({"title": "dict"})  # type: ignore[arg-type]

    def test_batch_skips_unknown(self):
        articles = normalize_records([CrossrefRecord.from_api(CROSSREF_ITEM), object()])  # type: ignore[list-item]
        assert len(articles) == 1

"""
Feature Extractor - pull short findings out of an abstract.

Asks a fixed set of questions against the abstract with an extractive
question-answering model (transformers ``question-answering`` pipeline,
``distilbert-base-cased-distilled-squad``). Display only: nothing extracted
here feeds back into ranking.
"""

from __future__ import annotations

import asyncio
import logging
import re
import threading
from typing import Any, Protocol

from research_discovery.shared.exceptions import InvalidQueryError, ServiceUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_QA_MODEL = "distilbert-base-cased-distilled-squad"

FEATURE_QUESTIONS: dict[str, str] = {
    "main_outcome": "What is the main finding or outcome of this research?",
    "methodology": "What methodology or approach was used in this research?",
}

_SENTENCE_MARKERS = re.compile(r"</?s>")
_PUNCTUATION_ONLY = re.compile(r"^[^\w\s]+$")


class Answerer(Protocol):
    def __call__(self, question: str, context: str) -> str: ...


def clean_answer(answer: str | None) -> str | None:
    """Strip ``<s>``/``</s>`` markers; None for empty or punctuation-only answers."""
    if not answer:
        return None
    cleaned = _SENTENCE_MARKERS.sub("", answer).strip()
    if not cleaned or _PUNCTUATION_ONLY.match(cleaned):
        return None
    return cleaned


class FeatureExtractor:
    """
    Extract named findings from abstracts.

    Example:
        extractor = FeatureExtractor()
        features = await extractor.extract_features(article.abstract)
        features.get("methodology")
    """

    def __init__(
        self,
        answerer: Answerer | None = None,
        model_name: str = DEFAULT_QA_MODEL,
        questions: dict[str, str] | None = None,
    ):
        self.model_name = model_name
        self.questions = dict(questions or FEATURE_QUESTIONS)
        self._answerer = answerer
        self._lock = threading.Lock()

    def _get_answerer(self) -> Answerer:
        with self._lock:
            if self._answerer is not None:
                return self._answerer
            try:
                from transformers import pipeline
            except ImportError as e:
                raise ServiceUnavailableError(
                    "Missing dependency: transformers",
                    service="feature-extraction",
                ) from e

            logger.info(f"Loading question-answering model {self.model_name}")
            try:
                qa = pipeline("question-answering", model=self.model_name)
            except Exception as e:
                raise ServiceUnavailableError(
                    f"Failed to load {self.model_name}: {e}",
                    service="feature-extraction",
                ) from e

            def answer(question: str, context: str) -> str:
                result: Any = qa(question=question, context=context)
                return str(result.get("answer", "")) if isinstance(result, dict) else ""

            self._answerer = answer
            return answer

    def _extract(self, abstract: str) -> dict[str, str]:
        answerer = self._get_answerer()
        features: dict[str, str] = {}
        for feature, question in self.questions.items():
            cleaned = clean_answer(answerer(question, abstract))
            if cleaned:
                features[feature] = cleaned
        return features

    async def extract_features(self, abstract: str) -> dict[str, str]:
        """
        Answer every question against ``abstract``.

        Raises:
            InvalidQueryError: If the abstract is blank
            ServiceUnavailableError: If the model cannot be loaded
        """
        if not abstract or not abstract.strip():
            raise InvalidQueryError(abstract, "Abstract cannot be empty")
        return await asyncio.to_thread(self._extract, abstract.strip())

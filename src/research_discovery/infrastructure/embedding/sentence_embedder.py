"""
Sentence Embedder

Embedding collaborator backed by sentence-transformers. Texts are mapped to
mean-pooled, L2-normalised vectors, so cosine similarity equals the dot
product.

The model is loaded lazily on first use and encoding runs in a worker thread
so the event loop stays responsive. The sentence-transformers stack is an
optional extra (``pip install research-discovery[semantic]``); when it is
missing, ``embed`` raises ``EmbeddingError`` and the semantic scorer degrades.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING, Any

from research_discovery.shared.exceptions import EmbeddingError, ErrorContext

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "all-MiniLM-L6-v2"


class SentenceEmbedder:
    """
    Lazily loaded sentence-transformers model.

    Example:
        embedder = SentenceEmbedder()
        vectors = await embedder.embed(["quantum error correction"])
        len(vectors[0])  # 384
    """

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL,
        device: str | None = None,
        batch_size: int = 16,
    ):
        self.model_name = model_name
        self.device = device
        self.batch_size = batch_size
        self._model: Any = None
        self._load_error: Exception | None = None
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    def _load_model(self) -> Any:
        with self._lock:
            if self._model is not None:
                return self._model
            if self._load_error is not None:
                raise EmbeddingError(
                    f"Embedding model {self.model_name} unavailable: {self._load_error}",
                    context=ErrorContext(source="sentence-transformers", operation="load"),
                )
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError as e:
                self._load_error = e
                raise EmbeddingError(
                    "Missing dependency: sentence-transformers",
                    context=ErrorContext(
                        source="sentence-transformers",
                        operation="load",
                        suggestion="pip install research-discovery[semantic]",
                    ),
                ) from e

            logger.info(f"Loading embedding model {self.model_name}")
            try:
                self._model = SentenceTransformer(self.model_name, device=self.device)
            except Exception as e:
                self._load_error = e
                raise EmbeddingError(
                    f"Failed to load embedding model {self.model_name}: {e}",
                    context=ErrorContext(source="sentence-transformers", operation="load"),
                ) from e
            return self._model

    def _encode(self, texts: list[str]) -> list[list[float]]:
        model = self._load_model()
        try:
            vectors = model.encode(
                texts,
                batch_size=self.batch_size,
                normalize_embeddings=True,
                convert_to_numpy=True,
                show_progress_bar=False,
            )
        except Exception as e:
            raise EmbeddingError(
                f"Encoding failed: {e}",
                context=ErrorContext(source="sentence-transformers", operation="encode"),
            ) from e
        return [list(map(float, row)) for row in vectors]

    async def embed(self, texts: str | Sequence[str]) -> list[list[float]]:
        """
        Embed one text or a batch of texts.

        Raises:
            EmbeddingError: If the model cannot be loaded or encoding fails
        """
        if isinstance(texts, str):
            texts = [texts]
        if not texts:
            return []
        return await asyncio.to_thread(self._encode, [text or "" for text in texts])

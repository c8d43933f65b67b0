"""Sentence-transformer embeddings for degree, eligibility and skill matching.

BGE-M3 embeds degrees and eligibilities for the normalization cascade;
MiniLM embeds skills for pairwise skill matching. Models load lazily on
first use and inference runs off the event loop.
"""

import asyncio
import logging
from collections import OrderedDict
from typing import Protocol

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as sklearn_cosine

from config import settings

logger = logging.getLogger(__name__)


class EmbeddingService(Protocol):
    async def embed(self, text: str) -> np.ndarray | None: ...

    async def embed_batch(self, texts: list[str]) -> list[np.ndarray | None]: ...


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity of two 1-D vectors (-1..1)."""
    if a.size == 0 or b.size == 0 or a.shape != b.shape:
        return 0.0
    return float(sklearn_cosine(a.reshape(1, -1), b.reshape(1, -1))[0][0])


def similarity_percent(a: np.ndarray, b: np.ndarray) -> float:
    """Map cosine [-1, 1] onto [0, 100]."""
    percent = (cosine_similarity(a, b) + 1) / 2 * 100
    return max(0.0, min(100.0, percent))


class SentenceTransformerEmbedder:
    """Lazy-loading SentenceTransformer wrapper with a bounded per-text LRU cache.

    Vectors are L2-normalized. Any load or encode failure is logged and
    reported as None so callers can skip the embedding tier.
    """

    def __init__(self, model_name: str, timeout: float | None = None, cache_size: int | None = None):
        self.model_name = model_name
        self.timeout = timeout if timeout is not None else settings.service_timeout_seconds
        self.cache_size = cache_size or settings.embedding_cache_size
        self._model = None
        self._load_failed = False
        self._cache: OrderedDict[str, np.ndarray] = OrderedDict()

    def _get_model(self):
        if self._model is None and not self._load_failed:
            try:
                from sentence_transformers import SentenceTransformer

                self._model = SentenceTransformer(self.model_name)
                logger.info("Embedding model loaded: %s", self.model_name)
            except Exception as e:
                self._load_failed = True
                logger.error("Failed to load embedding model %s: %s", self.model_name, e)
        return self._model

    def _encode(self, texts: list[str]) -> np.ndarray | None:
        model = self._get_model()
        if model is None:
            return None
        return model.encode(texts, convert_to_numpy=True, normalize_embeddings=True)

    @staticmethod
    def _cache_key(text: str) -> str:
        return text.lower().strip()

    async def embed(self, text: str) -> np.ndarray | None:
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[np.ndarray | None]:
        results: list[np.ndarray | None] = [None] * len(texts)
        pending: dict[str, list[int]] = {}
        for i, text in enumerate(texts):
            key = self._cache_key(text)
            if not key:
                continue
            if key in self._cache:
                self._cache.move_to_end(key)
                results[i] = self._cache[key]
            else:
                pending.setdefault(key, []).append(i)

        if not pending:
            return results

        batch = [texts[indices[0]].strip() for indices in pending.values()]
        try:
            encoded = await asyncio.wait_for(asyncio.to_thread(self._encode, batch), self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Embedding timed out after %.1fs (%s)", self.timeout, self.model_name)
            return results
        except Exception as e:
            logger.error("Embedding failed (%s): %s", self.model_name, e)
            return results

        if encoded is None:
            return results
        for (key, indices), vector in zip(pending.items(), encoded):
            vec = np.asarray(vector, dtype=np.float32)
            self._remember(key, vec)
            for i in indices:
                results[i] = vec
        return results

    def _remember(self, key: str, vec: np.ndarray) -> None:
        self._cache[key] = vec
        self._cache.move_to_end(key)
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)


class DisabledEmbedder:
    """Stand-in used when ``EMBEDDINGS_ENABLED`` is false."""

    async def embed(self, text: str) -> np.ndarray | None:
        return None

    async def embed_batch(self, texts: list[str]) -> list[np.ndarray | None]:
        return [None] * len(texts)


_degree_embedder: EmbeddingService | None = None
_skill_embedder: EmbeddingService | None = None


def get_degree_embedder() -> EmbeddingService:
    """Embedder for degrees and eligibilities (BGE-M3 by default)."""
    global _degree_embedder
    if _degree_embedder is None:
        if settings.embeddings_enabled:
            _degree_embedder = SentenceTransformerEmbedder(settings.degree_embedding_model)
        else:
            _degree_embedder = DisabledEmbedder()
    return _degree_embedder


def get_skill_embedder() -> EmbeddingService:
    """Embedder for skills (MiniLM by default)."""
    global _skill_embedder
    if _skill_embedder is None:
        if settings.embeddings_enabled:
            _skill_embedder = SentenceTransformerEmbedder(settings.skill_embedding_model)
        else:
            _skill_embedder = DisabledEmbedder()
    return _skill_embedder

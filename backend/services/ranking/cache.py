"""In-memory caches owned by the normalization cascade.

Both are plain objects handed to the cascade at construction, so tests and
independent rankers never share state by accident.
"""

import asyncio
import logging

import numpy as np

from models.schemas.canonical_entry import Vocabulary
from models.schemas.normalization_result import NormalizationResult
from services.embeddings import EmbeddingService
from services.ranking.dictionary import CanonicalDictionary
from services.ranking.text_matching import normalize_key

logger = logging.getLogger(__name__)


class NormalizationCache:
    """NormalizationResult per (vocabulary, normalized raw text).

    Concurrent writers for the same key are allowed; the last write wins.
    """

    def __init__(self):
        self._entries: dict[tuple[Vocabulary, str], NormalizationResult] = {}
        self.hits = 0
        self.misses = 0

    def get(self, vocabulary: Vocabulary, raw: str) -> NormalizationResult | None:
        result = self._entries.get((vocabulary, normalize_key(raw)))
        if result is None:
            self.misses += 1
        else:
            self.hits += 1
        return result

    def put(self, vocabulary: Vocabulary, raw: str, result: NormalizationResult) -> None:
        self._entries[(vocabulary, normalize_key(raw))] = result

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)


class CanonicalEmbeddingIndex:
    """Embeddings of every canonical label, built on first use per vocabulary.

    Building is guarded by a lock so concurrent cascade misses trigger a
    single batch embed. A failed build leaves the vocabulary empty and is
    retried on the next miss.
    """

    def __init__(self, embedder: EmbeddingService):
        self.embedder = embedder
        self._vectors: dict[Vocabulary, dict[str, np.ndarray]] = {}
        self._lock = asyncio.Lock()

    async def get(self, dictionary: CanonicalDictionary) -> dict[str, np.ndarray]:
        vocabulary = dictionary.vocabulary
        if vocabulary in self._vectors:
            return self._vectors[vocabulary]

        async with self._lock:
            if vocabulary in self._vectors:
                return self._vectors[vocabulary]

            entries = dictionary.entries()
            if not entries:
                return {}
            vectors = await self.embedder.embed_batch([e.canonical for e in entries])
            index = {
                entry.key: vec for entry, vec in zip(entries, vectors) if vec is not None
            }
            if not index:
                logger.warning("No canonical %s embeddings available", vocabulary.value)
                return {}
            self._vectors[vocabulary] = index
            logger.info("Canonical %s embeddings built: %d", vocabulary.value, len(index))
            return index

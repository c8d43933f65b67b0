"""Normalization cascade: raw degree/eligibility text -> canonical key.

Tiers run in order and the first one to return a result wins:

    DictionaryStrategy   exact alias lookup               confidence 1.0
    EmbeddingStrategy    cosine vs canonical labels       0.9 strong / 0.7 soft
    LLMStrategy          classify against a shortlist     service confidence

Every result, including unresolved ones, is cached per vocabulary so a job
requirement seen once per applicant costs at most one external call.
"""

import asyncio
import logging
from typing import Protocol

from config import settings
from models.schemas.applicant_data import ApplicantData, Eligibility
from models.schemas.canonical_entry import CanonicalEntry, Vocabulary
from models.schemas.job_requirements import JobRequirements
from models.schemas.normalization_result import (
    CompositeNormalization,
    ListJoiner,
    NormalizationMethod,
    NormalizationResult,
)
from models.schemas.service_outcomes import (
    ClassificationParseError,
    ClassificationUnknown,
)
from services.embeddings import cosine_similarity, get_degree_embedder
from services.prompt_builder import build_classification_prompt
from services.ranking.cache import CanonicalEmbeddingIndex, NormalizationCache
from services.ranking.classifier import ClassificationService, GeminiClassifier
from services.ranking.dictionary import CanonicalDictionary, DictionaryStore, get_dictionary_store
from services.ranking.text_matching import composite_joiner, is_composite, parse_list_expression

logger = logging.getLogger(__name__)

LLM_SUCCESS_CONFIDENCE = 0.8
LLM_UNKNOWN_CONFIDENCE = 0.3
LLM_FOREIGN_KEY_CONFIDENCE = 0.2


def _unresolved(raw: str) -> NormalizationResult:
    return NormalizationResult(method=NormalizationMethod.UNRESOLVED, confidence=0.0, raw=raw)


def _rebuilt_label(entry: CanonicalEntry | None, raw: str) -> str:
    """Canonical label for a rebuilt requirement, or ``raw`` when the label
    contains a joiner word and would change how the list is read."""
    if entry is None or is_composite(entry.canonical):
        return raw
    return entry.canonical


class NormalizationStrategy(Protocol):
    name: str

    async def resolve(self, raw: str, dictionary: CanonicalDictionary) -> NormalizationResult | None: ...


class DictionaryStrategy:
    name = "dictionary"

    async def resolve(self, raw: str, dictionary: CanonicalDictionary) -> NormalizationResult | None:
        entry = dictionary.lookup_by_alias(raw)
        if entry is None:
            return None
        return NormalizationResult(
            canonical_key=entry.key,
            method=NormalizationMethod.DICTIONARY,
            confidence=1.0,
            raw=raw,
        )


class EmbeddingStrategy:
    name = "embedding"

    def __init__(
        self,
        index: CanonicalEmbeddingIndex,
        strong_threshold: float | None = None,
        soft_threshold: float | None = None,
    ):
        self.index = index
        self.strong_threshold = strong_threshold if strong_threshold is not None else settings.bge_m3_strong_threshold
        self.soft_threshold = soft_threshold if soft_threshold is not None else settings.bge_m3_soft_threshold

    async def resolve(self, raw: str, dictionary: CanonicalDictionary) -> NormalizationResult | None:
        vectors = await self.index.get(dictionary)
        if not vectors:
            return None
        query = await self.index.embedder.embed(raw)
        if query is None:
            return None

        best_key, best_sim = None, -1.0
        for key, vec in vectors.items():
            sim = cosine_similarity(query, vec)
            if sim > best_sim:
                best_key, best_sim = key, sim

        if best_key is None or best_sim <= 0:
            return None
        if best_sim >= self.strong_threshold:
            confidence = 0.9
        elif best_sim >= self.soft_threshold:
            confidence = 0.7
        else:
            return None

        logger.debug("Embedding match %r -> %s (%.3f)", raw, best_key, best_sim)
        return NormalizationResult(
            canonical_key=best_key,
            method=NormalizationMethod.EMBEDDING,
            confidence=confidence,
            raw=raw,
        )


class LLMStrategy:
    name = "llm"

    def __init__(
        self,
        classifier: ClassificationService,
        candidate_limit: int | None = None,
        timeout: float | None = None,
    ):
        self.classifier = classifier
        self.candidate_limit = candidate_limit or settings.llm_candidate_limit
        self.timeout = timeout if timeout is not None else settings.service_timeout_seconds

    async def resolve(self, raw: str, dictionary: CanonicalDictionary) -> NormalizationResult | None:
        candidates = dictionary.top_candidates_by_token_overlap(raw, self.candidate_limit)
        if not candidates:
            return _unresolved(raw)

        prompt = build_classification_prompt(raw, candidates, dictionary.vocabulary)
        try:
            outcome = await asyncio.wait_for(self.classifier.classify(prompt), self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Classification of %r timed out", raw)
            return _unresolved(raw)

        if isinstance(outcome, ClassificationParseError):
            logger.warning("Classification of %r failed: %s", raw, outcome.error)
            return _unresolved(raw)

        if isinstance(outcome, ClassificationUnknown):
            confidence = outcome.confidence if outcome.confidence is not None else LLM_UNKNOWN_CONFIDENCE
            return NormalizationResult(method=NormalizationMethod.LLM, confidence=confidence, raw=raw)

        if outcome.key not in {c.key for c in candidates}:
            logger.warning("Classifier returned key %r outside the shortlist for %r", outcome.key, raw)
            confidence = outcome.confidence if outcome.confidence is not None else LLM_FOREIGN_KEY_CONFIDENCE
            return NormalizationResult(method=NormalizationMethod.LLM, confidence=confidence, raw=raw)

        confidence = outcome.confidence if outcome.confidence is not None else LLM_SUCCESS_CONFIDENCE
        return NormalizationResult(
            canonical_key=outcome.key,
            method=NormalizationMethod.LLM,
            confidence=confidence,
            raw=raw,
        )


class NormalizationCascade:
    def __init__(
        self,
        store: DictionaryStore,
        strategies: list[NormalizationStrategy],
        cache: NormalizationCache | None = None,
    ):
        self.store = store
        self.strategies = strategies
        self.cache = cache if cache is not None else NormalizationCache()

    async def normalize(self, raw: str, vocabulary: Vocabulary) -> NormalizationResult:
        if not raw or not raw.strip():
            return _unresolved(raw or "")

        cached = self.cache.get(vocabulary, raw)
        if cached is not None:
            return cached

        dictionary = self.store[vocabulary]
        result = None
        for strategy in self.strategies:
            try:
                result = await strategy.resolve(raw, dictionary)
            except Exception as e:
                logger.error("%s tier failed for %r: %s", strategy.name, raw, e)
                result = None
            if result is not None:
                break

        if result is None:
            result = _unresolved(raw)
        self.cache.put(vocabulary, raw, result)
        return result

    async def normalize_composite(self, raw: str, vocabulary: Vocabulary) -> CompositeNormalization:
        """Normalize each item of "A, B and C" and rebuild it with the same joiner."""
        trimmed = (raw or "").strip()
        if not trimmed:
            return CompositeNormalization(text=raw or "")

        dictionary = self.store[vocabulary]

        if not is_composite(trimmed):
            result = await self.normalize(trimmed, vocabulary)
            entry = dictionary.get_by_key(result.canonical_key) if result.canonical_key else None
            return CompositeNormalization(
                text=_rebuilt_label(entry, trimmed),
                primary_entry=entry,
                tokens=[result],
            )

        items = parse_list_expression(trimmed)
        if not items:
            return CompositeNormalization(text=raw)

        results = await asyncio.gather(*(self.normalize(item, vocabulary) for item in items))
        texts: list[str] = []
        primary = None
        for item, result in zip(items, results):
            entry = dictionary.get_by_key(result.canonical_key) if result.canonical_key else None
            if entry is not None and primary is None:
                primary = entry
            texts.append(_rebuilt_label(entry, item))

        joiner = ListJoiner(composite_joiner(trimmed))
        return CompositeNormalization(
            text=f" {joiner.value} ".join(texts),
            primary_entry=primary,
            joiner=joiner,
            tokens=list(results),
        )

    async def _canonical_label(self, raw: str, vocabulary: Vocabulary) -> str:
        result = await self.normalize(raw, vocabulary)
        entry = self.store[vocabulary].get_by_key(result.canonical_key) if result.canonical_key else None
        return _rebuilt_label(entry, raw)

    async def normalize_job(self, job: JobRequirements) -> JobRequirements:
        degree = await self.normalize_composite(job.degree_requirement, Vocabulary.DEGREE)
        eligibilities = await asyncio.gather(
            *(self.normalize_composite(line, Vocabulary.ELIGIBILITY) for line in job.eligibilities)
        )
        primary = degree.primary_entry
        return job.model_copy(update={
            "degree_requirement": degree.text,
            "eligibilities": [e.text if e.text.strip() else line for e, line in zip(eligibilities, job.eligibilities)],
            "degree_level": primary.level if primary else None,
            "degree_field_group": primary.field_group if primary else None,
        })

    async def normalize_applicant(self, applicant: ApplicantData) -> ApplicantData:
        degree = await self.normalize_composite(applicant.highest_educational_attainment, Vocabulary.DEGREE)
        titles = await asyncio.gather(
            *(self._canonical_label(e.title, Vocabulary.ELIGIBILITY) for e in applicant.eligibilities)
        )
        primary = degree.primary_entry
        return applicant.model_copy(update={
            "highest_educational_attainment": degree.text,
            "eligibilities": [Eligibility(title=t) for t in titles],
            "degree_level": primary.level if primary else None,
            "degree_field_group": primary.field_group if primary else None,
        })

    async def normalize_job_and_applicant(
        self, job: JobRequirements, applicant: ApplicantData
    ) -> tuple[JobRequirements, ApplicantData]:
        normalized_job, normalized_applicant = await asyncio.gather(
            self.normalize_job(job), self.normalize_applicant(applicant)
        )
        return normalized_job, normalized_applicant


def build_default_cascade(classifier: ClassificationService | None = None) -> NormalizationCascade:
    """Cascade wired to the process-wide dictionaries, BGE-M3 and Gemini."""
    strategies: list[NormalizationStrategy] = [DictionaryStrategy()]
    if settings.embeddings_enabled:
        strategies.append(EmbeddingStrategy(CanonicalEmbeddingIndex(get_degree_embedder())))
    strategies.append(LLMStrategy(classifier or GeminiClassifier()))
    return NormalizationCascade(get_dictionary_store(), strategies)

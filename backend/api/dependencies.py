"""Shared dependencies for API routes."""

from services.ranking.dictionary import DictionaryStore, get_dictionary_store
from services.ranking.ranker import Ranker, get_ranker as _get_ranker


def get_ranker() -> Ranker:
    return _get_ranker()


def get_dictionaries() -> DictionaryStore:
    return get_dictionary_store()

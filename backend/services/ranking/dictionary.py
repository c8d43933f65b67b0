"""Canonical degree / eligibility dictionaries loaded from YAML.

Loaded once per process. Each vocabulary file is loaded independently so a
broken degrees.yaml never takes the eligibility dictionary down with it.
Lookups against a missing vocabulary simply return None.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from config import settings
from models.schemas.canonical_entry import CanonicalEntry, Vocabulary
from services.ranking.text_matching import is_composite, normalize_key, token_jaccard

logger = logging.getLogger(__name__)

_FILENAMES = {
    Vocabulary.DEGREE: "degrees.yaml",
    Vocabulary.ELIGIBILITY: "eligibilities.yaml",
}


def _entry_from_item(item: Any, fallback_key: str | None = None) -> CanonicalEntry | None:
    if not isinstance(item, dict):
        return None
    key = item.get("key") or item.get("id") or fallback_key
    canonical = item.get("canonical")
    if not key or not canonical:
        return None

    aliases = item.get("aliases")
    level = item.get("level")
    field_group = item.get("field_group") or item.get("fieldGroup")
    category = item.get("category")
    return CanonicalEntry(
        key=str(key),
        canonical=str(canonical),
        level=str(level).lower().strip() if level else None,
        field_group=str(field_group) if field_group else None,
        category=str(category) if category else None,
        aliases=tuple(str(a) for a in aliases) if isinstance(aliases, list) else (),
    )


def parse_entries(doc: Any, section: str) -> list[CanonicalEntry]:
    """Flatten a parsed YAML document into entries.

    Accepts ``{section: [...]}``, ``{section: {key: {...}}}``, a bare list,
    or a bare key -> item map. Items without a key or canonical are skipped.
    """
    if not doc:
        return []
    source = doc.get(section, doc) if isinstance(doc, dict) else doc

    entries: list[CanonicalEntry] = []
    if isinstance(source, list):
        for item in source:
            entry = _entry_from_item(item)
            if entry is not None:
                entries.append(entry)
    elif isinstance(source, dict):
        for raw_key, value in source.items():
            entry = _entry_from_item(value, fallback_key=str(raw_key))
            if entry is not None:
                entries.append(entry)
    return entries


class CanonicalDictionary:
    """One vocabulary: entries by key plus a normalized alias index."""

    def __init__(self, vocabulary: Vocabulary, entries: list[CanonicalEntry] | None = None):
        self.vocabulary = vocabulary
        self._by_key: dict[str, CanonicalEntry] = {}
        self._alias_index: dict[str, CanonicalEntry] = {}
        self.alias_collisions = 0
        for entry in entries or []:
            self._add(entry)

    def _add(self, entry: CanonicalEntry) -> None:
        if entry.key in self._by_key:
            logger.warning("Duplicate %s key %r, keeping first", self.vocabulary.value, entry.key)
            return
        self._by_key[entry.key] = entry
        if is_composite(entry.canonical):
            logger.warning(
                "%s label %r reads as a list; requirements keep their raw text for it",
                self.vocabulary.value, entry.canonical,
            )

        for text in (entry.canonical, *entry.aliases):
            nk = normalize_key(text)
            if not nk:
                continue
            existing = self._alias_index.get(nk)
            if existing is None:
                self._alias_index[nk] = entry
            elif existing.key != entry.key:
                # Ambiguous alias: first writer wins
                self.alias_collisions += 1
                logger.warning(
                    "Alias collision in %s: %r maps to %s and %s, keeping %s",
                    self.vocabulary.value, text, existing.key, entry.key, existing.key,
                )

    def lookup_by_alias(self, text: str) -> CanonicalEntry | None:
        return self._alias_index.get(normalize_key(text))

    def get_by_key(self, key: str) -> CanonicalEntry | None:
        return self._by_key.get(key)

    def top_candidates_by_token_overlap(self, text: str, limit: int) -> list[CanonicalEntry]:
        """Shortlist entries whose canonical label shares words with ``text``.

        Ordered by descending Jaccard overlap; equal scores keep load order.
        """
        scored = [
            (token_jaccard(text, entry.canonical), entry)
            for entry in self._by_key.values()
        ]
        scored = [pair for pair in scored if pair[0] > 0]
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [entry for _, entry in scored[:limit]]

    def entries(self) -> list[CanonicalEntry]:
        return list(self._by_key.values())

    def __len__(self) -> int:
        return len(self._by_key)


def load_dictionary(path: Path, vocabulary: Vocabulary) -> CanonicalDictionary:
    """Load one vocabulary file. Failures yield an empty dictionary, never raise."""
    if not path.exists():
        logger.warning("%s not found, running without %s dictionary", path, vocabulary.value)
        return CanonicalDictionary(vocabulary)
    try:
        with path.open(encoding="utf-8") as fh:
            doc = yaml.safe_load(fh)
        section = "degrees" if vocabulary is Vocabulary.DEGREE else "eligibilities"
        entries = parse_entries(doc, section)
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to load %s dictionary from %s: %s", vocabulary.value, path, e)
        return CanonicalDictionary(vocabulary)

    dictionary = CanonicalDictionary(vocabulary, entries)
    logger.info(
        "Loaded %d %s entries (%d alias collisions)",
        len(dictionary), vocabulary.value, dictionary.alias_collisions,
    )
    return dictionary


class DictionaryStore:
    """Holds one CanonicalDictionary per vocabulary."""

    def __init__(self, dictionaries: dict[Vocabulary, CanonicalDictionary]):
        self._dictionaries = dictionaries

    @classmethod
    def from_directory(cls, directory: str | Path) -> "DictionaryStore":
        base = Path(directory)
        return cls({
            vocab: load_dictionary(base / filename, vocab)
            for vocab, filename in _FILENAMES.items()
        })

    def get(self, vocabulary: Vocabulary) -> CanonicalDictionary:
        if vocabulary not in self._dictionaries:
            self._dictionaries[vocabulary] = CanonicalDictionary(vocabulary)
        return self._dictionaries[vocabulary]

    def __getitem__(self, vocabulary: Vocabulary) -> CanonicalDictionary:
        return self.get(vocabulary)


_store: DictionaryStore | None = None


def get_dictionary_store() -> DictionaryStore:
    """Process-wide store, loaded from ``settings.dictionaries_dir`` on first use."""
    global _store
    if _store is None:
        _store = DictionaryStore.from_directory(settings.dictionaries_dir)
    return _store

"""Localized name resolution.

The rule is the same everywhere: exact locale label, else base-language
label, else nothing (callers show the canonical English name). This
module holds the pure form of that rule over an in-memory label
snapshot, and a resolver that memoizes store lookups.
"""

import functools
from typing import Dict, Iterable, Mapping, Optional, Tuple

from refdata.logging_config import create_logger

logger = create_logger(__name__)

# (entity, code, locale_code) -> name
LabelSnapshot = Mapping[Tuple[str, str, str], str]


def base_language(locale: str) -> str:
    """Language part of a locale tag: text before the first hyphen.

    >>> base_language("ar-SA")
    'ar'
    >>> base_language("zh-Hant-TW")
    'zh'
    """
    return locale.split("-", 1)[0]


def build_snapshot(labels: Iterable[Tuple[str, str, str, str]]) -> Dict[Tuple[str, str, str], str]:
    """Snapshot from (entity, code, locale_code, name) rows."""
    return {(entity, code, locale): name for entity, code, locale, name in labels}


def resolve_localized_name(snapshot: LabelSnapshot, entity: str, code: str, locale: str) -> Optional[str]:
    """Apply the fallback rule to a label snapshot."""
    name = snapshot.get((entity, code, locale))
    if name is not None:
        return name
    return snapshot.get((entity, code, base_language(locale)))


class LocalizedNameResolver:
    """Memoizing front end to :meth:`ReferenceDataStore.localized_name`.

    Labels only change through seeding or administrative edits, so cached
    answers stay valid until :meth:`clear` is called after such a change.
    A ``cache_size`` of 0 disables the cache.
    """

    def __init__(self, store, cache_size: int = 1024) -> None:
        self.store = store
        self.cache_size = cache_size
        if cache_size:
            self._lookup = functools.lru_cache(maxsize=cache_size)(store.localized_name)
        else:
            self._lookup = store.localized_name

    def resolve(self, entity: str, code: str, locale: str) -> Optional[str]:
        return self._lookup(entity, code, locale)

    def display_name(self, entity: str, code: str, locale: str) -> Optional[str]:
        """Localized name, falling back to the canonical English name."""
        name = self.resolve(entity, code, locale)
        if name is None:
            name = self.store.canonical_name(entity, code)
        return name

    def clear(self) -> None:
        if self.cache_size:
            self._lookup.cache_clear()
            logger.debug("Cleared localized name cache")

    def cache_info(self):
        return self._lookup.cache_info() if self.cache_size else None

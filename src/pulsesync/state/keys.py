"""Typed classification of state keys.

Every state key is parsed once into a :class:`ClassifiedKey` carrying the
merge policy it belongs to and, for per-entity keys, the entity id. The
merge engine dispatches on :attr:`ClassifiedKey.kind` only.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType

from pulsesync._constants import (
    AUDIOBOOK_TAGS_KEY,
    BOOKMARKS_PREFIX,
    COMPLETED_BOOKS_KEY,
    LAST_PLAYED_PREFIX,
    LAST_POSITION_PREFIX,
    PROGRESS_PREFIX,
    REVIEWS_KEY,
    UNLOCKED_ACHIEVEMENTS_KEY,
    USER_TAGS_KEY,
)
from pulsesync.models.records import BookmarkRecord, KeyedRecord, TagRecord, UnlockRecord


class PolicyKind(StrEnum):
    TIMESTAMPED_SCALAR = "timestamped_scalar"
    COMPANION_TIMESTAMP = "companion_timestamp"
    KEYED_RECORDS = "keyed_records"
    BOOKMARKS = "bookmarks"
    UNIQUE_ID_LIST = "unique_id_list"
    FLAT_SET = "flat_set"
    TAG_MAP = "tag_map"
    FALLBACK = "fallback"


@dataclass(frozen=True, slots=True)
class ClassifiedKey:
    """A state key tagged with its merge policy."""

    kind: PolicyKind
    key: str
    entity_id: str | None = None
    record_model: type[KeyedRecord] | None = None


def _frozen_mapping(values: Mapping[str, type[KeyedRecord]]) -> Mapping[str, type[KeyedRecord]]:
    return MappingProxyType(dict(values))


@dataclass(frozen=True)
class KeySchema:
    """Maps key names to policy classes.

    Exact key names are matched before prefixes. A prefixed key with an
    empty entity id (the bare prefix) is not per-entity and falls back.
    New state categories should be registered here with an explicit
    policy rather than left to the remote-wins fallback.
    """

    scalar_prefixes: tuple[str, ...] = (PROGRESS_PREFIX, LAST_POSITION_PREFIX)
    companion_prefix: str = LAST_PLAYED_PREFIX
    bookmark_prefixes: tuple[str, ...] = (BOOKMARKS_PREFIX,)
    keyed_record_keys: frozenset[str] = frozenset({REVIEWS_KEY})
    unique_id_lists: Mapping[str, type[KeyedRecord]] = field(
        default_factory=lambda: _frozen_mapping(
            {
                UNLOCKED_ACHIEVEMENTS_KEY: UnlockRecord,
                USER_TAGS_KEY: TagRecord,
            }
        )
    )
    flat_set_keys: frozenset[str] = frozenset({COMPLETED_BOOKS_KEY})
    tag_map_keys: frozenset[str] = frozenset({AUDIOBOOK_TAGS_KEY})

    def companion_key(self, entity_id: str) -> str:
        """Key of the last-update timestamp paired with *entity_id*."""
        return f"{self.companion_prefix}{entity_id}"

    def classify(self, key: str) -> ClassifiedKey:
        if key in self.keyed_record_keys:
            return ClassifiedKey(PolicyKind.KEYED_RECORDS, key)
        if key in self.flat_set_keys:
            return ClassifiedKey(PolicyKind.FLAT_SET, key)
        if key in self.tag_map_keys:
            return ClassifiedKey(PolicyKind.TAG_MAP, key)
        model = self.unique_id_lists.get(key)
        if model is not None:
            return ClassifiedKey(PolicyKind.UNIQUE_ID_LIST, key, record_model=model)

        entity_id = _strip_prefix(key, (self.companion_prefix,))
        if entity_id:
            return ClassifiedKey(PolicyKind.COMPANION_TIMESTAMP, key, entity_id)
        entity_id = _strip_prefix(key, self.scalar_prefixes)
        if entity_id:
            return ClassifiedKey(PolicyKind.TIMESTAMPED_SCALAR, key, entity_id)
        entity_id = _strip_prefix(key, self.bookmark_prefixes)
        if entity_id:
            return ClassifiedKey(PolicyKind.BOOKMARKS, key, entity_id, record_model=BookmarkRecord)

        return ClassifiedKey(PolicyKind.FALLBACK, key)


def _strip_prefix(key: str, prefixes: tuple[str, ...]) -> str | None:
    for prefix in prefixes:
        if key.startswith(prefix):
            return key[len(prefix) :]
    return None


DEFAULT_SCHEMA = KeySchema()

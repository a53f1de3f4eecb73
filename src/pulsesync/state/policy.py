"""Deterministic per-class merge policies.

Each function combines one key's local and remote value. Functions never
see absent values (the engine adopts the present side directly) and raise
:class:`ShapeMismatch` when a value does not have the shape its class
expects, which the engine turns into a remote-wins fallback.

Structured classes also accept the JSON text encoding the media
application historically stored them in. The result keeps the local
representation: text in, text out.
"""

from __future__ import annotations

import json
import math
from collections.abc import Hashable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from pulsesync.models.records import KeyedRecord, ReviewRecord


class ShapeMismatch(ValueError):
    """A value does not match the shape its policy class expects."""


def as_number(value: Any) -> float | None:
    """Return *value* as a finite float, or ``None`` if it is not numeric."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def companion_timestamp(state: Mapping[str, Any], key: str) -> float:
    """Last-update timestamp stored under *key*; 0 when missing or not numeric."""
    number = as_number(state.get(key))
    return number if number is not None else 0.0


# ------------------------------------------------------------------
# Representation helpers
# ------------------------------------------------------------------


def _decode_mapping(value: Any) -> tuple[dict[str, Any], bool]:
    decoded, was_text = _decode_text(value)
    if not isinstance(decoded, Mapping):
        raise ShapeMismatch(f"expected a mapping, got {type(decoded).__name__}")
    return dict(decoded), was_text


def _decode_list(value: Any) -> tuple[list[Any], bool]:
    decoded, was_text = _decode_text(value)
    if isinstance(decoded, (str, bytes, bytearray)) or not isinstance(decoded, Sequence):
        raise ShapeMismatch(f"expected a list, got {type(decoded).__name__}")
    return list(decoded), was_text


def _require_list(value: Any) -> list[Any]:
    if isinstance(value, (str, bytes, bytearray)) or not isinstance(value, Sequence):
        raise ShapeMismatch(f"expected a list, got {type(value).__name__}")
    return list(value)


def _decode_text(value: Any) -> tuple[Any, bool]:
    if not isinstance(value, str):
        return value, False
    try:
        return json.loads(value), True
    except json.JSONDecodeError as exc:
        raise ShapeMismatch(f"text value is not JSON: {exc}") from exc


def _represent(merged: Any, local_value: Any, local_decoded: Any, local_was_text: bool) -> Any:
    """Hand back *local_value* when nothing changed, else *merged* in the local representation."""
    if merged == local_decoded:
        return local_value
    if local_was_text:
        return json.dumps(merged, separators=(",", ":"), ensure_ascii=False)
    return merged


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=repr)


def _scalar_key(item: Any) -> tuple[type, Hashable]:
    if isinstance(item, (str, int, float, bool)):
        return type(item), item
    raise ShapeMismatch(f"set elements must be scalars, got {type(item).__name__}")


def _union(local_items: Sequence[Any], remote_items: Sequence[Any]) -> list[Any]:
    seen: set[tuple[type, Hashable]] = set()
    result: list[Any] = []
    for item in (*local_items, *remote_items):
        marker = _scalar_key(item)
        if marker in seen:
            continue
        seen.add(marker)
        result.append(item)
    return result


# ------------------------------------------------------------------
# Policies
# ------------------------------------------------------------------


def merge_timestamped_scalar(local_value: Any, remote_value: Any, *, local_ts: float, remote_ts: float) -> Any:
    """Remote wins only with a strictly newer companion timestamp."""
    if remote_ts > local_ts:
        return remote_value
    return local_value


def merge_companion_timestamp(local_value: Any, remote_value: Any) -> Any:
    """Newest timestamp wins; a tie keeps local."""
    local_ts = as_number(local_value)
    remote_ts = as_number(remote_value)
    if local_ts is None or remote_ts is None:
        raise ShapeMismatch("companion timestamps must be numeric")
    return remote_value if remote_ts > local_ts else local_value


def merge_keyed_records(local_value: Any, remote_value: Any) -> Any:
    """Union reviews by book id; when both sides reviewed a book the newer record wins.

    Equal timestamps with different content are settled by comparing the
    canonical JSON text of the two records, so the outcome does not depend
    on which side is local.
    """
    local_map, local_was_text = _decode_mapping(local_value)
    remote_map, _ = _decode_mapping(remote_value)

    merged: dict[str, Any] = dict(local_map)
    for book_id, remote_record in remote_map.items():
        if book_id not in merged:
            merged[book_id] = remote_record
            continue
        local_record = merged[book_id]
        if local_record == remote_record:
            continue
        try:
            local_ts = ReviewRecord.model_validate(local_record).sort_timestamp
            remote_ts = ReviewRecord.model_validate(remote_record).sort_timestamp
        except ValidationError as exc:
            raise ShapeMismatch(f"invalid review for {book_id!r}: {exc.error_count()} error(s)") from exc
        if remote_ts > local_ts or (remote_ts == local_ts and _canonical(remote_record) > _canonical(local_record)):
            merged[book_id] = remote_record

    return _represent(merged, local_value, local_map, local_was_text)


def merge_keyed_list(local_value: Any, remote_value: Any, *, record_model: type[KeyedRecord]) -> Any:
    """Union records by merge key, keeping one copy per key.

    Records are immutable once created, so the first copy seen (local before
    remote) is kept. Local order is preserved and remote-only records are
    appended in remote order.
    """
    local_items, local_was_text = _decode_list(local_value)
    remote_items, _ = _decode_list(remote_value)

    merged: dict[str, Any] = {}
    for item in (*local_items, *remote_items):
        try:
            key = record_model.model_validate(item).merge_key
        except ValidationError as exc:
            raise ShapeMismatch(f"invalid {record_model.__name__}: {exc.error_count()} error(s)") from exc
        merged.setdefault(key, item)

    return _represent(list(merged.values()), local_value, local_items, local_was_text)


def merge_flat_set(local_value: Any, remote_value: Any) -> Any:
    """Set union; local order first, then ids only the remote has."""
    local_items, local_was_text = _decode_list(local_value)
    remote_items, _ = _decode_list(remote_value)
    return _represent(_union(local_items, remote_items), local_value, local_items, local_was_text)


def merge_tag_map(local_value: Any, remote_value: Any) -> Any:
    """Per-entity set union of assigned tag names."""
    local_map, local_was_text = _decode_mapping(local_value)
    remote_map, _ = _decode_mapping(remote_value)

    merged: dict[str, Any] = {}
    for entity_id in dict.fromkeys([*local_map, *remote_map]):
        local_tags = local_map.get(entity_id)
        remote_tags = remote_map.get(entity_id)
        if remote_tags is None:
            merged[entity_id] = local_tags
        elif local_tags is None:
            merged[entity_id] = remote_tags
        else:
            merged[entity_id] = _union(_require_list(local_tags), _require_list(remote_tags))

    return _represent(merged, local_value, local_map, local_was_text)

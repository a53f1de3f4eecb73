"""Merge engine.

This is the only component allowed to combine local state with a remote
snapshot payload. :func:`merge` is pure: it reads nothing but its
arguments, never consults the wall clock, and never mutates its inputs.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any

from pulsesync.state import policy
from pulsesync.state.keys import DEFAULT_SCHEMA, ClassifiedKey, KeySchema, PolicyKind
from pulsesync.state.policy import ShapeMismatch

_logger = logging.getLogger(__name__)


def merge(
    local: Mapping[str, Any],
    remote: Mapping[str, Any],
    self_id: str,
    remote_origin_id: str,
    *,
    schema: KeySchema = DEFAULT_SCHEMA,
) -> dict[str, Any]:
    """Combine *local* state with a *remote* payload into new local state.

    A payload authored by this device (``remote_origin_id == self_id``) is
    never merged; a copy of *local* is returned. Otherwise every key of
    either side is classified by *schema* and resolved by its policy class.
    A key present on one side only (``None`` counts as absent) is adopted
    from that side. A value whose shape does not fit its class makes that
    key fall back to remote-wins, so merge is total over JSON-like input.
    """
    if remote_origin_id == self_id:
        return copy.deepcopy(dict(local))

    merged: dict[str, Any] = {}
    for key in dict.fromkeys([*local, *remote]):
        local_value = local.get(key)
        remote_value = remote.get(key)

        if local_value is None and remote_value is None:
            continue
        if remote_value is None:
            merged[key] = copy.deepcopy(local_value)
            continue
        if local_value is None:
            merged[key] = copy.deepcopy(remote_value)
            continue

        classified = schema.classify(key)
        try:
            value = _resolve(classified, local_value, remote_value, local, remote, schema)
        except ShapeMismatch as exc:
            _logger.debug("Key %s does not fit the %s policy (%s); remote wins", key, classified.kind, exc)
            value = remote_value
        merged[key] = copy.deepcopy(value)

    return merged


def _resolve(
    classified: ClassifiedKey,
    local_value: Any,
    remote_value: Any,
    local: Mapping[str, Any],
    remote: Mapping[str, Any],
    schema: KeySchema,
) -> Any:
    kind = classified.kind

    if kind is PolicyKind.TIMESTAMPED_SCALAR:
        assert classified.entity_id is not None
        companion = schema.companion_key(classified.entity_id)
        return policy.merge_timestamped_scalar(
            local_value,
            remote_value,
            local_ts=policy.companion_timestamp(local, companion),
            remote_ts=policy.companion_timestamp(remote, companion),
        )
    if kind is PolicyKind.COMPANION_TIMESTAMP:
        return policy.merge_companion_timestamp(local_value, remote_value)
    if kind is PolicyKind.KEYED_RECORDS:
        return policy.merge_keyed_records(local_value, remote_value)
    if kind in (PolicyKind.BOOKMARKS, PolicyKind.UNIQUE_ID_LIST):
        assert classified.record_model is not None
        return policy.merge_keyed_list(local_value, remote_value, record_model=classified.record_model)
    if kind is PolicyKind.FLAT_SET:
        return policy.merge_flat_set(local_value, remote_value)
    if kind is PolicyKind.TAG_MAP:
        return policy.merge_tag_map(local_value, remote_value)

    # Unclassified keys: remote always wins.
    return remote_value


def changed_keys(before: Mapping[str, Any], after: Mapping[str, Any]) -> list[str]:
    """Keys of *after* whose value differs from (or is missing in) *before*."""
    return [key for key, value in after.items() if key not in before or before[key] != value]

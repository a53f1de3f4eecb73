"""Snapshot codec.

Snapshots travel as compact UTF-8 JSON::

    {"version": 1, "originDeviceId": "...", "timestamp": "<ISO-8601>", "payload": {...}}

Decoding accepts every version in ``SUPPORTED_FORMAT_VERSIONS`` plus the
unversioned field names written by the original application
(``deviceId`` / ``lastModified`` / ``data``).
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from pulsesync._constants import FORMAT_VERSION, MAX_SNAPSHOT_BYTES, SUPPORTED_FORMAT_VERSIONS
from pulsesync.exceptions import DecodeError, EncodeError
from pulsesync.models.snapshot import Snapshot


def encode(
    state: Mapping[str, Any],
    device_id: str,
    timestamp: datetime,
    *,
    max_bytes: int = MAX_SNAPSHOT_BYTES,
) -> bytes:
    """Serialize a full state export tagged with its origin device and time.

    Raises :class:`EncodeError` when the state holds values JSON cannot
    represent exactly (non-string keys, NaN/inf, arbitrary objects) or when
    the encoded snapshot exceeds *max_bytes*.
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)

    try:
        snapshot = Snapshot(
            version=FORMAT_VERSION,
            origin_device_id=device_id,
            timestamp=timestamp.isoformat(),
            payload=dict(state),
        )
    except ValidationError as exc:
        raise EncodeError(f"Invalid snapshot envelope: {exc.error_count()} error(s)") from exc

    _check_keys(snapshot.payload, "payload")
    try:
        text = json.dumps(snapshot.to_wire(), separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise EncodeError(f"State is not representable as a snapshot: {exc}") from exc

    data = text.encode("utf-8")
    if len(data) > max_bytes:
        raise EncodeError(f"Snapshot is {len(data)} bytes, limit is {max_bytes}")
    return data


def decode(data: bytes, *, max_bytes: int = MAX_SNAPSHOT_BYTES) -> Snapshot:
    """Parse snapshot bytes.

    Raises :class:`DecodeError` for empty or oversized input, text that is
    not UTF-8 JSON, a top-level value that is not an object, an
    unrecognized version, a missing origin device id, or a payload that is
    not a mapping.
    """
    if not data:
        raise DecodeError("Snapshot is empty")
    if len(data) > max_bytes:
        raise DecodeError(f"Snapshot is {len(data)} bytes, limit is {max_bytes}")

    try:
        body = json.loads(data.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise DecodeError(f"Snapshot is not UTF-8: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Snapshot is not valid JSON: {exc}") from exc

    if not isinstance(body, dict):
        raise DecodeError(f"Snapshot must be a JSON object, got {type(body).__name__}")

    version = body.get("version", FORMAT_VERSION)
    if isinstance(version, bool) or not isinstance(version, int) or version not in SUPPORTED_FORMAT_VERSIONS:
        raise DecodeError(f"Unsupported snapshot version: {version!r}")

    try:
        return Snapshot.model_validate(body)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in exc.errors())
        raise DecodeError(f"Malformed snapshot ({fields})") from exc


def _check_keys(value: Any, path: str) -> None:
    if isinstance(value, Mapping):
        for key, item in value.items():
            if not isinstance(key, str):
                raise EncodeError(f"Non-string key {key!r} at {path}")
            _check_keys(item, f"{path}.{key}")
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _check_keys(item, f"{path}[{index}]")

"""Base model for snapshot and record payloads.

Every pulsesync model inherits from :class:`PulseBaseModel` which
provides:

* ``alias_generator=to_camel`` so the camelCase keys written by the
  media application map automatically to snake_case fields.
* A ``model_validator(mode="before")`` that drops ``None`` values (so
  the field default is used) and renames legacy keys listed in
  ``_KEY_ALIASES``.
* A ``raw`` dict that captures the original mapping, so merge code can
  hand back exactly what it was given.

Record timestamps arrive as epoch seconds, epoch milliseconds or ISO-8601
text depending on which part of the application wrote them;
:data:`RecordTimestamp` normalizes all three to epoch seconds.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from pulsesync._constants import MS_THRESHOLD


def parse_record_timestamp(value: Any) -> float | None:
    """Convert a record timestamp to epoch seconds.

    Accepts epoch seconds or milliseconds (values above ``1e11`` are treated
    as milliseconds), numeric strings, ISO-8601 strings and datetimes.
    Naive datetimes are taken as UTC. Returns ``None`` for ``None``.

    Raises :class:`ValueError` for anything else.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("timestamp must not be a boolean")
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.timestamp()
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            return parse_record_timestamp(datetime.fromisoformat(text))
    if isinstance(value, (int, float)):
        try:
            ts = float(value)
        except OverflowError as exc:
            raise ValueError("timestamp is out of range") from exc
        if math.isnan(ts) or math.isinf(ts):
            raise ValueError("timestamp must be finite")
        if abs(ts) > MS_THRESHOLD:
            ts /= 1000.0
        return ts
    raise ValueError(f"unsupported timestamp value: {value!r}")


RecordTimestamp = Annotated[float | None, BeforeValidator(parse_record_timestamp)]
"""Annotated type that coerces record timestamps to epoch seconds."""


class PulseBaseModel(BaseModel):
    """Base for snapshot and record models."""

    _KEY_ALIASES: ClassVar[dict[str, str]] = {}
    """Legacy key -> current camelCase key, applied before validation."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original mapping the model was validated from."""

    @staticmethod
    def _clean_dict(values: dict[str, Any], aliases: dict[str, str] | None = None) -> dict[str, Any]:
        """Drop ``None`` values and apply key aliases on *values*."""
        working = dict(values)
        if aliases:
            for old_key, new_key in aliases.items():
                if old_key in working and new_key not in working:
                    working[new_key] = working.pop(old_key)
        return {key: value for key, value in working.items() if value is not None}

    @model_validator(mode="before")
    @classmethod
    def _clean_values(cls, values: Any) -> Any:
        """Drop nulls, apply key aliases, and stash the original mapping."""
        if not isinstance(values, dict):
            return values
        original = dict(values)

        aliases: dict[str, str] = getattr(cls, "_KEY_ALIASES", {})
        cleaned = PulseBaseModel._clean_dict(original, aliases)

        # Only auto-stash raw when not explicitly provided.
        if "raw" not in values:
            cleaned["raw"] = original
        return cleaned

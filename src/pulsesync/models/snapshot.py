"""Snapshot envelope exchanged through the shared location."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import Field, StrictInt, field_validator

from pulsesync._constants import FORMAT_VERSION
from pulsesync.models._base import PulseBaseModel

# Field names used by snapshots written before the envelope was versioned
# with camelCase names.
_KEY_ALIASES: dict[str, str] = {
    "deviceId": "originDeviceId",
    "lastModified": "timestamp",
    "data": "payload",
}


class Snapshot(PulseBaseModel):
    """A timestamped, device-tagged full export of synchronizable state."""

    _KEY_ALIASES: ClassVar[dict[str, str]] = _KEY_ALIASES

    version: StrictInt = FORMAT_VERSION
    origin_device_id: str
    timestamp: str = ""
    payload: dict[str, Any] = Field(default_factory=dict)

    @field_validator("origin_device_id")
    @classmethod
    def _require_device_id(cls, value: str) -> str:
        device_id = value.strip()
        if not device_id:
            raise ValueError("originDeviceId must be non-empty")
        return device_id

    def to_wire(self) -> dict[str, Any]:
        """Envelope as written to the shared file."""
        return self.model_dump(by_alias=True, exclude={"raw"})

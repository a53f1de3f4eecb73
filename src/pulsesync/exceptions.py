"""Custom exception hierarchy for pulsesync."""

from __future__ import annotations


class PulseSyncError(Exception):
    """Base exception for all pulsesync errors."""


class PulseConfigError(PulseSyncError):
    """Invalid or missing configuration."""


class DeviceIdentityError(PulseSyncError):
    """The device id could not be read or persisted."""


class TransportError(PulseSyncError):
    """Shared-location failure."""

    def __init__(self, message: str, *, location: str = "") -> None:
        self.location = location
        super().__init__(message)


class TransportUnavailableError(TransportError):
    """No shared location is configured.

    Pulses treat this as a silent no-op rather than a failure.
    """


class TransportIOError(TransportError):
    """Reading or publishing the shared snapshot failed."""


class CodecError(PulseSyncError):
    """Snapshot serialization failure."""


class DecodeError(CodecError):
    """Snapshot bytes are empty, malformed, oversized or of an unknown version.

    A pulse that hits this treats the shared file as "nothing to merge".
    """


class EncodeError(CodecError):
    """Local state cannot be represented in the snapshot format."""


class StateStoreError(PulseSyncError):
    """The local key-value store could not be read or written."""

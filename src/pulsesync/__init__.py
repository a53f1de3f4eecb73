"""pulsesync - serverless state exchange between installations of a media app."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pulsesync")
except PackageNotFoundError:
    __version__ = "0+local"
from pulsesync._transport import FolderTransport, Transport
from pulsesync.client import PulseResult, PulseStatus, PulseSync
from pulsesync.codec import decode, encode
from pulsesync.config import SyncConfig
from pulsesync.exceptions import (
    CodecError,
    DecodeError,
    DeviceIdentityError,
    EncodeError,
    PulseConfigError,
    PulseSyncError,
    StateStoreError,
    TransportError,
    TransportIOError,
    TransportUnavailableError,
)
from pulsesync.identity import DeviceIdentityProvider, DeviceIdStore, FileDeviceIdStore, MemoryDeviceIdStore
from pulsesync.models import BookmarkRecord, ReviewRecord, Snapshot, TagRecord, UnlockRecord
from pulsesync.state import DEFAULT_SCHEMA, ClassifiedKey, KeySchema, PolicyKind, merge
from pulsesync.store import JsonFileStateStore, MemoryStateStore, StateStore

__all__ = [
    "__version__",
    "BookmarkRecord",
    "ClassifiedKey",
    "CodecError",
    "DEFAULT_SCHEMA",
    "DecodeError",
    "DeviceIdStore",
    "DeviceIdentityError",
    "DeviceIdentityProvider",
    "EncodeError",
    "FileDeviceIdStore",
    "FolderTransport",
    "JsonFileStateStore",
    "KeySchema",
    "MemoryDeviceIdStore",
    "MemoryStateStore",
    "PolicyKind",
    "PulseConfigError",
    "PulseResult",
    "PulseStatus",
    "PulseSync",
    "PulseSyncError",
    "ReviewRecord",
    "Snapshot",
    "StateStore",
    "StateStoreError",
    "TagRecord",
    "Transport",
    "TransportError",
    "TransportIOError",
    "TransportUnavailableError",
    "UnlockRecord",
    "decode",
    "encode",
    "merge",
]

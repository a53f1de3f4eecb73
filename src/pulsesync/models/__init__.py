"""Data models for snapshots and synced records."""

from pulsesync.models._base import PulseBaseModel, RecordTimestamp, parse_record_timestamp
from pulsesync.models.records import BookmarkRecord, ReviewRecord, TagRecord, UnlockRecord
from pulsesync.models.snapshot import Snapshot

__all__ = [
    "BookmarkRecord",
    "PulseBaseModel",
    "RecordTimestamp",
    "ReviewRecord",
    "Snapshot",
    "TagRecord",
    "UnlockRecord",
    "parse_record_timestamp",
]

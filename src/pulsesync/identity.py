"""Device identity.

Each installation carries one opaque id for its whole lifetime. Its only
use is recognizing snapshots this device published itself.
"""

from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path
from typing import Protocol

from pulsesync.exceptions import DeviceIdentityError

_logger = logging.getLogger(__name__)


class DeviceIdStore(Protocol):
    """Persistence for a single device id string."""

    def get_device_id(self) -> str | None: ...

    def set_device_id(self, value: str) -> None: ...


class MemoryDeviceIdStore:
    """Keeps the id in memory; for tests and ephemeral hosts."""

    def __init__(self, value: str | None = None) -> None:
        self._value = value

    def get_device_id(self) -> str | None:
        return self._value

    def set_device_id(self, value: str) -> None:
        self._value = value


class FileDeviceIdStore:
    """Stores the id as the sole line of a text file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    def get_device_id(self) -> str | None:
        try:
            return self._path.read_text(encoding="utf-8").strip() or None
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise DeviceIdentityError(f"Cannot read device id from {self._path}: {exc}") from exc

    def set_device_id(self, value: str) -> None:
        tmp_path = self._path.with_name(f"{self._path.name}.tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(f"{value}\n", encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise DeviceIdentityError(f"Cannot persist device id to {self._path}: {exc}") from exc


def generate_device_id() -> str:
    """Random UUID4 text (122 bits from the OS CSPRNG)."""
    return str(uuid.uuid4())


class DeviceIdentityProvider:
    """Supplies the persisted device id, creating it on first use."""

    def __init__(self, store: DeviceIdStore) -> None:
        self._store = store
        self._device_id: str | None = None

    def get_or_create_device_id(self) -> str:
        if self._device_id is not None:
            return self._device_id

        stored = self._store.get_device_id()
        if stored is not None and stored.strip():
            self._device_id = stored.strip()
            return self._device_id

        device_id = generate_device_id()
        self._store.set_device_id(device_id)
        _logger.info("Created device id %s", device_id)
        self._device_id = device_id
        return device_id

"""Shared-location transport with staged publication."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Protocol

from pulsesync._constants import SNAPSHOT_FILE_NAME, STAGING_SUFFIX
from pulsesync.exceptions import TransportIOError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the pulse client.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`FolderTransport`) concrete.
    """

    async def read_snapshot(self) -> bytes | None:
        """Bytes of the published snapshot, or ``None`` if nothing is published."""
        ...

    async def write_snapshot(self, data: bytes) -> None:
        """Publish *data* so readers never observe a partial canonical file."""
        ...


class FolderTransport:
    """Transport over a directory shared between devices (e.g. a synced folder).

    Publishing writes ``<snapshot_name>.tmp``, flushes it to disk and then
    atomically replaces ``<snapshot_name>`` with it. Blocking file I/O runs
    in a worker thread.
    """

    def __init__(
        self,
        shared_dir: Path,
        *,
        snapshot_name: str = SNAPSHOT_FILE_NAME,
        staging_name: str | None = None,
    ) -> None:
        self._dir = Path(shared_dir)
        self._canonical = self._dir / snapshot_name
        self._staging = self._dir / (staging_name or f"{snapshot_name}{STAGING_SUFFIX}")

    @property
    def canonical_path(self) -> Path:
        return self._canonical

    @property
    def staging_path(self) -> Path:
        return self._staging

    async def read_snapshot(self) -> bytes | None:
        return await asyncio.to_thread(self._read)

    async def write_snapshot(self, data: bytes) -> None:
        await asyncio.to_thread(self._write, data)

    def _read(self) -> bytes | None:
        try:
            return self._canonical.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise TransportIOError(
                f"Cannot read snapshot {self._canonical}: {exc}",
                location=str(self._canonical),
            ) from exc

    def _write(self, data: bytes) -> None:
        if not self._dir.is_dir():
            raise TransportIOError(
                f"Shared location {self._dir} is not a directory",
                location=str(self._dir),
            )
        try:
            with open(self._staging, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(self._staging, self._canonical)
        except OSError as exc:
            raise TransportIOError(
                f"Cannot publish snapshot to {self._canonical}: {exc}",
                location=str(self._canonical),
            ) from exc
        _logger.debug("Published %d bytes to %s", len(data), self._canonical)

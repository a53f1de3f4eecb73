"""Pulse client: exports local state to, and merges state from, the shared location."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pulsesync import codec
from pulsesync._redact import redact_for_log
from pulsesync._transport import FolderTransport, Transport
from pulsesync.config import SyncConfig
from pulsesync.exceptions import DecodeError, PulseSyncError, TransportUnavailableError
from pulsesync.identity import DeviceIdentityProvider
from pulsesync.state.keys import DEFAULT_SCHEMA, KeySchema
from pulsesync.state.merge import changed_keys, merge
from pulsesync.store import StateStore

_logger = logging.getLogger(__name__)


class PulseStatus(StrEnum):
    EXPORTED = "exported"
    MERGED = "merged"
    UNCHANGED = "unchanged"
    DISABLED = "disabled"
    NO_LOCATION = "no_location"
    NO_SNAPSHOT = "no_snapshot"
    SELF_ECHO = "self_echo"
    DECODE_FAILED = "decode_failed"
    FAILED = "failed"


_FAILURES = frozenset({PulseStatus.DECODE_FAILED, PulseStatus.FAILED})


@dataclass(frozen=True, slots=True)
class PulseResult:
    """Outcome of one pulse.

    ``keys`` lists the exported keys for a pulse-out and the keys written
    back to the local store for a pulse-in.
    """

    status: PulseStatus
    keys: tuple[str, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status not in _FAILURES


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PulseSync:
    """Drives snapshot export (pulse-out) and import (pulse-in).

    Build one instance at startup and pass it to every call site that
    triggers a pulse. All pulses of an instance are serialized by an
    internal lock because each one reads and then writes both the local
    store and the shared file.

    Usage::

        sync = PulseSync(config, store, DeviceIdentityProvider(id_store))
        await sync.pulse_in()
        ...
        await sync.pulse_out()

    Pulses never raise for sync failures: a disabled or unconfigured sync
    is a no-op, and transport, codec or store errors are logged and
    reported through the returned :class:`PulseResult` with local state
    left untouched. Store adapters must signal failures with
    :class:`~pulsesync.exceptions.StateStoreError`; see :class:`StateStore`.
    """

    def __init__(
        self,
        config: SyncConfig,
        store: StateStore,
        identity: DeviceIdentityProvider,
        *,
        transport: Transport | None = None,
        is_sync_enabled: Callable[[], bool] | None = None,
        schema: KeySchema = DEFAULT_SCHEMA,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._store = store
        self._identity = identity
        self._transport = transport
        self._is_sync_enabled = is_sync_enabled
        self._schema = schema
        self._clock = clock
        self._lock = asyncio.Lock()

    @property
    def config(self) -> SyncConfig:
        return self._config

    @property
    def device_id(self) -> str:
        return self._identity.get_or_create_device_id()

    # ------------------------------------------------------------------
    # Public pulses
    # ------------------------------------------------------------------

    async def pulse_out(self) -> PulseResult:
        """Publish a full snapshot of local state to the shared location."""
        async with self._lock:
            return await self._pulse_out()

    async def pulse_in(self) -> PulseResult:
        """Merge the published snapshot of another device into local state."""
        async with self._lock:
            return await self._pulse_in()

    async def pulse(self) -> tuple[PulseResult, PulseResult]:
        """Run pulse-in then pulse-out as one cycle."""
        async with self._lock:
            incoming = await self._pulse_in()
            outgoing = await self._pulse_out()
        return incoming, outgoing

    async def run_periodic(self, stop: asyncio.Event) -> None:
        """Run :meth:`pulse` every ``config.pulse_interval`` seconds until *stop* is set."""
        while not stop.is_set():
            await self.pulse()
            try:
                await asyncio.wait_for(stop.wait(), timeout=self._config.pulse_interval)
            except TimeoutError:
                pass

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _enabled(self) -> bool:
        if self._is_sync_enabled is not None:
            return bool(self._is_sync_enabled())
        return self._config.enabled

    def _resolve_transport(self) -> Transport:
        if self._transport is not None:
            return self._transport
        if self._config.shared_dir is None:
            raise TransportUnavailableError("No shared location configured")
        self._transport = FolderTransport(
            self._config.shared_dir,
            snapshot_name=self._config.snapshot_name,
            staging_name=self._config.staging_name,
        )
        return self._transport

    def _shareable(self, state: Mapping[str, Any]) -> dict[str, Any]:
        local_only = self._config.local_only_keys
        return {key: value for key, value in state.items() if key not in local_only}

    def _precheck(self, direction: str) -> Transport | PulseResult:
        if not self._enabled():
            _logger.debug("%s skipped: sync disabled", direction)
            return PulseResult(PulseStatus.DISABLED)
        try:
            return self._resolve_transport()
        except TransportUnavailableError:
            _logger.debug("%s skipped: no shared location configured", direction)
            return PulseResult(PulseStatus.NO_LOCATION)

    async def _pulse_out(self) -> PulseResult:
        transport = self._precheck("PulseOut")
        if isinstance(transport, PulseResult):
            return transport

        try:
            device_id = self._identity.get_or_create_device_id()
            state = self._shareable(self._store.get_all())
            data = codec.encode(state, device_id, self._clock(), max_bytes=self._config.max_snapshot_bytes)
            await transport.write_snapshot(data)
        except (PulseSyncError, OSError) as exc:
            _logger.warning("PulseOut failed: %s", exc)
            return PulseResult(PulseStatus.FAILED, error=str(exc))

        _logger.info("PulseOut published %d keys (%d bytes)", len(state), len(data))
        return PulseResult(PulseStatus.EXPORTED, keys=tuple(state))

    async def _pulse_in(self) -> PulseResult:
        transport = self._precheck("PulseIn")
        if isinstance(transport, PulseResult):
            return transport

        try:
            data = await transport.read_snapshot()
        except (PulseSyncError, OSError) as exc:
            _logger.warning("PulseIn failed to read snapshot: %s", exc)
            return PulseResult(PulseStatus.FAILED, error=str(exc))
        if data is None:
            _logger.debug("PulseIn: no snapshot published yet")
            return PulseResult(PulseStatus.NO_SNAPSHOT)

        try:
            snapshot = codec.decode(data, max_bytes=self._config.max_snapshot_bytes)
        except DecodeError as exc:
            _logger.warning("PulseIn ignored unreadable snapshot: %s", exc)
            return PulseResult(PulseStatus.DECODE_FAILED, error=str(exc))

        try:
            device_id = self._identity.get_or_create_device_id()
            if snapshot.origin_device_id == device_id:
                _logger.debug("PulseIn: skipping snapshot written by this device")
                return PulseResult(PulseStatus.SELF_ECHO)

            remote = self._shareable(snapshot.payload)
            if not remote:
                _logger.debug("PulseIn: snapshot from %s carries no payload", snapshot.origin_device_id)
                return PulseResult(PulseStatus.NO_SNAPSHOT)
            if _logger.isEnabledFor(logging.DEBUG):
                _logger.debug("PulseIn payload from %s: %s", snapshot.origin_device_id, redact_for_log(remote))

            local = self._store.get_all()
            merged = merge(local, remote, device_id, snapshot.origin_device_id, schema=self._schema)
            changes = {key: merged[key] for key in changed_keys(local, merged)}
            if not changes:
                _logger.debug("PulseIn: local state already up to date")
                return PulseResult(PulseStatus.UNCHANGED)

            self._store.set_all(changes)
        except (PulseSyncError, OSError) as exc:
            _logger.warning("PulseIn failed: %s", exc)
            return PulseResult(PulseStatus.FAILED, error=str(exc))

        _logger.info(
            "PulseIn merged snapshot from %s (%s): %d keys updated",
            snapshot.origin_device_id,
            snapshot.timestamp or "no timestamp",
            len(changes),
        )
        return PulseResult(PulseStatus.MERGED, keys=tuple(changes))

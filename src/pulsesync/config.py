"""Sync configuration for pulsesync."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from pulsesync._constants import (
    DEFAULT_PULSE_INTERVAL_S,
    LOCAL_ONLY_KEYS,
    MAX_SNAPSHOT_BYTES,
    SNAPSHOT_FILE_NAME,
    STAGING_SUFFIX,
)
from pulsesync.exceptions import PulseConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class SyncConfig:
    """Sync configuration.

    Parameters
    ----------
    enabled : bool
        Master switch. When ``False`` every pulse is a silent no-op.
    shared_dir : Path or None
        Directory shared between devices (e.g. a synced folder). ``None``
        means no shared location is configured and pulses do nothing.
    snapshot_name : str
        Canonical file name of the published snapshot inside
        ``shared_dir``. Writes are staged under ``<snapshot_name>.tmp``.
    max_snapshot_bytes : int
        Upper bound on the encoded snapshot size, enforced both when
        publishing and when reading a foreign snapshot.
    pulse_interval : float
        Seconds between cycles when driven by
        :meth:`pulsesync.client.PulseSync.run_periodic`.
    local_only_keys : frozenset of str
        State keys that describe this installation only. They are never
        exported and are ignored when found in a remote payload.
    """

    enabled: bool = True
    shared_dir: Path | None = None
    snapshot_name: str = SNAPSHOT_FILE_NAME
    max_snapshot_bytes: int = MAX_SNAPSHOT_BYTES
    pulse_interval: float = DEFAULT_PULSE_INTERVAL_S
    local_only_keys: frozenset[str] = LOCAL_ONLY_KEYS

    def __post_init__(self) -> None:
        if self.shared_dir is not None and not isinstance(self.shared_dir, Path):
            object.__setattr__(self, "shared_dir", Path(self.shared_dir))
        if not isinstance(self.local_only_keys, frozenset):
            object.__setattr__(self, "local_only_keys", frozenset(self.local_only_keys))

        name = self.snapshot_name.strip()
        if not name or "/" in name or "\\" in name or name in {".", ".."}:
            raise PulseConfigError(f"snapshot_name must be a plain file name, got {self.snapshot_name!r}")
        if self.max_snapshot_bytes <= 0:
            raise PulseConfigError(f"max_snapshot_bytes must be positive, got {self.max_snapshot_bytes}")
        if self.pulse_interval <= 0:
            raise PulseConfigError(f"pulse_interval must be positive, got {self.pulse_interval}")

    @property
    def staging_name(self) -> str:
        """Temporary name a snapshot is written under before publishing."""
        return f"{self.snapshot_name}{STAGING_SUFFIX}"

    @classmethod
    def from_env(cls, **overrides: Any) -> SyncConfig:
        """Create configuration from environment variables.

        Reads ``PULSE_SYNC_ENABLED``, ``PULSE_SYNC_SHARED_DIR``,
        ``PULSE_SYNC_SNAPSHOT_NAME``, ``PULSE_SYNC_MAX_SNAPSHOT_BYTES`` and
        ``PULSE_SYNC_INTERVAL``. Explicit keyword arguments override
        environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        SyncConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        if "enabled" not in overrides:
            config_kwargs["enabled"] = _env_bool(env.get("PULSE_SYNC_ENABLED"), True)

        shared_dir = env.get("PULSE_SYNC_SHARED_DIR")
        if shared_dir and shared_dir.strip():
            config_kwargs["shared_dir"] = Path(shared_dir.strip()).expanduser()

        name = env.get("PULSE_SYNC_SNAPSHOT_NAME")
        if name is not None:
            config_kwargs["snapshot_name"] = name

        max_bytes_env = env.get("PULSE_SYNC_MAX_SNAPSHOT_BYTES")
        if max_bytes_env is not None and "max_snapshot_bytes" not in overrides:
            try:
                config_kwargs["max_snapshot_bytes"] = int(max_bytes_env)
            except ValueError as exc:
                raise PulseConfigError(f"PULSE_SYNC_MAX_SNAPSHOT_BYTES is not an integer: {max_bytes_env!r}") from exc

        interval_env = env.get("PULSE_SYNC_INTERVAL")
        if interval_env is not None and "pulse_interval" not in overrides:
            try:
                config_kwargs["pulse_interval"] = float(interval_env)
            except ValueError as exc:
                raise PulseConfigError(f"PULSE_SYNC_INTERVAL is not a number: {interval_env!r}") from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)

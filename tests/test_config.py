from __future__ import annotations

from pathlib import Path

import pytest

from pulsesync._constants import DEVICE_ID_KEY, SNAPSHOT_FILE_NAME
from pulsesync.config import SyncConfig
from pulsesync.exceptions import PulseConfigError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "PULSE_SYNC_ENABLED",
        "PULSE_SYNC_SHARED_DIR",
        "PULSE_SYNC_SNAPSHOT_NAME",
        "PULSE_SYNC_MAX_SNAPSHOT_BYTES",
        "PULSE_SYNC_INTERVAL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    config = SyncConfig()
    assert config.enabled is True
    assert config.shared_dir is None
    assert config.snapshot_name == SNAPSHOT_FILE_NAME
    assert config.staging_name == f"{SNAPSHOT_FILE_NAME}.tmp"
    assert DEVICE_ID_KEY in config.local_only_keys


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PULSE_SYNC_ENABLED", "off")
    monkeypatch.setenv("PULSE_SYNC_SHARED_DIR", str(tmp_path))
    monkeypatch.setenv("PULSE_SYNC_SNAPSHOT_NAME", "pulse.json")
    monkeypatch.setenv("PULSE_SYNC_MAX_SNAPSHOT_BYTES", "2048")
    monkeypatch.setenv("PULSE_SYNC_INTERVAL", "30")

    config = SyncConfig.from_env()

    assert config.enabled is False
    assert config.shared_dir == tmp_path
    assert config.snapshot_name == "pulse.json"
    assert config.max_snapshot_bytes == 2048
    assert config.pulse_interval == 30.0


def test_overrides_beat_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PULSE_SYNC_ENABLED", "0")
    monkeypatch.setenv("PULSE_SYNC_INTERVAL", "30")

    config = SyncConfig.from_env(enabled=True, pulse_interval=5.0, shared_dir=tmp_path)

    assert config.enabled is True
    assert config.pulse_interval == 5.0
    assert config.shared_dir == tmp_path


def test_unrecognized_bool_keeps_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PULSE_SYNC_ENABLED", "maybe")
    assert SyncConfig.from_env().enabled is True


def test_string_shared_dir_becomes_path() -> None:
    assert SyncConfig(shared_dir="/mnt/shared").shared_dir == Path("/mnt/shared")  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"snapshot_name": ""},
        {"snapshot_name": "sub/pulse.json"},
        {"snapshot_name": ".."},
        {"max_snapshot_bytes": 0},
        {"pulse_interval": -1},
    ],
)
def test_invalid_values_rejected(kwargs: dict) -> None:
    with pytest.raises(PulseConfigError):
        SyncConfig(**kwargs)


def test_non_numeric_env_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PULSE_SYNC_INTERVAL", "often")
    with pytest.raises(PulseConfigError):
        SyncConfig.from_env()

"""Two devices exchanging state through a shared folder."""

from __future__ import annotations

from pathlib import Path

import pytest

from pulsesync import (
    DeviceIdentityProvider,
    JsonFileStateStore,
    MemoryDeviceIdStore,
    PulseStatus,
    PulseSync,
    SyncConfig,
)

pytestmark = [pytest.mark.e2e, pytest.mark.asyncio]


def _device(tmp_path: Path, shared: Path, name: str, state: dict) -> tuple[PulseSync, JsonFileStateStore]:
    store = JsonFileStateStore(tmp_path / f"{name}.json")
    store.set_all(state)
    sync = PulseSync(
        SyncConfig(shared_dir=shared),
        store,
        DeviceIdentityProvider(MemoryDeviceIdStore(f"device-{name}")),
    )
    return sync, store


@pytest.fixture
def shared(tmp_path: Path) -> Path:
    path = tmp_path / "shared"
    path.mkdir()
    return path


async def test_progress_and_completions_flow_between_devices(tmp_path: Path, shared: Path) -> None:
    a, a_store = _device(
        tmp_path,
        shared,
        "a",
        {"completed_books": ["b1"], "progress_cache_b1": 0.5, "last_played_b1": 1000},
    )
    b, _ = _device(
        tmp_path,
        shared,
        "b",
        {"completed_books": ["b2"], "progress_cache_b1": 0.9, "last_played_b1": 2000},
    )

    assert (await b.pulse_out()).status is PulseStatus.EXPORTED
    result = await a.pulse_in()

    assert result.status is PulseStatus.MERGED
    state = a_store.get_all()
    assert state["completed_books"] == ["b1", "b2"]
    assert state["progress_cache_b1"] == 0.9
    assert state["last_played_b1"] == 2000
    assert not (shared / ".widdle_pulse.json.tmp").exists()


async def test_repeated_exchange_is_idempotent(tmp_path: Path, shared: Path) -> None:
    a, a_store = _device(tmp_path, shared, "a", {"completed_books": ["b1"], "theme": "light"})
    b, b_store = _device(tmp_path, shared, "b", {"completed_books": ["b2"]})

    await b.pulse_out()
    await a.pulse_in()
    after_first = a_store.get_all()

    await b.pulse_out()
    assert (await a.pulse_in()).status is PulseStatus.UNCHANGED
    assert a_store.get_all() == after_first

    # A republishes its merged state; B converges without losing anything.
    await a.pulse_out()
    await b.pulse_in()
    assert sorted(b_store.get_all()["completed_books"]) == ["b1", "b2"]
    assert b_store.get_all()["theme"] == "light"


async def test_device_does_not_import_its_own_snapshot(tmp_path: Path, shared: Path) -> None:
    a, a_store = _device(tmp_path, shared, "a", {"theme": "dark"})

    await a.pulse_out()
    a_store.set_all({"theme": "light"})

    assert (await a.pulse_in()).status is PulseStatus.SELF_ECHO
    assert a_store.get_all() == {"theme": "light"}

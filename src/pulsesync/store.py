"""Local state store adapters.

The host application owns its key-value store; pulsesync only needs bulk
read and bulk upsert. :class:`StateStore` is the structural interface, the
two classes below are reference adapters used by tests and the command-line
tool.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from pulsesync.exceptions import StateStoreError

_logger = logging.getLogger(__name__)


class StateStore(Protocol):
    """Bulk access to local synchronizable state.

    Adapters report failures as :class:`~pulsesync.exceptions.StateStoreError`
    (or ``OSError``). Pulses contain only those; any other exception is
    treated as a bug in the adapter and propagates.
    """

    def get_all(self) -> dict[str, Any]:
        ...

    def set_all(self, values: Mapping[str, Any]) -> None:
        """Upsert *values*. Keys absent from *values* are never removed."""
        ...


class MemoryStateStore:
    """In-memory store."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(dict(initial or {}))

    def get_all(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    def set_all(self, values: Mapping[str, Any]) -> None:
        self._data.update(copy.deepcopy(dict(values)))


class JsonFileStateStore:
    """Store backed by one JSON object on disk.

    Writes go to ``<path>.tmp`` first and are moved into place, so a crash
    mid-write leaves the previous state intact.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get_all(self) -> dict[str, Any]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StateStoreError(f"Cannot read state from {self._path}: {exc}") from exc

        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StateStoreError(f"State file {self._path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise StateStoreError(f"State file {self._path} must hold a JSON object")
        return data

    def set_all(self, values: Mapping[str, Any]) -> None:
        data = self.get_all()
        data.update(values)
        tmp_path = self._path.with_name(f"{self._path.name}.tmp")
        try:
            payload = json.dumps(data, indent=2, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise StateStoreError(f"State is not JSON-serializable: {exc}") from exc
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise StateStoreError(f"Cannot write state to {self._path}: {exc}") from exc
        _logger.debug("Wrote %d keys to %s", len(values), self._path)

#!/usr/bin/env python3
"""Inspect snapshots and run pulses from the command line.

Usage
-----
    python scripts/pulse_tool.py inspect /shared/.widdle_pulse.json
    python scripts/pulse_tool.py preview local_state.json remote_state.json
    python scripts/pulse_tool.py out --state state.json --shared-dir /shared
    python scripts/pulse_tool.py in --state state.json --shared-dir /shared

``out`` and ``in`` keep the device id next to the state file
(``<state>.device_id``) unless ``--device-id-file`` is given. Without
``--shared-dir`` the ``PULSE_SYNC_SHARED_DIR`` environment variable is used.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pulsesync import (  # noqa: E402
    DEFAULT_SCHEMA,
    DecodeError,
    DeviceIdentityProvider,
    FileDeviceIdStore,
    JsonFileStateStore,
    PulseSync,
    SyncConfig,
    decode,
    merge,
)
from pulsesync._redact import redact_for_log  # noqa: E402

MAX_VAL_WIDTH = 60
MISSING = "<missing>"
_PREVIEW_SELF = "preview-local"
_PREVIEW_REMOTE = "preview-remote"


def _truncate(val: Any, width: int = MAX_VAL_WIDTH) -> str:
    s = json.dumps(val, ensure_ascii=False) if not isinstance(val, str) else val
    if len(s) <= width:
        return s
    return s[: width - 3] + "..."


def _load_json_object(path: Path) -> dict[str, Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise SystemExit(f"{path} must contain a JSON object")
    return data


def cmd_inspect(args: argparse.Namespace) -> int:
    try:
        snapshot = decode(Path(args.snapshot).read_bytes())
    except DecodeError as exc:
        print(f"Unreadable snapshot: {exc}", file=sys.stderr)
        return 1

    print(f"version:   {snapshot.version}")
    print(f"origin:    {snapshot.origin_device_id}")
    print(f"timestamp: {snapshot.timestamp or MISSING}")
    print(f"keys:      {len(snapshot.payload)}")
    print()
    for key in sorted(snapshot.payload):
        kind = DEFAULT_SCHEMA.classify(key).kind
        value = snapshot.payload[key] if args.show_private else redact_for_log(snapshot.payload[key])
        print(f"  {key:<40} {kind:<20} {_truncate(value)}")
    return 0


def cmd_preview(args: argparse.Namespace) -> int:
    local = _load_json_object(Path(args.local))
    remote = _load_json_object(Path(args.remote))
    merged = merge(local, remote, _PREVIEW_SELF, _PREVIEW_REMOTE)

    changes = [key for key in merged if local.get(key, MISSING) != merged[key]]
    if not changes:
        print("Merge leaves local state unchanged.")
        return 0

    print(f"{len(changes)} key(s) would change:\n")
    for key in changes:
        kind = DEFAULT_SCHEMA.classify(key).kind
        print(f"  {key}  [{kind}]")
        print(f"    local:  {_truncate(local.get(key, MISSING))}")
        print(f"    merged: {_truncate(merged[key])}")
    return 0


def _build_sync(args: argparse.Namespace) -> PulseSync:
    overrides: dict[str, Any] = {}
    if args.shared_dir:
        overrides["shared_dir"] = Path(args.shared_dir)
    config = SyncConfig.from_env(**overrides)

    state_path = Path(args.state)
    id_path = Path(args.device_id_file) if args.device_id_file else state_path.with_name(f"{state_path.name}.device_id")
    return PulseSync(
        config,
        JsonFileStateStore(state_path),
        DeviceIdentityProvider(FileDeviceIdStore(id_path)),
    )


async def _run_pulse(args: argparse.Namespace) -> int:
    sync = _build_sync(args)
    result = await (sync.pulse_out() if args.command == "out" else sync.pulse_in())
    print(f"{result.status}: {len(result.keys)} key(s)" + (f" ({result.error})" if result.error else ""))
    return 0 if result.ok else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="Pulse snapshot tooling.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    inspect_p = sub.add_parser("inspect", help="Decode and summarize a snapshot file")
    inspect_p.add_argument("snapshot", help="Snapshot file")
    inspect_p.add_argument("--show-private", action="store_true", help="Do not redact review text and notes")

    preview_p = sub.add_parser("preview", help="Show what merging REMOTE into LOCAL would change")
    preview_p.add_argument("local", help="Local state JSON file")
    preview_p.add_argument("remote", help="Remote state JSON file")

    for name, help_text in (("out", "Publish local state"), ("in", "Merge the published snapshot")):
        pulse_p = sub.add_parser(name, help=help_text)
        pulse_p.add_argument("--state", required=True, help="Local state JSON file")
        pulse_p.add_argument("--shared-dir", help="Shared directory (default: PULSE_SYNC_SHARED_DIR)")
        pulse_p.add_argument("--device-id-file", help="Device id file (default: <state>.device_id)")

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    if args.command == "inspect":
        sys.exit(cmd_inspect(args))
    if args.command == "preview":
        sys.exit(cmd_preview(args))
    sys.exit(asyncio.run(_run_pulse(args)))


if __name__ == "__main__":
    main()

"""State/merge layer.

This package is the single source of truth for how a remote snapshot
payload is reconciled with local state: key classification
(:mod:`~pulsesync.state.keys`), per-class policies
(:mod:`~pulsesync.state.policy`) and the engine (:mod:`~pulsesync.state.merge`).
"""

from pulsesync.state.keys import DEFAULT_SCHEMA, ClassifiedKey, KeySchema, PolicyKind
from pulsesync.state.merge import changed_keys, merge

__all__ = [
    "DEFAULT_SCHEMA",
    "ClassifiedKey",
    "KeySchema",
    "PolicyKind",
    "changed_keys",
    "merge",
]

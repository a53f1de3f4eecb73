"""Records stored inside structured state entries.

The merge engine validates each element of a structured entry against one
of these models to read its identity and timestamp. The merged entry is
rebuilt from ``raw`` so fields this library does not know about survive
untouched.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from pulsesync.models._base import PulseBaseModel, RecordTimestamp


def _id_to_str(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return value


RecordId = Annotated[str, BeforeValidator(_id_to_str)]


class KeyedRecord(PulseBaseModel):
    """Base for list elements that are identified by a merge key.

    Not used directly: each subclass overrides :attr:`merge_key`.
    """

    @property
    def merge_key(self) -> str:
        raise NotImplementedError(f"{type(self).__name__} does not define a merge key")


class ReviewRecord(PulseBaseModel):
    """A review of one book; all reviews live in one map keyed by book id."""

    book_id: RecordId | None = None
    text: str = ""
    rating: float | None = None
    timestamp: RecordTimestamp = None

    @property
    def sort_timestamp(self) -> float:
        """Epoch seconds used for newest-wins comparison (0 when absent)."""
        return self.timestamp if self.timestamp is not None else 0.0


class BookmarkRecord(KeyedRecord):
    """A bookmark; immutable once created."""

    id: RecordId | None = None
    position: Any = None
    note: str = ""
    timestamp: Any = None

    @property
    def merge_key(self) -> str:
        """Explicit id, else ``"pos:<position>_<timestamp>"``.

        The ``pos:`` prefix keeps derived keys apart from explicit ids.
        """
        if self.id:
            return self.id
        return f"pos:{self.position}_{self.timestamp}"


class UnlockRecord(KeyedRecord):
    """An achievement unlock; the same id on two devices is the same event."""

    id: RecordId = Field(min_length=1)
    unlocked_at: Any = None

    @property
    def merge_key(self) -> str:
        return self.id


class TagRecord(KeyedRecord):
    """A user-defined tag, unique by name."""

    name: str = Field(min_length=1)
    is_favorites: bool = False

    @property
    def merge_key(self) -> str:
        return self.name

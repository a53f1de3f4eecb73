from __future__ import annotations

from pulsesync._redact import redact_for_log


def test_redact_for_log_masks_private_text() -> None:
    payload = {
        "reviews": {"b1": {"bookId": "b1", "text": "My honest thoughts", "rating": 4}},
        "bookmarks_b1": [{"id": "bm-1", "note": "where she leaves", "position": 5000}],
        "completed_books": ["b1"],
    }

    redacted = redact_for_log(payload)
    assert redacted["reviews"]["b1"]["text"] == "<redacted>"
    assert redacted["reviews"]["b1"]["rating"] == 4
    assert redacted["bookmarks_b1"][0]["note"] == "<redacted>"
    assert redacted["bookmarks_b1"][0]["position"] == 5000
    assert redacted["completed_books"] == ["b1"]


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_for_log_caps_collection_size() -> None:
    redacted = redact_for_log(list(range(10)), max_items=3)
    assert redacted == [0, 1, 2, "<7 more>"]

    redacted_map = redact_for_log({f"k{i}": i for i in range(5)}, max_items=2)
    assert list(redacted_map) == ["k0", "k1", "…"]

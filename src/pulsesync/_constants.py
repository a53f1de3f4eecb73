"""Internal constants shared across the library."""

# ------------------------------------------------------------------
# Snapshot file
# ------------------------------------------------------------------

SNAPSHOT_FILE_NAME = ".widdle_pulse.json"
STAGING_SUFFIX = ".tmp"
FORMAT_VERSION = 1
SUPPORTED_FORMAT_VERSIONS: frozenset[int] = frozenset({FORMAT_VERSION})
MAX_SNAPSHOT_BYTES = 32 * 1024 * 1024
DEFAULT_PULSE_INTERVAL_S = 300.0

# ------------------------------------------------------------------
# State keys written by the media application
# ------------------------------------------------------------------

PROGRESS_PREFIX = "progress_cache_"
LAST_POSITION_PREFIX = "last_pos_"
LAST_PLAYED_PREFIX = "last_played_"
BOOKMARKS_PREFIX = "bookmarks_"
READING_SESSION_PREFIX = "reading_session_"

REVIEWS_KEY = "reviews"
COMPLETED_BOOKS_KEY = "completed_books"
UNLOCKED_ACHIEVEMENTS_KEY = "unlocked_achievements"
USER_TAGS_KEY = "user_tags"
AUDIOBOOK_TAGS_KEY = "audiobook_tags"

DEVICE_ID_KEY = "device_id_sync"

# Keys that describe this installation only (paths, bookkeeping, identity).
# They are never exported and are dropped from incoming payloads.
LOCAL_ONLY_KEYS: frozenset[str] = frozenset(
    {
        DEVICE_ID_KEY,
        "audiobook_folders",
        "data_version",
        "cache_sync_timestamp",
        "file_tracking_v2",
        "path_migrations",
        "content_hashes",
        "orphaned_data",
    }
)

# Threshold to distinguish epoch seconds from milliseconds.
MS_THRESHOLD = 1e11

"""Project-wide constants for git history decoding."""

FIELD_SEPARATOR = "¦"
RECORD_SEPARATOR = "\x00"

# Order matters: RecordParser reads fields by position.
LOG_FIELD_PLACEHOLDERS = ("%h", "%H", "%s", "%aN", "%ae", "%cn", "%ce", "%aD", "%b", "%D")
LOG_PRETTY_FORMAT = FIELD_SEPARATOR.join(LOG_FIELD_PLACEHOLDERS) + FIELD_SEPARATOR
FIELD_COUNT = len(LOG_FIELD_PLACEHOLDERS)

TAG_MARKER = "tag:"
HEAD_POINTER_PREFIX = "HEAD -> "
SENTINEL_REF_SUFFIX = "/HEAD"

DEFAULT_GIT_BINARY = "git"
DEFAULT_REMOTE_NAME = "origin"
DEFAULT_TIMEOUT_SECONDS = 30.0

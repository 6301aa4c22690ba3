"""Constants for documentor run coordination."""

# Lock file names
LOCK_FILE_NAME = ".documentor.lock"
STATE_LOCK_PREFIX = "documentor-"
STATE_LOCK_SUFFIX = ".lock"

# Liveness timing (seconds)
HEARTBEAT_INTERVAL_SECONDS = 5.0
STALE_THRESHOLD_SECONDS = 30.0
MIN_STALE_TO_HEARTBEAT_RATIO = 3

# Finalize retries when the last write fails
FINALIZE_RETRIES = 3
FINALIZE_RETRY_DELAY_SECONDS = 0.05

HEARTBEAT_STOP_TIMEOUT_SECONDS = 5.0

INITIAL_PHASE = "initializing"

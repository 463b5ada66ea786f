"""Static settings and environment variable names."""
# Credentials
DRONE_SERVER_VARIABLE = "DRONE_SERVER"
DRONE_TOKEN_VARIABLE = "DRONE_TOKEN"
DRONE_TIMEOUT_VARIABLE = "DRONE_TIMEOUT"

# Default seconds allowed for each call to the Drone API, overridden by
# DRONE_TIMEOUT
DRONE_TIMEOUT = 30.0

# Argon2id defaults used to derive marker names
ARGON2_ITERATIONS = 32
ARGON2_MEMORY_COST = 64 * 1024  # KiB
ARGON2_PARALLELISM = 4
ARGON2_LENGTH = 32

# Marker entries: "<name>___<hex digest>", holding a constant value since
# Drone rejects empty secrets.
MARKER_DELIMITER = "___"
MARKER_PLACEHOLDER = "1"

# Source location meaning stdin
STDIN_SOURCE = "-"

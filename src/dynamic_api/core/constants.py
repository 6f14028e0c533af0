"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# Secret cipher
ENCRYPTION_KEY_LENGTH = 32  # AES-256
IV_LENGTH = 16
TOKEN_SEPARATOR = ":"

# Store naming rules
MAX_DATABASE_NAME_BYTES = 63
FORBIDDEN_DATABASE_NAME_CHARS = frozenset('/\\. "$\x00')
FORBIDDEN_COLLECTION_NAME_CHARS = frozenset("$\x00")
SYSTEM_COLLECTION_PREFIX = "system."
RESERVED_DATABASE_NAMES = frozenset({"admin", "local", "config"})
OPERATOR_PREFIX = "$"

# Caller-supplied regular expressions (no timeout in the re module)
MAX_PATTERN_LENGTH = 256
MAX_PATTERN_SUBJECT_LENGTH = 1024

# Ledger column lengths
MAX_USERNAME_LENGTH = 255
MAX_STATUS_LENGTH = 16

# Provisioning
DEFAULT_SETTINGS_COLLECTION = "settings"
DEFAULT_PROVISION_TIMEOUT_SECONDS = 10.0
INITIAL_SETTINGS_ID = "initial"
MONGO_USER_EXISTS_CODE = 51003

# Connection defaults
DEFAULT_MONGO_URI = "mongodb://localhost:27017/dynamic-api"
DEFAULT_LEDGER_URL = "sqlite+aiosqlite:///./db.sqlite"

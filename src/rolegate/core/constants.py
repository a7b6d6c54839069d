"""Library-wide constants.

This module defines constants used throughout the library
to avoid magic strings and ensure consistency.
"""

# Guards
DEFAULT_GUARD = "web"

# Wildcards
WILDCARD = "*"

# String field lengths
MAX_NAME_LENGTH = 255
MAX_TITLE_LENGTH = 255
MAX_GUARD_LENGTH = 100
MAX_MORPH_TYPE_LENGTH = 255
MAX_MORPH_KEY_LENGTH = 64
MAX_SCOPE_LENGTH = 64

# Cache
DEFAULT_CACHE_PREFIX = "rolegate:"
DEFAULT_CACHE_TAG = "rolegate"
ALLOWED_KEY_SUFFIX = "a"
FORBIDDEN_KEY_SUFFIX = "f"

# Role check modes
ROLE_CHECK_ANY = "or"
ROLE_CHECK_ALL = "and"
ROLE_CHECK_NONE = "not"
ROLE_CHECK_MODES = (ROLE_CHECK_ANY, ROLE_CHECK_ALL, ROLE_CHECK_NONE)

# Ownership defaults
DEFAULT_OWNER_TYPE_ATTRIBUTE = "actor_type"
DEFAULT_OWNER_KEY_ATTRIBUTE = "actor_id"

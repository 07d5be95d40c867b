"""Shared constants for PageGate.

Protocol strings, path patterns and numeric limits used across modules are
defined here. No magic values in other modules; import from here.
"""

# ─── Gate Protocol Messages ───────────────────────────────────────────────────
# The access decision is a strict boolean; these strings are the only way the
# cause of a denial is visible to the visitor.

MSG_MISSING_FIELDS: str = "Missing required fields"
MSG_ACCESS_GRANTED: str = "Access granted"
MSG_INVALID_PASSWORD: str = "Invalid password"
MSG_SERVER_ERROR: str = "Server error"

# Shown by the client agent when the validate call itself fails in transport.
MSG_VALIDATION_TRANSPORT_ERROR: str = "Error validating password"

# ─── Resource Paths ───────────────────────────────────────────────────────────

# Storefront pages live under this prefix; nothing else is ever gated.
PROTECTED_PATH_PREFIX: str = "/pages/"

# Redirect target handed back on a successful validate.
REDIRECT_TEMPLATE: str = "/pages/{handle}"

# HTTP path of the check/validate endpoint pair.
GATE_CHECK_PATH: str = "/gate/check"

# HTTP path serving the self-contained browser agent.
AGENT_SCRIPT_PATH: str = "/gate-agent.js"

# Installed script tags are recognised by this substring of their src URL.
AGENT_SCRIPT_MARKER: str = "gate-agent.js"

# ─── Bypass Store ─────────────────────────────────────────────────────────────

# Session storage key prefix; full key is f"{BYPASS_KEY_PREFIX}{handle}".
BYPASS_KEY_PREFIX: str = "protected_"
BYPASS_VALUE: str = "true"

# ─── Secret Hashing ───────────────────────────────────────────────────────────

# bcrypt cost factor for stored page secrets and admin keys.
DEFAULT_BCRYPT_ROUNDS: int = 12

# bcrypt only considers the first 72 bytes; longer secrets are refused.
BCRYPT_MAX_SECRET_BYTES: int = 72

# ─── Content Platform ─────────────────────────────────────────────────────────

DEFAULT_PLATFORM_API_VERSION: str = "2024-10"

# Page enumeration and script-tag lookup page sizes.
PLATFORM_PAGES_LIMIT: int = 50
PLATFORM_SCRIPT_TAGS_LIMIT: int = 10

# Timeout (seconds) for calls to the content platform admin API.
PLATFORM_TIMEOUT_S: float = 10.0

# Shared outbound client pool (platform admin API).
HTTP_POOL_MAX_CONNECTIONS: int = 20
HTTP_POOL_KEEPALIVE_EXPIRY: float = 30.0

"""screenassert constants."""

# Timeout forwarded to wait-style matchers (toBeVisible, toHaveText, ...).
DEFAULT_VISIBLE_TIMEOUT_MS = 10_000

# Element count assumed for an indexed method whose size cannot be discovered.
FALLBACK_METHOD_COUNT = 10

# Max field names listed in a FieldNotFoundError message.
MAX_LISTED_FIELDS = 15

# Max variable names listed when a template variable cannot be resolved.
MAX_LISTED_VARIABLES = 10

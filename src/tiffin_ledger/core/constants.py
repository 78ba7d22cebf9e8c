"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TOKEN_TTL_HOURS = 1
DEFAULT_JWT_ALGORITHM = "HS256"
DEFAULT_PAYMENT_DESCRIPTION = "Payment received"
TOKEN_TYPE = "tiffin_session"

# Credits moved by a single presence flip.
CREDITS_PER_MEAL = 1

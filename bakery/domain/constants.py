"""Business constants of the production calendar."""

DEFAULT_DAILY_CAPACITY = 2
DEFAULT_WEEKLY_CAPACITY = 10
DEFAULT_MIN_DAYS_AHEAD = 10
MAX_PUSH_DAYS = 3

# Monday=0 ... Sunday=6 (datetime.weekday())
PRODUCTION_WEEKDAYS = frozenset({2, 3, 4, 5})  # Wednesday-Saturday
PRODUCTION_WEEK_START = 2  # weeks run Wednesday-Tuesday

NEW_ORDER_CHANNEL = "orders"
NEW_ORDER_EVENT = "new-order"

# Gateway metadata values hard limit
GATEWAY_METADATA_VALUE_LIMIT = 500

# Amount matching tolerances, in minor units
EMAIL_AMOUNT_TOLERANCE_CENTS = 100
AMOUNT_ONLY_TOLERANCE_CENTS = 5

# Availability reasons
REASON_PAST_DATE = "past_date"
REASON_TOO_SOON = "too_soon"
REASON_CLOSED_DAY = "closed_day"
REASON_BLOCKED = "blocked"
REASON_DAY_FULL = "day_full"
REASON_WEEK_FULL = "week_full"

# Checkout session metadata keys
METADATA_REQUEST_ID = "request_id"
METADATA_CART_ITEMS = "cart_items"

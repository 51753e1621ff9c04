FALLBACK_ALERT_DAYS = 3
MAX_ALERT_DAYS = 3650

EXPIRY_STATUSES = ("EXPIRED", "URGENT", "WARNING", "OK")
EVENT_TYPES = ("ENTRY", "WASTE", "USE", "ADJUST")
BATCH_STATUSES = ("ACTIVE", "USED", "DISCARDED", "EXPIRED")
CATEGORY_KINDS = ("raw", "prepared")

DEFAULT_CATEGORIES = (
    ("Fresh", "raw"),
    ("Frozen", "raw"),
    ("Dry", "raw"),
    ("Savouries", "prepared"),
    ("Soups", "prepared"),
)
DEFAULT_LOCATIONS = ("Fridge 1", "Pantry", "Freezer")

UNCATEGORISED_LABEL = "Uncategorised"

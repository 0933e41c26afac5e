"""Application configuration constants."""

import os
from pathlib import Path

# Storage
APP_HOME = Path.home() / ".household-ledger"
DB_PATH_ENV_VAR = "HOUSEHOLD_LEDGER_DB_PATH"
USER_ENV_VAR = "HOUSEHOLD_LEDGER_USER"

# Store locking: every transaction takes the SQLite write lock at BEGIN and
# waits up to this long for a concurrent writer to finish
DB_BUSY_TIMEOUT = 15  # seconds

# Retry policy for store lock contention
DB_RETRY_ATTEMPTS = 3
DB_RETRY_MAX_DELAY = 10  # seconds

# Logging
LOG_FILE_ENV_VAR = "LOG_FILE"
DEFAULT_LOG_FILE = APP_HOME / "household-ledger.log"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

# Money arithmetic
# Significant digits carried through intermediate arithmetic (must be >= 20)
MONEY_PRECISION = 28
DEFAULT_BASE_CURRENCY = os.getenv("HOUSEHOLD_LEDGER_BASE_CURRENCY", "JPY")
DEFAULT_LOCALE = "ja-JP"

# Fraction digits used when formatting amounts for display.
# Currencies missing from this table are rendered as "<amount> <CODE>".
CURRENCY_FRACTION_DIGITS = {
    "JPY": 0,
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
    "AUD": 2,
    "CAD": 2,
    "CHF": 2,
    "CNY": 2,
    "KRW": 0,
    "THB": 2,
}

CURRENCY_SYMBOLS = {
    "JPY": "¥",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "AUD": "A$",
    "CAD": "C$",
    "CHF": "CHF ",
    "CNY": "CN¥",
    "KRW": "₩",
    "THB": "฿",
}

CURRENCY_NAMES = {
    "JPY": "Japanese Yen",
    "USD": "US Dollar",
    "EUR": "Euro",
    "GBP": "British Pound",
    "AUD": "Australian Dollar",
    "CAD": "Canadian Dollar",
    "CHF": "Swiss Franc",
    "CNY": "Chinese Yuan",
    "KRW": "South Korean Won",
    "THB": "Thai Baht",
}

# Locale display conventions: (group separator, decimal separator, symbol after amount)
LOCALE_CONVENTIONS = {
    "ja-JP": (",", ".", False),
    "en-US": (",", ".", False),
    "en-GB": (",", ".", False),
    "de-DE": (".", ",", True),
    "fr-FR": (" ", ",", True),
}

# Reminders
REMINDER_LOOKAHEAD_DAYS = 30  # Only remind about payments due within this window
DEFAULT_REMINDER_DAYS = 3
URGENT_DAYS_THRESHOLD = 1
SOON_DAYS_THRESHOLD = 3

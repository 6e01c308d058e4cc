"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_LEAVE_RATIO = 4
MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 50

# Percentage thresholds used to colour attendance figures.
CARD_DANGER_BELOW = 75
CARD_WARNING_BELOW = 90
MONTH_GOOD_FROM = 75
MONTH_WARNING_FROM = 50

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
WEEKDAY_HEADERS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

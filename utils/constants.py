"""
Application-wide constants.
Centralizes field limits and calendar values.
"""

# Validation limits
MAX_NAME_LENGTH = 255
MAX_EMAIL_LENGTH = 255
MAX_PHONE_LENGTH = 20
MAX_EVENT_TYPE_LENGTH = 100
MAX_VENUE_NAME_LENGTH = 255
MAX_VENUE_ADDRESS_LENGTH = 500
MAX_SPECIAL_REQUESTS_LENGTH = 2000
MAX_SERVICE_ID_LENGTH = 100
MAX_SUBJECT_LENGTH = 255
MAX_MESSAGE_LENGTH = 5000
MAX_GUEST_COUNT = 10000

# Calendar
BOOKED_EVENT_REASON = "Booked Event"
MAINTENANCE_REASON = "Maintenance"
MAX_BLOCK_RANGE_DAYS = 366

# Listing and reporting
DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 200
RECENT_BOOKINGS_LIMIT = 10
UPCOMING_EVENTS_DAYS = 30
UPCOMING_EVENTS_LIMIT = 10
TREND_MONTHS = 6

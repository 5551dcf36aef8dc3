"""
Application-wide constants for Fleet Reservations
"""

# Booking Configuration
MAX_BOOKING_ATTEMPTS = 3  # Fresh selections tried after a lost race before giving up

# Validation Messages (shown verbatim to API callers)
START_BEFORE_END_MESSAGE = "Start time must be before end time"
OVERLAP_MESSAGE = "Time range overlaps an existing reservation"
DISALLOWED_KEY_MESSAGE = "Disallowed key: {key}"
NON_STRING_VALUE_MESSAGE = "Value for {key} must be a string"
ATTRIBUTES_OBJECT_MESSAGE = "Attributes must be an object"
NAME_BLANK_MESSAGE = "Name can't be blank"
NAME_TAKEN_MESSAGE = "Name has already been taken"
ALLOWED_KEYS_MESSAGE = "Allowed keys must be a list of strings"
UNKNOWN_FIELD_MESSAGE = "Unknown field: {field}"
SERVICE_BLANK_MESSAGE = "Service can't be blank"
ITEM_TYPE_BLANK_MESSAGE = "Item type can't be blank"
WRITE_INCLUSION_MESSAGE = "Write is not included in the list"
ITEM_TYPE_TAKEN_MESSAGE = "Item type has already been taken"

# Input Validation
MAX_NAME_LENGTH = 100
MAX_KEY_LENGTH = 64

# Editable item type fields (PUT /v1/item_types/<id>)
ITEM_TYPE_FIELDS = ('name', 'allowed_keys')

# API Authentication (service credentials)
SERVICE_NAME_HEADER = 'X-Service-Name'
API_KEY_HEADER = 'X-Api-Key'
API_KEY_BYTES = 32

# Standard item types seeded by seed_db.py
DEFAULT_ITEM_TYPES = [
    ('car', ['mileage', 'license_plate', 'fuel_level']),
    ('van', ['mileage', 'license_plate', 'fuel_level', 'seats']),
    ('truck', ['mileage', 'license_plate', 'payload_kg']),
]

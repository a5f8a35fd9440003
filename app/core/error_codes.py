"""
Machine-readable error codes returned next to the error message
"""

EMAIL_IN_USE = "EMAIL_IN_USE"
USERNAME_IN_USE = "USERNAME_IN_USE"
UNKNOWN_USER = "UNKNOWN_USER"
INVALID_PASSWORD = "INVALID_PASSWORD"
SELF_FOLLOW_FORBIDDEN = "SELF_FOLLOW_FORBIDDEN"
MISSING_CREDENTIALS = "MISSING_CREDENTIALS"
INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
MISSING_KEYS = "MISSING_KEYS"
INVALID_FIELD = "INVALID_FIELD"
TOKEN_GENERATION_FAILED = "TOKEN_GENERATION_FAILED"
DATABASE_ERROR = "DATABASE_ERROR"

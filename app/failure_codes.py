"""Shared failure code constants for per-profile extraction outcomes."""

NAVIGATION_FAILED = "navigation_failed"
CONTENT_NOT_ACCESSIBLE = "content_not_accessible"
EXTRACTION_ERROR = "extraction_error"
NO_MEANINGFUL_DATA = "no_meaningful_data"

CRITICAL_FAILURES = [
    NAVIGATION_FAILED,
    CONTENT_NOT_ACCESSIBLE,
    EXTRACTION_ERROR,
]

PARTIAL_FAILURES = [
    NO_MEANINGFUL_DATA,
]

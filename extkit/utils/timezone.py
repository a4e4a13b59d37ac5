"""
Timezone Utilities.

All timestamps recorded by the engine (installation times, event
timestamps) are timezone-aware UTC.
"""

from datetime import datetime, timezone

# UTC constant
UTC = timezone.utc


def utc_now() -> datetime:
    """
    Get current time in UTC (timezone-aware).

    Always use this instead of datetime.utcnow() which returns
    naive datetime.
    """
    return datetime.now(UTC)

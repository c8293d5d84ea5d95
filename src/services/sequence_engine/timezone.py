"""
Timezone handling for sequence scheduling.

Due dates are calendar dates in the sequence owner's timezone, so the UTC
anchor timestamp of an assignment is converted before any day offsets are
added.
"""

import logging
from datetime import datetime, date
import pytz

logger = logging.getLogger(__name__)


def is_valid_timezone(name: str) -> bool:
    """Check whether a name is a known IANA timezone."""
    try:
        pytz.timezone(name)
        return True
    except (pytz.exceptions.UnknownTimeZoneError, AttributeError):
        return False


def get_sequence_timezone(sequence):
    """Get the timezone for a sequence, falling back to UTC."""
    try:
        return pytz.timezone(sequence.timezone or 'UTC')
    except pytz.exceptions.UnknownTimeZoneError:
        logger.warning(f"Unknown timezone '{sequence.timezone}' for sequence {sequence.id}, using UTC")
        return pytz.UTC


def to_local_date(timestamp: datetime, tz) -> date:
    """Calendar date of a (naive UTC or aware) timestamp in the given timezone."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=pytz.UTC)
    return timestamp.astimezone(tz).date()


def anchor_date_for(assignment, sequence) -> date:
    """The assignment's anchor date, as seen in the sequence's timezone."""
    created_at = assignment.created_at or datetime.utcnow()
    return to_local_date(created_at, get_sequence_timezone(sequence))

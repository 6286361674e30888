"""Session pricing against an hour-banded tariff schedule.

Every hour begun is billed in full at the rate of that hour:

1. Walk from the session start in fixed one-hour steps while the step
   starts before the session end.
2. Classify each step's civil day (weekday/weekend) and hour of day.
3. Look up the hourly rate for that (day class, hour) and add it.

A session that starts on Sunday 21:00 and ends on Monday 10:00 therefore
bills three weekend hours followed by ten weekday hours.
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from .models import BilledHour, Session, TariffSchedule
from .tariffs import day_class_for, get_rate_for_time, get_zone

logger = logging.getLogger(__name__)

BILLING_STEP = timedelta(hours=1)


def _to_local(dt: datetime, tz: ZoneInfo | None) -> datetime:
    """Convert an aware datetime to the facility's civil time."""
    if tz is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(tz)


def price_breakdown(session: Session, schedule: TariffSchedule) -> list[BilledHour]:
    """Split a session into billed hours with their rates.

    Returns an empty list for degenerate sessions (start >= end).
    """
    if session.is_degenerate:
        logger.debug(
            "Degenerate session for %s at %s (%s >= %s) priced at zero",
            session.customer_id,
            session.facility_id,
            session.start_time,
            session.end_time,
        )
        return []

    tz = get_zone(schedule)

    current = session.start_time
    end = session.end_time
    if tz is not None and current.tzinfo is not None:
        # Step in absolute time so DST changes still advance one real hour
        current = current.astimezone(timezone.utc)

    hours = []
    while current < end:
        local = _to_local(current, tz)
        hours.append(
            BilledHour(
                start=local,
                day_class=day_class_for(local),
                hour=local.hour,
                rate=get_rate_for_time(local, schedule),
            )
        )
        current += BILLING_STEP
    return hours


def price_session(session: Session, schedule: TariffSchedule) -> Decimal:
    """Get the billed amount of a session: the exact sum of its hourly rates."""
    return sum((h.rate for h in price_breakdown(session, schedule)), Decimal("0"))

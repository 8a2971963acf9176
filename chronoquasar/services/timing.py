"""Wall-clock alignment for the recurring analytics jobs."""

from datetime import datetime


def seconds_until_boundary(now: datetime, minutes: int) -> float:
    """Seconds from *now* to the next wall-clock multiple of *minutes* past midnight.

    On a boundary the full period is returned, so a job never fires twice
    for the same slot.
    """
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    elapsed = (now - midnight).total_seconds()
    period = minutes * 60
    return period - (elapsed % period)


def current_hour_bucket(now: datetime) -> str:
    """``YYYY-MM-DDTHH:00`` label for the hour containing *now*."""
    return now.strftime("%Y-%m-%dT%H:00")

# demand_forecasting/utils/date_utils.py
from datetime import date, datetime, timedelta, timezone
from typing import List


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_calendar_date(value: str) -> date:
    """Parse a YYYY-MM-DD calendar day.

    Args:
        value: Date text

    Returns:
        Parsed date

    Raises:
        ValueError if the text is not a valid calendar day
    """
    return datetime.strptime(value.strip(), '%Y-%m-%d').date()


def following_days(last_day: date, count: int) -> List[date]:
    """Get the `count` consecutive days that follow `last_day`."""
    return [last_day + timedelta(days=offset) for offset in range(1, count + 1)]

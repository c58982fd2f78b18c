"""Calendar helpers for reporting windows."""

import calendar
from datetime import datetime


def shift_months(value: datetime, months: int) -> datetime:
    """Move a datetime by whole calendar months, clamping the day to the month end."""
    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)

"""Calendar arithmetic for membership periods and monthly usage windows"""

import calendar
from datetime import datetime


def add_months(moment: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamping the day to the target month's length."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def same_calendar_month(a: datetime, b: datetime) -> bool:
    return a.year == b.year and a.month == b.month

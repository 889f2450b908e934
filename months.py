import calendar
from datetime import date, datetime, timezone
from typing import List, Optional

from models import Month


def month_bounds(year: int, month: int) -> tuple:
    """First and last second of a calendar month as UTC epoch timestamps"""
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        following = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        following = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return int(start.timestamp()), int(following.timestamp()) - 1


def build_month_sequence(first: date, last: date) -> List[Month]:
    """Every calendar month from `first` to `last` inclusive, oldest first"""
    months = []
    year, month = first.year, first.month
    while (year, month) <= (last.year, last.month):
        start, end = month_bounds(year, month)
        months.append(
            Month(label=f"{calendar.month_name[month]} {year}", start=start, end=end)
        )
        if month == 12:
            year, month = year + 1, 1
        else:
            month += 1
    return months


def month_index(months: List[Month], year: int, month: int) -> Optional[int]:
    """Position of a calendar month in the sequence, None if absent"""
    start, _ = month_bounds(year, month)
    for index, candidate in enumerate(months):
        if candidate.start == start:
            return index
    return None

from typing import Optional, Sequence

from models import Month


MONTH_CAP = 12


def next_month(
    months: Sequence[Month], fetched_count: int, start: int = 0
) -> Optional[Month]:
    """Month right after the last fetched one, counting from the first month `start`"""
    index = start + fetched_count
    if index < 0 or index >= len(months):
        return None
    return months[index]


def should_continue(fetched_count: int, cap: int = MONTH_CAP) -> bool:
    return fetched_count < cap


def first_month(
    months: Sequence[Month], start: int = 0, cap: int = MONTH_CAP
) -> Optional[Month]:
    """Month the chain begins with, or None if nothing may be fetched"""
    if not should_continue(0, cap):
        return None
    return next_month(months, 0, start)


def following_month(
    months: Sequence[Month], fetched_count: int, start: int = 0, cap: int = MONTH_CAP
) -> Optional[Month]:
    """Month to request after a successful chart result, None once the chain stops"""
    if not should_continue(fetched_count, cap):
        return None
    return next_month(months, fetched_count, start)

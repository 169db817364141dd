"""
入住区间工具

入住区间统一表示为 [check_in, check_out)：入住日计晚，离店日不计晚。
"""
from datetime import date, timedelta
from typing import Iterator

from booking_engine.errors import InvalidDateRange


def count_nights(check_in: date, check_out: date) -> int:
    return (check_out - check_in).days


def require_nights(check_in: date, check_out: date) -> int:
    """返回晚数，晚数 <= 0 时抛 InvalidDateRange"""
    nights = count_nights(check_in, check_out)
    if nights <= 0:
        raise InvalidDateRange(
            "离店日期必须晚于入住日期",
            {"check_in": check_in.isoformat(), "check_out": check_out.isoformat()},
        )
    return nights


def iter_nights(check_in: date, check_out: date) -> Iterator[date]:
    """逐晚迭代 [check_in, check_out)"""
    current = check_in
    while current < check_out:
        yield current
        current += timedelta(days=1)

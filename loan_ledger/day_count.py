"""Day and period counting for the loan ledger.

Two different notions of "a month" are in use and both are kept:

* ``calendar_months_between`` counts calendar months and rounds any partial
  month up. Simple interest on ``MONTHLY`` loans is charged per these months.
* ``periods_from_days`` with ``InterestEvery.MONTHLY`` divides a day count by
  30 and rounds up. Compound interest counts its periods this way.

Existing interest figures depend on which of the two a loan goes through, so
they must not be merged into one helper.
"""

from __future__ import annotations

import calendar
import math
from datetime import date, datetime, timedelta

from .data_models import InterestCalc, InterestEvery

ONE_DAY = timedelta(days=1)


def _align(start: date, end: date):
    # Subtracting a plain date from a datetime is a TypeError; read the plain
    # date as midnight of that day.
    if isinstance(start, datetime) and not isinstance(end, datetime):
        end = datetime.combine(end, datetime.min.time(), tzinfo=start.tzinfo)
    elif isinstance(end, datetime) and not isinstance(start, datetime):
        start = datetime.combine(start, datetime.min.time(), tzinfo=end.tzinfo)
    return start, end


def whole_days(start: date, end: date) -> int:
    """Return the number of days from ``start`` to ``end``, rounded up.

    Time-of-day components are not normalized, so two timestamps 25 hours
    apart count as two days. ``end`` is expected not to precede ``start``.
    """
    start, end = _align(start, end)
    return math.ceil((end - start) / ONE_DAY)


def calendar_months_between(start: date, end: date) -> int:
    """Return the calendar months from ``start`` to ``end``.

    Any day past the start's day of month counts as a further month, so
    2024-01-10 to 2024-02-11 is two months while 2024-01-01 to 2024-04-01 is
    exactly three.
    """
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day > start.day:
        months += 1
    return months


def periods_from_days(days: int, cadence: InterestEvery) -> int:
    """Convert a day count into whole compounding periods (rounded up)."""
    cadence = InterestEvery.parse(cadence)
    if cadence is InterestEvery.DAILY:
        return days
    if cadence is InterestEvery.WEEKLY:
        return math.ceil(days / 7)
    return math.ceil(days / 30)


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29). Datetimes keep their time
    of day.
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def add_period(dt: date, cadence: InterestCalc, count: int) -> date:
    """Return the date ``count`` installment periods after ``dt``.

    Half-monthly periods are a fixed 15 days rather than calendar halves.
    """
    cadence = InterestCalc.parse(cadence)
    if cadence is InterestCalc.HALF_MONTHLY:
        return dt + timedelta(days=15 * count)
    if cadence is InterestCalc.WEEKLY:
        return dt + timedelta(days=7 * count)
    if cadence is InterestCalc.DAILY:
        return dt + timedelta(days=count)
    return add_months(dt, count)

"""Accrued interest for ledger loans.

Three formulas are supported and exactly one applies to a loan:

* compound interest, when the loan compounds. Both the number of periods and
  the compounding frequency come from ``interest_every``:

      interest = P * ((1 + r / (100 * n)) ** (n * periods) - 1)

* calendar-monthly simple interest for ``MONTHLY`` loans:

      interest = P * r * months / 100

* daily simple interest for every other loan, whatever its nominal cadence:

      interest = P * r * days / (100 * 365)

``FIXED_AMOUNT`` loans accrue nothing.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, getcontext

from .data_models import InterestCalc, InterestEvery, InterestResult, LoanTerms, LoanType
from .day_count import calendar_months_between, periods_from_days, whole_days

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)
DAYS_PER_YEAR = 365

_PERIODS_PER_YEAR = {
    InterestEvery.DAILY: 365,
    InterestEvery.WEEKLY: 52,
    InterestEvery.MONTHLY: 12,
}


def compounding_periods_per_year(every: InterestEvery) -> int:
    """Return how often per year interest compounds (12 if unknown)."""
    return _PERIODS_PER_YEAR.get(InterestEvery.parse(every), 12)


def _compound_interest(principal: Decimal, rate: Decimal, days: int, every: InterestEvery) -> Decimal:
    periods = periods_from_days(days, every)
    n = compounding_periods_per_year(every)
    factor = (1 + rate / (HUNDRED * n)) ** (n * periods)
    return principal * (factor - 1)


def _monthly_interest(principal: Decimal, rate: Decimal, start: date, end: date) -> Decimal:
    months = calendar_months_between(start, end)
    return principal * rate * months / HUNDRED


def _daily_interest(principal: Decimal, rate: Decimal, days: int) -> Decimal:
    return principal * rate * days / (HUNDRED * DAYS_PER_YEAR)


def accrued_interest(terms: LoanTerms, as_of: date) -> InterestResult:
    """Return the interest a loan has accrued.

    Parameters
    ----------
    terms: LoanTerms
        The loan. Its ``end_date``, when set, closes the accrual window.
    as_of: date
        End of the accrual window for loans without an end date. Passing it
        explicitly keeps the result independent of the clock.
    """
    if LoanType.parse(terms.loan_type) is LoanType.FIXED_AMOUNT:
        return InterestResult(interest_amount=Decimal("0"))

    end = terms.end_date if terms.end_date is not None else as_of
    principal = Decimal(terms.principal)
    rate = Decimal(terms.annual_rate_percent)
    days = whole_days(terms.start_date, end)

    if terms.has_compounding:
        every = InterestEvery.parse(terms.interest_every)
        logger.debug("compound interest over %d days, every %s", days, every.value)
        amount = _compound_interest(principal, rate, days, every)
    elif InterestCalc.parse(terms.interest_calc) is InterestCalc.MONTHLY:
        logger.debug("calendar-monthly interest from %s to %s", terms.start_date, end)
        amount = _monthly_interest(principal, rate, terms.start_date, end)
    else:
        logger.debug("daily interest over %d days", days)
        amount = _daily_interest(principal, rate, days)

    return InterestResult(interest_amount=amount)

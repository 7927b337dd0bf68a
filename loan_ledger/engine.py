"""Loan figures as the ledger presents them.

Loan listings, the loan detail view, dashboards and reports all need the same
numbers for a loan. They obtain them here instead of recomputing interest or
EMIs themselves, so every screen agrees:

* ``loan_summary`` builds the balance, age and EMI breakdown of one loan.
* ``is_due`` applies the dashboard's due-today and overdue filters.
* ``portfolio_totals`` adds up the summaries of many loans for dashboards and
  account summaries.

Like the calculation modules underneath, nothing here reads the clock or any
storage; the as-of date and the transactions are always passed in.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional

from .balance import compute_balance
from .data_models import LoanSummary, LoanTerms, PortfolioTotals, TimeDuration, TransactionRecord
from .day_count import whole_days
from .schedule import schedule_for_terms

DUE_TODAY = "due-today"
OVERDUE = "overdue"


def time_duration(start: date, end: date) -> TimeDuration:
    """Split the days between two dates into years, months and days.

    Years are 365 days and months 30 days. The leftover ``days`` are taken
    modulo 30 of the full day count, matching what the ledger has always shown.
    """
    return _split_days(whole_days(start, end))


def _split_days(days: int) -> TimeDuration:
    return TimeDuration(
        years=days // 365,
        months=(days % 365) // 30,
        days=days % 30,
    )


def loan_summary(
    terms: LoanTerms,
    transactions: Iterable[TransactionRecord],
    as_of: date,
) -> LoanSummary:
    """Compute the balance, age and EMI breakdown of one loan.

    The EMI breakdown spreads principal, accrued interest and processing fee.
    Top-ups count towards the payable total but are not part of the
    installments.
    """
    balance = compute_balance(terms, transactions, as_of)
    end = terms.end_date if terms.end_date is not None else as_of
    days = whole_days(terms.start_date, end)
    return LoanSummary(
        terms=terms,
        balance=balance,
        duration=_split_days(days),
        schedule=schedule_for_terms(terms, balance.interest),
        days=days,
    )


def is_due(terms: LoanTerms, today: date, due_filter: Optional[str]) -> bool:
    """Return whether a loan passes a dashboard due filter.

    ``due-today`` keeps loans whose end date is ``today`` and ``overdue``
    keeps loans whose end date has passed. Open loans have no due date and
    never pass either filter. Without a recognised filter every loan passes.
    """
    if due_filter not in (DUE_TODAY, OVERDUE):
        return True
    if terms.end_date is None:
        return False
    end = terms.end_date.date() if isinstance(terms.end_date, datetime) else terms.end_date
    if due_filter == DUE_TODAY:
        return end == today
    return end < today


def portfolio_totals(summaries: Iterable[LoanSummary]) -> PortfolioTotals:
    """Aggregate loan summaries into dashboard and report totals."""
    count = 0
    principal = interest = fee = payable = recovered = outstanding = Decimal("0")
    for s in summaries:
        count += 1
        principal += Decimal(s.terms.principal)
        interest += s.balance.interest
        fee += s.balance.process_fee
        payable += s.balance.total_payable
        recovered += s.balance.recovered_total
        outstanding += s.balance.outstanding
    return PortfolioTotals(
        loan_count=count,
        total_principal=principal,
        total_interest=interest,
        total_process_fee=fee,
        total_payable=payable,
        total_recovered=recovered,
        total_outstanding=outstanding,
    )

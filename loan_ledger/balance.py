"""Payable and outstanding amounts of a loan."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable

from .data_models import LoanBalance, LoanTerms, TransactionRecord, TransactionType
from .interest import accrued_interest


def _sum_of(transactions: Iterable[TransactionRecord], kind: TransactionType) -> Decimal:
    return sum(
        (Decimal(t.amount) for t in transactions if TransactionType.parse(t.type) is kind),
        Decimal("0"),
    )


def compute_balance(
    terms: LoanTerms,
    transactions: Iterable[TransactionRecord],
    as_of: date,
) -> LoanBalance:
    """Return what a loan owes as of ``as_of``.

    Payments reduce the outstanding amount, top-ups add to the payable total.
    Callers that only load payments simply get a zero top-up total. The
    outstanding amount may be negative when the loan is overpaid.
    """
    transactions = list(transactions)
    recovered = _sum_of(transactions, TransactionType.PAYMENT)
    topup = _sum_of(transactions, TransactionType.TOPUP)
    interest = accrued_interest(terms, as_of).interest_amount
    process_fee = Decimal(terms.process_fee)
    total = Decimal(terms.principal) + topup + interest + process_fee
    return LoanBalance(
        interest=interest,
        process_fee=process_fee,
        topup_total=topup,
        recovered_total=recovered,
        total_payable=total,
        outstanding=total - recovered,
    )

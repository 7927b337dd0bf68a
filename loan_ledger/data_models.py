"""Data models for the loan ledger calculation core.

This module defines the enums that select interest formulas and the
dataclasses exchanged between the ledger and the calculation core: the loan
terms and transactions supplied by callers, and the interest, schedule rows
and balances computed from them. Stored loans frequently carry enum values as
plain strings, so every enum offers a forgiving ``parse`` classmethod that
falls back to the ledger default instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class _ParsableEnum(str, Enum):
    @classmethod
    def default(cls) -> "_ParsableEnum":
        raise NotImplementedError

    @classmethod
    def parse(cls, value: object):
        """Return the member matching ``value`` or the default member.

        Accepts members, or names in any case with surrounding whitespace.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper().replace("-", "_")
            if key in cls.__members__:
                return cls.__members__[key]
        return cls.default()


class LoanType(_ParsableEnum):
    WITH_INTEREST = "WITH_INTEREST"
    FIXED_AMOUNT = "FIXED_AMOUNT"

    @classmethod
    def default(cls) -> "LoanType":
        return cls.WITH_INTEREST


class InterestCalc(_ParsableEnum):
    """Interest formula and installment cadence of a loan."""

    MONTHLY = "MONTHLY"
    HALF_MONTHLY = "HALF_MONTHLY"
    WEEKLY = "WEEKLY"
    DAILY = "DAILY"

    @classmethod
    def default(cls) -> "InterestCalc":
        return cls.MONTHLY


class InterestEvery(_ParsableEnum):
    """Compounding frequency, used only when a loan compounds."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"

    @classmethod
    def default(cls) -> "InterestEvery":
        return cls.MONTHLY


class TransactionType(_ParsableEnum):
    PAYMENT = "PAYMENT"
    TOPUP = "TOPUP"

    @classmethod
    def default(cls) -> "TransactionType":
        return cls.PAYMENT


@dataclass(frozen=True)
class LoanTerms:
    """Terms of a single loan as stored by the ledger.

    Attributes
    ----------
    principal: Decimal
        The amount lent.
    annual_rate_percent: Decimal
        Interest rate in percent. Only used for ``WITH_INTEREST`` loans.
    loan_type: LoanType
        ``FIXED_AMOUNT`` loans never accrue interest.
    interest_calc: InterestCalc
        Selects the simple-interest formula and the EMI cadence.
    interest_every: InterestEvery
        Compounding frequency when ``has_compounding`` is set.
    start_date, end_date:
        Accrual window. A missing ``end_date`` means "up to the as-of date".
    process_fee: Decimal
        One-off fee added to the payable total and spread over the EMIs.
    has_emi, number_of_emi:
        Whether the loan is repaid in installments and how many.
    """

    principal: Decimal
    annual_rate_percent: Decimal
    start_date: date
    loan_type: LoanType = LoanType.WITH_INTEREST
    interest_calc: InterestCalc = InterestCalc.MONTHLY
    interest_every: InterestEvery = InterestEvery.MONTHLY
    has_compounding: bool = False
    end_date: Optional[date] = None
    process_fee: Decimal = Decimal("0")
    has_emi: bool = False
    number_of_emi: int = 0


@dataclass(frozen=True)
class TransactionRecord:
    amount: Decimal
    type: TransactionType
    date: date


@dataclass(frozen=True)
class InterestResult:
    interest_amount: Decimal


@dataclass(frozen=True)
class AmortizationRow:
    """One equal installment of an EMI schedule.

    The principal, interest and fee shares are identical on every row.
    ``remaining_balance`` never goes below zero and is exactly zero on the
    last row, which absorbs any rounding residue.
    """

    period: int
    date: date
    principal_share: Decimal
    interest_share: Decimal
    fee_share: Decimal
    installment_amount: Decimal
    remaining_balance: Decimal


@dataclass(frozen=True)
class LoanBalance:
    """Payable and outstanding amounts of a loan.

    ``outstanding`` is not clamped: a negative value means the borrower has
    paid more than the payable total.
    """

    interest: Decimal
    process_fee: Decimal
    topup_total: Decimal
    recovered_total: Decimal
    total_payable: Decimal
    outstanding: Decimal


def validate_terms(terms: LoanTerms) -> LoanTerms:
    """Reject loan terms the calculation core cannot accept.

    Callers run this before handing terms to the core. The terms are returned
    unchanged so the call can be chained.

    Raises
    ------
    ValueError
        If an amount or the installment count is negative, if the end date
        precedes the start date, or if only one of two timestamps carries a
        timezone.
    """
    if terms.principal < 0:
        raise ValueError("Principal must not be negative")
    if terms.annual_rate_percent < 0:
        raise ValueError("Interest rate must not be negative")
    if terms.process_fee < 0:
        raise ValueError("Process fee must not be negative")
    if terms.number_of_emi < 0:
        raise ValueError("Number of EMIs must not be negative")
    if terms.end_date is not None:
        if _mixes_timezones(terms.start_date, terms.end_date):
            raise ValueError("startDate and endDate must both carry a timezone or neither")
        if _comparable(terms.end_date) < _comparable(terms.start_date):
            raise ValueError("End date must not be before start date")
    return terms


def _comparable(value: date) -> date:
    # A datetime and a plain date cannot be compared directly.
    return value.date() if isinstance(value, datetime) else value


def _mixes_timezones(start: date, end: date) -> bool:
    if not (isinstance(start, datetime) and isinstance(end, datetime)):
        return False
    return (start.utcoffset() is None) != (end.utcoffset() is None)


@dataclass(frozen=True)
class TimeDuration:
    """Loan age split into 365-day years, 30-day months and leftover days."""

    years: int
    months: int
    days: int


@dataclass(frozen=True)
class LoanSummary:
    """Everything the ledger shows for one loan: balance, age and EMIs.

    ``days`` is the whole-day length of the accrual window.
    """

    terms: LoanTerms
    balance: LoanBalance
    duration: TimeDuration
    schedule: List[AmortizationRow] = field(default_factory=list)
    days: int = 0


@dataclass(frozen=True)
class PortfolioTotals:
    loan_count: int
    total_principal: Decimal
    total_interest: Decimal
    total_process_fee: Decimal
    total_payable: Decimal
    total_recovered: Decimal
    total_outstanding: Decimal

"""Tests for the loan summary and portfolio totals used by the ledger screens."""

from datetime import date
from decimal import Decimal

from loan_ledger.data_models import InterestCalc, LoanTerms, LoanType, TransactionRecord, TransactionType
from loan_ledger.engine import DUE_TODAY, OVERDUE, is_due, loan_summary, portfolio_totals, time_duration


def test_time_duration_splits_days():
    duration = time_duration(date(2024, 1, 1), date(2025, 3, 15))  # 439 days
    assert (duration.years, duration.months, duration.days) == (1, 2, 19)


def test_time_duration_short_loan():
    duration = time_duration(date(2024, 1, 1), date(2024, 1, 20))
    assert (duration.years, duration.months, duration.days) == (0, 0, 19)


def emi_loan(**overrides):
    values = dict(
        principal=Decimal("12000"),
        annual_rate_percent=Decimal("1"),
        interest_calc=InterestCalc.MONTHLY,
        start_date=date(2024, 1, 1),
        has_emi=True,
        number_of_emi=12,
    )
    values.update(overrides)
    return LoanTerms(**values)


def test_summary_of_open_loan_uses_as_of():
    summary = loan_summary(emi_loan(), [], date(2024, 11, 1))

    # ten calendar months at 1% of 12000
    assert summary.balance.interest == Decimal("1200")
    assert summary.duration.months == 10
    assert summary.days == 305
    assert len(summary.schedule) == 12
    assert summary.schedule[0].installment_amount == Decimal("1100")
    assert summary.schedule[-1].remaining_balance == 0


def test_summary_schedule_excludes_topups():
    transactions = [TransactionRecord(amount=Decimal("5000"), type=TransactionType.TOPUP, date=date(2024, 2, 1))]
    summary = loan_summary(emi_loan(end_date=date(2024, 11, 1)), transactions, date(2030, 1, 1))
    assert summary.balance.total_payable == Decimal("18200")
    assert sum(r.installment_amount for r in summary.schedule) == Decimal("13200")


def test_summary_without_emi_has_no_schedule():
    summary = loan_summary(emi_loan(has_emi=False), [], date(2024, 11, 1))
    assert summary.schedule == []


def test_portfolio_totals():
    as_of = date(2024, 4, 1)
    first = loan_summary(
        LoanTerms(
            principal=Decimal("100000"),
            annual_rate_percent=Decimal("24"),
            start_date=date(2024, 1, 1),
        ),
        [TransactionRecord(amount=Decimal("2000"), type=TransactionType.PAYMENT, date=date(2024, 2, 1))],
        as_of,
    )
    second = loan_summary(
        LoanTerms(
            principal=Decimal("5000"),
            annual_rate_percent=Decimal("0"),
            loan_type=LoanType.FIXED_AMOUNT,
            start_date=date(2024, 1, 1),
            process_fee=Decimal("250"),
        ),
        [],
        as_of,
    )

    totals = portfolio_totals([first, second])

    assert totals.loan_count == 2
    assert totals.total_principal == Decimal("105000")
    assert totals.total_interest == Decimal("72000")
    assert totals.total_process_fee == Decimal("250")
    assert totals.total_payable == Decimal("177250")
    assert totals.total_recovered == Decimal("2000")
    assert totals.total_outstanding == Decimal("175250")


def test_portfolio_totals_of_nothing():
    totals = portfolio_totals([])
    assert totals.loan_count == 0
    assert totals.total_outstanding == 0


class TestIsDue:
    today = date(2024, 4, 1)

    def test_due_today(self):
        assert is_due(emi_loan(end_date=date(2024, 4, 1)), self.today, DUE_TODAY)
        assert not is_due(emi_loan(end_date=date(2024, 3, 31)), self.today, DUE_TODAY)

    def test_overdue(self):
        assert is_due(emi_loan(end_date=date(2024, 3, 31)), self.today, OVERDUE)
        assert not is_due(emi_loan(end_date=date(2024, 4, 1)), self.today, OVERDUE)

    def test_open_loan_is_never_due(self):
        assert not is_due(emi_loan(), self.today, DUE_TODAY)
        assert not is_due(emi_loan(), self.today, OVERDUE)

    def test_without_filter_everything_passes(self):
        assert is_due(emi_loan(), self.today, None)
        assert is_due(emi_loan(end_date=date(2030, 1, 1)), self.today, "upcoming")

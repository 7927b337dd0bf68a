"""Tests for the accrued interest formulas."""

from datetime import date
from decimal import Decimal

import pytest

from loan_ledger.data_models import InterestCalc, InterestEvery, LoanTerms, LoanType
from loan_ledger.interest import accrued_interest, compounding_periods_per_year


def make_terms(**overrides) -> LoanTerms:
    values = dict(
        principal=Decimal("100000"),
        annual_rate_percent=Decimal("24"),
        loan_type=LoanType.WITH_INTEREST,
        interest_calc=InterestCalc.MONTHLY,
        interest_every=InterestEvery.MONTHLY,
        has_compounding=False,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 4, 1),
    )
    values.update(overrides)
    return LoanTerms(**values)


def interest_of(terms, as_of=date(2030, 1, 1)) -> Decimal:
    return accrued_interest(terms, as_of).interest_amount


class TestFixedAmount:
    @pytest.mark.parametrize("compounding", [False, True])
    @pytest.mark.parametrize("calc", list(InterestCalc))
    def test_fixed_amount_never_accrues(self, calc, compounding):
        terms = make_terms(loan_type=LoanType.FIXED_AMOUNT, interest_calc=calc, has_compounding=compounding)
        assert interest_of(terms) == 0


class TestCalendarMonthly:
    def test_exact_month_boundary(self):
        assert interest_of(make_terms()) == Decimal("72000")

    def test_one_extra_day_rounds_up_a_month(self):
        assert interest_of(make_terms(end_date=date(2024, 4, 2))) == Decimal("96000")

    def test_open_loan_accrues_to_as_of(self):
        terms = make_terms(end_date=None)
        assert accrued_interest(terms, date(2024, 4, 1)).interest_amount == Decimal("72000")

    def test_end_date_wins_over_as_of(self):
        terms = make_terms()
        assert accrued_interest(terms, date(2025, 1, 1)).interest_amount == Decimal("72000")

    def test_unknown_calc_string_is_monthly(self):
        assert interest_of(make_terms(interest_calc="QUARTERLY")) == Decimal("72000")


class TestDaily:
    @pytest.mark.parametrize("calc", [InterestCalc.DAILY, InterestCalc.WEEKLY, InterestCalc.HALF_MONTHLY])
    def test_non_monthly_cadences_use_daily_formula(self, calc):
        terms = make_terms(
            principal=Decimal("36500"),
            annual_rate_percent=Decimal("10"),
            interest_calc=calc,
            end_date=date(2024, 1, 11),
        )
        assert interest_of(terms) == Decimal("100")

    def test_daily_over_quarter(self):
        terms = make_terms(interest_calc=InterestCalc.DAILY)
        expected = Decimal("100000") * Decimal("24") * 91 / Decimal("36500")
        assert interest_of(terms) == expected


class TestCompound:
    def test_periods_per_year(self):
        assert compounding_periods_per_year(InterestEvery.DAILY) == 365
        assert compounding_periods_per_year(InterestEvery.WEEKLY) == 52
        assert compounding_periods_per_year(InterestEvery.MONTHLY) == 12
        assert compounding_periods_per_year("YEARLY") == 12

    def test_monthly_compounding(self):
        terms = make_terms(
            principal=Decimal("1000"),
            annual_rate_percent=Decimal("12"),
            has_compounding=True,
            interest_every=InterestEvery.MONTHLY,
            end_date=date(2024, 3, 1),  # 60 days, two 30-day periods
        )
        expected = Decimal("1000") * (Decimal("1.01") ** 24 - 1)
        assert interest_of(terms) == expected
        assert interest_of(terms) == pytest.approx(Decimal("269.7346"), abs=Decimal("0.001"))

    def test_weekly_compounding(self):
        terms = make_terms(
            principal=Decimal("1000"),
            annual_rate_percent=Decimal("52"),
            has_compounding=True,
            interest_every=InterestEvery.WEEKLY,
            end_date=date(2024, 1, 15),  # 14 days, two weeks
        )
        expected = Decimal("1000") * (Decimal("1.01") ** 104 - 1)
        assert interest_of(terms) == expected

    def test_daily_compounding(self):
        terms = make_terms(
            principal=Decimal("1000"),
            annual_rate_percent=Decimal("36.5"),
            has_compounding=True,
            interest_every=InterestEvery.DAILY,
            end_date=date(2024, 1, 11),  # 10 days, compounded 365 times a year
        )
        expected = Decimal("1000") * (Decimal("1.001") ** 3650 - 1)
        assert interest_of(terms) == expected
        assert interest_of(terms) == pytest.approx(Decimal("37404.6"), rel=Decimal("0.001"))

    def test_compounding_ignores_interest_calc(self):
        base = make_terms(has_compounding=True, interest_calc=InterestCalc.MONTHLY)
        daily = make_terms(has_compounding=True, interest_calc=InterestCalc.DAILY)
        assert interest_of(base) == interest_of(daily)

    def test_zero_days_accrues_nothing(self):
        terms = make_terms(has_compounding=True, end_date=date(2024, 1, 1))
        assert interest_of(terms) == 0

    def test_zero_rate(self):
        terms = make_terms(has_compounding=True, annual_rate_percent=Decimal("0"))
        assert interest_of(terms) == 0


def test_repeated_calls_are_identical():
    terms = make_terms(has_compounding=True, interest_every=InterestEvery.DAILY, end_date=None)
    as_of = date(2024, 6, 30)
    assert accrued_interest(terms, as_of) == accrued_interest(terms, as_of)

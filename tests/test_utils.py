"""Tests for input parsing and validation."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from loan_ledger.data_models import (
    InterestCalc,
    InterestEvery,
    LoanTerms,
    LoanType,
    TransactionType,
    validate_terms,
)
from loan_ledger.utils import (
    decimal_from_str,
    loan_terms_from_dict,
    loan_terms_to_dict,
    parse_as_of,
    parse_date,
    parse_int,
    transaction_from_dict,
)


def test_decimal_from_str():
    assert decimal_from_str("1,000.50") == Decimal("1000.50")
    assert decimal_from_str(0.1) == Decimal("0.1")
    assert decimal_from_str(7) == Decimal("7")
    for bad in ("abc", "", "NaN", True):
        with pytest.raises(ValueError):
            decimal_from_str(bad)


def test_parse_date():
    assert parse_date("2024-01-10") == date(2024, 1, 10)
    assert parse_date("2024-01-10T10:30:00Z") == datetime(2024, 1, 10, 10, 30, tzinfo=timezone.utc)
    assert parse_date(date(2024, 1, 10)) == date(2024, 1, 10)
    with pytest.raises(ValueError):
        parse_date("10/01/2024")
    with pytest.raises(ValueError):
        parse_date(None)


def test_enum_parse_falls_back():
    assert InterestCalc.parse("weekly") is InterestCalc.WEEKLY
    assert InterestCalc.parse("half-monthly") is InterestCalc.HALF_MONTHLY
    assert InterestCalc.parse("bogus") is InterestCalc.MONTHLY
    assert InterestEvery.parse(None) is InterestEvery.MONTHLY
    assert LoanType.parse("fixed_amount") is LoanType.FIXED_AMOUNT
    assert TransactionType.parse("refund") is TransactionType.PAYMENT


def test_loan_terms_from_dict():
    terms = loan_terms_from_dict(
        {
            "principalAmount": "100000",
            "interestRate": 24,
            "loanType": "WITH_INTEREST",
            "interestCalc": "DAILY",
            "interestEvery": "WEEKLY",
            "hasCompounding": "true",
            "startDate": "2024-01-01",
            "endDate": "",
            "processFee": "1500",
            "hasEMI": True,
            "numberOfEMI": "12",
        }
    )
    assert terms.principal == Decimal("100000")
    assert terms.annual_rate_percent == Decimal("24")
    assert terms.interest_calc is InterestCalc.DAILY
    assert terms.interest_every is InterestEvery.WEEKLY
    assert terms.has_compounding is True
    assert terms.end_date is None
    assert terms.process_fee == Decimal("1500")
    assert terms.number_of_emi == 12


def test_loan_terms_defaults_and_round_trip():
    terms = loan_terms_from_dict({"principalAmount": 500, "startDate": "2024-01-01", "interestCalc": "ANNUAL"})
    assert terms.annual_rate_percent == 0
    assert terms.interest_calc is InterestCalc.MONTHLY
    assert terms.loan_type is LoanType.WITH_INTEREST
    assert loan_terms_from_dict(loan_terms_to_dict(terms)) == terms


@pytest.mark.parametrize(
    "data, message",
    [
        ({"startDate": "2024-01-01"}, "principalAmount"),
        ({"principalAmount": 100}, "startDate"),
        ({"principalAmount": -1, "startDate": "2024-01-01"}, "Principal"),
        ({"principalAmount": 100, "startDate": "2024-02-01", "endDate": "2024-01-01"}, "End date"),
        ({"principalAmount": 100, "startDate": "2024-01-01", "numberOfEMI": "many"}, "numberOfEMI"),
        ({"principalAmount": 100, "startDate": "2024-01-01", "numberOfEMI": 2.7}, "whole number"),
        (
            {"principalAmount": 100, "startDate": "2024-01-01T00:00:00Z", "endDate": "2024-02-01T00:00:00"},
            "timezone",
        ),
    ],
)
def test_loan_terms_from_dict_rejects(data, message):
    with pytest.raises(ValueError, match=message):
        loan_terms_from_dict(data)


def test_validate_terms_compares_datetime_with_date():
    start = datetime(2024, 1, 2, 9, 0)
    terms = LoanTerms(principal=Decimal("1"), annual_rate_percent=Decimal("0"), start_date=start, end_date=date(2024, 1, 1))
    with pytest.raises(ValueError):
        validate_terms(terms)
    ok = LoanTerms(
        principal=Decimal("1"), annual_rate_percent=Decimal("0"), start_date=start, end_date=start + timedelta(days=1)
    )
    assert validate_terms(ok) is ok


def test_transaction_from_dict():
    record = transaction_from_dict({"amount": "250.75", "type": "topup", "date": "2024-03-01"})
    assert record.amount == Decimal("250.75")
    assert record.type is TransactionType.TOPUP
    assert record.date == date(2024, 3, 1)

    with pytest.raises(ValueError):
        transaction_from_dict({"amount": "-5", "type": "PAYMENT", "date": "2024-03-01"})
    with pytest.raises(ValueError):
        transaction_from_dict({"type": "PAYMENT", "date": "2024-03-01"})


def test_parse_int_accepts_whole_numbers_only():
    assert parse_int("12", "numberOfEMI") == 12
    assert parse_int(12.0, "numberOfEMI") == 12
    assert parse_int(None, "numberOfEMI") == 0
    for bad in (2.7, "2.5", True):
        with pytest.raises(ValueError, match="numberOfEMI"):
            parse_int(bad, "numberOfEMI")


def test_validate_terms_rejects_mixed_timezones():
    terms = LoanTerms(
        principal=Decimal("1"),
        annual_rate_percent=Decimal("0"),
        start_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        end_date=datetime(2024, 2, 1),
    )
    with pytest.raises(ValueError, match="timezone"):
        validate_terms(terms)
    aware = LoanTerms(
        principal=Decimal("1"),
        annual_rate_percent=Decimal("0"),
        start_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        end_date=datetime(2024, 2, 1, tzinfo=timezone(timedelta(hours=5, minutes=30))),
    )
    assert validate_terms(aware) is aware


def test_parse_as_of_keeps_calendar_day():
    assert parse_as_of("2024-04-02T10:00:00Z") == date(2024, 4, 2)
    assert parse_as_of("2024-04-02") == date(2024, 4, 2)
    assert parse_as_of("") is None

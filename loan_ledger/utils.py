"""Utility functions for the loan ledger.

This module turns user input (command-line strings, JSON request bodies,
stored rows) into the Python types the calculation core works with:
``Decimal`` amounts, ``date`` values, and ``LoanTerms`` / ``TransactionRecord``
objects. Loan dictionaries use the ledger's JSON field names
(``principalAmount``, ``interestRate``, ``interestCalc`` and so on).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation, getcontext
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .data_models import (
    InterestCalc,
    InterestEvery,
    LoanTerms,
    LoanType,
    TransactionRecord,
    TransactionType,
    validate_terms,
)

getcontext().prec = 28  # increase decimal precision to avoid rounding errors


def decimal_from_str(value: Any) -> Decimal:
    """Convert a numeric string (or number) into a ``Decimal``.

    The function strips any commas and handles both integer and float-like
    strings. Floats go through ``str`` so that ``0.1`` stays ``0.1``. It raises
    ``ValueError`` if conversion fails.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value}")
    try:
        cleaned = str(value).replace(",", "").strip()
        result = Decimal(cleaned)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def parse_date(value: Any) -> date:
    """Parse an ISO date (``YYYY-MM-DD``) or timestamp into a date.

    Timestamps keep their time of day and are returned as ``datetime``; a
    trailing ``Z`` is accepted for UTC. ``date`` objects pass through.
    """
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid date: {value!r}")
    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"Invalid date: {value}") from exc


def parse_optional_date(value: Any) -> Optional[date]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_date(value)


def parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def parse_as_of(value: Any) -> Optional[date]:
    """Parse an optional accrual cutoff; timestamps keep only their calendar day."""
    parsed = parse_optional_date(value)
    if isinstance(parsed, datetime):
        return parsed.date()
    return parsed


def parse_int(value: Any, field_name: str) -> int:
    """Parse a whole number such as ``12``, ``"12"`` or ``12.0``; ``2.7`` is rejected."""
    if value is None or value == "":
        return 0
    try:
        number = decimal_from_str(value)
    except ValueError as exc:
        raise ValueError(f"Invalid {field_name}: {value}") from exc
    if number != number.to_integral_value():
        raise ValueError(f"Invalid {field_name}: {value} is not a whole number")
    return int(number)


def loan_terms_from_dict(data: Mapping[str, Any]) -> LoanTerms:
    """Build validated ``LoanTerms`` from a ledger loan dictionary.

    ``principalAmount`` and ``startDate`` are required. Missing rates and fees
    default to zero and unknown enum values fall back to the ledger defaults.

    Raises
    ------
    ValueError
        If a required field is missing or a value is malformed or invalid.
    """
    for required in ("principalAmount", "startDate"):
        if data.get(required) in (None, ""):
            raise ValueError(f"Missing required field: {required}")

    terms = LoanTerms(
        principal=decimal_from_str(data["principalAmount"]),
        annual_rate_percent=decimal_from_str(data.get("interestRate") or 0),
        loan_type=LoanType.parse(data.get("loanType")),
        interest_calc=InterestCalc.parse(data.get("interestCalc")),
        interest_every=InterestEvery.parse(data.get("interestEvery")),
        has_compounding=parse_bool(data.get("hasCompounding", False)),
        start_date=parse_date(data["startDate"]),
        end_date=parse_optional_date(data.get("endDate")),
        process_fee=decimal_from_str(data.get("processFee") or 0),
        has_emi=parse_bool(data.get("hasEMI", False)),
        number_of_emi=parse_int(data.get("numberOfEMI"), "numberOfEMI"),
    )
    return validate_terms(terms)


def transaction_from_dict(data: Mapping[str, Any]) -> TransactionRecord:
    """Build a ``TransactionRecord`` from ``{"amount", "type", "date"}``."""
    if data.get("amount") in (None, ""):
        raise ValueError("Missing required field: amount")
    amount = decimal_from_str(data["amount"])
    if amount < 0:
        raise ValueError("Transaction amount must not be negative")
    return TransactionRecord(
        amount=amount,
        type=TransactionType.parse(data.get("type")),
        date=parse_date(data.get("date")),
    )


def transactions_from_list(items: Optional[Iterable[Mapping[str, Any]]]) -> List[TransactionRecord]:
    return [transaction_from_dict(item) for item in (items or [])]


def loan_terms_to_dict(terms: LoanTerms) -> Dict[str, Any]:
    """Inverse of ``loan_terms_from_dict`` with JSON-friendly values."""
    return {
        "principalAmount": float(terms.principal),
        "interestRate": float(terms.annual_rate_percent),
        "loanType": terms.loan_type.value,
        "interestCalc": terms.interest_calc.value,
        "interestEvery": terms.interest_every.value,
        "hasCompounding": terms.has_compounding,
        "startDate": terms.start_date.isoformat(),
        "endDate": terms.end_date.isoformat() if terms.end_date is not None else None,
        "processFee": float(terms.process_fee),
        "hasEMI": terms.has_emi,
        "numberOfEMI": terms.number_of_emi,
    }

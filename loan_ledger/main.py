"""Command-line interface for the loan ledger.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute the accrued interest of a loan, print or export
its EMI schedule, work out its outstanding balance from a list of payments
and top-ups, or total up a portfolio of loans stored in a JSON file.
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import click

from .data_models import (
    AmortizationRow,
    InterestCalc,
    InterestEvery,
    LoanSummary,
    LoanTerms,
    LoanType,
    TransactionRecord,
    TransactionType,
    validate_terms,
)
from .engine import loan_summary, portfolio_totals
from .formatter import (
    print_balance,
    print_portfolio,
    print_schedule,
    schedule_to_dicts,
    summary_to_dict,
    totals_to_dict,
)
from .interest import accrued_interest
from .schedule import generate_schedule
from .utils import decimal_from_str, loan_terms_from_dict, parse_as_of, parse_date, transactions_from_list

logger = logging.getLogger(__name__)


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("50000") and shorthand with ``k``/``m`` suffixes
    (e.g., "50k" meaning 50_000). Returns a Decimal.
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        return decimal_from_str(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_cli_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return parse_date(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def parse_transaction_strings(values: Tuple[str, ...], kind: TransactionType) -> List[TransactionRecord]:
    transactions: List[TransactionRecord] = []
    for item in values:
        parts = item.split(":")
        if len(parts) != 2:
            raise click.BadParameter(
                f"{kind.value.title()} must be in YYYY-MM-DD:AMOUNT format; got {item}"
            )
        dt_str, amount_str = parts
        transactions.append(
            TransactionRecord(amount=parse_amount(amount_str), type=kind, date=parse_cli_date(dt_str))
        )
    return transactions


def build_terms_from_options(
    principal: str,
    rate: str,
    loan_type: str,
    interest_calc: str,
    interest_every: str,
    compounding: bool,
    start_date: str,
    end_date: Optional[str],
    fee: Optional[str],
    tenure: int = 0,
) -> LoanTerms:
    terms = LoanTerms(
        principal=parse_amount(principal),
        annual_rate_percent=parse_amount(rate),
        loan_type=LoanType.parse(loan_type),
        interest_calc=InterestCalc.parse(interest_calc),
        interest_every=InterestEvery.parse(interest_every),
        has_compounding=compounding,
        start_date=parse_cli_date(start_date),
        end_date=parse_cli_date(end_date),
        process_fee=parse_amount(fee) if fee else Decimal("0"),
        has_emi=tenure > 0,
        number_of_emi=tenure,
    )
    try:
        return validate_terms(terms)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def loan_options(func: Callable) -> Callable:
    """Attach the loan-term options shared by the loan commands."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Amount lent"),
        click.option("--rate", "-r", "rate", default="0", show_default=True, help="Interest rate (percent)"),
        click.option(
            "--loan-type",
            "loan_type",
            type=click.Choice([t.value for t in LoanType], case_sensitive=False),
            default=LoanType.WITH_INTEREST.value,
            show_default=True,
        ),
        click.option(
            "--interest-calc",
            "interest_calc",
            type=click.Choice([c.value for c in InterestCalc], case_sensitive=False),
            default=InterestCalc.MONTHLY.value,
            show_default=True,
            help="Interest formula and installment cadence",
        ),
        click.option(
            "--interest-every",
            "interest_every",
            type=click.Choice([e.value for e in InterestEvery], case_sensitive=False),
            default=InterestEvery.MONTHLY.value,
            show_default=True,
            help="Compounding frequency",
        ),
        click.option("--compounding/--no-compounding", "compounding", default=False, help="Compound the interest"),
        click.option("--start-date", "-s", "start_date", required=True, help="Loan start date (YYYY-MM-DD)"),
        click.option("--end-date", "-e", "end_date", help="Loan end date (YYYY-MM-DD); defaults to --as-of"),
        click.option("--fee", "fee", help="Processing fee"),
        click.option("--as-of", "as_of", help="Accrual cutoff for open loans (YYYY-MM-DD); defaults to today"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _as_of(value: Optional[str]) -> date:
    try:
        return parse_as_of(value) or date.today()
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--as-of")


def export_schedule_csv(path: Path, schedule: List[AmortizationRow]) -> None:
    """Export an EMI schedule to a CSV file."""
    header = ["Period", "Date", "Principal", "Interest", "Process_Fee", "EMI", "Balance"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for row in schedule:
            writer.writerow(
                [
                    row.period,
                    row.date.isoformat(),
                    float(row.principal_share),
                    float(row.interest_share),
                    float(row.fee_share),
                    float(row.installment_amount),
                    float(row.remaining_balance),
                ]
            )


def export_json(path: Path, data: Dict[str, Any]) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log calculation details")
def cli(verbose: bool) -> None:
    """Interest, EMI and balance calculator for ledger loans."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
def interest(
    principal: str,
    rate: str,
    loan_type: str,
    interest_calc: str,
    interest_every: str,
    compounding: bool,
    start_date: str,
    end_date: Optional[str],
    fee: Optional[str],
    as_of: Optional[str],
) -> None:
    """Print the interest a loan has accrued."""
    terms = build_terms_from_options(
        principal, rate, loan_type, interest_calc, interest_every, compounding, start_date, end_date, fee
    )
    result = accrued_interest(terms, _as_of(as_of))
    click.echo(f"Interest: {result.interest_amount:.2f}")


@cli.command()
@loan_options
@click.option("--tenure", "-n", "tenure", required=True, type=int, help="Number of installments")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    principal: str,
    rate: str,
    loan_type: str,
    interest_calc: str,
    interest_every: str,
    compounding: bool,
    start_date: str,
    end_date: Optional[str],
    fee: Optional[str],
    as_of: Optional[str],
    tenure: int,
    output: Optional[str],
) -> None:
    """Compute and print the EMI schedule of a loan."""
    if tenure <= 0:
        raise click.BadParameter("Tenure must be positive", param_hint="--tenure")
    terms = build_terms_from_options(
        principal, rate, loan_type, interest_calc, interest_every, compounding, start_date, end_date, fee, tenure
    )
    interest_amount = accrued_interest(terms, _as_of(as_of)).interest_amount
    rows = generate_schedule(
        terms.principal, interest_amount, terms.process_fee, tenure, terms.start_date, terms.interest_calc
    )
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_json(path, {"interest": float(interest_amount), "emiBreakdown": schedule_to_dicts(rows)})
        elif path.suffix.lower() == ".csv":
            export_schedule_csv(path, rows)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
    else:
        click.echo(f"Interest: {interest_amount:.2f}")
        print_schedule(rows)


@cli.command()
@loan_options
@click.option("--payment", "payment", multiple=True, help="Payment in YYYY-MM-DD:AMOUNT format")
@click.option("--topup", "topup", multiple=True, help="Top-up in YYYY-MM-DD:AMOUNT format")
@click.option("--output", "output", type=str, help="Output file path (.json)")
def balance(
    principal: str,
    rate: str,
    loan_type: str,
    interest_calc: str,
    interest_every: str,
    compounding: bool,
    start_date: str,
    end_date: Optional[str],
    fee: Optional[str],
    as_of: Optional[str],
    payment: Tuple[str, ...],
    topup: Tuple[str, ...],
    output: Optional[str],
) -> None:
    """Compute what a loan still owes after payments and top-ups."""
    terms = build_terms_from_options(
        principal, rate, loan_type, interest_calc, interest_every, compounding, start_date, end_date, fee
    )
    transactions = parse_transaction_strings(payment, TransactionType.PAYMENT)
    transactions += parse_transaction_strings(topup, TransactionType.TOPUP)
    summary = loan_summary(terms, transactions, _as_of(as_of))
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Balance export must use .json extension")
        export_json(path, summary_to_dict(summary))
        click.echo(f"Balance exported to {path}")
    else:
        print_balance(summary)


@cli.command()
@click.argument("loans_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--as-of", "as_of", help="Accrual cutoff for open loans (YYYY-MM-DD); defaults to today")
@click.option("--output", "output", type=str, help="Output file path (.json)")
def portfolio(loans_file: Path, as_of: Optional[str], output: Optional[str]) -> None:
    """Total up the loans listed in a JSON file.

    The file holds a list of loans in the ledger's JSON shape, each with an
    optional ``transactions`` list:

        [{"principalAmount": 10000, "interestRate": 2, "startDate": "2024-01-01",
          "transactions": [{"amount": 500, "type": "PAYMENT", "date": "2024-02-01"}]}]
    """
    with loans_file.open("r", encoding="utf-8") as f:
        try:
            items = json.load(f)
        except json.JSONDecodeError as exc:
            raise click.BadParameter(f"Invalid JSON: {exc}", param_hint="LOANS_FILE")
    if not isinstance(items, list):
        raise click.BadParameter("Expected a JSON list of loans", param_hint="LOANS_FILE")

    cutoff = _as_of(as_of)
    summaries: List[LoanSummary] = []
    for index, item in enumerate(items, start=1):
        try:
            terms = loan_terms_from_dict(item)
            transactions = transactions_from_list(item.get("transactions"))
        except (ValueError, AttributeError) as exc:
            raise click.BadParameter(f"Loan #{index}: {exc}", param_hint="LOANS_FILE")
        summaries.append(loan_summary(terms, transactions, cutoff))
    logger.debug("computed %d loan summaries as of %s", len(summaries), cutoff)

    totals = portfolio_totals(summaries)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Portfolio export must use .json extension")
        export_json(path, {"summary": totals_to_dict(totals)})
        click.echo(f"Portfolio exported to {path}")
    else:
        print_portfolio(totals)


if __name__ == "__main__":
    cli()

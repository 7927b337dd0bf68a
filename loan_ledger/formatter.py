"""Output helpers for the loan ledger.

This module renders balances, EMI schedules and portfolio totals as simple
text tables, and converts the same results into JSON-serialisable
dictionaries. The dictionary keys follow the ledger's loan JSON
(``amountLeft``, ``emiBreakdown`` and so on) so the web API and file exports
share one representation.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

from .data_models import AmortizationRow, LoanBalance, LoanSummary, PortfolioTotals


def _iso(value) -> str:
    return value.isoformat()


def schedule_to_dicts(schedule: Iterable[AmortizationRow]) -> List[Dict[str, Any]]:
    """Convert schedule rows into JSON-serialisable dictionaries."""
    return [
        {
            "period": row.period,
            "date": _iso(row.date),
            "principal": float(row.principal_share),
            "interest": float(row.interest_share),
            "processFee": float(row.fee_share),
            "emiAmount": float(row.installment_amount),
            "balance": float(row.remaining_balance),
        }
        for row in schedule
    ]


def balance_to_dict(balance: LoanBalance) -> Dict[str, Any]:
    return {
        "interest": float(balance.interest),
        "processFee": float(balance.process_fee),
        "total": float(balance.total_payable),
        "topup": float(balance.topup_total),
        "amountRecovered": float(balance.recovered_total),
        "amountLeft": float(balance.outstanding),
    }


def summary_to_dict(summary: LoanSummary) -> Dict[str, Any]:
    """Return the ``calculated`` block of a loan detail response."""
    data = balance_to_dict(summary.balance)
    data["timeDuration"] = {
        "years": summary.duration.years,
        "months": summary.duration.months,
        "days": summary.duration.days,
    }
    data["emiBreakdown"] = schedule_to_dicts(summary.schedule)
    return data


def totals_to_dict(totals: PortfolioTotals) -> Dict[str, Any]:
    """Return portfolio totals; ``totalLent`` and ``peopleOwe`` are the dashboard's names."""
    return {
        "totalLoans": totals.loan_count,
        "totalPrincipal": float(totals.total_principal),
        "totalInterest": float(totals.total_interest),
        "totalProcessFee": float(totals.total_process_fee),
        "totalAmount": float(totals.total_payable),
        "totalRecovered": float(totals.total_recovered),
        "totalOutstanding": float(totals.total_outstanding),
        "totalLent": float(totals.total_principal),
        "peopleOwe": float(totals.total_outstanding),
    }


def report_row_to_dict(info: Mapping[str, Any], summary: LoanSummary) -> Dict[str, Any]:
    """Return one row of the interest report or the due-loans list."""
    terms = summary.terms
    balance = summary.balance
    return {
        **info,
        "principalAmount": float(terms.principal),
        "interestRate": float(terms.annual_rate_percent),
        "interest": float(balance.interest),
        "processFee": float(balance.process_fee),
        "total": float(balance.total_payable),
        "recovered": float(balance.recovered_total),
        "outstanding": float(balance.outstanding),
        "startDate": _iso(terms.start_date),
        "endDate": _iso(terms.end_date) if terms.end_date is not None else None,
        "days": summary.days,
        "loanType": terms.loan_type.value,
        "interestCalc": terms.interest_calc.value,
    }


def print_balance(summary: LoanSummary) -> None:
    """Print the balance of a loan in a human-readable format."""
    balance = summary.balance
    duration = summary.duration
    print("Balance")
    print("-" * 72)
    print(f"Principal          : {summary.terms.principal:.2f}")
    print(f"Interest           : {balance.interest:.2f}")
    if balance.process_fee:
        print(f"Process fee        : {balance.process_fee:.2f}")
    if balance.topup_total:
        print(f"Top-ups            : {balance.topup_total:.2f}")
    print(f"Total payable      : {balance.total_payable:.2f}")
    print(f"Recovered          : {balance.recovered_total:.2f}")
    print(f"Outstanding        : {balance.outstanding:.2f}")
    print(f"Duration           : {duration.years}y {duration.months}m {duration.days}d")
    print("-" * 72)


def print_schedule(schedule: Iterable[AmortizationRow]) -> None:
    """Print an EMI schedule as a simple tab-separated table."""
    headers = ["Period", "Date", "Principal", "Interest", "Fee", "EMI", "Balance"]
    print("\t".join(headers))
    for row in schedule:
        print(
            "\t".join(
                [
                    str(row.period),
                    row.date.strftime("%Y-%m-%d"),
                    f"{row.principal_share:.2f}",
                    f"{row.interest_share:.2f}",
                    f"{row.fee_share:.2f}",
                    f"{row.installment_amount:.2f}",
                    f"{row.remaining_balance:.2f}",
                ]
            )
        )


def print_portfolio(totals: PortfolioTotals) -> None:
    """Print aggregated totals for a set of loans."""
    print("Portfolio")
    print("=" * 72)
    print(f"Loans              : {totals.loan_count}")
    print(f"Principal          : {totals.total_principal:.2f}")
    print(f"Interest           : {totals.total_interest:.2f}")
    print(f"Process fees       : {totals.total_process_fee:.2f}")
    print(f"Total payable      : {totals.total_payable:.2f}")
    print(f"Recovered          : {totals.total_recovered:.2f}")
    print(f"Outstanding        : {totals.total_outstanding:.2f}")
    print("=" * 72)

"""Equal-installment (EMI) schedules.

The ledger does not amortize on a declining balance. The payable total
(principal, interest and processing fee) is split into ``tenure`` equal
installments and each installment carries an equal share of the three
components.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List

from .data_models import AmortizationRow, InterestCalc, LoanTerms
from .day_count import add_period

ZERO = Decimal("0")


def generate_schedule(
    principal: Decimal,
    interest: Decimal,
    fee: Decimal,
    tenure: int,
    start_date: date,
    cadence: InterestCalc,
) -> List[AmortizationRow]:
    """Return ``tenure`` equal installments for a loan.

    Row ``i`` falls ``i`` periods after ``start_date``. The running balance
    starts at the payable total and drops by one installment per row; it is
    reported as zero once it would turn negative and is forced to exactly zero
    on the last row.

    A tenure of zero yields an empty schedule.

    Raises
    ------
    ValueError
        If ``tenure`` is negative.
    """
    if tenure < 0:
        raise ValueError("Tenure must not be negative")
    if tenure == 0:
        return []

    principal = Decimal(principal)
    interest = Decimal(interest)
    fee = Decimal(fee)
    total = principal + interest + fee
    installment = total / tenure
    principal_share = principal / tenure
    interest_share = interest / tenure
    fee_share = fee / tenure

    rows: List[AmortizationRow] = []
    balance = total
    for period in range(1, tenure + 1):
        balance -= installment
        remaining = ZERO if period == tenure else max(ZERO, balance)
        rows.append(
            AmortizationRow(
                period=period,
                date=add_period(start_date, cadence, period),
                principal_share=principal_share,
                interest_share=interest_share,
                fee_share=fee_share,
                installment_amount=installment,
                remaining_balance=remaining,
            )
        )
    return rows


def schedule_for_terms(terms: LoanTerms, interest: Decimal) -> List[AmortizationRow]:
    """Return the EMI schedule of a loan, or an empty list if it has none.

    The installment cadence follows the loan's ``interest_calc``.
    """
    if not terms.has_emi or terms.number_of_emi <= 0:
        return []
    return generate_schedule(
        terms.principal,
        interest,
        terms.process_fee,
        terms.number_of_emi,
        terms.start_date,
        terms.interest_calc,
    )

"""EMI amortization engine.

Reducing-balance schedule with a fixed monthly installment::

    EMI = P x r x (1 + r)^n / ((1 + r)^n - 1),   r = annual% / 12 / 100

A zero rate degenerates to ``P / n``. Every monetary figure is rounded
half up to two places when the schedule is generated. The principal of
the final installment absorbs the rounding residue so the scheduled
principal always sums to exactly ``P``.
"""

import logging
from datetime import date, datetime
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from lamf_core.engine.money import ZERO, quantize_money, to_decimal
from lamf_core.exceptions import ValidationError
from lamf_core.models.loan import EmiInstallment

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = Decimal("12")


def monthly_rate(annual_rate_percent: Decimal | float | str) -> Decimal:
    """Convert an annual percentage rate to a monthly fraction."""
    return to_decimal(annual_rate_percent, "interest rate") / MONTHS_PER_YEAR / 100


def _validate_terms(principal: Decimal, annual_rate: Decimal, tenure_months: int) -> None:
    if principal <= 0:
        raise ValidationError(f"Principal must be positive, got {principal}")
    if annual_rate < 0:
        raise ValidationError(f"Interest rate cannot be negative, got {annual_rate}")
    if tenure_months < 1:
        raise ValidationError(f"Tenure must be at least 1 month, got {tenure_months}")


def calculate_emi(
    principal: Decimal | float | str,
    annual_rate_percent: Decimal | float | str,
    tenure_months: int,
) -> Decimal:
    """Calculate the unrounded equated monthly installment.

    Parameters
    ----------
    principal : Decimal | float | str
        Amount disbursed.
    annual_rate_percent : Decimal | float | str
        Annual interest rate in percent (e.g. 12 for 12%).
    tenure_months : int
        Number of monthly installments.

    Returns
    -------
    Decimal
        Installment amount before rounding.
    """
    p = to_decimal(principal, "principal")
    annual_rate = to_decimal(annual_rate_percent, "interest rate")
    _validate_terms(p, annual_rate, tenure_months)

    r = monthly_rate(annual_rate)
    if r == 0:
        return p / tenure_months

    growth = (1 + r) ** tenure_months
    return p * r * growth / (growth - 1)


def generate_schedule(
    principal: Decimal | float | str,
    annual_rate_percent: Decimal | float | str,
    tenure_months: int,
    start_date: date | datetime,
) -> list[EmiInstallment]:
    """Generate the full EMI schedule.

    Due dates fall on the same day of month as ``start_date``, one
    calendar month apart, clamped to month end where needed.

    Parameters
    ----------
    principal : Decimal | float | str
        Amount disbursed.
    annual_rate_percent : Decimal | float | str
        Annual interest rate in percent.
    tenure_months : int
        Number of installments.
    start_date : date | datetime
        Disbursal date; the first installment is due one month later.

    Returns
    -------
    list[EmiInstallment]
        Installments numbered 1..tenure, all pending.
    """
    p = to_decimal(principal, "principal")
    emi = calculate_emi(p, annual_rate_percent, tenure_months)
    rate = monthly_rate(annual_rate_percent)

    if isinstance(start_date, datetime):
        start_date = start_date.date()

    balance = p
    retired = ZERO
    schedule: list[EmiInstallment] = []

    for number in range(1, tenure_months + 1):
        interest = balance * rate
        principal_part = emi - interest
        balance -= principal_part

        principal_amount = quantize_money(principal_part)
        interest_amount = quantize_money(interest)
        if number == tenure_months:
            principal_amount = p - retired
        retired += principal_amount

        schedule.append(
            EmiInstallment(
                emi_number=number,
                due_date=start_date + relativedelta(months=number),
                principal=principal_amount,
                interest=interest_amount,
                total_amount=quantize_money(principal_amount + interest_amount),
            )
        )

    logger.debug(
        "Generated %d installments for principal %s at %s%% (EMI %s)",
        tenure_months,
        p,
        annual_rate_percent,
        quantize_money(emi),
    )
    return schedule


def total_interest(schedule: list[EmiInstallment]) -> Decimal:
    """Sum of scheduled interest."""
    return sum((emi.interest for emi in schedule), ZERO)

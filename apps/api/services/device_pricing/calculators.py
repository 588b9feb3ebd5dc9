from __future__ import annotations

import math
from dataclasses import dataclass

ANNUAL_RATE = 0.059
SELECTED_CONTRACT = "selected"
SELECTED_CONTRACT_RATE = 0.75
LG_CARRIER = "LG"
LG_PREMIER_THRESHOLD = 85000
LG_PREMIER_DISCOUNT = 5250


def floor10(value: float) -> int:
    """Truncate down to the nearest 10 won."""
    return int(math.floor(value / 10)) * 10


def support_with_addon(
    base_rebate: int, margin: int, addon_incentive: int, special_addition: int
) -> int:
    return max(0, base_rebate - margin + addon_incentive + special_addition)


def support_without_addon(
    base_rebate: int, margin: int, addon_deduction: int, special_deduction: int
) -> int:
    # Deductions arrive signed: a negative value lowers the support.
    return max(0, base_rebate - margin + addon_deduction + special_deduction)


@dataclass(frozen=True)
class Amortization:
    total_fee: int = 0
    monthly_payment: int = 0
    monthly_principal: int = 0
    monthly_fee: int = 0


def amortize(principal: float, term_months: int) -> Amortization:
    """
    Equal-payment installment schedule at a fixed 5.9% annual rate.

    monthly = P * r * (1 + r)^n / ((1 + r)^n - 1), with r = 5.9% / 12.
    ``monthly_principal`` and ``monthly_fee`` are per-month averages of the
    principal and interest parts. Every output is floored to 10 won.
    """
    if term_months <= 0 or principal <= 0:
        return Amortization()

    rate = ANNUAL_RATE / 12
    growth = math.pow(1 + rate, term_months)
    monthly_payment = principal * rate * growth / (growth - 1)
    total_fee = monthly_payment * term_months - principal

    return Amortization(
        total_fee=floor10(total_fee),
        monthly_payment=floor10(monthly_payment),
        monthly_principal=floor10(principal / term_months),
        monthly_fee=floor10(total_fee / term_months),
    )


def plan_fee(
    base_fee: int,
    contract_type: str,
    carrier: str,
    lg_premier_selected: bool = False,
) -> int:
    if base_fee <= 0:
        return 0

    fee: float = base_fee
    if (contract_type or "").strip().lower() == SELECTED_CONTRACT:
        fee = fee * SELECTED_CONTRACT_RATE

    # Threshold applies to the undiscounted base fee.
    if (
        (carrier or "").strip().upper() == LG_CARRIER
        and lg_premier_selected
        and base_fee >= LG_PREMIER_THRESHOLD
    ):
        fee = fee - LG_PREMIER_DISCOUNT

    return max(0, floor10(fee))

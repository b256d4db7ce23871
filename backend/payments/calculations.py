"""
Payment split arithmetic.

    - upfront = ceil(total x 25%), balance = total - upfront
    - balance due two days before the booking period ends
    - any single payment splits into gateway fee, platform commission and
      driver earning, which always add back up to the payment exactly
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_CEILING

from common.conf import get_setting

WHOLE = Decimal("1")


@dataclass
class PaymentSplit:
    amount: Decimal
    payhere_fee: Decimal
    system_commission: Decimal
    driver_earning: Decimal


@dataclass
class PaymentBreakdown:
    total_amount: Decimal
    upfront_amount: Decimal
    balance_amount: Decimal
    payhere_fee: Decimal
    system_commission: Decimal
    driver_earning: Decimal
    balance_due_date: date


def _percent(name: str) -> Decimal:
    return Decimal(str(get_setting(name))) / Decimal(100)


def _ceil(amount: Decimal) -> Decimal:
    return amount.quantize(WHOLE, rounding=ROUND_CEILING)


def calculate_payment_split(amount) -> PaymentSplit:
    """Split one payment into gateway fee, commission and driver earning."""
    amount = Decimal(str(amount))

    payhere_fee = min(_ceil(amount * _percent("PAYHERE_FEE_PERCENTAGE")), amount)
    system_commission = _ceil(amount * _percent("SYSTEM_COMMISSION_PERCENTAGE"))

    # Commission absorbs the rounding residual so the parts never exceed the amount
    system_commission = min(system_commission, amount - payhere_fee)
    driver_earning = amount - payhere_fee - system_commission

    return PaymentSplit(
        amount=amount,
        payhere_fee=payhere_fee,
        system_commission=system_commission,
        driver_earning=driver_earning,
    )


def calculate_upfront_amount(total_amount) -> Decimal:
    return _ceil(Decimal(str(total_amount)) * _percent("UPFRONT_PERCENTAGE"))


def calculate_balance_due_date(period_end: date) -> date:
    return period_end - timedelta(days=int(get_setting("BALANCE_DUE_DAYS_BEFORE_END")))


def calculate_payment_breakdown(total_amount, period_end: date) -> PaymentBreakdown:
    """Upfront/balance plan plus the fee split of the full amount."""
    total_amount = Decimal(str(total_amount))
    upfront_amount = calculate_upfront_amount(total_amount)
    split = calculate_payment_split(total_amount)

    return PaymentBreakdown(
        total_amount=total_amount,
        upfront_amount=upfront_amount,
        balance_amount=total_amount - upfront_amount,
        payhere_fee=split.payhere_fee,
        system_commission=split.system_commission,
        driver_earning=split.driver_earning,
        balance_due_date=calculate_balance_due_date(period_end),
    )


def derive_payment_status(total_amount, upfront_paid, balance_paid) -> str:
    """pending / partial / completed from the amounts paid so far."""
    paid = Decimal(str(upfront_paid)) + Decimal(str(balance_paid))
    if paid >= Decimal(str(total_amount)) and paid > 0:
        return "completed"
    if paid > 0:
        return "partial"
    return "pending"

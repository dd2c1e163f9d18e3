"""
Upgrade credit computation.

Money is handled as ``Decimal`` and rounded half-up to the currency quantum
(two decimals by default).
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from flask import current_app

from gymledger.errors import ValidationError

DEFAULT_QUANTUM = Decimal("0.01")


def currency_quantum():
    """Smallest currency unit configured for the application."""
    return Decimal(str(current_app.config.get("CURRENCY_QUANTUM", DEFAULT_QUANTUM)))


def quantize_money(value, quantum=DEFAULT_QUANTUM):
    """
    Round a monetary value half-up to the currency quantum.

    Args:
        value: Amount as Decimal, int, float or str
        quantum (Decimal): Smallest currency unit

    Returns:
        Decimal: The rounded amount
    """
    return Decimal(str(value)).quantize(Decimal(str(quantum)), rounding=ROUND_HALF_UP)


def parse_money(value, field_name='amount', quantum=DEFAULT_QUANTUM):
    """
    Parse caller input into a rounded Decimal amount.

    Raises:
        ValidationError: If the value is not a finite number
    """
    try:
        amount = quantize_money(value, quantum)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name} '{value}'", **{field_name: value})
    if not amount.is_finite():
        raise ValidationError(f"Invalid {field_name} '{value}'", **{field_name: value})
    return amount


def price_per_session(subscription, quantum=DEFAULT_QUANTUM):
    """Price of one session from the subscription's purchase snapshot."""
    if not subscription.total_sessions_snapshot:
        return quantize_money(0, quantum)
    return quantize_money(
        Decimal(subscription.total_amount_snapshot) / subscription.total_sessions_snapshot,
        quantum,
    )


def calculate_upgrade_credit(subscription, quantum=DEFAULT_QUANTUM):
    """
    Value of a subscription's unused sessions.

    ``remaining * total_amount / total_sessions`` using the snapshot taken at
    purchase, not the live plan. Rounding happens once, on the final amount.

    Args:
        subscription (MemberSubscription): Subscription being upgraded
        quantum (Decimal): Smallest currency unit

    Returns:
        Decimal: Credit amount, zero when no session remains
    """
    total_sessions = subscription.total_sessions_snapshot
    remaining = total_sessions - subscription.used_sessions
    if remaining <= 0 or total_sessions <= 0:
        return quantize_money(0, quantum)

    credit = Decimal(remaining) * Decimal(subscription.total_amount_snapshot) / Decimal(total_sessions)
    return quantize_money(credit, quantum)

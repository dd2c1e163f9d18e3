"""
Unit tests for money rounding and upgrade credit computation.
"""
from datetime import date
from decimal import Decimal

import pytest

from gymledger.errors import ValidationError
from gymledger.models.member_subscription import MemberSubscription
from gymledger.services.credit_calculator import (
    calculate_upgrade_credit,
    currency_quantum,
    parse_money,
    price_per_session,
    quantize_money,
)


def _subscription(total_sessions, total_amount, used):
    return MemberSubscription(
        member_id=1,
        plan_id=1,
        start_date=date(2026, 1, 1),
        plan_name_snapshot="Plan",
        total_sessions_snapshot=total_sessions,
        total_amount_snapshot=Decimal(total_amount),
        duration_days_snapshot=30,
        used_sessions=used,
    )


class TestQuantizeMoney:

    @pytest.mark.parametrize("value, expected", [
        ("33.333", Decimal("33.33")),
        ("66.665", Decimal("66.67")),
        ("0.005", Decimal("0.01")),
        (10, Decimal("10.00")),
        (19.99, Decimal("19.99")),
    ])
    def test_rounds_half_up(self, value, expected):
        assert quantize_money(value) == expected

    def test_parse_money_rejects_garbage(self):
        with pytest.raises(ValidationError) as excinfo:
            parse_money("ten dollars", "credit_amount")
        assert excinfo.value.details == {'credit_amount': "ten dollars"}

    def test_parse_money_rejects_none(self):
        with pytest.raises(ValidationError):
            parse_money(None)


class TestUpgradeCredit:

    def test_credit_for_half_used_subscription(self):
        assert calculate_upgrade_credit(_subscription(10, "100.00", 5)) == Decimal("50.00")

    def test_credit_rounds_once_on_final_amount(self):
        """1 of 3 remaining on $100 is $33.33, 2 of 3 is $66.67."""
        assert calculate_upgrade_credit(_subscription(3, "100.00", 2)) == Decimal("33.33")
        assert calculate_upgrade_credit(_subscription(3, "100.00", 1)) == Decimal("66.67")

    def test_no_credit_when_quota_used(self):
        assert calculate_upgrade_credit(_subscription(10, "100.00", 10)) == Decimal("0.00")

    def test_no_credit_for_zero_session_plan(self):
        assert calculate_upgrade_credit(_subscription(0, "50.00", 0)) == Decimal("0.00")

    def test_credit_for_unused_subscription_is_full_price(self):
        assert calculate_upgrade_credit(_subscription(8, "120.00", 0)) == Decimal("120.00")

    def test_price_per_session(self):
        assert price_per_session(_subscription(3, "100.00", 0)) == Decimal("33.33")
        assert price_per_session(_subscription(0, "100.00", 0)) == Decimal("0.00")


def test_configured_quantum(app):
    assert currency_quantum() == Decimal("0.01")
    app.config['CURRENCY_QUANTUM'] = "1"
    try:
        assert calculate_upgrade_credit(_subscription(3, "100.00", 2), currency_quantum()) == Decimal("33")
    finally:
        app.config['CURRENCY_QUANTUM'] = "0.01"


@pytest.mark.parametrize("value", [float('nan'), float('inf'), "NaN", "-Infinity", Decimal("sNaN")])
def test_parse_money_rejects_non_finite(value):
    with pytest.raises(ValidationError):
        parse_money(value, "amount")

"""
Unit tests for session consumption and restoration.
"""
import pytest

from gymledger.errors import (
    InactiveSubscription,
    NothingToRestore,
    QuotaExhausted,
    SubscriptionNotFound,
)
from gymledger.models.member_subscription import MemberSubscription, SubscriptionStatus
from gymledger.services import SessionAccountant, SubscriptionLedger


@pytest.fixture
def accountant():
    return SessionAccountant()


@pytest.fixture
def subscription(make_plan):
    plan = make_plan(name="3 Sessions", price="60.00", sessions_count=3)
    return SubscriptionLedger().create(member_id=11, plan_id=plan.id)


class TestSessionAccountant:
    """Tests for SessionAccountant."""

    def test_consume_increments_and_persists(self, db, accountant, subscription):
        accountant.consume_session(subscription.id)

        db.session.expire_all()
        stored = db.session.get(MemberSubscription, subscription.id)
        assert stored.used_sessions == 1
        assert stored.status == SubscriptionStatus.ACTIVE.value
        assert stored.version_id == 2

    def test_consume_to_quota_expires(self, accountant, subscription):
        for _ in range(3):
            result = accountant.consume_session(subscription.id)

        assert result.used_sessions == 3
        assert result.status == SubscriptionStatus.EXPIRED.value

    def test_consume_after_expiry_is_rejected(self, accountant, subscription):
        for _ in range(3):
            accountant.consume_session(subscription.id)

        with pytest.raises(InactiveSubscription):
            accountant.consume_session(subscription.id)

    def test_consume_on_paused_subscription_is_rejected(self, db, accountant, subscription):
        SubscriptionLedger().pause(subscription.id)

        with pytest.raises(InactiveSubscription):
            accountant.consume_session(subscription.id)

        db.session.expire_all()
        assert db.session.get(MemberSubscription, subscription.id).used_sessions == 0

    def test_consume_unknown_subscription(self, accountant):
        with pytest.raises(SubscriptionNotFound):
            accountant.consume_session(4242)

    def test_restore_reactivates_expired_subscription(self, accountant, subscription):
        for _ in range(3):
            accountant.consume_session(subscription.id)

        result = accountant.restore_session(subscription.id)

        assert result.used_sessions == 2
        assert result.status == SubscriptionStatus.ACTIVE.value

    def test_restore_on_cancelled_subscription_keeps_status(self, accountant, subscription):
        accountant.consume_session(subscription.id)
        SubscriptionLedger().cancel(subscription.id, reason="moved away")

        result = accountant.restore_session(subscription.id)

        assert result.used_sessions == 0
        assert result.status == SubscriptionStatus.CANCELLED.value

    def test_restore_with_nothing_used(self, accountant, subscription):
        with pytest.raises(NothingToRestore):
            accountant.restore_session(subscription.id)

    def test_full_subscription_at_creation_cannot_consume(self, accountant, make_plan, make_session):
        plan = make_plan(name="2 Sessions", price="40.00", sessions_count=2)
        make_session(member_id=12, days_after=0, session_type='trial')
        make_session(member_id=12, days_after=1)
        make_session(member_id=12, days_after=2)

        subscription = SubscriptionLedger().create(member_id=12, plan_id=plan.id)
        assert subscription.used_sessions == 2
        assert subscription.status == SubscriptionStatus.ACTIVE.value

        with pytest.raises(QuotaExhausted):
            accountant.consume_session(subscription.id)

"""
Member subscription model: a purchased plan snapshot with session and payment counters.
"""
from decimal import Decimal
from enum import Enum

from sqlalchemy import CheckConstraint, Index

from gymledger import db
from gymledger.errors import (
    InactiveSubscription,
    InvalidStateTransition,
    NothingToRestore,
    QuotaExhausted,
    SubscriptionNotFound,
)

from .base import BaseModel


class SubscriptionStatus(Enum):
    """Enum for subscription status values."""
    ACTIVE = "active"
    PAUSED = "paused"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


# (source, target) -> triggers allowed to perform the move
ALLOWED_TRANSITIONS = {
    (SubscriptionStatus.ACTIVE, SubscriptionStatus.EXPIRED): {'quota_exhausted'},
    (SubscriptionStatus.EXPIRED, SubscriptionStatus.ACTIVE): {'session_restored'},
    (SubscriptionStatus.ACTIVE, SubscriptionStatus.PAUSED): {'pause'},
    (SubscriptionStatus.PAUSED, SubscriptionStatus.ACTIVE): {'resume'},
    (SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELLED): {'upgrade', 'cancel'},
    (SubscriptionStatus.PAUSED, SubscriptionStatus.CANCELLED): {'upgrade', 'cancel'},
}


def source_statuses(target, trigger):
    """
    List the statuses from which ``trigger`` may move a subscription to ``target``.

    Args:
        target (SubscriptionStatus): Destination status
        trigger (str): Operation name (pause, resume, cancel, upgrade, ...)

    Returns:
        list: Status values (str) accepted as the starting point
    """
    return sorted(source.value for (source, dest), triggers in ALLOWED_TRANSITIONS.items()
                  if dest is target and trigger in triggers)


def ensure_transition(current, target, trigger):
    """Raise InvalidStateTransition unless ``trigger`` may move ``current`` to ``target``."""
    current = SubscriptionStatus(current)
    if trigger not in ALLOWED_TRANSITIONS.get((current, target), ()):
        raise InvalidStateTransition(
            f"Cannot {trigger} a subscription that is {current.value}",
            status=current.value,
        )


class MemberSubscription(BaseModel):
    """
    A member's purchase of a plan.

    Plan terms are snapshotted at purchase time so later catalog edits do
    not alter existing subscriptions. ``version_id`` is the optimistic
    concurrency column: a write based on a stale read fails instead of
    overwriting a concurrent update.

    Attributes:
        member_id (int): Member owning the subscription
        plan_id (int): Catalog plan purchased
        status (str): active, paused, expired or cancelled
        start_date (date): First day of validity
        end_date (date): Last day of validity
        plan_name_snapshot (str): Plan name at purchase
        total_sessions_snapshot (int): Session quota at purchase
        total_amount_snapshot (Decimal): Plan price at purchase
        duration_days_snapshot (int): Validity in days at purchase
        used_sessions (int): Sessions consumed against the quota
        paid_amount (Decimal): Sum of completed payments
        signup_fee_paid (Decimal): Signup fee charged with this subscription
        upgraded_to_id (int): Successor subscription after an upgrade
    """
    __tablename__ = 'member_subscriptions'

    member_id = db.Column(db.Integer, nullable=False)
    plan_id = db.Column(db.Integer, db.ForeignKey('subscription_plans.id'), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=SubscriptionStatus.ACTIVE.value)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=True)

    plan_name_snapshot = db.Column(db.String(100), nullable=False)
    total_sessions_snapshot = db.Column(db.Integer, nullable=False)
    total_amount_snapshot = db.Column(db.Numeric(10, 2), nullable=False)
    duration_days_snapshot = db.Column(db.Integer, nullable=False)

    used_sessions = db.Column(db.Integer, nullable=False, default=0)
    paid_amount = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    signup_fee_paid = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    pause_start_date = db.Column(db.Date, nullable=True)
    pause_end_date = db.Column(db.Date, nullable=True)
    pause_reason = db.Column(db.String(255), nullable=True)
    cancellation_date = db.Column(db.Date, nullable=True)
    cancellation_reason = db.Column(db.String(255), nullable=True)
    cancelled_by = db.Column(db.String(64), nullable=True)

    upgraded_to_id = db.Column(db.Integer, db.ForeignKey('member_subscriptions.id'), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(64), nullable=True)
    version_id = db.Column(db.Integer, nullable=False)

    plan = db.relationship('SubscriptionPlan', back_populates='subscriptions')
    payments = db.relationship('Payment', back_populates='subscription', lazy='dynamic')

    __mapper_args__ = {'version_id_col': version_id}

    __table_args__ = (
        CheckConstraint('used_sessions >= 0', name='ck_member_subscription_used_min'),
        CheckConstraint('used_sessions <= total_sessions_snapshot', name='ck_member_subscription_used_max'),
        CheckConstraint('paid_amount >= 0', name='ck_member_subscription_paid'),
        CheckConstraint('signup_fee_paid >= 0', name='ck_member_subscription_signup_fee'),
        Index('idx_member_subscription_member_status', 'member_id', 'status'),
        Index('idx_member_subscription_plan', 'plan_id'),
        Index('idx_member_subscription_upgraded_to', 'upgraded_to_id'),
    )

    def __init__(self, member_id, plan_id, start_date, plan_name_snapshot,
                 total_sessions_snapshot, total_amount_snapshot, duration_days_snapshot,
                 end_date=None, status=SubscriptionStatus.ACTIVE.value, used_sessions=0,
                 paid_amount=Decimal("0.00"), signup_fee_paid=Decimal("0.00"),
                 notes=None, created_by=None):
        self.member_id = member_id
        self.plan_id = plan_id
        self.start_date = start_date
        self.end_date = end_date
        self.status = status
        self.plan_name_snapshot = plan_name_snapshot
        self.total_sessions_snapshot = total_sessions_snapshot
        self.total_amount_snapshot = Decimal(str(total_amount_snapshot))
        self.duration_days_snapshot = duration_days_snapshot
        self.used_sessions = used_sessions
        self.paid_amount = Decimal(str(paid_amount))
        self.signup_fee_paid = Decimal(str(signup_fee_paid))
        self.notes = notes
        self.created_by = created_by

    @property
    def remaining_sessions(self):
        return max(0, self.total_sessions_snapshot - self.used_sessions)

    @property
    def amount_due(self):
        """Plan price plus the signup fee charged with this subscription."""
        return Decimal(self.total_amount_snapshot) + Decimal(self.signup_fee_paid or 0)

    @property
    def balance_due(self):
        return max(Decimal("0.00"), self.amount_due - Decimal(self.paid_amount))

    @property
    def is_fully_paid(self):
        return self.balance_due == 0

    @property
    def is_overpaid(self):
        return Decimal(self.paid_amount) > self.amount_due

    @property
    def paid_percentage(self):
        if self.amount_due <= 0:
            return 0.0
        return float(Decimal(self.paid_amount) / self.amount_due * 100)

    @property
    def completion_percentage(self):
        if not self.total_sessions_snapshot:
            return 0.0
        return self.used_sessions / self.total_sessions_snapshot * 100

    def days_remaining(self, on):
        """
        Days left until ``end_date``.

        Args:
            on (date): Reference date

        Returns:
            int: Days remaining (never negative) or None without an end date
        """
        if self.end_date is None:
            return None
        return max(0, (self.end_date - on).days)

    def append_note(self, note):
        """Append a line to the subscription notes."""
        self.notes = f"{self.notes}\n{note}" if self.notes else note
        return self

    def transition(self, target, trigger):
        """Move to ``target`` if the transition table allows ``trigger`` from the current status."""
        ensure_transition(self.status, target, trigger)
        self.status = target.value
        return self

    def consume_session(self):
        """
        Use one session of the quota.

        Reaching the quota moves the subscription to expired in the same write.

        Returns:
            MemberSubscription: The subscription instance
        """
        if self.status != SubscriptionStatus.ACTIVE.value:
            raise InactiveSubscription(
                f"Cannot consume a session from a {self.status} subscription",
                subscription_id=self.id,
                status=self.status,
            )
        if self.used_sessions >= self.total_sessions_snapshot:
            raise QuotaExhausted(
                "No sessions remaining in subscription",
                subscription_id=self.id,
            )

        self.used_sessions += 1
        if self.used_sessions == self.total_sessions_snapshot:
            self.transition(SubscriptionStatus.EXPIRED, 'quota_exhausted')
        return self

    def restore_session(self):
        """
        Give back one session, e.g. when a counted training session is cancelled.

        Only a subscription that expired by filling its quota is reactivated.

        Returns:
            MemberSubscription: The subscription instance
        """
        if self.used_sessions <= 0:
            raise NothingToRestore("No sessions to restore", subscription_id=self.id)

        expired_at_quota = (self.status == SubscriptionStatus.EXPIRED.value and
                            self.used_sessions == self.total_sessions_snapshot)
        self.used_sessions -= 1
        if expired_at_quota:
            self.transition(SubscriptionStatus.ACTIVE, 'session_restored')
        return self

    def mark_upgraded(self, successor, on):
        """
        Close this subscription in favour of ``successor``.

        Args:
            successor (MemberSubscription): The subscription replacing this one
            on (date): Effective date of the upgrade

        Returns:
            MemberSubscription: The subscription instance
        """
        if self.upgraded_to_id is not None:
            raise InvalidStateTransition(
                f"Subscription {self.id} was already upgraded to {self.upgraded_to_id}",
                upgraded_to_id=self.upgraded_to_id,
            )
        self.transition(SubscriptionStatus.CANCELLED, 'upgrade')
        self.upgraded_to_id = successor.id
        self.cancellation_date = on
        self.cancellation_reason = f"Upgraded to {successor.plan_name_snapshot}"
        return self

    @classmethod
    def get_or_404(cls, subscription_id):
        """Load a subscription or raise SubscriptionNotFound."""
        subscription = db.session.get(cls, subscription_id)
        if subscription is None:
            raise SubscriptionNotFound(subscription_id)
        return subscription

    @classmethod
    def get_for_update(cls, subscription_id):
        """
        Load a subscription with a row lock for a read-modify-write.

        The row is re-read even if already in the session identity map so the
        write is based on the committed state.
        """
        subscription = (
            cls.query
            .filter_by(id=subscription_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if subscription is None:
            raise SubscriptionNotFound(subscription_id)
        return subscription

    @classmethod
    def get_member_active_subscription(cls, member_id):
        """Get a member's most recent active subscription, or None."""
        return cls.query.filter_by(
            member_id=member_id,
            status=SubscriptionStatus.ACTIVE.value
        ).order_by(cls.start_date.desc(), cls.id.desc()).first()

    @classmethod
    def get_member_subscription_history(cls, member_id):
        """Get all of a member's subscriptions, newest first."""
        return cls.query.filter(
            cls.member_id == member_id
        ).order_by(cls.created_at.desc(), cls.id.desc()).all()

    def __repr__(self):
        return (f"<MemberSubscription Member:{self.member_id} Plan:{self.plan_id} "
                f"Status:{self.status} Used:{self.used_sessions}/{self.total_sessions_snapshot}>")

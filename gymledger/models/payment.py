"""
Subscription payment model.
"""
from decimal import Decimal
from enum import Enum

from sqlalchemy import CheckConstraint, Index, UniqueConstraint

from gymledger import db

from .base import BaseModel


class PaymentStatus(Enum):
    """Enum for payment status values."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class PaymentMethod(Enum):
    """Enum for accepted payment methods."""
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    ONLINE = "online"
    CHECK = "check"


class Payment(BaseModel):
    """
    A payment made towards a member subscription.

    Payments are append-only; corrections are recorded as new rows.

    Attributes:
        subscription_id (int): Subscription being paid for
        member_id (int): Paying member
        amount (Decimal): Amount paid, always positive
        payment_method (str): How the payment was made
        payment_status (str): Payment status
        payment_date (date): Day the payment was received
        reference_number (str): External reference, unique per subscription
        receipt_number (str): Receipt identifier (e.g. RCPT-2026-0042)
        processed_by (str): Staff identity that recorded the payment
    """
    __tablename__ = 'subscription_payments'

    subscription_id = db.Column(db.Integer, db.ForeignKey('member_subscriptions.id'), nullable=False)
    member_id = db.Column(db.Integer, nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    payment_method = db.Column(db.String(20), nullable=False, default=PaymentMethod.CASH.value)
    payment_status = db.Column(db.String(20), nullable=False, default=PaymentStatus.COMPLETED.value)
    payment_date = db.Column(db.Date, nullable=False)
    reference_number = db.Column(db.String(100), nullable=True)
    receipt_number = db.Column(db.String(30), nullable=True, unique=True)
    notes = db.Column(db.Text, nullable=True)
    processed_by = db.Column(db.String(64), nullable=True)

    subscription = db.relationship('MemberSubscription', back_populates='payments')

    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_subscription_payment_amount'),
        UniqueConstraint('subscription_id', 'reference_number', name='uix_payment_subscription_reference'),
        Index('idx_subscription_payment_subscription_status', 'subscription_id', 'payment_status'),
        Index('idx_subscription_payment_member_date', 'member_id', 'payment_date'),
    )

    def __init__(self, subscription_id, member_id, amount, payment_date,
                 payment_method=PaymentMethod.CASH.value,
                 payment_status=PaymentStatus.COMPLETED.value,
                 reference_number=None, notes=None, processed_by=None):
        self.subscription_id = subscription_id
        self.member_id = member_id
        self.amount = Decimal(str(amount))
        self.payment_date = payment_date
        self.payment_method = payment_method
        self.payment_status = payment_status
        self.reference_number = reference_number
        self.notes = notes
        self.processed_by = processed_by

    @classmethod
    def get_subscription_payments(cls, subscription_id):
        """Payments for a subscription, most recent first."""
        return cls.query.filter_by(subscription_id=subscription_id).order_by(
            cls.payment_date.desc(), cls.id.desc()
        ).all()

    @classmethod
    def get_member_payments(cls, member_id):
        """Payments made by a member across all subscriptions, most recent first."""
        return cls.query.filter_by(member_id=member_id).order_by(
            cls.payment_date.desc(), cls.id.desc()
        ).all()

    def __repr__(self):
        return f"<Payment Subscription:{self.subscription_id} {self.amount} {self.payment_status}>"

"""
Subscription plan catalog entries.
"""
from decimal import Decimal

from sqlalchemy import CheckConstraint, Index

from gymledger import db

from .base import BaseModel


class SubscriptionPlan(BaseModel):
    """
    Catalog entry a member subscription is purchased from.

    The engine only reads plans; their terms are copied onto each
    subscription at purchase time.

    Attributes:
        name (str): Plan name (e.g., "10 Sessions", "Unlimited Quarter")
        description (str): Plan description
        price (Decimal): Price of the plan
        signup_fee (Decimal): One-off fee charged on a member's first purchase
        sessions_count (int): Number of sessions the plan entitles to
        duration_months (int): Validity of the plan in months
        is_active (bool): Whether the plan can currently be sold
        is_collaboration_plan (bool): Partnership plan flag
        sort_order (int): Display order for plans in UI
    """
    __tablename__ = 'subscription_plans'

    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    signup_fee = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    sessions_count = db.Column(db.Integer, nullable=False)
    duration_months = db.Column(db.Integer, nullable=False, default=1)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_collaboration_plan = db.Column(db.Boolean, nullable=False, default=False)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    subscriptions = db.relationship('MemberSubscription', back_populates='plan', lazy='dynamic')

    __table_args__ = (
        CheckConstraint('price >= 0', name='ck_subscription_plan_price'),
        CheckConstraint('sessions_count >= 0', name='ck_subscription_plan_sessions'),
        Index('idx_subscription_plan_active_sort', 'is_active', 'sort_order'),
    )

    def __init__(self, name, price, sessions_count, duration_months=1,
                 signup_fee=Decimal("0.00"), description=None, is_active=True,
                 is_collaboration_plan=False, sort_order=0):
        self.name = name
        self.description = description
        self.price = Decimal(str(price))
        self.signup_fee = Decimal(str(signup_fee))
        self.sessions_count = sessions_count
        self.duration_months = duration_months
        self.is_active = is_active
        self.is_collaboration_plan = is_collaboration_plan
        self.sort_order = sort_order

    def __repr__(self):
        return f"<SubscriptionPlan {self.name} - ${self.price}>"

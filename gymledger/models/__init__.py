"""
Models package for SQLAlchemy database models.
"""
from .base import BaseModel
from .user import User
from .subscription_plan import SubscriptionPlan
from .member_subscription import MemberSubscription, SubscriptionStatus
from .training_session import SessionStatus, SessionType, TrainingSession
from .payment import Payment, PaymentMethod, PaymentStatus

__all__ = [
    'BaseModel',
    'User',
    'SubscriptionPlan',
    'MemberSubscription',
    'SubscriptionStatus',
    'TrainingSession',
    'SessionType',
    'SessionStatus',
    'Payment',
    'PaymentMethod',
    'PaymentStatus',
]

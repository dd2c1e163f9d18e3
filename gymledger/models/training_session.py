"""
Training session model.

Sessions are scheduled and completed elsewhere in the back office; the
ledger only reads them and records which subscription a completed session
was counted in.
"""
from enum import Enum

from sqlalchemy import Index

from gymledger import db

from .base import BaseModel


class SessionType(Enum):
    """Enum for training session types."""
    TRIAL = "trial"
    MEMBER = "member"
    CONTRACTUAL = "contractual"
    MULTI_SITE = "multi_site"
    COLLABORATION = "collaboration"
    MAKEUP = "makeup"
    NON_BOOKABLE = "non_bookable"


class SessionStatus(Enum):
    """Enum for training session status values."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class TrainingSession(BaseModel):
    """
    A booked training session.

    Attributes:
        member_id (int): Member attending the session
        session_type (str): Kind of session (trial, contractual, ...)
        status (str): Session status
        scheduled_start (datetime): Planned start
        scheduled_end (datetime): Planned end
        counted_in_subscription_id (int): Subscription the session was counted in, set once
    """
    __tablename__ = 'training_sessions'

    member_id = db.Column(db.Integer, nullable=False)
    session_type = db.Column(db.String(20), nullable=False, default=SessionType.MEMBER.value)
    status = db.Column(db.String(20), nullable=False, default=SessionStatus.SCHEDULED.value)
    scheduled_start = db.Column(db.DateTime, nullable=False)
    scheduled_end = db.Column(db.DateTime, nullable=True)
    counted_in_subscription_id = db.Column(
        db.Integer, db.ForeignKey('member_subscriptions.id'), nullable=True
    )

    __table_args__ = (
        Index('idx_training_session_member_type_start', 'member_id', 'session_type', 'scheduled_start'),
        Index('idx_training_session_counted_in', 'counted_in_subscription_id'),
    )

    def __init__(self, member_id, scheduled_start, session_type=SessionType.MEMBER.value,
                 status=SessionStatus.SCHEDULED.value, scheduled_end=None):
        self.member_id = member_id
        self.scheduled_start = scheduled_start
        self.scheduled_end = scheduled_end
        self.session_type = session_type
        self.status = status

    def __repr__(self):
        return f"<TrainingSession Member:{self.member_id} {self.session_type} {self.status}>"

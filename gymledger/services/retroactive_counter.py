"""
Retroactive counting of sessions completed before a subscription was bought.

A member may train on contractual sessions after their trial and only then
purchase a subscription. Those completed sessions are charged against the
new subscription's quota, and each is counted in at most one subscription.
"""
from dataclasses import dataclass, field

from flask import current_app
from sqlalchemy import update
from sqlalchemy.orm.attributes import set_committed_value

from gymledger import db
from gymledger.errors import ConcurrencyConflict
from gymledger.models.training_session import SessionStatus, SessionType, TrainingSession


@dataclass
class RetroactiveCount:
    """Sessions selected for a new subscription and those left over."""
    sessions: list = field(default_factory=list)
    excess: int = 0

    @property
    def count(self):
        return len(self.sessions)

    def describe(self):
        """Human readable note for the subscription, or None when nothing was counted."""
        if not self.sessions and not self.excess:
            return None
        note = f"{self.count} contractual session(s) counted retroactively"
        if self.excess:
            note += f"; {self.excess} more completed session(s) left uncounted (quota reached)"
        return note


class RetroactiveCounter:
    """Selects and claims uncounted contractual sessions for a new subscription."""

    def last_trial_session(self, member_id):
        """The member's most recent trial session, whatever its status."""
        return TrainingSession.query.filter_by(
            member_id=member_id,
            session_type=SessionType.TRIAL.value
        ).order_by(TrainingSession.scheduled_start.desc(), TrainingSession.id.desc()).first()

    def find_uncounted_sessions(self, member_id):
        """
        Completed contractual sessions since the member's last trial that no
        subscription has counted yet, oldest first.

        Returns:
            list: TrainingSession rows, locked for update
        """
        trial = self.last_trial_session(member_id)
        if trial is None:
            return []

        return TrainingSession.query.filter(
            TrainingSession.member_id == member_id,
            TrainingSession.session_type == SessionType.CONTRACTUAL.value,
            TrainingSession.status == SessionStatus.COMPLETED.value,
            TrainingSession.scheduled_start >= trial.scheduled_start,
            TrainingSession.counted_in_subscription_id.is_(None),
        ).order_by(
            TrainingSession.scheduled_start.asc(), TrainingSession.id.asc()
        ).with_for_update().all()

    def select(self, member_id, quota):
        """
        Pick the sessions a new subscription with ``quota`` sessions will count.

        Sessions beyond the quota stay uncounted so a later subscription can
        claim them.

        Args:
            member_id (int): Member purchasing the subscription
            quota (int): Session quota of the new subscription

        Returns:
            RetroactiveCount: Selected sessions and the number left over
        """
        candidates = self.find_uncounted_sessions(member_id)
        selected = candidates[:max(quota, 0)]
        excess = len(candidates) - len(selected)
        if excess:
            current_app.logger.warning(
                "Member %s has %d uncounted completed session(s) but the plan covers %d; "
                "%d left uncounted",
                member_id, len(candidates), quota, excess,
            )
        return RetroactiveCount(sessions=selected, excess=excess)

    def claim(self, selection, subscription):
        """
        Record ``subscription`` as the subscription the selected sessions were
        counted in.

        Runs inside the subscription's creation transaction. The write only
        touches sessions still uncounted; if another transaction got to any of
        them first the whole creation is aborted.

        Raises:
            ConcurrencyConflict: If a selected session was counted concurrently
        """
        if not selection.sessions:
            return 0

        session_ids = [training_session.id for training_session in selection.sessions]
        result = db.session.execute(
            update(TrainingSession)
            .where(
                TrainingSession.id.in_(session_ids),
                TrainingSession.counted_in_subscription_id.is_(None),
            )
            .values(counted_in_subscription_id=subscription.id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != len(session_ids):
            raise ConcurrencyConflict(
                "Training sessions were counted by another subscription concurrently",
                member_id=subscription.member_id,
            )

        for training_session in selection.sessions:
            set_committed_value(training_session, 'counted_in_subscription_id', subscription.id)
        return len(session_ids)

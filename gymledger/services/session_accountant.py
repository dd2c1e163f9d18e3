"""
Session consumption and restoration against a subscription's quota.
"""
from flask import current_app

from gymledger.models.member_subscription import MemberSubscription
from gymledger.services.unit_of_work import unit_of_work


class SessionAccountant:
    """
    Meters sessions against a subscription.

    Each call is a locked read-modify-write of one subscription row; the
    version column turns a write based on a stale read into a
    ConcurrencyConflict instead of a lost update.
    """

    def consume_session(self, subscription_id):
        """
        Use one session.

        Returns:
            MemberSubscription: The updated subscription

        Raises:
            SubscriptionNotFound: Unknown subscription
            InactiveSubscription: Subscription is not active
            QuotaExhausted: All sessions are already used
            ConcurrencyConflict: A concurrent write won the race
        """
        with unit_of_work():
            subscription = MemberSubscription.get_for_update(subscription_id)
            subscription.consume_session()

        current_app.logger.info(
            "Consumed session on subscription %s (%d/%d, %s)",
            subscription_id, subscription.used_sessions,
            subscription.total_sessions_snapshot, subscription.status,
        )
        return subscription

    def restore_session(self, subscription_id):
        """
        Give one session back, e.g. after a counted session is cancelled.

        Returns:
            MemberSubscription: The updated subscription

        Raises:
            SubscriptionNotFound: Unknown subscription
            NothingToRestore: No session has been used
            ConcurrencyConflict: A concurrent write won the race
        """
        with unit_of_work():
            subscription = MemberSubscription.get_for_update(subscription_id)
            subscription.restore_session()

        current_app.logger.info(
            "Restored session on subscription %s (%d/%d, %s)",
            subscription_id, subscription.used_sessions,
            subscription.total_sessions_snapshot, subscription.status,
        )
        return subscription

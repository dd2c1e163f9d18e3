"""
Read-only access to the subscription plan catalog.
"""
from gymledger import db
from gymledger.errors import PlanNotFound
from gymledger.models.subscription_plan import SubscriptionPlan


class PlanCatalog:
    """Looks up plan definitions by identifier."""

    def get_plan(self, plan_id):
        """
        Get a plan by id.

        Raises:
            PlanNotFound: If the id does not resolve
        """
        plan = db.session.get(SubscriptionPlan, plan_id) if plan_id is not None else None
        if plan is None:
            raise PlanNotFound(plan_id)
        return plan

    def list_active_plans(self):
        """Active plans in display order."""
        return SubscriptionPlan.query.filter_by(is_active=True).order_by(
            SubscriptionPlan.sort_order, SubscriptionPlan.id
        ).all()

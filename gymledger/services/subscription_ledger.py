"""
Subscription lifecycle: creation from the plan catalog, pause, resume,
cancellation and upgrades.
"""
from decimal import Decimal

from flask import current_app
from sqlalchemy import update

from gymledger import db
from gymledger.errors import CreditMismatch, InvalidStateTransition, ValidationError
from gymledger.models.member_subscription import (
    MemberSubscription,
    SubscriptionStatus,
    ensure_transition,
    source_statuses,
)
from gymledger.services.credit_calculator import (
    calculate_upgrade_credit,
    currency_quantum,
    parse_money,
    quantize_money,
)
from gymledger.services.payment_recorder import PaymentRecorder
from gymledger.services.plan_catalog import PlanCatalog
from gymledger.services.retroactive_counter import RetroactiveCounter
from gymledger.services.unit_of_work import unit_of_work
from gymledger.utils.clock import add_months, today, utcnow


class SubscriptionLedger:
    """
    Orchestrates subscription creation and lifecycle changes.

    Args:
        catalog (PlanCatalog, optional): Plan lookup
        counter (RetroactiveCounter, optional): Retroactive session counting
        payments (PaymentRecorder, optional): Payment recording
        clock (callable, optional): Returns the current UTC datetime
    """

    def __init__(self, catalog=None, counter=None, payments=None, clock=utcnow):
        self.clock = clock
        self.catalog = catalog or PlanCatalog()
        self.counter = counter or RetroactiveCounter()
        self.payments = payments or PaymentRecorder(clock=clock)

    def create(self, member_id, plan_id, start_date=None, initial_payment_amount=None,
               payment_method=None, include_signup_fee=False, signup_fee_paid=None,
               notes=None, created_by=None):
        """
        Create a subscription with the plan's terms snapshotted.

        Completed contractual sessions since the member's last trial are
        counted retroactively, up to the plan's quota. The subscription, the
        session back-references and the optional initial payment are written
        in one transaction.

        Args:
            member_id (int): Member purchasing the plan
            plan_id (int): Catalog plan
            start_date (date, optional): Defaults to today
            initial_payment_amount (optional): Recorded as a payment when > 0
            payment_method (str, optional): Method for the initial payment
            include_signup_fee (bool): Charge the plan's signup fee
            signup_fee_paid (optional): Signup fee amount, defaults to the plan's
            notes (str, optional): Free text
            created_by (str, optional): Staff identity for the audit trail

        Returns:
            MemberSubscription: The new subscription

        Raises:
            PlanNotFound: If the plan does not exist
        """
        if member_id is None:
            raise ValidationError("member_id is required")

        with unit_of_work():
            plan = self.catalog.get_plan(plan_id)
            start_date = start_date or today(self.clock)

            if include_signup_fee:
                signup_fee = (plan.signup_fee if signup_fee_paid is None
                              else parse_money(signup_fee_paid, "signup_fee_paid"))
                if signup_fee < 0:
                    raise ValidationError("Signup fee cannot be negative", signup_fee_paid=signup_fee_paid)
            else:
                signup_fee = Decimal("0.00")

            subscription = MemberSubscription(
                member_id=member_id,
                plan_id=plan.id,
                start_date=start_date,
                end_date=add_months(start_date, plan.duration_months),
                plan_name_snapshot=plan.name,
                total_sessions_snapshot=plan.sessions_count,
                total_amount_snapshot=plan.price,
                duration_days_snapshot=plan.duration_months * current_app.config.get('DAYS_PER_PLAN_MONTH', 30),
                signup_fee_paid=quantize_money(signup_fee),
                notes=notes,
                created_by=created_by,
            )

            selection = self.counter.select(member_id, plan.sessions_count)
            subscription.used_sessions = selection.count
            retro_note = selection.describe()
            if retro_note:
                subscription.append_note(retro_note)

            db.session.add(subscription)
            db.session.flush()
            self.counter.claim(selection, subscription)

            initial_payment = (parse_money(initial_payment_amount, "initial_payment_amount")
                               if initial_payment_amount is not None else Decimal("0.00"))
            if initial_payment > 0:
                self.payments.record(
                    subscription_id=subscription.id,
                    amount=initial_payment,
                    payment_method=payment_method,
                    payment_date=start_date,
                    notes="Initial payment for subscription",
                    processed_by=created_by,
                )

        current_app.logger.info(
            "Created subscription %s for member %s on plan %s (%d session(s) counted retroactively)",
            subscription.id, member_id, plan_id, selection.count,
        )
        return subscription

    def pause(self, subscription_id, reason=None):
        """
        Pause an active subscription.

        Raises:
            InvalidStateTransition: If the subscription is not active at write time
        """
        subscription = self._conditional_transition(
            subscription_id, SubscriptionStatus.PAUSED, 'pause',
            pause_start_date=today(self.clock),
            pause_end_date=None,
            pause_reason=reason,
        )
        current_app.logger.info("Paused subscription %s", subscription_id)
        return subscription

    def resume(self, subscription_id):
        """
        Resume a paused subscription.

        Raises:
            InvalidStateTransition: If the subscription is not paused at write time
        """
        subscription = self._conditional_transition(
            subscription_id, SubscriptionStatus.ACTIVE, 'resume',
            pause_end_date=today(self.clock),
        )
        current_app.logger.info("Resumed subscription %s", subscription_id)
        return subscription

    def cancel(self, subscription_id, reason=None, cancelled_by=None):
        """
        Cancel an active or paused subscription.

        Raises:
            InvalidStateTransition: If the subscription is expired or already cancelled
        """
        subscription = self._conditional_transition(
            subscription_id, SubscriptionStatus.CANCELLED, 'cancel',
            cancellation_date=today(self.clock),
            cancellation_reason=reason,
            cancelled_by=cancelled_by,
        )
        current_app.logger.info("Cancelled subscription %s", subscription_id)
        return subscription

    def upgrade(self, current_subscription_id, new_plan_id, credit_amount,
                effective_date=None, payment_method=None, created_by=None):
        """
        Replace a subscription with one on a new plan, crediting unused sessions.

        The caller's credit is checked against a fresh computation so a stale
        client-side value cannot be applied. The new subscription never
        carries a signup fee. Creating the successor and cancelling the
        predecessor happen in one transaction.

        Args:
            current_subscription_id (int): Subscription being upgraded
            new_plan_id (int): Target plan
            credit_amount: Credit the caller expects to apply
            effective_date (date, optional): Start of the new subscription
            payment_method (str, optional): Method for the balance payment
            created_by (str, optional): Staff identity for the audit trail

        Returns:
            MemberSubscription: The successor subscription

        Raises:
            CreditMismatch: If the credit differs from the recomputed value
            InvalidStateTransition: If the subscription cannot be upgraded
            PlanNotFound / SubscriptionNotFound: Unknown plan or subscription
        """
        with unit_of_work():
            current = MemberSubscription.get_for_update(current_subscription_id)
            new_plan = self.catalog.get_plan(new_plan_id)
            ensure_transition(current.status, SubscriptionStatus.CANCELLED, 'upgrade')

            quantum = currency_quantum()
            credit = calculate_upgrade_credit(current, quantum)
            supplied = parse_money(credit_amount, "credit_amount", quantum)
            if supplied != credit:
                raise CreditMismatch(expected=credit, supplied=supplied)

            effective_date = effective_date or today(self.clock)
            successor = self.create(
                member_id=current.member_id,
                plan_id=new_plan.id,
                start_date=effective_date,
                initial_payment_amount=max(Decimal("0.00"), Decimal(new_plan.price) - credit),
                payment_method=payment_method,
                include_signup_fee=False,
                notes=(f"Upgraded from {current.plan_name_snapshot} (subscription #{current.id}). "
                       f"Credit applied: ${credit:.2f}"),
                created_by=created_by,
            )
            current.mark_upgraded(successor, on=effective_date)

        current_app.logger.info(
            "Upgraded subscription %s to %s (plan %s, credit %s)",
            current_subscription_id, successor.id, new_plan_id, credit,
        )
        return successor

    def calculate_upgrade_credit(self, subscription_id):
        """Credit the subscription's unused sessions are worth right now."""
        return calculate_upgrade_credit(MemberSubscription.get_or_404(subscription_id), currency_quantum())

    def get_subscription(self, subscription_id):
        return MemberSubscription.get_or_404(subscription_id)

    def get_member_active_subscription(self, member_id):
        return MemberSubscription.get_member_active_subscription(member_id)

    def get_member_subscription_history(self, member_id):
        return MemberSubscription.get_member_subscription_history(member_id)

    def _conditional_transition(self, subscription_id, target, trigger, **values):
        """
        Apply a status change with a single guarded UPDATE.

        The row only changes if its status is still one the transition table
        accepts for ``trigger`` when the write happens, so a concurrent
        consume or upgrade cannot be overwritten.
        """
        sources = source_statuses(target, trigger)
        with unit_of_work():
            result = db.session.execute(
                update(MemberSubscription)
                .where(
                    MemberSubscription.id == subscription_id,
                    MemberSubscription.status.in_(sources),
                )
                .values(
                    status=target.value,
                    version_id=MemberSubscription.version_id + 1,
                    updated_at=utcnow(),
                    **values
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                subscription = MemberSubscription.get_or_404(subscription_id)
                db.session.refresh(subscription)
                raise InvalidStateTransition(
                    f"Cannot {trigger} a subscription that is {subscription.status}",
                    subscription_id=subscription_id,
                    status=subscription.status,
                )
            subscription = MemberSubscription.query.filter_by(
                id=subscription_id
            ).populate_existing().one()
        return subscription


"""
Payment recording and paid-amount reconciliation.
"""
from decimal import Decimal

from flask import current_app
from sqlalchemy import func

from gymledger import db
from gymledger.errors import InvalidPayment, ValidationError
from gymledger.models.member_subscription import MemberSubscription
from gymledger.models.payment import Payment, PaymentMethod, PaymentStatus
from gymledger.services.credit_calculator import currency_quantum, parse_money, quantize_money
from gymledger.services.unit_of_work import unit_of_work
from gymledger.utils.clock import today, utcnow

PAYMENT_METHODS = {method.value for method in PaymentMethod}


class PaymentRecorder:
    """
    Appends payments and keeps ``paid_amount`` equal to the sum of a
    subscription's completed payments.

    The sum is always recomputed from the payment rows rather than
    incremented, so retries and out-of-order writes converge on the same
    total.
    """

    def __init__(self, clock=utcnow):
        self.clock = clock

    def record(self, subscription_id, amount, payment_method=None, payment_date=None,
               member_id=None, reference_number=None, notes=None, processed_by=None):
        """
        Record a completed payment for a subscription.

        Args:
            subscription_id (int): Subscription being paid for
            amount: Positive amount
            payment_method (str, optional): One of PaymentMethod, defaults to configuration
            payment_date (date, optional): Defaults to today
            member_id (int, optional): Must match the subscription's member when given
            reference_number (str, optional): External reference; a repeat returns the first payment
            notes (str, optional): Free text
            processed_by (str, optional): Staff identity for the audit trail

        Returns:
            Payment: The recorded (or previously recorded) payment

        Raises:
            InvalidPayment: On a non-positive amount, unknown method or member mismatch
            SubscriptionNotFound: If the subscription does not exist
        """
        amount = self._validate_amount(amount)
        payment_method = payment_method or current_app.config.get('DEFAULT_PAYMENT_METHOD', 'cash')
        if payment_method not in PAYMENT_METHODS:
            raise InvalidPayment(f"Unknown payment method '{payment_method}'", payment_method=payment_method)

        with unit_of_work():
            subscription = MemberSubscription.get_for_update(subscription_id)
            if member_id is not None and member_id != subscription.member_id:
                raise InvalidPayment(
                    f"Member {member_id} does not own subscription {subscription_id}",
                    member_id=member_id,
                )

            if reference_number:
                existing = Payment.query.filter_by(
                    subscription_id=subscription.id,
                    reference_number=reference_number
                ).first()
                if existing is not None:
                    current_app.logger.info(
                        "Payment %s already recorded for subscription %s (reference %s)",
                        existing.id, subscription.id, reference_number,
                    )
                    self._reconcile(subscription)
                    return existing

            payment = Payment(
                subscription_id=subscription.id,
                member_id=subscription.member_id,
                amount=amount,
                payment_date=payment_date or today(self.clock),
                payment_method=payment_method,
                payment_status=PaymentStatus.COMPLETED.value,
                reference_number=reference_number,
                notes=notes,
                processed_by=processed_by,
            )
            db.session.add(payment)
            db.session.flush()
            payment.receipt_number = self._receipt_number(payment)

            total = self._reconcile(subscription)

        current_app.logger.info(
            "Recorded payment %s of %s for subscription %s; paid amount now %s",
            payment.id, amount, subscription_id, total,
        )
        return payment

    def reconcile(self, subscription_id):
        """
        Recompute a subscription's paid amount from its completed payments.

        Returns:
            Decimal: The reconciled paid amount
        """
        with unit_of_work():
            subscription = MemberSubscription.get_for_update(subscription_id)
            total = self._reconcile(subscription)
        return total

    def balance_info(self, subscription):
        """
        Summarize what is owed on a subscription.

        Returns:
            dict: amount due, paid amount, balance and payment flags
        """
        return {
            'total_amount': subscription.amount_due,
            'paid_amount': Decimal(subscription.paid_amount),
            'balance': subscription.balance_due,
            'paid_percentage': subscription.paid_percentage,
            'is_fully_paid': subscription.is_fully_paid,
            'is_overpaid': subscription.is_overpaid,
        }

    def get_subscription_payments(self, subscription_id):
        MemberSubscription.get_or_404(subscription_id)
        return Payment.get_subscription_payments(subscription_id)

    def get_member_payments(self, member_id):
        return Payment.get_member_payments(member_id)

    def _reconcile(self, subscription):
        total = db.session.query(
            func.coalesce(func.sum(Payment.amount), 0)
        ).filter(
            Payment.subscription_id == subscription.id,
            Payment.payment_status == PaymentStatus.COMPLETED.value
        ).scalar()
        subscription.paid_amount = quantize_money(total, currency_quantum())
        return subscription.paid_amount

    def _receipt_number(self, payment):
        prefix = current_app.config.get('RECEIPT_PREFIX', 'RCPT')
        return f"{prefix}-{payment.payment_date.year}-{payment.id:04d}"

    @staticmethod
    def _validate_amount(amount):
        try:
            value = parse_money(amount, quantum=currency_quantum())
        except ValidationError:
            raise InvalidPayment(f"Invalid payment amount '{amount}'", amount=amount)
        if value <= 0:
            raise InvalidPayment("Payment amount must be greater than zero", amount=amount)
        return value

"""
Routes for the plan catalog, member subscriptions and payments.
"""
from datetime import date

from flask import request
from flask_jwt_extended import jwt_required
from flask_restx import Resource, fields

from gymledger.errors import ValidationError
from gymledger.models.member_subscription import SubscriptionStatus
from gymledger.models.payment import PaymentMethod, PaymentStatus
from gymledger.services import (
    PaymentRecorder,
    PlanCatalog,
    SessionAccountant,
    SubscriptionLedger,
)
from gymledger.utils.auth import admin_required, current_staff_id
from gymledger.utils.clock import today

from . import payment_ns, plan_ns, subscription_ns

# Define the subscription plan model for API
plan_model = plan_ns.model('SubscriptionPlan', {
    'id': fields.Integer(description='Plan ID'),
    'name': fields.String(description='Plan name'),
    'description': fields.String(description='Plan description'),
    'price': fields.Float(description='Plan price'),
    'signup_fee': fields.Float(description='One-off signup fee'),
    'sessions_count': fields.Integer(description='Sessions included'),
    'duration_months': fields.Integer(description='Validity in months'),
    'is_active': fields.Boolean(description='Whether the plan can be purchased'),
    'is_collaboration_plan': fields.Boolean(description='Partner collaboration plan'),
    'sort_order': fields.Integer(description='Display order'),
})

# Define the member subscription model for API
subscription_model = subscription_ns.model('MemberSubscription', {
    'id': fields.Integer(description='Subscription ID'),
    'member_id': fields.Integer(description='Member ID'),
    'plan_id': fields.Integer(description='Plan ID'),
    'status': fields.String(description='Subscription status',
                            enum=[s.value for s in SubscriptionStatus]),
    'start_date': fields.Date(description='Start date'),
    'end_date': fields.Date(description='End date'),
    'plan_name_snapshot': fields.String(description='Plan name at purchase'),
    'total_sessions_snapshot': fields.Integer(description='Session quota at purchase'),
    'total_amount_snapshot': fields.Float(description='Plan price at purchase'),
    'duration_days_snapshot': fields.Integer(description='Validity in days at purchase'),
    'used_sessions': fields.Integer(description='Sessions used'),
    'remaining_sessions': fields.Integer(description='Sessions remaining'),
    'paid_amount': fields.Float(description='Sum of completed payments'),
    'signup_fee_paid': fields.Float(description='Signup fee charged'),
    'pause_start_date': fields.Date(description='Pause start date'),
    'pause_end_date': fields.Date(description='Pause end date'),
    'pause_reason': fields.String(description='Pause reason'),
    'cancellation_date': fields.Date(description='Cancellation date'),
    'cancellation_reason': fields.String(description='Cancellation reason'),
    'cancelled_by': fields.String(description='Staff who cancelled'),
    'upgraded_to_id': fields.Integer(description='Successor subscription after an upgrade'),
    'notes': fields.String(description='Notes'),
    'created_by': fields.String(description='Staff who created the subscription'),
    'created_at': fields.DateTime(description='Creation date'),
    'updated_at': fields.DateTime(description='Last update date'),
})

balance_model = subscription_ns.model('SubscriptionBalance', {
    'total_amount': fields.Float(description='Plan price plus signup fee'),
    'paid_amount': fields.Float(description='Sum of completed payments'),
    'balance': fields.Float(description='Amount still owed'),
    'paid_percentage': fields.Float(description='Share of the amount paid'),
    'is_fully_paid': fields.Boolean(description='Nothing left to pay'),
    'is_overpaid': fields.Boolean(description='More paid than owed'),
})

subscription_detail_model = subscription_ns.inherit('MemberSubscriptionDetail', subscription_model, {
    'days_remaining': fields.Integer(description='Days until the end date'),
    'completion_percentage': fields.Float(description='Share of the quota used'),
    'balance': fields.Nested(balance_model),
})

subscription_input_model = subscription_ns.model('SubscriptionInput', {
    'member_id': fields.Integer(required=True, description='Member purchasing the plan'),
    'plan_id': fields.Integer(required=True, description='Plan to subscribe to'),
    'start_date': fields.Date(description='Start date, defaults to today'),
    'initial_payment_amount': fields.String(
        description='Payment recorded with the subscription, decimal string such as "50.00" (numbers accepted)',
        example='50.00'),
    'payment_method': fields.String(description='Method for the initial payment',
                                    enum=[m.value for m in PaymentMethod]),
    'include_signup_fee': fields.Boolean(description='Charge the plan signup fee', default=False),
    'signup_fee_paid': fields.String(
        description='Signup fee amount, defaults to the plan fee; decimal string (numbers accepted)',
        example='20.00'),
    'notes': fields.String(description='Notes'),
})

reason_input_model = subscription_ns.model('ReasonInput', {
    'reason': fields.String(description='Reason for the change'),
})

upgrade_input_model = subscription_ns.model('UpgradeInput', {
    'current_subscription_id': fields.Integer(required=True, description='Subscription being upgraded'),
    'new_plan_id': fields.Integer(required=True, description='Target plan'),
    'credit_amount': fields.String(
        required=True,
        description='Credit for unused sessions, decimal string as quoted by upgrade-credit (numbers accepted)',
        example='60.00'),
    'effective_date': fields.Date(description='Start of the new subscription, defaults to today'),
    'payment_method': fields.String(description='Method for the balance payment',
                                    enum=[m.value for m in PaymentMethod]),
})

upgrade_credit_model = subscription_ns.model('UpgradeCredit', {
    'subscription_id': fields.Integer(description='Subscription ID'),
    'remaining_sessions': fields.Integer(description='Sessions remaining'),
    'credit_amount': fields.Float(description='Value of the remaining sessions'),
})

payment_model = subscription_ns.model('Payment', {
    'id': fields.Integer(description='Payment ID'),
    'subscription_id': fields.Integer(description='Subscription ID'),
    'member_id': fields.Integer(description='Member ID'),
    'amount': fields.Float(description='Amount paid'),
    'payment_method': fields.String(description='Payment method'),
    'payment_status': fields.String(description='Payment status',
                                    enum=[s.value for s in PaymentStatus]),
    'payment_date': fields.Date(description='Payment date'),
    'reference_number': fields.String(description='External reference'),
    'receipt_number': fields.String(description='Receipt number'),
    'notes': fields.String(description='Notes'),
    'processed_by': fields.String(description='Staff who recorded the payment'),
    'created_at': fields.DateTime(description='Creation date'),
})

payment_input_model = subscription_ns.model('PaymentInput', {
    'amount': fields.String(
        required=True,
        description='Amount paid, decimal string such as "70.50" (numbers accepted)',
        example='70.50'),
    'payment_method': fields.String(description='Payment method',
                                    enum=[m.value for m in PaymentMethod]),
    'payment_date': fields.Date(description='Payment date, defaults to today'),
    'member_id': fields.Integer(description='Paying member, must own the subscription'),
    'reference_number': fields.String(description='External reference for idempotent retries'),
    'notes': fields.String(description='Notes'),
})

reconcile_model = subscription_ns.model('ReconcileResult', {
    'subscription_id': fields.Integer(description='Subscription ID'),
    'paid_amount': fields.Float(description='Reconciled paid amount'),
})

member_payment_model = payment_ns.clone('MemberPayment', payment_model)

ledger = SubscriptionLedger()
accountant = SessionAccountant()
recorder = PaymentRecorder()
catalog = PlanCatalog()


def _parse_date(value, field_name):
    """Parse an optional ISO date from a request body."""
    if value in (None, ''):
        return None
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name} '{value}', expected YYYY-MM-DD",
                              **{field_name: value})


def _require(data, *keys):
    missing = [key for key in keys if data.get(key) is None]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", missing=missing)


def _subscription_detail(subscription):
    """Subscription fields plus the values derived from them."""
    detail = {key: getattr(subscription, key) for key in subscription_model.keys()}
    detail['days_remaining'] = subscription.days_remaining(today())
    detail['completion_percentage'] = subscription.completion_percentage
    detail['balance'] = recorder.balance_info(subscription)
    return detail


# API routes for the plan catalog
@plan_ns.route('/')
class SubscriptionPlanList(Resource):
    """Resource for listing purchasable plans"""

    @plan_ns.doc('list_plans')
    @plan_ns.marshal_list_with(plan_model)
    @jwt_required()
    def get(self):
        """List active subscription plans"""
        return catalog.list_active_plans()


@plan_ns.route('/<int:id>')
@plan_ns.param('id', 'The subscription plan identifier')
class SubscriptionPlanResource(Resource):
    """Resource for individual plans"""

    @plan_ns.doc('get_plan')
    @plan_ns.marshal_with(plan_model)
    @plan_ns.response(404, 'Plan not found')
    @jwt_required()
    def get(self, id):
        """Get a specific subscription plan"""
        return catalog.get_plan(id)


# API routes for member subscriptions
@subscription_ns.route('/')
class MemberSubscriptionList(Resource):
    """Resource for creating member subscriptions"""

    @subscription_ns.doc('create_subscription')
    @subscription_ns.expect(subscription_input_model)
    @subscription_ns.marshal_with(subscription_model, code=201)
    @subscription_ns.response(400, 'Validation error')
    @subscription_ns.response(404, 'Plan not found')
    @jwt_required()
    def post(self):
        """Create a subscription, counting eligible past sessions"""
        data = request.json or {}
        _require(data, 'member_id', 'plan_id')

        subscription = ledger.create(
            member_id=data['member_id'],
            plan_id=data['plan_id'],
            start_date=_parse_date(data.get('start_date'), 'start_date'),
            initial_payment_amount=data.get('initial_payment_amount'),
            payment_method=data.get('payment_method'),
            include_signup_fee=bool(data.get('include_signup_fee', False)),
            signup_fee_paid=data.get('signup_fee_paid'),
            notes=data.get('notes'),
            created_by=current_staff_id(),
        )
        return subscription, 201


@subscription_ns.route('/<int:id>')
@subscription_ns.param('id', 'The subscription identifier')
class MemberSubscriptionResource(Resource):
    """Resource for individual subscriptions"""

    @subscription_ns.doc('get_subscription')
    @subscription_ns.marshal_with(subscription_detail_model)
    @subscription_ns.response(404, 'Subscription not found')
    @jwt_required()
    def get(self, id):
        """Get a subscription with its remaining sessions, days and balance"""
        return _subscription_detail(ledger.get_subscription(id))


@subscription_ns.route('/member/<int:member_id>')
@subscription_ns.param('member_id', 'The member identifier')
class MemberSubscriptionHistory(Resource):
    """Resource for a member's subscriptions"""

    @subscription_ns.doc('get_member_subscriptions')
    @subscription_ns.marshal_list_with(subscription_model)
    @jwt_required()
    def get(self, member_id):
        """List a member's subscriptions, newest first"""
        return ledger.get_member_subscription_history(member_id)


@subscription_ns.route('/member/<int:member_id>/active')
@subscription_ns.param('member_id', 'The member identifier')
class MemberActiveSubscription(Resource):
    """Resource for a member's active subscription"""

    @subscription_ns.doc('get_member_active_subscription')
    @subscription_ns.marshal_with(subscription_model)
    @subscription_ns.response(404, 'No active subscription')
    @jwt_required()
    def get(self, member_id):
        """Get a member's active subscription"""
        subscription = ledger.get_member_active_subscription(member_id)
        if subscription is None:
            subscription_ns.abort(404, f"No active subscription found for member {member_id}")
        return subscription


@subscription_ns.route('/<int:id>/pause')
@subscription_ns.param('id', 'The subscription identifier')
class SubscriptionPause(Resource):
    """Resource for pausing a subscription"""

    @subscription_ns.doc('pause_subscription')
    @subscription_ns.expect(reason_input_model)
    @subscription_ns.marshal_with(subscription_model)
    @subscription_ns.response(409, 'Subscription is not active')
    @jwt_required()
    def post(self, id):
        """Pause an active subscription"""
        data = request.get_json(silent=True) or {}
        return ledger.pause(id, reason=data.get('reason'))


@subscription_ns.route('/<int:id>/resume')
@subscription_ns.param('id', 'The subscription identifier')
class SubscriptionResume(Resource):
    """Resource for resuming a paused subscription"""

    @subscription_ns.doc('resume_subscription')
    @subscription_ns.marshal_with(subscription_model)
    @subscription_ns.response(409, 'Subscription is not paused')
    @jwt_required()
    def post(self, id):
        """Resume a paused subscription"""
        return ledger.resume(id)


@subscription_ns.route('/<int:id>/cancel')
@subscription_ns.param('id', 'The subscription identifier')
class SubscriptionCancel(Resource):
    """Resource for cancelling a subscription"""

    @subscription_ns.doc('cancel_subscription')
    @subscription_ns.expect(reason_input_model)
    @subscription_ns.marshal_with(subscription_model)
    @subscription_ns.response(409, 'Subscription is already expired or cancelled')
    @jwt_required()
    def post(self, id):
        """Cancel an active or paused subscription"""
        data = request.get_json(silent=True) or {}
        return ledger.cancel(id, reason=data.get('reason'), cancelled_by=current_staff_id())


@subscription_ns.route('/<int:id>/consume')
@subscription_ns.param('id', 'The subscription identifier')
class SubscriptionConsume(Resource):
    """Resource for using one session"""

    @subscription_ns.doc('consume_session')
    @subscription_ns.marshal_with(subscription_model)
    @subscription_ns.response(409, 'Subscription inactive, exhausted or concurrently modified')
    @jwt_required()
    def post(self, id):
        """Consume one session from the subscription quota"""
        return accountant.consume_session(id)


@subscription_ns.route('/<int:id>/restore')
@subscription_ns.param('id', 'The subscription identifier')
class SubscriptionRestore(Resource):
    """Resource for giving back one session"""

    @subscription_ns.doc('restore_session')
    @subscription_ns.marshal_with(subscription_model)
    @subscription_ns.response(409, 'No session to restore')
    @jwt_required()
    def post(self, id):
        """Restore one previously consumed session"""
        return accountant.restore_session(id)


@subscription_ns.route('/<int:id>/upgrade-credit')
@subscription_ns.param('id', 'The subscription identifier')
class SubscriptionUpgradeCredit(Resource):
    """Resource for quoting an upgrade credit"""

    @subscription_ns.doc('get_upgrade_credit')
    @subscription_ns.marshal_with(upgrade_credit_model)
    @jwt_required()
    def get(self, id):
        """Value of the subscription's unused sessions"""
        subscription = ledger.get_subscription(id)
        return {
            'subscription_id': subscription.id,
            'remaining_sessions': subscription.remaining_sessions,
            'credit_amount': ledger.calculate_upgrade_credit(id),
        }


@subscription_ns.route('/upgrade')
class SubscriptionUpgrade(Resource):
    """Resource for upgrading a subscription to another plan"""

    @subscription_ns.doc('upgrade_subscription')
    @subscription_ns.expect(upgrade_input_model)
    @subscription_ns.marshal_with(subscription_model, code=201)
    @subscription_ns.response(404, 'Plan or subscription not found')
    @subscription_ns.response(409, 'Subscription cannot be upgraded')
    @subscription_ns.response(422, 'Credit does not match the current value')
    @jwt_required()
    def post(self):
        """Replace a subscription with one on a new plan"""
        data = request.json or {}
        _require(data, 'current_subscription_id', 'new_plan_id', 'credit_amount')

        successor = ledger.upgrade(
            current_subscription_id=data['current_subscription_id'],
            new_plan_id=data['new_plan_id'],
            credit_amount=data['credit_amount'],
            effective_date=_parse_date(data.get('effective_date'), 'effective_date'),
            payment_method=data.get('payment_method'),
            created_by=current_staff_id(),
        )
        return successor, 201


@subscription_ns.route('/<int:id>/payments')
@subscription_ns.param('id', 'The subscription identifier')
class SubscriptionPayments(Resource):
    """Resource for a subscription's payments"""

    @subscription_ns.doc('list_subscription_payments')
    @subscription_ns.marshal_list_with(payment_model)
    @subscription_ns.response(404, 'Subscription not found')
    @jwt_required()
    def get(self, id):
        """List payments for a subscription, most recent first"""
        return recorder.get_subscription_payments(id)

    @subscription_ns.doc('record_payment')
    @subscription_ns.expect(payment_input_model)
    @subscription_ns.marshal_with(payment_model, code=201)
    @subscription_ns.response(400, 'Invalid payment')
    @subscription_ns.response(404, 'Subscription not found')
    @jwt_required()
    def post(self, id):
        """Record a payment and reconcile the paid amount"""
        data = request.json or {}
        _require(data, 'amount')

        payment = recorder.record(
            subscription_id=id,
            amount=data['amount'],
            payment_method=data.get('payment_method'),
            payment_date=_parse_date(data.get('payment_date'), 'payment_date'),
            member_id=data.get('member_id'),
            reference_number=data.get('reference_number'),
            notes=data.get('notes'),
            processed_by=current_staff_id(),
        )
        return payment, 201


@subscription_ns.route('/<int:id>/reconcile')
@subscription_ns.param('id', 'The subscription identifier')
class SubscriptionReconcile(Resource):
    """Resource for recomputing the paid amount"""

    @subscription_ns.doc('reconcile_payments')
    @subscription_ns.response(200, 'Paid amount reconciled', reconcile_model)
    @subscription_ns.response(403, 'Admin privileges required')
    @jwt_required()
    @admin_required()
    def post(self, id):
        """Recompute paid amount from completed payments (admin only)"""
        return {'subscription_id': id, 'paid_amount': float(recorder.reconcile(id))}, 200


# API routes for payment history
@payment_ns.route('/member/<int:member_id>')
@payment_ns.param('member_id', 'The member identifier')
class MemberPayments(Resource):
    """Resource for a member's payment history"""

    @payment_ns.doc('list_member_payments')
    @payment_ns.marshal_list_with(member_payment_model)
    @jwt_required()
    def get(self, member_id):
        """List a member's payments across subscriptions"""
        return recorder.get_member_payments(member_id)

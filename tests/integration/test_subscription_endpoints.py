"""
Integration tests for plan and member subscription endpoints.
"""
import json

import pytest

from gymledger.models.member_subscription import MemberSubscription
from gymledger.models.training_session import SessionType

MEMBER = 61


@pytest.fixture
def plan(make_plan):
    return make_plan(name="10 Sessions", price="100.00", sessions_count=10, signup_fee="20.00")


def _create(client, headers, **payload):
    return client.post('/api/subscriptions/', data=json.dumps(payload), headers=headers)


@pytest.fixture
def subscription_id(client, auth_headers, plan):
    response = _create(client, auth_headers, member_id=MEMBER, plan_id=plan.id)
    assert response.status_code == 201
    return json.loads(response.data)['id']


class TestPlanEndpoints:

    def test_list_active_plans(self, client, auth_headers, make_plan):
        make_plan(name="B", sort_order=2)
        make_plan(name="A", sort_order=1)
        make_plan(name="Retired", is_active=False)

        response = client.get('/api/plans/', headers=auth_headers)

        assert response.status_code == 200
        assert [p['name'] for p in json.loads(response.data)] == ["A", "B"]

    def test_get_plan(self, client, auth_headers, plan):
        response = client.get(f'/api/plans/{plan.id}', headers=auth_headers)
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['price'] == 100.0
        assert data['sessions_count'] == 10

    def test_get_unknown_plan(self, client, auth_headers):
        response = client.get('/api/plans/999', headers=auth_headers)
        assert response.status_code == 404
        assert json.loads(response.data)['code'] == 'plan_not_found'


class TestSubscriptionEndpoints:

    def test_create_subscription(self, client, auth_headers, staff_user, plan):
        response = _create(client, auth_headers, member_id=MEMBER, plan_id=plan.id,
                           start_date='2026-03-01', initial_payment_amount=50,
                           payment_method='card', include_signup_fee=True)

        assert response.status_code == 201
        data = json.loads(response.data)
        assert data['status'] == 'active'
        assert data['start_date'] == '2026-03-01'
        assert data['end_date'] == '2026-04-01'
        assert data['total_amount_snapshot'] == 100.0
        assert data['signup_fee_paid'] == 20.0
        assert data['paid_amount'] == 50.0
        assert data['created_by'] == str(staff_user.id)

    def test_create_counts_sessions_retroactively(self, client, auth_headers, plan, make_session):
        make_session(MEMBER, days_after=0, session_type=SessionType.TRIAL.value)
        make_session(MEMBER, days_after=1)
        make_session(MEMBER, days_after=2)

        response = _create(client, auth_headers, member_id=MEMBER, plan_id=plan.id)

        data = json.loads(response.data)
        assert data['used_sessions'] == 2
        assert data['remaining_sessions'] == 8

    def test_create_validation_errors(self, client, auth_headers, plan):
        assert _create(client, auth_headers, plan_id=plan.id).status_code == 400
        response = _create(client, auth_headers, member_id=MEMBER, plan_id=plan.id, start_date='03/01/2026')
        assert response.status_code == 400
        assert json.loads(response.data)['code'] == 'validation_error'

    def test_create_with_unknown_plan(self, client, auth_headers):
        response = _create(client, auth_headers, member_id=MEMBER, plan_id=999)
        assert response.status_code == 404

    def test_get_subscription_with_derived_values(self, client, auth_headers, subscription_id):
        client.post(f'/api/subscriptions/{subscription_id}/payments',
                    data=json.dumps({'amount': 40}), headers=auth_headers)
        client.post(f'/api/subscriptions/{subscription_id}/consume', headers=auth_headers)

        response = client.get(f'/api/subscriptions/{subscription_id}', headers=auth_headers)

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['used_sessions'] == 1
        assert data['remaining_sessions'] == 9
        assert data['completion_percentage'] == pytest.approx(10.0)
        assert data['days_remaining'] is not None
        assert data['balance'] == {
            'total_amount': 100.0,
            'paid_amount': 40.0,
            'balance': 60.0,
            'paid_percentage': 40.0,
            'is_fully_paid': False,
            'is_overpaid': False,
        }

    def test_get_unknown_subscription(self, client, auth_headers):
        response = client.get('/api/subscriptions/999', headers=auth_headers)
        assert response.status_code == 404
        assert json.loads(response.data)['code'] == 'subscription_not_found'

    def test_member_history_and_active(self, client, auth_headers, plan, subscription_id):
        second = json.loads(_create(client, auth_headers, member_id=MEMBER, plan_id=plan.id).data)['id']
        client.post(f'/api/subscriptions/{second}/cancel', headers=auth_headers)

        history = client.get(f'/api/subscriptions/member/{MEMBER}', headers=auth_headers)
        assert {s['id'] for s in json.loads(history.data)} == {subscription_id, second}

        active = client.get(f'/api/subscriptions/member/{MEMBER}/active', headers=auth_headers)
        assert json.loads(active.data)['id'] == subscription_id

        none = client.get(f'/api/subscriptions/member/{MEMBER + 1}/active', headers=auth_headers)
        assert none.status_code == 404

    def test_pause_resume_cancel(self, client, auth_headers, staff_user, subscription_id):
        base = f'/api/subscriptions/{subscription_id}'

        paused = client.post(f'{base}/pause', data=json.dumps({'reason': 'travel'}), headers=auth_headers)
        assert paused.status_code == 200
        assert json.loads(paused.data)['status'] == 'paused'
        assert json.loads(paused.data)['pause_reason'] == 'travel'

        consume = client.post(f'{base}/consume', headers=auth_headers)
        assert consume.status_code == 409
        assert json.loads(consume.data)['code'] == 'inactive_subscription'

        assert json.loads(client.post(f'{base}/resume', headers=auth_headers).data)['status'] == 'active'

        cancelled = client.post(f'{base}/cancel', data=json.dumps({'reason': 'moving'}), headers=auth_headers)
        data = json.loads(cancelled.data)
        assert data['status'] == 'cancelled'
        assert data['cancelled_by'] == str(staff_user.id)

        again = client.post(f'{base}/pause', headers=auth_headers)
        assert again.status_code == 409
        assert json.loads(again.data)['code'] == 'invalid_state_transition'

    def test_consume_and_restore(self, client, auth_headers, make_plan):
        plan = make_plan(name="1 Session", price="15.00", sessions_count=1)
        subscription_id = json.loads(_create(client, auth_headers, member_id=MEMBER, plan_id=plan.id).data)['id']
        base = f'/api/subscriptions/{subscription_id}'

        consumed = json.loads(client.post(f'{base}/consume', headers=auth_headers).data)
        assert consumed['used_sessions'] == 1
        assert consumed['status'] == 'expired'

        restored = json.loads(client.post(f'{base}/restore', headers=auth_headers).data)
        assert restored['used_sessions'] == 0
        assert restored['status'] == 'active'

        nothing = client.post(f'{base}/restore', headers=auth_headers)
        assert nothing.status_code == 409
        assert json.loads(nothing.data)['code'] == 'nothing_to_restore'


class TestUpgradeEndpoints:

    @pytest.fixture
    def target_plan(self, make_plan):
        return make_plan(name="20 Sessions", price="180.00", sessions_count=20)

    def _use(self, client, headers, subscription_id, times):
        for _ in range(times):
            client.post(f'/api/subscriptions/{subscription_id}/consume', headers=headers)

    def test_upgrade_credit_quote(self, client, auth_headers, subscription_id):
        self._use(client, auth_headers, subscription_id, 4)

        response = client.get(f'/api/subscriptions/{subscription_id}/upgrade-credit', headers=auth_headers)

        assert json.loads(response.data) == {
            'subscription_id': subscription_id,
            'remaining_sessions': 6,
            'credit_amount': 60.0,
        }

    def test_upgrade(self, client, auth_headers, subscription_id, target_plan):
        self._use(client, auth_headers, subscription_id, 4)

        response = client.post('/api/subscriptions/upgrade', data=json.dumps({
            'current_subscription_id': subscription_id,
            'new_plan_id': target_plan.id,
            'credit_amount': 60.0,
            'effective_date': '2026-05-10',
        }), headers=auth_headers)

        assert response.status_code == 201
        successor = json.loads(response.data)
        assert successor['plan_id'] == target_plan.id
        assert successor['start_date'] == '2026-05-10'
        assert successor['paid_amount'] == 120.0
        assert successor['signup_fee_paid'] == 0.0

        previous = json.loads(client.get(f'/api/subscriptions/{subscription_id}', headers=auth_headers).data)
        assert previous['status'] == 'cancelled'
        assert previous['upgraded_to_id'] == successor['id']

    def test_upgrade_accepts_credit_as_decimal_string(self, client, auth_headers, subscription_id, target_plan):
        self._use(client, auth_headers, subscription_id, 7)

        response = client.post('/api/subscriptions/upgrade', data=json.dumps({
            'current_subscription_id': subscription_id,
            'new_plan_id': target_plan.id,
            'credit_amount': '30.00',
        }), headers=auth_headers)

        assert response.status_code == 201
        assert json.loads(response.data)['paid_amount'] == 150.0

    def test_create_with_negative_signup_fee(self, client, auth_headers, subscription_id, target_plan):
        response = _create(client, auth_headers, member_id=MEMBER, plan_id=target_plan.id,
                           include_signup_fee=True, signup_fee_paid='-50')

        assert response.status_code == 400
        assert json.loads(response.data)['code'] == 'validation_error'

    def test_upgrade_with_stale_credit(self, client, auth_headers, subscription_id, target_plan):
        response = client.post('/api/subscriptions/upgrade', data=json.dumps({
            'current_subscription_id': subscription_id,
            'new_plan_id': target_plan.id,
            'credit_amount': 10.0,
        }), headers=auth_headers)

        assert response.status_code == 422
        data = json.loads(response.data)
        assert data['code'] == 'credit_mismatch'
        assert data['expected'] == '100.00'
        assert MemberSubscription.query.count() == 1

    def test_upgrade_missing_fields(self, client, auth_headers, subscription_id):
        response = client.post('/api/subscriptions/upgrade', data=json.dumps({
            'current_subscription_id': subscription_id,
        }), headers=auth_headers)
        assert response.status_code == 400

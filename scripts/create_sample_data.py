#!/usr/bin/env python
"""
Script to create demo data for the ledger:
- the plan catalog (session packs of different sizes)
- members with a completed trial followed by contractual sessions
- subscriptions for part of those members, which counts their sessions
  retroactively
"""
import random
import sys
from datetime import timedelta

from faker import Faker

from gymledger import create_app, db
from gymledger.models import SessionStatus, SessionType, SubscriptionPlan, TrainingSession
from gymledger.services import SubscriptionLedger
from gymledger.utils.clock import utcnow

# Initialize faker for generating realistic session data
fake = Faker()

MEMBER_COUNT = 200
SUBSCRIBED_SHARE = 0.6

PLANS = [
    {"name": "Starter 4", "price": "60.00", "sessions_count": 4, "duration_months": 1,
     "signup_fee": "20.00", "sort_order": 1},
    {"name": "Regular 8", "price": "110.00", "sessions_count": 8, "duration_months": 1,
     "signup_fee": "20.00", "sort_order": 2},
    {"name": "Intensive 12", "price": "150.00", "sessions_count": 12, "duration_months": 2,
     "signup_fee": "20.00", "sort_order": 3},
    {"name": "Partner 10", "price": "100.00", "sessions_count": 10, "duration_months": 3,
     "is_collaboration_plan": True, "sort_order": 4},
]


def create_plans():
    """Create catalog plans that do not exist yet."""
    plans = []
    for definition in PLANS:
        plan = SubscriptionPlan.query.filter_by(name=definition["name"]).first()
        if plan is None:
            plan = SubscriptionPlan(**definition)
            db.session.add(plan)
        plans.append(plan)
    db.session.commit()
    print(f"Catalog has {len(plans)} plans")
    return plans


def create_member_sessions(member_id, now):
    """A completed trial followed by a few completed contractual sessions."""
    trial_start = fake.date_time_between(start_date="-60d", end_date="-20d")
    db.session.add(TrainingSession(
        member_id=member_id,
        scheduled_start=trial_start,
        session_type=SessionType.TRIAL.value,
        status=SessionStatus.COMPLETED.value,
    ))

    for _ in range(random.randint(0, 6)):
        start = fake.date_time_between(start_date=trial_start + timedelta(days=1), end_date=now)
        db.session.add(TrainingSession(
            member_id=member_id,
            scheduled_start=start,
            scheduled_end=start + timedelta(hours=1),
            session_type=SessionType.CONTRACTUAL.value,
            status=random.choice([SessionStatus.COMPLETED.value] * 4 + [SessionStatus.NO_SHOW.value]),
        ))


def create_sample_data():
    plans = create_plans()
    ledger = SubscriptionLedger()
    now = utcnow()

    first_member_id = random.randint(10_000, 90_000)
    for member_id in range(first_member_id, first_member_id + MEMBER_COUNT):
        create_member_sessions(member_id, now)
    db.session.commit()
    print(f"Created sessions for {MEMBER_COUNT} members")

    subscribed = 0
    for member_id in range(first_member_id, first_member_id + MEMBER_COUNT):
        if random.random() > SUBSCRIBED_SHARE:
            continue
        plan = random.choice(plans)
        ledger.create(
            member_id=member_id,
            plan_id=plan.id,
            initial_payment_amount=random.choice([plan.price, plan.price / 2, None]),
            include_signup_fee=plan.signup_fee > 0,
            created_by="seed",
        )
        subscribed += 1
    print(f"Created {subscribed} subscriptions")


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        db.create_all()
        try:
            create_sample_data()
        except Exception as e:
            db.session.rollback()
            print(f"Error creating sample data: {e}", file=sys.stderr)
            sys.exit(1)

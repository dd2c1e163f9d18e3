"""
Namespaces for the plan catalog, member subscriptions and payments.
"""
from flask_restx import Namespace

plan_ns = Namespace(
    'plans',
    description='Subscription plan catalog (read only)'
)

subscription_ns = Namespace(
    'subscriptions',
    description='Member subscription lifecycle, session accounting and payments'
)

payment_ns = Namespace(
    'payments',
    description='Payment history'
)

from . import routes  # noqa: E402,F401

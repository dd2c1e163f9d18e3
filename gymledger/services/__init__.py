"""
Subscription and session accounting services.
"""
from .credit_calculator import calculate_upgrade_credit, price_per_session, quantize_money
from .payment_recorder import PaymentRecorder
from .plan_catalog import PlanCatalog
from .retroactive_counter import RetroactiveCounter
from .session_accountant import SessionAccountant
from .subscription_ledger import SubscriptionLedger

__all__ = [
    'calculate_upgrade_credit',
    'price_per_session',
    'quantize_money',
    'PaymentRecorder',
    'PlanCatalog',
    'RetroactiveCounter',
    'SessionAccountant',
    'SubscriptionLedger',
]

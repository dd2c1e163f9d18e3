"""
Typed errors raised by the subscription and session accounting engine.
"""


class GymLedgerError(Exception):
    """
    Base class for engine errors.

    Attributes:
        message (str): Human readable description
        code (str): Machine readable error code
        status_code (int): HTTP status used when rendered by the API
        details (dict): Extra context rendered alongside the message
    """
    status_code = 400
    code = "ledger_error"

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        """Serialize the error for an API response."""
        payload = {'message': self.message, 'code': self.code}
        payload.update({key: str(value) for key, value in self.details.items()})
        return payload


class NotFound(GymLedgerError):
    status_code = 404
    code = "not_found"


class PlanNotFound(NotFound):
    code = "plan_not_found"

    def __init__(self, plan_id):
        super().__init__(f"Plan {plan_id} not found", plan_id=plan_id)


class SubscriptionNotFound(NotFound):
    code = "subscription_not_found"

    def __init__(self, subscription_id):
        super().__init__(f"Subscription {subscription_id} not found", subscription_id=subscription_id)


class ValidationError(GymLedgerError):
    code = "validation_error"


class InvalidPayment(ValidationError):
    code = "invalid_payment"


class InvalidStateTransition(GymLedgerError):
    """A lifecycle operation was attempted from a status that forbids it."""
    status_code = 409
    code = "invalid_state_transition"


class InactiveSubscription(InvalidStateTransition):
    code = "inactive_subscription"


class QuotaExhausted(GymLedgerError):
    status_code = 409
    code = "quota_exhausted"


class NothingToRestore(GymLedgerError):
    status_code = 409
    code = "nothing_to_restore"


class CreditMismatch(GymLedgerError):
    """The caller's upgrade credit disagrees with the recomputed value."""
    status_code = 422
    code = "credit_mismatch"

    def __init__(self, expected, supplied):
        super().__init__(
            f"Credit amount mismatch: expected {expected}, got {supplied}",
            expected=expected,
            supplied=supplied,
        )
        self.expected = expected
        self.supplied = supplied


class ConcurrencyConflict(GymLedgerError):
    """A concurrent write changed the record between read and write."""
    status_code = 409
    code = "concurrency_conflict"


class PersistenceFailure(GymLedgerError):
    status_code = 500
    code = "persistence_failure"

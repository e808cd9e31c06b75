"""Booking attempt state machine."""

from enum import Enum

from storeaway.core.exceptions import ValidationError


class AttemptState(str, Enum):
    VALIDATING = "validating"
    CHECKING_AVAILABILITY = "checking_availability"
    AUTHORIZING_PAYMENT = "authorizing_payment"
    REQUIRES_ACTION = "requires_action"
    PERSISTING = "persisting"
    COMPLETED = "completed"
    FAILED = "failed"


ATTEMPT_TRANSITIONS = {
    AttemptState.VALIDATING: {
        AttemptState.CHECKING_AVAILABILITY,
        # resuming with an existing payment reference skips straight to payment
        AttemptState.AUTHORIZING_PAYMENT,
        AttemptState.FAILED,
    },
    AttemptState.CHECKING_AVAILABILITY: {AttemptState.AUTHORIZING_PAYMENT, AttemptState.FAILED},
    AttemptState.AUTHORIZING_PAYMENT: {
        AttemptState.PERSISTING,
        AttemptState.REQUIRES_ACTION,
        AttemptState.COMPLETED,
        AttemptState.FAILED,
    },
    AttemptState.PERSISTING: {AttemptState.COMPLETED, AttemptState.FAILED},
    AttemptState.REQUIRES_ACTION: set(),
    AttemptState.COMPLETED: set(),
    AttemptState.FAILED: set(),
}

TERMINAL_STATES = {AttemptState.REQUIRES_ACTION, AttemptState.COMPLETED, AttemptState.FAILED}


def assert_attempt_transition(current: AttemptState, target: AttemptState) -> None:
    allowed = ATTEMPT_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise ValidationError(
            f"Invalid booking attempt transition: {current.value} → {target.value}"
        )

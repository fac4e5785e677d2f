"""Transaction status state machine

Sales move strictly forward:

    pending -> verified -> completed

There are no backward transitions and no cancel/reject path. Every status
change made by the transaction service goes through ``apply_transition`` so
that a transition outside ALLOWED_TRANSITIONS can never be written.
"""
from datetime import datetime
from typing import Dict, FrozenSet
import logging

from propledger.exceptions import InvalidTransitionError
from propledger.models.transaction import Transaction, TransactionStatus

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: Dict[TransactionStatus, FrozenSet[TransactionStatus]] = {
    TransactionStatus.PENDING: frozenset({TransactionStatus.VERIFIED}),
    TransactionStatus.VERIFIED: frozenset({TransactionStatus.COMPLETED}),
    TransactionStatus.COMPLETED: frozenset(),
}

# Statuses that block a new sale of the same property
OPEN_STATUSES: FrozenSet[TransactionStatus] = frozenset({
    TransactionStatus.PENDING,
    TransactionStatus.VERIFIED,
})

# Message shown when the current status does not admit the requested target
_REJECTION_MESSAGES = {
    TransactionStatus.VERIFIED: "Only pending transactions can be verified",
    TransactionStatus.COMPLETED: "Only verified transactions can be completed",
}


def can_transition(current: TransactionStatus, target: TransactionStatus) -> bool:
    """Check whether ``current -> target`` is an allowed lifecycle step"""
    return TransactionStatus(target) in ALLOWED_TRANSITIONS[TransactionStatus(current)]


def validate_transition(current: TransactionStatus, target: TransactionStatus) -> None:
    """Raise InvalidTransitionError unless ``current -> target`` is allowed"""
    if can_transition(current, target):
        return

    message = _REJECTION_MESSAGES.get(
        TransactionStatus(target),
        f"Cannot move a transaction to {TransactionStatus(target).value}",
    )
    logger.warning(
        f"Rejected transition {TransactionStatus(current).value} -> {TransactionStatus(target).value}"
    )
    raise InvalidTransitionError(
        message=message,
        details={
            "current_status": TransactionStatus(current).value,
            "requested_status": TransactionStatus(target).value,
        },
    )


def apply_transition(
    transaction: Transaction,
    target: TransactionStatus,
    at: datetime = None,
) -> Transaction:
    """
    Move a transaction to ``target`` after validating the step.

    Stamps verified_at / completed_at for the corresponding target status.
    The caller owns the database transaction; nothing is flushed here.
    """
    current = TransactionStatus(transaction.status)
    validate_transition(current, target)

    at = at or datetime.utcnow()
    if target == TransactionStatus.VERIFIED:
        transaction.verified_at = at
    elif target == TransactionStatus.COMPLETED:
        transaction.completed_at = at

    transaction.status = target
    logger.info(
        f"Transaction {transaction.id} (property {transaction.property_id}): "
        f"{current.value} -> {target.value}"
    )
    return transaction

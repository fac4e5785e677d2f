"""Transaction lifecycle service

Creates, verifies and completes property sales. Each operation runs in a
single database transaction and locks the row it is about to change
(``SELECT ... FOR UPDATE``) so that concurrent requests for the same property
or transaction are serialized by the database. Any failure rolls the whole
operation back; nothing is retried.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional
import logging

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from propledger.exceptions import AuthorizationError, NotFoundError, ValidationError
from propledger.models.blockchain_record import BlockchainRecord
from propledger.models.property import Property
from propledger.models.transaction import Transaction, TransactionStatus
from propledger.models.user import User, UserRole
from propledger.services.email import EmailService
from propledger.services.ledger import BlockchainLedger, LedgerReceipt
from propledger.services.lifecycle import OPEN_STATUSES, apply_transition, validate_transition

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
# Numeric(15, 2) holds at most 13 integer digits
MAX_AMOUNT = Decimal("10000000000000")


@dataclass
class CompletionResult:
    """Outcome of a completed sale"""
    transaction: Transaction
    receipt: LedgerReceipt
    property_title: str
    buyer: Optional[User] = None
    seller: Optional[User] = None


def transaction_details_query():
    """
    Select transactions joined with property and party names.

    Rows expose the Transaction entity plus property_title, property_location,
    seller_name, buyer_name and agent_name.
    """
    seller = aliased(User)
    buyer = aliased(User)
    agent = aliased(User)
    return (
        select(
            Transaction,
            Property.title.label("property_title"),
            Property.location.label("property_location"),
            seller.name.label("seller_name"),
            buyer.name.label("buyer_name"),
            agent.name.label("agent_name"),
        )
        .join(Property, Transaction.property_id == Property.id)
        .join(seller, Transaction.seller_id == seller.id)
        .join(buyer, Transaction.buyer_id == buyer.id)
        .outerjoin(agent, Transaction.agent_id == agent.id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
    )


def _require_role(requester: User, role: UserRole, message: str) -> None:
    if UserRole(requester.role) != role:
        logger.warning(f"User {requester.id} ({requester.role}) rejected: {message}")
        raise AuthorizationError(message=message)


class TransactionService:
    """Lifecycle manager for property sale transactions"""

    def __init__(
        self,
        db: AsyncSession,
        ledger: BlockchainLedger,
        email_service: Optional[EmailService] = None,
    ):
        self.db = db
        self.ledger = ledger
        self.email_service = email_service

    async def create(self, property_id: int, amount: Decimal, requester: User) -> Transaction:
        """
        Open a pending sale of a verified property to the requesting buyer.

        Raises:
            AuthorizationError: requester is not a buyer
            NotFoundError: property missing or not verified
            ValidationError: property sold, sale already open, bad amount,
                or the buyer owns the property
        """
        try:
            _require_role(requester, UserRole.BUYER, "Only buyers can initiate transactions")

            amount = Decimal(str(amount))
            if amount <= 0:
                raise ValidationError(message="Amount must be a positive number", details={"field": "amount"})
            if amount >= MAX_AMOUNT:
                raise ValidationError(message="Amount is too large", details={"field": "amount"})
            if amount != amount.quantize(CENT):
                raise ValidationError(message="Amount must not have more than two decimal places", details={"field": "amount"})

            # Lock the property row; concurrent buy attempts queue here
            result = await self.db.execute(
                select(Property)
                .where(Property.id == property_id, Property.is_verified.is_(True))
                .with_for_update()
            )
            property_obj = result.scalar_one_or_none()
            if not property_obj:
                raise NotFoundError(message="Property not found or not verified")

            result = await self.db.execute(
                select(Transaction.status).where(Transaction.property_id == property_id)
            )
            existing = {TransactionStatus(s) for s in result.scalars().all()}

            if TransactionStatus.COMPLETED in existing:
                raise ValidationError(message="Property already sold")
            if TransactionStatus.PENDING in existing:
                raise ValidationError(message="There is already a pending transaction for this property")
            if existing & OPEN_STATUSES:
                raise ValidationError(message="There is already a transaction awaiting completion for this property")

            if property_obj.owner_id == requester.id:
                raise ValidationError(message="You cannot buy your own property")

            transaction = Transaction(
                property_id=property_obj.id,
                buyer_id=requester.id,
                seller_id=property_obj.owner_id,
                amount=amount,
                status=TransactionStatus.PENDING,
            )
            self.db.add(transaction)
            await self.db.flush()
            # Refresh before commit so the session ends without an open transaction
            await self.db.refresh(transaction)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Transaction {transaction.id} opened: buyer {requester.id} for property {property_id}"
        )
        return transaction

    async def verify(self, transaction_id: int, requester: User) -> Transaction:
        """Mark a pending transaction as verified by the requesting agent"""
        try:
            _require_role(requester, UserRole.AGENT, "Only verification agents can verify transactions")

            result = await self.db.execute(
                select(Transaction).where(Transaction.id == transaction_id).with_for_update()
            )
            transaction = result.scalar_one_or_none()
            if not transaction:
                raise NotFoundError(message="Transaction not found")

            apply_transition(transaction, TransactionStatus.VERIFIED)
            transaction.agent_id = requester.id

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        return transaction

    async def complete(self, transaction_id: int, requester: User) -> CompletionResult:
        """
        Transfer ownership for a verified transaction.

        The ledger record, the property owner change and the status change
        commit together or not at all.
        """
        try:
            _require_role(requester, UserRole.AGENT, "Only verification agents can complete transactions")

            result = await self.db.execute(
                select(Transaction, Property)
                .join(Property, Transaction.property_id == Property.id)
                .where(Transaction.id == transaction_id)
                .with_for_update()
            )
            row = result.first()
            if not row:
                raise NotFoundError(message="Transaction not found")
            transaction, property_obj = row

            # Reject before touching the ledger
            validate_transition(transaction.status, TransactionStatus.COMPLETED)

            receipt = await self.ledger.record_transfer(
                property_id=property_obj.id,
                previous_owner_id=transaction.seller_id,
                new_owner_id=transaction.buyer_id,
            )

            self.db.add(BlockchainRecord(
                property_id=property_obj.id,
                transaction_id=transaction.id,
                blockchain_address=receipt.contract_address,
                token_id=receipt.token_id,
                previous_owner=transaction.seller_id,
                new_owner=transaction.buyer_id,
                tx_hash=receipt.tx_hash,
                block_number=receipt.block_number,
            ))
            await self.db.flush()

            property_obj.owner_id = transaction.buyer_id
            await self.db.flush()

            apply_transition(transaction, TransactionStatus.COMPLETED)
            transaction.blockchain_tx_id = receipt.tx_hash

            buyer = await self.db.get(User, transaction.buyer_id)
            seller = await self.db.get(User, transaction.seller_id)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Transaction {transaction.id} completed: property {property_obj.id} "
            f"now owned by user {transaction.buyer_id}"
        )
        return CompletionResult(
            transaction=transaction,
            receipt=receipt,
            property_title=property_obj.title,
            buyer=buyer,
            seller=seller,
        )

    async def list_for_user(self, requester: User) -> list:
        """Transactions where the requester is buyer, seller or agent, newest first"""
        query = transaction_details_query().where(
            or_(
                Transaction.buyer_id == requester.id,
                Transaction.seller_id == requester.id,
                Transaction.agent_id == requester.id,
            )
        )
        result = await self.db.execute(query)
        return result.all()

    def notify_parties(self, result: CompletionResult) -> List[bool]:
        """Email buyer and seller about a completed sale; failures are only logged"""
        if not self.email_service or not self.email_service.is_configured():
            logger.debug(f"Email not configured; no notifications for transaction {result.transaction.id}")
            return []

        sent = []
        for party, user in (("buyer", result.buyer), ("seller", result.seller)):
            if user is None:
                continue
            ok = self.email_service.send_ownership_transfer_email(
                to_email=user.email,
                recipient_name=user.name,
                property_title=result.property_title,
                party=party,
                tx_hash=result.receipt.tx_hash,
                block_number=result.receipt.block_number,
            )
            if not ok:
                logger.warning(f"Failed to notify {party} {user.id} of transaction {result.transaction.id}")
            sent.append(ok)
        return sent

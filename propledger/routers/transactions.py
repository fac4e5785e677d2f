"""Sale transaction router"""
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from propledger.database import get_db
from propledger.models.transaction import TransactionStatus
from propledger.models.user import User
from propledger.routers.auth import get_current_user
from propledger.services.email import get_email_service
from propledger.services.ledger import BlockchainLedger, get_ledger
from propledger.services.transactions import TransactionService

router = APIRouter(prefix="/transactions", tags=["Transactions"])


# Request/Response Models
class TransactionCreate(BaseModel):
    """Request to buy a property"""
    property_id: int
    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)


class TransactionResponse(BaseModel):
    """Transaction row"""
    id: int
    property_id: int
    buyer_id: int
    seller_id: int
    agent_id: Optional[int]
    amount: float
    status: TransactionStatus
    created_at: datetime
    verified_at: Optional[datetime]
    completed_at: Optional[datetime]
    blockchain_tx_id: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class TransactionDetailResponse(TransactionResponse):
    """Transaction annotated with property and party names"""
    property_title: str
    property_location: str
    seller_name: str
    buyer_name: str
    agent_name: Optional[str] = None


class BlockchainTransaction(BaseModel):
    txHash: str
    blockNumber: int
    status: str


class CompletedTransactionResponse(TransactionResponse):
    """Completed transaction plus the ledger receipt"""
    blockchainTransaction: BlockchainTransaction


def detail_from_row(row) -> TransactionDetailResponse:
    """Build a detail response from a transaction_details_query row"""
    return TransactionDetailResponse(
        **TransactionResponse.model_validate(row.Transaction).model_dump(),
        property_title=row.property_title,
        property_location=row.property_location,
        seller_name=row.seller_name,
        buyer_name=row.buyer_name,
        agent_name=row.agent_name,
    )


def get_transaction_service(
    db: AsyncSession = Depends(get_db),
    ledger: BlockchainLedger = Depends(get_ledger),
) -> TransactionService:
    return TransactionService(db, ledger, get_email_service())


# Endpoints
@router.post("", response_model=TransactionResponse)
async def create_transaction(
    request: TransactionCreate,
    current_user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service)
):
    """Create a pending transaction (buyers only)"""
    transaction = await service.create(request.property_id, request.amount, current_user)
    return TransactionResponse.model_validate(transaction)


# Declared before /{transaction_id} routes so "user" is not parsed as an id
@router.get("/user", response_model=List[TransactionDetailResponse])
async def get_user_transactions(
    current_user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service)
):
    """Get all transactions where the current user is buyer, seller or agent"""
    rows = await service.list_for_user(current_user)
    return [detail_from_row(row) for row in rows]


@router.patch("/{transaction_id}/verify", response_model=TransactionResponse)
async def verify_transaction(
    transaction_id: int,
    current_user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service)
):
    """Verify a pending transaction (agents only)"""
    transaction = await service.verify(transaction_id, current_user)
    return TransactionResponse.model_validate(transaction)


@router.patch("/{transaction_id}/complete", response_model=CompletedTransactionResponse)
async def complete_transaction(
    transaction_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service)
):
    """Complete a verified transaction and transfer ownership (agents only)"""
    result = await service.complete(transaction_id, current_user)

    # Notify buyer and seller after the response is sent
    background_tasks.add_task(service.notify_parties, result)

    return CompletedTransactionResponse(
        **TransactionResponse.model_validate(result.transaction).model_dump(),
        blockchainTransaction=BlockchainTransaction(
            txHash=result.receipt.tx_hash,
            blockNumber=result.receipt.block_number,
            status=result.receipt.status,
        ),
    )

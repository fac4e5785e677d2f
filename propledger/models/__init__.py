"""Database models package"""
from propledger.models.user import User, UserRole
from propledger.models.property import Property
from propledger.models.transaction import Transaction, TransactionStatus
from propledger.models.blockchain_record import BlockchainRecord

__all__ = [
    "User",
    "UserRole",
    "Property",
    "Transaction",
    "TransactionStatus",
    "BlockchainRecord",
]

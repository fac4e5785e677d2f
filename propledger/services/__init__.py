"""Services package"""
from propledger.services.auth import AuthService, get_password_hash, verify_password
from propledger.services.ledger import BlockchainLedger, SimulatedLedger, LedgerReceipt
from propledger.services.transactions import TransactionService

__all__ = [
    "AuthService",
    "get_password_hash",
    "verify_password",
    "BlockchainLedger",
    "SimulatedLedger",
    "LedgerReceipt",
    "TransactionService",
]

"""Append-only ledger of ownership transfers"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from datetime import datetime
from propledger.database import Base


class BlockchainRecord(Base):
    """One entry per completed transaction; never updated or deleted"""
    __tablename__ = "blockchain_records"

    id = Column(Integer, primary_key=True, index=True)

    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True, index=True)

    # Token contract and token id of the property on the ledger
    blockchain_address = Column(String(66), nullable=False)
    token_id = Column(String(100), nullable=False)

    previous_owner = Column(Integer, ForeignKey("users.id"), nullable=False)
    new_owner = Column(Integer, ForeignKey("users.id"), nullable=False)

    tx_hash = Column(String(66), unique=True, nullable=False)
    block_number = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

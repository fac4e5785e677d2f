"""Sale transaction model"""
from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, Enum, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from propledger.database import Base
import enum


class TransactionStatus(str, enum.Enum):
    """Lifecycle states of a sale; see propledger.services.lifecycle"""
    PENDING = "pending"
    VERIFIED = "verified"
    COMPLETED = "completed"


class Transaction(Base):
    """A buyer's purchase of a property, verified and completed by an agent"""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)

    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False)
    buyer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    agent_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    amount = Column(Numeric(15, 2), nullable=False)
    status = Column(Enum(TransactionStatus), default=TransactionStatus.PENDING, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    verified_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    blockchain_tx_id = Column(String(255), nullable=True)

    # Relationships
    property = relationship("Property", back_populates="transactions")

    # Not unique: duplicate prevention is an application pre-check under the property row lock
    __table_args__ = (
        Index("ix_transaction_property_status", "property_id", "status"),
    )

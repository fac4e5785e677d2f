"""Property listing model"""
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from propledger.database import Base


class Property(Base):
    """A listed property; ownership moves to the buyer when a sale completes"""
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)

    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Listing details
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    location = Column(String(255), nullable=False)
    price = Column(Numeric(15, 2), nullable=False)

    # Only admins may flip this; unverified listings are hidden and cannot be bought
    is_verified = Column(Boolean, default=False, nullable=False, index=True)
    blockchain_hash = Column(String(255), nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    owner = relationship("User", back_populates="properties")
    transactions = relationship("Transaction", back_populates="property")

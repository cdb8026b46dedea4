"""
Customer Model
Read-only mapping of the registry's customers table
"""

import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from customer_dedup.database import Base


class Customer(Base):
    """
    A business registry customer record.

    The table is owned by the registry application; the duplicate detection
    engine only reads it. Soft-deleted rows carry a deleted_at timestamp.
    """
    __tablename__ = "customers"

    # Primary Key
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Scored fields
    company_name = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True, index=True)
    tax_id = Column(String(20), nullable=True, index=True)  # AFM

    # Display fields (carried through unscored)
    address = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    town = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)

    # Soft delete
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Customer(id={self.id}, company='{self.company_name}')>"

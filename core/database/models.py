"""
SQLAlchemy models for the transaction ledger
"""
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import BigInteger, Column, DateTime, Index, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"
BRIDGE_STATUSES = (STATUS_PENDING, STATUS_COMPLETED, STATUS_FAILED)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value) -> Any:
    return value.isoformat() if value is not None else None


class TransactionHistory(Base):
    """Bridge deposit (source -> destination chain)"""
    __tablename__ = "transaction_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_address = Column(String(42), nullable=False, index=True)

    # Integer string in base units; never stored as float
    amount = Column(String(78), nullable=False)
    token_address = Column(String(42), nullable=False)
    source_network = Column(Integer, nullable=False)
    destination_network = Column(Integer, nullable=False)
    transaction_hash = Column(String(66), nullable=False, unique=True)

    # Assigned by the bridge contract, read from BridgeEvent
    deposit_count = Column(BigInteger, nullable=True, index=True)
    status = Column(String(20), nullable=False, default=STATUS_PENDING)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        Index('idx_transaction_history_status', 'status'),
        Index('idx_transaction_history_created_at', 'created_at'),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_address": self.user_address,
            "amount": self.amount,
            "token_address": self.token_address,
            "source_network": self.source_network,
            "destination_network": self.destination_network,
            "transaction_hash": self.transaction_hash,
            "deposit_count": self.deposit_count,
            "status": self.status,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


class WithdrawHistory(Base):
    """Completed vault withdrawal; insert-only"""
    __tablename__ = "withdraw_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_address = Column(String(42), nullable=False, index=True)
    amount = Column(String(78), nullable=False)
    token_address = Column(String(42), nullable=False)
    transaction_hash = Column(String(66), nullable=False)
    destination_network = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_address": self.user_address,
            "amount": self.amount,
            "token_address": self.token_address,
            "transaction_hash": self.transaction_hash,
            "destination_network": self.destination_network,
            "created_at": _isoformat(self.created_at),
        }

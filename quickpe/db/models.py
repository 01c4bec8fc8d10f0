"""SQLAlchemy ORM models."""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from quickpe.infrastructure.database.base import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    username = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    password_hash = Column(String(255), nullable=False)
    quickpe_id = Column(String(12), unique=True, nullable=False, index=True)
    role = Column(String(20), nullable=False, default="user")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)
    last_login_at = Column(DateTime(timezone=True))

    account = relationship("Account", back_populates="user", uselist=False)


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (CheckConstraint("balance_paise >= 0", name="ck_accounts_balance_non_negative"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False, index=True)
    balance_paise = Column(BigInteger, nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="INR")
    status = Column(String(20), nullable=False, default="active")  # active, suspended, closed
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    user = relationship("User", back_populates="account")


class LedgerEntry(Base):
    """One leg of a money movement as seen by ``account_id``. Append-only."""

    __tablename__ = "ledger_entries"
    __table_args__ = (
        UniqueConstraint("transaction_id", "type", name="uq_ledger_entries_transaction_leg"),
        UniqueConstraint("account_id", "idempotency_key", name="uq_ledger_entries_idempotency"),
        CheckConstraint("amount_paise > 0", name="ck_ledger_entries_amount_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(String(32), nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    from_account_id = Column(String(36), ForeignKey("accounts.id"), nullable=True)
    to_account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False)
    type = Column(String(10), nullable=False)  # debit, credit
    category = Column(String(20), nullable=False, default="transfer")  # transfer, deposit
    amount_paise = Column(BigInteger, nullable=False)
    balance_after_paise = Column(BigInteger, nullable=False)
    description = Column(String(500))
    idempotency_key = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)


class MoneyRequest(Base):
    """A request from ``requester`` asking ``requestee`` to pay. Names are snapshotted at creation."""

    __tablename__ = "money_requests"
    __table_args__ = (
        CheckConstraint("amount_paise > 0", name="ck_money_requests_amount_positive"),
        Index("ix_money_requests_requester_status", "requester_id", "status"),
        Index("ix_money_requests_requestee_status", "requestee_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    request_id = Column(String(32), unique=True, nullable=False, index=True)
    requester_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    requester_name = Column(String(101), nullable=False)
    requester_quickpe_id = Column(String(12), nullable=False)
    requestee_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    requestee_name = Column(String(101), nullable=False)
    requestee_quickpe_id = Column(String(12), nullable=False)
    amount_paise = Column(BigInteger, nullable=False)
    description = Column(String(500))
    status = Column(String(20), nullable=False, default="pending", index=True)  # pending, approved, rejected, cancelled, expired
    transaction_id = Column(String(32))
    rejection_reason = Column(String(200))
    responded_at = Column(DateTime(timezone=True))
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(30), nullable=False)  # TRANSFER_SENT, TRANSFER_RECEIVED, MONEY_ADDED, MONEY_REQUEST_*
    title = Column(String(100), nullable=False)
    message = Column(String(500), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    transaction_id = Column(String(32))
    read = Column(Boolean, nullable=False, default=False, index=True)
    read_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

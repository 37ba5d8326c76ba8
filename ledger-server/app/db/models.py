"""SQLAlchemy ORM models."""
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.infrastructure.database.base import Base


class LedgerAccount(Base):
    __tablename__ = "ledger_accounts"
    __table_args__ = (CheckConstraint("balance_cents >= 0", name="ck_ledger_accounts_balance_non_negative"),)

    id = Column(String(64), primary_key=True)
    balance_cents = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    statements = relationship(
        "LedgerStatement",
        back_populates="account",
        cascade="all, delete-orphan",
        order_by="LedgerStatement.sequence",
    )


class LedgerStatement(Base):
    __tablename__ = "ledger_statements"
    __table_args__ = (UniqueConstraint("account_id", "sequence", name="uq_ledger_statements_account_sequence"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(String(64), ForeignKey("ledger_accounts.id"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)
    occurred_at = Column(DateTime(timezone=True), nullable=False)
    operation_type = Column(String(20), nullable=False)  # DEPOSIT, WITHDRAW
    amount_cents = Column(Integer, nullable=False)
    balance_after_cents = Column(Integer, nullable=False)

    account = relationship("LedgerAccount", back_populates="statements")

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pokerledger.storage.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Ledger(Base):
    __tablename__ = "ledgers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    session_name: Mapped[str] = mapped_column(String(256), nullable=False, default="Poker Session")
    session_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
    original_file_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    denomination: Mapped[str] = mapped_column(String(16), nullable=False, default="cents")
    strategy: Mapped[str] = mapped_column(String(16), nullable=False, default="proportional")
    share_code: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True, index=True)
    unsettled: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    players: Mapped[list["LedgerPlayer"]] = relationship(
        back_populates="ledger", cascade="all, delete-orphan", order_by="LedgerPlayer.position"
    )
    transactions: Mapped[list["LedgerTransaction"]] = relationship(
        back_populates="ledger", cascade="all, delete-orphan", order_by="LedgerTransaction.position"
    )
    performances: Mapped[list["PlayerPerformance"]] = relationship(
        back_populates="ledger", cascade="all, delete-orphan"
    )


class LedgerPlayer(Base):
    __tablename__ = "ledger_players"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    ledger_id: Mapped[int] = mapped_column(ForeignKey("ledgers.id"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    buy_in: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cash_out: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    ledger: Mapped[Ledger] = relationship(back_populates="players")


class LedgerTransaction(Base):
    __tablename__ = "ledger_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    ledger_id: Mapped[int] = mapped_column(ForeignKey("ledgers.id"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    sender: Mapped[str] = mapped_column(String(128), nullable=False)
    receiver: Mapped[str] = mapped_column(String(128), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)

    ledger: Mapped[Ledger] = relationship(back_populates="transactions")


class PlayerPerformance(Base):
    __tablename__ = "player_performances"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    ledger_id: Mapped[int | None] = mapped_column(ForeignKey("ledgers.id"), nullable=True, index=True)
    player_name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    session_name: Mapped[str] = mapped_column(String(256), nullable=False)
    session_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    buy_in: Mapped[int] = mapped_column(Integer, nullable=False)
    cash_out: Mapped[int] = mapped_column(Integer, nullable=False)
    profit: Mapped[int] = mapped_column(Integer, nullable=False)
    denomination: Mapped[str] = mapped_column(String(16), nullable=False, default="cents")
    is_manual_entry: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)

    ledger: Mapped[Ledger | None] = relationship(back_populates="performances")

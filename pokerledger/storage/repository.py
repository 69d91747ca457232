from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from pokerledger.domain import PlayerLedgerEntry, SettlementResult, SettlementTransaction
from pokerledger.storage.models import Ledger, LedgerPlayer, LedgerTransaction, PlayerPerformance


@dataclass(slots=True)
class LedgerRow:
    id: int
    owner_id: str
    session_name: str
    session_date: datetime
    denomination: str
    original_file_name: str | None
    share_code: str | None
    created_at: datetime
    strategy: str = "proportional"
    players: list[PlayerLedgerEntry] = field(default_factory=list)
    transactions: list[SettlementTransaction] = field(default_factory=list)
    unsettled: dict[str, int] = field(default_factory=dict)


class LedgerRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create_ledger(
        self,
        *,
        owner_id: str,
        session_name: str,
        session_date: datetime,
        denomination: str,
        original_file_name: str | None,
        strategy: str,
        entries: list[PlayerLedgerEntry],
        result: SettlementResult,
    ) -> LedgerRow:
        ledger = Ledger(
            owner_id=owner_id,
            session_name=session_name,
            session_date=session_date,
            denomination=denomination,
            original_file_name=original_file_name,
            strategy=strategy,
            unsettled=dict(result.unsettled) or None,
        )
        ledger.players = [
            LedgerPlayer(position=idx, name=entry.name, buy_in=entry.buy_in, cash_out=entry.cash_out)
            for idx, entry in enumerate(entries)
        ]
        ledger.transactions = [
            LedgerTransaction(
                position=idx,
                sender=transaction.sender,
                receiver=transaction.receiver,
                amount=transaction.amount,
            )
            for idx, transaction in enumerate(result.transactions)
        ]
        ledger.performances = [
            PlayerPerformance(
                owner_id=owner_id,
                player_name=entry.name,
                session_name=session_name,
                session_date=session_date,
                buy_in=entry.buy_in,
                cash_out=entry.cash_out,
                profit=entry.net,
                denomination=denomination,
                is_manual_entry=False,
            )
            for entry in entries
        ]
        self.db.add(ledger)
        self.db.commit()
        self.db.refresh(ledger)
        return _to_row(ledger)

    def get_ledger(self, ledger_id: int) -> LedgerRow | None:
        ledger = self.db.get(Ledger, ledger_id)
        return _to_row(ledger) if ledger is not None else None

    def get_by_share_code(self, share_code: str) -> LedgerRow | None:
        ledger = self.db.scalars(select(Ledger).where(Ledger.share_code == share_code)).first()
        return _to_row(ledger) if ledger is not None else None

    def share_code_exists(self, share_code: str) -> bool:
        return self.db.scalar(select(Ledger.id).where(Ledger.share_code == share_code)) is not None

    def list_ledgers(self, owner_id: str) -> list[LedgerRow]:
        ledgers = self.db.scalars(
            select(Ledger)
            .where(Ledger.owner_id == owner_id)
            .order_by(Ledger.session_date.desc(), Ledger.id.desc())
        ).all()
        return [_to_row(ledger) for ledger in ledgers]

    def set_share_code(self, ledger_id: int, share_code: str) -> None:
        ledger = self.db.get(Ledger, ledger_id)
        if ledger is None:
            raise ValueError("ledger not found")
        ledger.share_code = share_code
        self.db.commit()

    def delete_ledger(self, ledger_id: int) -> None:
        ledger = self.db.get(Ledger, ledger_id)
        if ledger is None:
            raise ValueError("ledger not found")
        self.db.delete(ledger)
        self.db.commit()


def _to_row(ledger: Ledger) -> LedgerRow:
    return LedgerRow(
        id=ledger.id,
        owner_id=ledger.owner_id,
        session_name=ledger.session_name,
        session_date=ledger.session_date,
        denomination=ledger.denomination,
        original_file_name=ledger.original_file_name,
        share_code=ledger.share_code,
        created_at=ledger.created_at,
        strategy=ledger.strategy,
        players=[
            PlayerLedgerEntry(name=player.name, buy_in=player.buy_in, cash_out=player.cash_out)
            for player in ledger.players
        ],
        transactions=[
            SettlementTransaction(sender=tx.sender, receiver=tx.receiver, amount=tx.amount)
            for tx in ledger.transactions
        ],
        unsettled={name: int(amount) for name, amount in (ledger.unsettled or {}).items()},
    )

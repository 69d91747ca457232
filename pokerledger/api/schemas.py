from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pokerledger.domain import Denomination, PlayerLedgerEntry, SettlementStrategy, SettlementTransaction


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: Any | None = None


class PlayerEntryModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=128, examples=["Alice"])
    buy_in: int = Field(..., ge=0, description="Buy-in in the ledger's minor unit", examples=[100])
    cash_out: int = Field(..., ge=0, description="Cash-out in the ledger's minor unit", examples=[200])

    def to_entry(self) -> PlayerLedgerEntry:
        return PlayerLedgerEntry(name=self.name, buy_in=self.buy_in, cash_out=self.cash_out)

    @classmethod
    def from_entry(cls, entry: PlayerLedgerEntry) -> "PlayerEntryModel":
        return cls(name=entry.name, buy_in=entry.buy_in, cash_out=entry.cash_out)


class TransactionModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sender: str = Field(..., alias="from")
    receiver: str = Field(..., alias="to")
    amount: int = Field(..., gt=0)

    @classmethod
    def from_transaction(cls, transaction: SettlementTransaction) -> "TransactionModel":
        return cls(sender=transaction.sender, receiver=transaction.receiver, amount=transaction.amount)


class SettlementRequest(BaseModel):
    players: list[PlayerEntryModel] = Field(default_factory=list)
    strategy: SettlementStrategy = SettlementStrategy.PROPORTIONAL

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "players": [
                        {"name": "Alice", "buy_in": 100, "cash_out": 200},
                        {"name": "Bob", "buy_in": 200, "cash_out": 100},
                    ]
                }
            ]
        }
    }


class SettlementResponse(BaseModel):
    strategy: SettlementStrategy
    net: dict[str, int]
    transactions: list[TransactionModel]
    unsettled: dict[str, int]
    total_settled: int


class CreateLedgerRequest(BaseModel):
    owner_id: str = Field(..., min_length=1, max_length=128)
    session_name: str | None = Field(default=None, max_length=256, examples=["Friday home game"])
    session_date: datetime | None = None
    denomination: Denomination = Denomination.CENTS
    original_file_name: str | None = Field(default=None, max_length=256)
    strategy: SettlementStrategy = SettlementStrategy.PROPORTIONAL
    players: list[PlayerEntryModel]

    @model_validator(mode="after")
    def validate_players(self) -> "CreateLedgerRequest":
        if len(self.players) < 2:
            raise ValueError("a ledger needs at least 2 players")
        names = [player.name.strip() for player in self.players]
        if len(set(names)) != len(names):
            raise ValueError("players in a ledger must be unique")
        return self


class LedgerResponse(BaseModel):
    id: int
    owner_id: str
    session_name: str
    session_date: datetime
    denomination: str
    original_file_name: str | None = None
    share_code: str | None = None
    strategy: SettlementStrategy
    created_at: datetime
    players: list[PlayerEntryModel]
    transactions: list[TransactionModel]
    unsettled: dict[str, int]


class SharedLedgerResponse(BaseModel):
    session_name: str
    session_date: datetime
    denomination: str
    players: list[PlayerEntryModel]
    transactions: list[TransactionModel]


class AliasGroupModel(BaseModel):
    player: str
    aliases: list[str]


class ShareResponse(BaseModel):
    id: int
    share_code: str


class DemoLedgerResponse(BaseModel):
    id: str
    session_name: str
    session_date: datetime
    denomination: str
    is_demo: bool
    players: list[PlayerEntryModel]
    transactions: list[TransactionModel]


class PerformanceCreateRequest(BaseModel):
    owner_id: str = Field(..., min_length=1, max_length=128)
    player_name: str = Field(..., min_length=1, max_length=128)
    session_name: str = Field(default="Poker Session", max_length=256)
    session_date: datetime
    buy_in: int = Field(..., ge=0)
    cash_out: int = Field(..., ge=0)
    denomination: Denomination = Denomination.CENTS


class PerformanceUpdateRequest(BaseModel):
    player_name: str | None = Field(default=None, min_length=1, max_length=128)
    session_name: str | None = Field(default=None, max_length=256)
    session_date: datetime | None = None
    buy_in: int | None = Field(default=None, ge=0)
    cash_out: int | None = Field(default=None, ge=0)
    denomination: Denomination | None = None


class PerformanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: str
    ledger_id: int | None = None
    player_name: str
    session_name: str
    session_date: datetime
    buy_in: int
    cash_out: int
    profit: int
    denomination: str
    is_manual_entry: bool


class PlayerSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    player: str
    sessions: int
    winning_sessions: int
    total_profit: int
    average_profit: float
    win_rate: float
    best_session: int | None = None
    worst_session: int | None = None

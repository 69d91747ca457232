from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable


class DomainValidationError(ValueError):
    """Raised when a ledger entry or session violates a domain rule."""


class UnbalancedLedgerError(DomainValidationError):
    """Raised when total cash-out differs from total buy-in beyond the tolerance."""

    def __init__(self, *, total_buy_in: int, total_cash_out: int, tolerance: int) -> None:
        self.total_buy_in = total_buy_in
        self.total_cash_out = total_cash_out
        self.tolerance = tolerance
        self.difference = total_cash_out - total_buy_in
        super().__init__(
            f"ledger is unbalanced: buy-ins total {total_buy_in}, "
            f"cash-outs total {total_cash_out} (difference {self.difference}, tolerance {tolerance})"
        )


class Denomination(str, Enum):
    CENTS = "cents"
    DOLLARS = "dollars"


@dataclass(frozen=True)
class PlayerLedgerEntry:
    name: str
    buy_in: int
    cash_out: int

    def __post_init__(self) -> None:
        normalize_player(self.name)
        for field_name in ("buy_in", "cash_out"):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise DomainValidationError(f"{field_name} must be an integer amount")
            if value < 0:
                raise DomainValidationError(f"{field_name} must be non-negative")

    @property
    def net(self) -> int:
        return self.cash_out - self.buy_in

    @property
    def is_winner(self) -> bool:
        return self.net > 0

    @property
    def is_loser(self) -> bool:
        return self.net < 0


@dataclass(frozen=True)
class SettlementTransaction:
    sender: str
    receiver: str
    amount: int

    def to_dict(self) -> dict[str, str | int]:
        return {"from": self.sender, "to": self.receiver, "amount": self.amount}


def normalize_player(name: str) -> str:
    if not isinstance(name, str):
        raise DomainValidationError("player name must be a string")
    value = name.strip()
    if not value:
        raise DomainValidationError("player name must be non-empty")
    return value


def unique_preserve_order(players: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for player in players:
        normalized = normalize_player(player)
        if normalized not in seen:
            seen.add(normalized)
            result.append(normalized)
    return result


def ensure_unique_players(entries: Iterable[PlayerLedgerEntry]) -> None:
    names = [entry.name for entry in entries]
    if len(unique_preserve_order(names)) != len(names):
        duplicates = sorted({name for name in names if names.count(name) > 1})
        raise DomainValidationError(f"duplicate players in ledger: {', '.join(duplicates)}")

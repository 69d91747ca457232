from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from pokerledger.domain import Denomination, PlayerLedgerEntry, SettlementTransaction, settle

DEMO_ROSTER = ("Alice", "Bob", "Charlie", "David", "Eve", "Frank")
MIN_PLAYERS = 4
MAX_PLAYERS = 6
MIN_BUY_IN = 100
MAX_BUY_IN = 500
# each player still to be paid out keeps at least this much of the pot available
MIN_RESERVED_CASH_OUT = 50
DEMO_WINDOW_DAYS = 30


@dataclass(frozen=True)
class DemoLedger:
    id: str
    session_name: str
    session_date: datetime
    players: tuple[PlayerLedgerEntry, ...]
    transactions: tuple[SettlementTransaction, ...]
    denomination: str = Denomination.DOLLARS.value
    is_demo: bool = True


def generate_demo_players(rng: random.Random) -> list[PlayerLedgerEntry]:
    count = rng.randint(MIN_PLAYERS, MAX_PLAYERS)
    names = rng.sample(DEMO_ROSTER, count)
    buy_ins = [rng.randrange(MIN_BUY_IN, MAX_BUY_IN) for _ in names]

    remaining = sum(buy_ins)
    cash_outs: list[int] = []
    for idx in range(count - 1):
        max_cash_out = remaining - (count - idx - 1) * MIN_RESERVED_CASH_OUT
        cash_out = rng.randrange(max_cash_out)
        cash_outs.append(cash_out)
        remaining -= cash_out
    cash_outs.append(remaining)

    return [
        PlayerLedgerEntry(name=name, buy_in=buy_in, cash_out=cash_out)
        for name, buy_in, cash_out in zip(names, buy_ins, cash_outs)
    ]


def generate_demo_ledgers(
    count: int = 5,
    *,
    seed: int | None = None,
    today: datetime | None = None,
) -> list[DemoLedger]:
    """Build balanced sample sessions, newest first."""
    rng = random.Random(seed)
    today = today or datetime.now(timezone.utc).replace(tzinfo=None)
    window_start = today - timedelta(days=DEMO_WINDOW_DAYS)

    ledgers = []
    for idx in range(count):
        session_date = window_start + timedelta(days=rng.randrange(DEMO_WINDOW_DAYS))
        players = generate_demo_players(rng)
        ledgers.append(
            DemoLedger(
                id=f"demo-ledger-{idx}",
                session_name=f"Demo Game {idx + 1}",
                session_date=session_date,
                players=tuple(players),
                transactions=settle(players).transactions,
            )
        )

    return sorted(ledgers, key=lambda ledger: ledger.session_date, reverse=True)

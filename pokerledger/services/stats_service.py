from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from pokerledger.domain import Denomination, DomainValidationError, normalize_player
from pokerledger.storage.models import PlayerPerformance

logger = logging.getLogger("pokerledger.services.stats")

DEFAULT_SESSION_NAME = "Poker Session"
UPDATABLE_FIELDS = frozenset({"player_name", "session_name", "session_date", "buy_in", "cash_out", "denomination"})


class PerformanceNotFoundError(LookupError):
    """Raised when a performance record does not exist."""


@dataclass
class PlayerSummary:
    player: str
    sessions: int
    winning_sessions: int
    total_profit: int
    average_profit: float
    win_rate: float
    best_session: int | None
    worst_session: int | None


class StatsService:
    """In-memory aggregation over performance records, shared by the API and scripts."""

    def aggregate(self, performances: Iterable[object], player: str = "") -> PlayerSummary:
        profits = [int(getattr(performance, "profit")) for performance in performances]
        sessions = len(profits)
        winning_sessions = sum(1 for profit in profits if profit > 0)
        total_profit = sum(profits)
        return PlayerSummary(
            player=player,
            sessions=sessions,
            winning_sessions=winning_sessions,
            total_profit=total_profit,
            average_profit=(total_profit / sessions) if sessions else 0.0,
            win_rate=(winning_sessions / sessions) if sessions else 0.0,
            best_session=max(profits) if profits else None,
            worst_session=min(profits) if profits else None,
        )


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _validate_amounts(buy_in: int, cash_out: int) -> None:
    if buy_in < 0 or cash_out < 0:
        raise DomainValidationError("buy_in and cash_out must be non-negative")


def record_performance(
    db: Session,
    *,
    owner_id: str,
    player_name: str,
    session_name: str,
    session_date: datetime,
    buy_in: int,
    cash_out: int,
    denomination: Denomination | str = Denomination.CENTS,
    ledger_id: int | None = None,
    is_manual_entry: bool = True,
) -> PlayerPerformance:
    _validate_amounts(buy_in, cash_out)
    performance = PlayerPerformance(
        owner_id=owner_id,
        ledger_id=ledger_id,
        player_name=normalize_player(player_name),
        session_name=session_name.strip() or DEFAULT_SESSION_NAME,
        session_date=_naive_utc(session_date),
        buy_in=buy_in,
        cash_out=cash_out,
        profit=cash_out - buy_in,
        denomination=Denomination(denomination).value,
        is_manual_entry=is_manual_entry,
    )
    db.add(performance)
    db.commit()
    db.refresh(performance)
    logger.info("Recorded performance %s for %s (%s)", performance.id, performance.player_name, owner_id)
    return performance


def get_performance(db: Session, performance_id: int) -> PlayerPerformance:
    performance = db.get(PlayerPerformance, performance_id)
    if performance is None:
        raise PerformanceNotFoundError(f"performance {performance_id} not found")
    return performance


def update_performance(db: Session, performance_id: int, **changes: object) -> PlayerPerformance:
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise DomainValidationError(f"cannot update fields: {', '.join(sorted(unknown))}")

    performance = get_performance(db, performance_id)
    for name, value in changes.items():
        if value is None:
            continue
        if name == "player_name":
            value = normalize_player(str(value))
        elif name == "session_name":
            value = str(value).strip() or DEFAULT_SESSION_NAME
        elif name == "session_date":
            value = _naive_utc(value)  # type: ignore[arg-type]
        elif name == "denomination":
            value = Denomination(value).value
        setattr(performance, name, value)

    _validate_amounts(performance.buy_in, performance.cash_out)
    performance.profit = performance.cash_out - performance.buy_in
    db.commit()
    db.refresh(performance)
    return performance


def delete_performance(db: Session, performance_id: int) -> None:
    performance = get_performance(db, performance_id)
    db.delete(performance)
    db.commit()
    logger.info("Deleted performance %s", performance_id)


def performance_history(
    db: Session,
    owner_id: str,
    *,
    player: str | None = None,
    period_days: int | None = None,
) -> list[PlayerPerformance]:
    filters = [PlayerPerformance.owner_id == owner_id]
    if player is not None:
        filters.append(PlayerPerformance.player_name == player)
    if period_days is not None:
        since = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(days=period_days)
        filters.append(PlayerPerformance.session_date >= since)

    return list(
        db.scalars(
            select(PlayerPerformance)
            .where(*filters)
            .order_by(PlayerPerformance.session_date.desc(), PlayerPerformance.id.desc())
        ).all()
    )


def player_summary(
    db: Session,
    owner_id: str,
    player: str,
    *,
    period_days: int | None = None,
) -> PlayerSummary:
    history = performance_history(db, owner_id, player=player, period_days=period_days)
    return StatsService().aggregate(history, player=player)

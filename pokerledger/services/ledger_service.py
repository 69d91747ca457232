"""Ledger use cases: settle, store, list, share and delete session ledgers."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Sequence
from datetime import datetime, timezone

from pokerledger.config import Settings
from pokerledger.domain import (
    Denomination,
    DomainValidationError,
    PlayerLedgerEntry,
    SettlementResult,
    SettlementStrategy,
    UnbalancedLedgerError,
    check_balance,
    ensure_unique_players,
    settle_by,
)
from pokerledger.storage.repository import LedgerRepository, LedgerRow

logger = logging.getLogger("pokerledger.services.ledger")

MIN_PLAYERS = 2
DEFAULT_SESSION_NAME = "Poker Session"


class LedgerNotFoundError(LookupError):
    """Raised when a ledger id or share code does not resolve to a ledger."""


class LedgerAccessError(PermissionError):
    """Raised when a ledger is accessed by someone other than its owner."""


def settle_entries(
    entries: Sequence[PlayerLedgerEntry],
    settings: Settings,
    strategy: SettlementStrategy | str = SettlementStrategy.PROPORTIONAL,
) -> SettlementResult:
    """Settle a session, rejecting unbalanced ledgers when the settings ask for it."""
    if settings.enforce_balance:
        try:
            check_balance(entries, settings.balance_tolerance)
        except UnbalancedLedgerError as exc:
            logger.warning("Rejected unbalanced ledger: %s", exc)
            raise

    result = settle_by(entries, strategy)
    if result.unsettled:
        logger.warning("Settlement left debt unallocated: %s", result.unsettled)
    return result


def as_naive_utc(value: datetime | None) -> datetime:
    if value is None:
        return datetime.now(timezone.utc).replace(tzinfo=None)
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class LedgerService:
    def __init__(self, repo: LedgerRepository, settings: Settings) -> None:
        self.repo = repo
        self.settings = settings

    def settle_entries(
        self,
        entries: Sequence[PlayerLedgerEntry],
        strategy: SettlementStrategy | str = SettlementStrategy.PROPORTIONAL,
    ) -> SettlementResult:
        return settle_entries(entries, self.settings, strategy)

    def create_ledger(
        self,
        owner_id: str,
        entries: Sequence[PlayerLedgerEntry],
        *,
        session_name: str | None = None,
        session_date: datetime | None = None,
        denomination: Denomination | str = Denomination.CENTS,
        original_file_name: str | None = None,
        strategy: SettlementStrategy | str = SettlementStrategy.PROPORTIONAL,
    ) -> LedgerRow:
        owner_id = owner_id.strip()
        if not owner_id:
            raise DomainValidationError("owner_id must be non-empty")
        entries = list(entries)
        if len(entries) < MIN_PLAYERS:
            raise DomainValidationError(f"at least {MIN_PLAYERS} players required")
        ensure_unique_players(entries)
        denomination = Denomination(denomination)

        result = self.settle_entries(entries, strategy)
        ledger = self.repo.create_ledger(
            owner_id=owner_id,
            session_name=(session_name or "").strip() or DEFAULT_SESSION_NAME,
            session_date=as_naive_utc(session_date),
            denomination=denomination.value,
            original_file_name=original_file_name,
            strategy=SettlementStrategy(strategy).value,
            entries=entries,
            result=result,
        )
        logger.info(
            "Created ledger %s for %s: %d players, %d transactions",
            ledger.id,
            owner_id,
            len(ledger.players),
            len(ledger.transactions),
        )
        return ledger

    def get_ledger(self, ledger_id: int) -> LedgerRow:
        ledger = self.repo.get_ledger(ledger_id)
        if ledger is None:
            raise LedgerNotFoundError(f"ledger {ledger_id} not found")
        return ledger

    def get_owned_ledger(self, ledger_id: int, owner_id: str) -> LedgerRow:
        ledger = self.get_ledger(ledger_id)
        if ledger.owner_id != owner_id:
            raise LedgerAccessError(f"ledger {ledger_id} does not belong to {owner_id}")
        return ledger

    def list_ledgers(self, owner_id: str) -> list[LedgerRow]:
        return self.repo.list_ledgers(owner_id)

    def delete_ledger(self, ledger_id: int, owner_id: str) -> None:
        self.get_owned_ledger(ledger_id, owner_id)
        self.repo.delete_ledger(ledger_id)
        logger.info("Deleted ledger %s for %s", ledger_id, owner_id)

    def share_ledger(self, ledger_id: int, owner_id: str) -> str:
        ledger = self.get_owned_ledger(ledger_id, owner_id)
        if ledger.share_code:
            return ledger.share_code

        share_code = secrets.token_urlsafe(self.settings.share_code_bytes)
        while self.repo.share_code_exists(share_code):
            share_code = secrets.token_urlsafe(self.settings.share_code_bytes)
        self.repo.set_share_code(ledger_id, share_code)
        logger.info("Shared ledger %s as %s", ledger_id, share_code)
        return share_code

    def get_shared_ledger(self, share_code: str) -> LedgerRow:
        ledger = self.repo.get_by_share_code(share_code)
        if ledger is None:
            raise LedgerNotFoundError(f"no ledger shared as {share_code}")
        return ledger

"""Parsing of uploaded session ledgers (PokerNow CSV export)."""

from __future__ import annotations

import io
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from difflib import SequenceMatcher
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from pathlib import Path
from typing import IO

import pandas as pd

from pokerledger.domain import Denomination, DomainValidationError, PlayerLedgerEntry

NICKNAME_COLUMN = "player_nickname"
AMOUNT_COLUMNS = ("buy_in", "buy_out", "stack")
REQUIRED_COLUMNS = (NICKNAME_COLUMN, *AMOUNT_COLUMNS)
ALIAS_SIMILARITY_THRESHOLD = 0.7


class LedgerParseError(ValueError):
    """Raised when an uploaded ledger cannot be turned into player entries."""


@dataclass(slots=True)
class AliasTotals:
    nickname: str
    buy_in: int = 0
    buy_out: int = 0
    stack: int = 0

    @property
    def cash_out(self) -> int:
        return self.buy_out + self.stack


def to_minor_units(value: object, denomination: Denomination | str = Denomination.CENTS) -> int:
    try:
        denomination = Denomination(denomination)
    except ValueError as exc:
        raise LedgerParseError(f"unsupported denomination: {denomination}") from exc

    try:
        amount = Decimal(str(value).replace("$", "").replace(",", "").strip() or "0")
    except InvalidOperation as exc:
        raise LedgerParseError(f"invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise LedgerParseError(f"invalid amount: {value!r}")

    if denomination == Denomination.DOLLARS:
        amount = amount * 100
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_ledger_csv(
    source: str | bytes | Path | IO,
    denomination: Denomination | str = Denomination.CENTS,
) -> list[AliasTotals]:
    """Aggregate ledger rows per nickname, keeping first-seen order.

    ``str`` and ``bytes`` are treated as CSV content, a ``Path`` as a file.
    """
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    elif isinstance(source, str):
        source = io.StringIO(source)

    try:
        frame = pd.read_csv(source, dtype={NICKNAME_COLUMN: str})
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise LedgerParseError(f"could not read ledger csv: {exc}") from exc

    frame.columns = [str(column).strip() for column in frame.columns]
    missing = [column for column in REQUIRED_COLUMNS if column not in frame.columns]
    if missing:
        raise LedgerParseError(f"ledger csv is missing columns: {', '.join(missing)}")

    frame = frame[frame[NICKNAME_COLUMN].notna()]
    frame = frame.assign(**{NICKNAME_COLUMN: frame[NICKNAME_COLUMN].str.strip()})
    frame = frame[frame[NICKNAME_COLUMN] != ""]

    totals: dict[str, AliasTotals] = {}
    for row in frame.to_dict(orient="records"):
        nickname = row[NICKNAME_COLUMN]
        summary = totals.setdefault(nickname, AliasTotals(nickname=nickname))
        for column in AMOUNT_COLUMNS:
            value = row[column]
            if pd.isna(value):
                continue
            setattr(summary, column, getattr(summary, column) + to_minor_units(value, denomination))

    return list(totals.values())


def nickname_similarity(left: str, right: str) -> float:
    return SequenceMatcher(None, left.lower(), right.lower()).ratio()


def detect_alias_groups(
    nicknames: Iterable[str],
    threshold: float = ALIAS_SIMILARITY_THRESHOLD,
) -> list[list[str]]:
    """Group nicknames that look like the same player.

    Each group starts with the first unassigned nickname, which is the
    suggested player name, and collects every later unassigned nickname whose
    case-insensitive similarity to it reaches ``threshold``.
    """
    nicknames = list(nicknames)
    assigned: set[str] = set()
    groups: list[list[str]] = []
    for nickname in nicknames:
        if nickname in assigned:
            continue
        group = [nickname]
        assigned.add(nickname)
        for other in nicknames:
            if other not in assigned and nickname_similarity(nickname, other) >= threshold:
                group.append(other)
                assigned.add(other)
        groups.append(group)
    return groups


def alias_map_from_groups(groups: Iterable[Sequence[str]]) -> dict[str, str]:
    return {alias: group[0] for group in groups for alias in group}


def group_aliases(
    totals: list[AliasTotals],
    alias_map: Mapping[str, str] | None = None,
) -> list[PlayerLedgerEntry]:
    """Merge nicknames that belong to the same player into ledger entries."""
    alias_map = alias_map or {}
    merged: dict[str, list[int]] = {}
    for summary in totals:
        name = (alias_map.get(summary.nickname) or summary.nickname).strip()
        buy_in_and_cash_out = merged.setdefault(name, [0, 0])
        buy_in_and_cash_out[0] += summary.buy_in
        buy_in_and_cash_out[1] += summary.cash_out

    try:
        return [
            PlayerLedgerEntry(name=name, buy_in=buy_in, cash_out=cash_out)
            for name, (buy_in, cash_out) in merged.items()
        ]
    except DomainValidationError as exc:
        raise LedgerParseError(str(exc)) from exc


def parse_ledger_entries(
    source: str | bytes | Path | IO,
    *,
    alias_map: Mapping[str, str] | None = None,
    denomination: Denomination | str = Denomination.CENTS,
    detect_aliases: bool = True,
) -> list[PlayerLedgerEntry]:
    """Parse a ledger into player entries.

    Without an explicit ``alias_map`` similar nicknames are merged under the
    first one seen, unless ``detect_aliases`` is off.
    """
    totals = parse_ledger_csv(source, denomination)
    if alias_map is None and detect_aliases:
        alias_map = alias_map_from_groups(detect_alias_groups(summary.nickname for summary in totals))
    return group_aliases(totals, alias_map)

"""Domain logic for settling a poker session into loser -> winner payments.

With the default proportional strategy every loser pays exactly what they
lost. Each loser's debt is spread over the winners in proportion to each
winner's share of the total winnings; rounding leftovers go to the last
payment that loser made. All arithmetic is done on integers in the ledger's
minor unit.

The minimize strategy instead matches the biggest debtor with the biggest
creditor until one of them is square, which usually needs fewer payments.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from itertools import chain

from .ledger import DomainValidationError, PlayerLedgerEntry, SettlementTransaction, UnbalancedLedgerError


class SettlementStrategy(str, Enum):
    PROPORTIONAL = "proportional"
    MINIMIZE = "minimize"


@dataclass(frozen=True)
class SettlementResult:
    transactions: tuple[SettlementTransaction, ...] = ()
    # loser name -> amount that could not be allocated to any winner
    unsettled: dict[str, int] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "transactions", tuple(self.transactions))
        object.__setattr__(self, "unsettled", dict(self.unsettled))

    @property
    def total_settled(self) -> int:
        return sum(transaction.amount for transaction in self.transactions)

    @property
    def is_fully_settled(self) -> bool:
        return not self.unsettled

    def to_dict(self) -> dict[str, object]:
        return {
            "transactions": [transaction.to_dict() for transaction in self.transactions],
            "unsettled": dict(self.unsettled),
        }


def round_half_up_div(numerator: int, denominator: int) -> int:
    """Divide non-negative integers, rounding halves up (away from zero)."""
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return (2 * numerator + denominator) // (2 * denominator)


def calculate_net(entries: Iterable[PlayerLedgerEntry]) -> dict[str, int]:
    return {entry.name: entry.net for entry in entries}


def check_balance(entries: Iterable[PlayerLedgerEntry], tolerance: int = 0) -> int:
    """Return ``cash-outs - buy-ins``, raising when it exceeds ``tolerance``."""
    entries = tuple(entries)
    total_buy_in = sum(entry.buy_in for entry in entries)
    total_cash_out = sum(entry.cash_out for entry in entries)
    difference = total_cash_out - total_buy_in
    if abs(difference) > tolerance:
        raise UnbalancedLedgerError(
            total_buy_in=total_buy_in,
            total_cash_out=total_cash_out,
            tolerance=tolerance,
        )
    return difference


def settle(entries: Iterable[PlayerLedgerEntry]) -> SettlementResult:
    entries = tuple(entries)
    winners = [(entry.name, entry.net) for entry in entries if entry.is_winner]
    losers = [(entry.name, -entry.net) for entry in entries if entry.is_loser]

    total_winnings = sum(to_receive for _, to_receive in winners)
    if total_winnings == 0:
        return SettlementResult(unsettled=_merge_unsettled((name, to_pay) for name, to_pay in losers))

    per_loser = [
        (name, *_settle_loser(name, to_pay, winners, total_winnings))
        for name, to_pay in losers
    ]
    transactions = tuple(chain.from_iterable(payments for _, payments, _ in per_loser))
    unsettled = _merge_unsettled((name, leftover) for name, _, leftover in per_loser)
    return SettlementResult(transactions=transactions, unsettled=unsettled)


def calculate_transfers(entries: Iterable[PlayerLedgerEntry]) -> list[SettlementTransaction]:
    return list(settle(entries).transactions)


def _settle_loser(
    loser: str,
    to_pay: int,
    winners: Sequence[tuple[str, int]],
    total_winnings: int,
) -> tuple[tuple[SettlementTransaction, ...], int]:
    payments: tuple[SettlementTransaction, ...] = ()
    remaining = to_pay
    for winner, to_receive in winners:
        if remaining <= 0:
            break
        share = round_half_up_div(to_pay * to_receive, total_winnings)
        amount = min(remaining, share)
        if amount > 0:
            payments = payments + (SettlementTransaction(sender=loser, receiver=winner, amount=amount),)
            remaining -= amount

    if remaining > 0 and payments:
        last = payments[-1]
        payments = payments[:-1] + (replace(last, amount=last.amount + remaining),)
        remaining = 0

    return payments, remaining


def _merge_unsettled(amounts: Iterable[tuple[str, int]]) -> dict[str, int]:
    unsettled: dict[str, int] = {}
    for name, amount in amounts:
        if amount > 0:
            unsettled[name] = unsettled.get(name, 0) + amount
    return unsettled


def minimize_transfers(entries: Iterable[PlayerLedgerEntry]) -> SettlementResult:
    """Settle greedily: largest debtor pays largest creditor until one is square.

    Ties keep input order. Debt left over once every creditor is paid is
    reported in ``unsettled``.
    """
    entries = tuple(entries)
    creditors = sorted(
        ((entry.name, entry.net) for entry in entries if entry.is_winner),
        key=lambda item: -item[1],
    )
    debtors = sorted(
        ((entry.name, -entry.net) for entry in entries if entry.is_loser),
        key=lambda item: -item[1],
    )

    transactions: list[SettlementTransaction] = []
    creditor_idx = 0
    debtor_idx = 0
    while creditor_idx < len(creditors) and debtor_idx < len(debtors):
        creditor_name, creditor_amount = creditors[creditor_idx]
        debtor_name, debtor_amount = debtors[debtor_idx]

        amount = min(creditor_amount, debtor_amount)
        transactions.append(SettlementTransaction(sender=debtor_name, receiver=creditor_name, amount=amount))

        creditor_amount -= amount
        debtor_amount -= amount
        creditors[creditor_idx] = (creditor_name, creditor_amount)
        debtors[debtor_idx] = (debtor_name, debtor_amount)

        if creditor_amount == 0:
            creditor_idx += 1
        if debtor_amount == 0:
            debtor_idx += 1

    return SettlementResult(
        transactions=tuple(transactions),
        unsettled=_merge_unsettled(debtors[debtor_idx:]),
    )


def settle_by(
    entries: Iterable[PlayerLedgerEntry],
    strategy: SettlementStrategy | str = SettlementStrategy.PROPORTIONAL,
) -> SettlementResult:
    try:
        strategy = SettlementStrategy(strategy)
    except ValueError as exc:
        raise DomainValidationError(f"unknown settlement strategy: {strategy}") from exc

    if strategy is SettlementStrategy.MINIMIZE:
        return minimize_transfers(entries)
    return settle(entries)

from .ledger import (
    Denomination,
    DomainValidationError,
    PlayerLedgerEntry,
    SettlementTransaction,
    UnbalancedLedgerError,
    ensure_unique_players,
    normalize_player,
    unique_preserve_order,
)
from .settlement import (
    SettlementResult,
    SettlementStrategy,
    calculate_net,
    calculate_transfers,
    check_balance,
    minimize_transfers,
    round_half_up_div,
    settle,
    settle_by,
)

__all__ = [
    "Denomination",
    "DomainValidationError",
    "PlayerLedgerEntry",
    "SettlementResult",
    "SettlementStrategy",
    "SettlementTransaction",
    "UnbalancedLedgerError",
    "calculate_net",
    "calculate_transfers",
    "check_balance",
    "ensure_unique_players",
    "minimize_transfers",
    "normalize_player",
    "round_half_up_div",
    "settle",
    "settle_by",
    "unique_preserve_order",
]

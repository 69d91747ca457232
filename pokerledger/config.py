from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./pokerledger.db"
    # Allowed |cash-outs - buy-ins| per ledger; negative disables the check.
    balance_tolerance: int = 0
    share_code_bytes: int = 6
    log_level: str = "INFO"

    @property
    def enforce_balance(self) -> bool:
        return self.balance_tolerance >= 0


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./pokerledger.db"),
        balance_tolerance=_int_from_env("LEDGER_BALANCE_TOLERANCE", 0),
        share_code_bytes=_int_from_env("SHARE_CODE_BYTES", 6),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str | int = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("pokerledger").setLevel(level)

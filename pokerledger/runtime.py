from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from pokerledger.config import Settings, get_settings
from pokerledger.services.ledger_service import LedgerService
from pokerledger.storage.database import get_db
from pokerledger.storage.repository import LedgerRepository


def get_ledger_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> LedgerService:
    return LedgerService(LedgerRepository(db), settings)

from __future__ import annotations

from fastapi import APIRouter, Query

from pokerledger.api.schemas import DemoLedgerResponse, PlayerEntryModel, TransactionModel
from pokerledger.services.demo_data import generate_demo_ledgers

router = APIRouter(prefix="/demo", tags=["demo"])


@router.get("/ledgers", response_model=list[DemoLedgerResponse], summary="Sample ledgers for the dashboard")
def demo_ledgers(
    count: int = Query(default=5, ge=1, le=50),
    seed: int | None = None,
) -> list[DemoLedgerResponse]:
    return [
        DemoLedgerResponse(
            id=ledger.id,
            session_name=ledger.session_name,
            session_date=ledger.session_date,
            denomination=ledger.denomination,
            is_demo=ledger.is_demo,
            players=[PlayerEntryModel.from_entry(entry) for entry in ledger.players],
            transactions=[TransactionModel.from_transaction(tx) for tx in ledger.transactions],
        )
        for ledger in generate_demo_ledgers(count, seed=seed)
    ]

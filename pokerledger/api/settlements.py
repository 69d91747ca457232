from __future__ import annotations

from fastapi import APIRouter, Depends

from pokerledger.api.errors import domain_error
from pokerledger.api.schemas import SettlementRequest, SettlementResponse, TransactionModel
from pokerledger.config import Settings, get_settings
from pokerledger.domain import DomainValidationError, calculate_net, ensure_unique_players
from pokerledger.services.ledger_service import settle_entries

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.post(
    "",
    response_model=SettlementResponse,
    summary="Compute who pays whom for one session",
)
def compute_settlement(
    payload: SettlementRequest,
    settings: Settings = Depends(get_settings),
) -> SettlementResponse:
    try:
        entries = [player.to_entry() for player in payload.players]
        ensure_unique_players(entries)
        result = settle_entries(entries, settings, payload.strategy)
    except DomainValidationError as exc:
        raise domain_error(exc) from exc

    return SettlementResponse(
        strategy=payload.strategy,
        net=calculate_net(entries),
        transactions=[TransactionModel.from_transaction(tx) for tx in result.transactions],
        unsettled=result.unsettled,
        total_settled=result.total_settled,
    )

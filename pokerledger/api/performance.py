from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pokerledger.api.errors import api_error
from pokerledger.api.schemas import (
    PerformanceCreateRequest,
    PerformanceResponse,
    PerformanceUpdateRequest,
    PlayerSummaryResponse,
)
from pokerledger.domain import DomainValidationError
from pokerledger.services.stats_service import (
    PerformanceNotFoundError,
    delete_performance,
    performance_history,
    player_summary,
    record_performance,
    update_performance,
)
from pokerledger.storage.database import get_db

router = APIRouter(prefix="/performance", tags=["performance"])


@router.get("", response_model=list[PerformanceResponse])
def list_performance(
    owner_id: str = Query(..., min_length=1),
    player: str | None = None,
    period_days: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
) -> list[PerformanceResponse]:
    history = performance_history(db, owner_id, player=player, period_days=period_days)
    return [PerformanceResponse.model_validate(row) for row in history]


@router.post("", response_model=PerformanceResponse, status_code=status.HTTP_201_CREATED)
def create_performance(payload: PerformanceCreateRequest, db: Session = Depends(get_db)) -> PerformanceResponse:
    try:
        performance = record_performance(db, **payload.model_dump())
    except DomainValidationError as exc:
        raise api_error(code="invalid_performance", message=str(exc)) from exc
    return PerformanceResponse.model_validate(performance)


@router.put("/{performance_id}", response_model=PerformanceResponse)
def edit_performance(
    performance_id: int,
    payload: PerformanceUpdateRequest,
    db: Session = Depends(get_db),
) -> PerformanceResponse:
    try:
        performance = update_performance(db, performance_id, **payload.model_dump(exclude_none=True))
    except PerformanceNotFoundError as exc:
        raise api_error(code="performance_not_found", message=str(exc), status_code=404) from exc
    except DomainValidationError as exc:
        raise api_error(code="invalid_performance", message=str(exc)) from exc
    return PerformanceResponse.model_validate(performance)


@router.delete("/{performance_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_performance(performance_id: int, db: Session = Depends(get_db)) -> None:
    try:
        delete_performance(db, performance_id)
    except PerformanceNotFoundError as exc:
        raise api_error(code="performance_not_found", message=str(exc), status_code=404) from exc


@router.get("/summary/{player}", response_model=PlayerSummaryResponse)
def summary(
    player: str,
    owner_id: str = Query(..., min_length=1),
    period_days: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
) -> PlayerSummaryResponse:
    return PlayerSummaryResponse.model_validate(player_summary(db, owner_id, player, period_days=period_days))

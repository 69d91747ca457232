from __future__ import annotations

import json

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from pokerledger.api.errors import api_error, domain_error
from pokerledger.api.schemas import (
    AliasGroupModel,
    CreateLedgerRequest,
    LedgerResponse,
    PlayerEntryModel,
    SharedLedgerResponse,
    ShareResponse,
    TransactionModel,
)
from pokerledger.domain import Denomination, DomainValidationError, SettlementStrategy
from pokerledger.runtime import get_ledger_service
from pokerledger.services.ledger_parser import (
    LedgerParseError,
    detect_alias_groups,
    parse_ledger_csv,
    parse_ledger_entries,
)
from pokerledger.services.ledger_service import LedgerAccessError, LedgerNotFoundError, LedgerService
from pokerledger.storage.repository import LedgerRow

router = APIRouter(prefix="/ledgers", tags=["ledgers"])
shared_router = APIRouter(prefix="/shared", tags=["ledgers"])


def _to_response(ledger: LedgerRow) -> LedgerResponse:
    return LedgerResponse(
        id=ledger.id,
        owner_id=ledger.owner_id,
        session_name=ledger.session_name,
        session_date=ledger.session_date,
        denomination=ledger.denomination,
        original_file_name=ledger.original_file_name,
        share_code=ledger.share_code,
        strategy=ledger.strategy,
        created_at=ledger.created_at,
        players=[PlayerEntryModel.from_entry(entry) for entry in ledger.players],
        transactions=[TransactionModel.from_transaction(tx) for tx in ledger.transactions],
        unsettled=ledger.unsettled,
    )


def _to_shared_response(ledger: LedgerRow) -> SharedLedgerResponse:
    return SharedLedgerResponse(
        session_name=ledger.session_name,
        session_date=ledger.session_date,
        denomination=ledger.denomination,
        players=[PlayerEntryModel.from_entry(entry) for entry in ledger.players],
        transactions=[TransactionModel.from_transaction(tx) for tx in ledger.transactions],
    )


def _not_found(exc: LedgerNotFoundError) -> HTTPException:
    return api_error(code="ledger_not_found", message=str(exc), status_code=status.HTTP_404_NOT_FOUND)


def _forbidden(exc: LedgerAccessError) -> HTTPException:
    return api_error(code="ledger_forbidden", message=str(exc), status_code=status.HTTP_403_FORBIDDEN)


def _parse_alias_map(aliases: str | None) -> dict[str, str] | None:
    if not aliases:
        return None
    try:
        alias_map = json.loads(aliases)
    except json.JSONDecodeError as exc:
        raise api_error(code="invalid_aliases", message=f"aliases must be JSON: {exc}") from exc
    if not isinstance(alias_map, dict) or not all(isinstance(value, str) for value in alias_map.values()):
        raise api_error(code="invalid_aliases", message="aliases must map nicknames to player names")
    return alias_map


async def _read_upload(file: UploadFile) -> bytes:
    data = await file.read()
    if not data:
        raise api_error(code="empty_upload", message="uploaded ledger is empty")
    return data


@router.post(
    "",
    response_model=LedgerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Settle and save a session ledger",
)
def create_ledger(
    payload: CreateLedgerRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> LedgerResponse:
    try:
        ledger = service.create_ledger(
            payload.owner_id,
            [player.to_entry() for player in payload.players],
            session_name=payload.session_name,
            session_date=payload.session_date,
            denomination=payload.denomination,
            original_file_name=payload.original_file_name,
            strategy=payload.strategy,
        )
    except DomainValidationError as exc:
        raise domain_error(exc) from exc
    return _to_response(ledger)


@router.post(
    "/aliases",
    response_model=list[AliasGroupModel],
    summary="Suggest which PokerNow nicknames belong to the same player",
)
async def suggest_aliases(
    denomination: Denomination = Form(default=Denomination.CENTS),
    file: UploadFile = File(...),
) -> list[AliasGroupModel]:
    data = await _read_upload(file)
    try:
        totals = parse_ledger_csv(data, denomination)
    except LedgerParseError as exc:
        raise api_error(code="invalid_ledger_file", message=str(exc)) from exc
    return [
        AliasGroupModel(player=group[0], aliases=group)
        for group in detect_alias_groups(summary.nickname for summary in totals)
    ]


@router.post(
    "/upload",
    response_model=LedgerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Settle and save a PokerNow ledger CSV",
)
async def upload_ledger(
    owner_id: str = Form(...),
    session_name: str | None = Form(default=None),
    denomination: Denomination = Form(default=Denomination.CENTS),
    strategy: SettlementStrategy = Form(default=SettlementStrategy.PROPORTIONAL),
    aliases: str | None = Form(default=None, description="JSON object mapping nickname to player name"),
    detect_aliases: bool = Form(default=True, description="Merge similar nicknames when no aliases are given"),
    file: UploadFile = File(...),
    service: LedgerService = Depends(get_ledger_service),
) -> LedgerResponse:
    alias_map = _parse_alias_map(aliases)
    data = await _read_upload(file)

    try:
        # uploaded amounts are read in the given denomination and stored in cents
        entries = parse_ledger_entries(
            data,
            alias_map=alias_map,
            denomination=denomination,
            detect_aliases=detect_aliases,
        )
        ledger = service.create_ledger(
            owner_id,
            entries,
            session_name=session_name,
            denomination=Denomination.CENTS,
            original_file_name=file.filename,
            strategy=strategy,
        )
    except LedgerParseError as exc:
        raise api_error(code="invalid_ledger_file", message=str(exc)) from exc
    except DomainValidationError as exc:
        raise domain_error(exc) from exc
    return _to_response(ledger)


@router.get("", response_model=list[LedgerResponse], summary="List an owner's ledgers, newest first")
def list_ledgers(
    owner_id: str = Query(..., min_length=1),
    service: LedgerService = Depends(get_ledger_service),
) -> list[LedgerResponse]:
    return [_to_response(ledger) for ledger in service.list_ledgers(owner_id)]


@router.get("/{ledger_id}", response_model=LedgerResponse, summary="Get one of an owner's ledgers")
def get_ledger(
    ledger_id: int,
    owner_id: str = Query(..., min_length=1),
    service: LedgerService = Depends(get_ledger_service),
) -> LedgerResponse:
    try:
        return _to_response(service.get_owned_ledger(ledger_id, owner_id))
    except LedgerNotFoundError as exc:
        raise _not_found(exc) from exc
    except LedgerAccessError as exc:
        raise _forbidden(exc) from exc


@router.delete("/{ledger_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a ledger")
def delete_ledger(
    ledger_id: int,
    owner_id: str = Query(..., min_length=1),
    service: LedgerService = Depends(get_ledger_service),
) -> None:
    try:
        service.delete_ledger(ledger_id, owner_id)
    except LedgerNotFoundError as exc:
        raise _not_found(exc) from exc
    except LedgerAccessError as exc:
        raise _forbidden(exc) from exc


@router.post("/{ledger_id}/share", response_model=ShareResponse, summary="Create a public share code")
def share_ledger(
    ledger_id: int,
    owner_id: str = Query(..., min_length=1),
    service: LedgerService = Depends(get_ledger_service),
) -> ShareResponse:
    try:
        share_code = service.share_ledger(ledger_id, owner_id)
    except LedgerNotFoundError as exc:
        raise _not_found(exc) from exc
    except LedgerAccessError as exc:
        raise _forbidden(exc) from exc
    return ShareResponse(id=ledger_id, share_code=share_code)


@shared_router.get("/{share_code}", response_model=SharedLedgerResponse, summary="Get the public view of a shared ledger")
def get_shared_ledger(share_code: str, service: LedgerService = Depends(get_ledger_service)) -> SharedLedgerResponse:
    try:
        return _to_shared_response(service.get_shared_ledger(share_code))
    except LedgerNotFoundError as exc:
        raise _not_found(exc) from exc

"""Account ledger endpoints: deposit, withdraw, balance and statement."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Path
from fastapi.responses import PlainTextResponse

from app.interfaces.http.deps import get_ledger_service
from app.modules.ledger import LedgerService
from app.schemas import AccountOperationRequest, BalanceResponse, ErrorResponse, OperationResponse

router = APIRouter()

DEPOSIT_SUCCESSFUL = "Deposit successful"
WITHDRAW_SUCCESSFUL = "Withdraw successful"

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid amount or insufficient balance"},
    404: {"model": ErrorResponse, "description": "Account does not exist"},
    503: {"model": ErrorResponse, "description": "Account busy, retry later"},
}


@router.post("/deposit", response_model=OperationResponse, responses=ERROR_RESPONSES, summary="Deposit money")
async def deposit(
    payload: AccountOperationRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> OperationResponse:
    await service.deposit(payload.account_id, payload.amount)
    return OperationResponse(message=DEPOSIT_SUCCESSFUL)


@router.post("/withdraw", response_model=OperationResponse, responses=ERROR_RESPONSES, summary="Withdraw money")
async def withdraw(
    payload: AccountOperationRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> OperationResponse:
    await service.withdraw(payload.account_id, payload.amount)
    return OperationResponse(message=WITHDRAW_SUCCESSFUL)


@router.get("/{account_id}/balance", response_model=BalanceResponse, responses=ERROR_RESPONSES, summary="Current balance")
async def get_balance(
    account_id: str = Path(..., min_length=1, max_length=64),
    service: LedgerService = Depends(get_ledger_service),
) -> BalanceResponse:
    balance = await service.get_balance(account_id)
    return BalanceResponse(account_id=account_id, balance=balance)


@router.get(
    "/{account_id}/statement",
    response_class=PlainTextResponse,
    responses=ERROR_RESPONSES,
    summary="Statement, most recent operation first",
)
async def get_statement(
    account_id: str = Path(..., min_length=1, max_length=64),
    service: LedgerService = Depends(get_ledger_service),
) -> str:
    return await service.get_statement(account_id)

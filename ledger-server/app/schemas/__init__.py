"""Pydantic schemas used across the project."""
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class AccountOperationRequest(BaseModel):
    account_id: str = Field(..., min_length=1, max_length=64, alias="accountId")
    amount: Decimal

    model_config = ConfigDict(populate_by_name=True)


class OperationResponse(BaseModel):
    message: str


class BalanceResponse(BaseModel):
    account_id: str
    balance: Decimal


class ErrorResponse(BaseModel):
    detail: str

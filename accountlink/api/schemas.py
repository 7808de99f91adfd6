"""
Pydantic models for API requests and responses
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..accounts import Account


class CreateAccountRequest(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)


class TransferRequest(BaseModel):
    to_account: int
    amount: int = Field(..., gt=0, description="Amount in minor units")


class AccountModel(BaseModel):
    id: int
    first_name: str
    last_name: str
    number: int
    balance: int
    created_at: datetime

    @classmethod
    def from_account(cls, account: Account) -> 'AccountModel':
        return cls(
            id=account.id,
            first_name=account.first_name,
            last_name=account.last_name,
            number=account.number,
            balance=account.balance,
            created_at=account.created_at,
        )


class CreateAccountResponse(AccountModel):
    token: str


class LinkedIdentityModel(BaseModel):
    id: str
    global_name: Optional[str] = None
    avatar: Optional[str] = None
    avatar_url: Optional[str] = None
    created: bool

"""
Account management endpoints
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from .schemas import AccountModel, CreateAccountRequest, CreateAccountResponse
from .system import LinkSystem, get_system, require_token
from ..tokens import TokenClaims


router = APIRouter()


@router.get("", response_model=List[AccountModel])
async def list_accounts(system: LinkSystem = Depends(get_system)):
    """List all accounts"""
    return [AccountModel.from_account(account) for account in system.accounts.list_accounts()]


@router.post("", response_model=CreateAccountResponse)
async def create_account(
    request: CreateAccountRequest,
    system: LinkSystem = Depends(get_system)
):
    """Create an account and return it with a bearer token for its number"""
    # No account is stored when tokens cannot be issued
    system.tokens.check_signing_key()
    account = system.accounts.create_account(request.first_name, request.last_name)
    token = system.tokens.mint(account)
    return CreateAccountResponse(**AccountModel.from_account(account).model_dump(), token=token)


@router.get("/{account_id}", response_model=AccountModel)
async def get_account(
    account_id: int,
    claims: TokenClaims = Depends(require_token),
    system: LinkSystem = Depends(get_system)
):
    """Get account details"""
    account = system.accounts.get_account(account_id)
    system.gate.check_account(claims, account)
    if account is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return AccountModel.from_account(account)


@router.delete("/{account_id}")
async def delete_account(
    account_id: int,
    claims: TokenClaims = Depends(require_token),
    system: LinkSystem = Depends(get_system)
):
    """Delete an account by id"""
    system.gate.check_account(claims, system.accounts.get_account(account_id))
    if not system.accounts.delete_account(account_id):
        raise HTTPException(status_code=404, detail="Account not found")
    return None

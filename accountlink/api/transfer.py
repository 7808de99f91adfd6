"""
Transfer endpoint

Requests are validated and acknowledged; balances are not moved.
"""

import logging

from fastapi import APIRouter

from .schemas import TransferRequest
from ..logging_config import log_action


router = APIRouter()

logger = logging.getLogger("accountlink.transfer")


@router.post("")
async def transfer(request: TransferRequest):
    """Accept a transfer request without applying it"""
    log_action(logger, "info", "Transfer request accepted but not applied",
               action="transfer", resource=f"account/{request.to_account}",
               extra={"amount": request.amount})
    return None

"""
Access Gate Module

Guards account-scoped routes: reads the credential from the ``x-jwt-token``
header, verifies it, and rejects the request before the protected handler
runs. By default any valid token passes regardless of which account the
route targets; ``gate_enforce_account_match`` adds the path-vs-claim check.
"""

from typing import Optional
import logging

from fastapi import Request

from .accounts import Account
from .config import AccountLinkConfig
from .errors import InvalidTokenError
from .logging_config import log_action
from .tokens import TokenClaims, TokenService


logger = logging.getLogger("accountlink.gate")

TOKEN_HEADER = "x-jwt-token"


class AccessGate:
    """Extract, verify, reject or continue"""

    def __init__(self, tokens: TokenService, config: AccountLinkConfig):
        self.tokens = tokens
        self.config = config

    def extract_token(self, request: Request) -> Optional[str]:
        token = request.headers.get(TOKEN_HEADER)
        return token.strip() if token else None

    def verify(self, token: Optional[str]) -> TokenClaims:
        if not token:
            raise InvalidTokenError("missing token header")
        return self.tokens.verify(token)

    def __call__(self, request: Request) -> TokenClaims:
        try:
            claims = self.verify(self.extract_token(request))
        except InvalidTokenError as e:
            # Reason stays in the log; the client only sees "invalid token"
            log_action(logger, "warning", f"Token rejected: {e}", action="gate_reject",
                       resource=request.url.path)
            raise

        log_action(logger, "info", "Token accepted", action="gate_pass",
                   resource=request.url.path, account_number=claims.account_number)
        return claims

    def check_account(self, claims: TokenClaims, account: Optional[Account]) -> None:
        """Reject when match enforcement is on and the token is for another account"""
        if not self.config.gate_enforce_account_match or account is None:
            return
        if account.number != claims.account_number:
            log_action(logger, "warning", "Token bound to a different account",
                       action="gate_reject", resource=f"account/{account.id}",
                       account_number=claims.account_number)
            raise InvalidTokenError("token is not bound to this account")

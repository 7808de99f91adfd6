"""
Token Service Module

Mints and verifies stateless HMAC-signed bearer tokens bound to an account
number. Claims are ``{"expiresAt": <unix seconds>, "accountNumber": <int>}``.
"""

from dataclasses import dataclass
from typing import Callable, Optional
import logging
import time

import jwt

from .accounts import Account
from .config import AccountLinkConfig
from .errors import InvalidTokenError, SigningError
from .logging_config import log_action


logger = logging.getLogger("accountlink.tokens")

SIGNING_ALGORITHM = "HS256"
# Only the symmetric HMAC family is accepted; anything else is rejected
ACCEPTED_ALGORITHMS = ["HS256", "HS384", "HS512"]
REQUIRED_CLAIMS = ["expiresAt", "accountNumber"]


@dataclass(frozen=True)
class TokenClaims:
    account_number: int
    expires_at: float


class TokenService:
    """Issues and checks bearer tokens using the configured secret"""

    def __init__(self, config: AccountLinkConfig, clock: Optional[Callable[[], float]] = None):
        self.config = config
        self._clock = clock or time.time

    def mint(self, account: Account) -> str:
        """
        Create a signed token for the account's number.

        Raises:
            SigningError: if no secret is configured or signing fails
        """
        self.check_signing_key()

        payload = {
            "expiresAt": int(self._clock()) + self.config.jwt_ttl_seconds,
            "accountNumber": account.number,
        }
        try:
            token = jwt.encode(payload, self.config.jwt_secret, algorithm=SIGNING_ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            raise SigningError(f"could not sign token: {e}") from e

        log_action(logger, "info", "Token minted", action="mint_token",
                   account_number=account.number)
        return token

    def check_signing_key(self) -> None:
        """
        Raises:
            SigningError: if no secret is configured
        """
        if not self.config.jwt_secret:
            raise SigningError("token signing secret is not configured")

    def verify(self, token: str) -> TokenClaims:
        """
        Parse and validate a token.

        Raises:
            InvalidTokenError: for malformed input, a non-HMAC algorithm,
                a bad signature, missing claims or an expired token
        """
        if not token or not self.config.jwt_secret:
            raise InvalidTokenError("missing token or secret")

        try:
            payload = jwt.decode(
                token,
                self.config.jwt_secret,
                algorithms=ACCEPTED_ALGORITHMS,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.PyJWTError as e:
            raise InvalidTokenError(str(e)) from e

        expires_at = payload["expiresAt"]
        account_number = payload["accountNumber"]
        if not _is_number(expires_at) or not _is_int(account_number):
            raise InvalidTokenError("claims have the wrong type")
        if expires_at <= self._clock():
            raise InvalidTokenError("token expired")

        return TokenClaims(account_number=account_number, expires_at=expires_at)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)

"""
Service container and FastAPI dependencies
"""

from typing import Optional

import httpx
from fastapi import Depends, Request

from ..accounts import AccountDirectory
from ..config import AccountLinkConfig, get_config
from ..gate import AccessGate
from ..identities import IdentityDirectory
from ..oauth import OAuthLinkingFlow, OAuthStateStore
from ..storage import StorageInterface, create_storage
from ..tokens import TokenClaims, TokenService


class LinkSystem:
    """All services wired from one immutable configuration"""

    def __init__(self, config: Optional[AccountLinkConfig] = None,
                 storage: Optional[StorageInterface] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or get_config()
        self.storage = storage or create_storage(self.config.database_url)

        self.accounts = AccountDirectory(self.storage)
        self.identities = IdentityDirectory(self.storage)
        self.tokens = TokenService(self.config)
        self.gate = AccessGate(self.tokens, self.config)
        self.oauth_states = OAuthStateStore(self.storage, self.config.oauth_state_ttl_seconds)
        self.oauth = OAuthLinkingFlow(self.config, self.identities, self.oauth_states,
                                      transport=transport)

    def close(self) -> None:
        self.storage.close()


def get_system(request: Request) -> LinkSystem:
    return request.app.state.system


def require_token(request: Request, system: LinkSystem = Depends(get_system)) -> TokenClaims:
    """Access gate for account-scoped routes"""
    return system.gate(request)

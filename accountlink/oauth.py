"""
OAuth Linking Module

Drives the authorization-code flow against the external identity provider
(Discord by default): login redirect with a single-use state value, code
exchange, profile fetch, and persistence of the external identity if it
has not been seen before.
"""

from dataclasses import dataclass
from typing import Callable, Optional
import logging
import secrets
import time

import httpx

from .config import AccountLinkConfig
from .errors import (
    DecodeError, DuplicateIdentityError, DuplicateRecordError, ExchangeError,
    ProfileFetchError, StateMismatchError,
)
from .identities import ExternalIdentity, IdentityDirectory
from .logging_config import log_action
from .storage import StorageInterface


logger = logging.getLogger("accountlink.oauth")

STATES_TABLE = "oauth_state"
STATE_BYTES = 32


class OAuthStateStore:
    """
    Server-side record of issued login states.

    Each state is random, expires after the configured TTL and can be
    consumed exactly once. Records live in shared storage so independent
    worker processes agree on them.
    """

    def __init__(self, storage: StorageInterface, ttl_seconds: int,
                 clock: Optional[Callable[[], float]] = None):
        self.storage = storage
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.time

    def issue(self) -> str:
        self.purge_expired()
        while True:
            state = secrets.token_urlsafe(STATE_BYTES)
            try:
                self.storage.insert(STATES_TABLE, state, {
                    "state": state,
                    "expires_at": self._clock() + self.ttl_seconds,
                })
            except DuplicateRecordError:
                continue
            return state

    def consume(self, state: str) -> bool:
        """Return True once for a live state; False if unknown, used or expired"""
        record = self.storage.load(STATES_TABLE, state)
        if record is None:
            return False
        # Deletion decides the winner when two callbacks race on one state
        if not self.storage.delete(STATES_TABLE, state):
            return False
        return record["expires_at"] > self._clock()

    def purge_expired(self) -> int:
        """Delete states whose expiry has passed; returns how many were removed"""
        now = self._clock()
        removed = 0
        for record in self.storage.load_all(STATES_TABLE):
            if record["expires_at"] <= now and self.storage.delete(STATES_TABLE, record["state"]):
                removed += 1
        return removed


@dataclass
class LoginRedirect:
    url: str
    state: str


@dataclass
class LinkResult:
    identity: ExternalIdentity
    created: bool


class OAuthLinkingFlow:
    """Login redirect and callback handling for external identity linking"""

    def __init__(self, config: AccountLinkConfig, identities: IdentityDirectory,
                 states: OAuthStateStore, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.identities = identities
        self.states = states
        self._transport = transport

    def begin_login(self) -> LoginRedirect:
        """Build the provider authorization URL with a fresh state value"""
        state = self.states.issue()
        url = httpx.URL(self.config.oauth_authorize_url, params={
            "client_id": self.config.oauth_client_id,
            "redirect_uri": self.config.oauth_redirect_url,
            "response_type": "code",
            "scope": " ".join(self.config.scope_list),
            "state": state,
        })
        log_action(logger, "info", "OAuth login started", action="begin_login")
        return LoginRedirect(url=str(url), state=state)

    async def handle_callback(self, state: Optional[str], code: Optional[str],
                              expected_state: Optional[str]) -> LinkResult:
        """
        Complete the flow for a provider callback.

        Args:
            state: state echoed back by the provider
            code: authorization code
            expected_state: state bound to the caller's browser at login

        Raises:
            StateMismatchError: state missing, different, unknown, used or expired
            ExchangeError: code could not be redeemed
            ProfileFetchError: profile request failed
            DecodeError: profile payload malformed
        """
        self._check_state(state, expected_state)

        async with httpx.AsyncClient(timeout=self.config.oauth_timeout,
                                     transport=self._transport) as client:
            access_token = await self._exchange(client, code)
            payload = await self._fetch_profile(client, access_token)

        identity = ExternalIdentity.from_profile(payload)

        if self.identities.identity_exists(identity.id):
            return LinkResult(identity=identity, created=False)

        try:
            self.identities.create_identity(identity)
        except DuplicateIdentityError:
            # Another request inserted the same identity between check and insert
            log_action(logger, "info", "Concurrent identity insert ignored",
                       action="link_identity", resource=f"discord_user/{identity.id}")
            return LinkResult(identity=identity, created=False)

        return LinkResult(identity=identity, created=True)

    def _check_state(self, state: Optional[str], expected_state: Optional[str]) -> None:
        if not state or not expected_state:
            raise StateMismatchError("State does not match.")
        if not secrets.compare_digest(state.encode(), expected_state.encode()):
            raise StateMismatchError("State does not match.")
        if not self.states.consume(state):
            raise StateMismatchError("State is unknown, expired or already used.")

    async def _exchange(self, client: httpx.AsyncClient, code: Optional[str]) -> str:
        if not code:
            raise ExchangeError("authorization code is missing")

        try:
            response = await client.post(
                self.config.oauth_token_url,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": self.config.oauth_redirect_url,
                },
                auth=(self.config.oauth_client_id, self.config.oauth_client_secret),
                headers={"Accept": "application/json"},
            )
        except httpx.TimeoutException as e:
            raise ExchangeError("token exchange timed out") from e
        except httpx.HTTPError as e:
            raise ExchangeError(f"token exchange failed: {e}") from e

        if response.status_code != 200:
            logger.warning(f"Token endpoint returned {response.status_code}: {response.text}")
            raise ExchangeError(f"token exchange failed: {response.status_code} {response.reason_phrase}")

        try:
            access_token = response.json().get("access_token")
        except (ValueError, AttributeError) as e:
            raise ExchangeError("token endpoint returned an unreadable body") from e
        if not access_token:
            raise ExchangeError("token endpoint returned no access token")
        return access_token

    async def _fetch_profile(self, client: httpx.AsyncClient, access_token: str):
        try:
            response = await client.get(
                self.config.oauth_profile_url,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.TimeoutException as e:
            raise ProfileFetchError("profile request timed out") from e
        except httpx.HTTPError as e:
            raise ProfileFetchError(f"profile request failed: {e}") from e

        if response.status_code != 200:
            raise ProfileFetchError(f"{response.status_code} {response.reason_phrase}")

        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"profile payload is not valid JSON: {e}") from e

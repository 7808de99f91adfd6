"""
Integration tests for the Account Link API
Tests end-to-end workflows using FastAPI TestClient
"""

import time

import httpx
import pytest
from fastapi.testclient import TestClient

from accountlink.api import LinkSystem, create_app
from accountlink.config import AccountLinkConfig
from accountlink.identities import IDENTITIES_TABLE
from accountlink.storage import InMemoryStorage
from accountlink.tokens import TokenService

from test_oauth import FakeProvider


SECRET = "test-secret-key-with-enough-length-for-hs256"


def make_config(**overrides) -> AccountLinkConfig:
    values = {
        "database_url": "memory://",
        "jwt_secret": SECRET,
        "oauth_client_id": "client-id",
        "oauth_client_secret": "client-secret",
        "log_level": "CRITICAL",
    }
    values.update(overrides)
    return AccountLinkConfig(**values)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def system(provider):
    return LinkSystem(config=make_config(), storage=InMemoryStorage(),
                      transport=provider.transport)


@pytest.fixture
def client(system):
    return TestClient(create_app(system))


def create_account(client, first_name="Ada", last_name="Lovelace"):
    r = client.post("/account", json={"first_name": first_name, "last_name": last_name})
    assert r.status_code == 200
    return r.json()


class TestHealthEndpoints:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "healthy"

    def test_root(self, client):
        r = client.get("/")
        assert r.status_code == 200
        assert "endpoints" in r.json()


class TestAccountFlow:
    """Account creation and gated access"""

    def test_create_account_returns_token(self, client, system):
        data = create_account(client)

        assert data["first_name"] == "Ada"
        assert data["last_name"] == "Lovelace"
        assert data["number"] > 0
        assert data["balance"] == 0
        assert system.tokens.verify(data["token"]).account_number == data["number"]

    def test_create_account_validation(self, client):
        r = client.post("/account", json={"first_name": "Ada"})
        assert r.status_code == 422

    def test_list_accounts_is_public(self, client):
        create_account(client, "Ada", "Lovelace")
        create_account(client, "Grace", "Hopper")

        r = client.get("/account")
        assert r.status_code == 200
        assert [a["first_name"] for a in r.json()] == ["Ada", "Grace"]
        assert all("token" not in a for a in r.json())

    def test_get_account_with_token(self, client):
        data = create_account(client)

        r = client.get(f"/account/{data['id']}", headers={"x-jwt-token": data["token"]})

        assert r.status_code == 200
        body = r.json()
        assert body["id"] == data["id"]
        assert body["number"] == data["number"]
        assert body["first_name"] == "Ada"

    def test_get_account_without_token(self, client):
        data = create_account(client)
        r = client.get(f"/account/{data['id']}")
        assert r.status_code == 403
        assert r.json() == {"Error": "invalid token"}

    def test_get_account_with_garbage_token(self, client):
        data = create_account(client)
        r = client.get(f"/account/{data['id']}", headers={"x-jwt-token": "garbage"})
        assert r.status_code == 403
        assert r.json() == {"Error": "invalid token"}

    def test_get_account_with_expired_token(self, client, system):
        data = create_account(client)
        account = system.accounts.get_account(data["id"])
        stale = TokenService(system.config, clock=lambda: time.time() - 7200).mint(account)

        r = client.get(f"/account/{data['id']}", headers={"x-jwt-token": stale})
        assert r.status_code == 403
        assert r.json() == {"Error": "invalid token"}

    def test_get_missing_account(self, client):
        data = create_account(client)
        r = client.get("/account/999", headers={"x-jwt-token": data["token"]})
        assert r.status_code == 404

    def test_any_valid_token_reads_any_account(self, client):
        """Without match enforcement the gate only authenticates"""
        ada = create_account(client, "Ada", "Lovelace")
        grace = create_account(client, "Grace", "Hopper")

        r = client.get(f"/account/{grace['id']}", headers={"x-jwt-token": ada["token"]})
        assert r.status_code == 200
        assert r.json()["first_name"] == "Grace"

    def test_delete_account(self, client):
        data = create_account(client)
        headers = {"x-jwt-token": data["token"]}

        r = client.delete(f"/account/{data['id']}", headers=headers)
        assert r.status_code == 200

        assert client.get(f"/account/{data['id']}", headers=headers).status_code == 404
        assert client.delete(f"/account/{data['id']}", headers=headers).status_code == 404

    def test_delete_requires_token(self, client):
        data = create_account(client)
        r = client.delete(f"/account/{data['id']}")
        assert r.status_code == 403
        assert client.get("/account").json()[0]["id"] == data["id"]

    def test_create_without_secret_is_server_error(self, provider):
        system = LinkSystem(config=make_config(jwt_secret=""), storage=InMemoryStorage(),
                            transport=provider.transport)
        client = TestClient(create_app(system))

        r = client.post("/account", json={"first_name": "Ada", "last_name": "Lovelace"})
        assert r.status_code == 500
        assert client.get("/account").json() == []
        assert system.storage.count("account") == 0


class TestAccountMatchEnforcement:
    """Optional path-vs-claim check"""

    @pytest.fixture
    def strict_client(self, provider):
        system = LinkSystem(config=make_config(gate_enforce_account_match=True),
                            storage=InMemoryStorage(), transport=provider.transport)
        return TestClient(create_app(system))

    def test_own_account_allowed(self, strict_client):
        ada = create_account(strict_client)
        r = strict_client.get(f"/account/{ada['id']}", headers={"x-jwt-token": ada["token"]})
        assert r.status_code == 200

    def test_other_account_rejected(self, strict_client):
        ada = create_account(strict_client, "Ada", "Lovelace")
        grace = create_account(strict_client, "Grace", "Hopper")
        headers = {"x-jwt-token": ada["token"]}

        r = strict_client.get(f"/account/{grace['id']}", headers=headers)
        assert r.status_code == 403
        assert r.json() == {"Error": "invalid token"}

        assert strict_client.delete(f"/account/{grace['id']}", headers=headers).status_code == 403


class TestTransfer:
    def test_transfer_is_accepted_without_effect(self, client):
        ada = create_account(client)
        r = client.post("/transfer", json={"to_account": ada["number"], "amount": 100})
        assert r.status_code == 200
        assert client.get("/account").json()[0]["balance"] == 0

    def test_transfer_validation(self, client):
        r = client.post("/transfer", json={"to_account": 1, "amount": -5})
        assert r.status_code == 422


class TestOAuthFlow:
    """Login redirect and callback"""

    def login(self, client):
        r = client.get("/login", follow_redirects=False)
        assert r.status_code == 307
        return httpx.URL(r.headers["location"])

    def test_login_redirects_to_provider(self, client):
        target = self.login(client)

        assert target.host == "discord.com"
        assert target.params["response_type"] == "code"
        assert target.params["scope"] == "identify"
        assert target.params["state"]
        assert client.cookies.get("oauth_state") == target.params["state"]

    def test_callback_links_identity(self, client, system, provider):
        state = self.login(client).params["state"]

        r = client.get("/auth/callback", params={"state": state, "code": "auth-code"})

        assert r.status_code == 200
        body = r.json()
        assert body["id"] == "485103041738047489"
        assert body["created"] is True
        assert body["avatar_url"].endswith("13a45106234fa19fd7b22795df2b6833.png")
        assert system.identities.identity_exists(body["id"])
        assert len(provider.requests) == 2

    def test_callback_state_mismatch(self, client, provider):
        self.login(client)

        r = client.get("/auth/callback", params={"state": "wrong", "code": "auth-code"})

        assert r.status_code == 400
        assert r.headers["content-type"].startswith("text/plain")
        assert provider.requests == []

    def test_callback_non_ascii_state(self, client, provider):
        self.login(client)

        r = client.get("/auth/callback", params={"state": "\u00e9t\u00e9", "code": "auth-code"})

        assert r.status_code == 400
        assert r.headers["content-type"].startswith("text/plain")
        assert provider.requests == []

    def test_callback_without_login_cookie(self, system, provider):
        fresh = TestClient(create_app(system))
        state = system.oauth.begin_login().state

        r = fresh.get("/auth/callback", params={"state": state, "code": "auth-code"})

        assert r.status_code == 400
        assert provider.requests == []

    def test_callback_replay_rejected(self, client):
        state = self.login(client).params["state"]
        client.get("/auth/callback", params={"state": state, "code": "auth-code"})

        client.cookies.set("oauth_state", state)
        r = client.get("/auth/callback", params={"state": state, "code": "auth-code"})
        assert r.status_code == 400

    def test_callback_provider_failure(self, system):
        failing = LinkSystem(config=system.config, storage=InMemoryStorage(),
                             transport=FakeProvider(profile_status=500).transport)
        client = TestClient(create_app(failing))
        state = self.login(client).params["state"]

        r = client.get("/auth/callback", params={"state": state, "code": "auth-code"})

        assert r.status_code == 500
        assert r.headers["content-type"].startswith("text/plain")
        assert "500" in r.text
        assert failing.storage.count(IDENTITIES_TABLE) == 0

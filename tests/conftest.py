"""
Pytest fixtures for the Contest Arena API.

Each test gets a fresh SQLite file, locally signed identity tokens and
an in-memory payment gateway, wired in through ``create_app``.
"""

import itertools
import json
from typing import Dict, Optional

import pytest
from fastapi.testclient import TestClient

from contest_arena_api.app.core.config import Settings
from contest_arena_api.app.core.errors import GatewayError, InvalidInput
from contest_arena_api.app.core.security import SignedTokenVerifier
from contest_arena_api.app.main import create_app
from contest_arena_api.app.services.gateway import CheckoutSession, GatewayEvent, PaymentGateway


SECRET = "test-secret"
FOUNDER = "founder@arena.test"
CREATOR = "creator@arena.test"
OTHER_CREATOR = "other.creator@arena.test"
PLAYER = "player@arena.test"


class FakeGateway(PaymentGateway):
    """In-memory stand-in for the hosted checkout provider."""

    def __init__(self) -> None:
        self.sessions: Dict[str, CheckoutSession] = {}
        self.created = []
        self.retrievals = 0
        self.fail_create = False
        self._ids = itertools.count(1)

    async def create_checkout_session(self, amount_minor, currency, product_name, customer_email, metadata,
                                      success_url, cancel_url) -> CheckoutSession:
        if self.fail_create:
            raise GatewayError("Payment provider rejected the checkout request")
        session_id = f"cs_test_{next(self._ids)}"
        session = CheckoutSession(
            id=session_id,
            url=f"https://checkout.test/pay/{session_id}",
            payment_status="unpaid",
            amount_total=amount_minor,
            currency=currency,
            customer_email=customer_email,
            metadata=dict(metadata),
        )
        self.sessions[session_id] = session
        self.created.append(
            {
                "amount_minor": amount_minor,
                "currency": currency,
                "product_name": product_name,
                "metadata": dict(metadata),
                "success_url": success_url,
                "cancel_url": cancel_url,
            }
        )
        return session

    def complete(self, session_id: str, payment_intent: str) -> CheckoutSession:
        session = self.sessions[session_id]
        session.payment_status = "paid"
        session.payment_intent = payment_intent
        return session

    def add_session(self, session: CheckoutSession) -> None:
        self.sessions[session.id] = session

    async def retrieve_session(self, session_id: str) -> CheckoutSession:
        self.retrievals += 1
        if session_id not in self.sessions:
            raise InvalidInput(f"Unknown checkout session {session_id}", code="InvalidSession")
        return self.sessions[session_id]

    def parse_event(self, payload: bytes, signature: Optional[str]) -> GatewayEvent:
        if signature != "valid":
            raise InvalidInput("Invalid webhook signature", code="InvalidSignature")
        event = json.loads(payload)
        session = None
        if event["type"].startswith("checkout.session."):
            session = self.sessions[event["session_id"]]
        return GatewayEvent(type=event["type"], session=session)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=str(tmp_path / "arena.db"),
        identity_provider="local",
        identity_secret_key=SECRET,
        identity_audience="",
        bootstrap_admin_email=FOUNDER,
        site_domain="https://arena.test",
        currency="usd",
        log_level="WARNING",
    )


@pytest.fixture
def verifier():
    return SignedTokenVerifier(SECRET)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def app(settings, verifier, gateway):
    application = create_app(settings=settings, verifier=verifier, gateway=gateway)
    # TestClient is used without its context manager, so startup never runs.
    application.state.container.database.init_db()
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth(verifier):
    """Return a function building Authorization headers for an email."""

    def _headers(email: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {verifier.issue(email)}"}

    return _headers


def register(client, email: str, name: Optional[str] = None) -> dict:
    resp = client.post("/users", json={"email": email, "name": name or email.split("@")[0]})
    assert resp.status_code in (200, 201), resp.text
    return resp.json()["user"]


def set_role(client, auth, user_id: int, role: str, requester: str = FOUNDER):
    return client.patch(f"/users/{user_id}/role", json={"role": role}, headers=auth(requester))


@pytest.fixture
def founder(client):
    """The bootstrap admin, registered first so it is the original admin."""
    return register(client, FOUNDER, "Founder")


@pytest.fixture
def creator(client, auth, founder):
    user = register(client, CREATOR, "Creator")
    assert set_role(client, auth, user["id"], "creator").status_code == 200
    return user


@pytest.fixture
def other_creator(client, auth, founder):
    user = register(client, OTHER_CREATOR, "Other Creator")
    assert set_role(client, auth, user["id"], "creator").status_code == 200
    return user


@pytest.fixture
def player(client):
    return register(client, PLAYER, "Player")


CONTEST_PAYLOAD = {
    "name": "Logo Design Sprint",
    "description": "Design a logo for a coffee brand",
    "contest_type": "design",
    "price": 50,
    "prize_money": 500,
    "task_instruction": "Upload a link to your SVG",
}


@pytest.fixture
def contest(client, auth, creator):
    resp = client.post("/contests", json=CONTEST_PAYLOAD, headers=auth(CREATOR))
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def approved_contest(client, auth, contest):
    resp = client.patch(f"/contests/{contest['id']}", json={"status": "approved"}, headers=auth(FOUNDER))
    assert resp.status_code == 200, resp.text
    return resp.json()


def paid_entry(client, auth, gateway, contest_id: int, email: str = PLAYER, payment_intent: str = "pi_1") -> dict:
    """Run checkout and confirmation for ``email`` and return the confirmation body."""
    resp = client.post(
        "/create-checkout-session",
        json={"price": 50, "contest_id": contest_id, "email": email, "display_name": "Player"},
        headers=auth(email),
    )
    assert resp.status_code == 200, resp.text
    session_id = resp.json()["session_id"]
    gateway.complete(session_id, payment_intent)
    resp = client.get("/payment-success", params={"session_id": session_id}, headers=auth(email))
    assert resp.status_code == 200, resp.text
    return {**resp.json(), "session_id": session_id}

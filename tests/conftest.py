"""Pytest fixtures.

Every test gets its own file-backed SQLite database and a Razorpay client whose
HTTP transport is an in-process fake, so nothing leaves the machine.
"""
import hashlib
import hmac
import json
import os
from typing import Any, Optional

import httpx
import pytest

# Settings() is built at import time of core.config
os.environ.setdefault("RAZORPAY__KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY__KEY_SECRET", "rzp_test_secret")

from core.config import DatabaseSettings, RazorpaySettings, Settings  # noqa: E402
from infrastructure.database import Database  # noqa: E402
from infrastructure.external.payments.razorpay_client import RazorpayClient  # noqa: E402


KEY_SECRET = "rzp_test_secret"
WEBHOOK_SECRET = "whsec_test"


def sign(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


class FakeRazorpay:
    """httpx.MockTransport handler emulating the Razorpay orders/refunds API."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.fail_status: Optional[int] = None
        self.fail_connect = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_connect:
            raise httpx.ConnectError("connection refused", request=request)
        if self.fail_status is not None:
            return httpx.Response(
                self.fail_status,
                json={"error": {"code": "BAD_REQUEST_ERROR", "description": "The amount must be atleast INR 1.00"}},
            )

        body: dict[str, Any] = json.loads(request.content or b"{}")
        path = request.url.path
        if request.method == "POST" and path == "/v1/orders":
            return httpx.Response(200, json={
                "id": f"order_test_{len(self.requests)}",
                "entity": "order",
                "amount": body["amount"],
                "amount_paid": 0,
                "currency": body["currency"],
                "receipt": body["receipt"],
                "status": "created",
                "attempts": 0,
                "created_at": 1700000000,
            })
        if request.method == "POST" and path.startswith("/v1/payments/") and path.endswith("/refund"):
            return httpx.Response(200, json={
                "id": f"rfnd_test_{len(self.requests)}",
                "entity": "refund",
                "amount": body["amount"],
                "currency": "INR",
                "payment_id": path.split("/")[3],
                "status": "processed",
                "created_at": 1700000000,
            })
        return httpx.Response(404, json={"error": {"code": "NOT_FOUND", "description": "not found"}})


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        DEBUG=True,
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'payments.db'}"),
        razorpay=RazorpaySettings(
            key_id="rzp_test_key",
            key_secret=KEY_SECRET,
            webhook_secret=WEBHOOK_SECRET,
        ),
    )


@pytest.fixture
async def database(settings):
    db = Database(settings.database)
    await db.create_tables()
    yield db
    await db.dispose()


@pytest.fixture
def fake_razorpay() -> FakeRazorpay:
    return FakeRazorpay()


@pytest.fixture
async def gateway(settings, fake_razorpay):
    client = RazorpayClient(settings.razorpay, transport=httpx.MockTransport(fake_razorpay))
    yield client
    await client.aclose()


@pytest.fixture
async def app(settings, database, gateway):
    from main import create_app

    # ASGITransport does not run the lifespan; wire app.state by hand
    application = create_app(settings)
    application.state.database = database
    application.state.payment_gateway = gateway
    return application


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def payment_signature():
    def _sign(order_id: str, payment_id: str) -> str:
        return sign(KEY_SECRET, f"{order_id}|{payment_id}".encode())
    return _sign


@pytest.fixture
def webhook_headers():
    def _headers(body: bytes) -> dict[str, str]:
        return {"Content-Type": "application/json", "X-Razorpay-Signature": sign(WEBHOOK_SECRET, body)}
    return _headers

"""
Pytest configuration and fixtures
"""
import hashlib
import hmac
import json
import os
import time

import pytest

# Keep a developer's shell or .env from switching on real Grok/Stripe calls
for _var in (
    "XAI_API_KEY",
    "STRIPE_SECRET_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "STRIPE_PUBLISHABLE_KEY",
    "SITE_URL",
    "ENTITLEMENT_SECRET",
):
    os.environ[_var] = ""

from fastapi.testclient import TestClient

from jedi_path.app import create_app
from jedi_path.common.config import Settings
from jedi_path.paywall import EntitlementSigner
from jedi_path.quiz import QUESTIONS, RankedAnswer

WEBHOOK_SECRET = "whsec_test_secret"
ENTITLEMENT_SECRET = "entitlement-test-secret"
SITE_URL = "https://jedi.example"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def free_settings() -> Settings:
    """No Grok, no Stripe: fallback profiles and the paywall switched off."""
    return Settings()


@pytest.fixture
def paid_settings() -> Settings:
    return Settings(
        stripe_secret_key="sk_test_123",
        stripe_publishable_key="pk_test_123",
        stripe_webhook_secret=WEBHOOK_SECRET,
        site_url=SITE_URL,
        entitlement_secret=ENTITLEMENT_SECRET,
    )


@pytest.fixture
def client(free_settings):
    return TestClient(create_app(free_settings))


@pytest.fixture
def paid_client(paid_settings):
    return TestClient(create_app(paid_settings))


@pytest.fixture
def signer(paid_settings) -> EntitlementSigner:
    return EntitlementSigner(paid_settings.signing_secret, paid_settings.entitlement_max_age)


@pytest.fixture
def complete_answers():
    """First three options of every question, in order."""
    return tuple(RankedAnswer(*q.options[:3]) for q in QUESTIONS)


@pytest.fixture
def answers_payload(complete_answers):
    return [a.to_dict() for a in complete_answers]


def stripe_event(event_type: str, event_id: str = "evt_test_1") -> bytes:
    return json.dumps(
        {
            "id": event_id,
            "object": "event",
            "type": event_type,
            "data": {"object": {"id": "cs_test_1", "object": "checkout.session", "payment_status": "paid"}},
        }
    ).encode("utf-8")


def stripe_signature(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Stripe-Signature header the way Stripe computes it."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"

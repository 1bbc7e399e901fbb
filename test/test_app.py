"""
API tests for the quiz, certificate and Stripe endpoints
"""
import time
from types import SimpleNamespace

import pytest
import stripe
from fastapi.testclient import TestClient

from conftest import SITE_URL, stripe_event, stripe_signature
from jedi_path import app as app_module
from jedi_path.app import create_app
from jedi_path.paywall import PAID_COOKIE, EntitlementSigner, PaymentGateway
from jedi_path.profile import generator
from jedi_path.profile.prompts import FORMS, PREVIEW_SUFFIX
from jedi_path.quiz import QUESTIONS


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_questions(client):
    questions = client.get("/api/questions").json()["questions"]
    assert len(questions) == 5
    assert all(len(q["options"]) == 4 for q in questions)


# =============================================================================
# Generate
# =============================================================================

def test_generate_with_empty_name(client, answers_payload):
    response = client.post("/api/generate", json={"name": "", "answers": answers_payload})

    assert response.status_code == 200
    body = response.json()
    assert body["profile"]
    assert "**Name:** Unknown" in body["profile"]
    assert body["locked"] is False
    assert len(body["data"]["forms"]) == 3
    assert set(body["data"]["forms"]) <= set(FORMS)


def test_generate_without_name_field(client, answers_payload):
    response = client.post("/api/generate", json={"answers": answers_payload})
    assert response.status_code == 200


def test_generate_grok_profile_has_no_data(client, monkeypatch, answers_payload):
    client.app.state.settings = client.app.state.settings.model_copy(update={"xai_api_key": "xai-test"})
    monkeypatch.setattr(generator, "call_grok_with_settings", lambda *a: "## From Grok")

    body = client.post("/api/generate", json={"name": "Mace", "answers": answers_payload}).json()
    assert body == {"profile": "## From Grok", "data": None, "locked": False}


def test_generate_missing_answers_is_400(client):
    response = client.post("/api/generate", json={"name": "Yoda"})
    assert response.status_code == 400
    assert "answers" in response.json()["error"]


def test_generate_incomplete_answers_is_400(client, answers_payload):
    answers_payload[3]["third"] = None
    response = client.post("/api/generate", json={"answers": answers_payload})
    assert response.status_code == 400
    assert "error" in response.json()


def test_generate_duplicate_ranks_is_400(client, answers_payload):
    answers_payload[0]["second"] = answers_payload[0]["first"]
    response = client.post("/api/generate", json={"answers": answers_payload})
    assert response.status_code == 400


def test_generate_locked_without_payment(paid_client, answers_payload):
    body = paid_client.post("/api/generate", json={"name": "Finn", "answers": answers_payload}).json()

    assert body["locked"] is True
    assert body["data"] is None
    assert body["profile"].endswith(PREVIEW_SUFFIX)


def test_generate_query_param_does_not_unlock(paid_client, answers_payload):
    body = paid_client.post("/api/generate?paid=true", json={"answers": answers_payload}).json()
    assert body["locked"] is True


def test_generate_full_with_signed_cookie(paid_client, signer, answers_payload):
    paid_client.cookies.set(PAID_COOKIE, signer.issue())
    body = paid_client.post("/api/generate", json={"name": "Finn", "answers": answers_payload}).json()

    assert body["locked"] is False
    assert body["data"] is not None
    assert "**Name:** Finn" in body["profile"]


def test_generate_short_answer_set_is_400(client, answers_payload):
    response = client.post("/api/generate", json={"answers": answers_payload[:1]})
    assert response.status_code == 400
    assert "one answer per question" in response.json()["error"]


def test_generate_extra_answer_is_400(client, answers_payload):
    response = client.post("/api/generate", json={"answers": answers_payload + answers_payload[:1]})
    assert response.status_code == 400


def test_generate_made_up_options_is_400(client):
    made_up = [{"first": "x", "second": "y", "third": "z"} for _ in QUESTIONS]
    response = client.post("/api/generate", json={"answers": made_up})
    assert response.status_code == 400


def test_generate_options_from_wrong_question_is_400(client, answers_payload):
    answers_payload[0] = dict(zip(("first", "second", "third"), QUESTIONS[1].options[:3]))
    response = client.post("/api/generate", json={"answers": answers_payload})
    assert response.status_code == 400


# =============================================================================
# Unlock
# =============================================================================

def _preview_body(profile: str) -> str:
    return profile[: -len(PREVIEW_SUFFIX)]


def test_locked_generate_is_generated_once(paid_client, monkeypatch, answers_payload):
    calls = []

    def fake_grok(user_prompt, system_prompt, settings):
        calls.append(user_prompt)
        return "## Your Destiny\n\n" + " ".join(["blue"] * 50) + "\n\n## Backstory\n\nBorn on Tatooine."

    paid_client.app.state.settings = paid_client.app.state.settings.model_copy(update={"xai_api_key": "xai-test"})
    monkeypatch.setattr(generator, "call_grok_with_settings", fake_grok)
    body = paid_client.post("/api/generate", json={"answers": answers_payload}).json()

    assert body["locked"] is True
    assert body["sealed"]
    assert "Tatooine" not in body["profile"]
    assert len(calls) == 1


def test_unlock_returns_the_previewed_profile(paid_client, signer, answers_payload):
    locked = paid_client.post("/api/generate", json={"name": "Cal", "answers": answers_payload}).json()

    paid_client.cookies.set(PAID_COOKIE, signer.issue())
    response = paid_client.post("/api/unlock", json={"sealed": locked["sealed"]})

    assert response.status_code == 200
    body = response.json()
    assert body["locked"] is False
    assert body["profile"].startswith(_preview_body(locked["profile"]))
    assert body["data"]["forms"][0] in locked["profile"]
    assert "**Name:** Cal" in body["profile"]


def test_unlock_requires_payment(paid_client, answers_payload):
    locked = paid_client.post("/api/generate", json={"answers": answers_payload}).json()
    response = paid_client.post("/api/unlock?paid=true", json={"sealed": locked["sealed"]})
    assert response.status_code == 402


def test_unlock_rejects_forged_envelope(paid_client, signer):
    forged = EntitlementSigner("not-the-server-key").seal({"profile": "## Chosen One", "data": None})
    paid_client.cookies.set(PAID_COOKIE, signer.issue())
    response = paid_client.post("/api/unlock", json={"sealed": forged})

    assert response.status_code == 400
    assert "error" in response.json()


# =============================================================================
# Certificate
# =============================================================================

def test_certificate_download(client):
    response = client.post(
        "/api/certificate",
        json={"name": "Luke", "color": "green", "forms": ["Form III: Soresu"], "portrait": None},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'attachment; filename="jedi-certificate.pdf"'
    assert b"Luke" in response.content


def test_certificate_bad_body_is_400(client):
    response = client.post("/api/certificate", json={"name": "Luke"})
    assert response.status_code == 400


def test_certificate_requires_payment(paid_client, signer):
    payload = {"name": "Luke", "color": "green", "forms": ["Form III: Soresu"]}
    assert paid_client.post("/api/certificate", json=payload).status_code == 402

    paid_client.cookies.set(PAID_COOKIE, signer.issue())
    assert paid_client.post("/api/certificate", json=payload).status_code == 200


# =============================================================================
# Checkout
# =============================================================================

def test_checkout_not_configured(client):
    response = client.post("/api/stripe/checkout")
    assert response.status_code == 500
    assert response.json() == {"error": "Stripe is not configured."}


def test_checkout_returns_url(paid_client, paid_settings, monkeypatch):
    captured = {}

    def fake_create(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(id="cs_test_1", url="https://checkout.stripe.com/c/pay/cs_test_1")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    response = paid_client.post("/api/stripe/checkout")

    assert response.status_code == 200
    assert response.json() == {"url": "https://checkout.stripe.com/c/pay/cs_test_1"}
    assert captured["api_key"] == paid_settings.stripe_secret_key
    assert captured["mode"] == "payment"
    assert captured["line_items"][0]["price_data"]["unit_amount"] == 497
    assert captured["success_url"] == f"{SITE_URL}/api/stripe/confirm?session_id={{CHECKOUT_SESSION_ID}}"
    assert captured["cancel_url"] == f"{SITE_URL}/?canceled=true"


def test_checkout_stripe_failure(paid_client, monkeypatch):
    def broken(**kwargs):
        raise stripe.StripeError("card network down")

    monkeypatch.setattr(stripe.checkout.Session, "create", broken)
    response = paid_client.post("/api/stripe/checkout")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to create checkout session"}


# =============================================================================
# Webhook
# =============================================================================

def test_webhook_invalid_signature(paid_client):
    payload = stripe_event("checkout.session.completed")
    response = paid_client.post(
        "/api/stripe/webhook",
        content=payload,
        headers={"stripe-signature": stripe_signature(payload, secret="whsec_wrong")},
    )

    assert response.status_code == 400
    assert response.json()["error"].startswith("Webhook Error:")
    assert "set-cookie" not in response.headers


def test_webhook_missing_signature(paid_client):
    response = paid_client.post("/api/stripe/webhook", content=stripe_event("checkout.session.completed"))
    assert response.status_code == 400
    assert "set-cookie" not in response.headers


def test_webhook_missing_secret(paid_settings):
    settings = paid_settings.model_copy(update={"stripe_webhook_secret": None})
    client = TestClient(create_app(settings))
    payload = stripe_event("checkout.session.completed")
    response = client.post("/api/stripe/webhook", content=payload, headers={"stripe-signature": stripe_signature(payload)})
    assert response.status_code == 400


def test_webhook_completed_sets_signed_cookie(paid_client, signer):
    payload = stripe_event("checkout.session.completed")
    response = paid_client.post(
        "/api/stripe/webhook",
        content=payload,
        headers={"stripe-signature": stripe_signature(payload)},
    )

    assert response.status_code == 200
    assert response.text == "success"
    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"{PAID_COOKIE}=")
    assert "Max-Age=604800" in cookie
    token = cookie.split(";", 1)[0].split("=", 1)[1]
    assert signer.verify(token)


def test_webhook_other_event(paid_client):
    payload = stripe_event("payment_intent.created")
    response = paid_client.post(
        "/api/stripe/webhook",
        content=payload,
        headers={"stripe-signature": stripe_signature(payload)},
    )

    assert response.status_code == 200
    assert response.json() == {"received": True}
    assert "set-cookie" not in response.headers


def test_webhook_not_configured(client):
    response = client.post("/api/stripe/webhook", content=b"{}", headers={"stripe-signature": "t=1,v1=x"})
    assert response.status_code == 500


# =============================================================================
# Confirm + entitlement
# =============================================================================

@pytest.mark.parametrize("paid,location", [(True, "/?paid=true"), (False, "/?canceled=true")])
def test_confirm_redirects(paid_client, monkeypatch, paid, location):
    paid_at = int(time.time()) if paid else None
    monkeypatch.setattr(PaymentGateway, "confirm_checkout", lambda self, session_id: paid_at)
    response = paid_client.get("/api/stripe/confirm", params={"session_id": "cs_test_1"}, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == f"{SITE_URL}{location}"
    assert ("set-cookie" in response.headers) is paid


@pytest.mark.parametrize("payment_status", ["unpaid", "no_payment_required"])
def test_confirm_checkout_unpaid_session(paid_settings, monkeypatch, payment_status):
    session = SimpleNamespace(payment_status=payment_status, created=int(time.time()))
    monkeypatch.setattr(stripe.checkout.Session, "retrieve", lambda session_id, **kwargs: session)
    assert PaymentGateway(paid_settings).confirm_checkout("cs_test_1") is None


def test_confirm_replay_keeps_original_expiry(paid_client, signer, monkeypatch):
    created = int(time.time()) - 6 * 86400
    session = SimpleNamespace(payment_status="paid", created=created)
    monkeypatch.setattr(stripe.checkout.Session, "retrieve", lambda session_id, **kwargs: session)

    response = paid_client.get("/api/stripe/confirm", params={"session_id": "cs_test_1"}, follow_redirects=False)

    assert response.headers["location"] == f"{SITE_URL}/?paid=true"
    cookie = response.headers["set-cookie"]
    max_age = int(cookie.split("Max-Age=", 1)[1].split(";", 1)[0])
    assert 0 < max_age <= 86400
    token = cookie.split(";", 1)[0].split("=", 1)[1]
    assert token.split(".")[1] == str(created + signer.max_age)
    assert signer.verify(token)


def test_confirm_session_older_than_entitlement(paid_client, monkeypatch):
    session = SimpleNamespace(payment_status="paid", created=int(time.time()) - 8 * 86400)
    monkeypatch.setattr(stripe.checkout.Session, "retrieve", lambda session_id, **kwargs: session)

    response = paid_client.get("/api/stripe/confirm", params={"session_id": "cs_old"}, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == f"{SITE_URL}/?expired=true"
    assert "set-cookie" not in response.headers


def test_entitlement_endpoint(paid_client, signer):
    assert paid_client.get("/api/entitlement").json() == {"entitled": False, "verified": False, "paywall": True}
    assert paid_client.get("/api/entitlement?paid=true").json()["entitled"] is True

    paid_client.cookies.set(PAID_COOKIE, signer.issue())
    assert paid_client.get("/api/entitlement").json() == {"entitled": True, "verified": True, "paywall": True}


def test_entitlement_disabled_mode(client):
    assert client.get("/api/entitlement").json() == {"entitled": True, "verified": True, "paywall": False}


# =============================================================================
# Error handling
# =============================================================================

def test_unexpected_error_is_json_500(free_settings, monkeypatch):
    def explode(*args):
        raise RuntimeError("reportlab blew up")

    monkeypatch.setattr(app_module, "render_certificate", explode)
    client = TestClient(create_app(free_settings), raise_server_exceptions=False)
    response = client.post("/api/certificate", json={"name": "Luke", "color": "green", "forms": []})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}

"""Jedi Path Quiz Backend API."""
import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse, Response
from pydantic import BaseModel, Field

from .certificate import FILENAME, render_certificate
from .common.config import Settings
from .common.errors import (
    ClientInputError,
    ConfigurationError,
    EntitlementRequiredError,
    JediPathError,
    TrustVerificationError,
)
from .paywall import (
    CHECKOUT_COMPLETED,
    PAID_COOKIE,
    ClientContext,
    EntitlementSigner,
    PaymentGateway,
    has_verified_entitlement,
    is_entitled,
)
from .profile import ProfileResult, generate_profile, preview_profile
from .quiz import QUESTIONS, RankedAnswer, is_complete, matches_questions

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
log = logging.getLogger(__name__)

router = APIRouter()


class RankedAnswerIn(BaseModel):
    first: Optional[str] = None
    second: Optional[str] = None
    third: Optional[str] = None

    def to_answer(self) -> RankedAnswer:
        return RankedAnswer(self.first, self.second, self.third)


class GenerateRequest(BaseModel):
    name: Optional[str] = None
    answers: list[RankedAnswerIn]


class UnlockRequest(BaseModel):
    sealed: str = Field(..., min_length=1)


class CertificateRequest(BaseModel):
    name: str
    color: str
    forms: list[str] = Field(default_factory=list)
    portrait: Optional[str] = None  # accepted for compatibility, not drawn


# =============================================================================
# Dependencies
# =============================================================================

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_payments(request: Request) -> PaymentGateway:
    return request.app.state.payments


def get_signer(request: Request) -> Optional[EntitlementSigner]:
    return request.app.state.signer


def has_premium_access(request: Request) -> bool:
    """Server-side entitlement. With payments disabled the paywall is off."""
    if not request.app.state.payments.enabled:
        return True
    return has_verified_entitlement(ClientContext.from_request(request), request.app.state.signer)


def _set_paid_cookie(response: Response, signer: EntitlementSigner, paid_at: Optional[int] = None) -> None:
    """Set the signed cookie; with ``paid_at`` it expires relative to the payment, not to now."""
    max_age = signer.max_age
    if paid_at is not None:
        max_age = int(paid_at + signer.max_age - time.time())
    response.set_cookie(
        PAID_COOKIE,
        signer.issue(paid_at),
        max_age=max_age,
        path="/",
        secure=True,
        httponly=False,
        samesite="lax",
    )


# =============================================================================
# Quiz
# =============================================================================

@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/api/questions")
def list_questions():
    return {"questions": [q.to_dict() for q in QUESTIONS]}


@router.post("/api/generate")
async def generate(
    req: GenerateRequest,
    settings: Settings = Depends(get_settings),
    premium: bool = Depends(has_premium_access),
    signer: Optional[EntitlementSigner] = Depends(get_signer),
):
    """Generate a destiny profile.

    Unpaid callers get a preview plus the full result sealed with the
    entitlement key, which /api/unlock exchanges once they have paid.
    """
    answers = [a.to_answer() for a in req.answers]
    if not matches_questions(answers, QUESTIONS):
        raise ClientInputError(f"Expected one answer per question ({len(QUESTIONS)}), using that question's options.")
    if not is_complete(answers):
        raise ClientInputError("Please rank three different options for every question.")

    result = await generate_profile(req.name, answers, settings)
    if premium:
        return {**result.to_dict(), "locked": False}
    log.info("Returning locked profile preview")
    return {
        "profile": preview_profile(result.profile_text),
        "data": None,
        "locked": True,
        "sealed": signer.seal(result.to_dict()),
    }


@router.post("/api/unlock")
def unlock_profile(
    req: UnlockRequest,
    premium: bool = Depends(has_premium_access),
    signer: Optional[EntitlementSigner] = Depends(get_signer),
):
    """Exchange the sealed result of a locked generation for the full profile."""
    if not premium:
        raise EntitlementRequiredError("Payment is required to unlock the full profile.")
    payload = signer.unseal(req.sealed) if signer else None
    if payload is None:
        raise TrustVerificationError("Invalid sealed profile.")
    return {**ProfileResult.from_dict(payload).to_dict(), "locked": False}


@router.post("/api/certificate")
def certificate(req: CertificateRequest, premium: bool = Depends(has_premium_access)):
    if not premium:
        raise EntitlementRequiredError("Payment is required to download the certificate.")
    pdf = render_certificate(req.name, req.color, req.forms)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{FILENAME}"'},
    )


# =============================================================================
# Payments
# =============================================================================

@router.post("/api/stripe/checkout")
def checkout(payments: PaymentGateway = Depends(get_payments)):
    return {"url": payments.create_checkout_url()}


@router.post("/api/stripe/webhook")
async def stripe_webhook(
    request: Request,
    payments: PaymentGateway = Depends(get_payments),
    signer: Optional[EntitlementSigner] = Depends(get_signer),
):
    """Verify a Stripe event; a completed checkout sets the paid cookie."""
    if not payments.enabled:
        raise ConfigurationError("Stripe not configured")
    payload = await request.body()
    try:
        event = payments.construct_event(payload, request.headers.get("stripe-signature"))
    except TrustVerificationError as e:
        log.error(f"Webhook signature verification failed: {e.message}")
        return JSONResponse({"error": f"Webhook Error: {e.message}"}, status_code=400)

    if event.type == CHECKOUT_COMPLETED:
        log.info(f"Checkout completed: {event.id}")
        response = PlainTextResponse("success")
        _set_paid_cookie(response, signer)
        return response
    log.info(f"Ignoring Stripe event {event.type}")
    return {"received": True}


@router.get("/api/stripe/confirm")
def confirm_checkout(
    session_id: str = Query(..., min_length=1),
    settings: Settings = Depends(get_settings),
    payments: PaymentGateway = Depends(get_payments),
    signer: Optional[EntitlementSigner] = Depends(get_signer),
):
    """Success redirect from Checkout: re-check the session, then sign the buyer in."""
    if not payments.enabled:
        raise ConfigurationError("Stripe is not configured.")
    paid_at = payments.confirm_checkout(session_id)
    if paid_at is None:
        return RedirectResponse(f"{settings.site_url}/?canceled=true", status_code=303)
    if paid_at + signer.max_age <= time.time():
        log.info(f"Checkout session {session_id} is older than the entitlement period")
        return RedirectResponse(f"{settings.site_url}/?expired=true", status_code=303)
    response = RedirectResponse(f"{settings.site_url}/?paid=true", status_code=303)
    _set_paid_cookie(response, signer, paid_at)
    return response


@router.get("/api/entitlement")
def entitlement(request: Request, premium: bool = Depends(has_premium_access)):
    ctx = ClientContext.from_request(request)
    return {
        "entitled": premium or is_entitled(ctx, request.app.state.signer),
        "verified": premium,
        "paywall": request.app.state.payments.enabled,
    }


# =============================================================================
# Error handling
# =============================================================================

async def _handle_app_error(request: Request, exc: JediPathError):
    if exc.status_code >= 500:
        log.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def _handle_validation_error(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid')}" for err in exc.errors()
    )
    return JSONResponse({"error": f"Invalid request: {details}"}, status_code=400)


async def _handle_unexpected(request: Request, exc: Exception):
    log.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse({"error": "Internal server error"}, status_code=500)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API with settings, payment gateway and signer on app.state."""
    settings = (settings or Settings.from_env()).validate_startup()
    logging.getLogger("jedi_path").setLevel(settings.log_level)

    app = FastAPI(title="Jedi Path Quiz")
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.state.settings = settings
    app.state.payments = PaymentGateway(settings)
    app.state.signer = EntitlementSigner(settings.signing_secret, settings.entitlement_max_age) if settings.signing_secret else None

    app.add_exception_handler(JediPathError, _handle_app_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(Exception, _handle_unexpected)
    app.include_router(router)

    log.info(
        f"Jedi Path Quiz ready: llm={'on' if settings.llm_enabled else 'fallback'}, "
        f"payments={'on' if settings.payments_enabled else 'disabled'}"
    )
    return app


app = create_app()

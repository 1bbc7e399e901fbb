"""Process-wide settings, read once from the environment."""
from typing import Optional

from pydantic import BaseModel, Field

from .errors import ConfigurationError
from .utils import env_float, env_int, env_str, load_env

MODEL = "grok-4-1-fast-non-reasoning"
MAX_TOKENS = 800
TEMPERATURE = 0.8
DEFAULT_PRICE_CENTS = 497
ENTITLEMENT_MAX_AGE = 60 * 60 * 24 * 7


class Settings(BaseModel):
    """Application settings.

    Payments are optional: without a Stripe secret key the app runs in
    disabled mode, where checkout answers 500 and the paywall is off.
    """

    xai_api_key: Optional[str] = None
    xai_model: str = MODEL
    max_tokens: int = Field(default=MAX_TOKENS, ge=1)
    temperature: float = TEMPERATURE
    # None leaves the SDK's own default in place
    client_timeout: Optional[float] = None

    stripe_secret_key: Optional[str] = None
    stripe_publishable_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    site_url: str = ""
    price_cents: int = Field(default=DEFAULT_PRICE_CENTS, ge=1)
    currency: str = "usd"

    entitlement_secret: Optional[str] = None
    entitlement_max_age: int = Field(default=ENTITLEMENT_MAX_AGE, ge=1)

    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_path=None) -> "Settings":
        """Build settings from the environment (after loading .env)."""
        load_env(env_path)
        try:
            return cls(
                xai_api_key=env_str("XAI_API_KEY"),
                xai_model=env_str("XAI_MODEL", MODEL),
                max_tokens=env_int("XAI_MAX_TOKENS", MAX_TOKENS),
                client_timeout=env_float("XAI_TIMEOUT"),
                stripe_secret_key=env_str("STRIPE_SECRET_KEY"),
                stripe_publishable_key=env_str("STRIPE_PUBLISHABLE_KEY"),
                stripe_webhook_secret=env_str("STRIPE_WEBHOOK_SECRET"),
                site_url=(env_str("SITE_URL", "") or "").rstrip("/"),
                price_cents=env_int("PRICE_CENTS", DEFAULT_PRICE_CENTS),
                currency=env_str("CURRENCY", "usd"),
                entitlement_secret=env_str("ENTITLEMENT_SECRET"),
                log_level=(env_str("LOG_LEVEL", "INFO") or "INFO").upper(),
            )
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    @property
    def payments_enabled(self) -> bool:
        return bool(self.stripe_secret_key)

    @property
    def llm_enabled(self) -> bool:
        return bool(self.xai_api_key)

    @property
    def signing_secret(self) -> Optional[str]:
        """Key for entitlement tokens; the webhook secret stands in when unset."""
        return self.entitlement_secret or self.stripe_webhook_secret

    def validate_startup(self) -> "Settings":
        """Fail fast on half-configured payments."""
        if not self.payments_enabled:
            return self
        if not self.site_url:
            raise ConfigurationError("SITE_URL is required when STRIPE_SECRET_KEY is set.")
        if not self.signing_secret:
            raise ConfigurationError(
                "ENTITLEMENT_SECRET or STRIPE_WEBHOOK_SECRET is required when STRIPE_SECRET_KEY is set."
            )
        return self

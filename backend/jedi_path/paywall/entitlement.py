"""Paid/unpaid decisions from the payment cookie and the success redirect.

Two checks live here. ``is_entitled`` is the display gate: it accepts the
``jediPaid`` cookie or the ``?paid`` redirect parameter, the same signals a
browser sees after checkout. ``has_verified_entitlement`` is what the server
uses before handing out premium content; it only accepts a cookie carrying a
token signed by ``EntitlementSigner``.

Token format: ``paid.<expires-unix>.<hex hmac-sha256 of "paid.<expires>">``.

The same key seals the full profile behind a locked preview:
``<base64url json>.<hex hmac-sha256 of "profile.<base64url json>">``.
"""
import base64
import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Mapping, Optional

from ..common.config import ENTITLEMENT_MAX_AGE

log = logging.getLogger(__name__)

PAID_COOKIE = "jediPaid"
PAID_QUERY_PARAM = "paid"
TOKEN_PREFIX = "paid"
SEAL_PREFIX = "profile"


def _same(expected: str, given: str) -> bool:
    # compare_digest rejects non-ASCII str; signatures arrive from clients
    return hmac.compare_digest(expected.encode("utf-8"), given.encode("utf-8"))


@dataclass(frozen=True)
class ClientContext:
    """Cookies and query parameters of one request (or one browser page)."""

    cookies: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_request(cls, request) -> "ClientContext":
        return cls(cookies=dict(request.cookies), query=dict(request.query_params))


class EntitlementSigner:
    """Issues and checks expiring HMAC tokens for the payment cookie."""

    def __init__(self, secret: str, max_age: int = ENTITLEMENT_MAX_AGE):
        if not secret:
            raise ValueError("EntitlementSigner needs a non-empty secret")
        self._key = secret.encode("utf-8")
        self.max_age = max_age

    def _mac(self, message: str) -> str:
        return hmac.new(self._key, message.encode("utf-8"), hashlib.sha256).hexdigest()

    def _sign(self, expires: int) -> str:
        return self._mac(f"{TOKEN_PREFIX}.{expires}")

    def issue(self, now: Optional[float] = None) -> str:
        now = time.time() if now is None else now
        expires = int(now) + self.max_age
        return f"{TOKEN_PREFIX}.{expires}.{self._sign(expires)}"

    def verify(self, token: Optional[str], now: Optional[float] = None) -> bool:
        if not token:
            return False
        parts = token.split(".")
        if len(parts) != 3 or parts[0] != TOKEN_PREFIX:
            return False
        _, raw_expires, signature = parts
        try:
            expires = int(raw_expires)
        except ValueError:
            return False
        if not _same(self._sign(expires), signature):
            log.warning("Rejected entitlement token with bad signature")
            return False
        now = time.time() if now is None else now
        return now < expires

    def seal(self, payload: dict) -> str:
        """Sign a JSON-serialisable payload so a client can hand it back unchanged."""
        raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        body = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
        return f"{body}.{self._mac(f'{SEAL_PREFIX}.{body}')}"

    def unseal(self, envelope: Optional[str]) -> Optional[dict]:
        """Payload of a sealed envelope, or None if it was not sealed with this key."""
        if not envelope or "." not in envelope:
            return None
        body, signature = envelope.rsplit(".", 1)
        if not _same(self._mac(f"{SEAL_PREFIX}.{body}"), signature):
            log.warning("Rejected sealed profile with bad signature")
            return None
        try:
            payload = json.loads(base64.urlsafe_b64decode(body + "=" * (-len(body) % 4)))
        except ValueError:
            return None
        return payload if isinstance(payload, dict) else None


def is_entitled(ctx: ClientContext, signer: Optional[EntitlementSigner] = None) -> bool:
    """Display gate: payment cookie or success redirect parameter.

    Without a signer (browser side, no secret) a non-empty cookie counts.
    """
    cookie = ctx.cookies.get(PAID_COOKIE)
    if signer is not None:
        has_cookie = signer.verify(cookie)
    else:
        has_cookie = bool(cookie)
    return has_cookie or PAID_QUERY_PARAM in ctx.query


def has_verified_entitlement(ctx: ClientContext, signer: Optional[EntitlementSigner]) -> bool:
    """Server gate: only a correctly signed, unexpired cookie counts."""
    if signer is None:
        return False
    return signer.verify(ctx.cookies.get(PAID_COOKIE))

from .entitlement import (
    PAID_COOKIE,
    PAID_QUERY_PARAM,
    ClientContext,
    EntitlementSigner,
    has_verified_entitlement,
    is_entitled,
)
from .payments import CHECKOUT_COMPLETED, PaymentGateway

__all__ = [
    "CHECKOUT_COMPLETED",
    "PAID_COOKIE",
    "PAID_QUERY_PARAM",
    "ClientContext",
    "EntitlementSigner",
    "PaymentGateway",
    "has_verified_entitlement",
    "is_entitled",
]

"""Error taxonomy shared by the services and the HTTP layer."""


class JediPathError(Exception):
    """Base class for errors raised by the quiz backend."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ClientInputError(JediPathError):
    """Malformed or incomplete request input."""

    status_code = 400


class ExternalServiceError(JediPathError):
    """A hosted service (LLM, payments) failed or answered garbage."""

    status_code = 502


class PaymentError(ExternalServiceError):
    """Stripe rejected or failed a checkout request."""

    status_code = 500


class ConfigurationError(JediPathError):
    """A required setting is missing or inconsistent."""

    status_code = 500


class TrustVerificationError(JediPathError):
    """A signed payload could not be verified."""

    status_code = 400


class EntitlementRequiredError(JediPathError):
    """Premium content requested without a verified payment."""

    status_code = 402

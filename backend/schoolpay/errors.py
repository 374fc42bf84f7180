"""Error taxonomy for payment ingestion.

Each error carries the HTTP status returned to the payment provider and a
short public message. Internal detail stays in the log.
"""

from __future__ import annotations


class PaymentError(Exception):
    status_code = 500
    public_message = "Webhook error"

    def __init__(self, detail: str = "", *, public_message: str | None = None):
        super().__init__(detail or self.public_message)
        self.detail = detail
        if public_message is not None:
            self.public_message = public_message


class ConfigurationError(PaymentError):
    """Missing secret or key. Not retried automatically."""

    status_code = 500
    public_message = "Webhook not configured"


class SignatureError(PaymentError):
    """Missing or invalid signature. The payload is untrusted."""

    status_code = 401
    public_message = "Invalid signature"


class PayloadError(PaymentError):
    """Malformed payload or missing required metadata."""

    status_code = 400
    public_message = "Invalid payload"


class TransientError(PaymentError):
    """Database or network failure; the provider will redeliver."""

    status_code = 500
    public_message = "Webhook processing failed"

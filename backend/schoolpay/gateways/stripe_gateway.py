from __future__ import annotations

from typing import Callable, Mapping, Tuple

import stripe

from schoolpay.config import Config
from schoolpay.errors import ConfigurationError, PayloadError, SignatureError
from schoolpay.gateways.base import (
    EventKind,
    NormalizedEvent,
    PaymentGateway,
    as_dict,
    as_minor,
    as_school_id,
    is_truthy_flag,
    parse_timestamp,
)

SIGNATURE_HEADER = "Stripe-Signature"

_EVENT_KINDS = {
    "payment_intent.succeeded": EventKind.PAYMENT_SUCCEEDED,
    "payment_intent.payment_failed": EventKind.PAYMENT_FAILED,
    "transfer.created": EventKind.TRANSFER_CREATED,
    "account.updated": EventKind.ACCOUNT_UPDATED,
}

# Returns (secret_key, webhook_secret) from the platform configuration table.
SecretLoader = Callable[[], Tuple[str, str]]


class StripeGateway(PaymentGateway):
    name = "stripe"
    reference_prefix = "ST-"
    method_label = "Stripe"
    records_platform_fee = True

    def __init__(self, config: Config, secret_loader: SecretLoader | None = None):
        self._fallback_secret_key = config.stripe_secret_key
        self._fallback_webhook_secret = config.stripe_webhook_secret
        self.tolerance = config.stripe_tolerance_seconds
        self._secret_loader = secret_loader

    def webhook_secret(self) -> str:
        stored = ""
        if self._secret_loader is not None:
            _, stored = self._secret_loader()
        secret = stored or self._fallback_webhook_secret
        if not secret:
            raise ConfigurationError("stripe: webhook secret not configured")
        return secret

    def verify_signature(self, raw_body: bytes, headers: Mapping[str, str]) -> None:
        secret = self.webhook_secret()
        signature = (headers.get(SIGNATURE_HEADER) or "").strip()
        if not signature:
            raise SignatureError("stripe: missing signature header")
        try:
            payload = raw_body.decode("utf-8")
        except UnicodeDecodeError:
            raise SignatureError("stripe: body is not utf-8")
        try:
            stripe.WebhookSignature.verify_header(payload, signature, secret, self.tolerance)
        except stripe.SignatureVerificationError as e:
            raise SignatureError(f"stripe: {e}")

    def map_event_type(self, event_type: str) -> EventKind:
        return _EVENT_KINDS.get((event_type or "").strip(), EventKind.IGNORED)

    def normalize_payload(self, payload: dict) -> NormalizedEvent:
        event_type = str(payload.get("type") or "")
        kind = self.map_event_type(event_type)
        obj = as_dict(as_dict(payload.get("data")).get("object"))
        if kind is EventKind.IGNORED:
            return NormalizedEvent(provider=self.name, event_type=event_type, kind=kind, raw=payload)
        if not obj:
            raise PayloadError(f"stripe: {event_type} has no data.object")

        if kind in (EventKind.TRANSFER_CREATED, EventKind.ACCOUNT_UPDATED):
            return NormalizedEvent(
                provider=self.name,
                event_type=event_type,
                kind=kind,
                reference=str(obj.get("id") or ""),
                amount_minor=as_minor(obj.get("amount")),
                currency=str(obj.get("currency") or "").upper(),
                raw=obj,
            )

        meta = as_dict(obj.get("metadata"))
        return NormalizedEvent(
            provider=self.name,
            event_type=event_type,
            kind=kind,
            reference=str(meta.get("reference") or obj.get("id") or "").strip(),
            amount_minor=as_minor(obj.get("amount")),
            platform_fee_minor=as_minor(obj.get("application_fee_amount"), field_name="application_fee_amount"),
            currency=str(obj.get("currency") or "usd").upper(),
            student_id_display=str(meta.get("student_id_display") or meta.get("student_id") or "").strip(),
            school_id=as_school_id(meta.get("school_id")),
            customer_email=str(obj.get("receipt_email") or ""),
            donation=is_truthy_flag(meta.get("donation")),
            paid_at=parse_timestamp(obj.get("created")),
            raw=obj,
        )

from __future__ import annotations

import hashlib
import hmac
from typing import Mapping
from urllib.parse import quote

import requests

from schoolpay.config import Config, usable_secret
from schoolpay.errors import ConfigurationError, PayloadError, SignatureError, TransientError
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

SIGNATURE_HEADER = "x-paystack-signature"

_EVENT_KINDS = {
    "charge.success": EventKind.PAYMENT_SUCCEEDED,
}


def compute_signature(secret: str, raw_body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


class PaystackGateway(PaymentGateway):
    name = "paystack"
    reference_prefix = "PS-"
    method_label = "Paystack"

    def __init__(self, config: Config):
        self.secret_key = config.paystack_secret_key
        self.base_url = config.paystack_base_url
        self.timeout = config.paystack_timeout_seconds
        self.default_currency = config.default_currency

    # -------------------------
    # Webhook
    # -------------------------

    def verify_signature(self, raw_body: bytes, headers: Mapping[str, str]) -> None:
        if not self.secret_key:
            raise ConfigurationError("paystack: PAYSTACK_SECRET_KEY is not configured")
        signature = (headers.get(SIGNATURE_HEADER) or "").strip()
        if not signature:
            raise SignatureError("paystack: missing signature header")
        computed = compute_signature(self.secret_key, raw_body)
        if not hmac.compare_digest(computed.encode("ascii"), signature.lower().encode("utf-8")):
            raise SignatureError("paystack: signature mismatch")

    def map_event_type(self, event_type: str) -> EventKind:
        return _EVENT_KINDS.get((event_type or "").strip(), EventKind.IGNORED)

    def normalize_payload(self, payload: dict) -> NormalizedEvent:
        event_type = str(payload.get("event") or "")
        kind = self.map_event_type(event_type)
        if kind is EventKind.IGNORED:
            return NormalizedEvent(provider=self.name, event_type=event_type, kind=kind, raw=payload)
        data = payload.get("data")
        if not isinstance(data, dict):
            raise PayloadError(f"paystack: {event_type} has no data object")
        return self.normalize_transaction(data, event_type=event_type, kind=kind)

    def normalize_transaction(self, data: dict, *, event_type: str = "charge.success",
                              kind: EventKind = EventKind.PAYMENT_SUCCEEDED) -> NormalizedEvent:
        """Shared by the webhook body and the verify-by-reference response."""
        meta = as_dict(data.get("metadata"))
        customer = as_dict(data.get("customer"))
        return NormalizedEvent(
            provider=self.name,
            event_type=event_type,
            kind=kind,
            reference=str(data.get("reference") or "").strip(),
            amount_minor=as_minor(data.get("amount")),
            currency=str(data.get("currency") or self.default_currency).upper(),
            student_id_display=str(meta.get("student_id_display") or "").strip(),
            school_id=as_school_id(meta.get("school_id")),
            customer_email=str(customer.get("email") or ""),
            donation=is_truthy_flag(meta.get("donation")),
            paid_at=parse_timestamp(data.get("paid_at") or data.get("paidAt")),
            raw=data,
        )

    # -------------------------
    # REST API
    # -------------------------

    def _headers(self, secret_key: str | None) -> dict:
        secret = usable_secret(secret_key) or self.secret_key
        if not secret:
            raise ConfigurationError("paystack: no secret key for API call")
        return {"Authorization": f"Bearer {secret}", "Content-Type": "application/json"}

    def fetch_transaction(self, reference: str, *, secret_key: str | None = None) -> dict:
        """GET /transaction/verify/<reference>; returns the decoded response body."""
        if not reference:
            raise PayloadError("paystack: reference is required")
        url = f"{self.base_url}/transaction/verify/{quote(reference, safe='')}"
        try:
            r = requests.get(url, headers=self._headers(secret_key), timeout=self.timeout)
        except requests.RequestException as e:
            raise TransientError(f"paystack verify request failed: {e}")
        if not 200 <= r.status_code < 300:
            raise TransientError(f"Paystack API returned an error: {r.status_code} {r.text[:200]}")
        try:
            body = r.json()
        except ValueError:
            raise TransientError("Paystack API returned a non-JSON body")
        return body if isinstance(body, dict) else {}

    def initialize_transaction(self, *, email: str, amount_minor: int, reference: str,
                               metadata: dict, callback_url: str = "",
                               secret_key: str | None = None) -> dict:
        url = f"{self.base_url}/transaction/initialize"
        payload = {"email": email, "amount": int(amount_minor), "reference": reference, "metadata": metadata}
        if callback_url:
            payload["callback_url"] = callback_url
        try:
            r = requests.post(url, headers=self._headers(secret_key), json=payload, timeout=self.timeout)
            j = r.json() if r.content else {}
        except (requests.RequestException, ValueError) as e:
            raise TransientError(f"paystack initialize failed: {e}")
        if 200 <= r.status_code < 300 and j.get("status") is True:
            data = j.get("data") or {}
            return {"authorization_url": data.get("authorization_url", ""), "reference": data.get("reference", reference)}
        raise TransientError(j.get("message") or f"HTTP {r.status_code}")

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

from schoolpay.errors import PayloadError


class EventKind(str, Enum):
    PAYMENT_SUCCEEDED = "payment_succeeded"
    PAYMENT_FAILED = "payment_failed"
    TRANSFER_CREATED = "transfer_created"
    ACCOUNT_UPDATED = "account_updated"
    IGNORED = "ignored"


@dataclass
class NormalizedEvent:
    """Provider event mapped onto the fields the ledger cares about."""

    provider: str
    event_type: str
    kind: EventKind
    reference: str = ""
    amount_minor: int = 0
    platform_fee_minor: int = 0
    currency: str = ""
    student_id_display: str = ""
    school_id: int | None = None
    customer_email: str = ""
    donation: bool = False
    paid_at: datetime | None = None
    raw: dict = field(default_factory=dict)


class PaymentGateway(ABC):
    name: str = ""
    reference_prefix: str = ""
    method_label: str = ""
    # Gateways that take an application fee also write the fee split and revenue rollup.
    records_platform_fee: bool = False

    @abstractmethod
    def verify_signature(self, raw_body: bytes, headers: Mapping[str, str]) -> None:
        """Raise SignatureError / ConfigurationError unless the body is authentic."""

    @abstractmethod
    def map_event_type(self, event_type: str) -> EventKind:
        ...

    @abstractmethod
    def normalize_payload(self, payload: dict) -> NormalizedEvent:
        ...

    def parse(self, raw_body: bytes) -> dict:
        try:
            payload = json.loads(raw_body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise PayloadError(f"{self.name}: body is not valid JSON ({e})")
        if not isinstance(payload, dict):
            raise PayloadError(f"{self.name}: body must be a JSON object")
        return payload

    def ledger_reference(self, reference: str) -> str:
        return f"{self.reference_prefix}{reference}"


# -------------------------
# Field helpers shared by the gateway implementations
# -------------------------

def as_dict(value: Any) -> dict:
    if isinstance(value, dict):
        return value
    # Paystack sends metadata as a JSON string when the checkout was created that way.
    if isinstance(value, str) and value.strip().startswith("{"):
        try:
            parsed = json.loads(value)
        except ValueError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


def as_minor(value: Any, *, field_name: str = "amount") -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise PayloadError(f"{field_name} must be numeric")
    if isinstance(value, float):
        if not value.is_integer():
            raise PayloadError(f"{field_name} must be a whole number of minor units, got {value!r}")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise PayloadError(f"{field_name} must be an integer amount in minor units, got {value!r}")


def as_school_id(value: Any) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise PayloadError(f"school_id must be an integer, got {value!r}")


def is_truthy_flag(value: Any) -> bool:
    return str(value).strip().lower() == "true"


def parse_timestamp(value: Any) -> datetime | None:
    """ISO8601 string or epoch seconds to a naive UTC datetime."""
    if value in (None, ""):
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)
    raw = str(value).strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(raw)
    except ValueError:
        raise PayloadError(f"unparseable timestamp {value!r}")
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt

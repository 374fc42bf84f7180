from __future__ import annotations

from typing import Dict

from flask import current_app

from schoolpay.config import Config, usable_secret
from schoolpay.gateways.base import EventKind, NormalizedEvent, PaymentGateway  # noqa: F401
from schoolpay.gateways.paystack import PaystackGateway
from schoolpay.gateways.stripe_gateway import StripeGateway

EXTENSION_KEY = "schoolpay_gateways"


def _platform_stripe_secrets() -> tuple[str, str]:
    from schoolpay.models import PlatformConfiguration

    row = PlatformConfiguration.latest()
    if row is None:
        return "", ""
    return usable_secret(row.stripe_secret_key), usable_secret(row.stripe_webhook_secret)


def build_gateways(config: Config) -> Dict[str, PaymentGateway]:
    return {
        PaystackGateway.name: PaystackGateway(config),
        StripeGateway.name: StripeGateway(config, secret_loader=_platform_stripe_secrets),
    }


def get_gateway(name: str) -> PaymentGateway:
    gateways = current_app.extensions[EXTENSION_KEY]
    try:
        return gateways[name]
    except KeyError:
        raise LookupError(f"unknown payment gateway {name!r}")

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request

from schoolpay.errors import PaymentError
from schoolpay.gateways import get_gateway
from schoolpay.services.ingestion import process_webhook

webhooks_bp = Blueprint("webhooks_bp", __name__, url_prefix="/api/webhooks")


@webhooks_bp.errorhandler(PaymentError)
def _payment_error(err: PaymentError):
    level = logging.WARNING if err.status_code < 500 else logging.ERROR
    current_app.logger.log(level, "webhook rejected path=%s status=%s detail=%s", request.path, err.status_code, err.detail)
    return jsonify({"ok": False, "message": err.public_message}), err.status_code


def _receive(provider: str):
    raw = request.get_data(cache=True) or b""
    outcome = process_webhook(get_gateway(provider), raw, request.headers)
    return jsonify(outcome.body), outcome.status_code


@webhooks_bp.post("/paystack")
def paystack_webhook():
    return _receive("paystack")


@webhooks_bp.post("/stripe")
def stripe_webhook():
    return _receive("stripe")

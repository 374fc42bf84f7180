from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from schoolpay.config import usable_secret
from schoolpay.errors import ConfigurationError, PaymentError
from schoolpay.extensions import db
from schoolpay.gateways.paystack import PaystackGateway
from schoolpay.models import School, Student, User
from schoolpay.services.ingestion import build_record
from schoolpay.services.recorder import RecordOutcome, record_payment


def school_paystack_secret(gateway: PaystackGateway, school_id: int | None) -> str:
    school = db.session.get(School, int(school_id)) if school_id else None
    return usable_secret(school.paystack_secret_key if school else None) or gateway.secret_key


def verify_paystack_transaction(gateway: PaystackGateway, *, reference: str, user: User | None) -> dict:
    """Synchronous fallback for the hosted-checkout redirect.

    Looks the transaction up on Paystack, then records it through the same
    idempotent recorder the webhook uses.
    """
    log = current_app.logger
    if user is None:
        return {"success": False, "message": "Authentication failed. User ID is missing."}

    student = Student.query.filter_by(user_id=int(user.id)).first()
    if student is None:
        return {"success": False, "message": "Could not determine the school for this transaction."}

    secret = school_paystack_secret(gateway, student.school_id)
    if not secret:
        log.error("paystack verification not configured school_id=%s", student.school_id)
        return {"success": False, "message": "Server is not configured for payment verification. Please contact support."}

    try:
        body = gateway.fetch_transaction(reference, secret_key=secret)
    except ConfigurationError:
        return {"success": False, "message": "Server is not configured for payment verification. Please contact support."}
    except PaymentError as e:
        log.warning("paystack verification failed reference=%s detail=%s", reference, e.detail)
        return {"success": False, "message": f"An unexpected error occurred: {e.detail or e.public_message}"}

    data = body.get("data") if isinstance(body.get("data"), dict) else {}
    if not (body.get("status") and data.get("status") == "success"):
        return {"success": False, "message": f"Paystack verification failed: {body.get('message') or 'transaction not successful'}"}

    try:
        event = gateway.normalize_transaction(data)
    except PaymentError as e:
        return {"success": False, "message": f"Paystack verification failed: {e.detail}"}
    if event.donation:
        return {"success": True, "message": "Donation successful! Thank you."}
    if not event.reference:
        event.reference = reference

    record, _ = build_record(gateway, event, student)
    record.received_by_user_id = int(user.id)
    try:
        result = record_payment(record)
    except SQLAlchemyError as e:
        log.exception("payment insert failed reference=%s", reference)
        return {"success": False, "message": f"An unexpected error occurred: {e}"}

    if result.outcome is RecordOutcome.ALREADY_EXISTS:
        return {"success": True, "message": "Payment was already recorded successfully.", "payment": result.payment.to_dict()}
    return {
        "success": True,
        "message": f"Payment of {record.currency} {record.amount:.2f} recorded successfully.",
        "payment": result.payment.to_dict(),
    }

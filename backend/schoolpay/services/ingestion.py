"""Webhook ingestion shared by every gateway.

verify signature -> parse -> normalize -> dispatch on event kind -> record.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from schoolpay.errors import PayloadError, TransientError
from schoolpay.gateways.base import EventKind, NormalizedEvent, PaymentGateway
from schoolpay.models import Student
from schoolpay.services.recorder import (
    PaymentRecordInput,
    PlatformFeeSplit,
    RecordOutcome,
    record_failed_transaction,
    record_payment,
)
from schoolpay.utils.money import minor_to_major


@dataclass
class WebhookOutcome:
    status_code: int
    body: dict


def resolve_student(student_id_display: str, school_id: int | None = None) -> Student:
    q = Student.query.filter_by(student_id_display=student_id_display)
    if school_id is not None:
        q = q.filter_by(school_id=school_id)
    matches = q.limit(2).all()
    if not matches:
        raise PayloadError(f"unknown student {student_id_display!r} (school_id={school_id})",
                           public_message="Unknown student")
    if len(matches) > 1:
        raise PayloadError(f"student {student_id_display!r} exists in several schools; school_id required",
                           public_message="Ambiguous student")
    return matches[0]


def build_record(gateway: PaymentGateway, event: NormalizedEvent, student: Student) -> tuple[PaymentRecordInput, PlatformFeeSplit | None]:
    gross = minor_to_major(event.amount_minor)
    paid_at = event.paid_at or datetime.utcnow()
    split = None
    amount = gross
    fee = minor_to_major(0)
    if gateway.records_platform_fee:
        fee = minor_to_major(event.platform_fee_minor)
        # The school receives the amount net of the platform fee.
        amount = gross - fee
        split = PlatformFeeSplit(
            gateway=gateway.name,
            reference=event.reference,
            gross_amount=gross,
            platform_fee=fee,
            currency=event.currency,
            processed_at=paid_at,
            gateway_response=event.raw,
        )
    record = PaymentRecordInput(
        school_id=int(student.school_id),
        payment_reference=gateway.ledger_reference(event.reference),
        student_id_display=student.student_id_display,
        student_name=student.full_name,
        grade_level=student.grade_level,
        amount=amount,
        currency=event.currency,
        paid_at=paid_at,
        method=gateway.method_label,
        term_paid_for="Online Payment",
        notes=f"Online payment via {gateway.method_label} with reference: {event.reference}",
        received_by_name=f"{gateway.method_label} Gateway",
        gateway_fees=fee,
    )
    return record, split


def _handle_success(gateway: PaymentGateway, event: NormalizedEvent) -> WebhookOutcome:
    log = current_app.logger
    if event.donation:
        log.info("donation acknowledged provider=%s reference=%s", gateway.name, event.reference)
        return WebhookOutcome(200, {"ok": True, "donation": True})
    if not event.student_id_display:
        raise PayloadError(
            f"{gateway.name}: {event.event_type} reference={event.reference} has no student identifier in metadata",
            public_message="Missing student_id_display in metadata",
        )
    if not event.reference:
        raise PayloadError(f"{gateway.name}: {event.event_type} has no reference",
                           public_message="Missing reference")
    if event.amount_minor <= 0:
        raise PayloadError(f"{gateway.name}: reference={event.reference} non-positive amount {event.amount_minor}",
                           public_message="Invalid amount")
    if gateway.records_platform_fee and not 0 <= event.platform_fee_minor < event.amount_minor:
        raise PayloadError(
            f"{gateway.name}: reference={event.reference} platform fee {event.platform_fee_minor} "
            f"outside [0, {event.amount_minor})",
            public_message="Invalid amount",
        )

    student = resolve_student(event.student_id_display, event.school_id)
    record, split = build_record(gateway, event, student)
    result = record_payment(record, split=split)
    return WebhookOutcome(200, {
        "ok": True,
        "payment_id": result.payment.payment_reference,
        "duplicate": result.outcome is RecordOutcome.ALREADY_EXISTS,
    })


def _handle_failure(gateway: PaymentGateway, event: NormalizedEvent) -> WebhookOutcome:
    if not event.reference:
        raise PayloadError(f"{gateway.name}: failed payment without reference", public_message="Missing reference")
    outcome = record_failed_transaction(
        gateway=gateway.name,
        reference=event.reference,
        school_id=event.school_id,
        student_id_display=event.student_id_display,
        currency=event.currency,
        processed_at=event.paid_at,
        gateway_response=event.raw,
    )
    current_app.logger.info("payment failed provider=%s reference=%s outcome=%s", gateway.name, event.reference, outcome.value)
    return WebhookOutcome(200, {"ok": True, "received": True})


def process_webhook(gateway: PaymentGateway, raw_body: bytes, headers: Mapping[str, str]) -> WebhookOutcome:
    """Run one delivery through the pipeline.

    Raises a PaymentError subclass for anything that is not a 200.
    """
    log = current_app.logger
    try:
        gateway.verify_signature(raw_body, headers)
        payload = gateway.parse(raw_body)
        event = gateway.normalize_payload(payload)

        if event.kind is EventKind.PAYMENT_SUCCEEDED:
            return _handle_success(gateway, event)
        if event.kind is EventKind.PAYMENT_FAILED:
            return _handle_failure(gateway, event)
        if event.kind in (EventKind.TRANSFER_CREATED, EventKind.ACCOUNT_UPDATED):
            log.info("%s event acknowledged provider=%s id=%s", event.event_type, gateway.name, event.reference)
            return WebhookOutcome(200, {"ok": True, "received": True})

        log.info("unhandled event ignored provider=%s event=%s", gateway.name, event.event_type)
        return WebhookOutcome(200, {"ok": True, "ignored": True})
    except SQLAlchemyError as e:
        log.exception("webhook database error provider=%s", gateway.name)
        raise TransientError(f"{gateway.name}: {e}")

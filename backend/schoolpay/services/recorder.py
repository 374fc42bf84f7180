"""Ledger writes.

The unique constraint on ``fee_payments.payment_reference`` is the
idempotency guard: the insert is attempted and an IntegrityError on it means
the payment was already recorded.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from flask import current_app
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from schoolpay.extensions import db
from schoolpay.models import FeePayment, PaymentTransaction, PlatformRevenue
from schoolpay.services.audit import log_action


class RecordOutcome(str, Enum):
    INSERTED = "inserted"
    ALREADY_EXISTS = "already_exists"


@dataclass
class PaymentRecordInput:
    school_id: int
    payment_reference: str
    student_id_display: str
    amount: Decimal
    paid_at: datetime
    currency: str = "GHS"
    student_name: str = ""
    grade_level: str | None = None
    method: str = "Paystack"
    term_paid_for: str = "Online Payment"
    notes: str | None = None
    received_by_name: str | None = None
    received_by_user_id: int | None = None
    gateway_fees: Decimal = Decimal("0.00")


@dataclass
class PlatformFeeSplit:
    gateway: str
    reference: str
    gross_amount: Decimal
    platform_fee: Decimal
    currency: str
    processed_at: datetime
    gateway_response: dict = field(default_factory=dict)


@dataclass
class RecordResult:
    outcome: RecordOutcome
    payment: FeePayment

    @property
    def inserted(self) -> bool:
        return self.outcome is RecordOutcome.INSERTED


def _month_key(when: datetime | None = None) -> str:
    return (when or datetime.utcnow()).strftime("%Y-%m")


# Dialects with INSERT .. ON CONFLICT DO UPDATE.
_UPSERT_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


def add_platform_revenue(amount: Decimal, *, currency: str, gateway: str, month: str | None = None) -> None:
    """Upsert-increment the (month, currency, gateway) rollup. Joins the caller's transaction."""
    month = month or _month_key()
    now = datetime.utcnow()
    insert = _UPSERT_INSERTS.get(db.session.get_bind().dialect.name)
    if insert is None:
        row = PlatformRevenue.query.filter_by(month=month, currency=currency, gateway=gateway).first()
        if row is None:
            db.session.add(PlatformRevenue(month=month, currency=currency, gateway=gateway,
                                           total_revenue=amount, updated_at=now))
            return
        row.total_revenue = PlatformRevenue.total_revenue + amount
        row.updated_at = now
        return

    stmt = insert(PlatformRevenue).values(
        month=month, currency=currency, gateway=gateway, total_revenue=amount, updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["month", "currency", "gateway"],
        set_={
            "total_revenue": PlatformRevenue.total_revenue + stmt.excluded.total_revenue,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    db.session.execute(stmt)


def _record_split(split: PlatformFeeSplit, record: PaymentRecordInput) -> None:
    db.session.add(PaymentTransaction(
        school_id=record.school_id,
        student_id_display=record.student_id_display,
        gateway=split.gateway,
        reference=split.reference,
        amount=split.gross_amount,
        platform_fee=split.platform_fee,
        currency=split.currency,
        status="completed",
        gateway_response=json.dumps(split.gateway_response, default=str),
        processed_at=split.processed_at,
    ))
    add_platform_revenue(split.platform_fee, currency=split.currency, gateway=split.gateway)


def record_payment(record: PaymentRecordInput, *, split: PlatformFeeSplit | None = None,
                   commit: bool = True) -> RecordResult:
    payment = FeePayment(
        school_id=record.school_id,
        payment_reference=record.payment_reference,
        student_id_display=record.student_id_display,
        student_name=record.student_name,
        grade_level=record.grade_level,
        amount=record.amount,
        currency=record.currency,
        gateway_fees=record.gateway_fees,
        paid_at=record.paid_at,
        method=record.method,
        status="completed",
        term_paid_for=record.term_paid_for,
        notes=record.notes,
        received_by_name=record.received_by_name,
        received_by_user_id=record.received_by_user_id,
    )
    db.session.add(payment)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        existing = FeePayment.query.filter_by(payment_reference=record.payment_reference).first()
        if existing is None:
            raise
        current_app.logger.info("payment already recorded reference=%s", record.payment_reference)
        return RecordResult(RecordOutcome.ALREADY_EXISTS, existing)

    try:
        if split is not None:
            _record_split(split, record)
        log_action(
            "payment_recorded",
            school_id=record.school_id,
            actor_user_id=record.received_by_user_id,
            table_name="fee_payments",
            record_id=record.payment_reference,
            meta={
                "student_id_display": record.student_id_display,
                "amount": str(record.amount),
                "currency": record.currency,
                "method": record.method,
            },
            commit=False,
        )
        if commit:
            db.session.commit()
        else:
            db.session.flush()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    current_app.logger.info(
        "payment recorded reference=%s student=%s amount=%s %s",
        record.payment_reference, record.student_id_display, record.amount, record.currency,
    )
    return RecordResult(RecordOutcome.INSERTED, payment)


def record_failed_transaction(*, gateway: str, reference: str, school_id: int | None,
                              student_id_display: str, currency: str, processed_at: datetime | None,
                              gateway_response: dict) -> RecordOutcome:
    db.session.add(PaymentTransaction(
        school_id=school_id,
        student_id_display=student_id_display or None,
        gateway=gateway,
        reference=reference,
        amount=Decimal("0.00"),
        platform_fee=Decimal("0.00"),
        currency=currency,
        status="failed",
        gateway_response=json.dumps(gateway_response, default=str),
        processed_at=processed_at or datetime.utcnow(),
    ))
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return RecordOutcome.ALREADY_EXISTS
    return RecordOutcome.INSERTED

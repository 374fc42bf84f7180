from __future__ import annotations

import time
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError

from schoolpay.extensions import db
from schoolpay.models import Student, StudentArrear, User
from schoolpay.services.audit import log_action
from schoolpay.services.recorder import PaymentRecordInput, record_payment
from schoolpay.utils.money import to_money

ARREAR_STATUSES = ("outstanding", "partially_paid", "cleared", "waived")


class ArrearNotFound(LookupError):
    pass


def list_arrears(school_id: int) -> list[dict]:
    arrears = (StudentArrear.query
               .filter_by(school_id=school_id)
               .order_by(StudentArrear.academic_year_from.desc(), StudentArrear.student_id_display.asc())
               .all())
    grades = dict(
        db.session.query(Student.student_id_display, Student.grade_level)
        .filter(Student.school_id == school_id)
        .all()
    )
    out = []
    for a in arrears:
        row = a.to_dict()
        row["current_grade_level"] = grades.get(a.student_id_display, "N/A")
        out.append(row)
    return out


def _get(arrear_id: int, school_id: int) -> StudentArrear:
    arrear = StudentArrear.query.filter_by(id=arrear_id, school_id=school_id).first()
    if arrear is None:
        raise ArrearNotFound(f"Arrear {arrear_id} not found")
    return arrear


def update_arrear(arrear_id: int, *, school_id: int, actor: User, status: str,
                  notes: str | None = None, amount_paid_now=None) -> dict:
    """Update status/notes; an optional payment is recorded in the ledger in the same transaction.

    Returns ``{"arrear": ..., "payment": ...}``.
    """
    if status not in ARREAR_STATUSES:
        raise ValueError(f"status must be one of {', '.join(ARREAR_STATUSES)}")
    paid_now = to_money(amount_paid_now) if amount_paid_now not in (None, "") else Decimal("0.00")
    if paid_now < 0:
        raise ValueError("amountPaidNow cannot be negative")

    arrear = _get(arrear_id, school_id)
    payment = None
    try:
        if paid_now > 0:
            result = record_payment(
                PaymentRecordInput(
                    school_id=school_id,
                    payment_reference=f"AR-{arrear.id}-{int(time.time() * 1000)}",
                    student_id_display=arrear.student_id_display,
                    student_name=arrear.student_name,
                    grade_level=arrear.grade_level_at_arrear,
                    amount=paid_now,
                    paid_at=datetime.utcnow(),
                    method="Cash",
                    term_paid_for="Arrears",
                    notes=f"Payment towards arrear from {arrear.academic_year_from}. {notes or ''}".strip(),
                    received_by_name=actor.full_name,
                    received_by_user_id=int(actor.id),
                ),
                commit=False,
            )
            payment = result.payment
            # record_payment may have rolled the session back on a reference clash.
            arrear = _get(arrear_id, school_id)

        remaining = to_money(arrear.amount) - paid_now
        arrear.amount = remaining if remaining > 0 else Decimal("0.00")
        arrear.status = status
        arrear.notes = notes
        arrear.updated_at = datetime.utcnow()
        log_action(
            "arrear_updated",
            school_id=school_id,
            actor_user_id=int(actor.id),
            table_name="student_arrears",
            record_id=arrear.id,
            meta={"status": status, "amount_paid_now": str(paid_now), "remaining": str(arrear.amount)},
            commit=False,
        )
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    return {"arrear": arrear.to_dict(), "payment": payment.to_dict() if payment is not None else None}


def delete_arrear(arrear_id: int, *, school_id: int, actor: User) -> None:
    arrear = _get(arrear_id, school_id)
    db.session.delete(arrear)
    log_action(
        "arrear_deleted",
        school_id=school_id,
        actor_user_id=int(actor.id),
        table_name="student_arrears",
        record_id=arrear_id,
        meta={"student_id_display": arrear.student_id_display, "amount": str(arrear.amount)},
        commit=False,
    )
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

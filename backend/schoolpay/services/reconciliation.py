"""End-of-year processing: arrears carry-forward, then grade promotion.

Both phases share one transaction, so a run is either fully applied or not
applied at all. ``student_promotions`` records who was promoted out of which
year; re-running the same year replaces the arrears and promotes nobody twice.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, List

from flask import current_app

from schoolpay.extensions import db
from schoolpay.models import FeeItem, FeePayment, Student, StudentArrear, StudentPromotion
from schoolpay.services.audit import log_action
from schoolpay.utils.academic_year import AcademicYear
from schoolpay.utils.grades import GRADUATED, next_grade
from schoolpay.utils.money import to_money


@dataclass
class EndOfYearResult:
    success: bool
    message: str
    arrears_created: int = 0
    students_promoted: int = 0

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "arrears_created": self.arrears_created,
            "students_promoted": self.students_promoted,
        }


def fees_by_grade(school_id: int, year: AcademicYear) -> Dict[str, Decimal]:
    totals: Dict[str, Decimal] = defaultdict(lambda: Decimal("0.00"))
    rows = (db.session.query(FeeItem.grade_level, FeeItem.amount)
            .filter(FeeItem.school_id == school_id, FeeItem.academic_year == year.label)
            .all())
    for grade, amount in rows:
        totals[grade] += to_money(amount)
    return totals


def payments_by_student(school_id: int, year: AcademicYear, start_month: int) -> Dict[str, Decimal]:
    start, end = year.window(start_month)
    totals: Dict[str, Decimal] = defaultdict(lambda: Decimal("0.00"))
    rows = (db.session.query(FeePayment.student_id_display, FeePayment.amount)
            .filter(
                FeePayment.school_id == school_id,
                FeePayment.status == "completed",
                FeePayment.paid_at >= start,
                FeePayment.paid_at < end,
            )
            .all())
    for student_id_display, amount in rows:
        totals[student_id_display] += to_money(amount)
    return totals


def calculate_arrears(school_id: int, year: AcademicYear, *, actor_user_id: int | None = None,
                      start_month: int = 8) -> List[StudentArrear]:
    """Replace the arrears for (year, year+1) with a fresh computation. Does not commit."""
    next_label = year.next().label
    students = Student.query.filter_by(school_id=school_id).order_by(Student.id.asc()).all()
    # Grade held during the ending year, for students already promoted out of it.
    held = {
        p.student_id: p.from_grade
        for p in StudentPromotion.query.filter_by(school_id=school_id, academic_year=year.label).all()
    }
    owed = fees_by_grade(school_id, year)
    paid = payments_by_student(school_id, year, start_month)

    (StudentArrear.query
     .filter_by(school_id=school_id, academic_year_from=year.label, academic_year_to=next_label)
     .delete(synchronize_session=False))

    created: List[StudentArrear] = []
    for s in students:
        grade = held.get(s.id, s.grade_level)
        balance = owed.get(grade, Decimal("0.00")) - paid.get(s.student_id_display, Decimal("0.00"))
        if balance <= 0:
            continue
        arrear = StudentArrear(
            school_id=school_id,
            student_id_display=s.student_id_display,
            student_name=s.full_name,
            grade_level_at_arrear=grade,
            academic_year_from=year.label,
            academic_year_to=next_label,
            amount=to_money(balance),
            status="outstanding",
            created_by_user_id=actor_user_id,
        )
        db.session.add(arrear)
        created.append(arrear)
    db.session.flush()
    return created


def promote_students(school_id: int, year: AcademicYear) -> int:
    """Advance every non-graduated student one grade. Does not commit."""
    already = {
        p.student_id
        for p in StudentPromotion.query.filter_by(school_id=school_id, academic_year=year.label).all()
    }
    students = (Student.query
                .filter(Student.school_id == school_id, Student.grade_level != GRADUATED)
                .order_by(Student.id.asc())
                .all())
    now = datetime.utcnow()
    promoted = 0
    for s in students:
        if s.id in already:
            continue
        target = next_grade(s.grade_level)
        if target == s.grade_level:
            continue
        db.session.add(StudentPromotion(
            school_id=school_id,
            student_id=s.id,
            academic_year=year.label,
            from_grade=s.grade_level,
            to_grade=target,
        ))
        s.grade_level = target
        s.total_paid_override = None
        s.updated_at = now
        promoted += 1
    db.session.flush()
    return promoted


def end_of_year_process(school_id: int, previous_academic_year: str, *, actor_user_id: int | None = None,
                        start_month: int = 8) -> EndOfYearResult:
    log = current_app.logger
    try:
        year = AcademicYear.parse(previous_academic_year)
    except ValueError as e:
        return EndOfYearResult(False, f"Process failed: {e}")

    try:
        arrears = calculate_arrears(school_id, year, actor_user_id=actor_user_id, start_month=start_month)
        log.info("end-of-year arrears school_id=%s year=%s count=%s", school_id, year, len(arrears))
        promoted = promote_students(school_id, year)
        log.info("end-of-year promotion school_id=%s year=%s promoted=%s", school_id, year, promoted)
        log_action(
            "end_of_year_process",
            school_id=school_id,
            actor_user_id=actor_user_id,
            table_name="student_arrears",
            record_id=year.label,
            meta={"arrears_created": len(arrears), "students_promoted": promoted},
            commit=False,
        )
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        log.exception("end-of-year process failed school_id=%s year=%s", school_id, year)
        return EndOfYearResult(False, f"Process failed: {e}")

    return EndOfYearResult(
        True,
        "Arrears calculated and students promoted successfully.",
        arrears_created=len(arrears),
        students_promoted=promoted,
    )

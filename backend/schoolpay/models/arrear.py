from datetime import datetime

from schoolpay.extensions import db


class StudentArrear(db.Model):
    __tablename__ = "student_arrears"

    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey("schools.id"), nullable=False, index=True)

    student_id_display = db.Column(db.String(32), nullable=False, index=True)
    student_name = db.Column(db.String(160), nullable=False, default="")
    grade_level_at_arrear = db.Column(db.String(32), nullable=True)

    academic_year_from = db.Column(db.String(9), nullable=False)
    academic_year_to = db.Column(db.String(9), nullable=False)

    amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="outstanding")  # outstanding/partially_paid/cleared/waived
    notes = db.Column(db.Text, nullable=True)

    created_by_user_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=True)

    def to_dict(self):
        return {
            "id": int(self.id),
            "student_id_display": self.student_id_display,
            "student_name": self.student_name,
            "grade_level_at_arrear": self.grade_level_at_arrear or "",
            "academic_year_from": self.academic_year_from,
            "academic_year_to": self.academic_year_to,
            "amount": float(self.amount or 0),
            "status": self.status,
            "notes": self.notes or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class StudentPromotion(db.Model):
    """One row per student per academic year promoted out of."""

    __tablename__ = "student_promotions"
    __table_args__ = (
        db.UniqueConstraint("student_id", "academic_year", name="uq_student_promotions_student_year"),
    )

    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey("schools.id"), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id"), nullable=False, index=True)

    academic_year = db.Column(db.String(9), nullable=False)
    from_grade = db.Column(db.String(32), nullable=False)
    to_grade = db.Column(db.String(32), nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

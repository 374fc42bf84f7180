from datetime import datetime

from schoolpay.extensions import db


class Student(db.Model):
    __tablename__ = "students"
    __table_args__ = (
        db.UniqueConstraint("school_id", "student_id_display", name="uq_students_school_display_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey("schools.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    student_id_display = db.Column(db.String(32), nullable=False, index=True)
    full_name = db.Column(db.String(160), nullable=False, default="")
    grade_level = db.Column(db.String(32), nullable=False)

    guardian_contact = db.Column(db.String(32), nullable=True)
    contact_email = db.Column(db.String(255), nullable=True, index=True)

    # Manually entered "amount paid" shown on the fee page; cleared on promotion.
    total_paid_override = db.Column(db.Numeric(12, 2), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=True)

    def to_dict(self):
        return {
            "id": int(self.id),
            "school_id": int(self.school_id),
            "student_id_display": self.student_id_display,
            "full_name": self.full_name,
            "grade_level": self.grade_level,
            "total_paid_override": float(self.total_paid_override) if self.total_paid_override is not None else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

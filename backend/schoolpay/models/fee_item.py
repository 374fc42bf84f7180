from datetime import datetime

from schoolpay.extensions import db


class FeeItem(db.Model):
    __tablename__ = "school_fee_items"

    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey("schools.id"), nullable=False, index=True)

    grade_level = db.Column(db.String(32), nullable=False)
    term = db.Column(db.String(32), nullable=False, default="Term 1")
    academic_year = db.Column(db.String(9), nullable=False, index=True)  # YYYY-YYYY
    description = db.Column(db.String(160), nullable=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "grade_level": self.grade_level,
            "term": self.term,
            "academic_year": self.academic_year,
            "description": self.description or "",
            "amount": float(self.amount or 0),
        }

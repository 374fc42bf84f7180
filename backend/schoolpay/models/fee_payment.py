from datetime import datetime

from schoolpay.extensions import db


class FeePayment(db.Model):
    """Ledger row. Append-only; one row per payment_reference."""

    __tablename__ = "fee_payments"

    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey("schools.id"), nullable=False, index=True)

    payment_reference = db.Column(db.String(128), nullable=False, unique=True)

    student_id_display = db.Column(db.String(32), nullable=False, index=True)
    student_name = db.Column(db.String(160), nullable=False, default="")
    grade_level = db.Column(db.String(32), nullable=True)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(8), nullable=False, default="GHS")
    gateway_fees = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    paid_at = db.Column(db.DateTime, nullable=False, index=True)
    method = db.Column(db.String(32), nullable=False, default="Paystack")
    status = db.Column(db.String(16), nullable=False, default="completed")

    term_paid_for = db.Column(db.String(64), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    received_by_name = db.Column(db.String(160), nullable=True)
    received_by_user_id = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "payment_reference": self.payment_reference,
            "student_id_display": self.student_id_display,
            "student_name": self.student_name,
            "grade_level": self.grade_level or "",
            "amount": float(self.amount or 0),
            "currency": self.currency,
            "gateway_fees": float(self.gateway_fees or 0),
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
            "method": self.method,
            "status": self.status,
            "term_paid_for": self.term_paid_for or "",
            "notes": self.notes or "",
        }

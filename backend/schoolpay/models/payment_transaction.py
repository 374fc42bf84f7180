from datetime import datetime

from schoolpay.extensions import db


class PaymentTransaction(db.Model):
    __tablename__ = "payment_transactions"
    __table_args__ = (
        db.UniqueConstraint("reference", "status", name="uq_payment_transactions_reference_status"),
    )

    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, nullable=True, index=True)
    student_id_display = db.Column(db.String(32), nullable=True)

    gateway = db.Column(db.String(32), nullable=False, default="stripe")
    reference = db.Column(db.String(128), nullable=False, index=True)

    amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    platform_fee = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    currency = db.Column(db.String(8), nullable=False, default="USD")

    status = db.Column(db.String(16), nullable=False, default="completed")  # completed/failed
    gateway_response = db.Column(db.Text, nullable=True)

    processed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "school_id": self.school_id,
            "student_id_display": self.student_id_display or "",
            "gateway": self.gateway,
            "reference": self.reference,
            "amount": float(self.amount or 0),
            "platform_fee": float(self.platform_fee or 0),
            "currency": self.currency,
            "status": self.status,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
        }

from datetime import datetime

from schoolpay.extensions import db


class School(db.Model):
    __tablename__ = "schools"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(160), nullable=False, default="")
    email = db.Column(db.String(255), nullable=True)

    # Per-school gateway key; the platform key is used when empty.
    paystack_secret_key = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "name": self.name,
            "email": self.email or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

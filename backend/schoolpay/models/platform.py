from datetime import datetime

from schoolpay.extensions import db


class PlatformRevenue(db.Model):
    __tablename__ = "platform_revenue"
    __table_args__ = (
        db.UniqueConstraint("month", "currency", "gateway", name="uq_platform_revenue_month_currency_gateway"),
    )

    id = db.Column(db.Integer, primary_key=True)
    month = db.Column(db.String(7), nullable=False)  # YYYY-MM
    currency = db.Column(db.String(8), nullable=False)
    gateway = db.Column(db.String(32), nullable=False)
    total_revenue = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "month": self.month,
            "currency": self.currency,
            "gateway": self.gateway,
            "total_revenue": float(self.total_revenue or 0),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class PlatformConfiguration(db.Model):
    __tablename__ = "platform_configuration"

    id = db.Column(db.Integer, primary_key=True)
    stripe_secret_key = db.Column(db.String(255), nullable=True)
    stripe_webhook_secret = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @classmethod
    def latest(cls):
        return cls.query.order_by(cls.created_at.desc(), cls.id.desc()).first()

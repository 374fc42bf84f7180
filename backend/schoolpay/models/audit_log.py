from datetime import datetime

from schoolpay.extensions import db


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)

    school_id = db.Column(db.Integer, nullable=True, index=True)
    actor_user_id = db.Column(db.Integer, nullable=True)
    action = db.Column(db.String(64), nullable=False)
    table_name = db.Column(db.String(64), nullable=True)
    record_id = db.Column(db.String(128), nullable=True)
    meta = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "school_id": int(self.school_id) if self.school_id else None,
            "actor_user_id": int(self.actor_user_id) if self.actor_user_id else None,
            "action": self.action,
            "table_name": self.table_name or "",
            "record_id": self.record_id or "",
            "meta": self.meta or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

# src/models/state_record_model.py

from datetime import datetime, timezone
from src.models import db


def _utcnow():
    return datetime.now(timezone.utc)


class SubscriptionStateRecord(db.Model):
    __tablename__ = "subscription_state"

    # One row per state document; the whole SubscriptionState lives in payload
    key         = db.Column(db.String(64), primary_key=True)
    payload     = db.Column(db.Text, nullable=False)
    updated_at  = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<SubscriptionStateRecord {self.key}>"

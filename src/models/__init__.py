from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from src.models.subscription_model import (  # noqa: E402
    Subscription,
    SubscriptionState,
    RenewalResult,
    RenewalSummary,
)
from src.models.state_record_model import SubscriptionStateRecord  # noqa: E402

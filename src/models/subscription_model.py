# src/models/subscription_model.py

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from src.utils.time_utils import (
    SECONDS_PER_DAY,
    ensure_utc,
    format_timestamp,
    parse_timestamp,
    utc_now,
)

STATE_VERSION = "1.0"


def _isoformat(dt):
    # Full precision so a saved state loads back equal
    return ensure_utc(dt).isoformat() if dt else None


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"


@dataclass
class Subscription:
    channel_id: str
    expires_at: datetime
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    attempt_count: int = 0
    last_message: str = ""
    topic_url: str = ""
    callback_url: str = ""
    lease_seconds: int = 0
    subscribed_at: Optional[datetime] = None
    last_renewal: Optional[datetime] = None

    def days_until_expiry(self, now: datetime) -> float:
        return (self.expires_at - now).total_seconds() / SECONDS_PER_DAY

    def is_fresh(self, now: datetime) -> bool:
        """Active with lease time still left; re-subscribing would be wasted hub traffic."""
        return self.status == SubscriptionStatus.ACTIVE and self.days_until_expiry(now) > 0

    def reported_status(self, now: datetime) -> SubscriptionStatus:
        # The stored status can lag behind the clock, so expiry is decided at read time
        if self.status == SubscriptionStatus.ACTIVE and self.days_until_expiry(now) >= 0:
            return SubscriptionStatus.ACTIVE
        return SubscriptionStatus.EXPIRED

    def to_dict(self) -> dict:
        return {
            "channel_id": self.channel_id,
            "status": self.status.value,
            "expires_at": _isoformat(self.expires_at),
            "renewal_attempts": self.attempt_count,
            "hub_response": self.last_message,
            "topic_url": self.topic_url,
            "callback_url": self.callback_url,
            "lease_seconds": self.lease_seconds,
            "subscribed_at": _isoformat(self.subscribed_at),
            "last_renewal": _isoformat(self.last_renewal),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Subscription":
        return cls(
            channel_id=data["channel_id"],
            status=SubscriptionStatus(data.get("status", SubscriptionStatus.ACTIVE.value)),
            expires_at=parse_timestamp(data["expires_at"]),
            attempt_count=int(data.get("renewal_attempts", 0)),
            last_message=data.get("hub_response", ""),
            topic_url=data.get("topic_url", ""),
            callback_url=data.get("callback_url", ""),
            lease_seconds=int(data.get("lease_seconds", 0)),
            subscribed_at=parse_timestamp(data.get("subscribed_at")),
            last_renewal=parse_timestamp(data.get("last_renewal")),
        )


@dataclass
class SubscriptionState:
    subscriptions: Dict[str, Subscription] = field(default_factory=dict)
    last_updated: Optional[datetime] = None
    version: str = STATE_VERSION

    def get(self, channel_id: str) -> Optional[Subscription]:
        return self.subscriptions.get(channel_id)

    def upsert(self, subscription: Subscription) -> None:
        self.subscriptions[subscription.channel_id] = subscription

    def remove(self, channel_id: str) -> None:
        self.subscriptions.pop(channel_id, None)

    def ordered(self) -> List[Subscription]:
        """Subscriptions sorted by channel id, the order used for listing and scans."""
        return [self.subscriptions[k] for k in sorted(self.subscriptions)]

    def __len__(self):
        return len(self.subscriptions)

    def copy(self) -> "SubscriptionState":
        return SubscriptionState(
            subscriptions={k: replace(v) for k, v in self.subscriptions.items()},
            last_updated=self.last_updated,
            version=self.version,
        )

    def to_dict(self) -> dict:
        return {
            "subscriptions": {s.channel_id: s.to_dict() for s in self.ordered()},
            "metadata": {
                "last_updated": _isoformat(self.last_updated or utc_now()),
                "version": self.version or STATE_VERSION,
            },
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "SubscriptionState":
        data = data or {}
        metadata = data.get("metadata") or {}
        subscriptions = {}
        for channel_id, raw in (data.get("subscriptions") or {}).items():
            raw = dict(raw)
            raw.setdefault("channel_id", channel_id)
            subscriptions[channel_id] = Subscription.from_dict(raw)
        return cls(
            subscriptions=subscriptions,
            last_updated=parse_timestamp(metadata.get("last_updated")),
            version=metadata.get("version") or STATE_VERSION,
        )


@dataclass
class RenewalResult:
    channel_id: str
    success: bool
    message: str
    attempt_count: int
    new_expiry_time: Optional[datetime] = None

    def to_dict(self) -> dict:
        data = {
            "channel_id": self.channel_id,
            "success": self.success,
            "message": self.message,
            "attempt_count": self.attempt_count,
        }
        if self.new_expiry_time is not None:
            data["new_expiry_time"] = format_timestamp(self.new_expiry_time)
        return data


@dataclass
class RenewalSummary:
    total_checked: int = 0
    results: List[RenewalResult] = field(default_factory=list)

    @property
    def renewal_candidates(self) -> int:
        return len(self.results)

    @property
    def renewals_succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def renewals_failed(self) -> int:
        return sum(1 for r in self.results if not r.success)


@dataclass
class SubscriptionInfo:
    channel_id: str
    status: SubscriptionStatus
    expires_at: datetime
    days_until_expiry: float

    def to_dict(self) -> dict:
        return {
            "channel_id": self.channel_id,
            "status": self.status.value,
            "expires_at": format_timestamp(self.expires_at),
            "days_until_expiry": self.days_until_expiry,
        }


@dataclass
class SubscriptionListing:
    subscriptions: List[SubscriptionInfo] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.subscriptions)

    @property
    def active(self) -> int:
        return sum(1 for s in self.subscriptions if s.status == SubscriptionStatus.ACTIVE)

    @property
    def expired(self) -> int:
        return self.total - self.active

"""
Subscription lifecycle: subscribe, unsubscribe, list and renewal scans.

Every mutating operation runs one load -> mutate -> save cycle while holding
the engine lock. The store has no per-key locking, so two interleaved cycles
would otherwise drop one writer's change.
"""
import re
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from flask import current_app

from src.models.subscription_model import (
    RenewalResult,
    RenewalSummary,
    Subscription,
    SubscriptionInfo,
    SubscriptionListing,
    SubscriptionState,
    SubscriptionStatus,
)
from src.services.errors import ConflictError, HubError, NotFoundError, ValidationError
from src.services.hub_client import HubClient
from src.services.storage_service import SubscriptionStore
from src.utils.time_utils import utc_now

CHANNEL_ID_PATTERN = re.compile(r"^UC[a-zA-Z0-9_-]{22}$")


@dataclass(frozen=True)
class EngineSettings:
    renewal_threshold_days: float = 0.5
    max_renewal_attempts: int = 3   # 0 disables the cap


def validate_channel_id(channel_id: Optional[str]) -> str:
    if not channel_id:
        raise ValidationError("channel_id parameter is required")
    if not CHANNEL_ID_PATTERN.match(channel_id):
        raise ValidationError(
            "Invalid channel ID format. Must be UC followed by 22 alphanumeric characters",
            channel_id,
        )
    return channel_id


class LifecycleEngine:

    def __init__(
            self,
            store: SubscriptionStore,
            hub_client: HubClient,
            settings: EngineSettings = EngineSettings(),
            clock: Callable = utc_now,
    ):
        self.store = store
        self.hub_client = hub_client
        self.settings = settings
        self.clock = clock
        self._lock = threading.Lock()

    def subscribe(self, channel_id: str) -> Subscription:
        """
        Subscribe to a channel, or renew it when its lease is gone.

        Raises ConflictError without contacting the hub when the stored
        subscription is active and unexpired.
        """
        validate_channel_id(channel_id)

        with self._lock:
            state = self.store.load_state()
            now = self.clock()
            existing = state.get(channel_id)

            if existing and existing.is_fresh(now):
                current_app.logger.info("Subscription for %s still active until %s", channel_id, existing.expires_at)
                raise ConflictError(
                    "Already subscribed to this channel",
                    channel_id,
                    expires_at=existing.expires_at,
                )

            try:
                subscription = self._resubscribe(state, channel_id, now)
            except HubError as e:
                if existing:
                    self.store.save_state(state)
                raise HubError(f"PubSubHubbub subscription failed: {e.message}", channel_id) from e

            self.store.save_state(state)

        current_app.logger.info("✅ Subscribed to %s until %s", channel_id, subscription.expires_at)
        return subscription

    def unsubscribe(self, channel_id: str) -> None:
        validate_channel_id(channel_id)

        with self._lock:
            state = self.store.load_state()
            if state.get(channel_id) is None:
                raise NotFoundError("Subscription not found for this channel", channel_id)

            try:
                self.hub_client.unsubscribe(channel_id)
            except HubError as e:
                # The hub still considers the lease live, so the record stays
                current_app.logger.warning("⚠️ Unsubscribe failed for %s: %s", channel_id, e.message)
                raise HubError(f"PubSubHubbub unsubscribe failed: {e.message}", channel_id) from e

            state.remove(channel_id)
            self.store.save_state(state)

        current_app.logger.info("🗑️ Unsubscribed from %s", channel_id)

    def renew_scan(self, threshold_days: Optional[float] = None) -> RenewalSummary:
        """
        Renew every subscription whose lease ends within ``threshold_days``.

        Already-expired subscriptions are candidates too. Each candidate gets a
        single hub attempt; failures are reported per candidate and never stop
        the scan. The state is saved once, after the last candidate.
        """
        if threshold_days is None:
            threshold_days = self.settings.renewal_threshold_days

        with self._lock:
            state = self.store.load_state()
            now = self.clock()
            summary = RenewalSummary(total_checked=len(state))

            for subscription in state.ordered():
                if subscription.days_until_expiry(now) > threshold_days:
                    continue
                summary.results.append(self._renew_candidate(state, subscription, now))

            if summary.results:
                self.store.save_state(state)

        current_app.logger.info(
            "🔄 Renewal scan: checked=%d candidates=%d succeeded=%d failed=%d",
            summary.total_checked, summary.renewal_candidates,
            summary.renewals_succeeded, summary.renewals_failed,
        )
        return summary

    def list_subscriptions(self) -> SubscriptionListing:
        # Brief lock so a listing never observes half of a mutation cycle
        with self._lock:
            state = self.store.load_state()
        now = self.clock()

        listing = SubscriptionListing()
        for subscription in state.ordered():
            listing.subscriptions.append(SubscriptionInfo(
                channel_id=subscription.channel_id,
                status=subscription.reported_status(now),
                expires_at=subscription.expires_at,
                days_until_expiry=subscription.days_until_expiry(now),
            ))
        return listing

    def _resubscribe(self, state: SubscriptionState, channel_id: str, now) -> Subscription:
        """
        One hub subscribe attempt applied to the in-memory state.

        On failure the attempt counter of an existing record is bumped and the
        HubError is re-raised; a channel never seen before is left absent.
        """
        existing = state.get(channel_id)
        try:
            expires_at = self.hub_client.subscribe(channel_id)
        except HubError as e:
            if existing:
                existing.attempt_count += 1
                existing.last_message = e.message
            raise

        if existing:
            # A lease end never moves backward
            if existing.expires_at > expires_at:
                expires_at = existing.expires_at
            existing.status = SubscriptionStatus.ACTIVE
            existing.expires_at = expires_at
            existing.attempt_count = 0
            existing.last_message = "202 Accepted"
            existing.last_renewal = now
            existing.lease_seconds = self.hub_client.lease_seconds
            return existing

        subscription = Subscription(
            channel_id=channel_id,
            status=SubscriptionStatus.ACTIVE,
            expires_at=expires_at,
            attempt_count=0,
            last_message="202 Accepted",
            topic_url=self.hub_client.topic_url(channel_id),
            callback_url=self.hub_client.callback_url,
            lease_seconds=self.hub_client.lease_seconds,
            subscribed_at=now,
            last_renewal=now,
        )
        state.upsert(subscription)
        return subscription

    def _renew_candidate(self, state: SubscriptionState, subscription: Subscription, now) -> RenewalResult:
        channel_id = subscription.channel_id
        max_attempts = self.settings.max_renewal_attempts

        if max_attempts and subscription.attempt_count >= max_attempts:
            return RenewalResult(
                channel_id=channel_id,
                success=False,
                message=f"Max renewal attempts ({max_attempts}) exceeded",
                attempt_count=subscription.attempt_count,
            )

        try:
            renewed = self._resubscribe(state, channel_id, now)
        except HubError as e:
            current_app.logger.warning("❌ Renewal failed for %s: %s", channel_id, e.message)
            return RenewalResult(
                channel_id=channel_id,
                success=False,
                message=f"PubSubHubbub renewal failed: {e.message}",
                attempt_count=subscription.attempt_count,
            )
        except Exception as e:
            # One candidate never aborts the scan
            current_app.logger.exception("❌ Unexpected error renewing %s", channel_id)
            subscription.attempt_count += 1
            subscription.last_message = str(e)
            return RenewalResult(
                channel_id=channel_id,
                success=False,
                message=f"PubSubHubbub renewal failed: {e}",
                attempt_count=subscription.attempt_count,
            )

        return RenewalResult(
            channel_id=channel_id,
            success=True,
            message="Successfully renewed subscription",
            attempt_count=0,
            new_expiry_time=renewed.expires_at,
        )

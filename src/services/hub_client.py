import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta

import requests
from flask import current_app

from src.services.errors import HubError
from src.utils.time_utils import utc_now

DEFAULT_HUB_URL = "https://pubsubhubbub.appspot.com/subscribe"
DEFAULT_TOPIC_URL_TEMPLATE = "https://www.youtube.com/feeds/videos.xml?channel_id={channel_id}"
DEFAULT_LEASE_SECONDS = 86400
DEFAULT_TIMEOUT_SECONDS = 30


class HubClient(ABC):
    """Subscribe/unsubscribe handshake with the push hub."""

    @abstractmethod
    def subscribe(self, channel_id: str) -> datetime:
        """Request (or renew) a lease; returns when the lease ends. Raises HubError."""

    @abstractmethod
    def unsubscribe(self, channel_id: str) -> None:
        """Raises HubError."""

    def topic_url(self, channel_id: str) -> str:
        return DEFAULT_TOPIC_URL_TEMPLATE.format(channel_id=channel_id)

    @property
    def callback_url(self) -> str:
        return ""

    @property
    def lease_seconds(self) -> int:
        return DEFAULT_LEASE_SECONDS


class PubSubHubbubClient(HubClient):
    """
    Talks to a PubSubHubbub hub with form-encoded POSTs.

    Verification is requested as ``async``: the hub answers 202 straight away
    and later calls the callback URL with a challenge, which is served by the
    webhook blueprint. A 2xx answer is therefore treated as success and the
    lease end is computed from the requested lease length.
    """

    USER_AGENT = "YouTube-Webhook-Handler/1.0"

    def __init__(
            self,
            callback_url: str,
            hub_url: str = DEFAULT_HUB_URL,
            topic_url_template: str = DEFAULT_TOPIC_URL_TEMPLATE,
            lease_seconds: int = DEFAULT_LEASE_SECONDS,
            timeout: float = DEFAULT_TIMEOUT_SECONDS,
            clock=utc_now,
    ):
        self.hub_url = hub_url
        self._callback_url = callback_url
        self.topic_url_template = topic_url_template
        self._lease_seconds = int(lease_seconds)
        self.timeout = timeout
        self.clock = clock

    @property
    def callback_url(self) -> str:
        return self._callback_url

    @property
    def lease_seconds(self) -> int:
        return self._lease_seconds

    def topic_url(self, channel_id: str) -> str:
        return self.topic_url_template.format(channel_id=channel_id)

    def subscribe(self, channel_id: str) -> datetime:
        requested_at = self.clock()
        self._request(channel_id, "subscribe")
        return requested_at + timedelta(seconds=self._lease_seconds)

    def unsubscribe(self, channel_id: str) -> None:
        self._request(channel_id, "unsubscribe")

    def _request(self, channel_id: str, mode: str) -> None:
        if not self._callback_url:
            raise HubError("Callback URL is not configured (set FUNCTION_URL)", channel_id)

        form = {
            "hub.callback": self._callback_url,
            "hub.topic": self.topic_url(channel_id),
            "hub.mode": mode,
            "hub.verify": "async",
            "hub.lease_seconds": str(self._lease_seconds),
        }
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "User-Agent": self.USER_AGENT,
        }

        current_app.logger.debug("📡 Hub %s for %s -> %s", mode, channel_id, self.hub_url)
        try:
            resp = requests.post(self.hub_url, data=form, headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            current_app.logger.warning("⏱️ Hub %s timed out for %s after %ss", mode, channel_id, self.timeout)
            raise HubError(f"hub request timed out after {self.timeout}s", channel_id) from e
        except requests.exceptions.RequestException as e:
            current_app.logger.warning("⚠️ Hub %s failed for %s: %s", mode, channel_id, e)
            raise HubError(f"request failed: {e}", channel_id) from e

        if resp.status_code < 200 or resp.status_code >= 300:
            raise HubError(f"hub returned status {resp.status_code}: {resp.text}", channel_id)

        current_app.logger.info("✅ Hub accepted %s for %s (%s)", mode, channel_id, resp.status_code)


class InMemoryHubClient(HubClient):
    """
    Hub stand-in for tests: records calls, can be told to fail per channel.
    """

    def __init__(self, lease_seconds: int = DEFAULT_LEASE_SECONDS, clock=utc_now):
        self._lease_seconds = int(lease_seconds)
        self.clock = clock
        self.subscribe_calls = []
        self.unsubscribe_calls = []
        self.fail_subscribe = {}
        self.fail_unsubscribe = {}
        self.fail_all = None
        self._mutex = threading.Lock()

    @property
    def callback_url(self) -> str:
        return "https://test-function-url"

    @property
    def lease_seconds(self) -> int:
        return self._lease_seconds

    def subscribe(self, channel_id: str) -> datetime:
        with self._mutex:
            self.subscribe_calls.append(channel_id)
        error = self.fail_all or self.fail_subscribe.get(channel_id)
        if error:
            raise HubError(error, channel_id)
        return self.clock() + timedelta(seconds=self._lease_seconds)

    def unsubscribe(self, channel_id: str) -> None:
        with self._mutex:
            self.unsubscribe_calls.append(channel_id)
        error = self.fail_all or self.fail_unsubscribe.get(channel_id)
        if error:
            raise HubError(error, channel_id)

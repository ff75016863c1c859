# src/controllers/subscription_controller.py
"""
Serving implementations behind the subscription routes.

Two implementations exist so the serving path can be migrated behind the
USE_REFACTORED_ROUTER flag and rolled back without a deploy. They must stay
observably identical: same status codes, same bodies, for the same inputs.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from src.services.errors import (
    ConflictError,
    HubError,
    NotFoundError,
    StorageError,
    SubscriptionError,
    ValidationError,
)
from src.services.lifecycle_engine import LifecycleEngine
from src.utils.time_utils import format_timestamp

ROUTER_FLAG_ENABLED_VALUES = ("true", "1")


@dataclass(frozen=True)
class ApiResponse:
    status_code: int
    body: Optional[dict] = None


def use_refactored_router(flag_value) -> bool:
    """Exact, case-sensitive match; "TRUE", "yes" and friends do not count."""
    return flag_value in ROUTER_FLAG_ENABLED_VALUES


class SubscriptionHandlers(ABC):
    name = "abstract"

    def __init__(self, engine: LifecycleEngine):
        self.engine = engine

    @abstractmethod
    def subscribe(self, channel_id) -> ApiResponse: ...

    @abstractmethod
    def unsubscribe(self, channel_id) -> ApiResponse: ...

    @abstractmethod
    def list_subscriptions(self) -> ApiResponse: ...

    @abstractmethod
    def renew(self) -> ApiResponse: ...


class LegacySubscriptionHandlers(SubscriptionHandlers):
    """Default serving path: every handler spells out its own outcomes."""
    name = "legacy"

    def _error(self, status_code, message, channel_id=None):
        body = {"status": "error", "message": message}
        if channel_id:
            body["channel_id"] = channel_id
        return ApiResponse(status_code, body)

    def subscribe(self, channel_id):
        try:
            subscription = self.engine.subscribe(channel_id)
        except ValidationError as e:
            return self._error(400, e.message, e.channel_id)
        except ConflictError as e:
            return ApiResponse(409, {
                "status": "conflict",
                "channel_id": channel_id,
                "message": e.message,
                "expires_at": format_timestamp(e.expires_at),
            })
        except HubError as e:
            return self._error(502, e.message, channel_id)
        except StorageError as e:
            return self._error(500, e.message, channel_id)

        return ApiResponse(200, {
            "status": "success",
            "channel_id": channel_id,
            "message": "Subscription initiated",
            "expires_at": format_timestamp(subscription.expires_at),
        })

    def unsubscribe(self, channel_id):
        try:
            self.engine.unsubscribe(channel_id)
        except ValidationError as e:
            return self._error(400, e.message, e.channel_id)
        except NotFoundError as e:
            return self._error(404, e.message, channel_id)
        except HubError as e:
            return self._error(502, e.message, channel_id)
        except StorageError as e:
            return self._error(500, e.message, channel_id)
        return ApiResponse(204)

    def list_subscriptions(self):
        try:
            listing = self.engine.list_subscriptions()
        except StorageError as e:
            return self._error(500, f"Unable to load subscription state from storage: {e.message}")

        subscriptions = []
        total = active = expired = 0
        for info in listing.subscriptions:
            total += 1
            if info.status.value == "active":
                active += 1
            else:
                expired += 1
            subscriptions.append({
                "channel_id": info.channel_id,
                "status": info.status.value,
                "expires_at": format_timestamp(info.expires_at),
                "days_until_expiry": info.days_until_expiry,
            })

        return ApiResponse(200, {
            "subscriptions": subscriptions,
            "total": total,
            "active": active,
            "expired": expired,
        })

    def renew(self):
        try:
            summary = self.engine.renew_scan()
        except StorageError as e:
            return self._error(500, e.message)

        results = []
        succeeded = failed = 0
        for result in summary.results:
            if result.success:
                succeeded += 1
            else:
                failed += 1
            item = {
                "channel_id": result.channel_id,
                "success": result.success,
                "message": result.message,
                "attempt_count": result.attempt_count,
            }
            if result.new_expiry_time is not None:
                item["new_expiry_time"] = format_timestamp(result.new_expiry_time)
            results.append(item)

        return ApiResponse(200, {
            "status": "success",
            "total_checked": summary.total_checked,
            "renewal_candidates": len(results),
            "renewals_succeeded": succeeded,
            "renewals_failed": failed,
            "results": results,
        })


class RefactoredSubscriptionHandlers(SubscriptionHandlers):
    """
    Alternate serving path: the engine's typed results and exceptions are
    mapped through one place, with status codes taken from the exception
    classes themselves.
    """
    name = "refactored"

    def _run(self, operation, on_success, channel_id=None, storage_prefix=""):
        try:
            return on_success(operation())
        except ConflictError as e:
            return ApiResponse(e.status_code, {
                "status": "conflict",
                "channel_id": channel_id,
                "message": e.message,
                "expires_at": format_timestamp(e.expires_at),
            })
        except SubscriptionError as e:
            message = e.message
            if isinstance(e, StorageError) and storage_prefix:
                message = storage_prefix + message
            return ApiResponse(e.status_code, error_body(message, e.channel_id or channel_id))

    def subscribe(self, channel_id):
        return self._run(
            lambda: self.engine.subscribe(channel_id),
            lambda sub: ApiResponse(200, {
                "status": "success",
                "channel_id": channel_id,
                "message": "Subscription initiated",
                "expires_at": format_timestamp(sub.expires_at),
            }),
            channel_id=channel_id,
        )

    def unsubscribe(self, channel_id):
        return self._run(
            lambda: self.engine.unsubscribe(channel_id),
            lambda _: ApiResponse(204),
            channel_id=channel_id,
        )

    def list_subscriptions(self):
        return self._run(
            self.engine.list_subscriptions,
            lambda listing: ApiResponse(200, {
                "subscriptions": [info.to_dict() for info in listing.subscriptions],
                "total": listing.total,
                "active": listing.active,
                "expired": listing.expired,
            }),
            storage_prefix="Unable to load subscription state from storage: ",
        )

    def renew(self):
        return self._run(
            self.engine.renew_scan,
            lambda summary: ApiResponse(200, {
                "status": "success",
                "total_checked": summary.total_checked,
                "renewal_candidates": summary.renewal_candidates,
                "renewals_succeeded": summary.renewals_succeeded,
                "renewals_failed": summary.renewals_failed,
                "results": [r.to_dict() for r in summary.results],
            }),
        )


def error_body(message, channel_id=None) -> dict:
    body = {"status": "error", "message": message}
    if channel_id:
        body["channel_id"] = channel_id
    return body


def select_handlers(engine: LifecycleEngine, flag_value) -> SubscriptionHandlers:
    if use_refactored_router(flag_value):
        return RefactoredSubscriptionHandlers(engine)
    return LegacySubscriptionHandlers(engine)

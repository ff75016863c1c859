# src/services/dependencies.py
from dataclasses import dataclass

from src.services.hub_client import HubClient, InMemoryHubClient, PubSubHubbubClient
from src.services.storage_service import (
    FileSubscriptionStore,
    InMemorySubscriptionStore,
    SqlSubscriptionStore,
    SubscriptionStore,
)


@dataclass
class Dependencies:
    """External collaborators of the lifecycle engine, built once at startup."""
    store: SubscriptionStore
    hub_client: HubClient


def create_production_dependencies(app) -> Dependencies:
    cfg = app.config

    backend = cfg.get("STORAGE_BACKEND", "sql")
    if backend == "file":
        store = FileSubscriptionStore(cfg["SUBSCRIPTION_STATE_PATH"])
    elif backend == "sql":
        store = SqlSubscriptionStore(app, key=cfg.get("SUBSCRIPTION_STATE_KEY", "subscriptions/state.json"))
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r}")

    hub_client = PubSubHubbubClient(
        callback_url=cfg.get("CALLBACK_URL"),
        hub_url=cfg["HUB_URL"],
        topic_url_template=cfg["TOPIC_URL_TEMPLATE"],
        lease_seconds=cfg["SUBSCRIPTION_LEASE_SECONDS"],
        timeout=cfg["HUB_TIMEOUT_SECONDS"],
    )
    app.logger.info("🔧 Using %s storage and hub %s", backend, cfg["HUB_URL"])
    return Dependencies(store=store, hub_client=hub_client)


def create_test_dependencies(lease_seconds: int = 86400, clock=None) -> Dependencies:
    hub_kwargs = {"lease_seconds": lease_seconds}
    if clock is not None:
        hub_kwargs["clock"] = clock
    return Dependencies(
        store=InMemorySubscriptionStore(),
        hub_client=InMemoryHubClient(**hub_kwargs),
    )

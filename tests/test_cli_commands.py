from datetime import timedelta

from src.cli.commands import list_subscriptions, renew_subscriptions
from src.models.subscription_model import Subscription, SubscriptionState
from src.services.errors import StorageError
from src.services.hub_client import InMemoryHubClient
from src.services.storage_service import InMemorySubscriptionStore
from src.utils.time_utils import utc_now
from tests.conftest import build_app, channel


def seeded_app(hours_by_channel, hub=None):
    store = InMemorySubscriptionStore()
    now = utc_now()
    state = SubscriptionState()
    for channel_id, hours in hours_by_channel.items():
        state.upsert(Subscription(channel_id=channel_id, expires_at=now + timedelta(hours=hours)))
    store.save_state(state)
    return build_app("", store, hub or InMemoryHubClient())


def test_renew_command_reports_summary():
    app = seeded_app({channel(1): 2, channel(2): 48})

    result = app.test_cli_runner().invoke(renew_subscriptions, ["--verbose"])

    assert result.exit_code == 0
    assert "Checked: 2 | Candidates: 1 | Succeeded: 1 | Failed: 0" in result.output
    assert f"✅ {channel(1)} - Renewed" in result.output


def test_renew_command_threshold_option():
    app = seeded_app({channel(1): 2, channel(2): 48})

    result = app.test_cli_runner().invoke(renew_subscriptions, ["--threshold-hours", "72"])

    assert "Candidates: 2" in result.output


def test_renew_command_fails_on_renewal_failure():
    hub = InMemoryHubClient()
    hub.fail_subscribe[channel(1)] = "hub returned status 500"
    app = seeded_app({channel(1): 1}, hub=hub)

    result = app.test_cli_runner().invoke(renew_subscriptions, [])

    assert result.exit_code == 1
    assert f"❌ {channel(1)} - Failed" in result.output


def test_renew_command_nothing_to_do():
    app = seeded_app({channel(1): 100})

    result = app.test_cli_runner().invoke(renew_subscriptions, [])

    assert result.exit_code == 0
    assert "No subscriptions needed renewal." in result.output


def test_list_command():
    app = seeded_app({channel(1): 30, channel(2): -5})

    result = app.test_cli_runner().invoke(list_subscriptions, [])

    assert result.exit_code == 0
    assert channel(1) in result.output
    assert "Total: 2 | Active: 1 | Expired: 1" in result.output


def test_renew_command_storage_failure_exits_cleanly():
    app = seeded_app({channel(1): 2})
    app.extensions["lifecycle_engine"].store.fail_load = "bucket unavailable"

    result = app.test_cli_runner().invoke(renew_subscriptions, [])

    assert result.exit_code == 1
    assert "Renewal scan failed: bucket unavailable" in result.output
    assert not isinstance(result.exception, StorageError)


def test_list_command_storage_failure_exits_cleanly():
    app = seeded_app({channel(1): 2})
    app.extensions["lifecycle_engine"].store.fail_load = "boom"

    result = app.test_cli_runner().invoke(list_subscriptions, [])

    assert result.exit_code == 1
    assert "Unable to load subscription state from storage: boom" in result.output
    assert not isinstance(result.exception, StorageError)

import os
from dotenv import load_dotenv

load_dotenv()


def _int_env(name, default):
    value = os.getenv(name)
    return int(value) if value not in (None, "") else default


def _float_env(name, default):
    value = os.getenv(name)
    return float(value) if value not in (None, "") else default


class BaseConfig:
    FLASK_ENV = os.getenv("FLASK_ENV", "development")
    FLASK_APP = os.getenv("FLASK_APP", "app")
    SECRET_KEY = os.getenv("SECRET_KEY", "your-dev-secret")

    # Persistence: "sql" keeps the state document in a table, "file" in a JSON file
    STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "sql")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///subscriptions.db")
    DATABASE_URL = SQLALCHEMY_DATABASE_URI
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SUBSCRIPTION_STATE_KEY = os.getenv("SUBSCRIPTION_STATE_KEY", "subscriptions/state.json")
    SUBSCRIPTION_STATE_PATH = os.getenv("SUBSCRIPTION_STATE_PATH", "subscriptions/state.json")

    # PubSubHubbub hub
    HUB_URL = os.getenv("HUB_URL", "https://pubsubhubbub.appspot.com/subscribe")
    TOPIC_URL_TEMPLATE = os.getenv(
        "TOPIC_URL_TEMPLATE",
        "https://www.youtube.com/feeds/videos.xml?channel_id={channel_id}"
    )
    HUB_TIMEOUT_SECONDS = _float_env("HUB_TIMEOUT_SECONDS", 30.0)

    # Public URL of this service; the hub sends verification challenges here
    CALLBACK_URL = os.getenv("FUNCTION_URL", "")

    # Lease & renewal
    SUBSCRIPTION_LEASE_SECONDS = _int_env("SUBSCRIPTION_LEASE_SECONDS", 86400)
    RENEWAL_THRESHOLD_HOURS = _float_env("RENEWAL_THRESHOLD_HOURS", 12.0)
    MAX_RENEWAL_ATTEMPTS = _int_env("MAX_RENEWAL_ATTEMPTS", 3)

    # Serving path selection, read once when the app is created
    USE_REFACTORED_ROUTER = os.getenv("USE_REFACTORED_ROUTER", "")

from .config import BaseConfig


class TestingConfig(BaseConfig):
    TESTING = True
    DEBUG = False
    STORAGE_BACKEND = "sql"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    CALLBACK_URL = "https://test-function-url"
    SUBSCRIPTION_LEASE_SECONDS = 86400
    RENEWAL_THRESHOLD_HOURS = 12.0
    MAX_RENEWAL_ATTEMPTS = 3
    USE_REFACTORED_ROUTER = ""

# src/services/errors.py


class SubscriptionError(Exception):
    """Base class for failures surfaced to API callers."""
    status_code = 500

    def __init__(self, message, channel_id=None):
        super().__init__(message)
        self.message = message
        self.channel_id = channel_id


class ValidationError(SubscriptionError):
    """Missing or malformed channel identifier."""
    status_code = 400


class ConflictError(SubscriptionError):
    """An active, unexpired subscription already exists."""
    status_code = 409

    def __init__(self, message, channel_id=None, expires_at=None):
        super().__init__(message, channel_id)
        self.expires_at = expires_at


class NotFoundError(SubscriptionError):
    status_code = 404


class HubError(SubscriptionError):
    """Raised when the hub rejects a request, is unreachable or times out."""
    status_code = 502


class StorageError(SubscriptionError):
    """Raised when the subscription state cannot be loaded or saved."""
    status_code = 500

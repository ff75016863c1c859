import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from src.models import db
from src.models.state_record_model import SubscriptionStateRecord
from src.models.subscription_model import SubscriptionState
from src.services.errors import StorageError
from src.utils.time_utils import utc_now

DEFAULT_STATE_KEY = "subscriptions/state.json"


class SubscriptionStore(ABC):
    """
    Loads and saves the whole SubscriptionState as one unit.

    There are no per-key reads or writes: callers serialize their own
    load/mutate/save cycles.
    """

    @abstractmethod
    def load_state(self) -> SubscriptionState:
        """Return the persisted state, or an empty one if nothing was saved yet."""

    @abstractmethod
    def save_state(self, state: SubscriptionState) -> None:
        ...

    def close(self) -> None:
        pass


def _stamp(state: SubscriptionState) -> dict:
    state.last_updated = utc_now()
    return state.to_dict()


class SqlSubscriptionStore(SubscriptionStore):
    """Keeps the state document as a single JSON row via Flask-SQLAlchemy."""

    def __init__(self, app, key=DEFAULT_STATE_KEY):
        self.app = app
        self.key = key

    def load_state(self) -> SubscriptionState:
        with self.app.app_context():
            try:
                record = db.session.get(SubscriptionStateRecord, self.key)
            except SQLAlchemyError as e:
                self.app.logger.error("❌ Failed to load subscription state: %s", e)
                raise StorageError(f"Failed to load subscription state: {e}") from e

            if record is None:
                self.app.logger.debug("No stored subscription state for %s; starting empty", self.key)
                return SubscriptionState()

            try:
                return SubscriptionState.from_dict(json.loads(record.payload))
            except (ValueError, KeyError, TypeError) as e:
                raise StorageError(f"Failed to parse subscription state: {e}") from e

    def save_state(self, state: SubscriptionState) -> None:
        payload = json.dumps(_stamp(state), indent=2)
        with self.app.app_context():
            try:
                record = db.session.get(SubscriptionStateRecord, self.key)
                if record is None:
                    record = SubscriptionStateRecord(key=self.key, payload=payload)
                    db.session.add(record)
                else:
                    record.payload = payload
                db.session.commit()
            except SQLAlchemyError as e:
                db.session.rollback()
                self.app.logger.error("❌ Failed to save subscription state: %s", e)
                raise StorageError(f"Failed to save subscription state: {e}") from e
        self.app.logger.debug("💾 Saved %d subscriptions to %s", len(state), self.key)


class FileSubscriptionStore(SubscriptionStore):
    """JSON document on disk, replaced atomically on every save."""

    def __init__(self, path):
        self.path = path

    def load_state(self) -> SubscriptionState:
        if not os.path.exists(self.path):
            return SubscriptionState()
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                return SubscriptionState.from_dict(json.load(fh))
        except OSError as e:
            raise StorageError(f"Failed to read state file: {e}") from e
        except (ValueError, KeyError, TypeError) as e:
            raise StorageError(f"Failed to parse state JSON: {e}") from e

    def save_state(self, state: SubscriptionState) -> None:
        data = _stamp(state)
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=directory, prefix=".state-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh, indent=2)
                os.replace(tmp, self.path)
            except BaseException:
                if os.path.exists(tmp):
                    os.remove(tmp)
                raise
        except OSError as e:
            current_app.logger.error("❌ Failed to write state file %s: %s", self.path, e)
            raise StorageError(f"Failed to write state data: {e}") from e


class InMemorySubscriptionStore(SubscriptionStore):
    """
    Process-local store for tests and local runs.

    Loads and saves hand out copies, so a caller mutating its state never
    changes what is stored until it saves.
    """

    def __init__(self, state=None):
        self._state = state.copy() if state else SubscriptionState()
        self._mutex = threading.Lock()
        self.load_calls = 0
        self.save_calls = 0
        self.fail_load = None
        self.fail_save = None

    def load_state(self) -> SubscriptionState:
        with self._mutex:
            self.load_calls += 1
            if self.fail_load:
                raise StorageError(self.fail_load)
            return self._state.copy()

    def save_state(self, state: SubscriptionState) -> None:
        with self._mutex:
            self.save_calls += 1
            if self.fail_save:
                raise StorageError(self.fail_save)
            state.last_updated = utc_now()
            self._state = state.copy()

    @property
    def state(self) -> SubscriptionState:
        with self._mutex:
            return self._state.copy()

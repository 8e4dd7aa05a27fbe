"""Lock/unlock intents with optimistic state and transient notifications."""
from __future__ import annotations

import datetime as _dt
import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, List, Optional

from services.device_client import LOCK_PATH, UNLOCK_PATH, NetworkError

_logger = logging.getLogger(__name__)

DEFAULT_HISTORY = 20


def _utcnow() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


@dataclass
class LockState:
    locked: bool = True


@dataclass(frozen=True)
class Notification:
    message: str
    level: str = "info"
    created_at: _dt.datetime = field(default_factory=_utcnow)

    @property
    def is_error(self) -> bool:
        return self.level == "error"


class LockController:
    """Presentation-side contract: two intents in, lock flag and messages out.

    The ``locked`` flag changes as soon as the user acts, before the device
    has answered. With ``reconcile_on_failure`` a failed command puts the
    previous value back, unless the user acted again in the meantime.
    """

    def __init__(
        self,
        client,
        *,
        notify: Optional[Callable[[Notification], None]] = None,
        feedback: Optional[Callable[[bool], None]] = None,
        reconcile_on_failure: bool = False,
        history: int = DEFAULT_HISTORY,
    ) -> None:
        self.client = client
        self.reconcile_on_failure = reconcile_on_failure
        self._notify = notify
        self._feedback = feedback
        self._state = LockState()
        self._generation = 0
        self._closed = False
        self._lock = threading.Lock()
        self._notifications: Deque[Notification] = deque(maxlen=max(1, history))

    # ------------------------------------------------------------------
    # Public API
    @property
    def locked(self) -> bool:
        with self._lock:
            return self._state.locked

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def on_lock(self) -> threading.Thread:
        return self._act(True, LOCK_PATH)

    def on_unlock(self) -> threading.Thread:
        return self._act(False, UNLOCK_PATH)

    def notifications(self, limit: Optional[int] = None) -> List[Notification]:
        with self._lock:
            items = list(self._notifications)
        if limit is not None:
            items = items[-limit:] if limit > 0 else []
        return items

    def close(self) -> None:
        """Detach from the screen; results of in-flight commands are dropped."""

        with self._lock:
            self._closed = True

    # ------------------------------------------------------------------
    # Internal helpers
    def _act(self, locked: bool, path: str) -> threading.Thread:
        with self._lock:
            previous = self._state.locked
            self._state.locked = locked
            self._generation += 1
            generation = self._generation

        if self._feedback is not None:
            try:
                self._feedback(locked)
            except Exception:
                _logger.exception("Lock feedback hook failed")

        thread = threading.Thread(
            target=self._dispatch,
            args=(path, previous, generation),
            name=f"command{path.replace('/', '-')}",
            daemon=True,
        )
        thread.start()
        return thread

    def _dispatch(self, path: str, previous: bool, generation: int) -> None:
        try:
            self.client.send_command(path)
        except NetworkError as exc:
            self._finish(Notification(f"Error: {exc}", level="error"), previous, generation)
        else:
            self._finish(Notification(f"Command sent: {path}"), None, generation)

    def _finish(self, notification: Notification, revert_to: Optional[bool], generation: int) -> None:
        with self._lock:
            if self._closed:
                _logger.debug("Discarding result after close: %s", notification.message)
                return
            if (
                notification.is_error
                and self.reconcile_on_failure
                and revert_to is not None
                and generation == self._generation
            ):
                self._state.locked = revert_to
                _logger.info("Reverted lock state to %s after failed command", revert_to)
            self._notifications.append(notification)

        if self._notify is not None:
            try:
                self._notify(notification)
            except Exception:
                _logger.exception("Notification callback failed")

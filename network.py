# network.py

import datetime
import enum
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from config import HEALTH_CHECK_INTERVAL

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectivityState:
    reachable: bool = False
    last_checked_at: Optional[datetime.datetime] = None


class MonitorPhase(enum.Enum):
    STOPPED = "stopped"
    CHECKING = "checking"
    IDLE = "idle"


Listener = Callable[[ConnectivityState], None]


class ConnectivityMonitor:
    """
    Background thread that keeps a fresh "device reachable" flag.

    Each tick runs one health probe, publishes the result, then idles for the
    rest of the interval. Probes never overlap. Only stop() ends the loop.
    """
    def __init__(self, client, interval=HEALTH_CHECK_INTERVAL, clock=time.monotonic):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.client    = client
        self.interval  = interval
        self._clock    = clock
        self._state    = ConnectivityState()
        self._phase    = MonitorPhase.STOPPED
        self._lock     = threading.Lock()
        self._lifecycle = threading.Lock()
        self._stopped  = threading.Event()
        self._stopped.set()
        self._thread: Optional[threading.Thread] = None
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------
    # Lifecycle
    def start(self):
        """Start polling. Waits for a previously stopped loop to exit first."""
        with self._lifecycle:
            previous = self._thread
            if previous is not None and previous.is_alive():
                if not self._stopped.is_set():
                    return
                if previous is not threading.current_thread():
                    previous.join()

            # Each loop owns its event, so an old loop never sees a restart.
            stopped = threading.Event()
            thread = threading.Thread(
                target=self._loop, args=(stopped,), name="connectivity-monitor", daemon=True
            )
            with self._lock:
                self._stopped = stopped
                self._thread = thread
                self._phase = MonitorPhase.IDLE
            _logger.info("🔌 Starting device connectivity monitor…")
            thread.start()

    def stop(self, timeout=None):
        """Cancel the loop. A probe already in flight finishes but is ignored."""
        with self._lifecycle:
            with self._lock:
                self._stopped.set()
                thread = self._thread
                self._phase = MonitorPhase.STOPPED
            if thread is not None and thread is not threading.current_thread():
                thread.join(timeout)
                if thread.is_alive():
                    _logger.info("🔌 Connectivity monitor stopping after current probe.")
                else:
                    _logger.info("🔌 Connectivity monitor stopped.")

    @property
    def running(self):
        with self._lock:
            return not self._stopped.is_set()

    # ------------------------------------------------------------------
    # State
    @property
    def state(self) -> ConnectivityState:
        with self._lock:
            return self._state

    @property
    def reachable(self) -> bool:
        return self.state.reachable

    @property
    def phase(self) -> MonitorPhase:
        with self._lock:
            return self._phase

    def add_listener(self, listener: Listener):
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener):
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Probing
    def check_once(self) -> ConnectivityState:
        """Run a single probe right now and publish its result."""
        state = self._probe()
        self._publish(state)
        return state

    def _probe(self):
        try:
            reachable = bool(self.client.check_health())
        except Exception:
            _logger.exception("Health probe raised")
            reachable = False
        return ConnectivityState(
            reachable=reachable,
            last_checked_at=datetime.datetime.now(datetime.timezone.utc),
        )

    def _publish(self, state):
        with self._lock:
            previous = self._state
            self._state = state
            listeners = list(self._listeners)

        if previous.last_checked_at is None or previous.reachable != state.reachable:
            if state.reachable:
                _logger.info("✅ Device reachable.")
            else:
                _logger.warning("❌ Device unreachable.")

        for listener in listeners:
            try:
                listener(state)
            except Exception:
                _logger.exception("Connectivity listener %r failed", listener)

    def _set_phase(self, phase, stopped):
        with self._lock:
            if not stopped.is_set():
                self._phase = phase

    def _loop(self, stopped):
        while not stopped.is_set():
            started = self._clock()
            self._set_phase(MonitorPhase.CHECKING, stopped)
            state = self._probe()
            if stopped.is_set():
                break
            self._publish(state)

            self._set_phase(MonitorPhase.IDLE, stopped)
            elapsed = self._clock() - started
            if stopped.wait(max(0.0, self.interval - elapsed)):
                break

import threading
import time

import pytest

from network import ConnectivityMonitor, ConnectivityState, MonitorPhase


class FakeClient:
    def __init__(self, results=None, gate=None):
        self.results = list(results or [True])
        self.gate = gate
        self.calls = []
        self.entered = threading.Event()
        self._lock = threading.Lock()

    def check_health(self):
        with self._lock:
            self.calls.append(time.monotonic())
            index = len(self.calls) - 1
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(5)
        return self.results[min(index, len(self.results) - 1)]


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_initial_state_is_unreachable_and_unchecked():
    monitor = ConnectivityMonitor(FakeClient(), interval=1)
    assert monitor.state == ConnectivityState(reachable=False, last_checked_at=None)
    assert monitor.phase is MonitorPhase.STOPPED
    assert not monitor.running


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        ConnectivityMonitor(FakeClient(), interval=0)


def test_check_once_publishes_latest_result():
    client = FakeClient([True, False])
    monitor = ConnectivityMonitor(client, interval=1)
    seen = []
    monitor.add_listener(seen.append)

    first = monitor.check_once()
    second = monitor.check_once()

    assert first.reachable is True
    assert second.reachable is False
    assert monitor.reachable is False
    assert monitor.state is second
    assert second.last_checked_at is not None
    assert second.last_checked_at.tzinfo is not None
    assert [state.reachable for state in seen] == [True, False]


def test_failing_listener_does_not_block_others():
    monitor = ConnectivityMonitor(FakeClient([True]), interval=1)
    seen = []

    def broken(state):
        raise RuntimeError("boom")

    monitor.add_listener(broken)
    monitor.add_listener(seen.append)
    monitor.check_once()
    assert len(seen) == 1

    monitor.remove_listener(seen.append)
    monitor.check_once()
    assert len(seen) == 1


def test_probe_exception_counts_as_unreachable():
    class ExplodingClient:
        def check_health(self):
            raise RuntimeError("probe crashed")

    monitor = ConnectivityMonitor(ExplodingClient(), interval=1)
    assert monitor.check_once().reachable is False


def test_loop_polls_until_stopped():
    client = FakeClient([False, True, True])
    monitor = ConnectivityMonitor(client, interval=0.02)
    monitor.start()
    try:
        assert wait_for(lambda: len(client.calls) >= 3)
        assert monitor.running
    finally:
        monitor.stop()

    assert monitor.phase is MonitorPhase.STOPPED
    assert monitor.reachable is True
    probes = len(client.calls)
    time.sleep(0.1)
    assert len(client.calls) == probes


def test_probes_are_spaced_by_interval():
    client = FakeClient([True])
    interval = 0.1
    monitor = ConnectivityMonitor(client, interval=interval)
    monitor.start()
    try:
        assert wait_for(lambda: len(client.calls) >= 3)
    finally:
        monitor.stop()

    gaps = [later - earlier for earlier, later in zip(client.calls, client.calls[1:])]
    assert all(gap >= interval * 0.9 for gap in gaps)


def test_start_is_idempotent_while_running():
    client = FakeClient([True])
    monitor = ConnectivityMonitor(client, interval=5)
    monitor.start()
    try:
        assert wait_for(lambda: len(client.calls) == 1)
        monitor.start()
        time.sleep(0.05)
        assert len(client.calls) == 1
    finally:
        monitor.stop()


def test_stop_during_probe_discards_result_and_starts_no_new_probe():
    gate = threading.Event()
    client = FakeClient([True], gate=gate)
    monitor = ConnectivityMonitor(client, interval=0.01)
    monitor.start()
    assert client.entered.wait(2)
    thread = monitor._thread

    monitor.stop(timeout=0.01)
    gate.set()
    thread.join(2)

    assert not thread.is_alive()
    assert len(client.calls) == 1
    assert monitor.state.last_checked_at is None
    assert monitor.phase is MonitorPhase.STOPPED


def test_monitor_can_be_restarted():
    client = FakeClient([True])
    monitor = ConnectivityMonitor(client, interval=5)
    monitor.start()
    assert wait_for(lambda: len(client.calls) == 1)
    monitor.stop()

    monitor.start()
    try:
        assert wait_for(lambda: len(client.calls) == 2)
    finally:
        monitor.stop()


def test_restart_after_timed_out_stop_keeps_a_single_loop():
    gate = threading.Event()
    client = FakeClient([True], gate=gate)
    interval = 0.2
    monitor = ConnectivityMonitor(client, interval=interval)
    monitor.start()
    assert client.entered.wait(2)
    old_thread = monitor._thread

    monitor.stop(timeout=0.01)
    assert old_thread.is_alive()

    restarter = threading.Thread(target=monitor.start)
    restarter.start()
    gate.set()
    restarter.join(2)
    try:
        assert not restarter.is_alive()
        assert not old_thread.is_alive()
        assert wait_for(lambda: len(client.calls) >= 4)
        loops = [t for t in threading.enumerate() if t.name == "connectivity-monitor"]
        assert loops == [monitor._thread]
    finally:
        monitor.stop()

    # The first, abandoned probe is excluded; every restarted probe is paced.
    restarted = client.calls[1:]
    gaps = [later - earlier for earlier, later in zip(restarted, restarted[1:])]
    assert all(gap >= interval * 0.9 for gap in gaps)

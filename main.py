#!/usr/bin/env python3
"""
Car lock control service.

Starts the device connectivity monitor, serves the single-screen control
panel, and stops the monitor again when the panel shuts down.
"""
import logging
import signal
import sys

from config import (
    COMMAND_TIMEOUT,
    DEVICE_ADDRESS,
    HEALTH_CHECK_INTERVAL,
    HEALTH_TIMEOUT,
    NOTIFICATION_HISTORY,
    PANEL_DEBUG,
    PANEL_HOST,
    PANEL_PORT,
    RECONCILE_ON_FAILURE,
)
from control_panel import create_app
from lock_control import LockController
from network import ConnectivityMonitor
from services.device_client import DeviceClient
from services.http_client import get_session


def _configure_logging():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-8s %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _log_feedback(locked):
    logging.info("🔒 Locked." if locked else "🔓 Unlocked.")


def build_components():
    client = DeviceClient(
        DEVICE_ADDRESS,
        command_timeout=COMMAND_TIMEOUT,
        health_timeout=HEALTH_TIMEOUT,
        session=get_session(),
    )
    monitor = ConnectivityMonitor(client, interval=HEALTH_CHECK_INTERVAL)
    controller = LockController(
        client,
        feedback=_log_feedback,
        reconcile_on_failure=RECONCILE_ON_FAILURE,
        history=NOTIFICATION_HISTORY,
    )
    return client, monitor, controller


def main():
    _configure_logging()
    logging.info("🚗 Starting car lock control for %s…", DEVICE_ADDRESS)

    _client, monitor, controller = build_components()
    app = create_app(controller, monitor)

    def _handle_sigterm(signum, frame):
        logging.info("Received signal %s; shutting down.", signum)
        sys.exit(0)

    signal.signal(signal.SIGTERM, _handle_sigterm)

    monitor.start()
    try:
        if PANEL_DEBUG:
            app.run(host=PANEL_HOST, port=PANEL_PORT, debug=True, use_reloader=False)
        else:
            from waitress import serve

            serve(app, host=PANEL_HOST, port=PANEL_PORT)
    except KeyboardInterrupt:
        pass
    finally:
        controller.close()
        monitor.stop()
        logging.info("👋 Car lock control stopped.")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

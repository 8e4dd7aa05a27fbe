"""Single-screen web control panel for the car lock."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, redirect, render_template, url_for

from config import DISPLAY_TIMEZONE, NOTIFICATION_HISTORY, TEMPLATES_DIR
from lock_control import LockController, Notification
from network import ConnectivityMonitor

_logger = logging.getLogger(__name__)


@dataclass
class PanelStatus:
    locked: bool
    reachable: bool
    last_checked_at: Optional[str]
    notifications: List[Dict[str, Any]]


def _format_timestamp(value) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(DISPLAY_TIMEZONE).isoformat(timespec="seconds")


def _serialise_notification(item: Notification) -> Dict[str, Any]:
    return {
        "message": item.message,
        "level": item.level,
        "created_at": _format_timestamp(item.created_at),
    }


def _collect_status(controller: LockController, monitor: ConnectivityMonitor) -> PanelStatus:
    connectivity = monitor.state
    return PanelStatus(
        locked=controller.locked,
        reachable=connectivity.reachable,
        last_checked_at=_format_timestamp(connectivity.last_checked_at),
        notifications=[
            _serialise_notification(item)
            for item in controller.notifications(NOTIFICATION_HISTORY)
        ],
    )


def create_app(controller: LockController, monitor: ConnectivityMonitor) -> Flask:
    app = Flask(__name__, template_folder=TEMPLATES_DIR)

    @app.route("/")
    def index() -> str:
        status = _collect_status(controller, monitor)
        return render_template("control.html", status=status)

    @app.route("/api/status")
    def api_status():
        return jsonify(status="ok", **_collect_status(controller, monitor).__dict__)

    @app.route("/api/lock", methods=["POST"])
    def api_lock():
        _logger.info("🔒 Lock requested")
        controller.on_lock()
        return jsonify(status="accepted", locked=controller.locked), 202

    @app.route("/api/unlock", methods=["POST"])
    def api_unlock():
        _logger.info("🔓 Unlock requested")
        controller.on_unlock()
        return jsonify(status="accepted", locked=controller.locked), 202

    @app.route("/lock", methods=["POST"])
    def form_lock():
        controller.on_lock()
        return redirect(url_for("index"))

    @app.route("/unlock", methods=["POST"])
    def form_unlock():
        controller.on_unlock()
        return redirect(url_for("index"))

    return app

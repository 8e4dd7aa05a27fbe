# config.py

#!/usr/bin/env python3
import logging
import os

import pytz

# ─── Project paths ────────────────────────────────────────────────────────────
SCRIPT_DIR    = os.path.dirname(os.path.abspath(__file__))
TEMPLATES_DIR = os.path.join(SCRIPT_DIR, "templates")


def _env_float(name, default):
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logging.warning(f"Ignoring {name}={raw!r}; using {default}")
        return default
    if value <= 0:
        logging.warning(f"Ignoring non-positive {name}={raw!r}; using {default}")
        return default
    return value


def _env_int(name, default):
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return max(1, int(raw))
    except ValueError:
        logging.warning(f"Ignoring {name}={raw!r}; using {default}")
        return default


def _env_flag(name, default=False):
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_timezone(name, default):
    zone = os.environ.get(name, "").strip() or default
    try:
        return pytz.timezone(zone)
    except pytz.UnknownTimeZoneError:
        logging.warning(f"Unknown time zone {zone!r}; using {default}")
        return pytz.timezone(default)


# ─── Device ───────────────────────────────────────────────────────────────────
# The lock controller runs its own WiFi access point and answers on a fixed
# address inside it.
DEVICE_ADDRESS        = os.environ.get("CARLOCK_DEVICE_ADDRESS", "").strip() or "192.168.1.1"

COMMAND_TIMEOUT       = _env_float("CARLOCK_COMMAND_TIMEOUT", 3.0)
HEALTH_TIMEOUT        = _env_float("CARLOCK_HEALTH_TIMEOUT", 1.5)
HEALTH_CHECK_INTERVAL = _env_float("CARLOCK_HEALTH_CHECK_INTERVAL", 5.0)

# ─── Lock control ─────────────────────────────────────────────────────────────
RECONCILE_ON_FAILURE  = _env_flag("CARLOCK_RECONCILE_ON_FAILURE")
NOTIFICATION_HISTORY  = _env_int("CARLOCK_NOTIFICATION_HISTORY", 20)

# ─── Control panel ────────────────────────────────────────────────────────────
PANEL_HOST            = os.environ.get("CARLOCK_HOST", "0.0.0.0")
PANEL_PORT            = _env_int("CARLOCK_PORT", 5001)
PANEL_DEBUG           = _env_flag("CARLOCK_DEBUG") or _env_flag("FLASK_DEBUG")

DISPLAY_TIMEZONE      = _env_timezone("CARLOCK_TIMEZONE", "UTC")

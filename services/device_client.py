"""HTTP client for the embedded lock controller."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from services.http_client import get_session

LOCK_PATH = "/lock"
UNLOCK_PATH = "/unlock"
SENSOR_PATH = "/sensor"

DEFAULT_ADDRESS = "192.168.1.1"
DEFAULT_COMMAND_TIMEOUT = 3.0
DEFAULT_HEALTH_TIMEOUT = 1.5

_logger = logging.getLogger(__name__)


class NetworkError(RuntimeError):
    """A command could not be delivered to the device."""


def _describe(exc: BaseException) -> str:
    message = str(exc).strip()
    return message or exc.__class__.__name__


class DeviceClient:
    """Send commands to the device and probe whether it is reachable.

    The client holds no state besides its configuration: every call is a
    single GET request with no retries.
    """

    def __init__(
        self,
        device_address: str = DEFAULT_ADDRESS,
        *,
        command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
        health_timeout: float = DEFAULT_HEALTH_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        address = device_address.strip()
        if not address:
            raise ValueError("device_address must not be empty")
        if "://" not in address:
            address = f"http://{address}"
        self.base_url = address.rstrip("/")
        self.command_timeout = command_timeout
        self.health_timeout = health_timeout
        self.session = session or get_session()

    def url_for(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return self.base_url + path

    def send_command(self, path: str) -> None:
        """Issue ``GET <device><path>``; raise :class:`NetworkError` on failure.

        Any response counts as delivered, whatever its status code.
        """

        url = self.url_for(path)
        try:
            response = self.session.get(url, timeout=self.command_timeout)
            try:
                response.content  # drain the body so the connection is released
            finally:
                response.close()
        except Exception as exc:
            _logger.warning("Command %s failed: %s", path, exc)
            raise NetworkError(_describe(exc)) from exc
        _logger.info("Command %s delivered (HTTP %s)", path, response.status_code)

    def lock(self) -> None:
        self.send_command(LOCK_PATH)

    def unlock(self) -> None:
        self.send_command(UNLOCK_PATH)

    def check_health(self) -> bool:
        """Return ``True`` only when the sensor endpoint answers HTTP 200."""

        url = self.url_for(SENSOR_PATH)
        try:
            response = self.session.get(url, timeout=self.health_timeout)
            try:
                return response.status_code == 200
            finally:
                response.close()
        except Exception as exc:
            _logger.debug("Health probe %s failed: %s", url, exc)
            return False

"""Shared HTTP session for talking to the lock controller."""

from __future__ import annotations

import os
from typing import Dict

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

DEFAULT_HEADERS: Dict[str, str] = {
    "User-Agent": "carlock-control/0.1",
    "Accept": "*/*",
}

# A failed request is reported to the caller once; nothing is retried.
_RETRY = Retry(
    total=0,
    connect=0,
    read=0,
    redirect=0,
    status=0,
    raise_on_status=False,
    raise_on_redirect=False,
)

_USE_SYSTEM_PROXIES = (
    os.environ.get("HTTP_CLIENT_USE_SYSTEM_PROXIES", "").strip().lower()
    in {"1", "true", "yes", "on"}
)


def build_session() -> requests.Session:
    """Return a new session without retries or (by default) proxy lookups."""

    session = requests.Session()
    session.trust_env = _USE_SYSTEM_PROXIES
    session.headers.update(DEFAULT_HEADERS)
    adapter = HTTPAdapter(max_retries=_RETRY)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


_SESSION = build_session()


def get_session() -> requests.Session:
    """Return the shared HTTP session."""

    return _SESSION

"""Pooled HTTP session shared by routing clients."""

from __future__ import annotations

import logging

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import (
    HTTP_POOL_CONNECTIONS,
    HTTP_POOL_MAXSIZE,
    ROUTING_BACKOFF_FACTOR,
    ROUTING_MAX_RETRIES,
    ROUTING_USER_AGENT,
)

__all__ = ["create_default_session", "get_default_session", "reset_default_session"]

LOGGER = logging.getLogger(__name__)

# Busy or rate-limited answers worth another attempt; 4xx route errors are not.
RETRY_STATUSES = (429, 500, 502, 503, 504)


def _routing_retry(max_retries: int) -> Retry:
    # Exhausted retries hand back the last response so the client can
    # report the status instead of a urllib3 MaxRetryError.
    return Retry(
        total=max_retries,
        connect=max_retries,
        read=max_retries,
        backoff_factor=ROUTING_BACKOFF_FACTOR,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=frozenset({"GET"}),
        respect_retry_after_header=True,
        raise_on_status=False,
    )


def create_default_session(
    *,
    user_agent: str = ROUTING_USER_AGENT,
    max_retries: int = ROUTING_MAX_RETRIES,
) -> requests.Session:
    """Build a session that only speaks JSON to the routing service."""

    adapter = HTTPAdapter(
        pool_connections=HTTP_POOL_CONNECTIONS,
        pool_maxsize=HTTP_POOL_MAXSIZE,
        max_retries=_routing_retry(max(0, max_retries)),
    )
    session = requests.Session()
    for prefix in ("https://", "http://"):
        session.mount(prefix, adapter)
    session.headers.update(
        {
            "User-Agent": user_agent,
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
        }
    )
    return session


_shared_session: requests.Session | None = None


def get_default_session() -> requests.Session:
    """Return the shared routing session, creating it on first use."""

    global _shared_session
    if _shared_session is None:
        LOGGER.debug("Creating shared routing session")
        _shared_session = create_default_session()
    return _shared_session


def reset_default_session() -> None:
    """Close the shared session; the next call to get_default_session rebuilds it."""

    global _shared_session
    if _shared_session is not None:
        _shared_session.close()
        _shared_session = None

"""Pooled async HTTP client shared by the GitHub requests of one event loop."""

import asyncio

import httpx

from gh_projects_analyzer import __version__
from gh_projects_analyzer.config import get_verify_ssl

REQUEST_TIMEOUT = 30.0

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": f"gh-projects-analyzer/{__version__}",
}

_client: httpx.AsyncClient | None = None
_client_verify_ssl: bool | None = None
_client_loop: asyncio.AbstractEventLoop | None = None


async def _get_async_http_client() -> httpx.AsyncClient:
    """Return the client for the running event loop, creating it on first use.

    Connection pools are bound to the loop that opened them, so a client
    left over from an earlier `asyncio.run()` is dropped, never reused. A
    client built under a different SSL setting (see --insecure) is closed
    and replaced.
    """
    global _client, _client_verify_ssl, _client_loop
    verify_ssl = get_verify_ssl()
    loop = asyncio.get_running_loop()

    if _client is not None and not _client.is_closed and _client_loop is loop:
        if _client_verify_ssl == verify_ssl:
            return _client
        await _client.aclose()

    _client = httpx.AsyncClient(
        verify=verify_ssl,
        timeout=REQUEST_TIMEOUT,
        headers=DEFAULT_HEADERS,
        limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
    )
    _client_verify_ssl = verify_ssl
    _client_loop = loop
    return _client


async def close_async_http_client() -> None:
    """Close the shared client; the next request opens a fresh one."""
    global _client, _client_verify_ssl, _client_loop
    if (
        _client is not None
        and not _client.is_closed
        and _client_loop is asyncio.get_running_loop()
    ):
        await _client.aclose()
    _client = None
    _client_verify_ssl = None
    _client_loop = None

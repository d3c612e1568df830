"""Low-level HTTP client wrapper for the ArubaOS-Switch REST API."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Any
from urllib.parse import urlsplit

import requests

from arc_poe.client.errors import (
    ArcConfigError,
    ArcRequestError,
    ArcResponseError,
)

logger = logging.getLogger(__name__)

try:
    _VERSION: str = importlib.metadata.version("arc-poe")
except importlib.metadata.PackageNotFoundError:
    _VERSION = "0.0.0"

_USER_AGENT: str = f"arc-poe/{_VERSION}"


def _normalise_base_url(url: str) -> str:
    """Ensure the URL has a scheme and no trailing slash.

    Raises:
        ArcConfigError: If the URL uses a non-HTTP scheme, has no host, or
            carries an invalid port.
    """
    url = url.strip()
    if "://" in url:
        scheme = url.split("://", 1)[0].lower()
        if scheme not in ("http", "https"):
            raise ArcConfigError(f"Unsupported URL scheme {scheme!r} in {url!r}")
    else:
        url = "http://" + url
    url = url.rstrip("/")
    try:
        parts = urlsplit(url)
        parts.port  # noqa: B018 -- raises ValueError for a bad port
    except ValueError as exc:
        raise ArcConfigError(f"Could not parse url {url!r}: {exc}") from exc
    if not parts.hostname:
        raise ArcConfigError(f"Could not parse url {url!r}: missing host")
    return url


class ArcHTTP:
    """Low-level HTTP wrapper around :class:`requests.Session`.

    Handles cookie persistence, a default ``User-Agent`` header, timeout,
    TLS verification, JSON bodies, and maps transport/HTTP errors to
    :mod:`.errors` types.

    Args:
        base_url: Switch base URL, e.g. ``https://192.168.1.1``.
        timeout_s: Request timeout in seconds (default 30).
        verify_tls: Whether to verify TLS certificates (default True).

    Raises:
        ArcConfigError: If *base_url* is malformed.
    """

    def __init__(
        self,
        base_url: str,
        timeout_s: float = 30.0,
        verify_tls: bool = True,
    ) -> None:
        self.base_url: str = _normalise_base_url(base_url)
        self.timeout_s: float = timeout_s
        self.verify_tls: bool = verify_tls
        self._session: requests.Session = requests.Session()
        self._session.headers.update(
            {"User-Agent": _USER_AGENT, "Accept": "application/json"}
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, path: str) -> requests.Response:
        """Send an HTTP GET to *path* and return the response.

        Raises:
            ArcRequestError: On any transport-level failure.
            ArcResponseError: On a non-2xx HTTP status code.
        """
        return self._send("GET", path)

    def post_json(self, path: str, payload: Any) -> requests.Response:
        """Send an HTTP POST with a JSON-encoded *payload* to *path*.

        Raises:
            ArcRequestError: On any transport-level failure.
            ArcResponseError: On a non-2xx HTTP status code.
        """
        return self._send("POST", path, payload)

    def put_json(self, path: str, payload: Any) -> requests.Response:
        """Send an HTTP PUT with a JSON-encoded *payload* to *path*.

        Raises:
            ArcRequestError: On any transport-level failure.
            ArcResponseError: On a non-2xx HTTP status code.
        """
        return self._send("PUT", path, payload)

    def set_cookie(self, cookie: str) -> None:
        """Install a ``name=value`` session cookie in the cookie jar.

        Cookie attributes after the first ``;`` are ignored.  A bare value
        without ``=`` is stored under the API's ``sessionId`` name.
        """
        pair = cookie.split(";", 1)[0].strip()
        name, sep, value = pair.partition("=")
        if not sep:
            name, value = "sessionId", pair
        self._session.cookies.set(name.strip(), value.strip())

    def close(self) -> None:
        """Close the underlying :class:`requests.Session`."""
        self._session.close()

    def __enter__(self) -> ArcHTTP:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _send(self, method: str, path: str, payload: Any = None) -> requests.Response:
        url = self.base_url + path
        logger.debug("%s %s", method, url)
        try:
            resp = self._session.request(
                method,
                url,
                json=payload,
                timeout=self.timeout_s,
                verify=self.verify_tls,
            )
        except requests.exceptions.RequestException as exc:
            raise ArcRequestError(url, exc) from exc
        self._raise_for_status(resp)
        return resp

    @staticmethod
    def _raise_for_status(resp: requests.Response) -> None:
        if not resp.ok:
            raise ArcResponseError(resp.status_code, resp.url)

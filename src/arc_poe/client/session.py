"""Authenticated HTTP session for ArubaOS-Switch REST API."""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from arc_poe.client.errors import (
    STATUS_SESSION_EXPIRED,
    ArcAuthError,
    ArcConfigError,
    ArcError,
    ArcParseError,
    ArcResponseError,
    ArcSessionExpired,
    ArcTransportError,
    ArcUnexpectedError,
)
from arc_poe.client.http import ArcHTTP
from arc_poe.vendor.aruba.endpoints import LOGIN_SESSIONS, port_poe_path

if TYPE_CHECKING:
    from arc_poe.model.state import PersistedState
    from arc_poe.store import StateStore

logger = logging.getLogger(__name__)

# Port fetched by the session probe.  Port "1" exists on every model and is a
# well-formed id, so a 400 on it cannot be a genuine bad request.
PROBE_PORT_ID: str = "1"


@dataclass(frozen=True)
class ArcCredentials:
    """Immutable credential pair for an ArubaOS switch.

    Args:
        username: Login username.
        password: Login password.
    """

    username: str
    password: str

    def __repr__(self) -> str:
        return f"ArcCredentials(username={self.username!r}, password='***')"

    def to_login_body(self) -> dict[str, str]:
        """Return the JSON body expected by ``login-sessions``."""
        return {"userName": self.username, "password": self.password}


class SessionState(enum.Enum):
    """Outcome of a session probe."""

    VALID = "valid"
    EXPIRED = "expired"
    OTHER_ERROR = "other_error"


@dataclass(frozen=True)
class ProbeResult:
    """Tagged result of :meth:`ArcSession.probe`.

    Attributes:
        state: Classification of the probe outcome.
        error: The failure for ``EXPIRED`` / ``OTHER_ERROR``, else ``None``.
    """

    state: SessionState
    error: ArcError | None = None


class ArcSession:
    """A base URL bound to a cookie-authenticated HTTP handle.

    Sessions are created by :meth:`authenticate` (fresh login) or
    :meth:`restore` (from a persisted cookie).  A session is never mutated
    after construction; concurrent workers use :meth:`clone`.

    Args:
        base_url: Switch base URL, e.g. ``https://192.168.1.1``.
        cookie: Session cookie as returned by the login endpoint.
        timeout_s: Request timeout in seconds (default 30).
        verify_tls: Whether to verify TLS certificates (default True).

    Raises:
        ArcConfigError: If *base_url* is malformed.
    """

    def __init__(
        self,
        base_url: str,
        cookie: str,
        timeout_s: float = 30.0,
        verify_tls: bool = True,
    ) -> None:
        self._http: ArcHTTP = ArcHTTP(
            base_url=base_url,
            timeout_s=timeout_s,
            verify_tls=verify_tls,
        )
        self._http.set_cookie(cookie)
        self._cookie: str = cookie

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def authenticate(
        cls,
        base_url: str,
        credentials: ArcCredentials,
        timeout_s: float = 30.0,
        verify_tls: bool = True,
    ) -> tuple[ArcSession, str]:
        """Log in and return a bound session plus the raw cookie to persist.

        Raises:
            ArcConfigError: If *base_url* is malformed.
            ArcAuthError: If the switch rejects the credentials, is
                unreachable, or answers without a cookie.
        """
        with ArcHTTP(base_url, timeout_s=timeout_s, verify_tls=verify_tls) as http:
            try:
                resp = http.post_json(LOGIN_SESSIONS, credentials.to_login_body())
            except ArcTransportError as exc:
                raise ArcAuthError(f"Login to {http.base_url} failed: {exc}") from exc
            try:
                body = _parse_json(resp.text, LOGIN_SESSIONS)
            except ArcParseError as exc:
                raise ArcAuthError(f"Login to {http.base_url} failed: {exc}") from exc
        cookie = body.get("cookie") if isinstance(body, dict) else None
        if not isinstance(cookie, str) or not cookie:
            raise ArcAuthError(f"Login to {base_url} returned no session cookie")
        logger.debug("Logged in to %s as %s", base_url, credentials.username)
        session = cls.restore(base_url, cookie, timeout_s=timeout_s, verify_tls=verify_tls)
        return session, cookie

    @classmethod
    def restore(
        cls,
        base_url: str,
        cookie: str,
        timeout_s: float = 30.0,
        verify_tls: bool = True,
    ) -> ArcSession:
        """Rebuild a session from a persisted cookie without any network call.

        The cookie is not validated; see :func:`ensure_valid`.

        Raises:
            ArcConfigError: If *base_url* is malformed.
        """
        return cls(base_url, cookie, timeout_s=timeout_s, verify_tls=verify_tls)

    def clone(self) -> ArcSession:
        """Return an independent session with the same URL, cookie and settings."""
        return type(self)(
            self._http.base_url,
            self._cookie,
            timeout_s=self._http.timeout_s,
            verify_tls=self._http.verify_tls,
        )

    # ------------------------------------------------------------------
    # Public request methods
    # ------------------------------------------------------------------

    def get(self, path: str) -> Any:
        """Perform an authenticated GET and return the parsed JSON body.

        Raises:
            ArcTransportError: On transport failure, non-2xx status or a
                non-JSON body.
        """
        resp = self._http.get(path)
        return _parse_json(resp.text, path)

    def put(self, path: str, payload: dict[str, Any]) -> Any:
        """Perform an authenticated PUT of *payload* and return the parsed JSON body.

        Raises:
            ArcTransportError: On transport failure, non-2xx status or a
                non-JSON body.
        """
        resp = self._http.put_json(path, payload)
        return _parse_json(resp.text, path)

    def probe(self) -> ProbeResult:
        """Fetch a cheap resource and classify whether the cookie is accepted."""
        path = port_poe_path(PROBE_PORT_ID)
        try:
            self.get(path)
        except ArcResponseError as exc:
            if exc.status_code == STATUS_SESSION_EXPIRED:
                logger.debug("Session probe on %s: expired", self.base_url)
                return ProbeResult(SessionState.EXPIRED, ArcSessionExpired(exc.url))
            logger.debug("Session probe on %s failed: %s", self.base_url, exc)
            return ProbeResult(SessionState.OTHER_ERROR, exc)
        except ArcTransportError as exc:
            logger.debug("Session probe on %s failed: %s", self.base_url, exc)
            return ProbeResult(SessionState.OTHER_ERROR, exc)
        return ProbeResult(SessionState.VALID)

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._http.close()

    def __enter__(self) -> ArcSession:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def base_url(self) -> str:
        """Normalised switch base URL."""
        return self._http.base_url

    @property
    def cookie(self) -> str:
        """Session cookie this session authenticates with."""
        return self._cookie

    @property
    def timeout_s(self) -> float:
        return self._http.timeout_s

    @property
    def verify_tls(self) -> bool:
        return self._http.verify_tls


def ensure_valid(
    session: ArcSession,
    state: PersistedState,
    store: StateStore | None = None,
) -> ArcSession:
    """Return a session the switch accepts, re-authenticating at most once.

    Probes *session*.  If the switch reports the cookie as expired, logs in
    again with ``state.login``, saves the new cookie to *store* (when given)
    and returns the new session.  If the cookie is accepted, *session* itself
    is returned.  In every other case *session* is closed, and a new session
    is closed again if its cookie cannot be saved.

    Args:
        session: Session restored from ``state.cookie``.
        state: Persisted login parameters and cookie.
        store: Where to persist a refreshed cookie.

    Raises:
        ArcAuthError: If re-authentication fails.
        ArcConfigError: If the refreshed cookie cannot be saved to *store*.
        ArcUnexpectedError: If the probe fails for any reason other than
            session expiry.
    """
    result = session.probe()
    if result.state is SessionState.VALID:
        return session
    session.close()
    if result.state is SessionState.OTHER_ERROR:
        raise ArcUnexpectedError(
            f"Unexpected error while checking session: {result.error}"
        ) from result.error

    logger.info("Session on %s expired; logging in again", session.base_url)
    try:
        new_session, cookie = ArcSession.authenticate(
            state.login.base_url,
            state.login.credentials,
            timeout_s=session.timeout_s,
            verify_tls=session.verify_tls,
        )
    except ArcAuthError as exc:
        raise ArcAuthError(f"Session expired and re-login failed: {exc}") from exc
    if store is not None:
        try:
            store.save(state.login, cookie)
        except ArcConfigError:
            new_session.close()
            raise
    return new_session


def _parse_json(text: str, endpoint: str) -> Any:
    """Parse *text* as JSON, raising :exc:`.ArcParseError` on failure."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ArcParseError(
            f"Non-JSON response from {endpoint!r}: {text[:200]!r}"
        ) from exc

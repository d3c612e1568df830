"""Typed model of the record persisted between ``arc`` invocations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from arc_poe.client.session import ArcCredentials


@dataclass(frozen=True)
class LoginParams:
    """Parameters of the last successful ``arc login``.

    Attributes:
        base_url: Switch base URL as given on the command line.
        user_name: Login username.
        password: Login password, needed to re-authenticate after expiry.
    """

    base_url: str
    user_name: str
    password: str

    @property
    def credentials(self) -> ArcCredentials:
        return ArcCredentials(username=self.user_name, password=self.password)


@dataclass(frozen=True)
class PersistedState:
    """Last login parameters plus the current session cookie."""

    login: LoginParams
    cookie: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PersistedState:
        """Parse the on-disk JSON form.

        Raises:
            KeyError: If a required key is missing.
            TypeError: If a value has the wrong type.
        """
        login = data["login_args"]
        if not isinstance(login, dict):
            raise TypeError("login_args must be an object")
        params = LoginParams(
            base_url=str(login["base_url"]),
            user_name=str(login["user_name"]),
            password=str(login["password"]),
        )
        cookie = data["cookie"]
        if not isinstance(cookie, str):
            raise TypeError("cookie must be a string")
        return cls(login=params, cookie=cookie)

    def to_dict(self) -> dict[str, Any]:
        return {
            "login_args": {
                "base_url": self.login.base_url,
                "user_name": self.login.user_name,
                "password": self.login.password,
            },
            "cookie": self.cookie,
        }

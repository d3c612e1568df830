"""On-disk persistence of the last login and its session cookie."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from arc_poe.client.errors import ArcConfigError
from arc_poe.model.state import LoginParams, PersistedState

logger = logging.getLogger(__name__)


class StateStore:
    """Reads and writes the single :class:`PersistedState` record.

    The record is a flat JSON file.  Every save overwrites it; the file is
    created with owner-only permissions because it holds the password.

    Args:
        path: File location, usually :attr:`ArcSettings.state_file`.
    """

    def __init__(self, path: Path) -> None:
        self.path: Path = path

    def save(self, login: LoginParams, cookie: str) -> PersistedState:
        """Persist *login* and *cookie*, replacing any previous record.

        Raises:
            ArcConfigError: If the file or its directory cannot be written.
        """
        state = PersistedState(login=login, cookie=cookie)
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(state.to_dict(), fh)
            os.replace(tmp, self.path)
        except OSError as exc:
            raise ArcConfigError(f"Could not write state file {self.path}: {exc}") from exc
        logger.debug("Saved session for %s to %s", login.base_url, self.path)
        return state

    def load(self) -> PersistedState:
        """Read the persisted record.

        Raises:
            ArcConfigError: If the file is missing, unreadable or corrupt.
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ArcConfigError(
                f"No saved session at {self.path}; run 'arc login' first"
            ) from exc
        except OSError as exc:
            raise ArcConfigError(f"Could not read state file {self.path}: {exc}") from exc
        try:
            return PersistedState.from_dict(json.loads(text))
        except (json.JSONDecodeError, KeyError, TypeError) as exc:
            raise ArcConfigError(f"Corrupt state file {self.path}: {exc!r}") from exc

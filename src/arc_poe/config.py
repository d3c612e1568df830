"""Runtime settings for the ``arc`` command, read from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from arc_poe.client.errors import ArcConfigError

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_TIMEOUT_S: float = 30.0
STATE_DIR_NAME: str = "arc"
STATE_FILE_NAME: str = "persist.txt"

_FALSE_WORDS: frozenset[str] = frozenset({"0", "false", "no", "off"})


def default_state_file(environ: Mapping[str, str] | None = None) -> Path:
    """Return ``$XDG_DATA_HOME/arc/persist.txt`` (``~/.local/share`` if unset)."""
    env = os.environ if environ is None else environ
    data_home = env.get("XDG_DATA_HOME")
    base = Path(data_home) if data_home else Path.home() / ".local" / "share"
    return base / STATE_DIR_NAME / STATE_FILE_NAME


@dataclass
class ArcSettings:
    """Settings shared by every ``arc`` command.

    Attributes:
        state_file: Location of the persisted login/cookie record.
        timeout_s: Request timeout in seconds.
        verify_tls: Whether to verify TLS certificates.
        max_workers: Worker cap for bulk writes, ``None`` for the default.
    """

    state_file: Path
    timeout_s: float = DEFAULT_TIMEOUT_S
    verify_tls: bool = True
    max_workers: int | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ArcSettings:
        """Build settings from ``ARC_*`` environment variables.

        Raises:
            ArcConfigError: If a numeric variable cannot be parsed.
        """
        env = os.environ if environ is None else environ
        state_file = env.get("ARC_STATE_FILE")
        return cls(
            state_file=Path(state_file) if state_file else default_state_file(env),
            timeout_s=_parse_float(env, "ARC_TIMEOUT", DEFAULT_TIMEOUT_S),
            verify_tls=env.get("ARC_VERIFY_TLS", "1").strip().lower() not in _FALSE_WORDS,
            max_workers=_parse_workers(env.get("ARC_MAX_WORKERS")),
        )


def _parse_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ArcConfigError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ArcConfigError(f"{name} must be positive, got {raw!r}")
    return value


def _parse_workers(raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise ArcConfigError(f"ARC_MAX_WORKERS must be an integer, got {raw!r}") from exc
    if value < 1:
        raise ArcConfigError(f"ARC_MAX_WORKERS must be at least 1, got {raw!r}")
    return value

"""Typed models for PoE port data."""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from typing import Any

logger = logging.getLogger(__name__)

# Attributes of a PoE port the switch accepts in a PUT.  ``uri``, ``port_id``
# and ``port_configured_type`` are read-only.
WRITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "is_poe_enabled",
        "poe_priority",
        "poe_allocation_method",
        "allocated_power_in_watts",
        "pre_standard_detect_enabled",
    }
)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def to_snake_case(key: str) -> str:
    """Convert ``isPoeEnabled`` to ``is_poe_enabled``; snake_case is returned as-is."""
    return _CAMEL_BOUNDARY.sub(r"_\1", key).lower()


@dataclass
class PortPoe:
    """PoE configuration of a single switch port, as reported by the switch.

    Attributes:
        uri: Resource URI of the port's PoE object.
        port_id: Port identifier, unique within the switch (e.g. ``"1"``,
            ``"A1"``, ``"1/1"``).  Correlates reads with writes.
        is_poe_enabled: ``True`` if PoE power delivery is enabled.
        poe_priority: ``"PPP_LOW"``, ``"PPP_HIGH"`` or ``"PPP_CRITICAL"``.
        poe_allocation_method: ``"PPAM_USAGE"``, ``"PPAM_CLASS"`` or
            ``"PPAM_VALUE"``.
        allocated_power_in_watts: Power budget when allocating by value.
        port_configured_type: Free-form configured device type.
        pre_standard_detect_enabled: ``True`` if pre-802.3af detection is on.
    """

    uri: str = ""
    port_id: str = ""
    is_poe_enabled: bool = False
    poe_priority: str = ""
    poe_allocation_method: str = ""
    allocated_power_in_watts: int = 0
    port_configured_type: str = ""
    pre_standard_detect_enabled: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PortPoe:
        """Build a :class:`PortPoe` from its wire representation.

        Keys may be snake_case (the switch's own form) or camelCase.  Unknown
        keys are ignored.  Every attribute must be present with its wire type;
        nothing is filled in from the field defaults.

        Raises:
            ValueError: If an attribute is missing or ``port_id`` is empty.
            TypeError: If an attribute has the wrong JSON type.
        """
        normalised = {to_snake_case(k): v for k, v in data.items()}
        missing = [name for name in _WIRE_TYPES if name not in normalised]
        if missing:
            raise ValueError(f"PoE port object missing {', '.join(missing)}: {data!r}")
        values: dict[str, Any] = {}
        for name, expected in _WIRE_TYPES.items():
            value = normalised[name]
            # bool is a subclass of int; a flag is never a wattage
            if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
                raise TypeError(
                    f"PoE attribute {name!r} must be {expected.__name__}, "
                    f"got {type(value).__name__}: {value!r}"
                )
            values[name] = value
        if not values["port_id"]:
            raise ValueError(f"PoE port object with empty port_id: {data!r}")
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Return the full wire representation (snake_case keys)."""
        return asdict(self)

    def to_write_payload(self) -> dict[str, Any]:
        """Return only the writable attributes, suitable for a PUT body."""
        return {k: v for k, v in asdict(self).items() if k in WRITABLE_FIELDS}


# JSON type of every attribute in a PoE port object.
_WIRE_TYPES: dict[str, type] = {
    "uri": str,
    "port_id": str,
    "is_poe_enabled": bool,
    "poe_priority": str,
    "poe_allocation_method": str,
    "allocated_power_in_watts": int,
    "port_configured_type": str,
    "pre_standard_detect_enabled": bool,
}


def build_write_payload(patch: dict[str, Any]) -> dict[str, Any]:
    """Normalise a user-supplied *patch* into a PUT body.

    Keys are converted to snake_case and anything outside
    :data:`WRITABLE_FIELDS` is dropped with a warning.

    Raises:
        ValueError: If *patch* is not a JSON object or contains no writable
            attribute.
    """
    if not isinstance(patch, dict):
        raise ValueError(f"PoE patch must be a JSON object, got {type(patch).__name__}")
    payload: dict[str, Any] = {}
    for key, value in patch.items():
        name = to_snake_case(key)
        if name in WRITABLE_FIELDS:
            payload[name] = value
        else:
            logger.warning("Ignoring non-writable PoE attribute %r", key)
    if not payload:
        raise ValueError(
            f"PoE patch has no writable attribute; valid: {sorted(WRITABLE_FIELDS)}"
        )
    return payload

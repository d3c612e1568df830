"""PoE port read/write operations for ArubaOS-Switch REST API.

Each function issues its request through an authenticated
:class:`~arc_poe.client.session.ArcSession` and translates the JSON
body into :class:`~arc_poe.model.port.PortPoe` objects.

Confirmed payloads (ArubaOS-Switch REST v1):

    LIST: GET /rest/v1/poe/ports
        → {"collection_result": {"total_elements_count": 2, ...},
           "port_poe": [{"port_id": "1", "is_poe_enabled": true, ...}, ...]}

    DISABLE PORT 1: PUT /rest/v1/ports/1/poe
        {"is_poe_enabled": false}
        → {"port_id": "1", "is_poe_enabled": false, ...}
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from arc_poe.client.errors import ArcParseError
from arc_poe.client.session import ArcSession
from arc_poe.model.port import PortPoe, build_write_payload
from arc_poe.vendor.aruba.endpoints import POE_PORTS, port_poe_path

logger = logging.getLogger(__name__)

# Port-id argument selecting every port on the switch.
ALL_PORTS: str = "all"


def list_ports(session: ArcSession) -> list[PortPoe]:
    """Return every PoE port on the switch, in the order the switch lists them.

    Raises:
        ArcTransportError: If the request fails.
        ArcParseError: If the body is not a PoE port collection.
    """
    body = session.get(POE_PORTS)
    items = None
    if isinstance(body, dict):
        items = body.get("port_poe", body.get("portPoe"))
    if not isinstance(items, list):
        raise ArcParseError(f"Response from {POE_PORTS!r} has no port_poe list")
    ports = [_to_port(item, POE_PORTS) for item in items]
    logger.debug("Listed %d PoE ports", len(ports))
    return ports


def get_port(session: ArcSession, port_id: str) -> PortPoe:
    """Return the PoE configuration of a single port.

    Raises:
        ArcResponseError: With status 404 if *port_id* does not exist.
        ArcTransportError: If the request otherwise fails.
    """
    path = port_poe_path(port_id)
    return _to_port(session.get(path), path)


def set_port(session: ArcSession, port: PortPoe, patch: dict[str, Any]) -> PortPoe:
    """Apply the writable attributes of *patch* to *port*.

    Args:
        session: Active authenticated session.
        port: Target port; only its ``port_id`` is used.
        patch: Attributes to change, e.g. ``{"is_poe_enabled": False}``.

    Returns:
        The port as the switch reports it after the update.

    Raises:
        ValueError: If *patch* has no writable attribute.
        ArcTransportError: If the request fails.
    """
    payload = build_write_payload(patch)
    path = port_poe_path(port.port_id)
    logger.debug("Setting PoE on port %s: %s", port.port_id, payload)
    updated = _to_port(session.put(path, payload), path)
    logger.info("PoE configuration applied to port %s", port.port_id)
    return updated


def select_ports(
    session: ArcSession,
    port_ids: list[str],
    lookup_single: bool = False,
) -> list[PortPoe]:
    """Resolve the ports a multi-port command operates on.

    ``["all"]`` selects every port.  With *lookup_single*, a single explicit
    id is fetched directly, so an unknown id raises.  Otherwise all ports are
    listed once and filtered to *port_ids*; ids the switch does not know are
    dropped silently.

    Raises:
        ArcResponseError: For an unknown id on the single-lookup path.
        ArcTransportError: If a request fails.
    """
    if port_ids == [ALL_PORTS]:
        return list_ports(session)
    if lookup_single and len(port_ids) == 1:
        return [get_port(session, port_ids[0])]
    wanted = set(port_ids)
    selected = [port for port in list_ports(session) if port.port_id in wanted]
    missing = wanted - {port.port_id for port in selected}
    if missing:
        logger.debug("Ignoring unknown port ids: %s", ", ".join(sorted(missing)))
    return selected


def parse_port_ids(values: Iterable[str]) -> list[str]:
    """Split comma-separated port-id arguments, dropping blanks and duplicates."""
    result: list[str] = []
    for value in values:
        for token in value.split(","):
            token = token.strip()
            if token and token not in result:
                result.append(token)
    return result


def _to_port(data: object, endpoint: str) -> PortPoe:
    if not isinstance(data, dict):
        raise ArcParseError(f"Expected a PoE port object from {endpoint!r}, got {data!r}")
    try:
        return PortPoe.from_dict(data)
    except (TypeError, ValueError) as exc:
        raise ArcParseError(f"Invalid PoE port object from {endpoint!r}: {exc}") from exc

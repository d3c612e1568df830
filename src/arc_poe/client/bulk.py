"""Concurrent application of one PoE patch to many ports."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any

from arc_poe.client.errors import ArcCoordinationError, ArcError
from arc_poe.client.port_ops import set_port
from arc_poe.client.session import ArcSession
from arc_poe.model.port import PortPoe, build_write_payload

logger = logging.getLogger(__name__)

# Upper bound on worker threads when the caller does not set one.
DEFAULT_MAX_WORKERS: int = 32


def apply_to_ports(
    session: ArcSession,
    ports: list[PortPoe],
    patch: dict[str, Any],
    max_workers: int | None = None,
) -> list[PortPoe]:
    """Apply *patch* to every port in *ports* concurrently.

    One worker is submitted per port, each on its own clone of *session*.
    All workers are waited for before any outcome is evaluated; in-flight
    requests are never cancelled.  The call either returns every updated port
    or raises, never a partial result.

    Args:
        session: Authenticated session; cloned per worker, never mutated.
        ports: Target ports.
        patch: Attributes to apply to each port.
        max_workers: Thread-pool size cap (default: one per port, at most
            :data:`DEFAULT_MAX_WORKERS`).

    Returns:
        The updated ports, in the order of *ports*.

    Raises:
        ValueError: If *patch* has no writable attribute.
        ArcError: The first API failure, in submission order.
        ArcCoordinationError: If a worker ended with a non-API exception or
            was cancelled.
    """
    patch = build_write_payload(patch)
    if not ports:
        return []

    workers = max_workers or min(len(ports), DEFAULT_MAX_WORKERS)
    logger.debug("Applying PoE patch to %d port(s) with %d worker(s)", len(ports), workers)

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="arc-poe") as executor:
        futures: list[tuple[PortPoe, Future[PortPoe]]] = [
            (port, executor.submit(_apply_one, session.clone(), port, patch))
            for port in ports
        ]
        wait([future for _, future in futures])

    results: list[PortPoe] = []
    for port, future in futures:
        if future.cancelled():
            raise ArcCoordinationError(port.port_id, None)
        exc = future.exception()
        if isinstance(exc, ArcError):
            raise exc
        if exc is not None:
            raise ArcCoordinationError(port.port_id, exc) from exc
        results.append(future.result())
    return results


def _apply_one(session: ArcSession, port: PortPoe, patch: dict[str, Any]) -> PortPoe:
    with session:
        return set_port(session, port, patch)

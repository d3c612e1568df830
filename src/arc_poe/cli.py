"""Command-line interface: ``arc login``, ``arc port get|set``, ``arc completion``."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from arc_poe import completion
from arc_poe.client.bulk import apply_to_ports
from arc_poe.client.errors import ArcConfigError, ArcError
from arc_poe.client.port_ops import ALL_PORTS, parse_port_ids, select_ports
from arc_poe.client.session import ArcSession, ensure_valid
from arc_poe.config import ArcSettings
from arc_poe.model.port import PortPoe, build_write_payload
from arc_poe.model.state import LoginParams
from arc_poe.store import StateStore

logger = logging.getLogger(__name__)

PROG: str = "arc"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Read and write PoE settings of ArubaOS switches over the REST API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  arc login https://192.168.1.1 admin secret\n"
            "  arc port get all\n"
            "  arc port get 1,2,5\n"
            "  arc port set 1,2 '{\"is_poe_enabled\": false}'\n"
        ),
    )
    parser.add_argument("--debug", action="store_true",
                        help="Enable verbose debug logging")
    parser.add_argument("--timeout", dest="timeout_s", type=float, default=None,
                        help="Request timeout in seconds (env ARC_TIMEOUT, default 30)")
    parser.add_argument("--insecure", dest="verify_tls", action="store_false", default=None,
                        help="Disable TLS certificate verification (env ARC_VERIFY_TLS=0)")
    parser.add_argument("--workers", dest="max_workers", type=int, default=None,
                        help="Maximum concurrent port updates (env ARC_MAX_WORKERS)")
    parser.add_argument("--state-file", dest="state_file", type=Path, default=None,
                        help="Where the session is stored (env ARC_STATE_FILE)")

    sub_command = parser.add_subparsers(title="commands", dest="command", required=True)

    parser_login = sub_command.add_parser("login", help="Log in and store the session")
    parser_login.add_argument("base_url", help="Switch URL, e.g. https://192.168.1.1")
    parser_login.add_argument("user_name", help="Login username")
    parser_login.add_argument("password", help="Login password")
    parser_login.set_defaults(func=cmd_login)

    parser_port = sub_command.add_parser("port", help="Get or set PoE port settings")
    port_command = parser_port.add_subparsers(title="port commands", dest="port_command",
                                              required=True)

    parser_get = port_command.add_parser("get", help="Print PoE settings as JSON lines")
    parser_get.add_argument("port_ids", nargs="+", metavar="PORT_ID",
                            help=f"Port ids (comma or space separated) or '{ALL_PORTS}'")
    parser_get.set_defaults(func=cmd_port_get)

    parser_set = port_command.add_parser("set", help="Apply a JSON patch to ports")
    parser_set.add_argument("port_ids", nargs="+", metavar="PORT_ID",
                            help=f"Port ids (comma or space separated) or '{ALL_PORTS}'")
    parser_set.add_argument("data", metavar="DATA",
                            help='JSON object, e.g. \'{"is_poe_enabled": false}\'')
    parser_set.set_defaults(func=cmd_port_set)

    parser_completion = sub_command.add_parser("completion",
                                               help="Print a shell completion script")
    parser_completion.add_argument("shell", choices=completion.SHELLS)
    parser_completion.set_defaults(func=cmd_completion)

    return parser


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------

def cmd_login(args: argparse.Namespace, settings: ArcSettings) -> int:
    login = LoginParams(base_url=args.base_url, user_name=args.user_name,
                        password=args.password)
    session, cookie = ArcSession.authenticate(
        login.base_url,
        login.credentials,
        timeout_s=settings.timeout_s,
        verify_tls=settings.verify_tls,
    )
    session.close()
    StateStore(settings.state_file).save(login, cookie)
    logger.info("Logged in to %s as %s", session.base_url, login.user_name)
    return 0


def cmd_port_get(args: argparse.Namespace, settings: ArcSettings) -> int:
    port_ids = parse_port_ids(args.port_ids)
    with _open_session(settings) as session:
        ports = select_ports(session, port_ids, lookup_single=True)
    _print_ports(ports)
    return 0


def cmd_port_set(args: argparse.Namespace, settings: ArcSettings) -> int:
    port_ids = parse_port_ids(args.port_ids)
    try:
        patch = json.loads(args.data)
    except json.JSONDecodeError as exc:
        raise ValueError(f"DATA is not valid JSON: {exc}") from exc
    patch = build_write_payload(patch)
    with _open_session(settings) as session:
        targets = select_ports(session, port_ids)
        updated = apply_to_ports(session, targets, patch, max_workers=settings.max_workers)
    _print_ports(updated)
    return 0


def cmd_completion(args: argparse.Namespace, settings: ArcSettings) -> int:
    script = completion.generate(
        args.shell,
        build_parser(),
        PROG,
        extra={"port get": [ALL_PORTS], "port set": [ALL_PORTS]},
    )
    sys.stdout.write(script)
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _open_session(settings: ArcSettings) -> ArcSession:
    """Restore the saved session and re-authenticate once if it expired."""
    store = StateStore(settings.state_file)
    state = store.load()
    session = ArcSession.restore(
        state.login.base_url,
        state.cookie,
        timeout_s=settings.timeout_s,
        verify_tls=settings.verify_tls,
    )
    return ensure_valid(session, state, store)


def _print_ports(ports: list[PortPoe]) -> None:
    for port in ports:
        print(json.dumps(port.to_dict()))


def _settings_from_args(args: argparse.Namespace) -> ArcSettings:
    settings = ArcSettings.from_env()
    if args.state_file is not None:
        settings.state_file = args.state_file
    if args.timeout_s is not None:
        if args.timeout_s <= 0:
            raise ArcConfigError(f"--timeout must be positive, got {args.timeout_s}")
        settings.timeout_s = args.timeout_s
    if args.verify_tls is not None:
        settings.verify_tls = args.verify_tls
    if args.max_workers is not None:
        if args.max_workers < 1:
            raise ArcConfigError(f"--workers must be at least 1, got {args.max_workers}")
        settings.max_workers = args.max_workers
    return settings


def format_error(exc: BaseException) -> str:
    """Render *exc* and its causes as one line, skipping repeated messages."""
    parts: list[str] = []
    current: BaseException | None = exc
    while current is not None:
        text = str(current) or type(current).__name__
        if not any(text in part for part in parts):
            parts.append(text)
        current = current.__cause__
    return ": ".join(parts)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    try:
        settings = _settings_from_args(args)
        return args.func(args, settings)
    except (ArcError, ValueError) as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"{PROG}: error: {format_error(exc)}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

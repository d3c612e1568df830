"""Unit tests for the ``arc`` command line (arc_poe.cli and arc_poe.completion)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import responses as rsps_lib
from responses import matchers

from arc_poe import completion
from arc_poe.cli import build_parser, format_error, main
from arc_poe.client.errors import ArcAuthError, ArcRequestError
from arc_poe.model.state import LoginParams
from arc_poe.store import StateStore

BASE_URL = "https://sw.local"
LOGIN_URL = f"{BASE_URL}/rest/v1/login-sessions"
LIST_URL = f"{BASE_URL}/rest/v1/poe/ports"
PROBE_URL = f"{BASE_URL}/rest/v1/ports/1/poe"


def make_port_dict(port_id: str, enabled: bool = True) -> dict[str, Any]:
    return {
        "uri": f"/ports/{port_id}/poe",
        "port_id": port_id,
        "is_poe_enabled": enabled,
        "poe_priority": "PPP_LOW",
        "poe_allocation_method": "PPAM_USAGE",
        "allocated_power_in_watts": 17,
        "port_configured_type": "",
        "pre_standard_detect_enabled": False,
    }


@pytest.fixture
def state_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "arc" / "persist.txt"
    monkeypatch.setenv("ARC_STATE_FILE", str(path))
    for name in ("ARC_TIMEOUT", "ARC_VERIFY_TLS", "ARC_MAX_WORKERS"):
        monkeypatch.delenv(name, raising=False)
    return path


@pytest.fixture
def logged_in(state_file: Path) -> StateStore:
    store = StateStore(state_file)
    store.save(LoginParams(BASE_URL, "admin", "x"), "sessionId=abc123")
    return store


def _add_probe(status: int = 200) -> None:
    rsps_lib.add(rsps_lib.GET, PROBE_URL, body=json.dumps(make_port_dict("1")), status=status)


def _add_list(*port_ids: str) -> None:
    rsps_lib.add(
        rsps_lib.GET,
        LIST_URL,
        body=json.dumps(
            {
                "collection_result": {"total_elements_count": len(port_ids)},
                "port_poe": [make_port_dict(pid) for pid in port_ids],
            }
        ),
    )


def _json_lines(out: str) -> list[dict[str, Any]]:
    return [json.loads(line) for line in out.splitlines() if line]


# ---------------------------------------------------------------------------
# login
# ---------------------------------------------------------------------------

class TestLogin:
    @rsps_lib.activate
    def test_login_persists_cookie(self, state_file: Path) -> None:
        rsps_lib.add(
            rsps_lib.POST,
            LOGIN_URL,
            body=json.dumps({"cookie": "abc123"}),
            status=201,
            match=[matchers.json_params_matcher({"userName": "admin", "password": "x"})],
        )
        assert main(["login", BASE_URL, "admin", "x"]) == 0

        state = StateStore(state_file).load()
        assert state.cookie == "abc123"
        assert state.login == LoginParams(BASE_URL, "admin", "x")

    @rsps_lib.activate
    def test_login_rejected_exits_1(self, state_file: Path,
                                    capsys: pytest.CaptureFixture[str]) -> None:
        rsps_lib.add(rsps_lib.POST, LOGIN_URL, status=401)
        assert main(["login", BASE_URL, "admin", "wrong"]) == 1
        assert "arc: error:" in capsys.readouterr().err
        assert not state_file.exists()


# ---------------------------------------------------------------------------
# port get
# ---------------------------------------------------------------------------

class TestPortGet:
    @rsps_lib.activate
    def test_get_all_prints_one_line_per_port(
        self, logged_in: StateStore, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _add_probe()
        _add_list("1", "2", "3")
        assert main(["port", "get", "all"]) == 0

        lines = _json_lines(capsys.readouterr().out)
        assert [line["port_id"] for line in lines] == ["1", "2", "3"]
        list_calls = [c for c in rsps_lib.calls if c.request.url == LIST_URL]
        assert len(list_calls) == 1

    @rsps_lib.activate
    def test_get_multiple_ids_filters(
        self, logged_in: StateStore, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _add_probe()
        _add_list("1", "2", "3")
        assert main(["port", "get", "2,5"]) == 0
        assert [line["port_id"] for line in _json_lines(capsys.readouterr().out)] == ["2"]

    @rsps_lib.activate
    def test_get_single_unknown_id_fails(
        self, logged_in: StateStore, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _add_probe()
        rsps_lib.add(rsps_lib.GET, f"{BASE_URL}/rest/v1/ports/5/poe", status=404)
        assert main(["port", "get", "5"]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "404" in captured.err

    @rsps_lib.activate
    def test_expired_session_is_refreshed(
        self, logged_in: StateStore, capsys: pytest.CaptureFixture[str]
    ) -> None:
        rsps_lib.add(rsps_lib.GET, PROBE_URL, status=400)
        rsps_lib.add(rsps_lib.POST, LOGIN_URL, body=json.dumps({"cookie": "sessionId=new"}))
        _add_list("1")
        assert main(["port", "get", "all"]) == 0

        assert logged_in.load().cookie == "sessionId=new"
        list_call = [c for c in rsps_lib.calls if c.request.url == LIST_URL][0]
        assert list_call.request.headers["Cookie"] == "sessionId=new"

    def test_without_login_fails(
        self, state_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["port", "get", "all"]) == 1
        assert "arc login" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# port set
# ---------------------------------------------------------------------------

class TestPortSet:
    @rsps_lib.activate
    def test_set_two_ports(
        self, logged_in: StateStore, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _add_probe()
        _add_list("1", "2", "3")
        for pid in ("1", "2"):
            rsps_lib.add(
                rsps_lib.PUT,
                f"{BASE_URL}/rest/v1/ports/{pid}/poe",
                body=json.dumps(make_port_dict(pid, enabled=False)),
                match=[matchers.json_params_matcher({"is_poe_enabled": False})],
            )

        assert main(["port", "set", "1,2", '{"isPoeEnabled":false}']) == 0

        lines = _json_lines(capsys.readouterr().out)
        assert sorted(line["port_id"] for line in lines) == ["1", "2"]
        assert all(line["is_poe_enabled"] is False for line in lines)
        puts = [c for c in rsps_lib.calls if c.request.method == "PUT"]
        assert len(puts) == 2

    @rsps_lib.activate
    def test_set_failure_prints_no_results(
        self, logged_in: StateStore, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _add_probe()
        _add_list("1", "2")
        rsps_lib.add(
            rsps_lib.PUT,
            f"{BASE_URL}/rest/v1/ports/1/poe",
            body=json.dumps(make_port_dict("1", enabled=False)),
        )
        rsps_lib.add(rsps_lib.PUT, f"{BASE_URL}/rest/v1/ports/2/poe", status=500)

        assert main(["port", "set", "all", '{"is_poe_enabled": false}']) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "500" in captured.err

    @rsps_lib.activate
    def test_invalid_json_fails_without_requests(
        self, logged_in: StateStore, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["port", "set", "1", "{not json"]) == 1
        assert "not valid JSON" in capsys.readouterr().err
        assert len(rsps_lib.calls) == 0

    @rsps_lib.activate
    def test_patch_without_writable_field_fails_without_requests(
        self, logged_in: StateStore
    ) -> None:
        assert main(["port", "set", "1", '{"uri": "/x"}']) == 1
        assert len(rsps_lib.calls) == 0

    def test_parser_splits_ids_and_data(self) -> None:
        args = build_parser().parse_args(["port", "set", "1", "2", '{"a": 1}'])
        assert args.port_ids == ["1", "2"]
        assert args.data == '{"a": 1}'


# ---------------------------------------------------------------------------
# Options, errors, completion
# ---------------------------------------------------------------------------

def test_invalid_workers_option_fails(
    state_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["--workers", "0", "port", "get", "all"]) == 1
    assert "--workers" in capsys.readouterr().err


@rsps_lib.activate
@pytest.mark.parametrize("value", ["0", "-5"])
def test_non_positive_timeout_option_fails(
    logged_in: StateStore, capsys: pytest.CaptureFixture[str], value: str
) -> None:
    assert main(["--timeout", value, "port", "get", "all"]) == 1
    assert "--timeout must be positive" in capsys.readouterr().err
    assert len(rsps_lib.calls) == 0


def test_format_error_joins_chain_without_repeats() -> None:
    cause = ArcRequestError("https://sw.local/x", ConnectionError("refused"))
    try:
        try:
            raise cause
        except ArcRequestError as exc:
            raise ArcAuthError("Login to https://sw.local failed") from exc
    except ArcAuthError as err:
        text = format_error(err)
    assert text.startswith("Login to https://sw.local failed: Request to")
    assert text.count("refused") == 1


@pytest.mark.parametrize("shell", completion.SHELLS)
def test_completion_script(shell: str, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["completion", shell]) == 0
    script = capsys.readouterr().out
    assert "arc" in script
    assert "login port completion" in script
    assert "get set" in script
    assert "all" in script


def test_completion_bash_skips_option_values() -> None:
    script = completion.generate("bash", build_parser(), "arc")
    assert "--timeout" in script
    assert "complete -o default -F _arc arc" in script


def test_completion_walks_every_command() -> None:
    tree = {
        path: (words, value_opts)
        for path, words, value_opts in completion._walk(build_parser())
    }
    assert list(tree) == ["", "login", "port", "port get", "port set", "completion"]

    words, value_opts = tree[""]
    assert {"login", "port", "completion", "--debug", "--timeout"} <= set(words)
    assert "--timeout" in value_opts
    assert "--debug" not in value_opts
    assert {"get", "set"} <= set(tree["port"][0])
    assert set(completion.SHELLS) <= set(tree["completion"][0])


def test_completion_unknown_shell() -> None:
    with pytest.raises(ValueError):
        completion.generate("tcsh", build_parser(), "arc")

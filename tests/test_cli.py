from __future__ import annotations

import json
from pathlib import Path

from authflow.cli import main


def _write(tmp_path: Path, payload) -> str:
    path = tmp_path / "flows.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


LOGIN = {
    "id": "login",
    "states": [
        {"id": "ticketCheck", "type": "decision", "test": "ticket != null", "then": "done", "else": "form"},
        {"id": "form", "type": "view", "view": "casLoginView", "transitions": [{"to": "done"}]},
        {"id": "done", "type": "end"},
    ],
}


def test_inspect_prints_assembled_flows(tmp_path: Path, capsys) -> None:
    rc = main(["inspect", _write(tmp_path, LOGIN)])
    out = json.loads(capsys.readouterr().out)

    assert rc == 0
    [flow] = out["flows"]
    assert flow["id"] == "login"
    assert flow["start_state"] == "ticketCheck"
    decision = flow["states"][0]
    assert decision["kind"] == "decision"
    assert decision["transitions"] == [
        {"on": "ticket != null", "to": "done"},
        {"on": "*", "to": "form"},
    ]


def test_inspect_filters_by_flow_id(tmp_path: Path, capsys) -> None:
    other = {"id": "logout", "states": [{"id": "finish", "type": "end"}]}
    rc = main(["inspect", _write(tmp_path, {"flows": [LOGIN, other]}), "--flow", "logout"])

    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert [f["id"] for f in out["flows"]] == ["logout"]


def test_validate_accepts_a_valid_definition(tmp_path: Path, capsys) -> None:
    assert main(["validate", _write(tmp_path, LOGIN)]) == 0
    assert capsys.readouterr().out.strip() == "ok"


def test_validate_reports_errors(tmp_path: Path, capsys) -> None:
    broken = {"id": "login", "states": [{"id": "form", "type": "view", "transitions": [{"to": "nowhere"}]}]}

    assert main(["validate", _write(tmp_path, broken)]) == 1
    err = capsys.readouterr().err
    assert "error: State 'form' is a view state and needs a 'view' or 'viewExpression'." in err
    assert "error: State 'form' transitions to unknown state 'nowhere'." in err


def test_no_command_prints_help(capsys) -> None:
    assert main([]) == 0
    assert "usage:" in capsys.readouterr().out

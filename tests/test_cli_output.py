import json

import pytest

from property_intel.__main__ import _safe_main, main


def _json_lines(text):
    return [json.loads(line) for line in text.splitlines() if line.startswith('{"')]


def test_cli_demo_log_json(capsys):
    main(["--lat", "-33.9", "--lon", "18.4", "--demo", "--log-json", "--categories", "crime,weather"])
    out = capsys.readouterr().out
    lines = _json_lines(out)
    outcomes = [line for line in lines if "provider" in line]
    assert {o["category"] for o in outcomes} == {"crime", "weather"}
    assert all(o["status"] == "success" for o in outcomes)
    summary = [line for line in lines if "summary" in line][0]
    assert summary["succeeded"] == 2
    assert summary["summary"]["completeness"] == 100


def test_cli_writes_output_file(tmp_path, capsys):
    target = tmp_path / "out" / "profile.json"
    main(["--lat", "-26.1", "--lon", "28.05", "--demo", "--categories", "market", "--output", str(target)])
    data = json.loads(target.read_text(encoding="utf-8"))
    assert list(data["categories"]) == ["market"]
    assert data["query"]["latitude"] == -26.1
    assert json.loads(capsys.readouterr().out.strip()) == {"output": str(target)}


def test_cli_invalid_input_reports_error(capsys):
    with pytest.raises(SystemExit) as exc:
        _safe_main(["--lat", "100", "--lon", "0", "--demo"])
    assert exc.value.code == 1
    assert "error" in json.loads(capsys.readouterr().out.strip())


def test_cli_unknown_category_reports_error(capsys):
    with pytest.raises(SystemExit) as exc:
        _safe_main(["--lat", "1", "--lon", "1", "--demo", "--categories", "volcano"])
    assert exc.value.code == 1
    assert "volcano" in json.loads(capsys.readouterr().out.strip())["error"]

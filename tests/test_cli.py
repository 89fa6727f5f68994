import json

import pytest

import scripts.cli as cli
from vibecraft.config import Settings

from faces import HAPPY, build_frame


@pytest.fixture
def history_path(tmp_path, monkeypatch):
    path = tmp_path / "history.json"
    monkeypatch.setattr(cli, "Settings", lambda: Settings(HISTORY_PATH=str(path)))
    return path


def write_frame(tmp_path, payload):
    path = tmp_path / "frame.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_classify_and_record(tmp_path, history_path, capsys):
    frame = write_frame(tmp_path, build_frame(HAPPY).model_dump())
    assert cli.main(["classify", "--landmarks", frame, "--record"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["emotion"] == "happy"
    assert out["features"]["is_smiling"] is True

    assert cli.main(["history"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["history"][0]["happy"] == 1
    assert out["summary"]["dominant"] == "happy"


def test_classify_bare_point_list(tmp_path, history_path, capsys):
    pts = [[p.x, p.y] for p in build_frame(HAPPY).points]
    assert cli.main(["classify", "--landmarks", write_frame(tmp_path, pts)]) == 0
    assert json.loads(capsys.readouterr().out)["emotion"] == "happy"
    # not recorded without --record
    assert not history_path.exists()


def test_classify_missing_landmarks(tmp_path, history_path, capsys):
    assert cli.main(["classify", "--landmarks", write_frame(tmp_path, {"points": []})]) == 1
    err = json.loads(capsys.readouterr().err)
    assert err["error"] == "MissingLandmarksError"


def test_history_empty(history_path, capsys):
    assert cli.main(["history"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["history"] == []
    assert out["summary"]["days"] == 0
    assert out["summary"]["dominant"] is None


def test_classify_missing_file(tmp_path, history_path, capsys):
    assert cli.main(["classify", "--landmarks", str(tmp_path / "nope.json")]) == 1
    assert json.loads(capsys.readouterr().err)["error"] == "FileNotFoundError"


@pytest.mark.parametrize("text", ["{not json", '{"points": [{"x": "left"}]}', "[1, 2, 3]"])
def test_classify_invalid_file(tmp_path, history_path, capsys, text):
    path = tmp_path / "frame.json"
    path.write_text(text, encoding="utf-8")
    assert cli.main(["classify", "--landmarks", str(path)]) == 1
    assert "error" in json.loads(capsys.readouterr().err)


def test_classify_record_write_failure(tmp_path, monkeypatch, capsys):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    # history parent "directory" is a regular file
    monkeypatch.setattr(cli, "Settings", lambda: Settings(HISTORY_PATH=str(blocker / "history.json")))
    frame = write_frame(tmp_path, build_frame(HAPPY).model_dump())
    assert cli.main(["classify", "--landmarks", frame, "--record"]) == 1
    assert json.loads(capsys.readouterr().err)["error"] == "PersistenceError"

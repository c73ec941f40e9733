"""Command line importer."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from flashmaster.config import AppConfig
from tools import import_questions

from conftest import read_store

ROOT = Path(__file__).resolve().parents[1]
SAMPLE = ROOT / "data" / "sample_questions.json"


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(import_questions, "configure_logging", lambda _level: None)


@pytest.fixture
def config(tmp_path):
    return AppConfig(storage_path=tmp_path / "store.json")


def test_json_import(config, capsys):
    assert import_questions.run(["--json", str(SAMPLE)], config=config) == 0
    stored = read_store(config.storage_path)
    assert len(stored) == 3
    assert "3問" in capsys.readouterr().out


def test_data_option_overrides_path(config, tmp_path):
    target = tmp_path / "other.json"
    assert import_questions.run(["--json", str(SAMPLE), "--data", str(target)], config=config) == 0
    assert len(read_store(target)) == 3


def test_dry_run_does_not_write(config, capsys):
    assert import_questions.run(["--json", str(SAMPLE), "--dry-run"], config=config) == 0
    assert not config.storage_path.exists()
    out = capsys.readouterr().out
    assert "[DRY RUN] 3問" in out
    lines = [line for line in out.splitlines() if line.startswith("{")]
    assert len(lines) == 3
    assert "correctAnswer" in json.loads(lines[0])


def test_invalid_json_fails(config, tmp_path, capsys):
    bad = tmp_path / "bad.json"
    bad.write_text("{oops", encoding="utf-8")
    assert import_questions.run(["--json", str(bad)], config=config) == 1
    assert "JSON 形式が無効です" in capsys.readouterr().err


def test_list(config, capsys):
    import_questions.run(["--json", str(SAMPLE)], config=config)
    capsys.readouterr()
    assert import_questions.run(["--list"], config=config) == 0
    assert "題庫: 3問" in capsys.readouterr().out


def test_ai_sources_need_key(config, capsys):
    assert import_questions.run(["--topic", "歴史"], config=config) == 2
    assert "GEMINI_API_KEY" in capsys.readouterr().err


def test_topic_import_uses_client(config, fake_model, capsys):
    config.gemini_api_key = "test-key"
    fake_model.replies = [
        json.dumps(
            {
                "questions": [
                    {
                        "type": "true-false",
                        "text": "水は 100 度で沸騰する",
                        "options": ["True", "False"],
                        "correctAnswer": "True",
                    }
                ]
            }
        )
    ]
    assert import_questions.run(["--topic", "理科", "--count", "1"], config=config) == 0
    stored = read_store(config.storage_path)
    assert len(stored) == 1
    assert stored[0]["type"] == "true-false"
    assert "問題を 1 問作成" in fake_model.calls[0]["system"]


def test_source_is_required():
    with pytest.raises(SystemExit):
        import_questions.build_parser().parse_args([])

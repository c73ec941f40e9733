"""JSON / AI import paths."""

from __future__ import annotations

import json

import pytest

from flashmaster.exceptions import ImportFailed
from flashmaster.importer import (
    MSG_INVALID_JSON,
    MSG_NOTHING_GENERATED,
    import_from_topic,
    parse_json_payload,
    read_uploaded_file,
    run_import,
)
from flashmaster.models import QuestionType


def test_parse_array_resets_flags_and_fills_defaults():
    payload = json.dumps(
        [
            {"id": "keep", "text": "a", "correctAnswer": "b", "mastered": True, "inMistakeBook": True},
            {"question": "c", "correctAnswer": "d"},
        ]
    )
    questions = parse_json_payload(payload)
    assert len(questions) == 2
    assert questions[0].id == "keep"
    assert questions[1].id and questions[1].id != "keep"
    assert questions[1].text == "c"
    assert all(q.type is QuestionType.OPEN_ENDED for q in questions)
    assert not any(q.mastered or q.in_mistake_book for q in questions)


def test_parse_single_object():
    questions = parse_json_payload(
        '{"type": "multiple-choice", "text": "x", "options": ["A. 1", "B. 2"], "correctAnswer": "A"}'
    )
    assert len(questions) == 1
    assert questions[0].options == ["A. 1", "B. 2"]


@pytest.mark.parametrize("payload", ["{broken", "[1, 2]", '"text"'])
def test_parse_invalid(payload):
    with pytest.raises(ImportFailed, match="JSON"):
        parse_json_payload(payload)


def test_read_uploaded_file_handles_bom():
    assert read_uploaded_file("\ufeff[]".encode("utf-8")) == "[]"
    with pytest.raises(ImportFailed):
        read_uploaded_file(b"\xff\xfe\xfa")


def test_run_import_json_success():
    result = run_import("json", '[{"text": "a", "correctAnswer": "b"}]')
    assert result.success
    assert len(result.questions) == 1


def test_run_import_json_failure():
    result = run_import("json", "nope")
    assert not result.success
    assert result.error == MSG_INVALID_JSON


def test_run_import_blank_input():
    result = run_import("topic", "   ")
    assert not result.success


def test_run_import_ai_without_client():
    result = run_import("text", "some notes")
    assert not result.success
    assert "API" in result.error


def test_run_import_unknown_source():
    with pytest.raises(ValueError):
        run_import("csv", "a,b")


def test_topic_import(client, fake_model):
    fake_model.replies = [json.dumps({"questions": [{"type": "open-ended", "text": "t", "correctAnswer": "a"}]})]
    result = run_import("topic", " 日本史 ", client=client, count=3)
    assert result.success
    assert len(result.questions) == 1
    prompt = fake_model.calls[0]
    assert prompt["prompt"] == "テーマ: 日本史"
    assert "3 問" in prompt["system"]


def test_empty_ai_reply_is_an_error(client, fake_model):
    fake_model.replies = ['{"questions": []}']
    with pytest.raises(ImportFailed, match=MSG_NOTHING_GENERATED):
        import_from_topic(client, "topic")


def test_text_import_surfaces_gemini_error(client, fake_model):
    fake_model.replies = ["not json at all"]
    result = run_import("text", "raw notes", client=client)
    assert not result.success
    assert "解析に失敗" in result.error


def test_network_error_becomes_failed_result(client, fake_model):
    fake_model.replies = [ConnectionError("network down"), ConnectionError("network down")]
    result = run_import("topic", "x", client=client)
    assert not result.success
    assert "Gemini へのリクエストに失敗しました" in result.error
    assert "network down" in result.error

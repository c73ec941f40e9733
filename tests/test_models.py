"""Question record conversion."""

from __future__ import annotations

from flashmaster.models import Question, QuestionType


def test_from_dict_defaults():
    q = Question.from_dict({"text": "hello", "correctAnswer": "world"})
    assert q.id
    assert q.type is QuestionType.OPEN_ENDED
    assert q.options == []
    assert q.tags == []
    assert q.mastered is False
    assert q.in_mistake_book is False
    assert q.explanation is None


def test_unknown_type_and_question_alias():
    q = Question.from_dict(
        {"id": 7, "type": "essay", "question": "What?", "correctAnswer": 42, "options": ["x"]}
    )
    assert q.id == "7"
    assert q.type is QuestionType.OPEN_ENDED
    assert q.text == "What?"
    assert q.correct_answer == "42"
    assert q.options == []


def test_to_dict_uses_wire_keys():
    q = Question.from_dict(
        {
            "id": "q",
            "type": "true-false",
            "text": "sky is blue",
            "options": ["True", "False"],
            "correctAnswer": "True",
            "explanation": "Rayleigh",
            "tags": ["science"],
            "mastered": True,
            "inMistakeBook": True,
        }
    )
    data = q.to_dict()
    assert data["correctAnswer"] == "True"
    assert data["inMistakeBook"] is True
    assert data["mastered"] is True
    assert data["explanation"] == "Rayleigh"
    assert Question.from_dict(data) == q


def test_flags_and_labels():
    mc = Question.from_dict({"type": "multiple-choice", "text": "t", "correctAnswer": "A"})
    card = Question.from_dict({"type": "open-ended", "text": "t", "correctAnswer": "a"})
    assert mc.is_choice
    assert not card.is_choice
    assert mc.type_label == "選択問題"
    assert card.type_label == "フラッシュカード"

    mc.in_mistake_book = True
    assert mc.is_pending_mistake
    mc.mastered = True
    assert not mc.is_pending_mistake


def test_quoted_flags_are_not_true():
    q = Question.from_dict(
        {"text": "t", "correctAnswer": "a", "mastered": "false", "inMistakeBook": "true"}
    )
    assert q.mastered is False
    assert q.in_mistake_book is False

"""Shared fixtures: temporary JSON store, sample questions and a fake Gemini model."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from flashmaster import gemini
from flashmaster.library import QuestionLibrary
from flashmaster.models import Question
from flashmaster.storage import JsonStore


def make_question(qid: str, **overrides: Any) -> Question:
    data: Dict[str, Any] = {
        "id": qid,
        "type": "multiple-choice",
        "text": f"question {qid}",
        "options": ["A. apple", "B. banana", "C. cherry"],
        "correctAnswer": "A",
    }
    data.update(overrides)
    return Question.from_dict(data)


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "store.json"


@pytest.fixture
def store(store_path: Path) -> JsonStore:
    return JsonStore(store_path)


@pytest.fixture
def sample_questions() -> List[Question]:
    return [
        make_question("q1"),
        make_question("q2", correctAnswer="B. banana"),
        make_question(
            "q3",
            type="open-ended",
            text="capital of France?",
            options=[],
            correctAnswer="Paris",
        ),
    ]


@pytest.fixture
def library(store: JsonStore, sample_questions: List[Question]) -> QuestionLibrary:
    store.save(sample_questions)
    return QuestionLibrary(store)


def read_store(path: Path, key: str = "flashmaster_questions") -> List[Dict[str, Any]]:
    return json.loads(path.read_text(encoding="utf-8"))[key]


class FakeResponse:
    def __init__(self, text: str) -> None:
        self.text = text


class FakeModel:
    """Stand-in for ``genai.GenerativeModel``; replies are consumed in order."""

    replies: List[Any] = []
    calls: List[Dict[str, Any]] = []

    def __init__(self, model_name, system_instruction=None, generation_config=None):
        self.model_name = model_name
        self.system_instruction = system_instruction
        self.generation_config = generation_config

    def generate_content(self, prompt):
        FakeModel.calls.append(
            {
                "model": self.model_name,
                "system": self.system_instruction,
                "config": self.generation_config,
                "prompt": prompt,
            }
        )
        reply = FakeModel.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return FakeResponse(reply)


@pytest.fixture
def fake_model(monkeypatch):
    FakeModel.replies = []
    FakeModel.calls = []
    monkeypatch.setattr(gemini.genai, "GenerativeModel", FakeModel)
    monkeypatch.setattr(gemini.genai, "configure", lambda **_kwargs: None)
    monkeypatch.setattr(gemini.time, "sleep", lambda _s: None)
    return FakeModel


@pytest.fixture
def client(fake_model) -> gemini.GeminiClient:
    return gemini.GeminiClient("test-key", model_name="primary", fallback_models=["backup"])

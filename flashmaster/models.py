"""
models.py
======================

問題データと画面モードの定義。

JSON 上のキー名はブラウザ版と同じ camelCase を使う:

{
  "id": "3f0c...",
  "type": "multiple-choice" | "true-false" | "open-ended",
  "text": "問題文",
  "options": ["A. 選択肢1", "B. 選択肢2"],
  "correctAnswer": "A",
  "explanation": "解説",
  "tags": ["タグ"],
  "mastered": false,
  "inMistakeBook": false
}
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    OPEN_ENDED = "open-ended"

    @classmethod
    def parse(cls, value: Any) -> "QuestionType":
        """不明な値・欠損は open-ended 扱い。"""
        try:
            return cls(value)
        except ValueError:
            return cls.OPEN_ENDED


TYPE_LABELS: Dict[QuestionType, str] = {
    QuestionType.MULTIPLE_CHOICE: "選択問題",
    QuestionType.TRUE_FALSE: "正誤問題",
    QuestionType.OPEN_ENDED: "フラッシュカード",
}


class AppMode(str, Enum):
    DASHBOARD = "dashboard"
    QUIZ = "quiz"
    IMPORT = "import"
    MISTAKE_NOTEBOOK = "mistake-notebook"
    MASTERED_NOTEBOOK = "mastered-notebook"
    MOCK_EXAM = "mock-exam"
    SETTINGS = "settings"


def new_question_id() -> str:
    return str(uuid.uuid4())


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _as_str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [_as_text(v) for v in value if v is not None]


@dataclass
class Question:
    """1 問分のレコード。mastered / in_mistake_book は互いに独立したフラグ。"""

    id: str
    type: QuestionType
    text: str
    correct_answer: str
    options: List[str] = field(default_factory=list)
    explanation: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    mastered: bool = False
    in_mistake_book: bool = False

    # ------------------------------------------------------------------
    # 変換
    # ------------------------------------------------------------------
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Question":
        """
        dict から Question を作る。

        - id が無ければ新しい UUID
        - type が不明なら open-ended
        - open-ended の options は常に空
        - "question" キーは "text" の別名として受け付ける
        """
        if not isinstance(data, dict):
            raise TypeError(f"question must be an object, got {type(data).__name__}")

        qtype = QuestionType.parse(data.get("type"))
        text = data.get("text")
        if text is None:
            text = data.get("question")

        answer = data.get("correctAnswer")
        if answer is None:
            answer = data.get("correct_answer")

        options = _as_str_list(data.get("options"))
        if qtype is QuestionType.OPEN_ENDED:
            options = []

        explanation = data.get("explanation")

        return cls(
            id=_as_text(data.get("id")) or new_question_id(),
            type=qtype,
            text=_as_text(text),
            correct_answer=_as_text(answer),
            options=options,
            explanation=_as_text(explanation) if explanation else None,
            tags=_as_str_list(data.get("tags")),
            mastered=data.get("mastered") is True,
            in_mistake_book=data.get("inMistakeBook") is True,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "text": self.text,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
            "tags": list(self.tags),
            "mastered": self.mastered,
            "inMistakeBook": self.in_mistake_book,
        }
        if self.explanation:
            data["explanation"] = self.explanation
        return data

    # ------------------------------------------------------------------
    # 表示用
    # ------------------------------------------------------------------
    @property
    def is_choice(self) -> bool:
        """選択肢から選ぶ形式か (選択問題 / 正誤問題)。"""
        return self.type in (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE)

    @property
    def type_label(self) -> str:
        return TYPE_LABELS[self.type]

    @property
    def is_pending_mistake(self) -> bool:
        """間違いノートに表示される状態か。"""
        return self.in_mistake_book and not self.mastered


@dataclass
class ImportResult:
    success: bool
    questions: List[Question] = field(default_factory=list)
    error: Optional[str] = None

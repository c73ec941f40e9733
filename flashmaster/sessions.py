"""
sessions.py
=====================================

練習 (クイズ) と模擬試験の進行状態を管理するモジュール。

QuizSession:
    1 問ずつ出題し、選択問題は「答え合わせ」、フラッシュカードは「めくる」。
    間違えたら on_mistake、習得したら on_master を呼ぶ。

ExamSession:
    全問に回答してから一括で採点し、点数 (0〜100) と誤答 id を返す。

どちらも Streamlit の st.session_state にそのまま入れて使う前提なので、
画面描画には一切関与しない。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .matching import is_match
from .models import Question

QuestionCallback = Callable[[str], None]


def _noop(_qid: str) -> None:
    return None


def percent_score(correct: int, total: int) -> int:
    """正答率を四捨五入 (0.5 は切り上げ) した整数パーセント。"""
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


# ----------------------------------------------------------------------
#  練習
# ----------------------------------------------------------------------
@dataclass
class QuizSession:
    questions: List[Question]
    title: str = "練習モード"
    on_master: QuestionCallback = _noop
    on_mistake: QuestionCallback = _noop

    current_index: int = 0
    is_flipped: bool = False
    selected_option: Optional[str] = None
    is_evaluated: bool = False
    ai_explanation: Optional[str] = None
    finished: bool = False

    def __post_init__(self) -> None:
        self.questions = list(self.questions)
        if not self.questions:
            self.finished = True

    # ---------------------------------------------------------
    # 参照
    # ---------------------------------------------------------
    @property
    def current(self) -> Optional[Question]:
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def progress(self) -> float:
        if not self.questions:
            return 0.0
        return (self.current_index + 1) / len(self.questions)

    @property
    def is_last(self) -> bool:
        return self.current_index >= len(self.questions) - 1

    @property
    def is_selected_correct(self) -> bool:
        q = self.current
        return q is not None and is_match(self.selected_option, q.correct_answer)

    # ---------------------------------------------------------
    # 移動
    # ---------------------------------------------------------
    def _go_to(self, index: int) -> None:
        # 問題が変わったら回答状態はすべてリセット
        self.current_index = index
        self.is_flipped = False
        self.selected_option = None
        self.is_evaluated = False
        self.ai_explanation = None

    def next(self) -> None:
        """次の問題へ。最後の問題なら finished にする。"""
        if self.current_index < len(self.questions) - 1:
            self._go_to(self.current_index + 1)
        else:
            self.finished = True

    def prev(self) -> None:
        if self.current_index > 0:
            self._go_to(self.current_index - 1)

    # ---------------------------------------------------------
    # 回答
    # ---------------------------------------------------------
    def select(self, option: str) -> None:
        if self.is_evaluated:
            return
        self.selected_option = option

    def check_answer(self) -> bool:
        """答え合わせ。不正解 (未選択を含む) なら間違いノートへ。"""
        self.is_evaluated = True
        q = self.current
        if q is None:
            return False
        correct = is_match(self.selected_option, q.correct_answer)
        if not correct:
            self.on_mistake(q.id)
        return correct

    def flip(self) -> None:
        self.is_flipped = True

    def unflip(self) -> None:
        self.is_flipped = False

    def forget(self) -> None:
        """フラッシュカードで「覚えていない」。"""
        q = self.current
        self.is_flipped = False
        if q is None:
            return
        self.on_mistake(q.id)

    def master(self) -> None:
        """習得済みにして次の問題へ。"""
        q = self.current
        if q is not None:
            self.on_master(q.id)
        self.next()


# ----------------------------------------------------------------------
#  模擬試験
# ----------------------------------------------------------------------
@dataclass
class ExamSession:
    questions: List[Question]

    current_index: int = 0
    answers: Dict[str, str] = field(default_factory=dict)
    submitted: bool = False
    wrong_ids: List[str] = field(default_factory=list)
    score: int = 0

    def __post_init__(self) -> None:
        self.questions = list(self.questions)
        if not self.questions:
            raise ValueError("exam needs at least one question")

    @property
    def current(self) -> Question:
        return self.questions[self.current_index]

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def is_last(self) -> bool:
        return self.current_index == len(self.questions) - 1

    @property
    def correct_count(self) -> int:
        return len(self.questions) - len(self.wrong_ids)

    def answer_for(self, qid: str) -> Optional[str]:
        return self.answers.get(qid)

    def is_wrong(self, qid: str) -> bool:
        return qid in self.wrong_ids

    # ---------------------------------------------------------
    # 操作
    # ---------------------------------------------------------
    def answer(self, text: str) -> None:
        """現在の問題への回答を記録する。提出後は無視。"""
        if self.submitted:
            return
        self.answers[self.current.id] = text

    def next(self) -> None:
        if self.current_index < len(self.questions) - 1:
            self.current_index += 1

    def prev(self) -> None:
        if self.current_index > 0:
            self.current_index -= 1

    def submit(self) -> List[str]:
        """
        一括採点する。未回答は不正解扱い。
        誤答 id のリストを返す (呼び出し側で間違いノートに入れる)。
        """
        if self.submitted:
            return list(self.wrong_ids)

        wrong: List[str] = []
        for q in self.questions:
            user_answer = self.answers.get(q.id)
            if not (user_answer and is_match(user_answer, q.correct_answer)):
                wrong.append(q.id)

        self.wrong_ids = wrong
        self.score = percent_score(len(self.questions) - len(wrong), len(self.questions))
        self.submitted = True
        # 見直しのため先頭に戻す
        self.current_index = 0
        return list(wrong)

"""
state.py
======================

画面モードと現在の練習 / 試験をまとめて持つ「状態コンテナ」。

app.py は st.session_state にこの AppState を 1 つだけ置き、
ボタンが押されたらここのメソッドを呼んでから再描画する。
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .library import QuestionLibrary
from .models import AppMode, Question
from .sessions import ExamSession, QuizSession

logger = logging.getLogger(__name__)


class AppState:
    def __init__(self, library: QuestionLibrary, sample_size: int = 30):
        self.library = library
        self.sample_size = sample_size
        self.mode: AppMode = AppMode.DASHBOARD
        self.quiz: Optional[QuizSession] = None
        self.exam: Optional[ExamSession] = None
        self.exam_recorded = False

    # ------------------------------------------------------------------
    # 画面遷移
    # ------------------------------------------------------------------
    def go_home(self) -> None:
        self.mode = AppMode.DASHBOARD

    def open_import(self) -> None:
        self.mode = AppMode.IMPORT

    def open_settings(self) -> None:
        self.mode = AppMode.SETTINGS

    def open_mistake_notebook(self) -> bool:
        if not self.library.mistakes():
            return False
        self.mode = AppMode.MISTAKE_NOTEBOOK
        return True

    def open_mastered_notebook(self) -> bool:
        if not self.library.mastered():
            return False
        self.mode = AppMode.MASTERED_NOTEBOOK
        return True

    # ------------------------------------------------------------------
    # 練習の開始
    # ------------------------------------------------------------------
    def _start_quiz(self, questions: List[Question], title: str) -> None:
        self.quiz = QuizSession(
            questions=questions,
            title=title,
            on_master=self.library.mark_mastered,
            on_mistake=self.library.mark_mistake,
        )
        self.mode = AppMode.QUIZ
        logger.info("練習開始: %s (%d 問)", title, len(questions))

    def start_practice(self) -> None:
        """全問を登録順に練習。"""
        self._start_quiz(list(self.library.questions), "順番に練習")

    def start_random_practice(self) -> bool:
        if not len(self.library):
            return False
        selected = self.library.sample(self.sample_size)
        self._start_quiz(selected, f"ランダムテスト ({len(selected)}問)")
        return True

    def start_mistake_review(self) -> None:
        self._start_quiz(self.library.mistakes(), "間違えた問題の復習")

    def start_mastered_review(self) -> None:
        self._start_quiz(self.library.mastered(), "習得済みの問題の復習")

    # ------------------------------------------------------------------
    # 模擬試験
    # ------------------------------------------------------------------
    def start_mock_exam(self) -> bool:
        if not len(self.library):
            return False
        self.exam = ExamSession(self.library.sample(self.sample_size))
        self.exam_recorded = False
        self.mode = AppMode.MOCK_EXAM
        logger.info("模擬試験開始 (%d 問)", self.exam.total)
        return True

    def finish_exam(self) -> List[str]:
        """採点して誤答を間違いノートに入れる。誤答 id を返す。"""
        if self.exam is None:
            return []
        wrong_ids = self.exam.submit()
        if not self.exam_recorded:
            self.library.record_exam_mistakes(wrong_ids)
            self.exam_recorded = True
            logger.info("模擬試験終了: %d 点 (誤答 %d 問)", self.exam.score, len(wrong_ids))
        return wrong_ids

    # ------------------------------------------------------------------
    # 題庫の変更
    # ------------------------------------------------------------------
    def handle_import(self, questions: List[Question]) -> int:
        added = self.library.import_questions(questions)
        self.mode = AppMode.DASHBOARD
        return added

    def delete_question(self, qid: str) -> bool:
        return self.library.delete(qid)

    def clear_all(self) -> None:
        self.library.clear()
        self.quiz = None
        self.exam = None
        self.mode = AppMode.DASHBOARD

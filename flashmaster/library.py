"""
library.py
===========================

問題一覧 (題庫) をメモリ上に保持し、変更のたびに JsonStore へ書き戻すモジュール。

提供する操作:
- インポート (末尾に追加)
- 削除 / 全削除
- 習得済みにする / 間違いノートに入れる
- 模擬試験の誤答をまとめて間違いノートへ
- ランダム抽出
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Dict, Iterable, List, Optional, Set

from .models import Question, new_question_id
from .storage import JsonStore

logger = logging.getLogger(__name__)


def _reassign_duplicate_ids(questions: List[Question], seen: Set[str]) -> int:
    """seen や先行する問題と重なる id を新しい id に振り直す。振り直した件数を返す。"""
    changed = 0
    for q in questions:
        if q.id in seen:
            old = q.id
            q.id = new_question_id()
            logger.warning("重複した id を振り直しました: %s -> %s", old, q.id)
            changed += 1
        seen.add(q.id)
    return changed


class QuestionLibrary:
    """
    問題一覧のラッパークラス。

    questions は常に保存順。外から直接書き換えず、メソッド経由で変更すること。
    """

    def __init__(self, store: JsonStore, rng: Optional[random.Random] = None):
        self.store = store
        self.rng = rng or random.Random()
        self.questions: List[Question] = store.load()
        logger.info("%d 問を読み込みました (%s)", len(self.questions), store.path)
        if _reassign_duplicate_ids(self.questions, set()):
            self._save()

    def __len__(self) -> int:
        return len(self.questions)

    def __iter__(self):
        return iter(self.questions)

    def _save(self) -> None:
        self.store.save(self.questions)

    def get(self, qid: str) -> Optional[Question]:
        for q in self.questions:
            if q.id == qid:
                return q
        return None

    # ------------------------------------------------------------------
    # 追加 / 削除
    # ------------------------------------------------------------------
    def import_questions(self, new_questions: Iterable[Question]) -> int:
        """末尾に追加して保存する。追加した件数を返す。"""
        added = list(new_questions)
        _reassign_duplicate_ids(added, {q.id for q in self.questions})
        self.questions.extend(added)
        self._save()
        logger.info("%d 問を追加しました", len(added))
        return len(added)

    def delete(self, qid: str) -> bool:
        before = len(self.questions)
        self.questions = [q for q in self.questions if q.id != qid]
        if len(self.questions) == before:
            return False
        self._save()
        return True

    def clear(self) -> None:
        self.questions = []
        self._save()
        logger.info("すべての問題を削除しました")

    # ------------------------------------------------------------------
    # 状態の更新
    # ------------------------------------------------------------------
    def _update(self, ids: Iterable[str], change: Callable[[Question], None]) -> int:
        targets = set(ids)
        changed = 0
        for q in self.questions:
            if q.id in targets:
                change(q)
                changed += 1
        if changed:
            self._save()
        return changed

    @staticmethod
    def _set_mastered(q: Question) -> None:
        # 習得したら間違いノートからも外す
        q.mastered = True
        q.in_mistake_book = False

    @staticmethod
    def _set_mistake(q: Question) -> None:
        q.in_mistake_book = True
        q.mastered = False

    def mark_mastered(self, qid: str) -> bool:
        return self._update([qid], self._set_mastered) > 0

    def mark_mistake(self, qid: str) -> bool:
        return self._update([qid], self._set_mistake) > 0

    def record_exam_mistakes(self, wrong_ids: Iterable[str]) -> int:
        """模擬試験で間違えた問題をまとめて間違いノートに入れる。"""
        wrong_ids = list(wrong_ids)
        if not wrong_ids:
            return 0
        return self._update(wrong_ids, self._set_mistake)

    # ------------------------------------------------------------------
    # 抽出
    # ------------------------------------------------------------------
    def mistakes(self) -> List[Question]:
        return [q for q in self.questions if q.is_pending_mistake]

    def mastered(self) -> List[Question]:
        return [q for q in self.questions if q.mastered]

    def sample(self, limit: int = 30) -> List[Question]:
        """重複なしで最大 limit 問をランダムに選ぶ。"""
        count = min(limit, len(self.questions))
        if count <= 0:
            return []
        return self.rng.sample(self.questions, count)

    def stats(self) -> Dict[str, int]:
        """ダッシュボード用の件数。"""
        return {
            "total": len(self.questions),
            "mastered": len(self.mastered()),
            "mistakes": len(self.mistakes()),
        }

"""
storage.py
======================

問題一覧を保存する「単一キーの JSON ストア」。

ファイルの構造:

{
  "flashmaster_questions": [ {...Question...}, ... ]
}

ブラウザ版の localStorage と同じく、キー 1 つに配列をまるごと保存する。
他のキーが入っていても触らずに残す。

方針:
- 読み込みで失敗しても例外は投げない (空リスト + warning ログ)
- 壊れたレコードは 1 件ずつスキップ
- 書き込みは一時ファイル → replace でまとめて差し替える
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .config import DEFAULT_STORAGE_KEY
from .models import Question

logger = logging.getLogger(__name__)


class JsonStore:
    """
    JSON ファイル 1 つを key-value ストアとして扱うクラス。
    """

    def __init__(self, path: Path, key: str = DEFAULT_STORAGE_KEY):
        self.path = Path(path)
        self.key = key

    # ------------------------------------------------------------------
    # ロード
    # ------------------------------------------------------------------
    def _read_document(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                doc = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("保存データを読み込めませんでした (%s): %s", self.path, exc)
            return {}
        if not isinstance(doc, dict):
            logger.warning("保存データの形式が不正です (%s)", self.path)
            return {}
        return doc

    def load(self) -> List[Question]:
        """保存されている問題一覧を返す。無い・壊れている場合は空リスト。"""
        raw = self._read_document().get(self.key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("キー %s の値が配列ではありません", self.key)
            return []

        questions: List[Question] = []
        for i, item in enumerate(raw):
            try:
                questions.append(Question.from_dict(item))
            except (TypeError, ValueError) as exc:
                # 壊れたレコードは無視する
                logger.warning("%d 件目のレコードをスキップしました: %s", i, exc)
        return questions

    # ------------------------------------------------------------------
    # セーブ
    # ------------------------------------------------------------------
    def save(self, questions: Iterable[Question]) -> None:
        """問題一覧をまるごと書き込む。"""
        doc = self._read_document()
        doc[self.key] = [q.to_dict() for q in questions]

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(doc, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

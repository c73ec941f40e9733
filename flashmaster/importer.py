"""
importer.py
===========================

問題のインポート処理。

入力元は 3 種類:
- "json"  : 構造化された問題データ (配列 / 単体オブジェクト)
- "text"  : 任意のテキストを Gemini に渡して問題を抽出
- "topic" : テーマを Gemini に渡して問題を生成

どの入力元でも、新しく取り込む問題は mastered / inMistakeBook が false になる。
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

from .exceptions import FlashMasterError, ImportFailed
from .gemini import GeminiClient
from .models import ImportResult, Question, QuestionType, new_question_id

logger = logging.getLogger(__name__)

SOURCES = ("json", "text", "topic")

MSG_INVALID_JSON = "JSON 形式が無効です。構文を確認してください。"
MSG_NOTHING_GENERATED = "AI が問題を生成できませんでした。別の入力をお試しください。"


# ----------------------------------------------------------------------
#  JSON
# ----------------------------------------------------------------------
def parse_json_payload(text: str) -> List[Question]:
    """
    JSON 文字列を問題リストにする。

    - 配列でも単体のオブジェクトでもよい
    - id が無ければ新しい UUID
    - type が無ければ open-ended
    """
    try:
        parsed: Any = json.loads(text)
    except ValueError as exc:
        raise ImportFailed(MSG_INVALID_JSON) from exc

    items = parsed if isinstance(parsed, list) else [parsed]

    questions: List[Question] = []
    for item in items:
        if not isinstance(item, dict):
            raise ImportFailed(MSG_INVALID_JSON)
        data = dict(item)
        data["id"] = data.get("id") or new_question_id()
        data["mastered"] = False
        data["inMistakeBook"] = False
        data["type"] = data.get("type") or QuestionType.OPEN_ENDED.value
        questions.append(Question.from_dict(data))
    return questions


def read_uploaded_file(content: bytes) -> str:
    """アップロードされたファイルを UTF-8 (BOM 可) の文字列にする。"""
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ImportFailed("ファイルを UTF-8 として読み込めませんでした。") from exc


# ----------------------------------------------------------------------
#  AI
# ----------------------------------------------------------------------
def import_from_text(client: GeminiClient, raw_text: str) -> List[Question]:
    if not raw_text.strip():
        return []
    questions = client.parse_raw_text_to_questions(raw_text)
    if not questions:
        raise ImportFailed(MSG_NOTHING_GENERATED)
    return questions


def import_from_topic(client: GeminiClient, topic: str, count: int = 5) -> List[Question]:
    if not topic.strip():
        return []
    questions = client.generate_questions_from_topic(topic.strip(), count=count)
    if not questions:
        raise ImportFailed(MSG_NOTHING_GENERATED)
    return questions


# ----------------------------------------------------------------------
#  画面 / CLI 共通の入口
# ----------------------------------------------------------------------
def run_import(
    source: str,
    text: str,
    client: Optional[GeminiClient] = None,
    count: int = 5,
) -> ImportResult:
    """
    入力元に応じてインポートを実行し、ImportResult にまとめて返す。
    例外は投げず、失敗時は error にメッセージを入れる。
    """
    if source not in SOURCES:
        raise ValueError(f"unknown import source: {source}")

    if not text.strip():
        return ImportResult(success=False, error="入力が空です。")

    try:
        if source == "json":
            questions = parse_json_payload(text)
        else:
            if client is None:
                raise ImportFailed("AI 機能は利用できません。API キーを設定してください。")
            if source == "text":
                questions = import_from_text(client, text)
            else:
                questions = import_from_topic(client, text, count=count)
    except FlashMasterError as exc:
        logger.warning("インポートに失敗しました (%s): %s", source, exc)
        return ImportResult(success=False, error=str(exc))

    return ImportResult(success=True, questions=questions)

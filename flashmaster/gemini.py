"""
gemini.py
======================

Google Gemini API の呼び出しをまとめたモジュール。

要件:
- テーマから問題を生成する (JSON モード)
- 貼り付けたテキストから問題を抽出する (JSON モード)
- 回答に対する短い解説を生成する (テキストモード)
- 優先モデルで失敗した場合は設定されたモデルへ順番にフェールオーバー
- 失敗は GeminiError にまとめ、画面にそのまま出せるメッセージを付ける
"""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, Dict, List, Optional

import google.generativeai as genai
from google.api_core.exceptions import (
    GoogleAPIError,
    PermissionDenied,
    ResourceExhausted,
    Unauthenticated,
)

from .config import DEFAULT_MODEL, AppConfig
from .exceptions import GeminiError
from .models import Question, QuestionType, new_question_id

logger = logging.getLogger(__name__)

# 長い資料でも 1 回で投げられるよう上限は大きめ
RAW_TEXT_LIMIT = 300_000

MSG_NO_KEY = "API キーが設定されていません。環境変数 GEMINI_API_KEY を設定してください。"
MSG_BAD_KEY = "API キーが無効です。Google AI Studio のキーが正しいか確認してください。"
MSG_RATE_LIMIT = "リクエストが多すぎます (429)。無料枠の上限に達した可能性があります。しばらくしてから再試行してください。"
MSG_EMPTY = "Gemini から空の応答が返されました。"
MSG_TOPIC_FORMAT = "AI の応答形式が正しくありません。もう一度お試しください。"
MSG_TEXT_FORMAT = "AI による解析に失敗しました。テキストの内容が明確か確認してください。"


# ----------------------------------------------------------------------
#  プロンプト
# ----------------------------------------------------------------------
_QUESTION_SCHEMA = """
問題オブジェクトの構造:
{
  "type": "multiple-choice" | "true-false" | "open-ended",
  "text": "問題文",
  "options": ["A. 選択肢1", "B. 選択肢2", ...],
  "correctAnswer": "正解",
  "explanation": "解説",
  "tags": ["タグ"]
}
"""


def build_topic_prompt(count: int) -> str:
    return f"""あなたはプロの出題者です。ユーザーが指定したテーマについて問題を {count} 問作成してください。
返答は "questions" 配列を含む JSON オブジェクトでなければなりません。
{_QUESTION_SCHEMA}
内容は正確にし、日本語で出力してください。選択問題では選択肢の記号 (A. B. C. など) を残してください。"""


TEXT_PARSE_PROMPT = f"""あなたは賢いデータ解析ツールです。与えられたテキストを分析し、クイズの問題を抽出してください。
返答は "questions" 配列を含む JSON オブジェクトでなければなりません。
{_QUESTION_SCHEMA}
重要なルール:
1. 原文に選択肢の記号 (A. B. C. や 1. 2. 3. など) がある場合は、"options" 配列の中でも必ず残してください。
2. "correctAnswer" は選択肢の記号 (例: "A") でも、選択肢の全文でも構いません。
3. 原文と同じ言語で出力してください。"""


EXPLAIN_PROMPT = (
    "あなたはプロの家庭教師です。ユーザーの回答がなぜ正しいのか、または間違っているのかを説明してください。"
    "長さは150字程度に抑え、要点と重要な知識だけを簡潔に示してください。"
)


# ----------------------------------------------------------------------
#  応答の解析
# ----------------------------------------------------------------------
_FENCE_RE = re.compile(r"^```(?:json)?\s*([\s\S]*?)\s*```$", re.IGNORECASE)


def clean_json_string(text: Optional[str]) -> str:
    """```json ... ``` で囲まれていたら中身だけを取り出す。"""
    if not text:
        return "{}"
    stripped = text.strip()
    m = _FENCE_RE.match(stripped)
    return m.group(1) if m and m.group(1) else stripped


def parse_questions_reply(text: str, error_message: str) -> List[Question]:
    """
    {"questions": [...]} 形式の応答を Question のリストにする。

    - 各問題に新しい id を振り、mastered / inMistakeBook は false
    - open-ended の options は空にする
    - questions キーが無ければ空リスト
    """
    try:
        parsed = json.loads(clean_json_string(text))
    except ValueError as exc:
        logger.warning("JSON の解析に失敗しました: %s", exc)
        raise GeminiError(error_message) from exc

    if not isinstance(parsed, dict):
        raise GeminiError(error_message)

    items = parsed.get("questions") or []
    if not isinstance(items, list):
        logger.warning("questions が配列ではありません: %r", type(items))
        raise GeminiError(error_message)

    questions: List[Question] = []
    for item in items:
        if not isinstance(item, dict):
            raise GeminiError(error_message)
        data: Dict[str, Any] = dict(item)
        data["id"] = new_question_id()
        data["mastered"] = False
        data["inMistakeBook"] = False
        q = Question.from_dict(data)
        if q.type is QuestionType.OPEN_ENDED:
            q.options = []
        questions.append(q)
    return questions


def _looks_like_key_error(exc: Exception) -> bool:
    msg = str(exc)
    return "401" in msg or "API key" in msg or "API_KEY_INVALID" in msg


# ----------------------------------------------------------------------
#  クライアント
# ----------------------------------------------------------------------
class GeminiClient:
    """
    Gemini 呼び出しのクラス。

    主な機能:
    - list_models(): generateContent が使えるモデル一覧
    - generate_questions_from_topic(): テーマから問題生成
    - parse_raw_text_to_questions(): テキストから問題抽出
    - explain_answer(): 回答の解説 (失敗しても例外を投げない)
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = DEFAULT_MODEL,
        fallback_models: Optional[List[str]] = None,
    ):
        self.api_key = api_key
        self.model_names: List[str] = []
        for name in [model_name, *(fallback_models or [])]:
            if name and name not in self.model_names:
                self.model_names.append(name)
        if api_key:
            genai.configure(api_key=api_key)

    @classmethod
    def from_config(cls, config: AppConfig, model_name: Optional[str] = None) -> "GeminiClient":
        return cls(
            api_key=config.gemini_api_key,
            model_name=model_name or config.gemini_model,
            fallback_models=config.fallback_models,
        )

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    # ------------------------------------------------------------
    # モデル一覧取得
    # ------------------------------------------------------------
    def list_models(self) -> List[str]:
        """
        generateContent に対応したモデル名 (models/ を除いたもの) を名前の逆順で返す。
        取得できない場合は空リスト。
        """
        if not self.api_key:
            return []
        try:
            response = genai.list_models()
            names = [
                m.name.split("/", 1)[-1]
                for m in response
                if "generateContent" in getattr(m, "supported_generation_methods", [])
            ]
        except Exception as exc:
            logger.warning("モデル一覧を取得できませんでした: %s", exc)
            return []
        return sorted(names, reverse=True)

    # ------------------------------------------------------------
    # 共通の呼び出し (フェールオーバーつき)
    # ------------------------------------------------------------
    def _call(self, system_prompt: str, user_prompt: str, json_mode: bool) -> str:
        if not self.api_key:
            raise GeminiError(MSG_NO_KEY)
        if not user_prompt:
            raise GeminiError("ユーザーメッセージがありません。")

        generation_config = genai.GenerationConfig(
            response_mime_type="application/json" if json_mode else "text/plain",
            # JSON のときは構造を安定させるため低め
            temperature=0.2 if json_mode else 0.7,
        )

        last_error: Optional[Exception] = None
        for model_name in self.model_names:
            try:
                model = genai.GenerativeModel(
                    model_name,
                    system_instruction=system_prompt,
                    generation_config=generation_config,
                )
                response = model.generate_content(user_prompt)
                text = response.text
            except ResourceExhausted as exc:
                logger.warning("Gemini のクォータ上限 (%s): %s", model_name, exc)
                raise GeminiError(MSG_RATE_LIMIT) from exc
            except (Unauthenticated, PermissionDenied) as exc:
                logger.warning("Gemini の認証に失敗しました: %s", exc)
                raise GeminiError(MSG_BAD_KEY) from exc
            except GoogleAPIError as exc:
                if _looks_like_key_error(exc):
                    logger.warning("Gemini の認証に失敗しました: %s", exc)
                    raise GeminiError(MSG_BAD_KEY) from exc
                # API エラー → 次のモデルへフェールオーバー
                logger.warning("Gemini API エラー (%s): %s", model_name, exc)
                last_error = exc
                time.sleep(0.3)
                continue
            except ValueError as exc:
                # ブロックされた応答などで response.text が取れない
                logger.warning("Gemini の応答を読み取れませんでした (%s): %s", model_name, exc)
                last_error = exc
                continue
            except Exception as exc:
                # 通信エラーなど API 以外の例外も次のモデルへ
                logger.exception("Gemini 呼び出し中に予期しないエラー (%s)", model_name)
                last_error = exc
                continue

            if not text:
                raise GeminiError(MSG_EMPTY)
            return text

        raise GeminiError(f"Gemini へのリクエストに失敗しました: {last_error}")

    # ------------------------------------------------------------
    # 公開メソッド
    # ------------------------------------------------------------
    def generate_questions_from_topic(self, topic: str, count: int = 5) -> List[Question]:
        reply = self._call(build_topic_prompt(count), f"テーマ: {topic}", json_mode=True)
        return parse_questions_reply(reply, MSG_TOPIC_FORMAT)

    def parse_raw_text_to_questions(self, raw_text: str) -> List[Question]:
        reply = self._call(
            TEXT_PARSE_PROMPT,
            f"テキスト:\n{raw_text[:RAW_TEXT_LIMIT]}",
            json_mode=True,
        )
        return parse_questions_reply(reply, MSG_TEXT_FORMAT)

    def explain_answer(self, question: str, user_answer: str, correct_answer: str) -> str:
        """解説文を返す。失敗した場合も例外ではなくメッセージ文字列を返す。"""
        user_prompt = (
            f"問題: {question}\n"
            f"ユーザーの回答: {user_answer}\n"
            f"正解: {correct_answer}\n"
            "ほどよい長さの解説をお願いします:"
        )
        try:
            reply = self._call(EXPLAIN_PROMPT, user_prompt, json_mode=False)
        except GeminiError as exc:
            logger.warning("解説の生成に失敗しました: %s", exc)
            return f"解説を取得できませんでした: {exc}"
        return reply or "解説はありません"

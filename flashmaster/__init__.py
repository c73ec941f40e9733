"""
flashmaster パッケージ
======================

このパッケージは、FlashMaster AI (フラッシュカード / クイズ学習ツール) の内部ロジックを提供する。

主な役割:
- 設定管理（config）
- 問題データの定義（models）
- 単一キーの JSON ストア（storage）
- 題庫の操作: インポート・削除・習得・間違いノート・ランダム抽出（library）
- 解答の照合（matching）
- Gemini API 呼び出し（gemini）
- インポート処理（importer）
- 練習 / 模擬試験の進行（sessions）
- 画面モードの状態コンテナ（state）
- UI コンポーネント（ui）

app.py は Streamlit UI のみを担当し、内部ロジックはすべて本パッケージから呼ぶ。
ui は streamlit を import するので、ここでは読み込まない。
"""

from .config import AppConfig
from .exceptions import FlashMasterError, GeminiError, ImportFailed
from .gemini import GeminiClient
from .importer import parse_json_payload, run_import
from .library import QuestionLibrary
from .matching import is_match
from .models import AppMode, ImportResult, Question, QuestionType
from .sessions import ExamSession, QuizSession
from .state import AppState
from .storage import JsonStore

__all__ = [
    "AppConfig",
    "AppMode",
    "AppState",
    "ExamSession",
    "FlashMasterError",
    "GeminiClient",
    "GeminiError",
    "ImportFailed",
    "ImportResult",
    "JsonStore",
    "Question",
    "QuestionLibrary",
    "QuestionType",
    "QuizSession",
    "is_match",
    "parse_json_payload",
    "run_import",
]

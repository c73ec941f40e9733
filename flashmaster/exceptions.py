"""
exceptions.py
=============

アプリ内で投げる例外。UI 側はこれらを捕まえて st.error でメッセージを出す。
メッセージはそのまま画面に表示できる文言にしておくこと。
"""

from __future__ import annotations


class FlashMasterError(Exception):
    """アプリ共通の基底例外。"""


class GeminiError(FlashMasterError):
    """Gemini 呼び出しの失敗 (キー未設定・認証・429・応答形式不正など)。"""


class ImportFailed(FlashMasterError):
    """問題のインポートに失敗した。"""

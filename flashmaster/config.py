"""
config.py
=========

アプリ全体で利用する設定値を一元管理する。
Gemini API キー、モデル名、保存先ファイル、出題数などは
すべてこのクラスを通じて取得する。

本ファイルは app.py と tools/import_questions.py の共通設定でもある。

優先順位:
1. 環境変数 (GEMINI_API_KEY / API_KEY / FLASHMASTER_DATA)
2. ルートの config.toml
3. 下記のデフォルト値
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml

logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# 基本パス定義
# ------------------------------------------------------------

ROOT_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = ROOT_DIR / "data"
CONFIG_TOML_PATH = ROOT_DIR / "config.toml"

DEFAULT_STORAGE_KEY = "flashmaster_questions"
DEFAULT_MODEL = "gemini-2.5-flash"


# ------------------------------------------------------------
# config.toml
# ------------------------------------------------------------

def load_toml_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    config.toml を読み込む。
    ファイルが無い、または壊れている場合は空 dict を返す。
    """
    path = path or CONFIG_TOML_PATH
    if not path.exists():
        return {}
    try:
        data = toml.load(str(path))
    except (toml.TomlDecodeError, OSError) as exc:
        logger.warning("config.toml を読み込めませんでした: %s", exc)
        return {}
    return data if isinstance(data, dict) else {}


def _section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = cfg.get(name)
    return value if isinstance(value, dict) else {}


# ------------------------------------------------------------
# AppConfig
# ------------------------------------------------------------

@dataclass
class AppConfig:
    """
    アプリ設定クラス。

    - API キーの読み取り
    - 保存先 (単一キーの JSON ストア) のパスとキー名
    - Gemini モデル名とフェールオーバー候補
    - ランダムテスト / 模擬試験の出題数
    """

    # ---------- API ----------
    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_MODEL
    fallback_models: List[str] = field(default_factory=list)

    # ---------- 保存先 ----------
    storage_path: Path = DATA_DIR / "flashmaster.json"
    storage_key: str = DEFAULT_STORAGE_KEY

    # ---------- 出題設定 ----------
    sample_size: int = 30
    topic_count: int = 5

    # ---------- ログ ----------
    log_level: str = "INFO"

    # ============================================================
    # 生成
    # ============================================================

    @classmethod
    def load(cls, toml_path: Optional[Path] = None) -> "AppConfig":
        """環境変数と config.toml から設定を組み立てる。"""
        cfg = load_toml_config(toml_path)
        gemini = _section(cfg, "gemini")
        storage = _section(cfg, "storage")
        app = _section(cfg, "app")

        config = cls()
        config.gemini_api_key = cls._load_api_key()

        model = gemini.get("model")
        if isinstance(model, str) and model:
            config.gemini_model = model
        fallbacks = gemini.get("fallback_models")
        if isinstance(fallbacks, list):
            config.fallback_models = [str(m) for m in fallbacks if m]

        path = os.environ.get("FLASHMASTER_DATA") or storage.get("path")
        if path:
            config.storage_path = Path(path).expanduser()
        key = storage.get("key")
        if isinstance(key, str) and key:
            config.storage_key = key

        for name in ("sample_size", "topic_count"):
            value = app.get(name)
            if isinstance(value, int) and value > 0:
                setattr(config, name, value)

        level = app.get("log_level")
        if isinstance(level, str) and level:
            config.log_level = level.upper()

        return config

    # ============================================================
    # 内部関数
    # ============================================================

    @staticmethod
    def _load_api_key() -> str:
        """
        GEMINI_API_KEY (なければ API_KEY) を環境変数から読む。
        ローカル開発用に .env も見る。
        """
        for name in ("GEMINI_API_KEY", "API_KEY"):
            key = os.environ.get(name)
            if key:
                return key

        env_path = ROOT_DIR / ".env"
        if env_path.exists():
            for line in env_path.read_text(encoding="utf-8").splitlines():
                for name in ("GEMINI_API_KEY", "API_KEY"):
                    if line.startswith(f"{name}="):
                        return line.split("=", 1)[1].strip()

        return ""  # キーなし → AI 機能は無効

    @property
    def has_api_key(self) -> bool:
        return bool(self.gemini_api_key)


# ------------------------------------------------------------
# ログ設定
# ------------------------------------------------------------

def configure_logging(level: str = "INFO") -> None:
    """ルートロガーにハンドラが無いときだけ basicConfig する。"""
    if logging.getLogger().handlers:
        return
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

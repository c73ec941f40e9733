"""
tools/import_questions.py
===========================

コマンドラインから題庫 (JSON ストア) に問題を追加するスクリプト。

主な役割:
- JSON ファイルをそのままインポート (--json)
- テキストファイルを Gemini で解析してインポート (--text)
- テーマを Gemini に渡して問題を生成 (--topic)
- 現在の題庫の件数を表示 (--list)

前提:
- AI を使う場合は環境変数 GEMINI_API_KEY に Google Gemini API キーが設定されていること
- 保存先は config.toml / FLASHMASTER_DATA / デフォルト (data/flashmaster.json) の順で決まる
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from flashmaster.config import AppConfig, configure_logging
from flashmaster.gemini import GeminiClient
from flashmaster.importer import read_uploaded_file, run_import
from flashmaster.library import QuestionLibrary
from flashmaster.storage import JsonStore

logger = logging.getLogger("flashmaster.tools.import_questions")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="FlashMaster の題庫に問題を追加するスクリプト",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--json", type=Path, help="インポートする JSON ファイル")
    source.add_argument("--text", type=Path, help="AI に解析させるテキストファイル")
    source.add_argument("--topic", type=str, help="AI に問題を生成させるテーマ")
    source.add_argument("--list", action="store_true", help="題庫の件数を表示して終了")
    parser.add_argument(
        "--count",
        type=int,
        default=None,
        help="--topic で生成する問題数（デフォルト: 設定値）",
    )
    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="優先的に使いたい Gemini モデル名（任意）",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=None,
        help="保存先 JSON ファイル（任意）",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="題庫には書き込まず、取り込む内容を標準出力に表示する",
    )
    return parser


def _read_file(path: Path) -> str:
    return read_uploaded_file(path.read_bytes())


def run(argv: Optional[List[str]] = None, config: Optional[AppConfig] = None) -> int:
    """
    引数を解釈してインポートを実行する。終了コードを返す。
    """
    args = build_parser().parse_args(argv)
    config = config or AppConfig.load()
    configure_logging(config.log_level)

    if args.data is not None:
        config.storage_path = args.data
    library = QuestionLibrary(JsonStore(config.storage_path, config.storage_key))

    if args.list:
        stats = library.stats()
        print(
            f"題庫: {stats['total']}問 / 習得済み: {stats['mastered']}問 / "
            f"間違いノート: {stats['mistakes']}問 ({config.storage_path})"
        )
        return 0

    client: Optional[GeminiClient] = None
    if args.json is not None:
        source, text = "json", _read_file(args.json)
    else:
        if not config.has_api_key:
            print("環境変数 GEMINI_API_KEY が設定されていません。", file=sys.stderr)
            return 2
        client = GeminiClient.from_config(config, model_name=args.model)
        if args.text is not None:
            source, text = "text", _read_file(args.text)
        else:
            source, text = "topic", args.topic

    result = run_import(source, text, client=client, count=args.count or config.topic_count)
    if not result.success:
        print(result.error, file=sys.stderr)
        return 1

    if not result.questions:
        print("新規問題はありませんでした。")
    elif args.dry_run:
        print(f"[DRY RUN] {len(result.questions)}問:")
        for q in result.questions:
            print(json.dumps(q.to_dict(), ensure_ascii=False))
    else:
        added = library.import_questions(result.questions)
        print(f"{added}問を {config.storage_path} に追加しました。")
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()

"""
app.py
======================

FlashMaster AI (Streamlit) エントリーポイント。

特徴:
- ダッシュボード + 各画面 (インポート / 練習 / 模擬試験 / 間違いノート / 習得済み / 設定)
- 問題は JSON で直接インポート、または Gemini でテキスト解析・テーマから生成
- 練習: 順番 / ランダム 30 問 / 間違いの復習 / 習得済みの復習
- 模擬試験: ランダム 30 問を全部解いてから一括採点
- 習得状態と間違いノートはローカルの JSON ストアに保存

前提:
- 環境変数 GEMINI_API_KEY が設定されていれば AI 機能が有効
- config.toml があれば読み込む (無くても動く)
"""

from __future__ import annotations

import logging
from typing import Optional

import streamlit as st

from flashmaster.config import AppConfig, configure_logging
from flashmaster.exceptions import FlashMasterError
from flashmaster.gemini import GeminiClient
from flashmaster.importer import read_uploaded_file, run_import
from flashmaster.library import QuestionLibrary
from flashmaster.models import AppMode
from flashmaster.state import AppState
from flashmaster.storage import JsonStore
from flashmaster.ui import (
    inject_theme,
    questions_frame,
    render_api_key_banner,
    render_dashboard_stats,
    render_exam_page,
    render_footer,
    render_header,
    render_question_list,
    render_quiz_page,
    render_theme_selector,
)

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
#  セッションに保持するオブジェクト
# ----------------------------------------------------------------------
def get_config() -> AppConfig:
    """AppConfig をセッションに保持して返す。"""
    if "app_config" not in st.session_state:
        config = AppConfig.load()
        configure_logging(config.log_level)
        st.session_state["app_config"] = config
    return st.session_state["app_config"]


def get_state() -> AppState:
    """AppState (題庫 + 画面モード) をセッションに保持して返す。"""
    if "app_state" not in st.session_state:
        config = get_config()
        library = QuestionLibrary(JsonStore(config.storage_path, config.storage_key))
        st.session_state["app_state"] = AppState(library, sample_size=config.sample_size)
    return st.session_state["app_state"]


def get_client() -> Optional[GeminiClient]:
    """API キーがあれば GeminiClient を返す。設定画面で選んだモデルを優先する。"""
    config = get_config()
    if not config.has_api_key:
        return None
    preferred = st.session_state.get("preferred_model")
    cached = st.session_state.get("gemini_client")
    if cached is None or st.session_state.get("gemini_client_model") != preferred:
        cached = GeminiClient.from_config(config, model_name=preferred)
        st.session_state["gemini_client"] = cached
        st.session_state["gemini_client_model"] = preferred
    return cached


def flash(message: str) -> None:
    """次の描画でトースト表示するメッセージを積む。"""
    st.session_state["flash_message"] = message


def show_flash() -> None:
    message = st.session_state.pop("flash_message", None)
    if message:
        st.toast(message)


# ----------------------------------------------------------------------
#  ページ: ダッシュボード
# ----------------------------------------------------------------------
def render_dashboard_page(state: AppState) -> None:
    render_header()

    clicks = render_dashboard_stats(state.library.stats())
    if clicks["open_mastered"] and state.open_mastered_notebook():
        st.rerun()
    if clicks["open_mistakes"] and state.open_mistake_notebook():
        st.rerun()
    if clicks["practice"]:
        state.start_practice()
        st.rerun()
    if clicks["random_practice"] and state.start_random_practice():
        st.rerun()
    if clicks["mock_exam"] and state.start_mock_exam():
        st.rerun()

    st.write("---")
    col_title, col_import, col_settings = st.columns([3, 2, 1])
    with col_title:
        st.markdown("### 題庫プレビュー")
    with col_import:
        if st.button("➕ 問題を追加 / インポート", use_container_width=True):
            state.open_import()
            st.rerun()
    with col_settings:
        if st.button("⚙️", help="設定", use_container_width=True):
            state.open_settings()
            st.rerun()

    result = render_question_list(
        state.library.questions,
        pending_delete=st.session_state.get("pending_delete"),
    )
    if result["delete_request"]:
        st.session_state["pending_delete"] = result["delete_request"]
        st.rerun()
    if result["delete_confirm"]:
        state.delete_question(result["delete_confirm"])
        st.session_state.pop("pending_delete", None)
        flash("問題を削除しました。")
        st.rerun()
    if result["delete_cancel"]:
        st.session_state.pop("pending_delete", None)
        st.rerun()


# ----------------------------------------------------------------------
#  ページ: インポート
# ----------------------------------------------------------------------
IMPORT_TABS = {
    "json": "📄 JSON インポート",
    "text": "📝 AI でテキスト解析",
    "topic": "✨ AI で問題生成",
}

SUBMIT_LABELS = {
    "json": "JSON をインポート",
    "text": "解析してインポート",
    "topic": "問題を生成",
}


def _load_uploaded_into_input(uploaded) -> None:
    """新しくアップロードされたファイルだけ入力欄に流し込む。"""
    if uploaded is None:
        return
    marker = f"{uploaded.name}:{uploaded.size}"
    if st.session_state.get("import_uploaded") == marker:
        return
    try:
        st.session_state["import_text"] = read_uploaded_file(uploaded.getvalue())
    except FlashMasterError as exc:
        st.error(str(exc))
        return
    st.session_state["import_uploaded"] = marker


def render_import_page(state: AppState) -> None:
    config = get_config()
    client = get_client()

    # 前回のインポート成功後は入力欄を空にする (ウィジェット生成前に行う)
    if st.session_state.pop("import_reset", False):
        st.session_state["import_text"] = ""
        st.session_state.pop("import_uploaded", None)

    col_title, col_close = st.columns([4, 1])
    with col_title:
        st.markdown("## 問題のインポート")
    with col_close:
        if st.button("閉じる", use_container_width=True):
            state.go_home()
            st.rerun()

    source = st.radio(
        "インポート方法",
        list(IMPORT_TABS.keys()),
        format_func=lambda k: IMPORT_TABS[k],
        horizontal=True,
        key="import_source",
    )

    if source != "json" and client is None:
        st.info("AI 機能を使うには GEMINI_API_KEY を環境変数に設定してください。")

    if source == "json":
        uploaded = st.file_uploader(".json をアップロード", type=["json"], key="import_file_json")
        _load_uploaded_into_input(uploaded)
        st.text_area(
            "JSON",
            key="import_text",
            height=300,
            placeholder='[{"text": "...", "correctAnswer": "..."}]',
        )
    elif source == "text":
        st.caption("問題集やノートなどの文章を貼り付けると、AI が問題・選択肢・答えを抽出します。")
        uploaded = st.file_uploader(".txt をアップロード", type=["txt", "md"], key="import_file_text")
        _load_uploaded_into_input(uploaded)
        st.text_area(
            "テキスト",
            key="import_text",
            height=300,
            placeholder="ここに元の内容を貼り付けてください...",
        )
    else:
        st.caption(f"テーマを入力すると、AI が {config.topic_count} 問作成します。")
        st.text_input("テーマ", key="import_text", placeholder="例: 日本の歴史、Python の基礎...")

    text = st.session_state.get("import_text", "") or ""

    col_cancel, col_submit = st.columns(2)
    with col_cancel:
        if st.button("キャンセル", use_container_width=True):
            state.go_home()
            st.rerun()
    with col_submit:
        submitted = st.button(
            SUBMIT_LABELS[source],
            type="primary",
            disabled=not text.strip(),
            use_container_width=True,
        )

    if not submitted:
        return

    if source == "json":
        result = run_import(source, text)
    else:
        with st.spinner("AI が処理しています..."):
            result = run_import(source, text, client=client, count=config.topic_count)

    if not result.success:
        st.error(result.error or "不明なエラーが発生しました。")
        return

    added = state.handle_import(result.questions)
    st.session_state["import_reset"] = True
    flash(f"{added} 問をインポートしました。")
    st.rerun()


# ----------------------------------------------------------------------
#  ページ: 練習
# ----------------------------------------------------------------------
def render_quiz_main_page(state: AppState) -> None:
    session = state.quiz
    if session is None or session.finished:
        if session is not None:
            flash("練習を終了しました。" if session.total else "出題できる問題がありません。")
        state.go_home()
        st.rerun()
        return

    client = get_client()
    actions = render_quiz_page(session, ai_enabled=client is not None)

    if actions["exit"]:
        state.go_home()
        st.rerun()
    elif actions["select"] is not None:
        session.select(actions["select"])
        st.rerun()
    elif actions["check"]:
        session.check_answer()
        st.rerun()
    elif actions["explain"] and client is not None:
        q = session.current
        with st.spinner("AI が考えています..."):
            session.ai_explanation = client.explain_answer(
                q.text,
                session.selected_option or "未回答",
                q.correct_answer,
            )
        st.rerun()
    elif actions["master"]:
        session.master()
        st.rerun()
    elif actions["flip"]:
        session.flip()
        st.rerun()
    elif actions["unflip"]:
        session.unflip()
        st.rerun()
    elif actions["forget"]:
        session.forget()
        st.rerun()
    elif actions["next"]:
        session.next()
        st.rerun()
    elif actions["prev"]:
        session.prev()
        st.rerun()


# ----------------------------------------------------------------------
#  ページ: 模擬試験
# ----------------------------------------------------------------------
def render_exam_main_page(state: AppState) -> None:
    exam = state.exam
    if exam is None:
        state.go_home()
        st.rerun()
        return

    actions = render_exam_page(exam)

    if actions["answer"] is not None:
        exam.answer(actions["answer"])
        if exam.current.is_choice:
            st.rerun()
    if actions["exit"]:
        state.go_home()
        st.rerun()
    elif actions["submit"]:
        state.finish_exam()
        st.rerun()
    elif actions["next"]:
        exam.next()
        st.rerun()
    elif actions["prev"]:
        exam.prev()
        st.rerun()


# ----------------------------------------------------------------------
#  ページ: 間違いノート / 習得済み
# ----------------------------------------------------------------------
def render_mistake_notebook_page(state: AppState) -> None:
    mistakes = state.library.mistakes()

    if st.button("← ダッシュボードに戻る"):
        state.go_home()
        st.rerun()
    st.markdown("## 📕 間違いノート")
    st.caption(f"復習待ちの問題が {len(mistakes)} 問あります。正解して「習得済み」にするとここから消えます。")

    if not mistakes:
        st.success("すばらしい！ 今は間違えた問題はありません。")
        return

    if st.button("▶ 間違えた問題を復習する", type="primary"):
        state.start_mistake_review()
        st.rerun()
    st.dataframe(questions_frame(mistakes), use_container_width=True, hide_index=True)


def render_mastered_notebook_page(state: AppState) -> None:
    mastered = state.library.mastered()

    if st.button("← ダッシュボードに戻る"):
        state.go_home()
        st.rerun()
    st.markdown("## 🏅 習得済みの問題")
    st.caption(f"習得済みの問題は {len(mastered)} 問です。")

    if not mastered:
        st.info("まだ習得済みの問題はありません。練習中に「覚えた」を押すと追加されます。")
        return

    if st.button("▶ これらの問題を復習する", type="primary"):
        state.start_mastered_review()
        st.rerun()
    st.dataframe(questions_frame(mastered), use_container_width=True, hide_index=True)


# ----------------------------------------------------------------------
#  ページ: 設定
# ----------------------------------------------------------------------
def render_settings_page(state: AppState) -> None:
    config = get_config()

    if st.button("← ダッシュボードに戻る"):
        state.go_home()
        st.rerun()
    st.markdown("## ⚙️ 設定")

    st.markdown("### 表示")
    render_theme_selector()

    st.write("---")
    st.markdown("### Gemini モデル")
    client = get_client()
    if client is None:
        st.info("AI 機能を利用するには GEMINI_API_KEY を環境変数に設定してください。")
    else:
        models = client.list_models()
        if not models:
            st.warning("利用可能な Gemini モデルを取得できませんでした。")
        else:
            preferred = st.session_state.get("preferred_model") or config.gemini_model
            idx = models.index(preferred) if preferred in models else 0
            selected = st.selectbox("優先して使うモデル", models, index=idx)
            st.session_state["preferred_model"] = selected
            st.write(f"現在の優先モデル: `{selected}`")

    st.write("---")
    st.markdown("### データ")
    st.write(f"- 保存先: `{config.storage_path}`")
    st.write(f"- 問題数: **{len(state.library)} 問**")
    confirm = st.checkbox("すべての問題を削除することを確認しました (元に戻せません)")
    if st.button("🗑 すべての問題を削除", disabled=not confirm):
        state.clear_all()
        flash("すべての問題を削除しました。")
        st.rerun()


# ----------------------------------------------------------------------
#  メイン
# ----------------------------------------------------------------------
PAGES = {
    AppMode.DASHBOARD: render_dashboard_page,
    AppMode.IMPORT: render_import_page,
    AppMode.QUIZ: render_quiz_main_page,
    AppMode.MOCK_EXAM: render_exam_main_page,
    AppMode.MISTAKE_NOTEBOOK: render_mistake_notebook_page,
    AppMode.MASTERED_NOTEBOOK: render_mastered_notebook_page,
    AppMode.SETTINGS: render_settings_page,
}


def main() -> None:
    st.set_page_config(
        page_title="FlashMaster AI",
        page_icon="🧠",
        layout="centered",
    )

    config = get_config()
    state = get_state()
    inject_theme()
    show_flash()

    if not config.has_api_key:
        render_api_key_banner()

    PAGES.get(state.mode, render_dashboard_page)(state)
    render_footer()


if __name__ == "__main__":
    main()

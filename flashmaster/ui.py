"""
ui.py
======================

Streamlit ベースの UI コンポーネントをまとめたモジュール。

責務:
- スマートフォンでも読みやすいレイアウトとスタイル (テーマ切替つき)
- ダッシュボードの件数表示と問題一覧
- 練習画面 (選択問題 / フラッシュカード) の描画
- 模擬試験画面の描画

ここでは「見た目」と「ユーザー操作の入力」だけを扱い、
状態の更新や保存は app.py 側 (AppState 経由) に任せる。

各 render_* 関数は「何が押されたか」を dict で返す。
"""

from __future__ import annotations

import html
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from .matching import is_match
from .models import Question
from .sessions import ExamSession, QuizSession

# ----------------------------------------------------------------------
#  テーマ定義
# ----------------------------------------------------------------------


THEMES: Dict[str, Dict[str, str]] = {
    "light": {
        "bg": "#ffffff",
        "text": "#1c1c1e",
        "surface": "#f2f2f7",
        "surface_alt": "#ffffff",
        "border": "#d1d1d6",
        "primary": "#007aff",
        "incorrect": "#ff3b30",
        "mastered": "#10b981",
    },
    "dark": {
        "bg": "#000000",
        "text": "#f5f5f7",
        "surface": "#1c1c1e",
        "surface_alt": "#2c2c2e",
        "border": "#3a3a3c",
        "primary": "#0a84ff",
        "incorrect": "#ff453a",
        "mastered": "#34d399",
    },
}


# ----------------------------------------------------------------------
#  CSS 生成
# ----------------------------------------------------------------------
def _generate_css(theme: Dict[str, str]) -> str:
    """テーマに応じたグローバル CSS を生成する。"""

    return f"""
    <style>
    html, body, .stApp, [data-testid="stAppViewContainer"] {{
        background: {theme['bg']};
        color: {theme['text']};
    }}

    .fm-title {{
        font-weight: 700;
        font-size: 1.6rem;
        color: {theme['text']};
    }}

    .fm-subtitle {{
        font-size: 0.85rem;
        color: {theme['text']}aa;
        margin-bottom: 0.75rem;
    }}

    .fm-badges {{
        display: flex;
        flex-wrap: wrap;
        gap: 0.25rem;
        font-size: 0.75rem;
        margin-bottom: 0.35rem;
    }}

    .fm-badge {{
        padding: 0.1rem 0.5rem;
        border-radius: 999px;
        background: {theme['surface']};
        border: 1px solid {theme['border']};
        font-weight: 600;
    }}

    .fm-badge-mastered {{
        color: {theme['mastered']};
        border-color: {theme['mastered']};
    }}

    .fm-badge-mistake {{
        color: {theme['incorrect']};
        border-color: {theme['incorrect']};
    }}

    .fm-question-box {{
        background: {theme['surface_alt']};
        padding: 1rem;
        border-radius: 12px;
        border: 1px solid {theme['border']};
        font-size: 1.1rem;
        line-height: 1.6;
        margin: 0.5rem 0 0.75rem 0;
        white-space: pre-wrap;
    }}

    .fm-answer-box {{
        background: {theme['primary']}11;
        padding: 1rem;
        border-radius: 12px;
        border: 1px solid {theme['primary']};
        font-size: 1.05rem;
        line-height: 1.6;
        margin-bottom: 0.75rem;
        white-space: pre-wrap;
    }}

    .fm-explanation-box {{
        padding: 0.9rem;
        border-radius: 10px;
        background: {theme['surface']};
        border: 1px solid {theme['border']};
        font-size: 0.95rem;
        line-height: 1.6;
        white-space: pre-wrap;
    }}

    .fm-score {{
        font-size: 1.3rem;
        font-weight: 700;
        color: {theme['primary']};
        text-align: right;
    }}

    .fm-footer {{
        margin-top: 1rem;
        font-size: 0.8rem;
        color: {theme['text']}aa;
        text-align: center;
    }}
    </style>
    """


# ----------------------------------------------------------------------
#  テーマ関連
# ----------------------------------------------------------------------
def _ensure_theme() -> str:
    """セッションに theme キーを用意し、現在のテーマキーを返す。"""
    theme_key = st.session_state.get("theme", "light")
    if theme_key not in THEMES:
        theme_key = "light"
    st.session_state["theme"] = theme_key
    return theme_key


def inject_theme() -> Dict[str, str]:
    theme = THEMES[_ensure_theme()]
    st.markdown(_generate_css(theme), unsafe_allow_html=True)
    return theme


def render_theme_selector() -> str:
    """テーマ切替 (設定画面用)。選択されたテーマキーを返す。"""
    options = list(THEMES.keys())
    labels = {"light": "ライト", "dark": "ダーク"}
    current = _ensure_theme()
    selected = st.radio(
        "テーマ",
        options,
        index=options.index(current),
        horizontal=True,
        format_func=lambda k: labels.get(k, k),
    )
    st.session_state["theme"] = selected
    return selected


# ----------------------------------------------------------------------
#  小物
# ----------------------------------------------------------------------
def _esc(text: Optional[str]) -> str:
    return html.escape(text or "")


def render_header() -> None:
    st.markdown(
        "<div class='fm-title'>🧠 FlashMaster AI 学習ツール</div>"
        "<div class='fm-subtitle'>Google Gemini で問題を作って、解いて、覚える</div>",
        unsafe_allow_html=True,
    )


def render_api_key_banner() -> None:
    st.warning("API キーが検出されません。AI 機能は利用できません。", icon="⚠️")


def render_badges(q: Question, *, show_mistake_when_mastered: bool = False) -> None:
    badges = [f"<span class='fm-badge'>{q.type_label}</span>"]
    if q.mastered:
        badges.append("<span class='fm-badge fm-badge-mastered'>習得済み</span>")
    if q.in_mistake_book and (show_mistake_when_mastered or not q.mastered):
        badges.append("<span class='fm-badge fm-badge-mistake'>間違いノート</span>")
    for tag in q.tags:
        badges.append(f"<span class='fm-badge'>#{_esc(tag)}</span>")
    st.markdown(
        "<div class='fm-badges'>" + "".join(badges) + "</div>",
        unsafe_allow_html=True,
    )


def render_footer() -> None:
    st.markdown(
        "<div class='fm-footer'>© FlashMaster AI</div>",
        unsafe_allow_html=True,
    )


# ----------------------------------------------------------------------
#  ダッシュボード
# ----------------------------------------------------------------------
def render_dashboard_stats(stats: Dict[str, int]) -> Dict[str, bool]:
    """件数カードと開始ボタン。"""
    total = stats.get("total", 0)
    mastered = stats.get("mastered", 0)
    mistakes = stats.get("mistakes", 0)

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("題庫の問題数", total)
    with col2:
        st.metric("習得済み", mastered)
        open_mastered = st.button(
            "一覧を見る ›" if mastered else "データなし",
            key="dash_open_mastered",
            disabled=mastered == 0,
            use_container_width=True,
        )
    with col3:
        st.metric("間違いノート", mistakes)
        open_mistakes = st.button(
            "復習する ›" if mistakes else "間違いなし",
            key="dash_open_mistakes",
            disabled=mistakes == 0,
            use_container_width=True,
        )

    empty = total == 0
    col_a, col_b, col_c = st.columns(3)
    with col_a:
        practice = st.button("▶ 順番に練習 (全問)", disabled=empty, use_container_width=True)
    with col_b:
        random_practice = st.button("🔀 ランダムテスト", disabled=empty, use_container_width=True)
    with col_c:
        mock_exam = st.button("📋 模擬試験", disabled=empty, use_container_width=True)

    return {
        "open_mastered": open_mastered,
        "open_mistakes": open_mistakes,
        "practice": practice,
        "random_practice": random_practice,
        "mock_exam": mock_exam,
    }


def render_question_list(
    questions: List[Question],
    pending_delete: Optional[str] = None,
) -> Dict[str, Any]:
    """
    題庫のプレビュー。各行に削除ボタンをつける。

    戻り値:
        {
          "delete_request": Optional[str],  # 削除ボタンが押された id
          "delete_confirm": Optional[str],  # 確認で「削除する」が押された id
          "delete_cancel": bool,
        }
    """
    result: Dict[str, Any] = {
        "delete_request": None,
        "delete_confirm": None,
        "delete_cancel": False,
    }

    if not questions:
        st.info("🏆 まだ問題がありません。問題をインポートするか、AI に作ってもらいましょう！")
        return result

    for q in questions:
        with st.container(border=True):
            col_text, col_btn = st.columns([8, 1])
            with col_text:
                render_badges(q)
                st.markdown(f"**{_esc(q.text)}**")
                st.caption(f"答え: {q.correct_answer}")
            with col_btn:
                if st.button("🗑", key=f"del_{q.id}", help="この問題を削除"):
                    result["delete_request"] = q.id

            if pending_delete == q.id:
                st.warning("この問題を削除してもよろしいですか？")
                col_yes, col_no = st.columns(2)
                with col_yes:
                    if st.button("削除する", key=f"del_yes_{q.id}", type="primary"):
                        result["delete_confirm"] = q.id
                with col_no:
                    if st.button("キャンセル", key=f"del_no_{q.id}"):
                        result["delete_cancel"] = True

    return result


def questions_frame(questions: List[Question]) -> pd.DataFrame:
    """ノート画面の一覧表示用 DataFrame。"""
    rows = [
        {
            "種類": q.type_label,
            "問題": q.text,
            "正解": q.correct_answer,
            "タグ": ", ".join(q.tags),
        }
        for q in questions
    ]
    return pd.DataFrame(rows, columns=["種類", "問題", "正解", "タグ"])


# ----------------------------------------------------------------------
#  練習画面
# ----------------------------------------------------------------------
def render_quiz_page(session: QuizSession, *, ai_enabled: bool = True) -> Dict[str, Any]:
    """
    練習画面全体を描画し、ユーザー操作の結果を返す。

    引数:
        session:
            sessions.QuizSession のインスタンス。
        ai_enabled:
            「AI に詳しく聞く」ボタンを出すかどうか。

    戻り値:
        {
          "exit": bool,
          "select": Optional[str],   # 新たに選ばれた選択肢
          "check": bool,
          "explain": bool,
          "master": bool,
          "flip": bool,
          "unflip": bool,
          "forget": bool,
          "next": bool,
          "prev": bool,
        }
    """
    actions: Dict[str, Any] = {
        "exit": False,
        "select": None,
        "check": False,
        "explain": False,
        "master": False,
        "flip": False,
        "unflip": False,
        "forget": False,
        "next": False,
        "prev": False,
    }

    q = session.current
    if q is None:
        st.info("この一覧には問題がありません。")
        actions["exit"] = st.button("← ダッシュボードに戻る", use_container_width=True)
        return actions

    # ----------------------------------------
    # ヘッダー
    # ----------------------------------------
    col_exit, col_count = st.columns([3, 1])
    with col_exit:
        actions["exit"] = st.button(f"← {session.title}を終了", key="quiz_exit")
    with col_count:
        st.markdown(f"**{session.current_index + 1} / {session.total}**")
    st.progress(session.progress)

    # ----------------------------------------
    # 問題カード
    # ----------------------------------------
    render_badges(q, show_mistake_when_mastered=True)
    st.markdown(f"<div class='fm-question-box'>{_esc(q.text)}</div>", unsafe_allow_html=True)

    if q.is_choice:
        _render_quiz_choices(session, q, actions, ai_enabled)
    else:
        _render_flashcard(session, q, actions)

    # ----------------------------------------
    # ナビゲーション
    # ----------------------------------------
    st.write("")
    col_prev, col_main, col_skip = st.columns([1, 2, 1])
    with col_prev:
        actions["prev"] = st.button(
            "◀", key="quiz_prev", disabled=session.current_index == 0, use_container_width=True
        )
    with col_main:
        if session.is_evaluated or session.is_flipped:
            label = "完了" if session.is_last else "次の問題 ▶"
            if st.button(label, key="quiz_next_main", type="primary", use_container_width=True):
                actions["next"] = True
        else:
            st.caption("答えを選んでください" if q.is_choice else "カードをめくって進みましょう")
    with col_skip:
        if st.button("▶", key="quiz_skip", disabled=session.is_last, use_container_width=True):
            actions["next"] = True

    return actions


def _render_quiz_choices(
    session: QuizSession,
    q: Question,
    actions: Dict[str, Any],
    ai_enabled: bool,
) -> None:
    for idx, option in enumerate(q.options):
        marker = ""
        if session.is_evaluated:
            if is_match(option, q.correct_answer):
                marker = "✅ "
            elif option == session.selected_option:
                marker = "❌ "
        elif option == session.selected_option:
            marker = "🔵 "

        if st.button(
            f"{marker}{option}",
            key=f"quiz_opt_{session.current_index}_{idx}",
            disabled=session.is_evaluated,
            use_container_width=True,
        ):
            actions["select"] = option

    if not session.is_evaluated:
        actions["check"] = st.button(
            "答え合わせ",
            key="quiz_check",
            type="primary",
            disabled=session.selected_option is None,
            use_container_width=True,
        )
        return

    # 採点後のフィードバック
    if session.is_selected_correct:
        st.success("正解です！")
    else:
        st.error(f"不正解です。正解: {q.correct_answer}")

    if q.explanation:
        st.markdown(
            f"<div class='fm-explanation-box'><b>解説</b><br>{_esc(q.explanation)}</div>",
            unsafe_allow_html=True,
        )

    col_ai, col_master = st.columns(2)
    with col_ai:
        if ai_enabled and not session.ai_explanation:
            actions["explain"] = st.button(
                "🤖 AI に詳しく聞く", key="quiz_explain", use_container_width=True
            )
    with col_master:
        actions["master"] = st.button(
            "🏅 簡単すぎる、習得済みにする", key="quiz_master_mc", use_container_width=True
        )

    if session.ai_explanation:
        st.markdown(
            f"<div class='fm-explanation-box'><b>AI の解説</b><br>{_esc(session.ai_explanation)}</div>",
            unsafe_allow_html=True,
        )


def _render_flashcard(session: QuizSession, q: Question, actions: Dict[str, Any]) -> None:
    if not session.is_flipped:
        actions["flip"] = st.button(
            "答えを見る →", key="quiz_flip", type="primary", use_container_width=True
        )
        return

    st.markdown(f"<div class='fm-answer-box'>{_esc(q.correct_answer)}</div>", unsafe_allow_html=True)
    if q.explanation:
        st.markdown(
            f"<div class='fm-explanation-box'>{_esc(q.explanation)}</div>",
            unsafe_allow_html=True,
        )

    col_forget, col_master, col_back = st.columns([2, 2, 1])
    with col_forget:
        actions["forget"] = st.button("✖ 覚えていない", key="quiz_forget", use_container_width=True)
    with col_master:
        actions["master"] = st.button("✔ 覚えた", key="quiz_master_card", use_container_width=True)
    with col_back:
        actions["unflip"] = st.button("↺", key="quiz_unflip", use_container_width=True)


# ----------------------------------------------------------------------
#  模擬試験画面
# ----------------------------------------------------------------------
def render_exam_page(exam: ExamSession) -> Dict[str, Any]:
    """
    模擬試験画面を描画する。

    戻り値:
        {
          "exit": bool,
          "answer": Optional[str],   # 新しく入力 / 選択された回答
          "next": bool,
          "prev": bool,
          "submit": bool,
        }
    """
    actions: Dict[str, Any] = {
        "exit": False,
        "answer": None,
        "next": False,
        "prev": False,
        "submit": False,
    }
    q = exam.current

    col_exit, col_status = st.columns([3, 1])
    with col_exit:
        actions["exit"] = st.button("← 試験を終了", key="exam_exit")
    with col_status:
        if exam.submitted:
            st.markdown(f"<div class='fm-score'>得点: {exam.score}点</div>", unsafe_allow_html=True)
        else:
            st.markdown(f"**進行中: {exam.current_index + 1} / {exam.total}**")

    if exam.submitted:
        with st.container(border=True):
            st.markdown("### 🏆 試験終了")
            st.write(
                f"{exam.total} 問中 {exam.correct_count} 問正解しました。"
                "間違えた問題は自動で間違いノートに追加されています。"
            )
            if st.button("ホームに戻る", key="exam_home", type="primary"):
                actions["exit"] = True

    # ----------------------------------------
    # 問題
    # ----------------------------------------
    render_badges(q)
    if exam.submitted:
        if exam.is_wrong(q.id):
            st.error("不正解")
        else:
            st.success("正解")

    st.markdown(
        f"<div class='fm-question-box'>{exam.current_index + 1}. {_esc(q.text)}</div>",
        unsafe_allow_html=True,
    )

    selected = exam.answer_for(q.id)
    if q.is_choice:
        for idx, option in enumerate(q.options):
            marker = ""
            if exam.submitted:
                if is_match(q.correct_answer, option):
                    marker = "✅ "
                elif option == selected:
                    marker = "❌ "
            elif option == selected:
                marker = "🔵 "
            if st.button(
                f"{marker}{option}",
                key=f"exam_opt_{exam.current_index}_{idx}",
                disabled=exam.submitted,
                use_container_width=True,
            ):
                actions["answer"] = option
    else:
        typed = st.text_area(
            "回答",
            value=selected or "",
            key=f"exam_text_{q.id}",
            placeholder="回答を入力してください...",
            disabled=exam.submitted,
        )
        if not exam.submitted and typed != (selected or ""):
            actions["answer"] = typed
        if exam.submitted:
            st.markdown(
                f"<div class='fm-answer-box'>正解: {_esc(q.correct_answer)}</div>",
                unsafe_allow_html=True,
            )

    if exam.submitted:
        parts = []
        if q.is_choice:
            parts.append(f"<b>正解:</b> {_esc(q.correct_answer)}")
        parts.append(f"<b>解説:</b> {_esc(q.explanation or '解説はありません')}")
        st.markdown(
            "<div class='fm-explanation-box'>" + "<br>".join(parts) + "</div>",
            unsafe_allow_html=True,
        )

    # ----------------------------------------
    # ナビゲーション
    # ----------------------------------------
    st.write("")
    col_prev, col_next = st.columns(2)
    with col_prev:
        actions["prev"] = st.button(
            "◀ 前の問題", key="exam_prev", disabled=exam.current_index == 0, use_container_width=True
        )
    with col_next:
        if not exam.submitted and exam.is_last:
            actions["submit"] = st.button(
                "✔ 答案を提出", key="exam_submit", type="primary", use_container_width=True
            )
        else:
            actions["next"] = st.button(
                "次の問題 ▶",
                key="exam_next",
                disabled=exam.is_last,
                use_container_width=True,
            )

    return actions

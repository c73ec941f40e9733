"""View-state container transitions."""

from __future__ import annotations

import random

import pytest

from flashmaster.library import QuestionLibrary
from flashmaster.models import AppMode
from flashmaster.state import AppState

from conftest import make_question, read_store


@pytest.fixture
def state(library):
    return AppState(library, sample_size=2)


@pytest.fixture
def empty_state(store):
    return AppState(QuestionLibrary(store))


def test_starts_on_dashboard(state):
    assert state.mode is AppMode.DASHBOARD


def test_sequential_practice(state):
    state.start_practice()
    assert state.mode is AppMode.QUIZ
    assert state.quiz.title == "順番に練習"
    assert [q.id for q in state.quiz.questions] == ["q1", "q2", "q3"]


def test_random_practice_samples(state):
    assert state.start_random_practice()
    assert state.quiz.total == 2
    assert state.quiz.title == "ランダムテスト (2問)"


def test_random_practice_and_exam_noop_when_empty(empty_state):
    assert not empty_state.start_random_practice()
    assert not empty_state.start_mock_exam()
    assert empty_state.mode is AppMode.DASHBOARD
    assert empty_state.quiz is None
    assert empty_state.exam is None


def test_quiz_callbacks_persist(state, store_path):
    state.start_practice()
    state.quiz.select("C. cherry")
    state.quiz.check_answer()
    assert read_store(store_path)[0]["inMistakeBook"] is True

    state.quiz.master()
    assert state.quiz.current_index == 1
    stored = read_store(store_path)[0]
    assert stored["mastered"] is True
    assert stored["inMistakeBook"] is False


def test_mistake_review_and_notebook(state):
    assert not state.open_mistake_notebook()
    state.library.mark_mistake("q2")
    assert state.open_mistake_notebook()
    assert state.mode is AppMode.MISTAKE_NOTEBOOK

    state.start_mistake_review()
    assert state.quiz.title == "間違えた問題の復習"
    assert [q.id for q in state.quiz.questions] == ["q2"]


def test_mastered_review_and_notebook(state):
    assert not state.open_mastered_notebook()
    state.library.mark_mastered("q3")
    assert state.open_mastered_notebook()
    state.start_mastered_review()
    assert [q.id for q in state.quiz.questions] == ["q3"]


def test_mock_exam_records_mistakes_once(store, store_path):
    store.save([make_question(f"q{i}") for i in range(40)])
    state = AppState(QuestionLibrary(store, rng=random.Random(3)))
    assert state.start_mock_exam()
    assert state.mode is AppMode.MOCK_EXAM
    assert state.exam.total == 30

    first = state.exam.current
    state.exam.answer(first.correct_answer)
    wrong = state.finish_exam()

    assert len(wrong) == 29
    assert first.id not in wrong
    assert state.exam.score == 3
    flagged = {d["id"] for d in read_store(store_path) if d["inMistakeBook"]}
    assert flagged == set(wrong)

    state.library.mark_mastered(wrong[0])
    assert state.finish_exam() == wrong
    assert state.library.get(wrong[0]).mastered


def test_finish_exam_without_exam(state):
    assert state.finish_exam() == []


def test_handle_import_returns_to_dashboard(state):
    state.open_import()
    assert state.handle_import([make_question("new")]) == 1
    assert state.mode is AppMode.DASHBOARD
    assert len(state.library) == 4


def test_clear_all(state):
    state.start_practice()
    state.clear_all()
    assert len(state.library) == 0
    assert state.quiz is None
    assert state.mode is AppMode.DASHBOARD

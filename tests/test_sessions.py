"""Quiz and exam runner state machines."""

from __future__ import annotations

import pytest

from flashmaster.sessions import ExamSession, QuizSession, percent_score

from conftest import make_question


class Recorder:
    def __init__(self):
        self.mastered = []
        self.mistakes = []


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def quiz(sample_questions, recorder):
    return QuizSession(
        sample_questions,
        title="テスト",
        on_master=recorder.mastered.append,
        on_mistake=recorder.mistakes.append,
    )


# ----------------------------------------------------------------------
#  QuizSession
# ----------------------------------------------------------------------
def test_correct_answer_is_not_a_mistake(quiz, recorder):
    quiz.select("A. apple")
    assert quiz.check_answer() is True
    assert quiz.is_evaluated
    assert recorder.mistakes == []


def test_wrong_answer_goes_to_mistakes(quiz, recorder):
    quiz.select("C. cherry")
    assert quiz.check_answer() is False
    assert recorder.mistakes == ["q1"]


def test_unanswered_check_counts_as_wrong(quiz, recorder):
    assert quiz.check_answer() is False
    assert recorder.mistakes == ["q1"]


def test_selection_locked_after_evaluation(quiz):
    quiz.select("A. apple")
    quiz.check_answer()
    quiz.select("B. banana")
    assert quiz.selected_option == "A. apple"


def test_moving_resets_question_state(quiz):
    quiz.select("B. banana")
    quiz.check_answer()
    quiz.ai_explanation = "because"
    quiz.next()
    assert quiz.current_index == 1
    assert quiz.selected_option is None
    assert not quiz.is_evaluated
    assert quiz.ai_explanation is None

    quiz.flip()
    quiz.prev()
    assert quiz.current_index == 0
    assert not quiz.is_flipped


def test_prev_is_bounded(quiz):
    quiz.prev()
    assert quiz.current_index == 0


def test_next_on_last_question_finishes(quiz):
    quiz.next()
    quiz.next()
    assert quiz.is_last
    assert not quiz.finished
    quiz.next()
    assert quiz.finished
    assert quiz.current_index == 2


def test_flashcard_forget_and_master(quiz, recorder):
    quiz.next()
    quiz.next()
    quiz.flip()
    assert quiz.is_flipped
    quiz.forget()
    assert not quiz.is_flipped
    assert recorder.mistakes == ["q3"]

    quiz.flip()
    quiz.master()
    assert recorder.mastered == ["q3"]
    assert quiz.finished


def test_master_advances(quiz, recorder):
    quiz.master()
    assert recorder.mastered == ["q1"]
    assert quiz.current_index == 1


def test_progress(quiz):
    assert quiz.progress == pytest.approx(1 / 3)
    quiz.next()
    assert quiz.progress == pytest.approx(2 / 3)


def test_empty_quiz_is_finished():
    quiz = QuizSession([])
    assert quiz.finished
    assert quiz.current is None
    assert quiz.progress == 0.0
    assert quiz.check_answer() is False


# ----------------------------------------------------------------------
#  ExamSession
# ----------------------------------------------------------------------
def test_percent_score_rounds_half_up():
    assert percent_score(1, 8) == 13  # 12.5
    assert percent_score(2, 3) == 67
    assert percent_score(1, 3) == 33
    assert percent_score(0, 5) == 0
    assert percent_score(5, 5) == 100
    assert percent_score(0, 0) == 0


def test_exam_requires_questions():
    with pytest.raises(ValueError):
        ExamSession([])


def test_exam_grading(sample_questions):
    exam = ExamSession(sample_questions)
    exam.answer("A. apple")          # q1 correct
    exam.next()
    exam.answer("A. apple")          # q2 wrong (B)
    exam.next()
    exam.answer("  paris ")          # q3 correct
    assert exam.is_last

    wrong = exam.submit()
    assert wrong == ["q2"]
    assert exam.submitted
    assert exam.score == 67
    assert exam.correct_count == 2
    assert exam.current_index == 0
    assert exam.is_wrong("q2") and not exam.is_wrong("q1")


def test_unanswered_questions_are_wrong(sample_questions):
    exam = ExamSession(sample_questions)
    assert exam.submit() == ["q1", "q2", "q3"]
    assert exam.score == 0


def test_answers_locked_after_submit(sample_questions):
    exam = ExamSession(sample_questions)
    exam.answer("B. banana")
    exam.submit()
    exam.answer("A. apple")
    assert exam.answer_for("q1") == "B. banana"
    assert exam.submit() == ["q1", "q2", "q3"]


def test_exam_navigation_is_bounded():
    exam = ExamSession([make_question("a"), make_question("b")])
    exam.prev()
    assert exam.current_index == 0
    exam.next()
    exam.next()
    assert exam.current_index == 1


def test_answer_can_be_changed_before_submit(sample_questions):
    exam = ExamSession(sample_questions)
    exam.answer("B. banana")
    exam.answer("A. apple")
    assert exam.answer_for("q1") == "A. apple"

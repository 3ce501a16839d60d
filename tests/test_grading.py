import pytest

from practice_exam.core.errors import NoQuestionsFoundError, ValidationError
from practice_exam.core.grading import (
    SCOPE_ANSWERED,
    SCOPE_ASSIGNED,
    calculate_percentage,
    grade_session,
    normalize_answers,
)
from practice_exam.core.question_bank import QuestionBank

from conftest import answer_for, build_records, wrong_answer_for


def correct_sheet(question_ids):
    return {str(qid): answer_for(qid) for qid in question_ids}


def test_calculate_percentage_rounds_half_up():
    assert calculate_percentage(10, 10) == 100
    assert calculate_percentage(9, 10) == 90
    assert calculate_percentage(1, 3) == 33
    assert calculate_percentage(2, 3) == 67
    assert calculate_percentage(1, 8) == 13
    assert calculate_percentage(0, 0) == 0


def test_all_correct_passes_and_unlocks_next_session(bank):
    grade = grade_session(bank, 1, correct_sheet(range(1, 11)))

    assert grade.passed
    assert grade.correct_count == 10
    assert grade.total_questions == 10
    assert grade.percentage == 100
    assert all(grade.results.values())
    assert "Session 2 is now unlocked" in grade.message


def test_one_wrong_answer_fails_the_session(bank):
    answers = correct_sheet(range(1, 11))
    answers["4"] = wrong_answer_for(4)

    grade = grade_session(bank, 1, answers)

    assert not grade.passed
    assert grade.correct_count == 9
    assert grade.incorrect_count == 1
    assert grade.percentage == 90
    assert grade.results["4"] is False
    assert "9 of 10" in grade.message
    assert "100%" in grade.message


def test_missing_lowercase_and_non_string_answers_are_incorrect(bank):
    answers = correct_sheet(range(11, 21))
    del answers["11"]
    answers["12"] = answers["12"].lower()
    answers["13"] = 0

    grade = grade_session(bank, 2, answers)

    assert grade.correct_count == 7
    assert grade.results["11"] is False
    assert grade.results["12"] is False
    assert grade.results["13"] is False


def test_integer_keys_are_accepted(bank):
    answers = {qid: answer_for(qid) for qid in range(1, 11)}

    assert grade_session(bank, 1, answers).passed


def test_final_session_message(bank):
    grade = grade_session(bank, 20, correct_sheet(range(191, 201)))

    assert grade.passed
    assert "final session" in grade.message


def test_answered_scope_grades_only_submitted_questions(bank):
    answers = {"150": answer_for(150), "3": answer_for(3), "9999": "A", "x": "B", "²": "C", "-3": "D"}

    grade = grade_session(bank, 1, answers, SCOPE_ANSWERED)

    assert grade.total_questions == 2
    assert grade.passed
    assert set(grade.results) == {"150", "3"}


def test_assigned_scope_uses_stored_assignment(bank):
    assigned = [42, 7, 133]
    answers = correct_sheet(assigned)
    answers["1"] = "A"

    grade = grade_session(bank, 5, answers, SCOPE_ASSIGNED, assigned)

    assert grade.question_ids == assigned
    assert grade.total_questions == 3
    assert grade.passed


def test_empty_question_set_is_an_error():
    short_bank = QuestionBank.from_records(build_records(15))

    with pytest.raises(NoQuestionsFoundError):
        grade_session(short_bank, 3, {})
    with pytest.raises(NoQuestionsFoundError):
        grade_session(short_bank, 1, {"999": "A"}, SCOPE_ANSWERED)
    with pytest.raises(NoQuestionsFoundError):
        grade_session(short_bank, 1, {}, SCOPE_ASSIGNED, None)


def test_invalid_input_is_rejected(bank):
    with pytest.raises(ValidationError):
        grade_session(bank, 1, {}, "everything")
    with pytest.raises(ValidationError):
        normalize_answers(["A", "B"])
    with pytest.raises(ValidationError):
        grade_session(bank, 21, {})


def test_grade_payload_shape(bank):
    payload = grade_session(bank, 1, correct_sheet(range(1, 11))).to_dict()

    assert set(payload) == {"success", "correctCount", "totalQuestions", "percentage", "results", "message"}
    assert payload["success"] is True
    assert payload["results"]["1"] is True

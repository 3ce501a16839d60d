from datetime import datetime, timedelta, timezone

import pytest

from practice_exam.core.errors import ForbiddenError, NotFoundError, ValidationError
from practice_exam.core.grading import GradeResult
from practice_exam.core.history import HistoryRecorder

from conftest import seed_user

BASE = datetime(2024, 3, 1, 8, 0, 0, tzinfo=timezone.utc)


class DummyDB:
    def __init__(self):
        self.captured_query = None
        self.captured_params = None
        self.next_id = 42

    def execute_insert(self, query, params=None):
        self.captured_query = query
        self.captured_params = params or ()
        return self.next_id


def valid_payload(**overrides):
    payload = {
        "session_id": 1,
        "score": 100,
        "total_questions": 10,
        "correct_answers": 10,
        "incorrect_answers": 0,
        "answers": {"1": "A"},
    }
    payload.update(overrides)
    return payload


def test_record_grade_maps_grade_fields():
    db = DummyDB()
    recorder = HistoryRecorder(db)
    grade = GradeResult(session_id=3, correct_count=9, total_questions=10)

    record = recorder.record_grade(7, grade, {"21": "B"})

    assert "INSERT INTO exam_results" in db.captured_query
    assert db.captured_params[:6] == (7, 3, 90, 10, 9, 1)
    assert db.captured_params[6] == '{"21": "B"}'
    assert record["id"] == 42
    assert record["created_at"].endswith("Z")


def test_validate_payload_rejects_bad_results():
    recorder = HistoryRecorder(DummyDB())

    assert recorder.validate_payload(valid_payload())["score"] == 100

    bad_payloads = [
        {k: v for k, v in valid_payload().items() if k != "answers"},
        valid_payload(score=101),
        valid_payload(session_id=21),
        valid_payload(correct_answers=8, incorrect_answers=3),
        valid_payload(total_questions="ten"),
        valid_payload(answers=["A"]),
        "not an object",
    ]
    for payload in bad_payloads:
        with pytest.raises(ValidationError):
            recorder.validate_payload(payload)


def test_history_is_listed_newest_first(app, user_id):
    recorder = app.history_recorder
    for offset, session_id in enumerate((1, 2, 3)):
        recorder.record(user_id, session_id, 100, 10, 10, 0, {}, now=BASE + timedelta(minutes=offset))

    history = recorder.list_for_user(user_id)

    assert [r["session_id"] for r in history] == [3, 2, 1]
    assert history[0]["created_at"] == "2024-03-01T08:02:00.000Z"
    assert history[0]["answers"] == {}


def test_history_is_scoped_to_the_owner(app, user_id):
    other_id = seed_user(app.db_manager, "user2", "user2pass")
    record = app.history_recorder.record_payload(user_id, valid_payload(answers={"5": "C"}))

    fetched = app.history_recorder.get_for_user(record["id"], user_id)
    assert fetched["answers"] == {"5": "C"}

    with pytest.raises(ForbiddenError):
        app.history_recorder.get_for_user(record["id"], other_id)
    with pytest.raises(NotFoundError):
        app.history_recorder.get_for_user(record["id"] + 100, user_id)
    assert app.history_recorder.list_for_user(other_id) == []


def test_summary_and_delete(app, user_id):
    recorder = app.history_recorder
    assert recorder.summary(user_id) == {"totalExams": 0, "averageScore": 0.0, "passedExams": 0}

    recorder.record(user_id, 1, 100, 10, 10, 0, {})
    recorder.record(user_id, 2, 90, 10, 9, 1, {})
    recorder.record(user_id, 2, 85, 10, 8, 1, {})

    assert recorder.summary(user_id) == {"totalExams": 3, "averageScore": 91.7, "passedExams": 1}

    assert recorder.delete_all_for_user(user_id) == 3
    assert recorder.list_for_user(user_id) == []

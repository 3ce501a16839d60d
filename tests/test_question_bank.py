import json
import logging
import os

import pytest

from practice_exam.core.config import PACKAGE_DIR
from practice_exam.core.errors import InvalidSessionError, QuestionBankError
from practice_exam.core.question_bank import QuestionBank, parse_question, validate_session_id

from conftest import build_records


def test_parse_question_accepts_indonesian_keys():
    record = {
        "id_soal": "7",
        "materi": "Kode Etik",
        "pertanyaan": "Siapa yang mengawasi advokat?",
        "pilihan_a": "Hakim",
        "pilihan_b": "Organisasi advokat",
        "pilihan_c": "Jaksa",
        "pilihan_d": "Polisi",
        "kunci_jawaban": "B",
        "penjelasan": "Pasal 12",
    }

    question = parse_question(record)

    assert question.id == 7
    assert question.topic == "Kode Etik"
    assert question.options == ("Hakim", "Organisasi advokat", "Jaksa", "Polisi")
    assert question.answer == "B"
    assert question.answer_index == 1
    assert question.explanation == "Pasal 12"


def test_parse_question_rejects_bad_records():
    record = build_records(1)[0]

    with pytest.raises(QuestionBankError):
        parse_question({k: v for k, v in record.items() if k != "option_c"})
    with pytest.raises(QuestionBankError):
        parse_question(dict(record, answer="E"))
    with pytest.raises(QuestionBankError):
        parse_question(dict(record, answer="a"))
    with pytest.raises(QuestionBankError):
        parse_question(dict(record, id="abc"))
    with pytest.raises(QuestionBankError):
        parse_question(dict(record, id="²"))
    with pytest.raises(QuestionBankError):
        parse_question(dict(record, id="-4"))
    with pytest.raises(QuestionBankError):
        parse_question("not a record")


def test_explanation_is_optional():
    record = build_records(1)[0]
    del record["explanation"]

    assert parse_question(record).explanation is None


def test_duplicate_ids_are_rejected():
    records = build_records(2)
    records[1]["id"] = 1

    with pytest.raises(QuestionBankError):
        QuestionBank.from_records(records)


def test_session_slices_follow_bank_order(bank):
    assert [q.id for q in bank.session_slice(1)] == list(range(1, 11))
    assert [q.id for q in bank.session_slice(2)] == list(range(11, 21))
    assert [q.id for q in bank.session_slice(20)] == list(range(191, 201))


def test_short_bank_yields_short_and_empty_slices():
    bank = QuestionBank.from_records(build_records(15))

    assert len(bank.session_slice(1)) == 10
    assert [q.id for q in bank.session_slice(2)] == list(range(11, 16))
    assert bank.session_slice(3) == []


def test_validate_session_id():
    assert validate_session_id(1) == 1
    assert validate_session_id("20") == 20
    assert validate_session_id(" 3 ") == 3

    for bad in (0, 21, -1, "abc", "", None, True, 2.5, "²", "٣", "--5", "+3"):
        with pytest.raises(InvalidSessionError):
            validate_session_id(bad)


def test_get_many_keeps_requested_order(bank):
    questions = bank.get_many([30, 5, 999, 5, 12])

    assert [q.id for q in questions] == [30, 5, 12]
    assert bank.get(999) is None


def test_to_dict_hides_answer_key_by_default(bank):
    question = bank.get(3)

    public = question.to_dict()
    assert public == {
        "id": 3,
        "topic": "Topic 1",
        "question": "Sample question 3",
        "options": ["Option A3", "Option B3", "Option C3", "Option D3"],
    }

    authoring = question.to_dict(include_answer=True)
    assert authoring["correctAnswer"] == 2
    assert authoring["explanation"] == "Explanation 3"


def test_from_file_reports_unreadable_bank(tmp_path):
    with pytest.raises(QuestionBankError):
        QuestionBank.from_file(str(tmp_path / "missing.json"))

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(QuestionBankError):
        QuestionBank.from_file(str(broken))

    not_a_list = tmp_path / "object.json"
    not_a_list.write_text(json.dumps({"id": 1}), encoding="utf-8")
    with pytest.raises(QuestionBankError):
        QuestionBank.from_file(str(not_a_list))


def test_short_bank_file_logs_a_capacity_warning(tmp_path, caplog):
    path = tmp_path / "short.json"
    path.write_text(json.dumps(build_records(15)), encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="practice_exam.core.question_bank"):
        bank = QuestionBank.from_file(str(path))

    assert bank.capacity == 200
    assert bank.filled_sessions == 1
    assert any("15 of 200" in r.getMessage() for r in caplog.records)


def test_full_bank_file_logs_no_warning(tmp_path, caplog):
    path = tmp_path / "full.json"
    path.write_text(json.dumps(build_records()), encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="practice_exam.core.question_bank"):
        bank = QuestionBank.from_file(str(path))

    assert bank.filled_sessions == 20
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]


def test_bundled_bank_loads():
    bank = QuestionBank.from_file(os.path.join(PACKAGE_DIR, "data", "question_bank.json"))

    assert len(bank) == 20
    assert bank.filled_sessions == 2
    assert [q.id for q in bank.session_slice(1)] == list(range(1, 11))
    assert all(q.answer in "ABCD" for q in bank)

import json
import random

import pytest
from werkzeug.security import generate_password_hash

from app import create_app
from practice_exam.core.config import Config
from practice_exam.core.question_bank import ANSWER_LETTERS, QuestionBank


def answer_for(question_id):
    # generated bank cycles the key A, B, C, D
    return ANSWER_LETTERS[(question_id - 1) % 4]


def wrong_answer_for(question_id):
    return ANSWER_LETTERS[question_id % 4]


def build_records(count=200):
    return [
        {
            "id": i,
            "topic": f"Topic {(i - 1) // 10 + 1}",
            "question": f"Sample question {i}",
            "option_a": f"Option A{i}",
            "option_b": f"Option B{i}",
            "option_c": f"Option C{i}",
            "option_d": f"Option D{i}",
            "answer": answer_for(i),
            "explanation": f"Explanation {i}",
        }
        for i in range(1, count + 1)
    ]


def make_config(tmp_path, records=None, **overrides):
    bank_path = tmp_path / "question_bank.json"
    bank_path.write_text(json.dumps(build_records() if records is None else records), encoding="utf-8")
    db_path = tmp_path / "test.db"

    attrs = {
        "SECRET_KEY": "test-secret",
        "DEBUG": True,
        "TESTING": True,
        "DATABASE_TYPE": "sqlite",
        "DATABASE_URL": f"sqlite:///{db_path}",
        "DB_NAME": str(db_path),
        "QUESTION_BANK_PATH": str(bank_path),
        "EXPOSE_ANSWER_KEY": False,
    }
    attrs.update(overrides)
    return type("TestConfig", (Config,), attrs)


def make_app(tmp_path, records=None, seed=1234, **overrides):
    app = create_app(make_config(tmp_path, records, **overrides))
    app.rng = random.Random(seed)
    return app


def seed_user(db_manager, username="user1", password="user1pass"):
    return db_manager.execute_insert(
        "INSERT INTO users (username, password_hash) VALUES (?, ?)",
        (username, generate_password_hash(password)),
    )


def login_user(client, username="user1", password="user1pass"):
    return client.post("/auth/login", json={"username": username, "password": password})


@pytest.fixture()
def bank():
    return QuestionBank.from_records(build_records())


@pytest.fixture()
def app(tmp_path):
    return make_app(tmp_path)


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def user_id(app):
    return seed_user(app.db_manager)

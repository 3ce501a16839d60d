"""
Accessors for the services attached to the application
"""
from flask import current_app

from practice_exam.core.auth import current_user_id
from practice_exam.core.progress_repository import DatabaseProgressRepository, SessionProgressRepository


def get_db_manager():
    return current_app.db_manager


def get_question_bank():
    return current_app.question_bank


def get_history_recorder():
    return current_app.history_recorder


def get_local_repository():
    """Progress held in the caller's signed cookie, scoped to the logged-in user"""
    return SessionProgressRepository(
        total_sessions=get_question_bank().total_sessions,
        owner_id=current_user_id()
    )


def get_remote_repository(user_id):
    """Progress held in the server-side user_progress row"""
    return DatabaseProgressRepository(get_db_manager(), user_id, get_question_bank().total_sessions)


def include_answer_key():
    return bool(current_app.config.get('EXPOSE_ANSWER_KEY'))

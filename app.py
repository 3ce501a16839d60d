"""
Practice exam engine - main application
Flask + SQLite/PostgreSQL: session grading, question assignment and progress sync
"""

import logging
import random
from datetime import timedelta

from flask import Flask

from practice_exam.core.auth import init_auth_routes
from practice_exam.core.config import Config
from practice_exam.core.database import DatabaseManager
from practice_exam.core.errors import QuestionBankError, register_error_handlers
from practice_exam.core.history import HistoryRecorder
from practice_exam.core.question_bank import QuestionBank
from practice_exam.routes import history_bp, main_bp, progress_bp, session_bp


def create_app(config_class=Config):
    """Application Factory Pattern"""
    app = Flask(__name__)
    app.config.from_object(config_class)

    _configure_logging(config_class)
    _configure_security(app, config_class)

    # Services shared by the blueprints
    app.db_manager = _init_database(config_class)
    app.question_bank = _load_question_bank(config_class)
    app.history_recorder = HistoryRecorder(app.db_manager, config_class.TOTAL_SESSIONS)
    app.rng = random.Random()

    init_auth_routes(app, app.db_manager)
    _register_blueprints(app)
    register_error_handlers(app)

    return app


def _configure_logging(config_class):
    logging.basicConfig(
        level=getattr(logging, config_class.LOG_LEVEL, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _configure_security(app, config_class):
    if not app.config['SECRET_KEY']:
        if config_class.DEBUG:
            app.config['SECRET_KEY'] = 'dev-secret-key-change-in-production'
            app.logger.warning("Using the development SECRET_KEY. Set SECRET_KEY in production.")
        else:
            raise ValueError("SECRET_KEY environment variable is not set.")

    # The session cookie doubles as the client's local progress store
    app.config.update(
        SESSION_COOKIE_SECURE=not config_class.DEBUG,
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE='Lax',
        PERMANENT_SESSION_LIFETIME=timedelta(days=config_class.PROGRESS_COOKIE_DAYS)
    )


def _init_database(config_class):
    try:
        db_manager = DatabaseManager(config_class.get_db_config())
        db_manager.init_database()
        return db_manager
    except Exception as e:
        raise RuntimeError(f"Database initialisation failed: {e}") from e


def _load_question_bank(config_class):
    try:
        return QuestionBank.from_file(
            config_class.QUESTION_BANK_PATH,
            session_size=config_class.SESSION_SIZE,
            total_sessions=config_class.TOTAL_SESSIONS
        )
    except QuestionBankError as e:
        raise RuntimeError(f"Question bank could not be loaded: {e}") from e


def _register_blueprints(app):
    for blueprint in (main_bp, session_bp, progress_bp, history_bp):
        app.register_blueprint(blueprint)


if __name__ == '__main__':
    app = create_app()
    app.logger.info(f"Starting Flask app on port {Config.PORT}")
    app.logger.info(f"Debug mode: {'ON' if Config.DEBUG else 'OFF'}")
    app.logger.info(f"Database: {Config.DATABASE_TYPE.upper()}")
    app.run(debug=Config.DEBUG, host=Config.HOST, port=Config.PORT)

"""
Error taxonomy and JSON error handlers
"""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class PracticeExamError(Exception):
    """Base error carrying an HTTP status and a client-safe message"""
    status_code = 500
    message = 'Internal server error'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self):
        return {'error': self.message}


class ValidationError(PracticeExamError):
    status_code = 400
    message = 'Invalid request'


class InvalidSessionError(ValidationError):
    message = 'Invalid session ID'


class NoQuestionsFoundError(ValidationError):
    message = 'No questions found for this session'


class AuthError(PracticeExamError):
    status_code = 401
    message = 'Unauthorized'


class ForbiddenError(PracticeExamError):
    status_code = 403
    message = 'Forbidden'


class NotFoundError(PracticeExamError):
    status_code = 404
    message = 'Not found'


class UpstreamStoreError(PracticeExamError):
    """Backing store failure; the detail stays in the server log"""
    status_code = 500

    def __init__(self, detail=None):
        super().__init__()
        self.detail = detail

    def to_dict(self):
        return {'error': PracticeExamError.message}


class QuestionBankError(ValueError):
    """Malformed question bank file"""


def register_error_handlers(app):
    """Render every error as JSON"""

    @app.errorhandler(PracticeExamError)
    def _handle_practice_exam_error(error):
        if isinstance(error, UpstreamStoreError):
            logger.error(f"Store error: {error.detail}")
        elif error.status_code >= 500:
            logger.error(f"Unhandled application error: {error}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error):
        return jsonify({'error': error.description}), error.code

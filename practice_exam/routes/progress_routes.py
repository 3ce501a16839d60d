"""
Progress endpoints: local snapshot, reconciliation with the server record, reset
"""
import logging

from flask import Blueprint, jsonify

from practice_exam.core.auth import current_user_id, login_required
from practice_exam.core.errors import ValidationError
from practice_exam.core.helpers import get_json_body
from practice_exam.core.progress_repository import reconcile

from .context import get_history_recorder, get_local_repository, get_question_bank, get_remote_repository

logger = logging.getLogger(__name__)

progress_bp = Blueprint('progress', __name__)


@progress_bp.route('/progress')
@login_required
def get_progress():
    progress = get_local_repository().load_or_default()
    return jsonify(progress.to_dict())


@progress_bp.route('/progress', methods=['POST'])
def complete_session():
    """Mark a session as passed in the local snapshot"""
    data = get_json_body()
    if data.get('sessionId') is None:
        raise ValidationError('Missing sessionId')
    session_id = get_question_bank().validate_session_id(data['sessionId'])

    local = get_local_repository()
    progress = local.load_or_default()
    progress.record_pass(session_id)
    local.save(progress)
    return jsonify(progress.to_dict())


@progress_bp.route('/progress/sync', methods=['POST'])
@login_required
def sync_progress():
    """Last-write-wins sync; the winning snapshot is written back locally"""
    outcome = reconcile(get_json_body(), get_remote_repository(current_user_id()))
    get_local_repository().save(outcome.progress)
    return jsonify(outcome.to_dict())


@progress_bp.route('/progress/sync')
@login_required
def get_server_progress():
    progress = get_remote_repository(current_user_id()).load()
    return jsonify({'progress': progress.to_dict() if progress else None})


@progress_bp.route('/progress/reset', methods=['POST'])
@login_required
def reset_progress():
    """Wipe local progress, the server record and the result history"""
    user_id = current_user_id()
    get_remote_repository(user_id).clear()
    get_history_recorder().delete_all_for_user(user_id)
    get_local_repository().clear()
    logger.info(f"Progress reset for user {user_id}")
    return jsonify({'success': True, 'message': 'Progress reset successfully'})

"""
Exam result history endpoints
"""
from flask import Blueprint, jsonify, request

from practice_exam.core.auth import current_user_id, login_required
from practice_exam.core.helpers import get_json_body, is_decimal

from .context import get_history_recorder, get_question_bank

history_bp = Blueprint('history', __name__)


@history_bp.route('/history')
@login_required
def list_history():
    return jsonify({'history': get_history_recorder().list_for_user(current_user_id())})


@history_bp.route('/history/summary')
@login_required
def history_summary():
    return jsonify(get_history_recorder().summary(current_user_id()))


@history_bp.route('/history/<int:record_id>')
@login_required
def get_history_record(record_id):
    """One result; include=questions adds the answered questions with their key"""
    result = get_history_recorder().get_for_user(record_id, current_user_id())
    if request.args.get('include') == 'questions':
        ids = [int(k) for k in result['answers'] if is_decimal(str(k))]
        questions = get_question_bank().get_many(ids)
        result['questions'] = [q.to_dict(include_answer=True) for q in questions]
    return jsonify({'result': result})


@history_bp.route('/history', methods=['POST'])
@login_required
def create_history_record():
    record = get_history_recorder().record_payload(current_user_id(), get_json_body())
    return jsonify({'success': True, 'data': record})

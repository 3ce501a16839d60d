"""
Service endpoints
"""
from flask import Blueprint, jsonify

from .context import get_question_bank

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    return jsonify({'status': 'healthy'}), 200


@main_bp.route('/')
def index():
    bank = get_question_bank()
    return jsonify({
        'name': 'practice-exam',
        'totalSessions': bank.total_sessions,
        'sessionSize': bank.session_size,
        'totalQuestions': len(bank),
        'filledSessions': bank.filled_sessions,
    })

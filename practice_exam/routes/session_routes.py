"""
Session questions, assignment and grading
"""
import logging

from flask import Blueprint, current_app, jsonify, request

from practice_exam.core.assignment import DEFAULT_DRAW_COUNT, assign_session, draw_random, fetch_batch, slice_questions
from practice_exam.core.auth import current_user_id
from practice_exam.core.errors import ForbiddenError, UpstreamStoreError, ValidationError
from practice_exam.core.grading import SCOPE_ASSIGNED, SCOPE_SLICE, grade_session, normalize_answers
from practice_exam.core.helpers import get_json_body, parse_int, parse_int_list

from .context import get_history_recorder, get_local_repository, get_question_bank, include_answer_key

logger = logging.getLogger(__name__)

session_bp = Blueprint('sessions', __name__)


def get_rng():
    return getattr(current_app, 'rng', None)


def serialize(questions, include_answer=False):
    return [q.to_dict(include_answer=include_answer) for q in questions]


@session_bp.route('/sessions/<session_id>')
def get_session(session_id):
    """Deterministic slice for a session, answer key stripped"""
    bank = get_question_bank()
    session_id = bank.validate_session_id(session_id)
    questions = slice_questions(bank, session_id)
    return jsonify({
        'sessionId': session_id,
        'questions': serialize(questions, include_answer_key()),
        'totalQuestions': len(questions),
    })


@session_bp.route('/sessions/<session_id>/assignment')
def get_assignment(session_id):
    """Adaptive assignment, stored on first load and replayed afterwards"""
    bank = get_question_bank()
    session_id = bank.validate_session_id(session_id)
    count = parse_int(request.args.get('count', DEFAULT_DRAW_COUNT), 'count', 0)

    local = get_local_repository()
    progress = local.load_or_default()
    if not progress.is_session_unlocked(session_id):
        raise ForbiddenError(f'Session {session_id} is locked until session {session_id - 1} is completed')

    draw = assign_session(progress, bank, session_id, count, get_rng())
    if not draw.reused:
        local.save(progress)

    return jsonify({
        'sessionId': session_id,
        'questions': serialize(draw.questions, include_answer_key()),
        'questionIds': draw.question_ids,
        'totalQuestions': len(draw.questions),
        'totalAvailable': draw.total_available,
        'reused': draw.reused,
        'answers': {str(k): v for k, v in (progress.get_answers(session_id) or {}).items()},
        'state': progress.session_state(session_id),
    })


@session_bp.route('/sessions/<session_id>/answers', methods=['PUT'])
def save_answers(session_id):
    """Store the in-progress draft: question id -> selected option index"""
    bank = get_question_bank()
    session_id = bank.validate_session_id(session_id)
    answers = get_json_body().get('answers')
    if not isinstance(answers, dict):
        raise ValidationError('answers must be an object mapping question IDs to option indexes')

    draft = {}
    for question_id, option_index in answers.items():
        draft[parse_int(question_id, 'question ID', 0)] = parse_int(option_index, 'option index', 0, 3)

    local = get_local_repository()
    progress = local.load_or_default()
    progress.save_answers(session_id, draft)
    local.save(progress)
    return jsonify({
        'sessionId': session_id,
        'answers': {str(k): v for k, v in draft.items()},
        'state': progress.session_state(session_id),
    })


@session_bp.route('/sessions/<session_id>/retry', methods=['POST'])
def retry_session(session_id):
    """Clear the draft and reshuffle the already-assigned questions"""
    bank = get_question_bank()
    session_id = bank.validate_session_id(session_id)

    local = get_local_repository()
    progress = local.load_or_default()
    progress.retry(session_id, get_rng())
    local.save(progress)
    return jsonify({
        'sessionId': session_id,
        'questionIds': progress.get_session_questions(session_id) or [],
        'state': progress.session_state(session_id),
    })


@session_bp.route('/questions/random', methods=['POST'])
def random_questions():
    data = get_json_body(required=False)
    exclude_ids = parse_int_list(data.get('excludeIds', []), 'excludeIds')
    count = parse_int(data.get('count', DEFAULT_DRAW_COUNT), 'count', 0)

    draw = draw_random(get_question_bank(), exclude_ids, count, get_rng())
    return jsonify({
        'questions': serialize(draw.questions, include_answer_key()),
        'totalAvailable': draw.total_available,
    })


@session_bp.route('/questions/batch', methods=['POST'])
def batch_questions():
    data = get_json_body(required=False)
    question_ids = parse_int_list(data.get('questionIds', []), 'questionIds')
    questions = fetch_batch(get_question_bank(), question_ids)
    return jsonify({'questions': serialize(questions, include_answer_key())})


@session_bp.route('/submit', methods=['POST'])
def submit():
    """Grade a session; a pass advances local progress and is recorded in history"""
    data = get_json_body()
    if data.get('session_id') is None:
        raise ValidationError('Missing session_id')
    if data.get('answers') is None:
        raise ValidationError('Missing answers')

    bank = get_question_bank()
    session_id = bank.validate_session_id(data['session_id'])
    answers = normalize_answers(data['answers'])

    local = get_local_repository()
    progress = local.load_or_default()
    assigned = progress.get_session_questions(session_id)
    scope = data.get('scope') or (SCOPE_ASSIGNED if assigned else SCOPE_SLICE)

    grade = grade_session(bank, session_id, answers, scope, assigned)
    response = grade.to_dict()

    if grade.passed:
        progress.record_pass(session_id, grade.question_ids)
        local.save(progress)

        user_id = current_user_id()
        if user_id is not None:
            # grading already succeeded; a failed insert is reported, not raised
            try:
                get_history_recorder().record_grade(user_id, grade, answers)
                response['historySaved'] = True
            except UpstreamStoreError as e:
                logger.error(f"History insert failed for user {user_id}: {e.detail}")
                response['historySaved'] = False

    return jsonify(response)

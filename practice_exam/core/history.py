"""
Exam result history
Append-only per user; records are only ever removed together on a progress reset
"""
import json
import logging

from .errors import ForbiddenError, NotFoundError, ValidationError
from .helpers import parse_int, utc_now_iso

logger = logging.getLogger(__name__)

RESULT_COLUMNS = ('id, user_id, session_id, score, total_questions, correct_answers, '
                  'incorrect_answers, answers, created_at')


def _row_to_record(row):
    record = dict(row)
    if isinstance(record.get('answers'), str):
        record['answers'] = json.loads(record['answers'])
    return record


class HistoryRecorder:
    def __init__(self, db_manager, total_sessions=20):
        self.db = db_manager
        self.total_sessions = total_sessions

    def validate_payload(self, payload):
        """Check a client-supplied result; returns the cleaned fields"""
        if not isinstance(payload, dict):
            raise ValidationError('Result payload must be an object')

        missing = [f for f in ('session_id', 'score', 'total_questions', 'correct_answers',
                               'incorrect_answers', 'answers') if payload.get(f) is None]
        if missing:
            raise ValidationError(f"Missing fields: {', '.join(missing)}")

        fields = {
            'session_id': parse_int(payload['session_id'], 'session_id', 1, self.total_sessions),
            'score': parse_int(payload['score'], 'score', 0, 100),
            'total_questions': parse_int(payload['total_questions'], 'total_questions', 0),
            'correct_answers': parse_int(payload['correct_answers'], 'correct_answers', 0),
            'incorrect_answers': parse_int(payload['incorrect_answers'], 'incorrect_answers', 0),
            'answers': payload['answers'],
        }
        if fields['correct_answers'] + fields['incorrect_answers'] > fields['total_questions']:
            raise ValidationError('correct_answers + incorrect_answers must not exceed total_questions')
        if not isinstance(fields['answers'], dict):
            raise ValidationError('answers must be an object')
        return fields

    def record(self, user_id, session_id, score, total_questions, correct_answers,
               incorrect_answers, answers, now=None):
        created_at = utc_now_iso(now)
        new_id = self.db.execute_insert(
            '''INSERT INTO exam_results
                   (user_id, session_id, score, total_questions, correct_answers,
                    incorrect_answers, answers, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)''',
            (user_id, session_id, score, total_questions, correct_answers,
             incorrect_answers, json.dumps(answers), created_at)
        )
        logger.info(f"Recorded result {new_id} for user {user_id}, session {session_id}")
        return {
            'id': new_id,
            'user_id': user_id,
            'session_id': session_id,
            'score': score,
            'total_questions': total_questions,
            'correct_answers': correct_answers,
            'incorrect_answers': incorrect_answers,
            'answers': answers,
            'created_at': created_at,
        }

    def record_payload(self, user_id, payload):
        return self.record(user_id, **self.validate_payload(payload))

    def record_grade(self, user_id, grade, answers):
        return self.record(
            user_id,
            session_id=grade.session_id,
            score=grade.percentage,
            total_questions=grade.total_questions,
            correct_answers=grade.correct_count,
            incorrect_answers=grade.incorrect_count,
            answers=answers,
        )

    def list_for_user(self, user_id):
        rows = self.db.execute_query(
            f'SELECT {RESULT_COLUMNS} FROM exam_results WHERE user_id = ? '
            'ORDER BY created_at DESC, id DESC',
            (user_id,)
        )
        return [_row_to_record(row) for row in rows]

    def get_for_user(self, record_id, user_id):
        rows = self.db.execute_query(
            f'SELECT {RESULT_COLUMNS} FROM exam_results WHERE id = ?',
            (record_id,)
        )
        if not rows:
            raise NotFoundError('Result not found')
        record = _row_to_record(rows[0])
        if record['user_id'] != user_id:
            raise ForbiddenError('This result belongs to another user')
        return record

    def delete_all_for_user(self, user_id):
        deleted = self.db.execute_query('DELETE FROM exam_results WHERE user_id = ?', (user_id,))
        logger.info(f"Deleted {deleted} results for user {user_id}")
        return deleted

    def summary(self, user_id):
        """Totals shown on the dashboard"""
        rows = self.db.execute_query(
            '''SELECT COUNT(*) AS total,
                      COALESCE(AVG(score), 0) AS average,
                      SUM(CASE WHEN score = 100 THEN 1 ELSE 0 END) AS passed
               FROM exam_results WHERE user_id = ?''',
            (user_id,)
        )
        row = rows[0] if rows else {}
        total = row.get('total') or 0
        return {
            'totalExams': int(total),
            'averageScore': round(float(row.get('average') or 0), 1),
            'passedExams': int(row.get('passed') or 0),
        }

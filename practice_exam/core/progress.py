"""
Per-user progress through the exam sessions

completedSessions and masteredQuestionIds only ever grow. currentSession is
derived from the highest completed session and clamped to [1, total_sessions].
"""
import logging
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .errors import ValidationError
from .helpers import is_decimal, utc_now_iso

logger = logging.getLogger(__name__)

TOTAL_SESSIONS = 20

STATE_LOCKED = 'locked'
STATE_UNLOCKED = 'unlocked'
STATE_IN_PROGRESS = 'in_progress'
STATE_COMPLETED = 'completed'


def _int(value, field_name):
    if isinstance(value, bool):
        raise ValidationError(f'{field_name} must contain integers')
    if isinstance(value, str) and is_decimal(value.strip()):
        return int(value)
    if isinstance(value, int):
        return value
    raise ValidationError(f'{field_name} must contain integers')


def _int_list(values, field_name):
    if not isinstance(values, list):
        raise ValidationError(f'{field_name} must be a list')
    return [_int(v, field_name) for v in values]


def _int_dict(values, field_name):
    if not isinstance(values, dict):
        raise ValidationError(f'{field_name} must be an object')
    return {_int(k, field_name): v for k, v in values.items()}


@dataclass
class Progress:
    completed_sessions: List[int] = field(default_factory=list)
    current_session: int = 1
    mastered_question_ids: List[int] = field(default_factory=list)
    session_questions: Dict[int, List[int]] = field(default_factory=dict)
    current_answers: Dict[int, Dict[int, int]] = field(default_factory=dict)
    last_updated: str = field(default_factory=utc_now_iso)
    total_sessions: int = TOTAL_SESSIONS

    @classmethod
    def from_dict(cls, data, total_sessions=TOTAL_SESSIONS):
        """Read a camelCase snapshot; absent fields fall back to defaults"""
        if not isinstance(data, dict):
            raise ValidationError('progress must be an object')

        session_questions = {
            k: _int_list(v, 'sessionQuestions')
            for k, v in _int_dict(data.get('sessionQuestions') or {}, 'sessionQuestions').items()
        }
        current_answers = {
            k: {qid: _int(idx, 'currentAnswers') for qid, idx in _int_dict(v, 'currentAnswers').items()}
            for k, v in _int_dict(data.get('currentAnswers') or {}, 'currentAnswers').items()
        }
        last_updated = data.get('lastUpdated') or utc_now_iso()
        if not isinstance(last_updated, str):
            raise ValidationError('lastUpdated must be an ISO-8601 timestamp')

        progress = cls(
            completed_sessions=sorted(set(_int_list(data.get('completedSessions') or [], 'completedSessions'))),
            current_session=_int(data.get('currentSession') or 1, 'currentSession'),
            mastered_question_ids=sorted(set(_int_list(data.get('masteredQuestionIds') or [], 'masteredQuestionIds'))),
            session_questions=session_questions,
            current_answers=current_answers,
            last_updated=last_updated,
            total_sessions=total_sessions,
        )
        progress.current_session = progress._clamp(progress.current_session)
        if progress.completed_sessions:
            next_session = progress._clamp(max(progress.completed_sessions) + 1)
            progress.current_session = max(progress.current_session, next_session)
        return progress

    def to_dict(self):
        return {
            'completedSessions': list(self.completed_sessions),
            'currentSession': self.current_session,
            'masteredQuestionIds': list(self.mastered_question_ids),
            'sessionQuestions': {str(k): list(v) for k, v in self.session_questions.items()},
            'currentAnswers': {
                str(k): {str(qid): idx for qid, idx in v.items()}
                for k, v in self.current_answers.items()
            },
            'lastUpdated': self.last_updated,
        }

    def _clamp(self, session_id):
        return max(1, min(session_id, self.total_sessions))

    def touch(self, now=None):
        self.last_updated = utc_now_iso(now)

    def record_pass(self, session_id, question_ids=(), now=None):
        """Fold a 100% result in; safe to apply more than once"""
        if session_id not in self.completed_sessions:
            self.completed_sessions = sorted(self.completed_sessions + [session_id])
        self.mastered_question_ids = sorted(set(self.mastered_question_ids) | set(question_ids))
        next_session = self._clamp(max(self.completed_sessions) + 1)
        self.current_session = max(self.current_session, next_session)
        self.current_answers.pop(session_id, None)
        self.touch(now)
        logger.info(f"Session {session_id} completed; current session is {self.current_session}")

    def is_session_completed(self, session_id):
        return session_id in self.completed_sessions

    def is_session_unlocked(self, session_id):
        if session_id == 1:
            return True
        return (session_id - 1) in self.completed_sessions

    def session_state(self, session_id):
        if self.is_session_completed(session_id):
            return STATE_COMPLETED
        if not self.is_session_unlocked(session_id):
            return STATE_LOCKED
        if self.current_answers.get(session_id):
            return STATE_IN_PROGRESS
        return STATE_UNLOCKED

    def get_session_questions(self, session_id) -> Optional[List[int]]:
        return self.session_questions.get(session_id) or None

    def set_session_questions(self, session_id, question_ids, now=None):
        self.session_questions[session_id] = list(question_ids)
        self.touch(now)

    def get_answers(self, session_id) -> Optional[Dict[int, int]]:
        return self.current_answers.get(session_id) or None

    def save_answers(self, session_id, answers, now=None):
        self.current_answers[session_id] = dict(answers)
        self.touch(now)

    def retry(self, session_id, rng=None, now=None):
        """Drop the draft and reshuffle the questions already assigned to the session"""
        self.current_answers.pop(session_id, None)
        assigned = self.session_questions.get(session_id)
        if assigned:
            reshuffled = list(assigned)
            (rng or random).shuffle(reshuffled)
            self.session_questions[session_id] = reshuffled
        self.touch(now)

    def reset(self, now=None):
        self.completed_sessions = []
        self.current_session = 1
        self.mastered_question_ids = []
        self.session_questions = {}
        self.current_answers = {}
        self.touch(now)

"""
Session grading
A session passes only when every presented question is answered correctly
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List

from .errors import NoQuestionsFoundError, ValidationError
from .helpers import is_decimal

logger = logging.getLogger(__name__)

SCOPE_SLICE = 'slice'
SCOPE_ANSWERED = 'answered'
SCOPE_ASSIGNED = 'assigned'
SCOPES = (SCOPE_SLICE, SCOPE_ANSWERED, SCOPE_ASSIGNED)


def calculate_percentage(correct, total):
    """round(correct / total * 100), halves rounded up"""
    if total <= 0:
        return 0
    return int(math.floor(correct * 100 / total + 0.5))


def normalize_answers(answers) -> Dict[str, str]:
    """Key answers by question id string; non-letter values can never match"""
    if not isinstance(answers, dict):
        raise ValidationError('answers must be an object mapping question IDs to letters')
    normalized = {}
    for key, value in answers.items():
        normalized[str(key).strip()] = value if isinstance(value, str) else None
    return normalized


@dataclass
class GradeResult:
    session_id: int
    correct_count: int
    total_questions: int
    results: Dict[str, bool] = field(default_factory=dict)
    question_ids: List[int] = field(default_factory=list)
    total_sessions: int = 20

    @property
    def passed(self):
        return self.correct_count == self.total_questions

    @property
    def incorrect_count(self):
        return self.total_questions - self.correct_count

    @property
    def percentage(self):
        return calculate_percentage(self.correct_count, self.total_questions)

    @property
    def message(self):
        if not self.passed:
            return (f"You answered {self.correct_count} of {self.total_questions} questions correctly. "
                    f"A score of 100% is required to continue.")
        if self.session_id >= self.total_sessions:
            return 'Perfect! You answered every question correctly and completed the final session!'
        return (f"Perfect! You answered every question correctly. "
                f"Session {self.session_id + 1} is now unlocked!")

    def to_dict(self):
        return {
            'success': self.passed,
            'correctCount': self.correct_count,
            'totalQuestions': self.total_questions,
            'percentage': self.percentage,
            'results': dict(self.results),
            'message': self.message,
        }


def resolve_questions(bank, session_id, answers, scope=SCOPE_SLICE, assigned_ids=None):
    """Questions a submission is graded against"""
    if scope == SCOPE_SLICE:
        return bank.session_slice(session_id)
    if scope == SCOPE_ANSWERED:
        ids = []
        for key in answers:
            if is_decimal(key):
                ids.append(int(key))
        return bank.get_many(ids)
    if scope == SCOPE_ASSIGNED:
        return bank.get_many(assigned_ids or [])
    raise ValidationError(f"scope must be one of: {', '.join(SCOPES)}")


def grade_session(bank, session_id, answers, scope=SCOPE_SLICE, assigned_ids=None) -> GradeResult:
    """Grade a submission by exact, case-sensitive letter match against the bank"""
    session_id = bank.validate_session_id(session_id)
    answers = normalize_answers(answers)

    questions = resolve_questions(bank, session_id, answers, scope, assigned_ids)
    if not questions:
        raise NoQuestionsFoundError(f'No questions found for session {session_id}')

    results = {}
    correct_count = 0
    for question in questions:
        key = str(question.id)
        is_correct = answers.get(key) == question.answer
        results[key] = is_correct
        if is_correct:
            correct_count += 1

    grade = GradeResult(
        session_id=session_id,
        correct_count=correct_count,
        total_questions=len(questions),
        results=results,
        question_ids=[q.id for q in questions],
        total_sessions=bank.total_sessions,
    )
    logger.info(f"Graded session {session_id} ({scope}): {correct_count}/{len(questions)}")
    return grade

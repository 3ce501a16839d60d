"""
Session question assignment

Two policies:
  - deterministic slice: session N gets bank indices [10(N-1), 10N)
  - adaptive draw: unseen, non-mastered questions with duplicate prompts removed,
    uniformly shuffled; the drawn ids are stored on the progress and replayed
"""
import logging
import random
from dataclasses import dataclass, field
from typing import List

from .errors import ValidationError
from .question_bank import Question

logger = logging.getLogger(__name__)

DEFAULT_DRAW_COUNT = 10


@dataclass
class Draw:
    questions: List[Question] = field(default_factory=list)
    total_available: int = 0
    reused: bool = False

    @property
    def question_ids(self):
        return [q.id for q in self.questions]


def slice_questions(bank, session_id) -> List[Question]:
    return bank.session_slice(session_id)


def candidate_pool(bank, exclude_ids=()) -> List[Question]:
    """Bank order, minus excluded ids and minus prompts already taken"""
    excluded = set(exclude_ids)
    seen_prompts = set()
    pool = []
    for question in bank:
        if question.id in excluded:
            continue
        if question.question in seen_prompts:
            continue
        seen_prompts.add(question.question)
        pool.append(question)
    return pool


def draw_random(bank, exclude_ids=(), count=DEFAULT_DRAW_COUNT, rng=None) -> Draw:
    """Uniform random draw; returns fewer than count when the pool runs short"""
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise ValidationError('count must be a non-negative integer')
    pool = candidate_pool(bank, exclude_ids)
    shuffled = list(pool)
    (rng or random).shuffle(shuffled)
    return Draw(questions=shuffled[:count], total_available=len(pool))


def fetch_batch(bank, question_ids) -> List[Question]:
    return bank.get_many(question_ids)


def assign_session(progress, bank, session_id, count=DEFAULT_DRAW_COUNT, rng=None, now=None) -> Draw:
    """Replay the stored assignment for a session, or draw and store a new one"""
    assigned = progress.get_session_questions(session_id)
    if assigned:
        questions = bank.get_many(assigned)
        return Draw(questions=questions, total_available=len(questions), reused=True)

    draw = draw_random(bank, progress.mastered_question_ids, count, rng)
    progress.set_session_questions(session_id, draw.question_ids, now)
    logger.info(f"Assigned {len(draw.questions)} questions to session {session_id} "
                f"from a pool of {draw.total_available}")
    return draw

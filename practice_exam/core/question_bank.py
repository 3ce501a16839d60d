"""
Static question bank
Loaded once at startup from a JSON array and never mutated afterwards
"""
import json
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import InvalidSessionError, QuestionBankError
from .helpers import is_decimal

logger = logging.getLogger(__name__)

ANSWER_LETTERS = ('A', 'B', 'C', 'D')

# Accepted record keys: English names first, then the legacy Indonesian bank names
FIELD_ALIASES = {
    'id': ('id', 'id_soal'),
    'topic': ('topic', 'materi'),
    'question': ('question', 'pertanyaan'),
    'option_a': ('option_a', 'pilihan_a'),
    'option_b': ('option_b', 'pilihan_b'),
    'option_c': ('option_c', 'pilihan_c'),
    'option_d': ('option_d', 'pilihan_d'),
    'answer': ('answer', 'kunci_jawaban'),
    'explanation': ('explanation', 'penjelasan'),
}
REQUIRED_FIELDS = ('id', 'topic', 'question', 'option_a', 'option_b', 'option_c', 'option_d', 'answer')


@dataclass(frozen=True)
class Question:
    id: int
    topic: str
    question: str
    options: Tuple[str, str, str, str]
    answer: str
    explanation: Optional[str] = None

    @property
    def answer_index(self) -> int:
        """Zero-based index of the correct option"""
        return ANSWER_LETTERS.index(self.answer)

    def to_dict(self, include_answer=False) -> Dict:
        data = {
            'id': self.id,
            'topic': self.topic,
            'question': self.question,
            'options': list(self.options),
        }
        if include_answer:
            data['correctAnswer'] = self.answer_index
            data['explanation'] = self.explanation
        return data


def _pick(record, field):
    for key in FIELD_ALIASES[field]:
        if key in record:
            return record[key]
    return None


def parse_question(record, position=0) -> Question:
    """Build a Question from one bank record, validating every field"""
    if not isinstance(record, dict):
        raise QuestionBankError(f"Record {position}: expected an object")

    missing = [f for f in REQUIRED_FIELDS if _pick(record, f) is None]
    if missing:
        raise QuestionBankError(f"Record {position}: missing fields {', '.join(missing)}")

    raw_id = _pick(record, 'id')
    if isinstance(raw_id, bool) or not isinstance(raw_id, (int, str)) or not is_decimal(str(raw_id).strip()):
        raise QuestionBankError(f"Record {position}: id must be a non-negative integer")

    options = tuple(_pick(record, f) for f in ('option_a', 'option_b', 'option_c', 'option_d'))
    if not all(isinstance(o, str) for o in options):
        raise QuestionBankError(f"Record {position}: options must be strings")

    answer = _pick(record, 'answer')
    if answer not in ANSWER_LETTERS:
        raise QuestionBankError(f"Record {position}: answer must be one of {', '.join(ANSWER_LETTERS)}")

    topic = _pick(record, 'topic')
    text = _pick(record, 'question')
    if not isinstance(topic, str) or not isinstance(text, str):
        raise QuestionBankError(f"Record {position}: topic and question must be strings")

    explanation = _pick(record, 'explanation')
    if explanation is not None and not isinstance(explanation, str):
        raise QuestionBankError(f"Record {position}: explanation must be a string")

    return Question(
        id=int(raw_id),
        topic=topic,
        question=text,
        options=options,
        answer=answer,
        explanation=explanation,
    )


def validate_session_id(value, total_sessions=20) -> int:
    """Parse a session number and enforce the [1, total_sessions] range"""
    error = InvalidSessionError(f'Invalid session ID. Must be between 1 and {total_sessions}.')
    if isinstance(value, bool):
        raise error
    if isinstance(value, str):
        value = value.strip()
        if not is_decimal(value):
            raise error
        value = int(value)
    if not isinstance(value, int) or not 1 <= value <= total_sessions:
        raise error
    return value


class QuestionBank:
    """Ordered, read-only collection of questions"""

    def __init__(self, questions: Iterable[Question], session_size=10, total_sessions=20):
        self._questions: List[Question] = list(questions)
        self._by_id: Dict[int, Question] = {}
        for q in self._questions:
            if q.id in self._by_id:
                raise QuestionBankError(f"Duplicate question id {q.id}")
            self._by_id[q.id] = q
        self.session_size = session_size
        self.total_sessions = total_sessions

    @classmethod
    def from_records(cls, records, **kwargs):
        if not isinstance(records, list):
            raise QuestionBankError('Question bank must be a JSON array')
        return cls([parse_question(r, i) for i, r in enumerate(records)], **kwargs)

    @classmethod
    def from_file(cls, path, **kwargs):
        try:
            with open(path, 'r', encoding='utf-8') as bank_file:
                records = json.load(bank_file)
        except (OSError, json.JSONDecodeError) as e:
            raise QuestionBankError(f"Cannot read question bank {path}: {e}") from e
        bank = cls.from_records(records, **kwargs)
        logger.info(f"Loaded {len(bank)} questions from {path}")
        if len(bank) < bank.capacity:
            logger.warning(
                f"Question bank holds {len(bank)} of {bank.capacity} questions; "
                f"sessions after {bank.filled_sessions} are short or empty"
            )
        return bank

    def __len__(self):
        return len(self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)

    @property
    def capacity(self):
        return self.session_size * self.total_sessions

    @property
    def filled_sessions(self):
        """Number of sessions with a full slice"""
        return min(len(self) // self.session_size, self.total_sessions)

    def get(self, question_id) -> Optional[Question]:
        return self._by_id.get(question_id)

    def get_many(self, question_ids) -> List[Question]:
        """Questions in the order requested; unknown ids skipped, repeats collapsed"""
        seen = set()
        found = []
        for qid in question_ids:
            if qid in seen:
                continue
            seen.add(qid)
            question = self._by_id.get(qid)
            if question is not None:
                found.append(question)
        return found

    def validate_session_id(self, value) -> int:
        return validate_session_id(value, self.total_sessions)

    def session_slice(self, session_id) -> List[Question]:
        """Session N maps to bank indices [size*(N-1), size*N)"""
        session_id = self.validate_session_id(session_id)
        start = (session_id - 1) * self.session_size
        return self._questions[start:start + self.session_size]

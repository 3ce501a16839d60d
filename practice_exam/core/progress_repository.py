"""
Progress repositories and last-write-wins reconciliation

The local store is the client's signed progress cookie; the remote store is the
user_progress row. Reconciliation never merges fields: one whole snapshot wins.
"""
import json
import logging
from dataclasses import dataclass, replace
from typing import Optional

from flask import session

from .errors import ValidationError
from .helpers import parse_timestamp, utc_now_iso
from .progress import Progress, TOTAL_SESSIONS

logger = logging.getLogger(__name__)

PROGRESS_KEY = 'upa_progress'
PROGRESS_OWNER_KEY = 'upa_progress_owner'

ACTION_SYNCED = 'synced'
ACTION_UPDATE_LOCAL = 'update_local'

WINNER_CLIENT = 'client'
WINNER_SERVER = 'server'


class ProgressRepository:
    """Load, store and clear one identity's progress snapshot"""

    total_sessions = TOTAL_SESSIONS

    def load(self) -> Optional[Progress]:
        raise NotImplementedError

    def save(self, progress: Progress) -> Progress:
        raise NotImplementedError

    def clear(self):
        raise NotImplementedError

    def load_or_default(self) -> Progress:
        progress = self.load()
        if progress is None:
            progress = Progress(total_sessions=self.total_sessions)
        return progress


class SessionProgressRepository(ProgressRepository):
    """Local-durable store held in the client's signed session cookie

    The snapshot is tagged with the user_id that saved it. A snapshot saved by
    one user is invisible to any other identity, anonymous included; an
    anonymous snapshot is adopted by whoever saves next.
    """

    def __init__(self, store=None, total_sessions=TOTAL_SESSIONS, owner_id=None):
        self.store = session if store is None else store
        self.total_sessions = total_sessions
        self.owner_id = owner_id

    def load(self):
        data = self.store.get(PROGRESS_KEY)
        if not data:
            return None
        stored_owner = self.store.get(PROGRESS_OWNER_KEY)
        if stored_owner is not None and stored_owner != self.owner_id:
            return None
        try:
            return Progress.from_dict(data, self.total_sessions)
        except ValidationError as e:
            # unreadable local copy starts over, as a fresh client would
            logger.warning(f"Discarding unreadable local progress: {e}")
            return None

    def save(self, progress):
        self.store[PROGRESS_KEY] = progress.to_dict()
        self.store[PROGRESS_OWNER_KEY] = self.owner_id
        if self.store is session:
            session.permanent = True
            session.modified = True
        return progress

    def clear(self):
        stored_owner = self.store.get(PROGRESS_OWNER_KEY)
        if stored_owner is not None and stored_owner != self.owner_id:
            return
        self.store.pop(PROGRESS_KEY, None)
        self.store.pop(PROGRESS_OWNER_KEY, None)


class DatabaseProgressRepository(ProgressRepository):
    """Remote-durable store: one user_progress row per user"""

    def __init__(self, db_manager, user_id, total_sessions=TOTAL_SESSIONS):
        self.db = db_manager
        self.user_id = user_id
        self.total_sessions = total_sessions

    def load(self):
        rows = self.db.execute_query(
            '''SELECT current_session, completed_sessions, mastered_question_ids,
                      session_questions, current_answers, last_updated
               FROM user_progress WHERE user_id = ?''',
            (self.user_id,)
        )
        if not rows:
            return None
        row = rows[0]
        return Progress.from_dict({
            'currentSession': row['current_session'],
            'completedSessions': json.loads(row['completed_sessions']),
            'masteredQuestionIds': json.loads(row['mastered_question_ids']),
            'sessionQuestions': json.loads(row['session_questions']),
            'currentAnswers': json.loads(row['current_answers']),
            'lastUpdated': row['last_updated'],
        }, self.total_sessions)

    def save(self, progress):
        data = progress.to_dict()
        self.db.execute_query(
            '''INSERT INTO user_progress
                   (user_id, current_session, completed_sessions, mastered_question_ids,
                    session_questions, current_answers, last_updated)
               VALUES (?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT (user_id) DO UPDATE SET
                   current_session = excluded.current_session,
                   completed_sessions = excluded.completed_sessions,
                   mastered_question_ids = excluded.mastered_question_ids,
                   session_questions = excluded.session_questions,
                   current_answers = excluded.current_answers,
                   last_updated = excluded.last_updated''',
            (
                self.user_id,
                data['currentSession'],
                json.dumps(data['completedSessions']),
                json.dumps(data['masteredQuestionIds']),
                json.dumps(data['sessionQuestions']),
                json.dumps(data['currentAnswers']),
                data['lastUpdated'],
            )
        )
        return progress

    def clear(self):
        return self.db.execute_query('DELETE FROM user_progress WHERE user_id = ?', (self.user_id,))


@dataclass
class SyncOutcome:
    progress: Progress
    action: str

    def to_dict(self):
        return {'progress': self.progress.to_dict(), 'action': self.action}


def choose_winner(client: Progress, server: Optional[Progress]) -> str:
    """Strictly newer server wins; a tie or a missing server record goes to the client"""
    if server is None:
        return WINNER_CLIENT
    server_time = parse_timestamp(server.last_updated)
    client_time = parse_timestamp(client.last_updated)
    if server_time > client_time:
        return WINNER_SERVER
    return WINNER_CLIENT


def reconcile(snapshot, remote: ProgressRepository, now=None) -> SyncOutcome:
    """Reconcile a client snapshot with the remote record"""
    if not isinstance(snapshot, dict) or not snapshot.get('lastUpdated'):
        raise ValidationError('lastUpdated is required')
    parse_timestamp(snapshot['lastUpdated'])
    client = Progress.from_dict(snapshot, remote.total_sessions)

    server = remote.load()
    if choose_winner(client, server) == WINNER_SERVER:
        logger.info('Progress sync: server snapshot is newer, client must update')
        return SyncOutcome(server, ACTION_UPDATE_LOCAL)

    stamped = replace(client, last_updated=utc_now_iso(now))
    remote.save(stamped)
    logger.info(f"Progress sync: client snapshot stored ({'insert' if server is None else 'overwrite'})")
    return SyncOutcome(stamped, ACTION_SYNCED)

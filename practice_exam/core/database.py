"""
Database manager (SQLite / PostgreSQL)
Users, server-side progress records and exam results
"""
import logging
import sqlite3

from .errors import UpstreamStoreError

# PostgreSQL driver is optional; SQLite is the default store
try:
    import psycopg2
    import psycopg2.extras
    PSYCOPG2_AVAILABLE = True
except ImportError:
    PSYCOPG2_AVAILABLE = False

logger = logging.getLogger(__name__)

DB_ERRORS = (sqlite3.Error,) + ((psycopg2.Error,) if PSYCOPG2_AVAILABLE else ())


class DatabaseManager:
    def __init__(self, config):
        self.db_type = config['DATABASE_TYPE']
        self.config = config

        if self.db_type == 'postgresql' and not PSYCOPG2_AVAILABLE:
            raise RuntimeError(
                'PostgreSQL requested but psycopg2 is not installed. '
                'Install the "postgres" extra or use a sqlite:/// DATABASE_URL.'
            )

    def get_connection(self):
        if self.db_type == 'postgresql':
            conn = psycopg2.connect(
                host=self.config['DB_HOST'],
                database=self.config['DB_NAME'],
                user=self.config['DB_USER'],
                password=self.config['DB_PASSWORD'],
                port=self.config['DB_PORT']
            )
            conn.autocommit = False
            return conn
        else:
            db_path = self.config.get('DATABASE', 'practice_exam.db')
            conn = sqlite3.connect(db_path)
            conn.row_factory = sqlite3.Row
            return conn

    def _connect(self):
        try:
            return self.get_connection()
        except DB_ERRORS as e:
            raise UpstreamStoreError(f"connect failed: {e}") from e

    def _prepare(self, query):
        """Queries are written with ? placeholders; psycopg2 expects %s"""
        if self.db_type == 'postgresql':
            return query.replace('?', '%s')
        return query

    def _cursor(self, conn):
        if self.db_type == 'postgresql':
            return conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
        return conn.cursor()

    def execute_query(self, query, params=None):
        """Run one statement; SELECT returns a list of dicts, anything else the rowcount"""
        conn = self._connect()
        try:
            cur = self._cursor(conn)
            cur.execute(self._prepare(query), params or ())
            if query.strip().upper().startswith(('SELECT', 'WITH', 'PRAGMA')):
                result = [dict(row) for row in cur.fetchall()]
            else:
                result = cur.rowcount
                conn.commit()
            cur.close()
            return result
        except DB_ERRORS as e:
            conn.rollback()
            raise UpstreamStoreError(f"{type(e).__name__}: {e}") from e
        finally:
            conn.close()

    def execute_insert(self, query, params=None):
        """Run an INSERT and return the new row id"""
        conn = self._connect()
        try:
            cur = self._cursor(conn)
            if self.db_type == 'postgresql':
                cur.execute(self._prepare(query) + ' RETURNING id', params or ())
                new_id = cur.fetchone()['id']
            else:
                cur.execute(query, params or ())
                new_id = cur.lastrowid
            conn.commit()
            cur.close()
            return new_id
        except DB_ERRORS as e:
            conn.rollback()
            raise UpstreamStoreError(f"{type(e).__name__}: {e}") from e
        finally:
            conn.close()

    def init_database(self):
        if self.db_type == 'postgresql':
            queries = self._postgresql_schema()
        else:
            queries = self._sqlite_schema()

        for query in queries:
            self.execute_query(query)
        logger.info(f"Database initialised ({self.db_type})")

    def _postgresql_schema(self):
        return [
            """CREATE TABLE IF NOT EXISTS users (
                id SERIAL PRIMARY KEY,
                username VARCHAR(50) UNIQUE NOT NULL,
                password_hash VARCHAR(255) NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )""",
            """CREATE TABLE IF NOT EXISTS user_progress (
                id SERIAL PRIMARY KEY,
                user_id INTEGER UNIQUE NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                current_session INTEGER NOT NULL DEFAULT 1,
                completed_sessions TEXT NOT NULL,
                mastered_question_ids TEXT NOT NULL,
                session_questions TEXT NOT NULL,
                current_answers TEXT NOT NULL,
                last_updated VARCHAR(40) NOT NULL
            )""",
            """CREATE TABLE IF NOT EXISTS exam_results (
                id SERIAL PRIMARY KEY,
                user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                session_id INTEGER NOT NULL,
                score INTEGER NOT NULL,
                total_questions INTEGER NOT NULL,
                correct_answers INTEGER NOT NULL,
                incorrect_answers INTEGER NOT NULL,
                answers TEXT NOT NULL,
                created_at VARCHAR(40) NOT NULL
            )""",
            "CREATE INDEX IF NOT EXISTS idx_exam_results_user_id ON exam_results(user_id)",
        ]

    def _sqlite_schema(self):
        return [
            """CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT UNIQUE NOT NULL,
                password_hash TEXT NOT NULL,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )""",
            """CREATE TABLE IF NOT EXISTS user_progress (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER UNIQUE NOT NULL,
                current_session INTEGER NOT NULL DEFAULT 1,
                completed_sessions TEXT NOT NULL,
                mastered_question_ids TEXT NOT NULL,
                session_questions TEXT NOT NULL,
                current_answers TEXT NOT NULL,
                last_updated TEXT NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users (id)
            )""",
            """CREATE TABLE IF NOT EXISTS exam_results (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                session_id INTEGER NOT NULL,
                score INTEGER NOT NULL,
                total_questions INTEGER NOT NULL,
                correct_answers INTEGER NOT NULL,
                incorrect_answers INTEGER NOT NULL,
                answers TEXT NOT NULL,
                created_at TEXT NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users (id)
            )""",
            "CREATE INDEX IF NOT EXISTS idx_exam_results_user_id ON exam_results(user_id)",
        ]

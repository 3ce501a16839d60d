"""
Authentication
Identity is the user_id key of the signed Flask session
"""
import logging
from functools import wraps

from flask import jsonify, session
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import AuthError, ValidationError
from .helpers import get_json_body

logger = logging.getLogger(__name__)

IDENTITY_KEYS = ('user_id', 'username')
FORBIDDEN_USERNAME_CHARS = ['<', '>', '"', "'", '&', ';']


def current_user_id():
    return session.get('user_id')


def login_required(f):
    """Reject requests without an authenticated identity"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_user_id() is None:
            raise AuthError()
        return f(*args, **kwargs)
    return decorated_function


def validate_credentials(data):
    username = data.get('username')
    password = data.get('password')
    if not isinstance(username, str) or not isinstance(password, str) or not username.strip() or not password:
        raise ValidationError('username and password are required')
    return username.strip(), password


def validate_new_username(username):
    if any(char in username for char in FORBIDDEN_USERNAME_CHARS):
        raise ValidationError('username may not contain < > " \' & ;')
    if len(username) < 3:
        raise ValidationError('username must be at least 3 characters')
    if len(username) > 50:
        raise ValidationError('username must be at most 50 characters')


def init_auth_routes(app, db_manager):
    """Register the JSON auth routes"""

    @app.route('/auth/register', methods=['POST'])
    def register():
        username, password = validate_credentials(get_json_body())
        validate_new_username(username)
        if len(password) < 6:
            raise ValidationError('password must be at least 6 characters')

        existing_users = db_manager.execute_query(
            'SELECT id FROM users WHERE username = ?',
            (username,)
        )
        if existing_users:
            raise ValidationError('username is already taken')

        user_id = db_manager.execute_insert(
            'INSERT INTO users (username, password_hash) VALUES (?, ?)',
            (username, generate_password_hash(password))
        )
        logger.info(f"Registered user {user_id}")
        return jsonify({'success': True, 'user': {'id': user_id, 'username': username}}), 201

    @app.route('/auth/login', methods=['POST'])
    def login():
        username, password = validate_credentials(get_json_body())

        users = db_manager.execute_query(
            'SELECT id, username, password_hash FROM users WHERE username = ?',
            (username,)
        )
        if not users or not check_password_hash(users[0]['password_hash'], password):
            raise AuthError('Invalid username or password')

        session.permanent = True
        session['user_id'] = users[0]['id']
        session['username'] = users[0]['username']
        return jsonify({'success': True, 'user': {'id': users[0]['id'], 'username': users[0]['username']}})

    @app.route('/auth/logout', methods=['POST'])
    def logout():
        # the progress cookie stays; only its owner can read it after logging back in
        for key in IDENTITY_KEYS:
            session.pop(key, None)
        return jsonify({'success': True})

    @app.route('/auth/me')
    @login_required
    def me():
        return jsonify({'user': {'id': session['user_id'], 'username': session.get('username')}})

    @app.route('/auth/check-user', methods=['POST'])
    def check_user():
        username = get_json_body().get('username')
        if not isinstance(username, str) or not username.strip():
            raise ValidationError('username is required')
        users = db_manager.execute_query(
            'SELECT id FROM users WHERE username = ?',
            (username.strip(),)
        )
        return jsonify({'exists': bool(users)})

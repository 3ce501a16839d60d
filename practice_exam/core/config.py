"""
Configuration file for the application
Loads settings from environment variables
"""
import os
import re
from dotenv import load_dotenv

# Load environment variables (for local development)
load_dotenv()

PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _env_bool(name, default='False'):
    return os.environ.get(name, default).lower() == 'true'


class Config:
    """Application configuration"""

    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY')
    DEBUG = _env_bool('DEBUG')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

    # Database settings
    DATABASE_URL = os.environ.get('DATABASE_URL')

    if DATABASE_URL:
        # Normalize postgres scheme (hosted providers often give postgres://)
        if DATABASE_URL.startswith('postgres://'):
            DATABASE_URL = DATABASE_URL.replace('postgres://', 'postgresql://', 1)

        if DATABASE_URL.startswith('postgresql://'):
            DATABASE_TYPE = 'postgresql'
        else:
            DATABASE_TYPE = 'sqlite'
    else:
        DATABASE_TYPE = 'sqlite'
        DATABASE_URL = 'sqlite:///practice_exam.db'

    # Parse PostgreSQL URL if needed
    if DATABASE_TYPE == 'postgresql':
        match = re.match(r'postgresql://([^:]+):([^@]+)@([^:/]+):?(\d+)?/(.+)', DATABASE_URL)
        if match:
            DB_USER = match.group(1)
            DB_PASSWORD = match.group(2)
            DB_HOST = match.group(3)
            DB_PORT = match.group(4) or '5432'
            DB_NAME = match.group(5)
        else:
            raise ValueError('Invalid PostgreSQL DATABASE_URL format')
    else:
        DB_USER = None
        DB_PASSWORD = None
        DB_HOST = None
        DB_PORT = None
        DB_NAME = DATABASE_URL.replace('sqlite:///', '')

    # Question bank and session layout
    QUESTION_BANK_PATH = os.environ.get(
        'QUESTION_BANK_PATH',
        os.path.join(PACKAGE_DIR, 'data', 'question_bank.json')
    )
    SESSION_SIZE = int(os.environ.get('SESSION_SIZE', 10))
    TOTAL_SESSIONS = int(os.environ.get('TOTAL_SESSIONS', 20))

    # Authoring mode: question payloads carry the answer key
    EXPOSE_ANSWER_KEY = _env_bool('EXPOSE_ANSWER_KEY')

    # Lifetime of the client-side progress cookie
    PROGRESS_COOKIE_DAYS = int(os.environ.get('PROGRESS_COOKIE_DAYS', 365))

    # Server settings
    PORT = int(os.environ.get('PORT', 5000))
    HOST = os.environ.get('HOST', '0.0.0.0')

    @classmethod
    def get_db_config(cls):
        """Get database configuration dictionary"""
        if cls.DATABASE_TYPE == 'postgresql':
            return {
                'DATABASE_TYPE': 'postgresql',
                'DB_NAME': cls.DB_NAME,
                'DB_USER': cls.DB_USER,
                'DB_PASSWORD': cls.DB_PASSWORD,
                'DB_HOST': cls.DB_HOST,
                'DB_PORT': cls.DB_PORT
            }
        else:
            return {
                'DATABASE_TYPE': 'sqlite',
                'DATABASE': cls.DB_NAME
            }

"""
HTTP blueprints
"""
from .main_routes import main_bp
from .session_routes import session_bp
from .progress_routes import progress_bp
from .history_routes import history_bp

__all__ = ['main_bp', 'session_bp', 'progress_bp', 'history_bp']

"""
Session helpers for the School ERP backend
Identity is established by an external login flow that stores the user id
and role in the Flask session; this module only reads it.
"""

from datetime import datetime

from models.user import ROLES, User

class SessionManager:
    """Session management utilities"""

    @staticmethod
    def create_session(session, user):
        """Store the identity of a user in the session"""
        session['user_id'] = user.id
        session['role'] = user.role
        session['login_time'] = datetime.utcnow().isoformat()
        session.permanent = True

    @staticmethod
    def clear_session(session):
        """Clear user session"""
        session.clear()

    @staticmethod
    def is_authenticated(session):
        """Check if user is authenticated"""
        return session.get('user_id') is not None and session.get('role') in ROLES

    @staticmethod
    def get_current_user_id(session):
        """Get current user ID from session"""
        return session.get('user_id')

    @staticmethod
    def get_role(session):
        return session.get('role')

    @staticmethod
    def has_role(session, *roles):
        """Check the session role against the allowed roles (any role when none given)"""
        return not roles or session.get('role') in roles

    @staticmethod
    def load_user(db_session, session):
        """Active User for the session identity, or None"""
        user_id = SessionManager.get_current_user_id(session)
        if user_id is None:
            return None
        user = db_session.get(User, user_id)
        if user is None or not user.is_active:
            return None
        return user

"""
Authentication helpers and session routes for the School ERP backend
Role checks for the JSON API; login itself happens outside this service
"""

from functools import wraps

from flask import Blueprint, g, jsonify, session

from database import db
from services.auth_service import SessionManager
from utils.errors import AuthorizationError

auth_bp = Blueprint('auth', __name__)

def api_response(data=None, message='', status=200):
    """Standard JSON envelope"""
    return jsonify({'success': True, 'message': message, 'data': data}), status

def login_required(*roles):
    """Decorator to require an authenticated session, optionally with one of ``roles``"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not SessionManager.is_authenticated(session):
                return jsonify({'success': False, 'message': 'Authentication required'}), 401

            user = SessionManager.load_user(db.session, session)
            if user is None:
                SessionManager.clear_session(session)
                return jsonify({'success': False, 'message': 'Authentication required'}), 401

            if not SessionManager.has_role(session, *roles):
                return jsonify({'success': False, 'message': 'Access denied for your role'}), 403

            g.current_user = user
            g.current_role = SessionManager.get_role(session)
            return f(*args, **kwargs)

        return decorated_function
    return decorator

def current_teacher():
    """Teacher profile of the current user; required for TEACHER requests"""
    teacher = g.current_user.teacher
    if teacher is None:
        raise AuthorizationError("No teacher profile is linked to this account")
    return teacher

@auth_bp.route('/me')
@login_required()
def me():
    """Identity of the current session"""
    data = g.current_user.to_dict()
    data['session_role'] = g.current_role
    return api_response(data)

@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Forget the session identity"""
    SessionManager.clear_session(session)
    return api_response(message='You have been logged out successfully')

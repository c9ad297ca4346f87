"""
Typed service errors for the School ERP backend

Services raise these; only the HTTP layer turns them into status codes.
"""

class ServiceError(Exception):
    """Base class for expected, caller-facing failures"""
    status_code = 400

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {'success': False, 'message': self.message}
        if self.details is not None:
            payload['details'] = self.details
        return payload

class ValidationError(ServiceError):
    """Missing or malformed input"""
    status_code = 400

class AuthorizationError(ServiceError):
    """Role or assignment mismatch"""
    status_code = 403

class NotFoundError(ServiceError):
    """Referenced entity does not exist"""
    status_code = 404

class ConflictError(ServiceError):
    """Duplicate record or conflicting state"""
    status_code = 409

class ResultLockedError(ConflictError):
    """Subject result is frozen and cannot be changed"""

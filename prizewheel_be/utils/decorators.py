from functools import wraps
from flask import current_app
from flask_jwt_extended import verify_jwt_in_request, current_user

from prizewheel_be.exceptions import AuthorizationException

def admin_required(f):
    """
    Decorator for admin-only routes.
    Missing, invalid or revoked session -> 401; authenticated non-admin -> 403.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        verify_jwt_in_request()
        if not current_user.is_admin:
            current_app.logger.warning(f"Non-admin user {current_user.id} attempted to access an admin route.")
            raise AuthorizationException(status_message="Admin privileges required.")
        return f(*args, **kwargs)
    return decorated_function

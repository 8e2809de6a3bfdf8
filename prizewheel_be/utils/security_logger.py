"""
Security Event Logging System
Provides audit logging for authentication, redemption and admin events
"""

import logging
from datetime import datetime, timezone
from flask import current_app, g, request
from functools import wraps
import json

def _request_context():
    """request_id, ip_address and user_agent of the current request, or placeholders outside one."""
    try:
        request_id = g.get('request_id', 'N/A')
        ip_address = request.remote_addr if request else None
        user_agent = request.headers.get('User-Agent') if request else None
    except RuntimeError:
        # Outside application/request context
        request_id = 'N/A'
        ip_address = None
        user_agent = None
    return request_id, ip_address, user_agent

class SecurityLogger:
    """Centralized security event logging"""

    @staticmethod
    def log_authentication_event(event_type: str, user_id: int = None, username: str = None,
                                success: bool = True, details: dict = None):
        """Log authentication-related events"""
        request_id, ip_address, user_agent = _request_context()

        event_data = {
            'event_type': 'authentication',
            'sub_type': event_type,
            'user_id': user_id,
            'username': username,
            'success': success,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'request_id': request_id,
            'ip_address': ip_address,
            'user_agent': user_agent,
            'details': details or {}
        }

        level = logging.INFO if success else logging.WARNING
        current_app.logger.log(level, f"AUTH_EVENT: {json.dumps(event_data, default=str)}")

    @staticmethod
    def log_redemption_event(outcome: str, code: str = None, ticket_id: int = None,
                             segment_id: int = None, success: bool = True, details: dict = None):
        """Log a ticket redemption attempt and its outcome"""
        request_id, ip_address, user_agent = _request_context()

        event_data = {
            'event_type': 'redemption',
            'sub_type': outcome,
            'code': code,
            'ticket_id': ticket_id,
            'segment_id': segment_id,
            'success': success,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'request_id': request_id,
            'ip_address': ip_address,
            'user_agent': user_agent,
            'details': details or {}
        }

        level = logging.INFO if success else logging.WARNING
        current_app.logger.log(level, f"REDEMPTION_EVENT: {json.dumps(event_data, default=str)}")

    @staticmethod
    def log_security_event(event_type: str, severity: str = 'medium', user_id: int = None,
                          details: dict = None):
        """Log security-related events"""
        request_id, ip_address, user_agent = _request_context()

        event_data = {
            'event_type': 'security',
            'sub_type': event_type,
            'severity': severity,
            'user_id': user_id,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'request_id': request_id,
            'ip_address': ip_address,
            'user_agent': user_agent,
            'details': details or {}
        }

        level_map = {
            'low': logging.INFO,
            'medium': logging.WARNING,
            'high': logging.ERROR,
            'critical': logging.CRITICAL
        }

        level = level_map.get(severity, logging.WARNING)
        current_app.logger.log(level, f"SECURITY_EVENT: {json.dumps(event_data, default=str)}")

    @staticmethod
    def log_admin_event(event_type: str, admin_user_id: int, action: str = None, details: dict = None):
        """Log administrative actions"""
        request_id, ip_address, _ = _request_context()

        event_data = {
            'event_type': 'admin',
            'sub_type': event_type,
            'admin_user_id': admin_user_id,
            'action': action,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'request_id': request_id,
            'ip_address': ip_address,
            'details': details or {}
        }

        current_app.logger.info(f"ADMIN_EVENT: {json.dumps(event_data, default=str)}")

def audit_admin_operation(action: str):
    """Decorator to audit admin write operations once they have completed"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            result = f(*args, **kwargs)

            try:
                from flask_jwt_extended import current_user
                SecurityLogger.log_admin_event(
                    event_type='operation',
                    admin_user_id=getattr(current_user, 'id', None),
                    action=action,
                    details={'function': f.__name__, 'path_args': kwargs}
                )
            except Exception as e:
                current_app.logger.error(f"Failed to log admin operation: {str(e)}")

            return result
        return decorated_function
    return decorator

"""
Security utilities: response headers, request audit logging and password rules
"""
from flask import request, current_app
from datetime import datetime, timezone


def secure_headers(response):
    """Add security headers to response"""
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-XSS-Protection'] = '1; mode=block'
    response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
    return response


def log_security_event(event_type, user_id=None, details=None):
    """Log security-related events for monitoring"""
    log_data = {
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'event_type': event_type,
        'ip_address': request.remote_addr,
        'user_agent': request.headers.get('User-Agent', ''),
        'user_id': user_id,
        'details': details or {}
    }

    current_app.logger.info(f"SECURITY_EVENT: {log_data}")


def validate_password_strength(password):
    """Validate password meets security requirements. Returns a list of problems, empty when strong."""
    errors = []

    if len(password) < 12:
        errors.append("Password must be at least 12 characters long")

    if not any(c.isupper() for c in password):
        errors.append("Password must contain at least one uppercase letter")

    if not any(c.islower() for c in password):
        errors.append("Password must contain at least one lowercase letter")

    if not any(c.isdigit() for c in password):
        errors.append("Password must contain at least one digit")

    if not any(c in "!@#$%^&*()_+-=[]{}|;:,.<>?" for c in password):
        errors.append("Password must contain at least one special character")

    common_passwords = ['password', '123456', 'password123', 'admin', 'admin123', 'qwerty']
    if password.lower() in common_passwords:
        errors.append("Password is too common")

    return errors


def client_ip():
    """Caller address as seen by the app (ProxyFix rewrites remote_addr when configured)."""
    return request.remote_addr or 'unknown'

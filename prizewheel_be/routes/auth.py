from flask import Blueprint, request, jsonify, current_app, make_response
from flask_jwt_extended import (
    create_access_token, create_refresh_token, jwt_required, get_jwt, get_csrf_token,
    decode_token, current_user, set_access_cookies, set_refresh_cookies, unset_jwt_cookies
)
from datetime import datetime, timezone
from sqlalchemy import select

from prizewheel_be.models import db, User, TokenBlacklist
from prizewheel_be.schemas import UserSchema, LoginSchema
from prizewheel_be.exceptions import AuthenticationException
from prizewheel_be.extensions import limiter
from prizewheel_be.utils.security_logger import SecurityLogger

auth_bp = Blueprint('auth', __name__, url_prefix='/api')

def _csrf_token(encoded_token):
    """Double-submit token for the client; tokens only carry one when cookie CSRF protection is on."""
    if not current_app.config.get('JWT_COOKIE_CSRF_PROTECT', True):
        return None
    return get_csrf_token(encoded_token)

def _revoke(jti, expires_timestamp):
    if not jti:
        return
    if db.session.scalar(select(TokenBlacklist.id).filter_by(jti=jti)) is None:
        db.session.add(TokenBlacklist(
            jti=jti,
            created_at=datetime.now(timezone.utc),
            expires_at=datetime.fromtimestamp(expires_timestamp, tz=timezone.utc)
        ))

@auth_bp.route('/user', methods=['GET'])
@jwt_required()
def get_current_user():
    return jsonify({'status': True, 'user': UserSchema().dump(current_user)}), 200

@auth_bp.route('/login', methods=['POST'])
@limiter.limit(lambda: current_app.config.get('LOGIN_RATE_LIMIT', '5 per minute'))
def login():
    validated_data = LoginSchema().load(request.get_json(silent=True) or {})

    user = db.session.scalar(select(User).filter_by(username=validated_data['username']))
    if not user or not User.verify_password(user.password, validated_data['password']):
        SecurityLogger.log_authentication_event('login', username=validated_data['username'], success=False)
        raise AuthenticationException(status_message="Invalid username or password.")

    user.last_login_at = datetime.now(timezone.utc)
    db.session.commit()

    access_token = create_access_token(identity=user)
    refresh_token = create_refresh_token(identity=user)

    response = make_response(jsonify({
        'status': True,
        'user': UserSchema().dump(user),
        'csrf_token': _csrf_token(access_token)
    }), 200)

    set_access_cookies(response, access_token)
    set_refresh_cookies(response, refresh_token)

    SecurityLogger.log_authentication_event('login', user_id=user.id, username=user.username)
    return response

@auth_bp.route('/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh():
    new_access_token = create_access_token(identity=current_user)

    response = make_response(jsonify({
        'status': True,
        'csrf_token': _csrf_token(new_access_token)
    }), 200)

    set_access_cookies(response, new_access_token)

    current_app.logger.info(f"Token refreshed for user: {current_user.username} (ID: {current_user.id})")
    return response

@auth_bp.route('/logout', methods=['POST'])
@jwt_required()
def logout():
    access_claims = get_jwt()
    _revoke(access_claims.get('jti'), access_claims['exp'])

    refresh_cookie = request.cookies.get(current_app.config['JWT_REFRESH_COOKIE_NAME'])
    if refresh_cookie:
        refresh_claims = decode_token(refresh_cookie, allow_expired=True)
        _revoke(refresh_claims.get('jti'), refresh_claims['exp'])

    db.session.commit()

    response = make_response(jsonify({
        "status": True,
        "status_message": "Successfully logged out"
    }), 200)

    unset_jwt_cookies(response)

    SecurityLogger.log_authentication_event('logout', user_id=current_user.id, username=current_user.username)
    return response

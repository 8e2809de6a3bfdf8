from flask import Flask, request, jsonify, current_app, g
import uuid
from flask_cors import CORS
from flask_jwt_extended import JWTManager, verify_jwt_in_request, get_jwt_identity
from flask_jwt_extended.exceptions import NoAuthorizationError # For JWT specific errors
from flask_talisman import Talisman
from sqlalchemy.exc import SQLAlchemyError # For database errors
from sqlalchemy import select, delete, func
from werkzeug.exceptions import HTTPException as WerkzeugHTTPException # Renamed to avoid conflict
from werkzeug.middleware.proxy_fix import ProxyFix
from prizewheel_be.exceptions import AppException
from prizewheel_be.error_codes import ErrorCodes
from datetime import datetime, timezone
from http import HTTPStatus
import logging
from pythonjsonlogger import jsonlogger
from marshmallow import ValidationError
import click # For CLI commands

from .models import db, User, TokenBlacklist # Relative import
from .extensions import limiter # Relative import
from .config import Config # Relative import
from .utils.auth import register_jwt_handlers # Relative import
from .utils.security import secure_headers, log_security_event, validate_password_strength # Relative import
from .services import segment_service, settings_service # Relative import

from .routes.auth import auth_bp
from .routes.wheel import wheel_bp
from .routes.tickets import tickets_bp
from .routes.spin import spin_bp
from .routes.settings import settings_bp

# Custom Logging Filter for Request ID
class RequestIdFilter(logging.Filter):
    def filter(self, record):
        try:
            record.request_id = g.get('request_id', 'N/A')
        except RuntimeError:
            record.request_id = 'N/A'
        return True

def error_response(error_code, status_message, status_code, details=None, action_button=None):
    """Uniform error body shared by every error handler."""
    return jsonify({
        'request_id': g.get('request_id', 'N/A'),
        'status': False,
        'error_code': error_code,
        'status_message': status_message,
        'details': details or {},
        'action_button': action_button
    }), status_code

def create_app(config_class=Config):
    """Application factory."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    if app.config.get('TRUSTED_PROXY_COUNT'):
        count = app.config['TRUSTED_PROXY_COUNT']
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=count, x_proto=count, x_host=count)

    # --- Security Headers with Talisman ---
    csp = {
        'default-src': "'self'",
        'img-src': "'self' data: https:",
        'connect-src': "'self'",
        'frame-ancestors': "'none'"
    }

    Talisman(app,
             force_https=app.config.get('FORCE_HTTPS', False),
             strict_transport_security=True,
             frame_options='DENY',
             session_cookie_secure=app.config.get('SESSION_COOKIE_SECURE', True),
             content_security_policy=csp)

    # --- CORS Setup ---
    allowed_origins = list(app.config.get('CORS_ORIGINS_LIST') or [])
    if app.debug:
        allowed_origins.extend(["http://localhost:5173", "http://127.0.0.1:5173"])

    if allowed_origins:
        CORS(app,
             origins=allowed_origins,
             supports_credentials=True,
             methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
             allow_headers=['Content-Type', 'X-CSRF-Token'],
             expose_headers=['X-RateLimit-Limit', 'X-RateLimit-Remaining'],
             max_age=86400)
        app.logger.info(f"CORS configured for origins: {allowed_origins}")
    else:
        app.logger.warning("No CORS origins configured - API will reject cross-origin requests")

    # --- Logging Configuration ---
    if not app.debug and not app.testing:
        logger = app.logger
        handler = logging.StreamHandler()
        formatter = jsonlogger.JsonFormatter(
            '%(asctime)s %(levelname)s %(request_id)s %(module)s %(funcName)s %(lineno)d %(message)s'
        )
        handler.setFormatter(formatter)
        handler.addFilter(RequestIdFilter())
        if logger.hasHandlers():
            logger.handlers.clear()
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    elif not app.logger.handlers:
        logging.basicConfig(level=logging.DEBUG)

    # --- Request ID and Audit Middleware ---
    @app.before_request
    def security_middleware():
        g.request_id = str(uuid.uuid4())

        if request.method in ['POST', 'PUT', 'DELETE', 'PATCH']:
            user_id_to_log = None
            try:
                verify_jwt_in_request(optional=True)
                user_id_to_log = get_jwt_identity()
            except Exception:
                # Invalid tokens are rejected by the route itself; the audit line is written without a user.
                user_id_to_log = None

            log_security_event('REQUEST',
                               user_id=user_id_to_log,
                               details={
                                   'endpoint': request.endpoint,
                                   'method': request.method,
                                   'content_length': request.content_length
                               })

    @app.after_request
    def security_headers_middleware(response):
        response.headers['X-Request-ID'] = g.get('request_id', 'N/A')
        return secure_headers(response)

    log_production_warnings(app)

    # --- Rate Limiter Setup ---
    if app.config.get("TESTING"):
        app.config['RATELIMIT_ENABLED'] = False
    limiter.init_app(app)

    # --- Database Setup ---
    db.init_app(app)

    # --- JWT Setup ---
    jwt = JWTManager(app)
    register_jwt_handlers(jwt)

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return error_response(ErrorCodes.UNAUTHENTICATED, 'Session has expired. Please log in again.', HTTPStatus.UNAUTHORIZED)

    @jwt.invalid_token_loader
    def invalid_token_callback(reason):
        return error_response(ErrorCodes.UNAUTHENTICATED, 'Invalid session token.', HTTPStatus.UNAUTHORIZED, {'reason': reason})

    @jwt.unauthorized_loader
    def missing_token_callback(reason):
        return error_response(ErrorCodes.UNAUTHENTICATED, 'Missing or invalid authorization token.', HTTPStatus.UNAUTHORIZED, {'reason': reason})

    @jwt.revoked_token_loader
    def revoked_token_callback(jwt_header, jwt_payload):
        return error_response(ErrorCodes.UNAUTHENTICATED, 'Session has been logged out.', HTTPStatus.UNAUTHORIZED)

    @jwt.user_lookup_error_loader
    def user_lookup_error_callback(jwt_header, jwt_payload):
        return error_response(ErrorCodes.UNAUTHENTICATED, 'Session user no longer exists.', HTTPStatus.UNAUTHORIZED)

    # --- Specific Error Handlers ---
    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        current_app.logger.warning(
            f"Request ID: {g.get('request_id', 'N/A')} - Validation error: {e.messages} - Error Code: {ErrorCodes.VALIDATION_ERROR}"
        )
        return error_response(ErrorCodes.VALIDATION_ERROR, 'Input validation failed.',
                              HTTPStatus.BAD_REQUEST, {'errors': e.messages})

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        db.session.rollback()
        current_app.logger.error(
            f"Request ID: {g.get('request_id', 'N/A')} - Database error. Error Code: {ErrorCodes.INTERNAL_SERVER_ERROR}",
            exc_info=True
        )
        return error_response(ErrorCodes.INTERNAL_SERVER_ERROR, 'A database error occurred. Please try again later.',
                              HTTPStatus.INTERNAL_SERVER_ERROR)

    @app.errorhandler(NoAuthorizationError)
    def handle_no_auth_error(e):
        current_app.logger.warning(
            f"Request ID: {g.get('request_id', 'N/A')} - JWT NoAuthorizationError: {str(e)} - Error Code: {ErrorCodes.UNAUTHENTICATED}"
        )
        return error_response(ErrorCodes.UNAUTHENTICATED, 'Missing or invalid authorization token.',
                              HTTPStatus.UNAUTHORIZED, {'original_error': str(e)})

    @app.errorhandler(WerkzeugHTTPException)
    def handle_werkzeug_http_exception(e):
        error_code = ErrorCodes.GENERIC_ERROR
        if e.code == 400:
            error_code = ErrorCodes.VALIDATION_ERROR
        elif e.code == 404:
            error_code = ErrorCodes.NOT_FOUND
        elif e.code == 405:
            error_code = ErrorCodes.METHOD_NOT_ALLOWED
        elif e.code == 401:
            error_code = ErrorCodes.UNAUTHENTICATED
        elif e.code == 403:
            error_code = ErrorCodes.FORBIDDEN
        elif e.code == 429:
            error_code = ErrorCodes.RATE_LIMITED
        elif e.code >= 500:
            error_code = ErrorCodes.INTERNAL_SERVER_ERROR

        current_app.logger.warning(
            f"Request ID: {g.get('request_id', 'N/A')} - Werkzeug HTTPException: {e.code} - {e.name}: {e.description} - Error Code: {error_code}"
        )
        body, status_code = error_response(error_code, e.name, e.code, {'description': e.description})
        response = e.get_response()
        response.data = body.data
        response.content_type = "application/json"
        return response

    # --- Global Error Handler (catch-all for general exceptions) ---
    @app.errorhandler(Exception)
    def handle_global_exception(e):
        request_id = g.get('request_id', 'N/A')

        if isinstance(e, AppException):
            log = current_app.logger.error if e.status_code >= 500 else current_app.logger.warning
            log(
                f"Request ID: {request_id} - AppException: {e.error_code} - {e.status_message} - Details: {e.details}",
                exc_info=e.status_code >= 500
            )
            return error_response(e.error_code, e.status_message, e.status_code, e.details, e.action_button)

        if isinstance(e, WerkzeugHTTPException):
            return handle_werkzeug_http_exception(e)

        current_app.logger.critical(
            f"Request ID: {request_id} - Unhandled Critical Exception. Error Code: {ErrorCodes.INTERNAL_SERVER_ERROR}",
            exc_info=True
        )
        return error_response(ErrorCodes.INTERNAL_SERVER_ERROR,
                              'An unexpected internal server error occurred. Please try again later.',
                              HTTPStatus.INTERNAL_SERVER_ERROR)

    @app.errorhandler(404) # Catches werkzeug.exceptions.NotFound
    def handle_flask_not_found(e):
        current_app.logger.warning(
            f"Request ID: {g.get('request_id', 'N/A')} - HTTP 404 Not Found: {request.url} - Error Code: {ErrorCodes.NOT_FOUND}"
        )
        return error_response(ErrorCodes.NOT_FOUND, 'The requested resource was not found.',
                              HTTPStatus.NOT_FOUND, {'path': request.path})

    # Register Blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(wheel_bp)
    app.register_blueprint(tickets_bp)
    app.register_blueprint(spin_bp)
    app.register_blueprint(settings_bp)

    register_cli_commands(app)

    return app

def register_cli_commands(app):
    @app.cli.command('init-db')
    def init_db_command():
        """Creates all tables that do not exist yet."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command('seed-defaults')
    def seed_defaults_command():
        """Adds the default prize segments and site settings."""
        db.create_all()
        segments_created = segment_service.seed_default_segments()
        settings_created = settings_service.seed_default_settings()
        click.echo(f"Seeded {segments_created} segment(s) and {settings_created} setting(s).")

    @app.cli.command('cleanup-expired-tokens')
    def db_cleanup_expired_tokens_command():
        now = datetime.now(timezone.utc)
        try:
            count = db.session.scalar(select(func.count(TokenBlacklist.id)).filter(TokenBlacklist.expires_at < now))
            db.session.execute(delete(TokenBlacklist).where(TokenBlacklist.expires_at < now))
            db.session.commit()
            click.echo(f"Successfully deleted {count} expired token(s).")
        except SQLAlchemyError as e:
            db.session.rollback()
            raise click.ClickException(f"Error during token cleanup: {str(e)}")

    @app.cli.command("create-admin")
    @click.option('-u', '--username', default=None, help='Admin username')
    @click.option('-p', '--password', default=None, help='Admin password (will be prompted if not provided)')
    def create_admin_command(username, password):
        """Creates an admin user with the given credentials."""
        if not username:
            username = click.prompt("Enter admin username")

        if not password:
            while True:
                password_input = click.prompt("Enter admin password", hide_input=True, confirmation_prompt=False)
                problems = validate_password_strength(password_input)
                if problems:
                    click.echo(f"Password validation failed: {'; '.join(problems)}")
                    click.echo("Please try again.")
                    continue

                password_confirmation = click.prompt("Confirm admin password", hide_input=True)
                if password_input == password_confirmation:
                    password = password_input
                    break
                else:
                    click.echo("Passwords do not match. Please try again.")
        else:
            problems = validate_password_strength(password)
            if problems:
                raise click.ClickException(f"The provided password does not meet strength requirements: {'; '.join(problems)}")

        db.create_all()
        if db.session.scalar(select(User).filter_by(username=username)):
            raise click.ClickException(f"User with username '{username}' already exists.")

        admin_user = User(username=username, password=User.hash_password(password), is_admin=True)
        db.session.add(admin_user)
        db.session.commit()
        click.echo(f"Admin user '{username}' created successfully.")

def log_production_warnings(app):
    if not app.debug and not app.testing:
        if app.config.get('RATELIMIT_STORAGE_URI') == 'memory://':
            app.logger.warning(
                "PERFORMANCE/SCALABILITY WARNING: RATELIMIT_STORAGE_URI is set to 'memory://'. "
                "Spin and login limits are per process; use Redis (e.g., 'redis://localhost:6379/0') behind multiple workers."
            )
        if not app.config.get('JWT_COOKIE_SECURE'):
            app.logger.warning("SECURITY WARNING: JWT cookies are not marked Secure.")

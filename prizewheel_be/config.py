"""
Configuration module with fail-fast validation.

Values come from the environment (optionally a .env file) and are validated
once at import time. Production environments must provide every required
variable.
"""
import os
import tempfile

from dotenv import load_dotenv

from prizewheel_be.config_validator import validate_production_config

# Load environment variables from .env file
load_dotenv()

class Config:
    """Production-ready configuration with fail-fast validation."""

    _validated_config = validate_production_config()

    # Database Configuration
    SQLALCHEMY_DATABASE_URI = _validated_config['SQLALCHEMY_DATABASE_URI']
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT Configuration
    JWT_SECRET_KEY = _validated_config['JWT_SECRET_KEY']
    SECRET_KEY = JWT_SECRET_KEY
    JWT_ACCESS_TOKEN_EXPIRES = _validated_config['JWT_ACCESS_TOKEN_EXPIRES']
    JWT_REFRESH_TOKEN_EXPIRES = _validated_config['JWT_REFRESH_TOKEN_EXPIRES']

    # Session cookies carry the JWTs
    JWT_TOKEN_LOCATION = ['cookies']
    JWT_COOKIE_SECURE = _validated_config['JWT_COOKIE_SECURE']
    JWT_COOKIE_SAMESITE = 'Strict'
    JWT_COOKIE_CSRF_PROTECT = True
    JWT_ACCESS_COOKIE_NAME = 'access_token_cookie'
    JWT_REFRESH_COOKIE_NAME = 'refresh_token_cookie'
    JWT_ACCESS_CSRF_HEADER_NAME = 'X-CSRF-Token'
    JWT_REFRESH_CSRF_HEADER_NAME = 'X-CSRF-Token'

    SESSION_COOKIE_SECURE = JWT_COOKIE_SECURE
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Strict'

    # Security Headers
    FORCE_HTTPS = _validated_config['FORCE_HTTPS']
    TRUSTED_PROXY_COUNT = _validated_config['TRUSTED_PROXY_COUNT']

    # Rate limiting
    RATELIMIT_STORAGE_URI = _validated_config['RATELIMIT_STORAGE_URI']
    RATELIMIT_DEFAULT = "1000 per day;200 per hour"
    SPIN_RATE_LIMIT = _validated_config['SPIN_RATE_LIMIT']
    LOGIN_RATE_LIMIT = os.getenv('LOGIN_RATE_LIMIT', '5 per minute')

    # Flask Debug Mode
    DEBUG = _validated_config['DEBUG']

    CORS_ORIGINS_LIST = _validated_config['CORS_ORIGINS']


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    # File-based SQLite so that threads in concurrency tests share one database
    DATABASE_FILE_PATH = os.path.join(tempfile.gettempdir(), 'test_prizewheel_be_isolated.db')
    SQLALCHEMY_DATABASE_URI = f'sqlite:///{DATABASE_FILE_PATH}'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'connect_args': {'check_same_thread': False, 'timeout': 15}
    }
    JWT_SECRET_KEY = 'test-jwt-secret-key-with-enough-length-for-hs256'
    SECRET_KEY = JWT_SECRET_KEY
    JWT_COOKIE_CSRF_PROTECT = False # Disable JWT CSRF for tests
    JWT_COOKIE_SECURE = False
    FORCE_HTTPS = False
    # Disable rate limiting for tests
    RATELIMIT_ENABLED = False
    CORS_ORIGINS_LIST = []

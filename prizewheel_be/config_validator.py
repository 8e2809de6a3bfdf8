"""
Configuration validation and startup checks for production security.

This module implements fail-fast validation to ensure critical environment
variables are set before the application starts, preventing insecure defaults
from being used in production.
"""

import os
import sys
import warnings
import secrets
from typing import List, Tuple, Optional


TRUTHY = ('true', '1', 't', 'yes')
DEV_DATABASE_URL = 'sqlite:///prizewheel.db'
SUPPORTED_DATABASE_SCHEMES = ('postgresql://', 'postgresql+psycopg2://', 'sqlite://')


def env_flag(name: str, default: str = 'False') -> bool:
    return os.getenv(name, default).lower() in TRUTHY


class ConfigValidationError(Exception):
    """Raised when critical configuration is missing or invalid."""
    pass


class ConfigValidator:
    """Validates application configuration and enforces production security."""

    def __init__(self, is_production: bool = None):
        """
        Initialize the configuration validator.

        Args:
            is_production: If None, production is selected by APP_ENV=production
        """
        if is_production is None:
            is_production = os.getenv('APP_ENV', 'development').lower() == 'production'

        self.is_production = is_production
        self.is_testing = env_flag('TESTING')
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_required_env_var(self, var_name: str, description: str = None) -> Optional[str]:
        """
        Validate that a required environment variable is set.

        Args:
            var_name: Name of the environment variable
            description: Human-readable description for error messages

        Returns:
            The environment variable value if set, None otherwise
        """
        value = os.getenv(var_name)
        if not value:
            desc = description or var_name
            if self.is_production:
                self.errors.append(f"CRITICAL: {desc} ({var_name}) must be set in production environment")
            else:
                self.warnings.append(f"WARNING: {desc} ({var_name}) not set - using development fallback")
        return value

    def validate_jwt_config(self) -> Tuple[str, int, int]:
        """Validate JWT configuration."""
        jwt_secret = self.validate_required_env_var('JWT_SECRET_KEY', 'JWT Secret Key')

        if not jwt_secret:
            if self.is_production:
                raise ConfigValidationError("JWT_SECRET_KEY is required in production")
            # Random per-process key for development; sessions do not survive restarts
            jwt_secret = secrets.token_urlsafe(64)
        elif len(jwt_secret) < 32:
            error_msg = "JWT_SECRET_KEY must be at least 32 characters long"
            if self.is_production:
                self.errors.append(f"CRITICAL: {error_msg}")
            else:
                self.warnings.append(f"WARNING: {error_msg}")

        try:
            access_expires = int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES', '3600'))
            refresh_expires = int(os.getenv('JWT_REFRESH_TOKEN_EXPIRES', str(86400 * 7)))
        except ValueError:
            raise ConfigValidationError("JWT token expiration values must be integers")

        return jwt_secret, access_expires, refresh_expires

    def validate_database_config(self) -> str:
        """Validate database configuration."""
        database_url = os.getenv('DATABASE_URL')

        if database_url:
            if not database_url.startswith(SUPPORTED_DATABASE_SCHEMES):
                self.errors.append("CRITICAL: DATABASE_URL must use a supported database driver")
            elif self.is_production and database_url.startswith('sqlite://'):
                self.warnings.append("SQLite is in use in production; concurrent redemptions will serialize on the database file.")
            return database_url

        if self.is_production:
            self.errors.append("CRITICAL: DATABASE_URL must be set in production")
            return None

        self.warnings.append(f"DATABASE_URL not set - using development database {DEV_DATABASE_URL}")
        return DEV_DATABASE_URL

    def validate_rate_limiting_config(self) -> Tuple[str, str]:
        """Validate rate limiting configuration."""
        rate_limit_uri = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')
        spin_limit = os.getenv('SPIN_RATE_LIMIT', '10 per minute')

        if rate_limit_uri == 'memory://' and self.is_production:
            self.warnings.append(
                "Rate limiting uses memory:// storage in production. "
                "This is not suitable for multi-process deployments. "
                "Set RATELIMIT_STORAGE_URI to a Redis URL (e.g., redis://localhost:6379/0)"
            )

        return rate_limit_uri, spin_limit

    def validate_cors_config(self) -> List[str]:
        """Validate CORS configuration."""
        cors_origins = os.getenv('CORS_ORIGINS', '')

        if not cors_origins:
            if self.is_production:
                self.warnings.append("CORS_ORIGINS not set - cross-origin browser requests will be rejected")
            return []

        origins = [origin.strip() for origin in cors_origins.split(',') if origin.strip()]
        for origin in origins:
            if not origin.startswith(('http://', 'https://')):
                self.warnings.append(f"CORS origin '{origin}' should include protocol (http:// or https://)")
        return origins

    def validate_all(self) -> dict:
        """
        Validate all configuration settings.

        Returns:
            Dictionary containing validated configuration values

        Raises:
            ConfigValidationError: If critical configuration is missing in production
        """
        config = {}

        try:
            config['JWT_SECRET_KEY'], config['JWT_ACCESS_TOKEN_EXPIRES'], config['JWT_REFRESH_TOKEN_EXPIRES'] = self.validate_jwt_config()
            config['SQLALCHEMY_DATABASE_URI'] = self.validate_database_config()
            config['RATELIMIT_STORAGE_URI'], config['SPIN_RATE_LIMIT'] = self.validate_rate_limiting_config()
            config['CORS_ORIGINS'] = self.validate_cors_config()

            config['DEBUG'] = env_flag('FLASK_DEBUG')
            config['JWT_COOKIE_SECURE'] = env_flag('JWT_COOKIE_SECURE', 'True')
            config['FORCE_HTTPS'] = env_flag('FORCE_HTTPS', 'True' if self.is_production else 'False')
            config['TRUSTED_PROXY_COUNT'] = int(os.getenv('TRUSTED_PROXY_COUNT', '0'))

            if self.is_production:
                if config['DEBUG']:
                    self.errors.append("CRITICAL: DEBUG mode must be disabled in production (set FLASK_DEBUG=False)")

                if not config['JWT_COOKIE_SECURE']:
                    self.errors.append("CRITICAL: JWT cookies must be secure in production (set JWT_COOKIE_SECURE=True)")

            if self.errors:
                error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {error}" for error in self.errors)
                if self.warnings:
                    error_msg += "\n\nWarnings:\n" + "\n".join(f"  - {warning}" for warning in self.warnings)
                raise ConfigValidationError(error_msg)

            if self.warnings and not self.is_testing:
                for warning in self.warnings:
                    warnings.warn(warning, UserWarning)

            return config

        except Exception as e:
            if isinstance(e, ConfigValidationError):
                raise
            else:
                raise ConfigValidationError(f"Configuration validation error: {str(e)}") from e


def validate_production_config() -> dict:
    """
    Validate configuration with fail-fast behavior.

    Returns:
        Dictionary of validated configuration values

    Raises:
        SystemExit: If validation fails during startup
    """
    try:
        validator = ConfigValidator()
        return validator.validate_all()
    except ConfigValidationError as e:
        print("\nCONFIGURATION VALIDATION FAILED\n", file=sys.stderr)
        print(str(e), file=sys.stderr)
        print("\nHow to fix:", file=sys.stderr)
        print("1. Set required environment variables (see .env.example)", file=sys.stderr)
        print("2. Use 'flask create-admin' for admin user creation", file=sys.stderr)
        print("\nApplication startup ABORTED\n", file=sys.stderr)

        sys.exit(1)

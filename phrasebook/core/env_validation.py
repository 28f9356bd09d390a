"""
Environment variable validation.

This module checks the configuration the application depends on before it
starts serving requests:

- DATABASE_URL uses an async driver (asyncpg, or aiosqlite outside production)
- CELERY_BROKER_URL points at a supported broker
- the AI provider endpoint is an http(s) URL and the model lists make sense

In production a problem aborts startup with EnvironmentValidationError.
Everywhere else problems are logged as warnings and startup continues.

The AI provider key is not checked here; it is stored in the settings table
and may legitimately be missing (categorization then falls back to the
default category).
"""

from typing import List, Optional, Tuple
from urllib.parse import urlparse

from phrasebook.core.config import Settings, settings
from phrasebook.core.logging import get_logger

logger = get_logger(__name__)

ASYNC_DATABASE_SCHEMES = ("postgresql+asyncpg://", "sqlite+aiosqlite://")
BROKER_SCHEMES = ("redis://", "rediss://", "amqp://", "amqps://", "memory://")


class EnvironmentValidationError(Exception):
    """Raised when environment validation fails."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


def validate_database_url(config: Optional[Settings] = None) -> List[str]:
    """
    Validate database URL configuration.

    Returns:
        List of validation errors (empty if valid)
    """
    config = config or settings
    errors = []

    if not config.DATABASE_URL:
        errors.append("DATABASE_URL is not set")
        return errors

    if not config.DATABASE_URL.startswith(ASYNC_DATABASE_SCHEMES):
        errors.append(
            "DATABASE_URL must use an async driver "
            "(format: postgresql+asyncpg://... or sqlite+aiosqlite://...)"
        )
    elif config.is_production and not config.DATABASE_URL.startswith("postgresql+asyncpg://"):
        errors.append("DATABASE_URL must point at PostgreSQL in production")

    # Check for default password in production
    if config.is_production and "phrasebook:phrasebook@" in config.DATABASE_URL:
        errors.append(
            "DATABASE_URL contains the default password - use a secure password in production"
        )

    return errors


def validate_broker_url(config: Optional[Settings] = None) -> List[str]:
    """
    Validate the Celery broker URL.

    Returns:
        List of validation errors (empty if valid)
    """
    config = config or settings
    errors = []

    if not config.CELERY_BROKER_URL:
        errors.append("CELERY_BROKER_URL is not set")
        return errors

    if not config.CELERY_BROKER_URL.startswith(BROKER_SCHEMES):
        errors.append(
            "CELERY_BROKER_URL must start with redis://, rediss://, amqp:// or amqps://"
        )
    elif config.is_production and config.CELERY_BROKER_URL.startswith("memory://"):
        errors.append("CELERY_BROKER_URL cannot be the in-memory broker in production")

    return errors


def validate_ai_settings(config: Optional[Settings] = None) -> List[str]:
    """
    Validate the AI provider endpoint and model configuration.

    Returns:
        List of validation errors (empty if valid)
    """
    config = config or settings
    errors = []

    parsed = urlparse(config.OPENROUTER_API_URL or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        errors.append("OPENROUTER_API_URL must be an http(s) URL")

    if not config.DEFAULT_AI_MODEL:
        errors.append("DEFAULT_AI_MODEL is not set")

    models = config.available_ai_models
    if models and config.DEFAULT_AI_MODEL not in models:
        logger.warning(
            "default_model_not_listed",
            message="DEFAULT_AI_MODEL is not one of AVAILABLE_AI_MODELS",
            default_model=config.DEFAULT_AI_MODEL,
        )

    if config.CATEGORIZATION_MAX_TOKENS < 1:
        errors.append("CATEGORIZATION_MAX_TOKENS must be positive")

    return errors


def validate_production_settings(config: Optional[Settings] = None) -> List[str]:
    """
    Validate production-specific settings.

    Returns:
        List of validation errors (empty if valid)
    """
    config = config or settings
    errors = []

    if not config.is_production:
        return errors

    # Check DEBUG is disabled
    if config.DEBUG:
        errors.append("DEBUG must be false in production")

    # Check ALLOWED_ORIGINS doesn't include localhost
    if "localhost" in ",".join(config.ALLOWED_ORIGINS):
        logger.warning(
            "localhost_in_allowed_origins",
            message="ALLOWED_ORIGINS includes localhost in production - may be insecure"
        )

    # Check LOG_FORMAT is JSON
    if config.LOG_FORMAT != "json":
        logger.warning(
            "log_format_not_json",
            message="LOG_FORMAT should be 'json' in production for log aggregation"
        )

    return errors


def validate_environment(config: Optional[Settings] = None) -> Tuple[bool, List[str]]:
    """
    Validate all environment variables.

    Returns:
        (is_valid, list_of_errors)
    """
    config = config or settings
    all_errors: List[str] = []

    logger.info(
        "validating_environment",
        app_env=config.APP_ENV,
        app_name=config.APP_NAME
    )

    all_errors.extend(validate_database_url(config))
    all_errors.extend(validate_broker_url(config))
    all_errors.extend(validate_ai_settings(config))
    all_errors.extend(validate_production_settings(config))

    if all_errors:
        logger.error(
            "environment_validation_failed",
            errors=all_errors,
            error_count=len(all_errors)
        )
        return False, all_errors

    logger.info("environment_validation_successful", app_env=config.APP_ENV)
    return True, []


def validate_or_raise(config: Optional[Settings] = None) -> None:
    """
    Validate the environment during application startup.

    Raises:
        EnvironmentValidationError: in production, when any check fails
    """
    config = config or settings
    is_valid, errors = validate_environment(config)

    if is_valid:
        return

    if config.is_production:
        logger.critical("startup_aborted_invalid_environment", errors=errors)
        raise EnvironmentValidationError(errors)

    for error in errors:
        logger.warning("environment_validation_warning", message=error)

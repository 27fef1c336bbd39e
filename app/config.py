# app/config.py
"""
Centralized configuration management with startup validation.

Defines REQUIRED vs OPTIONAL environment variables and provides
safe configuration loading with validation and logging.
"""
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

SERVICE_NAME = "decimal-digits"
SERVICE_VERSION = "0.1.0"

# Default values
DEFAULT_MAX_REQUEST_SIZE_BYTES = 65_536  # 64KB, requests are small JSON bodies
MIN_REQUEST_SIZE_BYTES = 1024  # 1KB minimum
DEFAULT_SETTLEMENT_INTERVAL_SECONDS = 15
MIN_SETTLEMENT_INTERVAL_SECONDS = 1

# Sensitive substrings that should never appear in logs
SENSITIVE_SUBSTRINGS = ("key", "token", "secret", "password", "credential", "auth")


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""

    pass


# =============================================================================
# Configuration Dataclass
# =============================================================================


@dataclass
class AppConfig:
    """Application configuration loaded from environment."""

    # Service info
    service_name: str = SERVICE_NAME
    service_version: str = SERVICE_VERSION
    environment: str = "development"

    # Security settings
    max_request_size_bytes: int = DEFAULT_MAX_REQUEST_SIZE_BYTES

    # Settlement scheduler (OPTIONAL - default disabled, cron endpoint still works)
    settlement_scheduler_enabled: bool = False
    settlement_interval_seconds: int = DEFAULT_SETTLEMENT_INTERVAL_SECONDS

    # Secrets (presence only - values are read where they are used)
    jwt_secret_present: bool = False
    service_key_present: bool = False
    razorpay_configured: bool = False

    # Warnings collected during config load
    warnings: list = field(default_factory=list)


# =============================================================================
# Configuration Loading
# =============================================================================


def _parse_int_env(
    name: str, default: int, min_value: Optional[int] = None
) -> tuple[int, Optional[str]]:
    """
    Parse an integer environment variable with validation.

    Returns (value, warning_message).
    On invalid input, returns default with a warning.
    """
    raw = os.environ.get(name)
    if raw is None:
        return default, None

    try:
        value = int(raw)
    except ValueError:
        warning = f"{name}='{raw}' is not a valid integer; using default {default}"
        return default, warning

    if min_value is not None and value < min_value:
        warning = f"{name}={value} is below minimum {min_value}; using default {default}"
        return default, warning

    return value, None


def _parse_bool_env(name: str, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    raw = os.environ.get(name, "").lower()
    if raw in ("true", "1", "yes", "on"):
        return True
    if raw in ("false", "0", "no", "off", ""):
        return default
    return default


def _present(name: str) -> bool:
    value = os.environ.get(name)
    return bool(value and len(value) > 0)


def load_config(fail_fast: bool = True) -> AppConfig:
    """
    Load and validate application configuration from environment.

    Args:
        fail_fast: If True, raise ConfigurationError on critical issues.
                   If False, collect warnings and continue.

    Returns:
        AppConfig instance with validated configuration.

    Raises:
        ConfigurationError: If required configuration is missing/invalid
                           and fail_fast is True.
    """
    warnings = []

    # Environment
    environment = os.environ.get("RAILWAY_ENVIRONMENT", "development")

    # Security settings with validation
    max_request_size, size_warning = _parse_int_env(
        "MAX_REQUEST_SIZE_BYTES",
        DEFAULT_MAX_REQUEST_SIZE_BYTES,
        min_value=MIN_REQUEST_SIZE_BYTES,
    )
    if size_warning:
        warnings.append(size_warning)

    # Scheduler
    scheduler_enabled = _parse_bool_env("SETTLEMENT_SCHEDULER_ENABLED", False)
    interval, interval_warning = _parse_int_env(
        "SETTLEMENT_INTERVAL_SECONDS",
        DEFAULT_SETTLEMENT_INTERVAL_SECONDS,
        min_value=MIN_SETTLEMENT_INTERVAL_SECONDS,
    )
    if interval_warning:
        warnings.append(interval_warning)

    # Secrets (check presence, don't store value)
    jwt_secret_present = _present("JWT_SECRET")
    service_key_present = _present("SERVICE_KEY")
    razorpay_configured = _present("RAZORPAY_KEY_ID") and _present("RAZORPAY_KEY_SECRET")

    if not jwt_secret_present:
        message = "JWT_SECRET is not set; all user endpoints will return 401"
        if fail_fast and environment == "production":
            raise ConfigurationError(message)
        warnings.append(message)

    if not service_key_present:
        warnings.append("SERVICE_KEY is not set; internal settlement endpoints are disabled")

    if not razorpay_configured:
        warnings.append("RAZORPAY_KEY_ID/RAZORPAY_KEY_SECRET not set; top-ups and withdrawals disabled")
    elif not _present("RAZORPAY_ACCOUNT_NUMBER"):
        warnings.append("RAZORPAY_ACCOUNT_NUMBER is not set; payouts will be rejected")

    # Log warnings
    for warning in warnings:
        logger.warning(f"[CONFIG] {warning}")

    return AppConfig(
        environment=environment,
        max_request_size_bytes=max_request_size,
        settlement_scheduler_enabled=scheduler_enabled,
        settlement_interval_seconds=interval,
        jwt_secret_present=jwt_secret_present,
        service_key_present=service_key_present,
        razorpay_configured=razorpay_configured,
        warnings=warnings,
    )


def log_config_snapshot(config: AppConfig) -> str:
    """
    Generate and log a safe configuration snapshot.

    Returns the snapshot string for testing purposes.
    Never logs actual secret values - only boolean presence flags.
    """
    snapshot = (
        f"[STARTUP] service={config.service_name} "
        f"version={config.service_version} "
        f"environment={config.environment} "
        f"max_request_size_bytes={config.max_request_size_bytes} "
        f"settlement_scheduler_enabled={config.settlement_scheduler_enabled} "
        f"settlement_interval_seconds={config.settlement_interval_seconds} "
        f"jwt_secret_present={config.jwt_secret_present} "
        f"service_key_present={config.service_key_present} "
        f"razorpay_configured={config.razorpay_configured}"
    )
    logger.info(snapshot)
    return snapshot


def validate_config_snapshot_safety(snapshot: str) -> bool:
    """
    Validate that a config snapshot doesn't contain sensitive values.

    Returns True if safe, False if potentially unsafe.
    """
    snapshot_lower = snapshot.lower()

    # We allow "secret_present=" but not "secret=" followed by a non-boolean value
    for sensitive in SENSITIVE_SUBSTRINGS:
        pattern = rf"{sensitive}=(?!true|false)"
        if re.search(pattern, snapshot_lower):
            return False

    return True

"""
Configuration Management

Environment-driven settings for the operations database connection and the
analytics pipeline (timezone, thread limits, history length, pool size).
"""

import os
from typing import Optional
from dotenv import load_dotenv

# Concurrent queries issued by bottleneck detection
BOTTLENECK_QUERIES = 3


def load_config(env_path: Optional[str] = None) -> bool:
    """
    Load settings from a .env file into the process environment.

    Args:
        env_path: Path to the .env file (default: search from the working directory)

    Returns:
        bool: True if a .env file was found
    """
    if env_path:
        return load_dotenv(env_path)
    return load_dotenv()


def get_database_config() -> dict:
    """
    Get connection settings for the operations database.

    Returns:
        dict: Database configuration

    Raises:
        ValueError: If required configuration is missing
    """
    config = {
        "host": os.getenv("OPERATIONSDB_HOST"),
        "port": os.getenv("OPERATIONSDB_PORT", "5432"),
        "database": os.getenv("OPERATIONSDB_NAME"),
        "user": os.getenv("OPERATIONSDB_USER"),
        "password": os.getenv("OPERATIONSDB_PASS"),
    }

    missing = [k for k, v in config.items() if not v]
    if missing:
        raise ValueError(
            f"Missing operations database configuration: {missing}. "
            f"Please check your .env file."
        )

    return config


def get_app_config() -> dict:
    """
    Settings for the analytics pipeline and dashboard.

    Returns:
        dict: timezone, log_level, max_workers, history_months and pool bounds
    """
    return {
        "timezone": os.getenv("TIMEZONE", "America/Bogota"),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "max_workers": int(os.getenv("ANALYTICS_MAX_WORKERS", "4")),
        "history_months": int(os.getenv("HISTORY_MONTHS", "6")),
        "pool_min_connections": int(os.getenv("DB_POOL_MIN", "2")),
        "pool_max_connections": int(os.getenv("DB_POOL_MAX", "10")),
    }


def validate_config() -> list:
    """
    Collect configuration problems without raising.

    Returns:
        list: Error messages (empty when the configuration is usable)
    """
    missing = []

    try:
        get_database_config()
    except ValueError as e:
        missing.append(f"OPERATIONS: {str(e)}")

    try:
        app_config = get_app_config()
    except ValueError as e:
        missing.append(f"APP: invalid numeric setting: {e}")
        return missing

    # KPI branches (up to max_workers) and the bottleneck queries run together
    required = app_config["max_workers"] + BOTTLENECK_QUERIES
    if app_config["pool_max_connections"] < required:
        missing.append(
            f"APP: DB_POOL_MAX={app_config['pool_max_connections']} is below the "
            f"{required} connections one analysis can hold "
            f"(ANALYTICS_MAX_WORKERS={app_config['max_workers']} + {BOTTLENECK_QUERIES})"
        )

    return missing

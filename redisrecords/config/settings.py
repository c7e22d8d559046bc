"""
Configuration settings for RedisRecords.

Settings are plain class attributes, read from the environment where a
deployment is expected to override them. Environment-specific subclasses
tune logging and the default storage backend; get_settings() picks one from
the REDISRECORDS_ENV variable.
"""

import os
import logging
from typing import Any

from redisrecords.exceptions import ConfigurationError


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Adapter configuration settings"""

    # Storage settings
    DEFAULT_STORAGE_BACKEND = os.getenv("REDISRECORDS_BACKEND", "memory")  # memory, redis

    # Redis settings (if using Redis storage)
    REDIS_URL = os.getenv("REDIS_URL")
    REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_DB = int(os.getenv("REDIS_DB", "0"))
    REDIS_PASSWORD = os.getenv("REDIS_PASSWORD")
    REDIS_SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", "5.0"))

    # Write settings
    ATOMIC_WRITES = _env_flag("REDISRECORDS_ATOMIC_WRITES", True)  # MULTI/EXEC per logical mutation
    INDEX_ALL_PROPERTIES = _env_flag("REDISRECORDS_INDEX_ALL", False)

    # Logging settings
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @classmethod
    def get_storage_config(cls) -> dict[str, Any]:
        """Get storage configuration"""
        return {
            "backend": cls.DEFAULT_STORAGE_BACKEND,
            "atomic_writes": cls.ATOMIC_WRITES,
            "index_all_properties": cls.INDEX_ALL_PROPERTIES,
            "redis": {
                "url": cls.REDIS_URL,
                "host": cls.REDIS_HOST,
                "port": cls.REDIS_PORT,
                "db": cls.REDIS_DB,
                "password": cls.REDIS_PASSWORD,
                "socket_timeout": cls.REDIS_SOCKET_TIMEOUT,
            }
        }

    @classmethod
    def validate_config(cls) -> list[str]:
        """Validate configuration and return list of errors"""
        errors = []

        if cls.DEFAULT_STORAGE_BACKEND not in ["memory", "redis"]:
            errors.append("DEFAULT_STORAGE_BACKEND must be one of: memory, redis")

        if cls.REDIS_PORT <= 0 or cls.REDIS_PORT > 65535:
            errors.append("REDIS_PORT must be between 1 and 65535")

        if cls.REDIS_DB < 0:
            errors.append("REDIS_DB must not be negative")

        if cls.REDIS_SOCKET_TIMEOUT <= 0:
            errors.append("REDIS_SOCKET_TIMEOUT must be positive")

        if logging.getLevelName(str(cls.LOG_LEVEL).upper()) not in range(0, 51):
            errors.append(f"LOG_LEVEL '{cls.LOG_LEVEL}' is not a logging level")

        return errors

    @classmethod
    def ensure_valid(cls) -> None:
        """Raise ConfigurationError if validate_config() reports anything"""
        errors = cls.validate_config()
        if errors:
            raise ConfigurationError("; ".join(errors))


# Environment-specific settings
class DevelopmentSettings(Settings):
    """Development environment settings"""
    LOG_LEVEL = "DEBUG"
    DEFAULT_STORAGE_BACKEND = "memory"


class ProductionSettings(Settings):
    """Production environment settings"""
    LOG_LEVEL = "WARNING"
    DEFAULT_STORAGE_BACKEND = "redis"
    ATOMIC_WRITES = True


class TestingSettings(Settings):
    """Testing environment settings"""
    LOG_LEVEL = "DEBUG"
    DEFAULT_STORAGE_BACKEND = "memory"
    REDIS_DB = 15


def get_settings() -> Settings:
    """Get settings based on environment variable"""
    env = os.getenv("REDISRECORDS_ENV", "development").lower()

    if env == "production":
        return ProductionSettings()
    elif env == "testing":
        return TestingSettings()
    else:
        return DevelopmentSettings()


def configure_logging(config: Settings | None = None) -> None:
    """Apply LOG_LEVEL and LOG_FORMAT to the root logger"""
    config = config or settings
    logging.basicConfig(level=str(config.LOG_LEVEL).upper(), format=config.LOG_FORMAT)


# Global settings instance
settings = get_settings()

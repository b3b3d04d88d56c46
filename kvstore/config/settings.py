"""
KV-Store Configuration Settings

This module contains all configuration constants for the KV-Store server.
Every value can be overridden through a KV_STORE_* environment variable
or the matching command line flag.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Server configuration settings."""

    # Network settings
    HOST: str = os.environ.get("KV_STORE_HOST", "0.0.0.0")
    PORT: int = int(os.environ.get("KV_STORE_PORT", "8080"))

    # Background worker settings
    REPORT_INTERVAL: float = float(os.environ.get("KV_STORE_REPORT_INTERVAL", "5"))

    # Shutdown settings
    SHUTDOWN_TIMEOUT: float = float(os.environ.get("KV_STORE_SHUTDOWN_TIMEOUT", "5"))

    # Logging settings
    DEBUG: bool = os.environ.get("KV_STORE_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("KV_STORE_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()

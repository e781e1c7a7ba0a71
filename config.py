"""
Configuration for the print shop order manager.

Application settings come from the environment (optionally a .env file).
Pricing constants are NOT here: they live in system_config.txt and are
managed at runtime by modules.system_config.SystemConfig.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    ENVIRONMENT = os.environ.get("PRINT_SHOP_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    TESTING = False

    # ==========================================================================
    # Persistence
    # ==========================================================================
    # DATA_DIR holds orders.txt and order_queue.txt.
    # SYSTEM_CONFIG_FILE holds the pricing constants (key=value lines).
    #
    # ORDER_FORMAT_VERSION selects the escaping used when saving orders:
    #   1 - compatible with files written by the legacy desktop tool
    #   2 - also escapes backslashes, so every string round-trips exactly
    # Files are always read according to their own header.
    # ==========================================================================
    DATA_DIR = os.environ.get("DATA_DIR", str(BASE_DIR / "data"))
    SYSTEM_CONFIG_FILE = os.environ.get(
        "SYSTEM_CONFIG_FILE", str(Path(DATA_DIR) / "system_config.txt")
    )
    ORDER_FORMAT_VERSION = int(os.environ.get("ORDER_FORMAT_VERSION", "1"))

    # Load saved state when the app starts, write it back on interpreter exit
    LOAD_ON_STARTUP = os.environ.get("LOAD_ON_STARTUP", "1") == "1"
    PERSIST_ON_SHUTDOWN = os.environ.get("PERSIST_ON_SHUTDOWN", "1") == "1"


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    LOAD_ON_STARTUP = False
    PERSIST_ON_SHUTDOWN = False

"""
Configuration module for RelayChat application.
Reads server settings from environment variables (a `.env` file is honoured).
"""

import os
from typing import Dict, Any

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    """Read an integer variable, falling back to the default when unset or invalid."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value or default


class Config:
    """Application configuration class."""

    # Server Configuration
    HOST = os.environ.get("HOST", "0.0.0.0")
    PORT = _env_int("PORT", 8000)
    WS_PORT = _env_int("WS_PORT", PORT + 1)

    # Uploads
    MAX_FILE_SIZE = _env_int("MAX_FILE_SIZE", 10 * 1024 * 1024)
    UPLOAD_DIR = os.environ.get("UPLOAD_DIR", "public/uploads/")
    PUBLIC_DIR = os.environ.get("PUBLIC_DIR", "public")

    # Shared chat history
    MAX_MESSAGE_HISTORY = _env_int("MAX_MESSAGE_HISTORY", 100)

    # Per-connection outbound queue; a full queue drops the event
    OUTBOUND_QUEUE_SIZE = _env_int("OUTBOUND_QUEUE_SIZE", 256)

    # Logging profile (development, production, testing)
    ENV = os.environ.get("RELAYCHAT_ENV", "development")

    @classmethod
    def get_config(cls) -> Dict[str, Any]:
        """Get all configuration values as a dictionary."""
        return {
            "HOST": cls.HOST,
            "PORT": cls.PORT,
            "WS_PORT": cls.WS_PORT,
            "MAX_FILE_SIZE": cls.MAX_FILE_SIZE,
            "UPLOAD_DIR": cls.UPLOAD_DIR,
            "PUBLIC_DIR": cls.PUBLIC_DIR,
            "MAX_MESSAGE_HISTORY": cls.MAX_MESSAGE_HISTORY,
            "OUTBOUND_QUEUE_SIZE": cls.OUTBOUND_QUEUE_SIZE,
            "ENV": cls.ENV,
        }


# Create config instance
config = Config()

"""
Application settings

All tunables are collected here and read from the environment once, at
startup. Components receive a Settings instance instead of calling
os.getenv themselves.
"""

import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

from models.schemas import MAX_FILE_SIZE

# Load environment variables
load_dotenv()

DEFAULT_MODEL = "gemini-2.5-flash-image-preview"


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or value.strip() == '':
        return None
    return float(value)


@dataclass
class Settings:
    """Server and wizard configuration"""
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_MODEL

    # Upload limits
    max_file_size: int = MAX_FILE_SIZE
    max_content_length: int = 25 * 1024 * 1024  # two images plus form overhead

    # Web server
    secret_key: str = 'virtual-tryon-secret-key-change-in-production'
    cors_origins: str = '*'
    port: int = 5001
    session_timeout_minutes: int = 60

    # Wizard timing
    progress_tick_seconds: float = 0.2
    display_delay_seconds: float = 1.0

    # None means the transport default
    relay_timeout_seconds: Optional[float] = None

    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (and .env)"""
        return cls(
            gemini_api_key=os.getenv('GEMINI_API_KEY') or None,
            gemini_model=os.getenv('GEMINI_MODEL', DEFAULT_MODEL),
            max_file_size=int(os.getenv('MAX_FILE_SIZE', MAX_FILE_SIZE)),
            max_content_length=int(os.getenv('MAX_CONTENT_LENGTH', 25 * 1024 * 1024)),
            secret_key=os.getenv('SECRET_KEY', 'virtual-tryon-secret-key-change-in-production'),
            cors_origins=os.getenv('CORS_ORIGINS', '*'),
            port=int(os.getenv('PORT', 5001)),
            session_timeout_minutes=int(os.getenv('SESSION_TIMEOUT_MINUTES', 60)),
            progress_tick_seconds=float(os.getenv('PROGRESS_TICK_SECONDS', 0.2)),
            display_delay_seconds=float(os.getenv('DISPLAY_DELAY_SECONDS', 1.0)),
            relay_timeout_seconds=_optional_float(os.getenv('RELAY_TIMEOUT_SECONDS')),
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        )

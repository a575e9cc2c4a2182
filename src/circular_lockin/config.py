"""
Configuration management for the circular lock-in resolver.

Loads settings from environment variables (prefix ``CIRCULAR_``) with
sensible defaults. A ``.env`` file at the project root is honoured.
"""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / '.env'
if _env_file.exists():
    load_dotenv(_env_file)


DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36'
)


class Settings(BaseSettings):
    """Resolver settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_prefix='CIRCULAR_', extra='ignore')

    # Logging
    LOG_LEVEL: str = 'INFO'
    LOG_JSON: bool = False

    # HTTP
    USER_AGENT: str = DEFAULT_USER_AGENT
    HTML_TIMEOUT_SECONDS: float = Field(default=10.0, ge=1, le=60)
    API_TIMEOUT_SECONDS: float = Field(default=15.0, ge=1, le=60)
    BINARY_TIMEOUT_SECONDS: float = Field(default=30.0, ge=1, le=120)
    SESSION_TTL_SECONDS: int = Field(default=600, ge=0, le=86400)
    MIN_BINARY_BYTES: int = Field(default=100, ge=0)
    MIN_HTML_BYTES: int = Field(default=500, ge=0)
    CURL_BINARY: str = 'curl'

    # Search windows (empirical; tied to the observed notice numbering)
    NSE_WINDOW_DAYS: int = Field(default=10, ge=0, le=60)
    BSE_SCAN_RADIUS_DAYS: int = Field(default=5, ge=0, le=30)
    BSE_MAX_NOTICE_ID: int = Field(default=100, ge=1, le=1000)
    BSE_BATCH_SIZE: int = Field(default=10, ge=1, le=50)

    # Parser
    RECONCILE_WINDOW_CHARS: int = Field(default=120, ge=10, le=1000)


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()

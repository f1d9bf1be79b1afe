from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


def _load_version() -> str:
    version_path = Path(__file__).resolve().parent / "VERSION"
    try:
        return version_path.read_text().strip()
    except FileNotFoundError:
        return "0.1.0"


class Settings(BaseSettings):
    """Application configuration using Pydantic settings."""

    # Local resource state
    DATABASE_URL: str = "sqlite:///./data/state.db"

    # Application
    APP_NAME: str = "FortiState"
    APP_VERSION: str = _load_version()
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ── FortiOS REST API ──────────────────────────────────────────────
    FORTIOS_HOSTNAME: str = "192.168.1.99"
    FORTIOS_TOKEN: Optional[str] = None
    FORTIOS_VDOM: Optional[str] = None
    FORTIOS_INSECURE: bool = False  # Skip TLS verification (self-signed certs)
    FORTIOS_CABUNDLEFILE: Optional[str] = None
    FORTIOS_HTTP_TIMEOUT: float = 30.0
    FORTIOS_RETRIES: int = 3

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()

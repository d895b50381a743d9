import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "9000"))
    cors_origins: List[str] = field(default_factory=lambda: _env_list("CORS_ORIGINS", "*"))

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Bookshelf API")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = _env_flag("DEBUG")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Registry settings
    book_id_length: int = int(os.getenv("BOOK_ID_LENGTH", "16"))

    # CLI client settings
    client_timeout: float = float(os.getenv("CLIENT_TIMEOUT", "5"))

    @property
    def base_url(self) -> str:
        return f"http://{self.api_host}:{self.api_port}"


settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Send log records to stderr unless the root logger is already set up."""
    logging.basicConfig(
        level=level or settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

# src/pos_ui_bff/config.py

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Union

from dotenv import load_dotenv
from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# .env is at the service root, two levels up from src/pos_ui_bff/
CONFIG_FILE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT_DIR = CONFIG_FILE_DIR.parent.parent
ENV_FILE_PATH = PROJECT_ROOT_DIR / ".env"

if ENV_FILE_PATH.exists():
    load_dotenv(dotenv_path=ENV_FILE_PATH, override=True)
    logger.info("POS-UI-BFF: Loaded .env file from: %s", ENV_FILE_PATH)
else:
    logger.info("POS-UI-BFF: .env file not found at %s. Relying on environment variables.", ENV_FILE_PATH)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    # === Runtime ===
    APP_ENV: str = "dev"
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 4322
    LOG_LEVEL: str = "INFO"

    # === Backend API ===
    BACKEND_BASE_URL: AnyHttpUrl = "http://localhost:8080"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # === Session cookies (seconds) ===
    ACCESS_TOKEN_MAX_AGE: int = 60 * 24
    REFRESH_TOKEN_MAX_AGE: int = 60 * 60 * 24 * 7
    USER_INFO_MAX_AGE: int = 60 * 60 * 24 * 7

    # Share one refresh call between concurrent requests holding the same refresh token
    REFRESH_SINGLE_FLIGHT: bool = True

    # Comma-separated in the environment, e.g. "https://pos.example.com,https://localhost:4321"
    ALLOWED_ORIGINS: Union[str, List[str]] = []

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        validate_default=True
    )

    @property
    def COOKIE_SECURE(self) -> bool:
        return self.APP_ENV.lower() == "prod"

    @property
    def REFRESH_URL(self) -> str:
        return self.backend_url("/auth/refresh-token")

    def backend_url(self, path: str) -> str:
        """Resolve a backend path against BACKEND_BASE_URL; absolute URLs pass through."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{str(self.BACKEND_BASE_URL).rstrip('/')}/{path.lstrip('/')}"

    @field_validator("ALLOWED_ORIGINS", mode='before')
    @classmethod
    def parse_comma_separated_origins(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',') if origin.strip()]
        if isinstance(v, (list, tuple)):
            return [str(origin) for origin in v]
        raise TypeError('ALLOWED_ORIGINS: Expected a comma-separated string or a list.')


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # httpx logs every outbound request line at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class Settings:
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "ChatShare")
    VERSION: str = os.getenv("VERSION", "1.0.0")
    API_TITLE: str = os.getenv("API_TITLE", f"{PROJECT_NAME} API")
    ENVIRONMENT_NAME: str = os.getenv("ENVIRONMENT_NAME", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    RELOAD: bool = _env_flag("RELOAD", "true")

    # Browser front end that posts share URLs
    CORS_ORIGINS: List[str] = _env_list(
        "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    )
    CORS_CREDENTIALS: bool = _env_flag("CORS_CREDENTIALS", "true")
    CORS_METHODS: List[str] = ["GET", "POST", "OPTIONS"]
    CORS_HEADERS: List[str] = ["*"]

    # Share pages reject requests that do not look like a browser
    FETCH_TIMEOUT_SECONDS: float = float(os.getenv("FETCH_TIMEOUT_SECONDS", "30"))
    FETCH_USER_AGENT: str = os.getenv("FETCH_USER_AGENT", DEFAULT_USER_AGENT)
    FETCH_ACCEPT: str = os.getenv(
        "FETCH_ACCEPT",
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    )
    FETCH_ACCEPT_LANGUAGE: str = os.getenv("FETCH_ACCEPT_LANGUAGE", "en-US,en;q=0.5")

    METRICS_ENABLED: bool = _env_flag("METRICS_ENABLED", "true")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT_NAME == "production"


settings = Settings()

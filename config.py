import secrets
from typing import Optional
from dotenv import load_dotenv
load_dotenv()
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    API_ENV: str = "production"
    PRODUCTION_API_URL: str = "https://avrek-calls.onrender.com"
    DEVELOPMENT_API_URL: str = "http://localhost:3001"
    # Overrides both URLs above when set
    API_BASE_URL: Optional[str] = None

    # Signs the per-browser session cookie that holds the token
    SESSION_SECRET: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    SESSION_COOKIE: str = "call_dashboard"
    TOKEN_STORAGE_KEY: str = "token"
    LOGIN_ROUTE: str = "/login"
    POLL_INTERVAL: float = 5.0

    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "app.log"
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

def resolve_base_url(settings: Settings) -> str:
    """Backend URL for the current environment; API_BASE_URL wins when set."""
    if settings.API_BASE_URL:
        return settings.API_BASE_URL.rstrip("/")
    if settings.API_ENV == "development":
        return settings.DEVELOPMENT_API_URL.rstrip("/")
    if settings.API_ENV != "production":
        raise ValueError(f"Unknown API_ENV: {settings.API_ENV}")
    return settings.PRODUCTION_API_URL.rstrip("/")

settings = Settings()

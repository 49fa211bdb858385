from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    # App
    app_name: str = "Ayuda"
    debug: bool = False
    log_level: str = "INFO"

    # Database (SQLite by default; only the user profile is stored)
    database_url: str = "sqlite:///./ayuda.db"

    # Remote chat backend (POST {backend_base_url}/chat)
    backend_base_url: str = "http://localhost:8000"
    backend_timeout_seconds: float = 12.0
    # classifier = answer locally with the keyword rules; apology = fixed "technical difficulty" text
    fallback_mode: Literal["classifier", "apology"] = "classifier"

    # Speech
    speech_locale: str = "es-ES"
    speech_rate: float = 0.9
    listen_timeout_seconds: float = 15.0  # auto-stop recognition after this long
    max_recognition_retries: int = 3  # only for network-class recognition errors
    recognition_retry_backoff_seconds: float = 2.0

    # Dialer
    emergency_number: str = "911"

    # Reference chat backend: sessions kept in memory before the oldest is evicted
    chat_session_limit: int = 1000

    class Config:
        env_file = ".env"


settings = Settings()

"""Application configuration using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    app_name: str = "Weather Advisor API"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Credentials
    weather_api_key: str | None = None
    gemini_api_key: str | None = None

    # Weather API
    weather_api_url: str = "https://api.openweathermap.org/data/2.5/weather"
    geocoding_api_url: str = "https://geocoding-api.open-meteo.com/v1/search"
    request_timeout: float = 10.0

    # Language model
    gemini_api_url: str = "https://generativelanguage.googleapis.com/v1"
    gemini_model: str = "gemini-2.0-flash"

    # Client-side location fix
    locator_api_url: str = "https://ipapi.co/json/"
    location_timeout: float = 10.0

    # Conversation defaults
    default_theme: str = "friendly"
    default_language: str = "ja"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True


settings = Settings()

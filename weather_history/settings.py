from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized configuration.

    Why:
    - Keeps the OpenWeather key out of source code
    - Lets tests point the app at a throwaway SQLite file

    Loaded from:
    - environment variables (OPENWEATHER_API_KEY, HISTORY_LIMIT, ...)
    - .env file (if present)
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Required key (the app should fail fast if missing)
    openweather_api_key: str
    openweather_base_url: str = "https://api.openweathermap.org"
    request_timeout_s: float = 10.0

    app_name: str = "Weather History"
    log_level: str = "INFO"

    # SQLite file path (simple local persistence)
    sqlite_path: str = "weather_history.sqlite3"

    # Size of the live "recent searches" window analytics run over
    history_limit: int = 50


settings = Settings()

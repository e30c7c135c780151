"""SourceLens configuration — loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "extra": "ignore"}

    # LLM API keys
    anthropic_api_key: str = ""
    google_api_key: str = ""
    openai_api_key: str = ""

    # Persistence
    database_path: str = "sourcelens.db"
    local_storage_path: str = "sourcelens_local.json"

    # Chat sessions
    chat_max_age_seconds: int = 60 * 60
    chat_cleanup_interval_seconds: int = 10 * 60

    # Suggested references are reused for identical requests within this window
    references_cache_ttl_seconds: int = 30 * 60

    # Author portraits, named like "janedoe.jpg"; authors without one get an emoji
    portraits_dir: str = "public/portraits"

    # Wikipedia asks clients to identify themselves
    wikipedia_user_agent: str = "SourceLensApp/1.0 (sourcelens@example.com)"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"


settings = Settings()

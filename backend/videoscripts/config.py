from pydantic_settings import BaseSettings
from functools import lru_cache

DEFAULT_PIPELINE_STAGES = ["transcript", "topic_discovery", "clustering", "summary"]


class ConfigurationError(Exception):
    """Raised when a required credential or setting is missing."""
    pass


class Settings(BaseSettings):
    # App
    app_name: str = "VideoScripts"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./videoscripts.db"

    # OpenAI
    openai_api_key: str = ""

    # YouTube Data API
    youtube_api_key: str = ""

    # Transcripts ("apify" or "youtube")
    transcript_provider: str = "apify"
    apify_api_token: str = ""
    apify_actor_id: str = "pintostudio~youtube-transcript-scraper"
    transcript_request_delay_seconds: float = 2.0

    # Google Sheets / Drive
    google_credentials_file: str = "credentials.json"
    spreadsheet_id: str = ""
    spreadsheet_name: str = "VideoScripts Projects"
    worksheet_name: str = ""  # blank = first sheet

    # Stage order used by the orchestrator for every project
    pipeline_stages: list[str] = DEFAULT_PIPELINE_STAGES

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def require(value: str, name: str) -> str:
    """Return a configured value or raise ConfigurationError naming the setting."""
    if not value:
        raise ConfigurationError(f"{name} not configured")
    return value

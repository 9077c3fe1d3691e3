"""Configuration settings for the article-of-the-day service."""

from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load .env file
load_dotenv()

DEFAULT_KEYWORDS = [
    "art",
    "philosophy",
    "aesthetics",
    "painting",
    "sculpture",
    "modern",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Feed sources (empty: loaded from feeds.yaml)
    feed_sources: list[str] = []
    fetch_timeout: float = 20.0

    # Scoring
    relevance_keywords: list[str] = DEFAULT_KEYWORDS
    length_bonus_threshold: int = 100

    # Summary enrichment (LiteLLM model identifier)
    enrichment_enabled: bool = True
    enrichment_timeout: float = 30.0
    summary_model: str = "claude-sonnet-4-20250514"
    summary_max_tokens: int = 200

    # Daily trigger (local time)
    scheduler_enabled: bool = True
    schedule_hour: int = 9
    schedule_minute: int = 0

    # Web server
    host: str = "0.0.0.0"
    port: int = 3000

    # Paths
    project_root: Path = Path.cwd()
    config_dir: Path = Path(__file__).parent
    data_dir: Path = project_root / "data"
    feeds_file: Path = config_dir / "feeds.yaml"
    archive_path: Path = data_dir / "archive.json"

    class Config:
        env_file = ".env"
        extra = "ignore"


# Global settings instance
settings = Settings()

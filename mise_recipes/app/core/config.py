import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field("sqlite:///./mise.db", alias="DATABASE_URL")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    scraper_user_agent: str = Field("MiseEnPlaceBot/2.0", alias="SCRAPER_USER_AGENT")
    scraper_timeout_seconds: float = Field(10.0, alias="SCRAPER_TIMEOUT_SECONDS")
    scraper_max_bytes: int = Field(5 * 1024 * 1024, alias="SCRAPER_MAX_BYTES")
    prep_group_remainder_title: str = Field("Other Ingredients", alias="PREP_GROUP_REMAINDER_TITLE")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    try:
        settings = Settings()
    except PermissionError:
        logger.warning("Unable to read .env; continuing with environment variables only")
        settings = Settings(_env_file=None)
    return settings

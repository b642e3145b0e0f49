from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Localization
    SUPPORTED_LANGUAGES: list[str] = ["en_US", "ru_RU"]

    # Field validation
    DEFAULT_PHONE_REGION: str | None = None  # e.g. "US"; None requires a +country prefix
    VALIDATION_MODE: str = "fail_fast"  # fail_fast | collect_all
    MAX_VALIDATION_ERRORS: int = 50

    # Application
    APP_DEBUG: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True for production (structured JSON), False for dev (colored)

    @property
    def supported_language_count(self) -> int:
        return len(self.SUPPORTED_LANGUAGES)

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

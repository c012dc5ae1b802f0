import logging
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings


logger = logging.getLogger(__name__)


class AppMode(str, Enum):
    DEV = "dev"
    PROD = "prod"


class ImageProviderName(str, Enum):
    POLLINATIONS = "pollinations"
    DIAL = "dial"
    GEMINI = "gemini"


class Settings(BaseSettings):
    # Application mode - defaults to DEV for safety
    APP_MODE: AppMode = AppMode.DEV

    # Debug mode - MUST be False in production
    DEBUG: bool = False

    # Server configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Comma-separated list of allowed origins
    CORS_ALLOWED_ORIGINS: str = ""

    # Image provider selection: pollinations (free, no key), dial, gemini
    IMAGE_PROVIDER: ImageProviderName = ImageProviderName.POLLINATIONS
    # Per-request timeout applied by the provider clients, not by the orchestrator
    PROVIDER_TIMEOUT_SECONDS: float = 120.0

    # Pollinations
    POLLINATIONS_BASE_URL: str = "https://image.pollinations.ai"
    POLLINATIONS_MODEL: str = "flux"
    POLLINATIONS_API_KEY: Optional[str] = None

    # EPAM DIAL
    DIAL_KEY: str = ""
    DIAL_BASE_URL: str = "https://ai-proxy.lab.epam.com"
    DIAL_MODEL: str = "dall-e-3"
    DIAL_API_VERSION: str = "2024-02-01"

    # Google Gemini API
    GOOGLE_API_KEY: str = ""
    GEMINI_IMAGE_MODEL: str = "models/gemini-2.5-flash-image"

    # Prompt and retry budget
    MAX_PROMPT_LENGTH: int = 600
    MAX_RETRIES: int = 2

    # Image defaults passed to providers that accept them
    DEFAULT_IMAGE_STYLE: str = "natural"
    DEFAULT_IMAGE_QUALITY: str = "standard"
    IMAGE_WIDTH: int = 1024
    IMAGE_HEIGHT: int = 1024

    # Classification thresholds
    PACE_LOW_THRESHOLD: float = 360.0  # s/km, slower or equal -> low intensity
    PACE_HIGH_THRESHOLD: float = 240.0  # s/km, faster or equal -> high intensity
    POWER_LOW_THRESHOLD: float = 150.0  # W
    POWER_HIGH_THRESHOLD: float = 250.0  # W
    ELEVATION_ROLLING_THRESHOLD: float = 50.0  # m
    ELEVATION_MOUNTAINOUS_THRESHOLD: float = 500.0  # m
    MORNING_START_HOUR: int = 5
    DAY_START_HOUR: int = 10
    EVENING_START_HOUR: int = 17
    NIGHT_START_HOUR: int = 20

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """
        Get allowed CORS origins.

        In production only explicitly configured origins are allowed.
        """
        origins = []

        if self.APP_MODE == AppMode.DEV:
            origins = [
                "http://localhost:3000",
                "http://localhost:5173",
                "http://127.0.0.1:3000",
                "http://127.0.0.1:5173",
            ]

        if self.CORS_ALLOWED_ORIGINS:
            custom_origins = [
                o.strip() for o in self.CORS_ALLOWED_ORIGINS.split(",") if o.strip()
            ]
            origins.extend(custom_origins)

        if not origins and self.APP_MODE == AppMode.PROD:
            logger.warning(
                "No CORS_ALLOWED_ORIGINS configured in production. "
                "Cross-origin requests will be blocked."
            )
        return origins

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env variables


@dataclass(frozen=True)
class PipelineOptions:
    """
    Flat options injected into the extractor, composer and orchestrator.

    Defaults mirror the Settings defaults so pure code paths can be exercised
    without touching the environment.
    """

    max_prompt_length: int = 600
    max_retries: int = 2
    pace_low_threshold: float = 360.0
    pace_high_threshold: float = 240.0
    power_low_threshold: float = 150.0
    power_high_threshold: float = 250.0
    elevation_rolling_threshold: float = 50.0
    elevation_mountainous_threshold: float = 500.0
    morning_start_hour: int = 5
    day_start_hour: int = 10
    evening_start_hour: int = 17
    night_start_hour: int = 20

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineOptions":
        return cls(
            max_prompt_length=settings.MAX_PROMPT_LENGTH,
            max_retries=settings.MAX_RETRIES,
            pace_low_threshold=settings.PACE_LOW_THRESHOLD,
            pace_high_threshold=settings.PACE_HIGH_THRESHOLD,
            power_low_threshold=settings.POWER_LOW_THRESHOLD,
            power_high_threshold=settings.POWER_HIGH_THRESHOLD,
            elevation_rolling_threshold=settings.ELEVATION_ROLLING_THRESHOLD,
            elevation_mountainous_threshold=settings.ELEVATION_MOUNTAINOUS_THRESHOLD,
            morning_start_hour=settings.MORNING_START_HOUR,
            day_start_hour=settings.DAY_START_HOUR,
            evening_start_hour=settings.EVENING_START_HOUR,
            night_start_hour=settings.NIGHT_START_HOUR,
        )


def _validate_settings(settings: Settings) -> Settings:
    """
    Validate settings and fail fast on misconfiguration.

    Production must not run in debug mode, and the selected provider must
    have its credential configured.
    """
    if settings.MAX_RETRIES < 0:
        raise ValueError("MAX_RETRIES must be zero or positive")
    if settings.MAX_PROMPT_LENGTH <= 0:
        raise ValueError("MAX_PROMPT_LENGTH must be positive")
    if not (
        0
        <= settings.MORNING_START_HOUR
        < settings.DAY_START_HOUR
        < settings.EVENING_START_HOUR
        < settings.NIGHT_START_HOUR
        <= 24
    ):
        raise ValueError("Time-of-day hour boundaries must be increasing within 0-24")

    if settings.APP_MODE == AppMode.PROD:
        if settings.DEBUG:
            error_msg = (
                "CRITICAL: DEBUG=True in production! "
                "Set DEBUG=False or remove the DEBUG environment variable."
            )
            logger.critical(error_msg)
            raise ValueError(error_msg)

        if settings.IMAGE_PROVIDER == ImageProviderName.DIAL and not settings.DIAL_KEY:
            error_msg = "IMAGE_PROVIDER=dial requires DIAL_KEY in production"
            logger.critical(error_msg)
            raise ValueError(error_msg)

        if (
            settings.IMAGE_PROVIDER == ImageProviderName.GEMINI
            and not settings.GOOGLE_API_KEY
        ):
            error_msg = "IMAGE_PROVIDER=gemini requires GOOGLE_API_KEY in production"
            logger.critical(error_msg)
            raise ValueError(error_msg)

    return settings


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Settings are validated on first access.
    """
    settings = Settings()
    return _validate_settings(settings)

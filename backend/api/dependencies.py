from functools import lru_cache

from config import PipelineOptions, get_settings
from services.activity_image_pipeline import ActivityImagePipeline
from services.providers import get_provider


@lru_cache()
def get_pipeline() -> ActivityImagePipeline:
    """Shared pipeline for the configured provider; overridden in tests."""
    settings = get_settings()
    return ActivityImagePipeline(
        provider=get_provider(settings=settings),
        options=PipelineOptions.from_settings(settings),
    )

"""End-to-end pipeline: raw activity -> signals -> prompt -> generated image."""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from config import PipelineOptions
from schemas.activity import RawActivity
from schemas.prompt import GenerationResult, ImagePrompt
from schemas.signals import Signals
from services.generation_orchestrator import GenerationOrchestrator, ProgressCallback
from services.prompt_composer import compose_prompt
from services.providers.base import ImageProvider
from services.signal_extractor import SignalExtractor

logger = logging.getLogger(__name__)

ActivityInput = Union[RawActivity, Mapping[str, Any]]


@dataclass(frozen=True)
class ActivityImageOutcome:
    signals: Signals
    prompt: ImagePrompt
    image: GenerationResult


class ActivityImagePipeline:
    """Wires the extractor, composer and orchestrator with shared options."""

    def __init__(self, provider: ImageProvider, options: Optional[PipelineOptions] = None):
        self.options = options or PipelineOptions()
        self.extractor = SignalExtractor(self.options)
        self.orchestrator = GenerationOrchestrator(provider, self.options)

    @property
    def provider_name(self) -> str:
        return getattr(self.orchestrator.provider, "name", "unknown")

    def extract_signals(self, raw: ActivityInput) -> Signals:
        return self.extractor.extract(raw)

    def build_prompt(self, raw: ActivityInput) -> tuple[Signals, ImagePrompt]:
        signals = self.extract_signals(raw)
        return signals, compose_prompt(signals, self.options)

    async def generate(
        self,
        raw: ActivityInput,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> ActivityImageOutcome:
        signals, prompt = self.build_prompt(raw)
        logger.info(
            "Generating image for %s via %s: %s",
            signals.activity_type,
            self.provider_name,
            prompt.text,
        )
        image = await self.orchestrator.generate(
            prompt, signals.activity_type, progress_callback
        )
        if image.fallback:
            logger.warning("Image for %s generated from fallback prompt", signals.activity_type)
        return ActivityImageOutcome(signals=signals, prompt=prompt, image=image)

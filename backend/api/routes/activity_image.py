import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from api.dependencies import get_pipeline
from schemas.activity import RawActivity
from schemas.generate import (
    ActivityImageResponse,
    ActivityPromptResponse,
    ValidationErrorResponse,
)
from schemas.signals import Signals
from services.activity_image_pipeline import ActivityImagePipeline
from services.error_sanitizer import sanitize_public_error_message
from services.errors import PromptLengthError, ProviderError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/activity-image",
    tags=["activity-image"],
    responses={422: {"model": ValidationErrorResponse}},
)


@router.post("/signals", response_model=Signals)
async def extract_activity_signals(
    activity: RawActivity,
    pipeline: ActivityImagePipeline = Depends(get_pipeline),
):
    """Classify an activity without composing a prompt"""
    return pipeline.extract_signals(activity)


@router.post("/prompt", response_model=ActivityPromptResponse)
async def preview_activity_prompt(
    activity: RawActivity,
    pipeline: ActivityImagePipeline = Depends(get_pipeline),
):
    """Dry run: return the signals and the prompt that would be sent"""
    signals, prompt = pipeline.build_prompt(activity)
    return ActivityPromptResponse(signals=signals, prompt=prompt)


@router.post("", response_model=ActivityImageResponse)
async def generate_activity_image(
    activity: RawActivity,
    request: Request,
    pipeline: ActivityImagePipeline = Depends(get_pipeline),
):
    """
    Generate an illustration for an activity.

    Validation failures are returned by the app-level handlers as 422.
    Provider exhaustion (all retries and the fallback failed) is a 502.
    The outcome is left on request.state for the request log.
    """
    request_id = getattr(request.state, "request_id", "-")
    try:
        outcome = await pipeline.generate(activity)
    except ProviderError as e:
        logger.error(
            "[%s] Image generation failed for activity %s: %s", request_id, activity.id, e
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=sanitize_public_error_message(
                str(e), fallback="Image generation failed"
            )
            or "Image generation failed",
        )
    except PromptLengthError as e:
        logger.error(
            "[%s] Prompt length guard tripped for activity %s: %s",
            request_id,
            activity.id,
            e,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Prompt could not be composed",
        )

    request.state.image_outcome = {
        "provider": pipeline.provider_name,
        "fallback": outcome.image.fallback,
        "attempts": outcome.image.attempts,
    }
    return ActivityImageResponse(
        signals=outcome.signals, prompt=outcome.prompt, image=outcome.image
    )

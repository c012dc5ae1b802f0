"""
Test fixtures and configuration for pytest.
"""

import os
import sys
from io import BytesIO
from typing import AsyncGenerator, Callable, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import PipelineOptions
from services.activity_image_pipeline import ActivityImagePipeline
from services.errors import ProviderError
from services.providers.base import ImageResult


def make_image_bytes(fmt: str = "PNG", size: tuple[int, int] = (64, 64)) -> bytes:
    img = Image.new("RGB", size, color="orange")
    buffer = BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


class ScriptedProvider:
    """
    Provider that fails a fixed number of times before succeeding.

    `fail_times=None` means it always fails, including the fallback call.
    """

    name = "scripted"

    def __init__(
        self,
        fail_times: Optional[int] = 0,
        result: Optional[ImageResult] = None,
        error_factory: Callable[[int], Exception] = None,
    ):
        self.fail_times = fail_times
        self.result = result or ImageResult(data=make_image_bytes(), mime_type="image/png")
        self.error_factory = error_factory or (
            lambda n: ProviderError(f"provider failure #{n}", provider=self.name)
        )
        self.prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def generate(self, prompt_text: str) -> ImageResult:
        self.prompts.append(prompt_text)
        if self.fail_times is None or self.calls <= self.fail_times:
            raise self.error_factory(self.calls)
        return self.result


# ============== Test Data Fixtures ==============


@pytest.fixture
def sample_png_bytes() -> bytes:
    """Generate sample PNG image bytes for testing."""
    return make_image_bytes("PNG")


@pytest.fixture
def sample_jpeg_bytes() -> bytes:
    """Generate sample JPEG image bytes for testing."""
    return make_image_bytes("JPEG")


@pytest.fixture
def run_activity() -> dict:
    """A morning 10k run as delivered by the activity API."""
    return {
        "id": 1001,
        "name": "Morning trail loop",
        "description": "Easy spin around the park",
        "type": "Run",
        "sport_type": "Run",
        "distance": 10000.0,
        "moving_time": 3000,
        "elapsed_time": 3100,
        "total_elevation_gain": 120.0,
        "average_heartrate": 150.0,
        "start_date": "2024-05-04T05:12:00Z",
        "start_date_local": "2024-05-04T07:12:00Z",
        "commute": False,
        "gear": {"name": "Nike Pegasus 40", "nickname": "Daily"},
        "tags": [],
    }


@pytest.fixture
def ride_activity() -> dict:
    """An evening ride with power data."""
    return {
        "id": 2002,
        "name": "After work ride",
        "type": "Ride",
        "sport_type": "Ride",
        "distance": 40000.0,
        "moving_time": 4800,
        "total_elevation_gain": 650.0,
        "average_watts": 210.0,
        "start_date_local": "2024-05-04T18:30:00Z",
    }


@pytest.fixture
def pipeline_options() -> PipelineOptions:
    return PipelineOptions()


@pytest.fixture
def scripted_provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest_asyncio.fixture(scope="function")
async def client(scripted_provider: ScriptedProvider) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with the pipeline bound to a scripted provider."""
    from api.dependencies import get_pipeline
    from main import app

    app.dependency_overrides[get_pipeline] = lambda: ActivityImagePipeline(
        scripted_provider, PipelineOptions()
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()

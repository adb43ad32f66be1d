"""Shared pytest fixtures for watermark_relay tests."""

import io

import pytest
from PIL import Image

from watermark_relay.config import (
    PicWishSettings,
    RelaySettings,
    ReplicateSettings,
    SegmindSettings,
)
from watermark_relay.polling import JobPoller
from watermark_relay.types import ImagePayload


def make_png(color: tuple[int, int, int] = (255, 0, 0)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buffer, format="PNG")
    return buffer.getvalue()


class RecordingSleep:
    """Async stand-in for ``asyncio.sleep`` that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def payload(png_bytes: bytes) -> ImagePayload:
    return ImagePayload(png_bytes, "image/png")


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def poller(sleep: RecordingSleep) -> JobPoller:
    return JobPoller(sleep=sleep)


@pytest.fixture
def settings() -> RelaySettings:
    """Provider defaults with short attempt budgets to keep mocks small."""
    return RelaySettings(
        picwish=PicWishSettings(max_poll_attempts=5),
        segmind=SegmindSettings(max_poll_attempts=5),
        replicate=ReplicateSettings(max_poll_attempts=5),
    )

"""Shared fixtures for the studio tests."""

from __future__ import annotations

from io import BytesIO
from typing import Callable

import pytest
import pytest_mock
from PIL import Image

from stylestudio.api.styling_client import StylingServiceClient
from stylestudio.config.settings import Settings
from stylestudio.storage.models import Category, GarmentRecord


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    """Return a factory producing small, distinguishable encoded images."""

    def _make(color: str = "red", image_format: str = "PNG") -> bytes:
        buffer = BytesIO()
        Image.new("RGB", (4, 4), color=color).save(buffer, format=image_format)
        return buffer.getvalue()

    return _make


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key="test-key", base_url="https://styling.test")


@pytest.fixture
def fake_client(mocker: pytest_mock.MockerFixture):
    client = mocker.create_autospec(StylingServiceClient, instance=True)
    client.compose.return_value = "data:image/png;base64,Z2VuZXJhdGVk"
    return client


def garment(garment_id: str, category: Category = Category.TOP, image: str | None = None) -> GarmentRecord:
    return GarmentRecord(
        id=garment_id,
        image=image or f"data:image/png;base64,{garment_id}",
        category=category,
    )

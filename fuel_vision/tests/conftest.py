"""
Shared fixtures for fuel_vision tests.

Provides sample images, provider responses and a fake HTTP session
so the vision client can be exercised without network access.
"""

import io
import json
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Union
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from PIL import Image

from fuel_vision.domain.analysis.models import AnalysisRequest
from fuel_vision.infrastructure.config import VisionSettings


# ═══════════════════════════════════════════════════════════
# IMAGE FIXTURES
# ═══════════════════════════════════════════════════════════


def make_image_bytes(width: int, height: int, fmt: str = "JPEG", mode: str = "RGB") -> bytes:
    """Encode a solid-color image of the given size."""
    color: Any = (200, 120, 40) if mode == "RGB" else (200, 120, 40, 128)
    img = Image.new(mode, (width, height), color)
    output = io.BytesIO()
    img.save(output, format=fmt)
    return output.getvalue()


@pytest.fixture
def image_factory() -> Callable[..., bytes]:
    """Factory for encoded test images."""
    return make_image_bytes


@pytest.fixture
def small_image() -> bytes:
    """JPEG well under the max dimension."""
    return make_image_bytes(320, 240)


@pytest.fixture
def analysis_request(small_image: bytes) -> AnalysisRequest:
    """Request for the small sample image."""
    return AnalysisRequest(image_data=small_image, user_id="user123")


# ═══════════════════════════════════════════════════════════
# PROVIDER RESPONSE FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def model_answer() -> Dict[str, Any]:
    """Well-formed model answer: chicken and rice lunch."""
    return {
        "items": [
            {
                "name": "Grilled Chicken Breast",
                "serving_size": "150g",
                "calories": 248,
                "protein": 46.5,
                "carbs": 0.0,
                "fat": 5.4,
                "fiber": None,
                "sugar": 0.0,
                "sodium": 110.0,
                "saturated_fat": 1.5,
                "cholesterol": 125.0,
            },
            {
                "name": "White Rice",
                "serving_size": "1 cup",
                "calories": 205,
                "protein": 4.3,
                "carbs": 44.5,
                "fat": 0.4,
            },
        ],
        "confidence": 87,
        "suggested_meal_type": "lunch",
        "notes": "Portion sizes estimated from plate diameter",
    }


def make_envelope(content: Any) -> str:
    """Wrap model text in a chat-completion response body."""
    return json.dumps(
        {
            "id": "chatcmpl-123",
            "object": "chat.completion",
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": content},
                    "finish_reason": "stop",
                }
            ],
            "usage": {"prompt_tokens": 900, "completion_tokens": 150, "total_tokens": 1050},
        }
    )


@pytest.fixture
def envelope_factory() -> Callable[[Any], str]:
    """Factory for chat-completion response bodies."""
    return make_envelope


@pytest.fixture
def success_body(model_answer: Dict[str, Any]) -> str:
    """Provider body containing the sample answer."""
    return make_envelope(json.dumps(model_answer))


# ═══════════════════════════════════════════════════════════
# HTTP SESSION FAKES
# ═══════════════════════════════════════════════════════════


def make_response(status: int, body: str = "") -> MagicMock:
    """Async context manager yielding a response with status and text()."""
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=body)

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


Outcome = Union[MagicMock, BaseException]


def make_session(outcomes: List[Outcome]) -> MagicMock:
    """
    Fake aiohttp session whose post() yields outcomes in order.

    Exception instances are raised by post() itself, like connection
    errors raised before a response exists.
    """
    session = MagicMock(spec=aiohttp.ClientSession)
    session.post = MagicMock(side_effect=outcomes)
    return session


@pytest.fixture
def response_factory() -> Callable[..., MagicMock]:
    return make_response


@pytest.fixture
def session_factory() -> Callable[[List[Outcome]], MagicMock]:
    return make_session


@pytest.fixture
def vision_settings() -> VisionSettings:
    """Settings with a test key and the default retry budget."""
    return VisionSettings(api_key="test-key", model="gpt-4o", max_attempts=3)


# ═══════════════════════════════════════════════════════════
# TIME FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def now() -> datetime:
    """Fixed reference time."""
    return datetime(2024, 3, 4, 12, 0, tzinfo=timezone.utc)

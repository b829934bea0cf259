"""
Nutrition vision API client.

Sends one food photo to a chat-completion vision endpoint and parses
the nutrition estimate, retrying rate limits, server errors and
network failures with exponential backoff.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import aiohttp
import structlog

from fuel_vision.domain.analysis.image_processing import prepare_image
from fuel_vision.domain.analysis.models import (
    AnalysisRequest,
    FoodAnalysisResult,
    MealAnalysisResult,
)
from fuel_vision.domain.analysis.prompts import build_vision_request_body
from fuel_vision.domain.analysis.response_parser import parse_analysis_response
from fuel_vision.domain.shared.errors import (
    AnalysisError,
    ApiError,
    ApiKeyMissingError,
    InvalidURLError,
    NetworkError,
    RateLimitedError,
)
from fuel_vision.infrastructure.ai.retry_policy import (
    RetryableError,
    RetryPolicy,
    StatusClass,
    classify,
    retry_with_backoff,
)
from fuel_vision.infrastructure.config import VisionSettings, get_vision_settings

logger = structlog.get_logger(__name__)


class NutritionVisionClient:
    """
    Async client for photo-to-nutrition analysis.

    Features:
    - Image downscaling and JPEG/base64 encoding (off the event loop)
    - Fixed prompt with a mandated JSON answer shape
    - Retry with 2^attempt backoff on 429, 5xx and network errors
    - Fail-fast on missing API key and 401
    - Context manager for session cleanup

    Stateless across calls apart from `is_analyzing` and `last_error`,
    which are exposed for UI purposes only.

    Example:
        >>> async with NutritionVisionClient() as client:
        ...     result = await client.analyze(
        ...         AnalysisRequest(image_data=photo_bytes)
        ...     )
        ...     print(result.total_calories)
    """

    def __init__(
        self,
        settings: Optional[VisionSettings] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """
        Initialize vision client.

        Args:
            settings: Client settings (read from environment if None)
            session: Optional pre-configured session (for testing)
        """
        self.settings = settings or get_vision_settings()
        self.retry_policy = RetryPolicy(max_attempts=self.settings.max_attempts)
        self._session = session
        self._owns_session = session is None

        self.is_analyzing = False
        self.last_error: Optional[AnalysisError] = None

    async def __aenter__(self) -> NutritionVisionClient:
        """Async context manager entry."""
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        if self._session and self._owns_session:
            await self._session.close()
            self._session = None

    async def analyze(
        self,
        request: AnalysisRequest,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> FoodAnalysisResult:
        """
        Analyze a food photo and return estimated nutrition.

        Args:
            request: Image bytes and max dimension
            cancel_event: Set to abort before the next attempt or backoff

        Returns:
            FoodAnalysisResult (items may be empty)

        Raises:
            ApiKeyMissingError: No key configured, or provider answered 401
            InvalidURLError: Endpoint malformed
            ImageProcessingError: Image cannot be decoded/encoded
            RateLimitedError: 429 on every attempt
            ApiError: 5xx on every attempt, or other non-200 status
            NetworkError: Timeout/connection failure on every attempt
            EmptyResponseError: No content in provider response
            ParsingFailedError: Model answer not valid JSON / wrong shape
            AnalysisCancelledError: cancel_event was set
        """
        self.is_analyzing = True
        self.last_error = None
        start_time = time.time()

        try:
            result = await self._analyze(request, cancel_event)
        except AnalysisError as e:
            self.last_error = e
            logger.warning(
                "Food analysis failed",
                error=type(e).__name__,
                user_id=request.user_id,
            )
            raise
        finally:
            self.is_analyzing = False

        logger.info(
            "Food analysis completed",
            items=len(result.items),
            confidence=result.confidence,
            user_id=request.user_id,
            processing_time_ms=int((time.time() - start_time) * 1000),
        )
        return result

    async def analyze_meal(
        self,
        request: AnalysisRequest,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> MealAnalysisResult:
        """Analyze a photo and sum the detected items into meal totals."""
        result = await self.analyze(request, cancel_event)
        return result.to_meal_analysis()

    async def _analyze(
        self,
        request: AnalysisRequest,
        cancel_event: Optional[asyncio.Event],
    ) -> FoodAnalysisResult:
        if not self.settings.api_key:
            raise ApiKeyMissingError()

        self._validate_endpoint()

        # Tighter of the per-request and configured limits
        max_dimension = min(request.max_dimension, self.settings.max_dimension)
        base64_image = await asyncio.to_thread(prepare_image, request.image_data, max_dimension)
        body = build_vision_request_body(
            base64_image, model=self.settings.model, max_tokens=self.settings.max_tokens
        )

        async def attempt(attempt_number: int) -> str:
            return await self._send(body, attempt_number)

        response_text = await retry_with_backoff(attempt, self.retry_policy, cancel_event)
        return parse_analysis_response(response_text)

    def _validate_endpoint(self) -> None:
        parsed = urlparse(self.settings.endpoint)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidURLError(f"Invalid API endpoint: {self.settings.endpoint!r}")

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": "application/json",
        }

    async def _send(self, body: Dict[str, Any], attempt: int) -> str:
        """
        Perform one HTTP attempt.

        Returns:
            Response body text on 200

        Raises:
            RetryableError: 429, 5xx or network failure
            ApiKeyMissingError: 401
            ApiError: Any other non-200 status
        """
        if not self._session:
            raise RuntimeError("Client not initialized. Use async with.")

        try:
            async with self._session.post(
                self.settings.endpoint,
                json=body,
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self.settings.timeout_seconds),
            ) as response:
                status = classify(response.status)
                logger.debug("Vision API response", status=response.status, attempt=attempt + 1)

                if status is StatusClass.SUCCESS:
                    return await response.text()

                if status is StatusClass.RETRYABLE_RATE_LIMIT:
                    raise RetryableError(RateLimitedError())

                if status is StatusClass.RETRYABLE_SERVER_ERROR:
                    raise RetryableError(ApiError(status_code=response.status))

                if status is StatusClass.TERMINAL_AUTH:
                    raise ApiKeyMissingError("API key was rejected by the vision provider")

                raise ApiError(status_code=response.status)

        except asyncio.TimeoutError as e:
            raise RetryableError(NetworkError("Vision API timeout")) from e

        except aiohttp.InvalidURL as e:
            raise InvalidURLError(f"Invalid API endpoint: {e}") from e

        except aiohttp.ClientError as e:
            raise RetryableError(NetworkError(f"Network error: {e}")) from e

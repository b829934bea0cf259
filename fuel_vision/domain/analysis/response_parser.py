"""
Parsing of vision model responses.

Turns the provider's chat-completion envelope into a validated
FoodAnalysisResult.
"""

from __future__ import annotations

import json
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError

from fuel_vision.domain.analysis.models import (
    AnalyzedFoodItem,
    FoodAnalysisResult,
    MealType,
)
from fuel_vision.domain.shared.errors import EmptyResponseError, ParsingFailedError


# ═══════════════════════════════════════════════════════════
# WIRE MODELS
# ═══════════════════════════════════════════════════════════


class _Message(BaseModel):
    content: Optional[str] = None


class _Choice(BaseModel):
    message: _Message


class ChatCompletionEnvelope(BaseModel):
    """Provider response envelope: {"choices": [{"message": {"content": str}}]}."""

    choices: List[_Choice] = Field(default_factory=list)


class ModelAnswer(BaseModel):
    """JSON document the prompt asks the model to return."""

    items: List[AnalyzedFoodItem]
    confidence: int = Field(..., ge=0, le=100)
    suggested_meal_type: Optional[str] = None
    notes: Optional[str] = None


# ═══════════════════════════════════════════════════════════
# PARSING
# ═══════════════════════════════════════════════════════════


def extract_content(response_text: str) -> str:
    """
    Pull the first choice's message text out of the envelope.

    Raises:
        ParsingFailedError: Envelope is not valid JSON / wrong shape
        EmptyResponseError: No choice or empty content
    """
    try:
        envelope = ChatCompletionEnvelope.model_validate_json(response_text)
    except ValidationError as e:
        raise ParsingFailedError(f"Invalid response envelope: {e.error_count()} errors") from e

    if not envelope.choices:
        raise EmptyResponseError()

    content = envelope.choices[0].message.content
    if not content or not content.strip():
        raise EmptyResponseError()

    return content


def strip_code_fences(content: str) -> str:
    """
    Remove Markdown code fences and surrounding whitespace.

    Example:
        >>> strip_code_fences('```json\\n{"items": []}\\n```')
        '{"items": []}'
    """
    cleaned = content.replace("```json", "").replace("```", "")
    return cleaned.strip()


def parse_model_answer(content: str) -> ModelAnswer:
    """
    Decode and validate the model's (possibly fenced) JSON answer.

    Raises:
        ParsingFailedError: Not JSON, or not the expected shape
    """
    cleaned = strip_code_fences(content)

    try:
        data: Any = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ParsingFailedError(f"Invalid JSON in model answer: {e.msg}") from e

    try:
        return ModelAnswer.model_validate(data)
    except ValidationError as e:
        raise ParsingFailedError(f"Unexpected answer shape: {e.error_count()} errors") from e


def to_analysis_result(answer: ModelAnswer, raw_response: str) -> FoodAnalysisResult:
    """Map a validated model answer onto the domain result."""
    return FoodAnalysisResult(
        items=answer.items,
        confidence=answer.confidence / 100.0,
        suggested_meal_type=MealType.from_suggestion(answer.suggested_meal_type),
        notes=answer.notes,
        raw_response=raw_response,
    )


def parse_analysis_response(response_text: str) -> FoodAnalysisResult:
    """
    Parse a raw provider response body into a FoodAnalysisResult.

    Args:
        response_text: HTTP response body

    Returns:
        FoodAnalysisResult with raw_response set to the model text

    Raises:
        EmptyResponseError: No message content
        ParsingFailedError: Malformed envelope or answer
    """
    content = extract_content(response_text)
    answer = parse_model_answer(content)
    return to_analysis_result(answer, raw_response=content)

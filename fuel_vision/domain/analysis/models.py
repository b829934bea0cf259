"""
Domain models for food photo analysis.

Value objects produced by the vision client and consumed by the
calling application for persistence.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import List, Optional, Tuple

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = structlog.get_logger(__name__)

DEFAULT_MAX_DIMENSION = 1024

DEFAULT_SERVING_SIZE = 100.0
DEFAULT_SERVING_UNIT = "g"

_SERVING_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*([^\d\s].*)")


class MealType(str, Enum):
    """Meal slot a logged food belongs to."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def from_suggestion(cls, value: Optional[str]) -> MealType:
        """
        Map a free-text model suggestion onto the closed enum.

        The suggestion is advisory only: anything unrecognized
        becomes SNACK instead of failing the analysis.

        Example:
            >>> MealType.from_suggestion("Lunch")
            <MealType.LUNCH: 'lunch'>
            >>> MealType.from_suggestion("brunch")
            <MealType.SNACK: 'snack'>
        """
        normalized = (value or "").strip().lower()
        try:
            return cls(normalized)
        except ValueError:
            logger.warning("Unrecognized meal type, defaulting to snack", suggestion=value)
            return cls.SNACK


class FoodSource(str, Enum):
    """Origin of a logged food item."""

    AI_SCAN = "ai_scan"


class AnalysisRequest(BaseModel):
    """
    Request for one photo analysis.

    Ephemeral, never persisted.

    Attributes:
        image_data: Raw image bytes (any format Pillow can decode)
        max_dimension: Longest allowed side after downscaling
        user_id: User making request (optional, for logging)

    Example:
        >>> request = AnalysisRequest(image_data=photo_bytes)
        >>> assert request.max_dimension == 1024
    """

    model_config = ConfigDict(frozen=True)

    image_data: bytes = Field(..., description="Raw image bytes")
    max_dimension: int = Field(DEFAULT_MAX_DIMENSION, gt=0, description="Max side in px")
    user_id: Optional[str] = Field(None, description="Requesting user")


def parse_serving_size(serving: str) -> Tuple[float, str]:
    """
    Split serving-size text into amount and unit.

    Unparsable text falls back to 100 g.

    Example:
        >>> parse_serving_size("150g")
        (150.0, 'g')
        >>> parse_serving_size("1.5 cups")
        (1.5, 'cups')
        >>> parse_serving_size("a handful")
        (100.0, 'g')
    """
    match = _SERVING_PATTERN.search(serving or "")
    if match:
        amount = float(match.group(1))
        unit = match.group(2).strip()
        if amount > 0 and unit:
            return amount, unit

    logger.warning("Unparsable serving size, defaulting to 100g", serving=serving)
    return DEFAULT_SERVING_SIZE, DEFAULT_SERVING_UNIT


class FoodItem(BaseModel):
    """
    Food item ready to be logged into a meal.

    Values are per serving.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    name: str
    serving_size: float = Field(..., gt=0)
    serving_unit: str
    number_of_servings: float = Field(1.0, gt=0)
    calories: int = Field(..., ge=0)
    protein: float = Field(..., ge=0)
    carbs: float = Field(..., ge=0)
    fat: float = Field(..., ge=0)
    fiber: Optional[float] = Field(None, ge=0)
    sugar: Optional[float] = Field(None, ge=0)
    sodium: Optional[float] = Field(None, ge=0)
    saturated_fat: Optional[float] = Field(None, ge=0)
    cholesterol: Optional[float] = Field(None, ge=0)
    source: FoodSource = FoodSource.AI_SCAN


class AnalyzedFoodItem(BaseModel):
    """
    Single food item detected in a photo.

    Attributes:
        name: Food name as reported by the model
        serving_size: Free-text serving (e.g. "100g", "1 cup")
        calories: Energy in kcal
        protein: Protein in g
        carbs: Carbohydrates in g
        fat: Total fat in g
        fiber, sugar, saturated_fat: Optional, in g
        sodium, cholesterol: Optional, in mg

    Example:
        >>> item = AnalyzedFoodItem(
        ...     name="Grilled Chicken",
        ...     serving_size="150g",
        ...     calories=248,
        ...     protein=46.5,
        ...     carbs=0.0,
        ...     fat=5.4,
        ... )
        >>> item.to_food_item().serving_unit
        'g'
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    serving_size: str
    calories: int = Field(..., ge=0)
    protein: float = Field(..., ge=0)
    carbs: float = Field(..., ge=0)
    fat: float = Field(..., ge=0)
    fiber: Optional[float] = Field(None, ge=0)
    sugar: Optional[float] = Field(None, ge=0)
    sodium: Optional[float] = Field(None, ge=0)
    saturated_fat: Optional[float] = Field(None, ge=0)
    cholesterol: Optional[float] = Field(None, ge=0)

    @field_validator("name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        """Ensure not just whitespace."""
        if not v.strip():
            raise ValueError("Food name cannot be empty or whitespace")
        return v.strip()

    def to_food_item(self) -> FoodItem:
        """Convert to a loggable FoodItem sourced from an AI scan."""
        size, unit = parse_serving_size(self.serving_size)
        return FoodItem(
            name=self.name,
            serving_size=size,
            serving_unit=unit,
            number_of_servings=1.0,
            calories=self.calories,
            protein=self.protein,
            carbs=self.carbs,
            fat=self.fat,
            fiber=self.fiber,
            sugar=self.sugar,
            sodium=self.sodium,
            saturated_fat=self.saturated_fat,
            cholesterol=self.cholesterol,
            source=FoodSource.AI_SCAN,
        )


class MealAnalysisResult(BaseModel):
    """Analysis result summed up as a whole meal."""

    model_config = ConfigDict(frozen=True)

    items: List[AnalyzedFoodItem] = Field(default_factory=list)
    total_calories: int = Field(0, ge=0)
    total_protein: float = Field(0.0, ge=0)
    total_carbs: float = Field(0.0, ge=0)
    total_fat: float = Field(0.0, ge=0)
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    suggested_meal_type: MealType = MealType.SNACK
    raw_response: str = ""


class FoodAnalysisResult(BaseModel):
    """
    Validated result of one photo analysis.

    An empty item list is a valid result; callers decide whether
    to reject it.

    Attributes:
        items: Detected foods, in model order
        confidence: Model confidence (0.0 - 1.0)
        suggested_meal_type: Advisory meal slot
        notes: Optional model remarks
        raw_response: Unparsed model text, kept for auditing
    """

    model_config = ConfigDict(frozen=True)

    items: List[AnalyzedFoodItem] = Field(default_factory=list)
    confidence: float = Field(..., ge=0.0, le=1.0)
    suggested_meal_type: MealType = MealType.SNACK
    notes: Optional[str] = None
    raw_response: str = ""

    @property
    def total_calories(self) -> int:
        return sum(item.calories for item in self.items)

    @property
    def total_protein(self) -> float:
        return sum(item.protein for item in self.items)

    @property
    def total_carbs(self) -> float:
        return sum(item.carbs for item in self.items)

    @property
    def total_fat(self) -> float:
        return sum(item.fat for item in self.items)

    def to_meal_analysis(self) -> MealAnalysisResult:
        """Aggregate items into meal totals."""
        return MealAnalysisResult(
            items=list(self.items),
            total_calories=self.total_calories,
            total_protein=self.total_protein,
            total_carbs=self.total_carbs,
            total_fat=self.total_fat,
            confidence=self.confidence,
            suggested_meal_type=self.suggested_meal_type,
            raw_response=self.raw_response,
        )

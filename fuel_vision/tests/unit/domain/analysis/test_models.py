"""
Tests for analysis domain models.

Meal type mapping, serving size parsing and result aggregation.
"""

import pytest
from pydantic import ValidationError

from fuel_vision.domain.analysis.models import (
    AnalysisRequest,
    AnalyzedFoodItem,
    FoodAnalysisResult,
    FoodItem,
    FoodSource,
    MealType,
    parse_serving_size,
)


def _item(**overrides: object) -> AnalyzedFoodItem:
    data: dict = {
        "name": "Banana",
        "serving_size": "120g",
        "calories": 105,
        "protein": 1.3,
        "carbs": 27.0,
        "fat": 0.4,
    }
    data.update(overrides)
    return AnalyzedFoodItem(**data)


class TestMealType:
    """Tests for meal type suggestion mapping."""

    @pytest.mark.parametrize(
        "suggestion, expected",
        [
            ("breakfast", MealType.BREAKFAST),
            ("Lunch", MealType.LUNCH),
            ("  DINNER ", MealType.DINNER),
            ("snack", MealType.SNACK),
        ],
    )
    def test_known_values(self, suggestion: str, expected: MealType) -> None:
        assert MealType.from_suggestion(suggestion) == expected

    @pytest.mark.parametrize("suggestion", ["brunch", "", None, "supper"])
    def test_unknown_values_default_to_snack(self, suggestion: object) -> None:
        assert MealType.from_suggestion(suggestion) == MealType.SNACK  # type: ignore[arg-type]

    def test_display_name(self) -> None:
        assert MealType.BREAKFAST.display_name == "Breakfast"


class TestParseServingSize:
    """Tests for serving size text parsing."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("100g", (100.0, "g")),
            ("150 g", (150.0, "g")),
            ("1.5 cups", (1.5, "cups")),
            ("2 slices", (2.0, "slices")),
            ("about 200 ml", (200.0, "ml")),
        ],
    )
    def test_parses_amount_and_unit(self, text: str, expected: tuple) -> None:
        assert parse_serving_size(text) == expected

    @pytest.mark.parametrize("text", ["a handful", "", "200"])
    def test_unparsable_defaults_to_100g(self, text: str) -> None:
        assert parse_serving_size(text) == (100.0, "g")


class TestAnalyzedFoodItem:
    """Tests for AnalyzedFoodItem."""

    def test_to_food_item_marks_ai_scan(self) -> None:
        food = _item(fiber=3.1, sodium=1.0).to_food_item()

        assert food.name == "Banana"
        assert food.serving_size == 120.0
        assert food.serving_unit == "g"
        assert food.number_of_servings == 1.0
        assert food.calories == 105
        assert food.fiber == 3.1
        assert food.sugar is None
        assert food.source == FoodSource.AI_SCAN.value

    def test_food_item_source_defaults_to_ai_scan(self) -> None:
        food = FoodItem(
            name="Apple",
            serving_size=1.0,
            serving_unit="medium",
            calories=95,
            protein=0.5,
            carbs=25.0,
            fat=0.3,
        )

        assert [s.value for s in FoodSource] == ["ai_scan"]
        assert food.source == "ai_scan"

    def test_negative_calories_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _item(calories=-5)

    def test_blank_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _item(name="   ")

    def test_name_is_trimmed(self) -> None:
        assert _item(name="  Apple ").name == "Apple"


class TestFoodAnalysisResult:
    """Tests for result aggregation."""

    def test_empty_items_is_valid(self) -> None:
        result = FoodAnalysisResult(items=[], confidence=0.4)

        assert result.items == []
        assert result.total_calories == 0
        assert result.suggested_meal_type == MealType.SNACK

    def test_totals(self) -> None:
        result = FoodAnalysisResult(
            items=[_item(), _item(name="Toast", calories=80, protein=3.0, carbs=15.0, fat=1.0)],
            confidence=0.9,
        )

        assert result.total_calories == 185
        assert result.total_protein == pytest.approx(4.3)
        assert result.total_carbs == pytest.approx(42.0)
        assert result.total_fat == pytest.approx(1.4)

    def test_to_meal_analysis(self) -> None:
        result = FoodAnalysisResult(
            items=[_item()],
            confidence=0.75,
            suggested_meal_type=MealType.BREAKFAST,
            raw_response='{"items": []}',
        )

        meal = result.to_meal_analysis()

        assert meal.total_calories == 105
        assert meal.confidence == 0.75
        assert meal.suggested_meal_type == MealType.BREAKFAST
        assert meal.raw_response == '{"items": []}'
        assert len(meal.items) == 1

    def test_confidence_out_of_range_rejected(self) -> None:
        with pytest.raises(ValidationError):
            FoodAnalysisResult(items=[], confidence=1.5)


class TestAnalysisRequest:
    """Tests for AnalysisRequest."""

    def test_default_max_dimension(self) -> None:
        assert AnalysisRequest(image_data=b"x").max_dimension == 1024

    def test_non_positive_dimension_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AnalysisRequest(image_data=b"x", max_dimension=0)

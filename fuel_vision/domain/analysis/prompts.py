"""
Vision prompt and request body for food photo analysis.

The instruction text is static. Only the image payload changes per call.
"""

from typing import Any, Dict


# ═══════════════════════════════════════════════════════════
# INSTRUCTION PROMPT (static)
# ═══════════════════════════════════════════════════════════

FOOD_ANALYSIS_PROMPT = """Analyze this food image and identify all visible food items. For each item, estimate:
1. Name of the food item
2. Estimated serving size (in grams or common units)
3. Calories
4. Protein (g)
5. Carbohydrates (g)
6. Fat (g)
7. Fiber (g), sugar (g), sodium (mg), saturated fat (g) and cholesterol (mg) when you can estimate them

Also provide:
- Your confidence level (0-100) in the analysis
- Suggested meal type (breakfast, lunch, dinner, or snack)

Respond in JSON format:
{
    "items": [
        {
            "name": "Food name",
            "serving_size": "100g",
            "calories": 150,
            "protein": 10.0,
            "carbs": 20.0,
            "fat": 5.0,
            "fiber": 2.0,
            "sugar": 4.0,
            "sodium": 120.0,
            "saturated_fat": 1.5,
            "cholesterol": 30.0
        }
    ],
    "confidence": 85,
    "suggested_meal_type": "lunch",
    "notes": "Optional notes about the meal"
}

Use null for any micronutrient you cannot estimate.
Be accurate with portions visible in the image. If unsure, provide conservative estimates."""

IMAGE_DETAIL = "high"


# ═══════════════════════════════════════════════════════════
# REQUEST BUILDERS
# ═══════════════════════════════════════════════════════════


def build_image_data_url(base64_image: str) -> str:
    """Wrap base64 JPEG data in a data URL."""
    return f"data:image/jpeg;base64,{base64_image}"


def build_vision_request_body(base64_image: str, model: str, max_tokens: int) -> Dict[str, Any]:
    """
    Build chat-completion request body with prompt and image.

    Args:
        base64_image: Base64-encoded JPEG
        model: Vision model name
        max_tokens: Completion token cap

    Returns:
        JSON-serializable request body

    Example:
        >>> body = build_vision_request_body("AAAA", "gpt-4o", 1000)
        >>> body["messages"][0]["content"][1]["image_url"]["detail"]
        'high'
    """
    return {
        "model": model,
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": FOOD_ANALYSIS_PROMPT},
                    {
                        "type": "image_url",
                        "image_url": {
                            "url": build_image_data_url(base64_image),
                            "detail": IMAGE_DETAIL,
                        },
                    },
                ],
            }
        ],
        "max_tokens": max_tokens,
    }

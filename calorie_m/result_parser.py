"""Turn the model's free text into an AnalysisResult.

The parser is total: anything that is not a well-formed result yields the
fixed fallback estimate instead of an exception.
"""

import json
import logging
import re

from pydantic import ValidationError as SchemaError

from calorie_m.models import AnalysisResult, Exercise, FoodItem

logger = logging.getLogger(__name__)

_FENCE_JSON = re.compile(r"```json\n?")
_FENCE = re.compile(r"```\n?")


def _reject_constant(name):
    raise ValueError(f"Non-finite number {name} in model answer")


def strip_code_fences(text: str) -> str:
    """Remove every ```json / ``` marker (with its newline) and trim."""
    text = _FENCE_JSON.sub("", text or "")
    text = _FENCE.sub("", text)
    return text.strip()


def fallback_result() -> AnalysisResult:
    """Generic ~300kcal estimate used when the model's answer is unusable."""
    return AnalysisResult(
        foods=[FoodItem(name="인식된 음식", calories=300, portion="1인분")],
        total_calories=300,
        calculation_process=[
            "AI가 이미지를 분석했습니다",
            "일반적인 음식의 평균 칼로리를 계산했습니다",
            "약 300kcal로 추정됩니다",
        ],
        exercises=[
            Exercise(name="빠른 걷기", duration="45분", type="유산소"),
            Exercise(name="달리기", duration="25분", type="유산소"),
        ],
        fallback=True,
    )


def parse_analysis_result(text: str) -> AnalysisResult:
    cleaned = strip_code_fences(text)

    try:
        data = json.loads(cleaned, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        logger.warning("JSON parse failed, using fallback result: %s", e)
        return fallback_result()

    if not isinstance(data, dict):
        logger.warning("Model answer is %s, not an object; using fallback result", type(data).__name__)
        return fallback_result()

    data.pop("fallback", None)
    try:
        result = AnalysisResult.model_validate(data)
    except SchemaError as e:
        logger.warning("Model answer does not match result shape, using fallback: %s", e)
        return fallback_result()

    logger.info(
        "Parsed result with %s foods, total=%skcal",
        len(result.foods),
        result.total_calories,
    )
    return result

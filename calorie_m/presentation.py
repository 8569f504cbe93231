"""Mapping of results and errors onto user-facing output."""

from typing import Any, Dict, Optional

from calorie_m.errors import (
    AnalysisError,
    ConfigurationError,
    NetworkError,
    NoImageError,
    ValidationError,
)
from calorie_m.models import AnalysisResult

VALIDATION_MESSAGES = {
    "file_too_large": "파일 크기가 너무 큽니다. 10MB 이하의 이미지를 선택해주세요.",
    "not_an_image": "이미지 파일만 업로드 가능합니다.",
    "unreadable_image": "이미지를 읽을 수 없습니다.",
}

NO_IMAGE_MESSAGE = "분석할 이미지가 없습니다."
CONFIG_MESSAGE = "API 키가 설정되지 않았습니다. GEMINI_API_KEY 환경 변수를 확인해주세요."
NETWORK_MESSAGE = "API 서버에 연결할 수 없습니다. 네트워크 연결을 확인해주세요."
GENERIC_MESSAGE = "이미지 분석 중 오류가 발생했습니다. 다시 시도해주세요."

CONFIG_HINTS = (
    "해결 방법:\n"
    "1. GEMINI_API_KEY 환경 변수에 API 키를 설정하세요\n"
    "2. 값이 YOUR_API_KEY_HERE 그대로가 아닌지 확인하세요\n"
    "3. 서버를 다시 시작해 보세요"
)


def device_class(user_agent: Optional[str]) -> str:
    return "모바일" if user_agent and "Mobile" in user_agent else "데스크톱"


def render_result(result: AnalysisResult) -> Dict[str, Any]:
    """View model for a result; empty sections are left out entirely."""
    view: Dict[str, Any] = {
        "foods": [
            {
                "label": f"{food.name} {food.portion}".strip(),
                "name": food.name,
                "portion": food.portion,
                "calories": food.calories,
            }
            for food in result.foods
        ],
        "totalCalories": result.total_calories,
        "fallback": result.fallback,
    }
    if result.calculation_process:
        view["calculationProcess"] = list(result.calculation_process)
    if result.exercises:
        view["exercises"] = [
            {"name": ex.name, "duration": ex.duration, "type": ex.type}
            for ex in result.exercises
        ]
    return view


def render_error(
    error: AnalysisError,
    debug: bool = False,
    user_agent: Optional[str] = None,
    credential_present: bool = False,
    model: Optional[str] = None,
) -> str:
    if isinstance(error, ValidationError):
        return VALIDATION_MESSAGES.get(error.reason, VALIDATION_MESSAGES["not_an_image"])
    if isinstance(error, NoImageError):
        return NO_IMAGE_MESSAGE
    if isinstance(error, NetworkError):
        return NETWORK_MESSAGE
    if isinstance(error, ConfigurationError):
        message = f"{CONFIG_MESSAGE}\n\n{CONFIG_HINTS}"
        if debug:
            message += (
                "\n\n[디버그 정보]"
                f"\n- API 키 존재: {credential_present}"
                f"\n- 모델: {model or '-'}"
                f"\n- 사용자 에이전트: {device_class(user_agent)}"
            )
        return message
    return GENERIC_MESSAGE


def to_clipboard_text(result: AnalysisResult) -> str:
    text = "🍽️ 칼로리 분석 결과\n\n"

    if result.foods:
        text += "📋 인식된 음식:\n"
        for food in result.foods:
            text += f"• {food.name} {food.portion}: {food.calories}kcal\n"
        text += "\n"

    text += f"🔥 총 예상 칼로리: {result.total_calories}kcal\n\n"

    if result.exercises:
        text += "🏃‍♀️ 칼로리 소모 운동량:\n"
        for ex in result.exercises:
            text += f"• {ex.name}: {ex.duration}\n"

    return text

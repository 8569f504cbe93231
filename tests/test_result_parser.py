import json

import pytest
from pydantic import ValidationError as SchemaError

from calorie_m.models import AnalysisResult
from calorie_m.result_parser import fallback_result, parse_analysis_result, strip_code_fences

WELL_FORMED = {
    "foods": [
        {"name": "비빔밥", "calories": 560, "portion": "1그릇"},
        {"name": "된장국", "calories": 85.5, "portion": "1공기"},
    ],
    "totalCalories": 645.5,
    "calculationProcess": ["비빔밥 1그릇 약 560kcal", "된장국 1공기 약 85kcal"],
    "exercises": [
        {"name": "자전거 타기", "duration": "1시간", "type": "유산소"},
        {"name": "등산", "duration": "50분", "type": "유산소"},
    ],
}


def test_fenced_kimbap_answer(kimbap_text):
    result = parse_analysis_result(kimbap_text)

    assert not result.fallback
    assert len(result.foods) == 1
    assert (result.foods[0].name, result.foods[0].calories, result.foods[0].portion) == ("김밥", 350, "1줄")
    assert result.total_calories == 350
    assert result.calculation_process == ["표준 김밥 기준"]
    assert result.exercises[0].duration == "40분"


def test_well_formed_answer_is_kept_exactly():
    result = parse_analysis_result(json.dumps(WELL_FORMED, ensure_ascii=False))

    assert not result.fallback
    assert result.to_wire() == WELL_FORMED


def test_plain_fence_without_language_tag():
    text = "```\n" + json.dumps(WELL_FORMED, ensure_ascii=False) + "\n```\n"

    assert parse_analysis_result(text).to_wire() == WELL_FORMED


def test_strip_code_fences():
    assert strip_code_fences('  ```json\n{"a": 1}\n```  ') == '{"a": 1}'
    assert strip_code_fences("no fences") == "no fences"
    assert strip_code_fences("") == ""


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "이 사진은 김밥입니다. 약 350kcal입니다.",
        "```json\n{\"foods\": [\n```",
        "[1, 2, 3]",
        "42",
        "null",
        '"just a string"',
        "{}",
        '{"totalCalories": 300}',
        '{"foods": [], "totalCalories": "300"}',
        '{"foods": [{"name": "밥", "calories": -5}], "totalCalories": 0}',
        '{"foods": [{"name": "밥", "calories": "200"}], "totalCalories": 200}',
        '{"foods": [{"name": "밥", "calories": true}], "totalCalories": 200}',
        '{"foods": [{"calories": 100}], "totalCalories": 100}',
        '{"foods": "김밥", "totalCalories": 350}',
        "[" * 100000,
        '{"foods": [{"name": "x", "calories": NaN}], "totalCalories": Infinity}',
        '{"foods": [{"name": "x", "calories": 10}], "totalCalories": -Infinity}',
        '{"foods": [{"name": "x", "calories": 1e400}], "totalCalories": 10}',
    ],
)
def test_unusable_answers_yield_fallback(text):
    assert parse_analysis_result(text) == fallback_result()


def test_none_input_yields_fallback():
    assert parse_analysis_result(None) == fallback_result()


def test_fallback_is_deterministic():
    first = parse_analysis_result("garbage")
    second = parse_analysis_result("{not json")

    assert first.fallback and second.fallback
    assert first.model_dump_json() == second.model_dump_json()
    assert first.total_calories == 300
    assert [(f.name, f.calories, f.portion) for f in first.foods] == [("인식된 음식", 300, "1인분")]
    assert len(first.calculation_process) == 3
    assert [(e.name, e.duration, e.type) for e in first.exercises] == [
        ("빠른 걷기", "45분", "유산소"),
        ("달리기", "25분", "유산소"),
    ]


def test_missing_optional_fields_default_to_empty():
    result = parse_analysis_result('{"foods": [{"name": "사과", "calories": 95}], "totalCalories": 95}')

    assert not result.fallback
    assert result.foods[0].portion == ""
    assert result.calculation_process == []
    assert result.exercises == []


def test_null_optional_fields_default_to_empty():
    text = json.dumps(
        {
            "foods": [{"name": "사과", "calories": 95, "portion": None}],
            "totalCalories": 95,
            "calculationProcess": None,
            "exercises": None,
        }
    )
    result = parse_analysis_result(text)

    assert not result.fallback
    assert result.foods[0].portion == ""
    assert result.exercises == []


def test_model_cannot_claim_fallback():
    data = dict(WELL_FORMED, fallback=True, confidence=0.9)

    result = parse_analysis_result(json.dumps(data, ensure_ascii=False))

    assert result.fallback is False
    assert result.to_wire() == WELL_FORMED


@pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
def test_result_model_rejects_non_finite_numbers(value):
    with pytest.raises(SchemaError):
        AnalysisResult.model_validate({"foods": [{"name": "x", "calories": value}], "totalCalories": 10})
    with pytest.raises(SchemaError):
        AnalysisResult.model_validate({"foods": [], "totalCalories": value})


def test_float_calories_still_accepted():
    result = parse_analysis_result('{"foods": [{"name": "x", "calories": 12.5}], "totalCalories": 12.5}')

    assert not result.fallback
    assert result.total_calories == 12.5

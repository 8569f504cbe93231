"""Value objects passed between the normalizer, client, parser and presentation."""

from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import AllowInfNan, BaseModel, ConfigDict, Field, Strict, StrictInt, StrictStr, field_validator

# NaN and Infinity are not quantities.
Number = Union[StrictInt, Annotated[float, Strict(), AllowInfNan(False)]]


class AppState(str, Enum):
    IDLE = "idle"
    PREVIEW_READY = "preview_ready"
    LOADING = "loading"
    RESULT_READY = "result_ready"
    ERROR_SHOWN = "error_shown"


class ImagePayload(BaseModel):
    """Compressed, transport-ready image: raw base64 bytes plus MIME type."""

    model_config = ConfigDict(frozen=True)

    data: str
    mime_type: str = "image/jpeg"
    width: Optional[int] = None
    height: Optional[int] = None

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    @classmethod
    def from_data_uri(cls, uri: str) -> "ImagePayload":
        """Strip the ``data:<mime>;base64,`` prefix and keep the payload bytes."""
        header, sep, data = uri.partition(",")
        if not sep or not header.startswith("data:"):
            raise ValueError("Not a data URI")
        mime_type = header[len("data:"):].split(";", 1)[0] or "image/jpeg"
        return cls(data=data, mime_type=mime_type)


class AnalysisRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: str
    payload: ImagePayload

    def to_body(self) -> Dict[str, Any]:
        """generateContent body: one text part, one inline image part."""
        return {
            "contents": [
                {
                    "parts": [
                        {"text": self.prompt},
                        {
                            "inline_data": {
                                "mime_type": self.payload.mime_type,
                                "data": self.payload.data,
                            }
                        },
                    ]
                }
            ]
        }


def _non_negative(value):
    if value < 0:
        raise ValueError("must be non-negative")
    return value


class FoodItem(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: StrictStr
    calories: Number
    portion: StrictStr = ""

    @field_validator("calories")
    @classmethod
    def _check_calories(cls, value):
        return _non_negative(value)

    @field_validator("portion", mode="before")
    @classmethod
    def _default_portion(cls, value):
        return "" if value is None else value


class Exercise(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: StrictStr
    duration: StrictStr = ""
    type: StrictStr = ""

    @field_validator("duration", "type", mode="before")
    @classmethod
    def _default_text(cls, value):
        return "" if value is None else value


class AnalysisResult(BaseModel):
    """Structured estimate. ``fallback`` marks the substituted generic answer."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    foods: List[FoodItem]
    total_calories: Number = Field(alias="totalCalories")
    calculation_process: List[StrictStr] = Field(default_factory=list, alias="calculationProcess")
    exercises: List[Exercise] = Field(default_factory=list)
    fallback: bool = False

    @field_validator("total_calories")
    @classmethod
    def _check_total(cls, value):
        return _non_negative(value)

    @field_validator("calculation_process", "exercises", mode="before")
    @classmethod
    def _default_list(cls, value):
        return [] if value is None else value

    def to_wire(self) -> Dict[str, Any]:
        """Model-shaped dict (camelCase keys), without the fallback tag."""
        return self.model_dump(by_alias=True, exclude={"fallback"})

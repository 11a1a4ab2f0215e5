from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

ImageFormat = Literal["png", "webp", "jpeg"]
WaitUntil = Literal["load", "domcontentloaded", "networkidle0", "networkidle2"]
ColorScheme = Literal["light", "dark"]

LOSSLESS_FORMATS = frozenset({"png"})


class ScreenshotQuery(BaseModel):
    """Raw /screenshot query parameters, validated field by field"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    url: HttpUrl
    full_page: Literal["true", "false"] = Field("false", alias="fullPage")
    quality: int = Field(100, ge=1, le=100)
    format: ImageFormat = Field("png", alias="type")
    width: int = Field(1440, ge=1, le=1920)
    height: int = Field(900, ge=1, le=10000)
    wait_until: WaitUntil = Field("networkidle2", alias="waitUntil")
    wait_for_selector: Optional[str] = Field(None, alias="waitForSelector")
    delay: Optional[int] = Field(None, ge=0, le=30000)
    color_scheme: Optional[ColorScheme] = Field(None, alias="colorScheme")

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_values(cls, data: Any) -> Any:
        # `?fullPage=&quality=` means "use the default"
        if isinstance(data, Mapping):
            return {key: value for key, value in data.items() if value != ""}
        return data

    @field_validator("full_page", mode="before")
    @classmethod
    def _bool_to_literal(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return "true" if value else "false"
        return value

    def to_options(self) -> "CaptureOptions":
        return CaptureOptions(
            url=str(self.url),
            full_page=self.full_page == "true",
            quality=self.quality,
            format=self.format,
            width=self.width,
            height=self.height,
            wait_until=self.wait_until,
            wait_for_selector=self.wait_for_selector,
            delay_ms=self.delay,
            color_scheme=self.color_scheme,
        )


@dataclass(frozen=True)
class CaptureOptions:
    """Trusted, immutable capture parameters for one request"""

    url: str
    full_page: bool = False
    quality: int = 100
    format: ImageFormat = "png"
    width: int = 1440
    height: int = 900
    wait_until: WaitUntil = "networkidle2"
    wait_for_selector: Optional[str] = None
    delay_ms: Optional[int] = None
    color_scheme: Optional[ColorScheme] = None

    @property
    def dimensions(self) -> Dict[str, int]:
        return {"width": self.width, "height": self.height}

    @property
    def is_lossless(self) -> bool:
        return self.format in LOSSLESS_FORMATS


@dataclass(frozen=True)
class CaptureResult:
    data: bytes
    format: ImageFormat

    @property
    def content_type(self) -> str:
        return f"image/{self.format}"


def validate_query(raw: Mapping[str, Any]) -> CaptureOptions:
    """Turn raw query parameters into CaptureOptions.

    Raises ValidationError listing every offending field, keyed by its
    query-string name.
    """
    try:
        query = ScreenshotQuery.model_validate(dict(raw))
    except PydanticValidationError as exc:
        field_errors: Dict[str, List[str]] = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "query"
            field_errors.setdefault(field, []).append(error["msg"])
        raise ValidationError(field_errors) from exc
    return query.to_options()

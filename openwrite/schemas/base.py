import math
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from openwrite.utils.text import is_json_text


class CamelModel(BaseModel):
    """Request body read from camelCase JSON, dumped as snake_case column names."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        extra="ignore",
    )


def require_text(value: Optional[str]) -> str:
    """Trimmed, non-empty text. Used for titles and names."""
    if value is None:
        raise ValueError("must not be null")
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


def not_null(value):
    if value is None:
        raise ValueError("must not be null")
    return value


def json_text(value: Optional[str]) -> Optional[str]:
    if not is_json_text(value):
        raise ValueError("must be a valid JSON string")
    return value


def whole_number(value: Optional[float]) -> Optional[int]:
    """Canvas coordinates arrive as floats; columns store whole pixels."""
    if value is None:
        return None
    if not math.isfinite(value):
        raise ValueError("must be a finite number")
    return int(round(value))

# =============================================================================
# core/schemas.py - Schema Building Blocks
# =============================================================================
# Base classes and reusable field types for endpoint input/output schemas.
#
# - InputModel: what a request may carry. Frozen so handlers cannot mutate
#   it; unknown keys are dropped; defaults fill absent optional fields.
# - OutputModel: the exact response shape. Unknown keys are rejected and
#   handler-returned instances are always re-validated.
# - NumericId: a digit-only string transformed into an int.
#
# Both base classes expose camelCase aliases on the wire while Python code
# keeps snake_case attribute names.
# =============================================================================

import re
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, WithJsonSchema
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

DIGITS_PATTERN = r"^[0-9]+$"
_DIGITS = re.compile(DIGITS_PATTERN)


class InputModel(BaseModel):
    """Base class for endpoint and middleware input schemas."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class OutputModel(BaseModel):
    """Base class for endpoint output schemas."""

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        revalidate_instances="always",
    )


class EmptyInput(InputModel):
    """Input schema for endpoints and middleware that read nothing."""


def _parse_digit_string(value: Any) -> int:
    """Accept only strings made of ASCII digits (surrounding blanks allowed)."""
    if not isinstance(value, str):
        raise PydanticCustomError("numeric_string", "Should be a string of digits")
    stripped = value.strip()
    if not _DIGITS.match(stripped):
        raise PydanticCustomError("numeric_string", "Should be a string of digits")
    return int(stripped, 10)


# Path parameters arrive as strings; "12" becomes 12, "12abc" and "1.5" fail.
NumericId = Annotated[
    int,
    BeforeValidator(_parse_digit_string),
    WithJsonSchema({"type": "string", "pattern": DIGITS_PATTERN}, mode="validation"),
]


def schema_examples(model: type[BaseModel]) -> list[dict[str, Any]]:
    """Return the examples declared in a model's json_schema_extra, if any."""
    extra = model.model_config.get("json_schema_extra")
    if isinstance(extra, dict):
        examples = extra.get("examples")
        if isinstance(examples, list):
            return [example for example in examples if isinstance(example, dict)]
    return []

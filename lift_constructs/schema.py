"""
Configuration validation
Construct blocks are validated by closed pydantic models, errors are reported
as ValidationError naming the field and the violated constraint
"""

from typing import Any, Dict, Optional, Type

import pydantic
from pydantic import BaseModel, ConfigDict

from .errors import ValidationError

# pydantic error type -> constraint name reported to the user
CONSTRAINTS = {
    "extra_forbidden": "additionalProperties",
    "missing": "required",
    "string_too_short": "minLength",
    "greater_than_equal": "minimum",
    "string_pattern_mismatch": "pattern",
    "enum": "enum",
    "literal_error": "const",
    "model_type": "type",
    "dict_type": "type",
    "string_type": "type",
    "int_type": "type",
}


class ConstructConfig(BaseModel):
    """Base of every construct configuration: immutable, unknown fields rejected"""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=False)


def validate(configuration: Any, model: Type[ConstructConfig], path: Optional[str] = None) -> Dict[str, Any]:
    """
    Validate a configuration block against a construct configuration model

    Args:
        configuration: Raw configuration block
        model: Closed configuration model of the construct
        path: Name of the block, used as prefix in error messages

    Returns:
        A new dict keyed like the configuration block, defaults filled in

    Raises:
        ValidationError: naming the first offending field and the violated constraint
    """
    if configuration is None:
        configuration = {}
    try:
        validated = model.model_validate(configuration)
    except pydantic.ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"])
        if path:
            field = f"{path}.{field}" if field else path
        raise ValidationError(
            field or "configuration",
            CONSTRAINTS.get(error["type"], error["type"]),
            error["msg"],
        ) from None
    return validated.model_dump(mode="json", by_alias=True, exclude_none=True)

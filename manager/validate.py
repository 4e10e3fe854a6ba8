r"""Precondition checks for keys, type identifiers and parents.

String arguments are checked with a pydantic `TypeAdapter` built over a
strict, length-constrained `str`. Pydantic failures are converted into the
package's own `ValidationError` whose ``context["rule"]`` names the rule
that failed:

  - ``not_null``: the value is ``None``.
  - ``is_string``: the value is not a ``str``.
  - ``not_empty``: the value is ``""``.
  - ``max_length``: the value is longer than allowed.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict

from pydantic import StringConstraints, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from typing_extensions import Annotated

from .utils import ValidationError, get_type_name

logger = logging.getLogger(__name__)

__all__ = [
    "KEY_MAX_LENGTH",
    "TYPE_NAME_MAX_LENGTH",
    "validate_string",
    "validate_not_none",
]

# Default limits for child keys and factory type identifiers.
KEY_MAX_LENGTH = 256
TYPE_NAME_MAX_LENGTH = 2048

_PYDANTIC_RULES: Dict[str, str] = {
    "string_type": "is_string",
    "string_too_short": "not_empty",
    "string_too_long": "max_length",
}


@lru_cache(maxsize=16, typed=False)
def _string_adapter(max_length: int) -> TypeAdapter:
    """Return a cached adapter for non-empty strings of at most `max_length`."""
    return TypeAdapter(
        Annotated[
            str,
            StringConstraints(strict=True, min_length=1, max_length=max_length),
        ]
    )


def validate_not_none(value: Any, *, name: str) -> Any:
    """Return `value` unchanged, or raise if it is ``None``."""
    if value is None:
        raise ValidationError(
            f"'{name}' must not be None",
            [f"Pass a value for '{name}'"],
            {"argument": name, "rule": "not_null"},
        )
    return value


def validate_string(value: Any, *, name: str, max_length: int) -> str:
    """Validate a non-empty string of at most `max_length` characters.

    Args:
        value: The candidate value.
        name: Argument name used in the error message.
        max_length: Inclusive upper bound on the number of characters.

    Returns:
        str: The validated string.

    Raises:
        ValidationError: naming the failed rule in ``context["rule"]``.
    """
    validate_not_none(value, name=name)
    try:
        return _string_adapter(max_length).validate_python(value)
    except PydanticValidationError as e:
        error_type = e.errors()[0]["type"] if e.error_count() else "string_type"
        rule = _PYDANTIC_RULES.get(error_type, error_type)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Rejected %s (rule=%s, pydantic=%s)", name, rule, error_type)

        context: Dict[str, Any] = {"argument": name, "rule": rule}
        if rule == "is_string":
            context.update(
                {"expected_type": "str", "actual_type": get_type_name(type(value))}
            )
            suggestions = [f"Pass '{name}' as a str"]
        elif rule == "not_empty":
            suggestions = [f"'{name}' needs at least one character"]
        else:
            context.update({"length": len(value), "max_length": max_length})
            suggestions = [f"Shorten '{name}' to {max_length} characters or fewer"]
        raise ValidationError(
            f"Invalid '{name}': failed rule '{rule}'", suggestions, context
        ) from e

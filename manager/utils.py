"""Exceptions and small helpers shared across the manager package.

Every error carries structured metadata so that failures can be logged and
rendered without parsing the message text.

Exceptions:
    ManagerError: Base class carrying `suggestions` and `context` metadata.
    ValidationError: Raised when a key, type identifier or parent is malformed.
    ConformanceError: Raised when an object does not satisfy `Manageable`.
    DuplicateKeyError: Raised when a key is already bound.
    KeyNotFoundError: Raised when a lookup by key must succeed but did not.
    InstantiationError: Raised when a child could not be constructed.
    LifecycleError: Raised on an illegal state transition.
    ClosedError: Raised when a closed manager or child is used.
    InvariantError: Raised when an internal consistency check fails.

Helpers:
    get_type_name(cls, qualname=False): Return a human-readable type name.
    get_canonical_name(cls): Return the ``module.QualName`` identifier of a class.
"""

from inspect import isclass
from typing import Any, Dict, List, Optional

__all__ = [
    "ManagerError",
    "ValidationError",
    "ConformanceError",
    "DuplicateKeyError",
    "KeyNotFoundError",
    "InstantiationError",
    "LifecycleError",
    "ClosedError",
    "InvariantError",
    "get_type_name",
    "get_canonical_name",
]


class ManagerError(Exception):
    """Base exception with structured context.

    Attributes:
        message: Human-readable error text.
        suggestions: List of short, imperative hints for remediation.
        context: Free-form key/value details safe to log and render.
    """

    def __init__(
        self,
        message: str,
        suggestions: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.suggestions = suggestions or []
        self.context = context or {}
        super().__init__(self._build_enhanced_message())

    def _build_enhanced_message(self) -> str:
        """Embed key context and suggestions into the exception string."""
        lines = [self.message]

        if self.context:
            if "expected_type" in self.context and "actual_type" in self.context:
                lines.append(f"  Expected: {self.context['expected_type']}")
                lines.append(f"  Actual: {self.context['actual_type']}")
            if "rule" in self.context:
                lines.append(f"  Rule: {self.context['rule']}")
            if "key" in self.context:
                lines.append(f"  Key: {self.context['key']}")

        if self.suggestions:
            lines.append("  Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"    • {suggestion}")

        return "\n".join(lines)


class ValidationError(ManagerError):
    """Raised when an argument fails a precondition (null, empty, too long)."""


class ConformanceError(ValidationError):
    """Raised when an object does not conform to the `Manageable` protocol."""


class DuplicateKeyError(ManagerError):
    """Raised when a key is already bound to a child or constructor."""


class KeyNotFoundError(ManagerError, KeyError):
    """Raised when a key that must be bound is not."""

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the whole message
        return self.args[0] if self.args else self.message


class InstantiationError(ManagerError):
    """Raised when a child could not be constructed; the cause is chained."""


class LifecycleError(ManagerError):
    """Raised when a child or manager is used in the wrong lifecycle state."""


class ClosedError(LifecycleError):
    """Raised when a closed manager or child is used."""


class InvariantError(ManagerError):
    """Raised when an internal consistency check fails."""


def get_type_name(cls: type, qualname: bool = False) -> str:
    """Return a readable name for a type.

    Args:
        cls: The class or type object.
        qualname: If True, return the qualified name when available.

    Returns:
        The type's `__qualname__`, `__name__`, or a string fallback.
    """
    if not isclass(cls):
        raise ValidationError(f"{cls} is not a class")
    if qualname and hasattr(cls, "__qualname__"):
        return getattr(cls, "__qualname__")
    elif hasattr(cls, "__name__"):
        return getattr(cls, "__name__")
    else:
        return str(cls)


def get_canonical_name(cls: type) -> str:
    """Return the stable ``module.QualName`` identifier of a class."""
    return f"{cls.__module__}.{get_type_name(cls, qualname=True)}"

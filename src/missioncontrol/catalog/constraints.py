"""Validation rules attached to launch parameters.

A constraint is a deep-copyable, structurally comparable rule checked
against a parameter's value once it has been converted to the parameter's
type. Constraints are serialized with a ``type`` discriminator:

    {"type": "range", "min": 0, "max": 10, "maxExclusive": true}
    {"type": "list", "choices": ["low", "high"]}
    {"type": "regularExpression", "regularExpression": "^[a-z]+$"}
    {"type": "confirmation", "confirmationType": "warning", "title": "..."}
"""

from __future__ import annotations

import copy
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Type

from .conversion import to_string


class Constraint(ABC):
    """Base class for launch parameter constraints."""

    kind: ClassVar[str] = ""

    @abstractmethod
    def validate(self, value: Any) -> bool:
        """Return True if ``value`` satisfies the constraint."""

    def deep_clone(self) -> "Constraint":
        """Return a completely independent copy of this constraint."""
        return copy.deepcopy(self)

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a dictionary including the ``type`` discriminator."""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Constraint":
        """Create the concrete constraint named by ``data["type"]``.

        Raises:
            ValueError: The constraint type is missing or unknown.
        """
        kind = data.get("type")
        constraint_class = CONSTRAINT_TYPES.get(kind)
        if constraint_class is None:
            raise ValueError(
                f"Unknown constraint type '{kind}'. Valid: {sorted(CONSTRAINT_TYPES)}"
            )
        return constraint_class._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Constraint":
        raise NotImplementedError


@dataclass
class RangeConstraint(Constraint):
    """Numeric value must fall within [min, max] (bounds optionally exclusive)."""

    kind: ClassVar[str] = "range"

    min: Optional[float] = None
    max: Optional[float] = None
    min_exclusive: bool = False
    max_exclusive: bool = False

    def validate(self, value: Any) -> bool:
        if isinstance(value, bool):
            return False
        try:
            number = float(value)
        except (TypeError, ValueError):
            return False
        if self.min is not None:
            if number < self.min or (self.min_exclusive and number == self.min):
                return False
        if self.max is not None:
            if number > self.max or (self.max_exclusive and number == self.max):
                return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.kind}
        if self.min is not None:
            data["min"] = self.min
        if self.max is not None:
            data["max"] = self.max
        data["minExclusive"] = self.min_exclusive
        data["maxExclusive"] = self.max_exclusive
        return data

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "RangeConstraint":
        return cls(
            min=_number_or_none(data.get("min")),
            max=_number_or_none(data.get("max")),
            min_exclusive=bool(data.get("minExclusive", False)),
            max_exclusive=bool(data.get("maxExclusive", False)),
        )


@dataclass
class ListConstraint(Constraint):
    """Value's text must be one of a fixed list of choices."""

    kind: ClassVar[str] = "list"

    choices: List[str] = field(default_factory=list)

    def validate(self, value: Any) -> bool:
        result = to_string(value)
        return result.ok and result.value in self.choices

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "choices": list(self.choices)}

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "ListConstraint":
        return cls(choices=[str(c) for c in data.get("choices", [])])


@dataclass
class RegularExpressionConstraint(Constraint):
    """Value's text must match a regular expression."""

    kind: ClassVar[str] = "regularExpression"

    regular_expression: str = ".*"
    error_message: str = ""

    def validate(self, value: Any) -> bool:
        result = to_string(value)
        if not result.ok:
            return False
        return re.search(self.regular_expression, result.value) is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "regularExpression": self.regular_expression,
            "errorMessage": self.error_message,
        }

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "RegularExpressionConstraint":
        pattern = data.get("regularExpression", ".*")
        try:
            re.compile(pattern)
        except re.error as e:
            raise ValueError(f"Invalid regular expression '{pattern}': {e}") from e
        return cls(
            regular_expression=pattern,
            error_message=data.get("errorMessage", ""),
        )


class ConfirmationType(str, Enum):
    """Severity of a confirmation shown to capcom."""

    INFO = "info"
    WARNING = "warning"


@dataclass
class ConfirmationConstraint(Constraint):
    """Asks capcom to confirm the value before launch; accepts any value."""

    kind: ClassVar[str] = "confirmation"

    confirmation_type: ConfirmationType = ConfirmationType.INFO
    title: str = ""
    full_text: str = ""
    confirm_text: str = ""
    abort_text: str = ""

    def validate(self, value: Any) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "confirmationType": self.confirmation_type.value,
            "title": self.title,
            "fullText": self.full_text,
            "confirmText": self.confirm_text,
            "abortText": self.abort_text,
        }

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "ConfirmationConstraint":
        return cls(
            confirmation_type=ConfirmationType(
                str(data.get("confirmationType", "info")).lower()
            ),
            title=data.get("title", ""),
            full_text=data.get("fullText", ""),
            confirm_text=data.get("confirmText", ""),
            abort_text=data.get("abortText", ""),
        )


def _number_or_none(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


CONSTRAINT_TYPES: Dict[str, Type[Constraint]] = {
    RangeConstraint.kind: RangeConstraint,
    ListConstraint.kind: ListConstraint,
    RegularExpressionConstraint.kind: RegularExpressionConstraint,
    ConfirmationConstraint.kind: ConfirmationConstraint,
}

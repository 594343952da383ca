"""Launch parameters: typed, validated knobs that customize a launch.

A :class:`LaunchParameter` keeps its ``default_value`` consistent with its
``type`` at all times. Assigning a new type converts the current default
value first and only commits both once the conversion succeeded, so a failed
assignment leaves the parameter exactly as it was.

Example usage:

    >>> from missioncontrol.catalog import LaunchParameter, LaunchParameterType
    >>>
    >>> param = LaunchParameter(id="frameRate", type=LaunchParameterType.INTEGER)
    >>> param.default_value = 60.0
    >>> param.default_value
    60
    >>> param.type = LaunchParameterType.STRING
    >>> param.default_value
    '60'
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

import numpy as np

from .constraints import Constraint
from .conversion import LaunchParameterType, convert


class LaunchParameter:
    """Parameter customizing the launch of a launchable.

    Attributes:
        name: Name displayed to the user.
        group: Display group; nested groups are separated by slashes.
        id: Case sensitive identifier, unique among the parameters of its
            launchable. Used as key in the launch data.
        description: Detailed description (tooltip text).
        constraint: Optional validation rule for the value.
        to_be_revised_by_capcom: Value must be revised by capcom before launch.
        hidden: Parameter is not displayed to the user.
    """

    def __init__(
        self,
        name: str = "",
        group: str = "",
        id: str = "",
        description: str = "",
        type: Optional[LaunchParameterType] = None,
        constraint: Optional[Constraint] = None,
        default_value: Any = None,
        to_be_revised_by_capcom: bool = False,
        hidden: bool = False,
    ) -> None:
        self.name = name
        self.group = group
        self.id = id
        self.description = description
        self.constraint = constraint
        self.to_be_revised_by_capcom = to_be_revised_by_capcom
        self.hidden = hidden

        self._type: Optional[LaunchParameterType] = None
        self._default_value: Any = None
        if type is not None:
            self.type = LaunchParameterType.parse(type)
        self.default_value = default_value

    @property
    def type(self) -> Optional[LaunchParameterType]:
        """Type of the value, None to accept anything.

        Raises:
            FormatError: Current default value is not in an appropriate format.
            InvalidCastError: Current default value cannot be converted.
            OverflowError: Current default value does not fit the new type.
        """
        return self._type

    @type.setter
    def type(self, value: Optional[LaunchParameterType]) -> None:
        if value is not None:
            value = LaunchParameterType.parse(value)
        converted = convert(value, self._default_value)
        self._default_value = converted
        self._type = value

    @property
    def default_value(self) -> Any:
        """Default value, always represented as ``type`` dictates."""
        return self._default_value

    @default_value.setter
    def default_value(self, value: Any) -> None:
        self._default_value = convert(self._type, value)

    def deep_clone(self) -> "LaunchParameter":
        """Return a complete independent copy (no data shared with the original)."""
        clone = LaunchParameter(
            name=self.name,
            group=self.group,
            id=self.id,
            description=self.description,
            to_be_revised_by_capcom=self.to_be_revised_by_capcom,
            hidden=self.hidden,
        )
        clone._type = self._type
        clone._default_value = self._default_value
        clone.constraint = self.constraint.deep_clone() if self.constraint is not None else None
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LaunchParameter):
            return NotImplemented
        if (self.constraint is None) != (other.constraint is None):
            return False
        return (
            self.name == other.name
            and self.group == other.group
            and self.id == other.id
            and self.description == other.description
            and self._type == other._type
            and (self.constraint is None or self.constraint == other.constraint)
            and _values_equal(self._default_value, other._default_value)
            and self.to_be_revised_by_capcom == other.to_be_revised_by_capcom
            and self.hidden == other.hidden
        )

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        type_name = self._type.value if self._type is not None else None
        return (
            f"LaunchParameter(id={self.id!r}, type={type_name!r}, "
            f"default_value={self._default_value!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the manifest's camelCase keys."""
        data: Dict[str, Any] = {
            "name": self.name,
            "group": self.group,
            "id": self.id,
            "description": self.description,
            "type": self._type.value if self._type is not None else None,
            "defaultValue": to_json_value(self._default_value),
            "toBeRevisedByCapcom": self.to_be_revised_by_capcom,
            "hidden": self.hidden,
        }
        if self.constraint is not None:
            data["constraint"] = self.constraint.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LaunchParameter":
        """Create a parameter from manifest data.

        Raises:
            ValueError: Unknown type or constraint name.
            ConversionError: ``defaultValue`` does not match ``type``.
        """
        constraint_data = data.get("constraint")
        return cls(
            name=data.get("name", ""),
            group=data.get("group", ""),
            id=data.get("id", ""),
            description=data.get("description", ""),
            type=data.get("type"),
            constraint=Constraint.from_dict(constraint_data) if constraint_data else None,
            default_value=data.get("defaultValue"),
            to_be_revised_by_capcom=bool(data.get("toBeRevisedByCapcom", False)),
            hidden=bool(data.get("hidden", False)),
        )


def _values_equal(a: Any, b: Any) -> bool:
    # bool == 1 is True in Python; equality must also compare the representation
    if type(a) is not type(b):
        return False
    return bool(a == b)


def to_json_value(value: Any) -> Any:
    """Convert numpy scalars and untyped ``Decimal`` tokens to JSON types."""
    if isinstance(value, dict):
        return {k: to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    if isinstance(value, np.floating):
        return float(value)
    if isinstance(value, Decimal):
        if value.is_finite() and value == value.to_integral_value():
            return int(value)
        return float(value)
    return value

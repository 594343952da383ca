"""Launch catalog manifests.

A launch catalog lists the payloads (sets of files) and the launchables
(things mission control can launch) of a launch package. Every launch
parameter declared by a launchable is validated when the manifest is loaded;
a value incompatible with its declared type or constraint is rejected there
and then rather than at launch.

Example usage:

    >>> from missioncontrol.catalog.manifest import load_catalog, resolve_launch_data
    >>>
    >>> catalog = load_catalog("LaunchCatalog.json")
    >>> launchable = catalog.get_launchable("Cluster Node")
    >>> launch_data = resolve_launch_data(
    ...     launchable.launch_pad_parameters, {"nodeRole": "emitter"}
    ... )
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml

from ..errors import ConversionError, ValidationError
from .parameters import LaunchParameter, to_json_value
from .conversion import convert

logger = logging.getLogger(__name__)


# =============================================================================
# Catalog Data Classes
# =============================================================================


@dataclass
class PayloadFile:
    """A file that is part of a payload."""
    path: str
    md5: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "md5": self.md5}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PayloadFile":
        return cls(path=data["path"], md5=data.get("md5", ""))


@dataclass
class Payload:
    """Named set of files to prepare on a launchpad before launch."""
    name: str
    files: List[PayloadFile] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "files": [f.to_dict() for f in self.files]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Payload":
        return cls(
            name=data["name"],
            files=[PayloadFile.from_dict(f) for f in data.get("files", [])],
        )


@dataclass
class Launchable:
    """Something that can be launched on launchpads of a launch complex.

    Parameters are split by scope: global (whole mission), per launch
    complex, and per launchpad. Ids must be unique across the three lists.
    """
    name: str
    type: str = ""
    data: Any = None
    global_parameters: List[LaunchParameter] = field(default_factory=list)
    launch_complex_parameters: List[LaunchParameter] = field(default_factory=list)
    launch_pad_parameters: List[LaunchParameter] = field(default_factory=list)
    pre_launch_path: str = ""
    launch_path: str = ""
    payloads: List[str] = field(default_factory=list)

    def all_parameters(self) -> List[LaunchParameter]:
        return [
            *self.global_parameters,
            *self.launch_complex_parameters,
            *self.launch_pad_parameters,
        ]

    def get_parameter(self, parameter_id: str) -> Optional[LaunchParameter]:
        for parameter in self.all_parameters():
            if parameter.id == parameter_id:
                return parameter
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "data": to_json_value(self.data),
            "globalParameters": [p.to_dict() for p in self.global_parameters],
            "launchComplexParameters": [p.to_dict() for p in self.launch_complex_parameters],
            "launchPadParameters": [p.to_dict() for p in self.launch_pad_parameters],
            "preLaunchPath": self.pre_launch_path,
            "launchPath": self.launch_path,
            "payloads": list(self.payloads),
        }


@dataclass
class Catalog:
    """Content of a launch catalog manifest."""
    payloads: List[Payload] = field(default_factory=list)
    launchables: List[Launchable] = field(default_factory=list)

    def get_launchable(self, name: str) -> Optional[Launchable]:
        for launchable in self.launchables:
            if launchable.name == name:
                return launchable
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "payloads": [p.to_dict() for p in self.payloads],
            "launchables": [l.to_dict() for l in self.launchables],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Catalog":
        """Create and validate a catalog.

        Raises:
            ValidationError: A payload, launchable or parameter is invalid.
        """
        if not isinstance(data, dict):
            raise ValidationError("Launch catalog must be an object")

        try:
            payloads = [Payload.from_dict(p) for p in data.get("payloads", [])]
        except (KeyError, TypeError) as e:
            raise ValidationError(f"Invalid payload definition: {e}", cause=e) from e

        launchables = [_parse_launchable(l) for l in data.get("launchables", [])]
        catalog = cls(payloads=payloads, launchables=launchables)
        catalog.validate()
        return catalog

    def validate(self) -> None:
        """Check cross references and parameter values.

        Raises:
            ValidationError: First problem found.
        """
        payload_names = {p.name for p in self.payloads}
        launchable_names = set()
        for launchable in self.launchables:
            if launchable.name in launchable_names:
                raise ValidationError(
                    f"Duplicate launchable name '{launchable.name}'",
                    launchable=launchable.name,
                )
            launchable_names.add(launchable.name)

            for payload_name in launchable.payloads:
                if payload_name not in payload_names:
                    raise ValidationError(
                        f"Launchable '{launchable.name}' references unknown payload "
                        f"'{payload_name}'",
                        launchable=launchable.name,
                        expected=sorted(payload_names),
                        actual=payload_name,
                    )

            seen_ids = set()
            for parameter in launchable.all_parameters():
                if parameter.id in seen_ids:
                    raise ValidationError(
                        f"Duplicate parameter id '{parameter.id}'",
                        launchable=launchable.name,
                        parameter_id=parameter.id,
                    )
                seen_ids.add(parameter.id)
                _check_constraint(parameter, parameter.default_value, launchable.name)


# =============================================================================
# Parsing Helpers
# =============================================================================


def _parse_parameters(
    items: Iterable[Dict[str, Any]], launchable_name: str
) -> List[LaunchParameter]:
    parameters = []
    for item in items:
        parameter_id = item.get("id") if isinstance(item, dict) else None
        try:
            parameters.append(LaunchParameter.from_dict(item))
        except ConversionError as e:
            raise ValidationError(
                f"Default value of parameter '{parameter_id}' does not match its "
                f"type: {e.message}",
                launchable=launchable_name,
                parameter_id=parameter_id,
                expected=item.get("type"),
                actual=repr(item.get("defaultValue")),
                cause=e,
            ) from e
        except (ValueError, AttributeError, TypeError) as e:
            raise ValidationError(
                f"Invalid parameter '{parameter_id}': {e}",
                launchable=launchable_name,
                parameter_id=parameter_id,
                cause=e,
            ) from e
    return parameters


def _parse_launchable(data: Dict[str, Any]) -> Launchable:
    if not isinstance(data, dict) or "name" not in data:
        raise ValidationError("Launchable definition must be an object with a name")
    name = data["name"]
    return Launchable(
        name=name,
        type=data.get("type", ""),
        data=data.get("data"),
        global_parameters=_parse_parameters(data.get("globalParameters", []), name),
        launch_complex_parameters=_parse_parameters(
            data.get("launchComplexParameters", []), name
        ),
        launch_pad_parameters=_parse_parameters(data.get("launchPadParameters", []), name),
        pre_launch_path=data.get("preLaunchPath", ""),
        launch_path=data.get("launchPath", ""),
        payloads=list(data.get("payloads", [])),
    )


def _check_constraint(
    parameter: LaunchParameter, value: Any, launchable_name: Optional[str] = None
) -> None:
    if value is None or parameter.constraint is None:
        return
    if not parameter.constraint.validate(value):
        message = getattr(parameter.constraint, "error_message", "") or (
            f"Value {value!r} of parameter '{parameter.id}' violates its constraint"
        )
        raise ValidationError(
            message,
            launchable=launchable_name,
            parameter_id=parameter.id,
            expected=parameter.constraint.to_dict(),
            actual=repr(value),
        )


def _coerce(parameter: LaunchParameter, value: Any) -> Any:
    try:
        converted = convert(parameter.type, value)
    except ConversionError as e:
        raise ValidationError(
            f"Value for parameter '{parameter.id}' does not match its type: {e.message}",
            parameter_id=parameter.id,
            expected=parameter.type.value if parameter.type else None,
            actual=repr(value),
            cause=e,
        ) from e
    _check_constraint(parameter, converted)
    return converted


# =============================================================================
# Launch Data
# =============================================================================


def resolve_launch_data(
    parameters: List[LaunchParameter],
    values: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Compute the effective value of every parameter for a launch.

    Args:
        parameters: Parameters of the launchable (for one scope or all).
        values: Explicit values keyed by parameter id. Missing ids take the
            parameter's default value.

    Returns:
        Mapping of parameter id to JSON serializable value (the content of
        the LAUNCH_DATA environment variable).

    Raises:
        ValidationError: Unknown parameter id or a value failing its type or
            constraint.
    """
    values = values or {}
    by_id = {p.id: p for p in parameters}
    unknown = set(values) - set(by_id)
    if unknown:
        raise ValidationError(
            f"Values provided for unknown parameters: {sorted(unknown)}",
            expected=sorted(by_id),
            actual=sorted(unknown),
        )

    launch_data = {}
    for parameter in parameters:
        if parameter.id in values:
            value = _coerce(parameter, values[parameter.id])
        else:
            value = parameter.default_value
        launch_data[parameter.id] = to_json_value(value)
    return launch_data


def parameters_to_revise(parameters: List[LaunchParameter]) -> List[LaunchParameter]:
    """Parameters capcom must revise before the launch can proceed."""
    return [p for p in parameters if p.to_be_revised_by_capcom]


def apply_capcom_revisions(
    parameters: List[LaunchParameter],
    values: Dict[str, Any],
    revisions: Dict[str, Any],
) -> Dict[str, Any]:
    """Apply values revised by capcom on top of the user provided values.

    Only parameters flagged ``to_be_revised_by_capcom`` may be revised. The
    input ``values`` mapping is not modified.

    Raises:
        ValidationError: Revision of an unknown or unflagged parameter, or a
            revised value failing its type or constraint.
    """
    by_id = {p.id: p for p in parameters}
    revised = dict(values)
    for parameter_id, value in revisions.items():
        parameter = by_id.get(parameter_id)
        if parameter is None:
            raise ValidationError(
                f"Capcom revised unknown parameter '{parameter_id}'",
                parameter_id=parameter_id,
            )
        if not parameter.to_be_revised_by_capcom:
            raise ValidationError(
                f"Parameter '{parameter_id}' is not to be revised by capcom",
                parameter_id=parameter_id,
            )
        revised[parameter_id] = _coerce(parameter, value)
        logger.debug(f"Capcom revised {parameter_id} to {revised[parameter_id]!r}")
    return revised


# =============================================================================
# Loading / Saving
# =============================================================================


def load_catalog(path: Union[str, Path]) -> Catalog:
    """Load and validate a launch catalog from a JSON or YAML file.

    JSON numbers are read as untyped ``Decimal`` tokens so that their
    conversion follows the rules for untyped sources.

    Raises:
        FileNotFoundError: File does not exist.
        ValidationError: Content is malformed or invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Launch catalog not found: {path}")

    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    try:
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text, parse_float=Decimal, parse_int=Decimal)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValidationError(f"Malformed launch catalog {path}: {e}", cause=e) from e

    catalog = Catalog.from_dict(data)
    logger.info(
        f"Loaded launch catalog {path.name}: {len(catalog.launchables)} launchables, "
        f"{len(catalog.payloads)} payloads"
    )
    return catalog


def save_catalog(catalog: Catalog, path: Union[str, Path]) -> None:
    """Save a launch catalog as JSON (or YAML for .yaml/.yml)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = catalog.to_dict()
    with open(path, "w", encoding="utf-8") as f:
        if path.suffix.lower() in (".yaml", ".yml"):
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(data, f, indent=2)
    logger.info(f"Launch catalog saved to {path}")

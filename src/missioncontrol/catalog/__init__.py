"""Launch catalog: typed launch parameters and the manifests declaring them."""

from .conversion import (
    LaunchParameterType,
    ConversionResult,
    try_convert,
    convert,
    matches_type,
)
from .constraints import (
    Constraint,
    RangeConstraint,
    ListConstraint,
    RegularExpressionConstraint,
    ConfirmationConstraint,
    ConfirmationType,
)
from .parameters import LaunchParameter
from .manifest import (
    Catalog,
    Launchable,
    Payload,
    PayloadFile,
    load_catalog,
    save_catalog,
    resolve_launch_data,
    apply_capcom_revisions,
    parameters_to_revise,
)

__all__ = [
    "LaunchParameterType",
    "ConversionResult",
    "try_convert",
    "convert",
    "matches_type",
    "Constraint",
    "RangeConstraint",
    "ListConstraint",
    "RegularExpressionConstraint",
    "ConfirmationConstraint",
    "ConfirmationType",
    "LaunchParameter",
    "Catalog",
    "Launchable",
    "Payload",
    "PayloadFile",
    "load_catalog",
    "save_catalog",
    "resolve_launch_data",
    "apply_capcom_revisions",
    "parameters_to_revise",
]

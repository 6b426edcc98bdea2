"""
AI Action definitions as fetched from the Management API.

Parsed once into frozen dataclasses; the raw JSON is kept alongside for
callers that need fields this module does not model.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


VARIABLE_TYPES = (
    "StandardInput",
    "Text",
    "FreeFormInput",
    "StringOptionsList",
    "Reference",
    "MediaReference",
    "Locale",
    "SmartContext",
    "ResourceLink",
)

REFERENCE_ENTITY_TYPES = {
    "Reference": "Entry",
    "MediaReference": "Asset",
    "ResourceLink": "ResourceLink",
}

# Only these get a <name>_path companion parameter in the tool schema
PATH_VARIABLE_TYPES = ("Reference", "MediaReference")

OUTPUT_FORMATS = ("Markdown", "RichText", "PlainText")
DEFAULT_OUTPUT_FORMAT = "Markdown"

TERMINAL_STATUSES = frozenset({"COMPLETED", "FAILED", "CANCELLED"})


@dataclass(frozen=True)
class Variable:
    id: str
    type: str
    name: Optional[str] = None
    description: Optional[str] = None
    configuration: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Variable":
        return cls(
            id=str(data["id"]),
            type=str(data.get("type") or "Text"),
            name=data.get("name") or None,
            description=data.get("description") or None,
            configuration=data.get("configuration") or None,
        )

    @property
    def option_values(self) -> List[str]:
        """Allowed values for a StringOptionsList variable (empty otherwise)."""
        if self.type != "StringOptionsList" or not self.configuration:
            return []
        return [str(value) for value in self.configuration.get("values") or []]


@dataclass(frozen=True)
class AiAction:
    id: str
    name: str
    description: str = ""
    template: str = ""
    variables: Tuple[Variable, ...] = ()
    conditions: Tuple[Dict[str, Any], ...] = ()
    model_type: Optional[str] = None
    model_temperature: Optional[float] = None
    version: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AiAction":
        """Parse a CMA AI Action payload (sys/name/instruction/configuration)."""
        sys_data = data.get("sys") or {}
        instruction = data.get("instruction") or {}
        configuration = data.get("configuration") or {}
        return cls(
            id=sys_data["id"],
            name=data.get("name") or sys_data["id"],
            description=data.get("description") or "",
            template=instruction.get("template") or "",
            variables=tuple(Variable.from_dict(v) for v in instruction.get("variables") or []),
            conditions=tuple(instruction.get("conditions") or []),
            model_type=configuration.get("modelType"),
            model_temperature=configuration.get("modelTemperature"),
            version=sys_data.get("version"),
            raw=data,
        )

    @property
    def has_references(self) -> bool:
        return any(v.type in PATH_VARIABLE_TYPES for v in self.variables)


# ============================================================================
# Invocation variable shapes
# ============================================================================

@dataclass(frozen=True)
class SimpleVariables:
    """Plain string values keyed by variable ID."""

    values: Dict[str, str]

    def to_payload(self) -> List[Dict[str, Any]]:
        return [{"id": var_id, "value": value} for var_id, value in self.values.items()]


@dataclass(frozen=True)
class RawVariables:
    """Pre-built [{id, value}] items, passed to the API as-is."""

    items: List[Dict[str, Any]]

    def to_payload(self) -> List[Dict[str, Any]]:
        return list(self.items)


InvocationVariables = Union[SimpleVariables, RawVariables]


def invocation_variables_from_config(config_data: Dict[str, Any]) -> InvocationVariables:
    """Pick the variable shape from a tool config.

    Raises:
        ValueError: If both or neither of 'variables' and 'rawVariables' are given
    """
    has_simple = config_data.get("variables") is not None
    has_raw = config_data.get("rawVariables") is not None
    if has_simple and has_raw:
        raise ValueError("Provide either 'variables' or 'rawVariables', not both")
    if has_raw:
        raw = config_data["rawVariables"]
        if not isinstance(raw, list):
            raise ValueError("'rawVariables' must be a list of {id, value} objects")
        return RawVariables(items=raw)
    if has_simple:
        simple = config_data["variables"]
        if not isinstance(simple, dict):
            raise ValueError("'variables' must be an object mapping variable IDs to values")
        return SimpleVariables(values={str(k): v for k, v in simple.items()})
    raise ValueError("Either 'variables' or 'rawVariables' is required")

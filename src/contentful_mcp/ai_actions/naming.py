"""
Friendly parameter names for AI Action variables.

Variable IDs assigned by Contentful are opaque ("87abcde"), so each tool
exposes snake_case names derived from the variable's declared name, or from
its type when it has none. build_action_mapping() makes the names unique
within one action and records how to turn them back into variable IDs.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Optional

from .models import AiAction, PATH_VARIABLE_TYPES, Variable


PATH_SUFFIX = "_path"

# Keys every generated tool accepts besides the action's own variables
RESERVED_KEYS = frozenset({"outputFormat", "waitForCompletion", "spaceId", "environmentId"})

TYPE_FALLBACK_NAMES = {
    "StandardInput": "input_text",
    "MediaReference": "media_asset_id",
    "Reference": "entry_reference_id",
    "Locale": "target_locale",
    "FreeFormInput": "free_text_input",
    "SmartContext": "context_info",
}

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")
_UNDERSCORES = re.compile(r"_+")


def normalize_name(name: str) -> str:
    """'  Brand Guidelines! ' -> 'brand_guidelines'. May return ''."""
    result = name.strip().lower()
    result = _PUNCTUATION.sub("", result)
    result = _WHITESPACE.sub("_", result)
    result = _UNDERSCORES.sub("_", result)
    return result.strip("_")


def friendly_name(variable: Variable) -> str:
    """Derive the parameter name for one variable, ignoring its siblings."""
    if variable.name:
        normalized = normalize_name(variable.name)
        if normalized:
            return normalized
    fallback = TYPE_FALLBACK_NAMES.get(variable.type)
    if fallback:
        return fallback
    return f"{variable.type.lower()}_{variable.id[:5]}"


@dataclass(frozen=True)
class ActionMapping:
    """Name tables for one action.

    names:      variable id -> friendly name, in declaration order
    parameters: friendly name -> variable id
    paths:      '<friendly>_path' -> '<variable id>_path'
    """

    action_id: str
    names: Dict[str, str] = field(default_factory=dict)
    parameters: Dict[str, str] = field(default_factory=dict)
    paths: Dict[str, str] = field(default_factory=dict)

    def friendly_name_for(self, variable_id: str) -> Optional[str]:
        return self.names.get(variable_id)

    def path_name_for(self, variable_id: str) -> Optional[str]:
        name = self.names.get(variable_id)
        if name is None:
            return None
        path_name = name + PATH_SUFFIX
        return path_name if path_name in self.paths else None


def build_action_mapping(action: AiAction) -> ActionMapping:
    """Assign every variable a distinct friendly name.

    Names that clash with an earlier variable, an earlier '_path' companion
    or a reserved key get a numeric suffix (_2, _3, ...) in declaration order.
    """
    taken = set(RESERVED_KEYS)
    names: Dict[str, str] = {}
    parameters: Dict[str, str] = {}
    paths: Dict[str, str] = {}

    for variable in action.variables:
        needs_path = variable.type in PATH_VARIABLE_TYPES
        base = friendly_name(variable)
        candidate = base
        suffix = 1
        while candidate in taken or (needs_path and candidate + PATH_SUFFIX in taken):
            suffix += 1
            candidate = f"{base}_{suffix}"

        taken.add(candidate)
        names[variable.id] = candidate
        parameters[candidate] = variable.id
        if needs_path:
            taken.add(candidate + PATH_SUFFIX)
            paths[candidate + PATH_SUFFIX] = variable.id + PATH_SUFFIX

    return ActionMapping(action_id=action.id, names=names, parameters=parameters, paths=paths)

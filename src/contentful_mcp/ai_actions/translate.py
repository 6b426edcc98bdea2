"""
Friendly-name input -> invocation payload.

translate_parameters() renames keys back to variable IDs; map_to_invocation()
turns the renamed input into the [{id, value}] list the invoke endpoint wants.
"""

import logging
from typing import Any, Dict, Optional

from .errors import MissingVariableError
from .models import AiAction, DEFAULT_OUTPUT_FORMAT, REFERENCE_ENTITY_TYPES
from .naming import ActionMapping, PATH_SUFFIX, RESERVED_KEYS


logger = logging.getLogger(__name__)


def translate_parameters(mapping: Optional[ActionMapping],
                         friendly_input: Dict[str, Any]) -> Dict[str, Any]:
    """Rename friendly keys to variable IDs. Never mutates friendly_input.

    Without a mapping the input is returned as a copy. Keys that match no
    mapping entry are passed through and logged.
    """
    if mapping is None:
        if friendly_input:
            logger.warning(
                "No parameter mapping available; passing %d key(s) through unchanged",
                len(friendly_input),
            )
        return dict(friendly_input)

    translated: Dict[str, Any] = {}
    for key, value in friendly_input.items():
        if key in RESERVED_KEYS:
            translated[key] = value
        elif key.endswith(PATH_SUFFIX) and key in mapping.paths:
            translated[mapping.paths[key]] = value
        elif key in mapping.parameters:
            translated[mapping.parameters[key]] = value
        else:
            logger.warning(
                "AI Action %s: unmapped parameter '%s' passed through unchanged",
                mapping.action_id, key,
            )
            translated[key] = value
    return translated


def map_to_invocation(action: AiAction, translated: Dict[str, Any],
                      mapping: Optional[ActionMapping] = None) -> Dict[str, Any]:
    """Build {outputFormat, variables} in the action's declared variable order.

    Raises:
        MissingVariableError: If any declared variable has no value
    """
    variables = []
    for variable in action.variables:
        if translated.get(variable.id) is None:
            friendly = mapping.friendly_name_for(variable.id) if mapping else None
            raise MissingVariableError(variable.id, friendly)
        value = translated[variable.id]

        entity_type = REFERENCE_ENTITY_TYPES.get(variable.type)
        if entity_type:
            reference: Dict[str, Any] = {"entityType": entity_type, "entityId": value}
            path = translated.get(variable.id + PATH_SUFFIX)
            if path:
                reference["entityPath"] = path
            variables.append({"id": variable.id, "value": reference})
        else:
            variables.append({"id": variable.id, "value": value})

    return {
        "outputFormat": translated.get("outputFormat") or DEFAULT_OUTPUT_FORMAT,
        "variables": variables,
    }

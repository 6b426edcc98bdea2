"""
Tool descriptors for AI Actions.

Every variable becomes a string property keyed by its friendly name;
Reference and MediaReference variables also get a '<name>_path' property
naming the field of the referenced entity to read.
"""

from dataclasses import dataclass
from typing import Any, Dict, List

from .models import AiAction, DEFAULT_OUTPUT_FORMAT, OUTPUT_FORMATS, PATH_VARIABLE_TYPES, Variable
from .naming import ActionMapping, PATH_SUFFIX


TOOL_PREFIX = "ai_action_"

GUIDANCE_PREAMBLE = (
    "IMPORTANT: This is a pre-configured AI Action defined in Contentful. "
    "When the task matches its purpose, use this tool instead of generating the "
    "content yourself so the space's configured instructions and model are applied."
)

PATH_NOTE = (
    "Reference parameters take the ID of an entry or asset in the space. Use the "
    "matching '_path' parameter to choose which field is read, e.g. 'fields.title.en-US'."
)

NOT_APPLIED_NOTE = (
    "Note: the generated content is returned to you and is NOT applied to any "
    "entry or field automatically. Update the entry yourself if the result should be saved."
)

_TYPE_HINTS = {
    "Text": "Free text input",
    "StandardInput": "The main text input for this action",
    "FreeFormInput": "Free-form text, any content accepted",
    "Locale": "Locale code, e.g. 'en-US'",
    "SmartContext": "Context information, usually free text",
    "ResourceLink": "ID of the linked resource",
}

SPACE_ID_PROPERTY = {
    "type": "string",
    "description": (
        "The ID of the Contentful space. This must be the space's ID, not its name, "
        "ask for this ID if it's unclear."
    ),
}

ENVIRONMENT_ID_PROPERTY = {
    "type": "string",
    "description": "The ID of the environment within the space, by default this will be called master",
    "default": "master",
}


def tool_name_for(action_id: str) -> str:
    return f"{TOOL_PREFIX}{action_id}"


def action_id_from_tool_name(tool_name: str) -> str:
    if tool_name.startswith(TOOL_PREFIX):
        return tool_name[len(TOOL_PREFIX):]
    return tool_name


@dataclass(frozen=True)
class ToolSchema:
    name: str
    description: str
    input_schema: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description, "inputSchema": self.input_schema}


def _variable_description(variable: Variable) -> str:
    label = variable.description or variable.name or variable.id
    parts = [f"{label} (type: {variable.type})"]
    if variable.type == "StringOptionsList":
        values = variable.option_values
        if values:
            parts.append(f"Allowed values: {', '.join(map(str, values))}")
    elif variable.type == "MediaReference":
        parts.append("Provide the ID of an asset in this space")
    elif variable.type == "Reference":
        parts.append("Provide the ID of an entry in this space")
    elif variable.type in _TYPE_HINTS:
        parts.append(_TYPE_HINTS[variable.type])
    return ". ".join(parts)


def _variable_property(variable: Variable) -> Dict[str, Any]:
    prop: Dict[str, Any] = {"type": "string", "description": _variable_description(variable)}
    values = variable.option_values
    if values:
        prop["enum"] = values
    return prop


def _path_property(variable: Variable, friendly: str) -> Dict[str, Any]:
    kind = "asset" if variable.type == "MediaReference" else "entry"
    return {
        "type": "string",
        "description": (
            f"Field path to read from the {kind} given in '{friendly}', "
            f"e.g. 'fields.title.en-US'"
        ),
    }


def _tool_description(action: AiAction) -> str:
    sections = [GUIDANCE_PREAMBLE]
    header = f"AI Action: {action.name}"
    if action.description:
        header += f"\n{action.description}"
    sections.append(header)
    if action.has_references:
        sections.append(PATH_NOTE)
    if action.model_type:
        model = f"Model: {action.model_type}"
        if action.model_temperature is not None:
            model += f", temperature: {action.model_temperature}"
        sections.append(model)
    sections.append(NOT_APPLIED_NOTE)
    return "\n\n".join(sections)


def build_tool_schema(action: AiAction, mapping: ActionMapping,
                      include_space_id: bool = False,
                      include_environment_id: bool = False) -> ToolSchema:
    """Build the descriptor for one action from an already-built mapping.

    include_space_id / include_environment_id add those parameters when the
    deployment does not fix them; spaceId then becomes required.
    """
    properties: Dict[str, Any] = {}
    required: List[str] = []

    for variable in action.variables:
        friendly = mapping.names[variable.id]
        properties[friendly] = _variable_property(variable)
        required.append(friendly)
        if variable.type in PATH_VARIABLE_TYPES:
            properties[friendly + PATH_SUFFIX] = _path_property(variable, friendly)

    properties["outputFormat"] = {
        "type": "string",
        "enum": list(OUTPUT_FORMATS),
        "default": DEFAULT_OUTPUT_FORMAT,
        "description": "Format for the output content",
    }
    properties["waitForCompletion"] = {
        "type": "boolean",
        "default": True,
        "description": "Whether to wait for the AI Action to complete",
    }
    required.append("outputFormat")

    if include_space_id:
        properties["spaceId"] = dict(SPACE_ID_PROPERTY)
        required.append("spaceId")
    if include_environment_id:
        properties["environmentId"] = dict(ENVIRONMENT_ID_PROPERTY)

    return ToolSchema(
        name=tool_name_for(action.id),
        description=_tool_description(action),
        input_schema={"type": "object", "properties": properties, "required": required},
    )

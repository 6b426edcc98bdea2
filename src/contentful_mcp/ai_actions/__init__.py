"""Dynamic MCP tools generated from Contentful AI Actions."""

from .dispatch import AiActionToolset
from .errors import (
    AiActionError,
    MissingVariableError,
    PollingCancelledError,
    PollingExhaustedError,
    UnknownActionError,
)
from .models import AiAction, RawVariables, SimpleVariables, Variable
from .naming import ActionMapping, build_action_mapping, friendly_name
from .registry import ActionRegistry
from .translate import map_to_invocation, translate_parameters

__all__ = [
    "ActionMapping",
    "ActionRegistry",
    "AiAction",
    "AiActionError",
    "AiActionToolset",
    "MissingVariableError",
    "PollingCancelledError",
    "PollingExhaustedError",
    "RawVariables",
    "SimpleVariables",
    "UnknownActionError",
    "Variable",
    "build_action_mapping",
    "friendly_name",
    "map_to_invocation",
    "translate_parameters",
]

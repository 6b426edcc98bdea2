"""
AI Action Management MCP Tools for Contentful.

Provides 9 AI Action actions:
- list: List AI Actions in a space (optional status filter)
- get: Get single AI Action by ID
- create: Create AI Action (name, description, instruction, configuration)
- update: Update AI Action (unspecified parts are kept)
- delete: Delete AI Action (permanent)
- publish: Publish the current version
- unpublish: Unpublish AI Action
- invoke: Invoke by ID with 'variables' (ID -> value) or 'rawVariables' ([{id, value}])
- get_invocation: Fetch an invocation result by ID

Published AI Actions are also exposed as their own ai_action_<id> tools;
see contentful_mcp.ai_actions.
"""

from typing import Any, Dict, Optional

from ..ai_actions.dispatch import format_invocation_result
from ..ai_actions.models import DEFAULT_OUTPUT_FORMAT, OUTPUT_FORMATS, invocation_variables_from_config
from ..ai_actions.polling import invoke_and_wait
from ..client import ContentfulClient
from ..config import Settings
from ._shared import require, resolve_space_env, route_action, version_of


VALID_STATUS_FILTERS = ("all", "published")
ACTION_DATA_KEYS = ("name", "description", "instruction", "configuration", "testCases")


def _ai_action_id(kwargs: Dict[str, Any]) -> str:
    (ai_action_id,) = require(kwargs, "resource_id")
    return ai_action_id


# ============================================================================
# Actions
# ============================================================================

async def _action_list(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    status = kwargs.get("status")
    if status and status not in VALID_STATUS_FILTERS:
        raise ValueError(
            f"Invalid status: '{status}'. Valid values: {', '.join(VALID_STATUS_FILTERS)}"
        )
    result = await client.list_ai_actions(
        space_id, environment_id,
        limit=int(kwargs.get("limit") or 100),
        skip=int(kwargs.get("skip") or 0),
        status=status,
    )
    return {"_success": True, **result}


async def _action_get(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    ai_action = await client.get_ai_action(space_id, environment_id, _ai_action_id(kwargs))
    return {"_success": True, "ai_action": ai_action}


async def _action_create(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, _ = resolve_space_env(settings, kwargs)
    name, instruction, configuration = require(kwargs, "name", "instruction", "configuration")
    action_data = {
        "name": name,
        "description": kwargs.get("description") or "",
        "instruction": instruction,
        "configuration": configuration,
    }
    if kwargs.get("testCases") is not None:
        action_data["testCases"] = kwargs["testCases"]
    ai_action = await client.create_ai_action(space_id, action_data)
    return {"_success": True, "ai_action": ai_action}


async def _action_update(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    ai_action_id = _ai_action_id(kwargs)

    current = await client.get_ai_action(space_id, environment_id, ai_action_id)
    action_data = {
        key: kwargs[key] if kwargs.get(key) is not None else current.get(key)
        for key in ACTION_DATA_KEYS
    }
    action_data = {k: v for k, v in action_data.items() if v is not None}
    ai_action = await client.update_ai_action(space_id, ai_action_id, version_of(current), action_data)
    return {"_success": True, "ai_action": ai_action}


async def _action_delete(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    ai_action_id = _ai_action_id(kwargs)
    current = await client.get_ai_action(space_id, environment_id, ai_action_id)
    await client.delete_ai_action(space_id, ai_action_id, version_of(current))
    return {"_success": True, "message": f"AI Action {ai_action_id} deleted successfully"}


async def _action_publish(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    ai_action_id = _ai_action_id(kwargs)
    current = await client.get_ai_action(space_id, environment_id, ai_action_id)
    ai_action = await client.publish_ai_action(space_id, ai_action_id, version_of(current))
    return {"_success": True, "ai_action": ai_action}


async def _action_unpublish(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, _ = resolve_space_env(settings, kwargs)
    ai_action_id = _ai_action_id(kwargs)
    ai_action = await client.unpublish_ai_action(space_id, ai_action_id)
    return {"_success": True, "ai_action": ai_action}


async def _action_invoke(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    ai_action_id = _ai_action_id(kwargs)
    variables = invocation_variables_from_config(kwargs)

    output_format = kwargs.get("outputFormat") or DEFAULT_OUTPUT_FORMAT
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(
            f"Invalid outputFormat: '{output_format}'. Valid values: {', '.join(OUTPUT_FORMATS)}"
        )
    payload = {"outputFormat": output_format, "variables": variables.to_payload()}

    toolset = kwargs.get("toolset")
    result = await invoke_and_wait(
        client,
        space_id,
        environment_id,
        ai_action_id,
        payload,
        wait_for_completion=kwargs.get("waitForCompletion", True) is not False,
        max_attempts=settings.poll_max_attempts,
        initial_delay=settings.poll_initial_delay,
        max_delay=settings.poll_max_delay,
        cancel_event=toolset.cancel_event if toolset is not None else None,
    )
    return format_invocation_result(ai_action_id, result)


async def _action_get_invocation(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    ai_action_id = _ai_action_id(kwargs)
    (invocation_id,) = require(kwargs, "invocation_id")
    result = await client.get_ai_action_invocation(space_id, environment_id, ai_action_id, invocation_id)
    return format_invocation_result(ai_action_id, result)


# ============================================================================
# Action Router
# ============================================================================

# Actions that change which AI Actions are published
CATALOG_CHANGING_ACTIONS = ("publish", "unpublish", "delete", "update")


async def manage_ai_actions_action(
    client: ContentfulClient,
    settings: Settings,
    action: str,
    config_data: Optional[Dict[str, Any]] = None,
    **kwargs,
) -> Dict[str, Any]:
    """
    Route to the appropriate AI Action handler.

    Args:
        client: Contentful Management API client
        settings: Deployment settings
        action: One of: list, get, create, update, delete, publish, unpublish, invoke, get_invocation
        config_data: Action-specific configuration dict
        **kwargs: Additional parameters (resource_id, space_id, environment_id, toolset)
    """
    actions = {
        "list": _action_list,
        "get": _action_get,
        "create": _action_create,
        "update": _action_update,
        "delete": _action_delete,
        "publish": _action_publish,
        "unpublish": _action_unpublish,
        "invoke": _action_invoke,
        "get_invocation": _action_get_invocation,
    }
    return await route_action(actions, action, client, settings, config_data, **kwargs)

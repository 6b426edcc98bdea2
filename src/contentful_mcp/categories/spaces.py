"""
Space & Environment MCP Tools for Contentful.

Provides 5 actions:
- list_spaces: List spaces the token can access
- get_space: Get single space by ID
- list_environments: List environments of a space
- create_environment: Create environment with a given ID and name
- delete_environment: Delete environment (permanent)
"""

from typing import Any, Dict, Optional

from ..client import ContentfulClient
from ..config import Settings
from ._shared import require, route_action


def _space_id(settings: Settings, kwargs: Dict[str, Any]) -> str:
    space_id = kwargs.get("space_id") or kwargs.get("resource_id") or settings.space_id
    if not space_id:
        raise ValueError("space_id is required (or set SPACE_ID)")
    return space_id


async def _action_list_spaces(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    result = await client.list_spaces()
    return {"_success": True, **result}


async def _action_get_space(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space = await client.get_space(_space_id(settings, kwargs))
    return {"_success": True, "space": space}


async def _action_list_environments(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    result = await client.list_environments(_space_id(settings, kwargs))
    return {"_success": True, **result}


async def _action_create_environment(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id = kwargs.get("space_id") or settings.space_id
    if not space_id:
        raise ValueError("space_id is required (or set SPACE_ID)")
    environment_id, name = require(kwargs, "environment_id", "name")
    environment = await client.create_environment(space_id, environment_id, name)
    return {"_success": True, "environment": environment}


async def _action_delete_environment(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id = kwargs.get("space_id") or settings.space_id
    if not space_id:
        raise ValueError("space_id is required (or set SPACE_ID)")
    (environment_id,) = require(kwargs, "environment_id")
    await client.delete_environment(space_id, environment_id)
    return {"_success": True, "message": f"Environment {environment_id} deleted successfully"}


# ============================================================================
# Action Router
# ============================================================================

async def manage_spaces_action(
    client: ContentfulClient,
    settings: Settings,
    action: str,
    config_data: Optional[Dict[str, Any]] = None,
    **kwargs,
) -> Dict[str, Any]:
    """
    Route to the appropriate space/environment action handler.

    Args:
        client: Contentful Management API client
        settings: Deployment settings
        action: One of: list_spaces, get_space, list_environments, create_environment, delete_environment
        config_data: Action-specific configuration dict
        **kwargs: Additional parameters (space_id, environment_id)
    """
    actions = {
        "list_spaces": _action_list_spaces,
        "get_space": _action_get_space,
        "list_environments": _action_list_environments,
        "create_environment": _action_create_environment,
        "delete_environment": _action_delete_environment,
    }
    return await route_action(actions, action, client, settings, config_data, **kwargs)

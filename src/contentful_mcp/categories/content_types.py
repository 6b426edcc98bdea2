"""
Content Type Management MCP Tools for Contentful.

Provides 6 content type actions:
- list: List content types in the environment
- get: Get single content type by ID
- create: Create content type (ID derived from the name in camelCase)
- update: Update content type; fields are merged by field ID
- delete: Delete content type (must be unpublished and unused)
- publish: Publish the current version
"""

from typing import Any, Dict, Optional

from ..client import ContentfulClient
from ..config import Settings
from ._shared import merge_lists, require, resolve_space_env, route_action, version_of


def to_camel_case(name: str) -> str:
    """'Blog Post' -> 'blogPost'."""
    words = name.split()
    return "".join(
        word.lower() if index == 0 else word[:1].upper() + word[1:].lower()
        for index, word in enumerate(words)
    )


# ============================================================================
# Actions
# ============================================================================

async def _action_list(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    result = await client.list_content_types(space_id, environment_id)
    return {"_success": True, **result}


async def _action_get(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    (content_type_id,) = require(kwargs, "resource_id")
    content_type = await client.get_content_type(space_id, environment_id, content_type_id)
    return {"_success": True, "content_type": content_type}


async def _action_create(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    name, fields = require(kwargs, "name", "fields")
    if not isinstance(fields, list):
        raise ValueError("'fields' must be a list of field definitions")

    content_type_id = kwargs.get("resource_id") or to_camel_case(name)
    body = {
        "name": name,
        "fields": fields,
        "description": kwargs.get("description") or "",
        "displayField": kwargs.get("display_field") or (fields[0].get("id") if fields else ""),
    }
    content_type = await client.put_content_type(space_id, environment_id, content_type_id, body)
    return {"_success": True, "content_type": content_type}


async def _action_update(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    (content_type_id,) = require(kwargs, "resource_id")

    current = await client.get_content_type(space_id, environment_id, content_type_id)
    fields = current.get("fields") or []
    if kwargs.get("fields"):
        fields = merge_lists(fields, kwargs["fields"])

    body: Dict[str, Any] = {
        "name": kwargs.get("name") or current.get("name"),
        "fields": fields,
        "description": kwargs.get("description") or current.get("description") or "",
        "displayField": kwargs.get("display_field") or current.get("displayField") or "",
    }
    if current.get("metadata"):
        body["metadata"] = current["metadata"]

    content_type = await client.put_content_type(
        space_id, environment_id, content_type_id, body, version=version_of(current)
    )
    return {"_success": True, "content_type": content_type}


async def _action_delete(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    (content_type_id,) = require(kwargs, "resource_id")
    await client.delete_content_type(space_id, environment_id, content_type_id)
    return {"_success": True, "message": f"Content type {content_type_id} deleted successfully"}


async def _action_publish(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    (content_type_id,) = require(kwargs, "resource_id")
    current = await client.get_content_type(space_id, environment_id, content_type_id)
    await client.publish_content_type(space_id, environment_id, content_type_id, version_of(current))
    return {"_success": True, "message": f"Content type {content_type_id} published successfully"}


# ============================================================================
# Action Router
# ============================================================================

async def manage_content_types_action(
    client: ContentfulClient,
    settings: Settings,
    action: str,
    config_data: Optional[Dict[str, Any]] = None,
    **kwargs,
) -> Dict[str, Any]:
    """
    Route to the appropriate content type action handler.

    Args:
        client: Contentful Management API client
        settings: Deployment settings
        action: One of: list, get, create, update, delete, publish
        config_data: Action-specific configuration dict
        **kwargs: Additional parameters (resource_id, space_id, environment_id)
    """
    actions = {
        "list": _action_list,
        "get": _action_get,
        "create": _action_create,
        "update": _action_update,
        "delete": _action_delete,
        "publish": _action_publish,
    }
    return await route_action(actions, action, client, settings, config_data, **kwargs)

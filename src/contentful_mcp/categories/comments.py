"""
Entry Comment MCP Tools for Contentful.

Provides 5 comment actions, all scoped to one entry (resource_id):
- list: List comments, filtered by status, paginated locally
- create: Add a comment, optionally as a reply to another comment
- get: Get single comment
- update: Change body and/or status
- delete: Delete comment
"""

from typing import Any, Dict, Optional

from ..client import ContentfulClient
from ..config import Settings
from ._shared import require, resolve_space_env, route_action, version_of


VALID_STATUSES = ("active", "resolved", "all")
VALID_BODY_FORMATS = ("plain-text", "rich-text")


def _body_format(kwargs: Dict[str, Any]) -> str:
    body_format = kwargs.get("body_format") or "plain-text"
    if body_format not in VALID_BODY_FORMATS:
        raise ValueError(
            f"Invalid body_format: '{body_format}'. Valid values: {', '.join(VALID_BODY_FORMATS)}"
        )
    return body_format


async def _action_list(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    (entry_id,) = require(kwargs, "resource_id")
    status = kwargs.get("status") or "active"
    if status not in VALID_STATUSES:
        raise ValueError(f"Invalid status: '{status}'. Valid values: {', '.join(VALID_STATUSES)}")
    limit = int(kwargs.get("limit") or 10)
    skip = int(kwargs.get("skip") or 0)

    comments = await client.list_comments(
        space_id, environment_id, entry_id,
        body_format=_body_format(kwargs),
        status=None if status == "all" else status,
    )

    # The comments endpoint has no server-side paging
    items = comments.get("items") or []
    total = comments.get("total", len(items))
    end = skip + limit
    page = items[skip:end]
    result: Dict[str, Any] = {
        "_success": True,
        "items": page,
        "total": total,
        "showing": len(page),
        "remaining": max(0, total - end),
    }
    if end < total:
        result["skip"] = end
        result["message"] = "To see more comments, use skip parameter with the provided skip value."
    return result


async def _action_create(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    entry_id, body = require(kwargs, "resource_id", "body")
    comment = await client.create_comment(
        space_id, environment_id, entry_id, body, parent_id=kwargs.get("parent")
    )
    return {"_success": True, "comment": comment}


async def _action_get(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    entry_id, comment_id = require(kwargs, "resource_id", "comment_id")
    comment = await client.get_comment(
        space_id, environment_id, entry_id, comment_id, body_format=_body_format(kwargs)
    )
    return {"_success": True, "comment": comment}


async def _action_update(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    entry_id, comment_id = require(kwargs, "resource_id", "comment_id")
    data = {k: kwargs[k] for k in ("body", "status") if kwargs.get(k) is not None}
    if not data:
        raise ValueError("Nothing to update: provide body and/or status")

    current = await client.get_comment(
        space_id, environment_id, entry_id, comment_id, body_format=_body_format(kwargs)
    )
    comment = await client.update_comment(
        space_id, environment_id, entry_id, comment_id, data, version_of(current)
    )
    return {"_success": True, "comment": comment}


async def _action_delete(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    entry_id, comment_id = require(kwargs, "resource_id", "comment_id")
    current = await client.get_comment(space_id, environment_id, entry_id, comment_id)
    await client.delete_comment(space_id, environment_id, entry_id, comment_id, version_of(current))
    return {
        "_success": True,
        "message": f"Successfully deleted comment {comment_id} from entry {entry_id}",
    }


# ============================================================================
# Action Router
# ============================================================================

async def manage_comments_action(
    client: ContentfulClient,
    settings: Settings,
    action: str,
    config_data: Optional[Dict[str, Any]] = None,
    **kwargs,
) -> Dict[str, Any]:
    """
    Route to the appropriate comment action handler.

    Args:
        client: Contentful Management API client
        settings: Deployment settings
        action: One of: list, create, get, update, delete
        config_data: Action-specific configuration dict (comment_id, body, status, parent, ...)
        **kwargs: Additional parameters (resource_id = entry ID, space_id, environment_id)
    """
    actions = {
        "list": _action_list,
        "create": _action_create,
        "get": _action_get,
        "update": _action_update,
        "delete": _action_delete,
    }
    return await route_action(actions, action, client, settings, config_data, **kwargs)

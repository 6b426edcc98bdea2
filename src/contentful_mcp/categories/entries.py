"""
Entry Management MCP Tools for Contentful.

Provides 7 entry actions:
- search: Query entries (at most 3 per page, summarized)
- get: Get single entry by ID
- create: Create entry of a content type
- update: Update fields (merged per field and locale with the current entry)
- delete: Delete entry (permanent)
- publish: Publish entry, or several at once through a bulk action
- unpublish: Unpublish entry, or several at once through a bulk action
"""

import json
import logging
from typing import Any, Dict, List, Optional, Union

from ..client import ContentfulClient
from ..config import Settings
from ._shared import merge_localized_fields, require, resolve_space_env, route_action, summarize_data, version_of
from .bulk_actions import run_bulk_action


logger = logging.getLogger(__name__)

SEARCH_MAX_LIMIT = 3


# ============================================================================
# Helpers
# ============================================================================

def _entry_ids(kwargs: Dict[str, Any]) -> Union[str, List[str]]:
    """resource_id as a single ID, or a list from entry_ids / a JSON array string."""
    entry_ids = kwargs.get("entry_ids")
    if entry_ids:
        return list(entry_ids)
    resource_id = kwargs.get("resource_id")
    if isinstance(resource_id, list):
        return resource_id
    if isinstance(resource_id, str) and resource_id.startswith("[") and resource_id.endswith("]"):
        try:
            parsed = json.loads(resource_id)
        except json.JSONDecodeError:
            logger.warning("resource_id looks like a JSON array but does not parse: %s", resource_id)
        else:
            if isinstance(parsed, list):
                return [str(item) for item in parsed]
    if not resource_id:
        raise ValueError("resource_id (entry ID) is required")
    return resource_id


def _search_query(query: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    query = dict(query or {})
    query["limit"] = min(int(query.get("limit") or SEARCH_MAX_LIMIT), SEARCH_MAX_LIMIT)
    query["skip"] = int(query.get("skip") or 0)
    return query


# ============================================================================
# Actions
# ============================================================================

async def _action_search(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    entries = await client.list_entries(space_id, environment_id, _search_query(kwargs.get("query")))
    summarized = summarize_data(
        entries,
        max_items=SEARCH_MAX_LIMIT,
        remaining_message="To see more entries, please ask me to retrieve the next page.",
    )
    return {"_success": True, **summarized}


async def _action_get(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    (entry_id,) = require(kwargs, "resource_id")
    entry = await client.get_entry(space_id, environment_id, entry_id)
    return {"_success": True, "entry": entry}


async def _action_create(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    content_type_id, fields = require(kwargs, "content_type_id", "fields")
    entry = await client.create_entry(space_id, environment_id, content_type_id, fields)
    return {"_success": True, "entry": entry}


async def _action_update(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    entry_id, fields = require(kwargs, "resource_id", "fields")

    current = await client.get_entry(space_id, environment_id, entry_id)
    merged = merge_localized_fields(current.get("fields") or {}, fields)
    entry = await client.update_entry(space_id, environment_id, entry_id, merged, version_of(current))
    return {"_success": True, "entry": entry}


async def _action_delete(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    (entry_id,) = require(kwargs, "resource_id")
    await client.delete_entry(space_id, environment_id, entry_id)
    return {"_success": True, "message": f"Entry {entry_id} deleted successfully"}


async def _action_publish(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    entry_ids = _entry_ids(kwargs)
    if isinstance(entry_ids, list):
        entities = [{"id": entry_id, "type": "Entry"} for entry_id in entry_ids]
        return await run_bulk_action(client, space_id, environment_id, "publish", entities)

    current = await client.get_entry(space_id, environment_id, entry_ids)
    entry = await client.publish_entry(space_id, environment_id, entry_ids, version_of(current))
    return {"_success": True, "entry": entry}


async def _action_unpublish(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    entry_ids = _entry_ids(kwargs)
    if isinstance(entry_ids, list):
        entities = [{"id": entry_id, "type": "Entry"} for entry_id in entry_ids]
        return await run_bulk_action(client, space_id, environment_id, "unpublish", entities)

    current = await client.get_entry(space_id, environment_id, entry_ids)
    entry = await client.unpublish_entry(space_id, environment_id, entry_ids, version_of(current))
    return {"_success": True, "entry": entry}


# ============================================================================
# Action Router
# ============================================================================

async def manage_entries_action(
    client: ContentfulClient,
    settings: Settings,
    action: str,
    config_data: Optional[Dict[str, Any]] = None,
    **kwargs,
) -> Dict[str, Any]:
    """
    Route to the appropriate entry action handler.

    Args:
        client: Contentful Management API client
        settings: Deployment settings
        action: One of: search, get, create, update, delete, publish, unpublish
        config_data: Action-specific configuration dict
        **kwargs: Additional parameters (resource_id, space_id, environment_id)
    """
    actions = {
        "search": _action_search,
        "get": _action_get,
        "create": _action_create,
        "update": _action_update,
        "delete": _action_delete,
        "publish": _action_publish,
        "unpublish": _action_unpublish,
    }
    return await route_action(actions, action, client, settings, config_data, **kwargs)

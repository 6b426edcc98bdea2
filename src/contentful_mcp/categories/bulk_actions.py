"""
Bulk Action MCP Tools for Contentful.

Provides 3 bulk actions:
- publish: Publish many entries/assets in one request
- unpublish: Unpublish many entries/assets in one request
- validate: Validate entries for publishing without publishing them

Each action resolves the current version of every entity, submits the bulk
action and waits (bounded) for it to leave the created/inProgress states.
"""

import asyncio
import logging
from typing import Any, Dict, List

from ..client import ContentfulClient
from ..config import Settings
from ._shared import require, resolve_space_env, route_action, version_of


logger = logging.getLogger(__name__)

BULK_POLL_INTERVAL = 1.0
BULK_POLL_MAX_ATTEMPTS = 30
PENDING_STATUSES = ("created", "inProgress")
VALID_ENTITY_TYPES = ("Entry", "Asset")


# ============================================================================
# Helpers
# ============================================================================

def normalize_entities(entities: Any) -> List[Dict[str, str]]:
    """Accept [{id, type}], [{sys: {id, type}}] or plain entry ID strings."""
    if not isinstance(entities, list) or not entities:
        raise ValueError("'entities' must be a non-empty list")
    normalized = []
    for entity in entities:
        if isinstance(entity, str):
            normalized.append({"id": entity, "type": "Entry"})
            continue
        if not isinstance(entity, dict):
            raise ValueError(f"Invalid entity: {entity!r}")
        sys_data = entity.get("sys") if isinstance(entity.get("sys"), dict) else entity
        entity_id = sys_data.get("id")
        entity_type = sys_data.get("type") or sys_data.get("linkType") or "Entry"
        if not entity_id:
            raise ValueError(f"Entity is missing an id: {entity!r}")
        if entity_type not in VALID_ENTITY_TYPES:
            raise ValueError(
                f"Invalid entity type: '{entity_type}'. Valid values: {', '.join(VALID_ENTITY_TYPES)}"
            )
        normalized.append({"id": entity_id, "type": entity_type})
    return normalized


async def _versioned_links(client: ContentfulClient, space_id: str, environment_id: str,
                           entities: List[Dict[str, str]]) -> Dict[str, Any]:
    async def link_for(entity):
        try:
            if entity["type"] == "Asset":
                current = await client.get_asset(space_id, environment_id, entity["id"])
            else:
                current = await client.get_entry(space_id, environment_id, entity["id"])
        except Exception as e:
            raise ValueError(
                f"Failed to get version for entity {entity['id']}. "
                f"All entities must have a version. ({e})"
            ) from e
        return {
            "sys": {
                "type": "Link",
                "linkType": entity["type"],
                "id": entity["id"],
                "version": version_of(current),
            }
        }

    items = await asyncio.gather(*(link_for(e) for e in entities))
    return {"sys": {"type": "Array"}, "items": list(items)}


async def _wait_for_bulk_action(client: ContentfulClient, space_id: str, environment_id: str,
                                bulk_action_id: str) -> Dict[str, Any]:
    action = await client.get_bulk_action(space_id, environment_id, bulk_action_id)
    attempts = 1
    while (action.get("sys") or {}).get("status") in PENDING_STATUSES:
        if attempts >= BULK_POLL_MAX_ATTEMPTS:
            logger.warning("Bulk action %s still pending after %d checks", bulk_action_id, attempts)
            break
        await asyncio.sleep(BULK_POLL_INTERVAL)
        action = await client.get_bulk_action(space_id, environment_id, bulk_action_id)
        attempts += 1
    return action


def _summarize(kind: str, action: Dict[str, Any], noun: str = "items") -> Dict[str, Any]:
    status = (action.get("sys") or {}).get("status")
    result: Dict[str, Any] = {
        "_success": status == "succeeded",
        "bulk_action_id": (action.get("sys") or {}).get("id"),
        "status": status,
    }
    if status == "failed":
        result["error"] = action.get("error")
        result["message"] = f"Bulk {kind} failed"
    elif status in PENDING_STATUSES:
        result["_success"] = True
        result["message"] = (
            f"Bulk {kind} is still {status}; check again later with bulk_action_id"
        )
    else:
        succeeded = action.get("succeeded") or []
        result["succeeded"] = len(succeeded)
        result["message"] = f"Bulk {kind} completed with status: {status}. Successfully processed {len(succeeded)} {noun}."
    return result


async def run_bulk_action(client: ContentfulClient, space_id: str, environment_id: str,
                          kind: str, entities: List[Dict[str, str]]) -> Dict[str, Any]:
    """Submit publish/unpublish/validate for already-normalized entities."""
    collection = await _versioned_links(client, space_id, environment_id, entities)
    body: Dict[str, Any] = {"entities": collection}
    if kind == "validate":
        body["action"] = "publish"
    created = await client.create_bulk_action(space_id, environment_id, kind, body)
    action = await _wait_for_bulk_action(client, space_id, environment_id, created["sys"]["id"])
    return _summarize(kind, action, "entries" if kind == "validate" else "items")


# ============================================================================
# Actions
# ============================================================================

async def _action_publish(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    (entities,) = require(kwargs, "entities")
    return await run_bulk_action(client, space_id, environment_id, "publish", normalize_entities(entities))


async def _action_unpublish(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    (entities,) = require(kwargs, "entities")
    return await run_bulk_action(client, space_id, environment_id, "unpublish", normalize_entities(entities))


async def _action_validate(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    entry_ids = kwargs.get("entry_ids") or kwargs.get("entryIds")
    if not entry_ids:
        raise ValueError("'entry_ids' is required for validate")
    entities = [{"id": entry_id, "type": "Entry"} for entry_id in entry_ids]
    return await run_bulk_action(client, space_id, environment_id, "validate", entities)


# ============================================================================
# Action Router
# ============================================================================

async def manage_bulk_actions_action(
    client: ContentfulClient,
    settings: Settings,
    action: str,
    config_data: Dict[str, Any] = None,
    **kwargs,
) -> Dict[str, Any]:
    """
    Route to the appropriate bulk action handler.

    Args:
        client: Contentful Management API client
        settings: Deployment settings
        action: One of: publish, unpublish, validate
        config_data: Action-specific configuration dict (entities, entry_ids)
        **kwargs: space_id / environment_id overrides
    """
    actions = {
        "publish": _action_publish,
        "unpublish": _action_unpublish,
        "validate": _action_validate,
    }
    return await route_action(actions, action, client, settings, config_data, **kwargs)

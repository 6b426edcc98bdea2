"""
Asset Management MCP Tools for Contentful.

Provides 7 asset actions:
- list: List assets (summarized)
- upload: Create an asset from an upload URL, process every locale and wait for the file url
- get: Get single asset by ID
- update: Update title/description/file (merged with current fields)
- delete: Delete asset (permanent)
- publish: Publish asset
- unpublish: Unpublish asset
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from ..client import ContentfulClient
from ..config import Settings
from ._shared import merge_localized_fields, require, resolve_space_env, route_action, summarize_data, version_of


logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en-US"
PROCESS_POLL_INTERVAL = 1.0
PROCESS_POLL_MAX_ATTEMPTS = 10


def _asset_fields(kwargs: Dict[str, Any], locale: str) -> Dict[str, Any]:
    """Localize title/description/file given as plain values."""
    fields: Dict[str, Any] = {}
    for name in ("title", "description", "file"):
        value = kwargs.get(name)
        if value is not None:
            fields[name] = {locale: value}
    return fields


def _is_processed(asset: Dict[str, Any], locales: List[str]) -> bool:
    files = (asset.get("fields") or {}).get("file") or {}
    return all(isinstance(files.get(locale), dict) and files[locale].get("url") for locale in locales)


async def _wait_for_processing(client: ContentfulClient, space_id: str, environment_id: str,
                               asset_id: str, locales: List[str]) -> Dict[str, Any]:
    """Fetch the asset until every locale's file has a url, or the checks run out."""
    asset = await client.get_asset(space_id, environment_id, asset_id)
    attempts = 1
    while not _is_processed(asset, locales):
        if attempts >= PROCESS_POLL_MAX_ATTEMPTS:
            logger.warning("Asset %s still processing after %d checks", asset_id, attempts)
            break
        await asyncio.sleep(PROCESS_POLL_INTERVAL)
        asset = await client.get_asset(space_id, environment_id, asset_id)
        attempts += 1
    return asset


# ============================================================================
# Actions
# ============================================================================

async def _action_list(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    query = {"limit": int(kwargs.get("limit") or 3), "skip": int(kwargs.get("skip") or 0)}
    assets = await client.list_assets(space_id, environment_id, query)
    summarized = summarize_data(
        assets,
        max_items=query["limit"],
        remaining_message="To see more assets, please ask me to retrieve the next page.",
    )
    return {"_success": True, **summarized}


async def _action_upload(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    title, file_data = require(kwargs, "title", "file")
    for key in ("fileName", "contentType", "upload"):
        if not file_data.get(key):
            raise ValueError(f"file.{key} is required")
    locale = kwargs.get("locale") or DEFAULT_LOCALE

    asset = await client.create_asset(space_id, environment_id, _asset_fields(kwargs, locale))
    asset_id = asset["sys"]["id"]
    locales = list((asset.get("fields") or {}).get("file") or {locale: file_data})
    for file_locale in locales:
        await client.process_asset(space_id, environment_id, asset_id, file_locale, version_of(asset))

    processed = await _wait_for_processing(client, space_id, environment_id, asset_id, locales)
    result = {"_success": True, "asset": processed}
    if not _is_processed(processed, locales):
        result["message"] = "Asset is still processing; fetch it again later for the file url."
    return result


async def _action_get(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    (asset_id,) = require(kwargs, "resource_id")
    asset = await client.get_asset(space_id, environment_id, asset_id)
    return {"_success": True, "asset": asset}


async def _action_update(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    (asset_id,) = require(kwargs, "resource_id")
    locale = kwargs.get("locale") or DEFAULT_LOCALE
    updates = kwargs.get("fields") or _asset_fields(kwargs, locale)
    if not updates:
        raise ValueError("Nothing to update: provide title, description, file or fields")

    current = await client.get_asset(space_id, environment_id, asset_id)
    merged = merge_localized_fields(current.get("fields") or {}, updates)
    asset = await client.update_asset(space_id, environment_id, asset_id, merged, version_of(current))
    return {"_success": True, "asset": asset}


async def _action_delete(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    (asset_id,) = require(kwargs, "resource_id")
    await client.delete_asset(space_id, environment_id, asset_id)
    return {"_success": True, "message": f"Asset {asset_id} deleted successfully"}


async def _action_publish(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    (asset_id,) = require(kwargs, "resource_id")
    current = await client.get_asset(space_id, environment_id, asset_id)
    asset = await client.publish_asset(space_id, environment_id, asset_id, version_of(current))
    return {"_success": True, "asset": asset}


async def _action_unpublish(client: ContentfulClient, settings: Settings, **kwargs) -> Dict[str, Any]:
    space_id, environment_id = resolve_space_env(settings, kwargs)
    (asset_id,) = require(kwargs, "resource_id")
    current = await client.get_asset(space_id, environment_id, asset_id)
    asset = await client.unpublish_asset(space_id, environment_id, asset_id, version_of(current))
    return {"_success": True, "asset": asset}


# ============================================================================
# Action Router
# ============================================================================

async def manage_assets_action(
    client: ContentfulClient,
    settings: Settings,
    action: str,
    config_data: Optional[Dict[str, Any]] = None,
    **kwargs,
) -> Dict[str, Any]:
    """
    Route to the appropriate asset action handler.

    Args:
        client: Contentful Management API client
        settings: Deployment settings
        action: One of: list, upload, get, update, delete, publish, unpublish
        config_data: Action-specific configuration dict
        **kwargs: Additional parameters (resource_id, space_id, environment_id)
    """
    actions = {
        "list": _action_list,
        "upload": _action_upload,
        "get": _action_get,
        "update": _action_update,
        "delete": _action_delete,
        "publish": _action_publish,
        "unpublish": _action_unpublish,
    }
    return await route_action(actions, action, client, settings, config_data, **kwargs)

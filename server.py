#!/usr/bin/env python3
"""
Contentful MCP Server

Exposes Contentful content management (entries, assets, content types,
spaces/environments, comments, bulk actions, GraphQL) and AI Actions as
MCP tools. Every published AI Action is also registered as its own
ai_action_<id> tool, refreshed periodically.

Configuration is read from environment variables; see
contentful_mcp.config.Settings. Run with:

    CONTENTFUL_MANAGEMENT_ACCESS_TOKEN=... SPACE_ID=... python server.py
"""

import asyncio
import json
import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from fastmcp import FastMCP

# --- Add src to path ---
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from contentful_mcp import __version__
from contentful_mcp.ai_actions.dispatch import AiActionToolset
from contentful_mcp.ai_actions.mcp_tools import sync_ai_action_tools
from contentful_mcp.categories.ai_actions import CATALOG_CHANGING_ACTIONS, manage_ai_actions_action
from contentful_mcp.categories.assets import manage_assets_action
from contentful_mcp.categories.bulk_actions import manage_bulk_actions_action
from contentful_mcp.categories.comments import manage_comments_action
from contentful_mcp.categories.content_types import manage_content_types_action
from contentful_mcp.categories.entries import manage_entries_action
from contentful_mcp.categories.graphql import query_graphql_action
from contentful_mcp.categories.spaces import manage_spaces_action
from contentful_mcp.client import ContentfulClient
from contentful_mcp.config import Settings


# stdout carries the stdio MCP stream, so logs go to stderr
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    stream=sys.stderr,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("contentful_mcp.server")

try:
    settings = Settings.from_env()
except ValueError as e:
    print(f"ERROR: {e}", file=sys.stderr)
    sys.exit(1)

client = ContentfulClient(settings)
toolset = AiActionToolset(settings, client)
_registered_ai_tools = set()


async def refresh_ai_action_tools() -> None:
    """Reload published AI Actions and re-register their tools."""
    global _registered_ai_tools
    await toolset.load_actions()
    _registered_ai_tools = sync_ai_action_tools(mcp, toolset, _registered_ai_tools)


async def _sync_only() -> None:
    global _registered_ai_tools
    _registered_ai_tools = sync_ai_action_tools(mcp, toolset, _registered_ai_tools)


@asynccontextmanager
async def lifespan(server):
    refresh_task = None
    if toolset.enabled:
        try:
            await refresh_ai_action_tools()
        except Exception:
            logger.exception("Initial AI Action load failed; continuing without AI Action tools")
        refresh_task = asyncio.create_task(toolset.run_refresh_loop(on_reload=_sync_only))
    else:
        logger.info("AI Action tools disabled")
    try:
        yield {}
    finally:
        toolset.shutdown()
        if refresh_task is not None:
            refresh_task.cancel()
            try:
                await refresh_task
            except asyncio.CancelledError:
                pass
        await client.aclose()


mcp = FastMCP(name="Contentful MCP Server", version=__version__, lifespan=lifespan)


def _parse_config(config: Optional[str]):
    """Parse a JSON config string; returns (config_data, error_result)."""
    if not config:
        return {}, None
    try:
        config_data = json.loads(config)
    except json.JSONDecodeError as e:
        return None, {"_success": False, "error": f"Invalid JSON in config: {e}"}
    if not isinstance(config_data, dict):
        return None, {"_success": False, "error": "config must be a JSON object"}
    return config_data, None


# --- Entry Tools ---

@mcp.tool()
async def manage_entries(
    action: str,
    resource_id: str = None,
    config: str = None,
    space_id: str = None,
    environment_id: str = None,
) -> Dict[str, Any]:
    """
    Manage Contentful entries.

    Actions:
        search - Query entries (returns at most 3 per call):
            config='{"query": {"content_type": "blogPost", "skip": 0}}'
        get - Get entry: resource_id="entry-id"
        create - Create entry:
            config='{"content_type_id": "blogPost", "fields": {"title": {"en-US": "Hello"}}}'
        update - Update fields; other fields and locales are kept:
            resource_id="entry-id", config='{"fields": {"title": {"en-US": "New"}}}'
        delete - Delete entry: resource_id="entry-id"
        publish / unpublish - resource_id="entry-id", or several at once with
            config='{"entry_ids": ["id1", "id2"]}' (runs a bulk action)

    space_id / environment_id default to SPACE_ID / ENVIRONMENT_ID (environment: master).

    Returns:
        Action result with success status and data/error
    """
    config_data, error = _parse_config(config)
    if error:
        return error
    logger.info("manage_entries action=%s resource_id=%s", action, resource_id)
    return await manage_entries_action(
        client, settings, action, config_data,
        resource_id=resource_id, space_id=space_id, environment_id=environment_id,
    )


# --- Asset Tools ---

@mcp.tool()
async def manage_assets(
    action: str,
    resource_id: str = None,
    config: str = None,
    space_id: str = None,
    environment_id: str = None,
) -> Dict[str, Any]:
    """
    Manage Contentful assets.

    Actions:
        list - config='{"limit": 3, "skip": 0}'
        upload - Create from an upload URL and process it:
            config='{"title": "Logo", "file": {"fileName": "logo.png",
                     "contentType": "image/png", "upload": "https://..."}}'
        get - resource_id="asset-id"
        update - resource_id="asset-id", config='{"title": "New title"}'
        delete / publish / unpublish - resource_id="asset-id"

    Returns:
        Action result with success status and data/error
    """
    config_data, error = _parse_config(config)
    if error:
        return error
    logger.info("manage_assets action=%s resource_id=%s", action, resource_id)
    return await manage_assets_action(
        client, settings, action, config_data,
        resource_id=resource_id, space_id=space_id, environment_id=environment_id,
    )


# --- Content Type Tools ---

@mcp.tool()
async def manage_content_types(
    action: str,
    resource_id: str = None,
    config: str = None,
    space_id: str = None,
    environment_id: str = None,
) -> Dict[str, Any]:
    """
    Manage Contentful content types.

    Actions:
        list - List content types
        get - resource_id="blogPost"
        create - ID is the camelCase name unless resource_id is given:
            config='{"name": "Blog Post", "fields": [{"id": "title", "name": "Title",
                     "type": "Symbol", "required": true}], "display_field": "title"}'
        update - Fields are merged by field id:
            resource_id="blogPost", config='{"fields": [{"id": "title", "required": false}]}'
        delete / publish - resource_id="blogPost"

    Returns:
        Action result with success status and data/error
    """
    config_data, error = _parse_config(config)
    if error:
        return error
    logger.info("manage_content_types action=%s resource_id=%s", action, resource_id)
    return await manage_content_types_action(
        client, settings, action, config_data,
        resource_id=resource_id, space_id=space_id, environment_id=environment_id,
    )


# --- Space & Environment Tools ---

@mcp.tool()
async def manage_spaces(
    action: str,
    space_id: str = None,
    environment_id: str = None,
    config: str = None,
) -> Dict[str, Any]:
    """
    Manage Contentful spaces and environments.

    Actions:
        list_spaces - List accessible spaces
        get_space - space_id="abc123"
        list_environments - space_id="abc123"
        create_environment - environment_id="staging", config='{"name": "Staging"}'
        delete_environment - environment_id="staging"

    Returns:
        Action result with success status and data/error
    """
    config_data, error = _parse_config(config)
    if error:
        return error
    logger.info("manage_spaces action=%s space_id=%s", action, space_id)
    return await manage_spaces_action(
        client, settings, action, config_data,
        space_id=space_id, environment_id=environment_id,
    )


# --- Comment Tools ---

@mcp.tool()
async def manage_comments(
    action: str,
    entry_id: str,
    config: str = None,
    space_id: str = None,
    environment_id: str = None,
) -> Dict[str, Any]:
    """
    Manage comments on a Contentful entry.

    Actions:
        list - config='{"status": "active|resolved|all", "limit": 10, "skip": 0}'
        create - config='{"body": "Looks good", "parent": "optional-comment-id"}'
        get - config='{"comment_id": "c1"}'
        update - config='{"comment_id": "c1", "status": "resolved"}'
        delete - config='{"comment_id": "c1"}'

    Returns:
        Action result with success status and data/error
    """
    config_data, error = _parse_config(config)
    if error:
        return error
    logger.info("manage_comments action=%s entry_id=%s", action, entry_id)
    return await manage_comments_action(
        client, settings, action, config_data,
        resource_id=entry_id, space_id=space_id, environment_id=environment_id,
    )


# --- Bulk Action Tools ---

@mcp.tool()
async def manage_bulk_actions(
    action: str,
    config: str,
    space_id: str = None,
    environment_id: str = None,
) -> Dict[str, Any]:
    """
    Publish, unpublish or validate many entries/assets at once.

    Actions:
        publish / unpublish -
            config='{"entities": [{"id": "e1", "type": "Entry"}, {"id": "a1", "type": "Asset"}]}'
        validate - config='{"entry_ids": ["e1", "e2"]}'

    Returns:
        Bulk action status with the number of processed items
    """
    config_data, error = _parse_config(config)
    if error:
        return error
    logger.info("manage_bulk_actions action=%s", action)
    return await manage_bulk_actions_action(
        client, settings, action, config_data,
        space_id=space_id, environment_id=environment_id,
    )


# --- GraphQL Tool ---

@mcp.tool()
async def query_graphql(
    query: str,
    variables: str = None,
    space_id: str = None,
    environment_id: str = None,
) -> Dict[str, Any]:
    """
    Run a query against the Contentful GraphQL Content API.

    Args:
        query: GraphQL query text
        variables: Optional JSON object of query variables

    Returns:
        {"data": ...} on success; GraphQL errors are returned under "errors"
    """
    variables_data, error = _parse_config(variables)
    if error:
        return error
    return await query_graphql_action(
        client, settings, query, variables_data,
        space_id=space_id, environment_id=environment_id,
    )


# --- AI Action Tools ---

@mcp.tool()
async def manage_ai_actions(
    action: str,
    resource_id: str = None,
    config: str = None,
    space_id: str = None,
    environment_id: str = None,
) -> Dict[str, Any]:
    """
    Manage and invoke Contentful AI Actions.

    Actions:
        list - config='{"status": "all|published", "limit": 100, "skip": 0}'
        get / delete / publish / unpublish - resource_id="ai-action-id"
        create - config='{"name": "...", "description": "...",
                 "instruction": {"template": "...", "variables": [...]},
                 "configuration": {"modelType": "gpt-4o", "modelTemperature": 0.5}}'
        update - resource_id="ai-action-id", config with any of the create keys
        invoke - resource_id="ai-action-id" and EITHER
            config='{"variables": {"var-id": "value"}}' OR
            config='{"rawVariables": [{"id": "var-id", "value": {"entityType": "Entry", "entityId": "e1"}}]}'
            plus optional "outputFormat" (Markdown|RichText|PlainText) and "waitForCompletion"
        get_invocation - resource_id="ai-action-id", config='{"invocation_id": "inv-id"}'

    Returns:
        Action result with success status and data/error
    """
    config_data, error = _parse_config(config)
    if error:
        return error
    logger.info("manage_ai_actions action=%s resource_id=%s", action, resource_id)
    result = await manage_ai_actions_action(
        client, settings, action, config_data,
        resource_id=resource_id, space_id=space_id, environment_id=environment_id,
        toolset=toolset,
    )
    if action in CATALOG_CHANGING_ACTIONS and result.get("_success") and toolset.enabled:
        try:
            await refresh_ai_action_tools()
        except Exception as e:
            logger.error("AI Action tool refresh after %s failed: %s", action, e)
            result["warning"] = f"AI Action tools were not refreshed: {e}"
    return result


if __name__ == "__main__":
    print("\n" + "=" * 60, file=sys.stderr)
    print(f"Contentful MCP Server {__version__}", file=sys.stderr)
    print("=" * 60, file=sys.stderr)
    print(f"CMA host:      {settings.host}", file=sys.stderr)
    print(f"Space:         {settings.space_id or '(per call)'}", file=sys.stderr)
    print(f"Environment:   {settings.environment_id or '(per call, default master)'}", file=sys.stderr)
    print(f"AI Actions:    {'enabled' if toolset.enabled else 'disabled'}", file=sys.stderr)
    print(f"Transport:     {settings.transport}", file=sys.stderr)
    print("=" * 60 + "\n", file=sys.stderr)

    if settings.transport == "stdio":
        mcp.run(transport="stdio")
    else:
        mcp.run(transport=settings.transport, host=settings.mcp_host, port=settings.mcp_port)

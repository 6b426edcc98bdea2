"""
Expose each cached AI Action as its own FastMCP tool.

The tools are rebuilt from the registry after every catalog load: new
actions are added, changed ones replaced and unpublished ones removed.
"""

import json
import logging
from typing import Any, Dict, Set

from fastmcp import FastMCP
from fastmcp.tools import Tool, ToolResult
from pydantic import PrivateAttr

from .dispatch import AiActionToolset


logger = logging.getLogger(__name__)


class AiActionTool(Tool):
    """A tool whose input schema is generated from an AI Action definition."""

    _toolset: Any = PrivateAttr(default=None)

    @classmethod
    def from_schema(cls, schema: Dict[str, Any], toolset: AiActionToolset) -> "AiActionTool":
        tool = cls(
            name=schema["name"],
            description=schema["description"],
            parameters=schema["inputSchema"],
            tags={"ai_action"},
        )
        tool._toolset = toolset
        return tool

    async def run(self, arguments: Dict[str, Any]) -> ToolResult:
        result = await self._toolset.invoke_tool(self.name, arguments)
        return ToolResult(content=json.dumps(result, indent=2, default=str))


def sync_ai_action_tools(mcp: FastMCP, toolset: AiActionToolset,
                         registered: Set[str]) -> Set[str]:
    """Make the server's AI Action tools match the toolset's current catalog.

    `registered` is the set of tool names added by the previous sync; the
    returned set replaces it.
    """
    schemas = toolset.list_tool_schemas()
    current = {schema["name"] for schema in schemas}

    for name in registered:
        try:
            mcp.local_provider.remove_tool(name)
        except KeyError:
            logger.debug("AI Action tool %s was already removed", name)

    for schema in schemas:
        mcp.add_tool(AiActionTool.from_schema(schema, toolset))

    removed = registered - current
    if removed:
        logger.info("Removed %d AI Action tool(s): %s", len(removed), ", ".join(sorted(removed)))
    logger.info("Registered %d AI Action tool(s)", len(current))
    return current

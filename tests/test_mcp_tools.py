"""Tests for exposing AI Actions as FastMCP tools."""

import sys
import os
import json
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest
from fastmcp import FastMCP
from contentful_mcp.ai_actions.dispatch import AiActionToolset
from contentful_mcp.ai_actions.mcp_tools import AiActionTool, sync_ai_action_tools
from contentful_mcp.config import Settings


def _action_payload(action_id, name):
    return {
        'sys': {'id': action_id, 'version': 1},
        'name': name,
        'instruction': {'template': '{{topic}}', 'variables': [{'id': 'topic1', 'type': 'Text', 'name': 'Topic'}]},
        'configuration': {'modelType': 'gpt-4o', 'modelTemperature': 0.2},
    }


class FakeClient:
    def __init__(self, actions):
        self.actions = actions
        self.invoke_calls = []

    async def list_all_ai_actions(self, space_id, environment_id='master', status='published', page_size=100):
        return self.actions

    async def invoke_ai_action(self, space_id, environment_id, ai_action_id, payload):
        self.invoke_calls.append((ai_action_id, payload))
        return {
            'sys': {'id': 'inv1', 'status': 'COMPLETED'},
            'result': {'type': 'text', 'content': 'A summary', 'metadata': {}},
        }


SETTINGS = Settings(management_token='token', space_id='space1')


async def _tool_names(mcp):
    return {tool.name for tool in await mcp.list_tools()}


class TestAiActionTool:
    """Verify a generated tool runs the AI Action pipeline."""

    @pytest.mark.asyncio
    async def test_run_returns_json_result(self):
        client = FakeClient([_action_payload('summary', 'Summarize')])
        toolset = AiActionToolset(SETTINGS, client)
        await toolset.load_actions()
        tool = AiActionTool.from_schema(toolset.list_tool_schemas()[0], toolset)

        assert tool.name == 'ai_action_summary'
        assert 'topic' in tool.parameters['properties']

        result = await tool.run({'topic': 'Release notes'})
        body = json.loads(result.content[0].text)
        assert body['_success'] is True
        assert body['content'] == 'A summary'
        assert client.invoke_calls[0] == (
            'summary', {'outputFormat': 'Markdown', 'variables': [{'id': 'topic1', 'value': 'Release notes'}]},
        )


class TestSyncAiActionTools:
    """Verify the server tool list follows the catalog."""

    @pytest.mark.asyncio
    async def test_tools_added_and_removed(self):
        mcp = FastMCP('test')

        @mcp.tool()
        def manage_entries(action: str) -> str:
            return action

        client = FakeClient([_action_payload('a1', 'First'), _action_payload('a2', 'Second')])
        toolset = AiActionToolset(SETTINGS, client)
        await toolset.load_actions()

        registered = sync_ai_action_tools(mcp, toolset, set())
        assert registered == {'ai_action_a1', 'ai_action_a2'}
        assert await _tool_names(mcp) == {'manage_entries', 'ai_action_a1', 'ai_action_a2'}

        client.actions = [_action_payload('a2', 'Second'), _action_payload('a3', 'Third')]
        await toolset.load_actions()
        registered = sync_ai_action_tools(mcp, toolset, registered)

        assert registered == {'ai_action_a2', 'ai_action_a3'}
        assert await _tool_names(mcp) == {'manage_entries', 'ai_action_a2', 'ai_action_a3'}

    @pytest.mark.asyncio
    async def test_already_removed_tool_is_ignored(self):
        mcp = FastMCP('test')
        toolset = AiActionToolset(SETTINGS, FakeClient([]))
        await toolset.load_actions()
        assert sync_ai_action_tools(mcp, toolset, {'ai_action_gone'}) == set()
        assert await _tool_names(mcp) == set()

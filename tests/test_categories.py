"""Tests for the consolidated category routers."""

import sys
import os
import json
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import httpx
import pytest
from contentful_mcp.categories import assets, bulk_actions
from contentful_mcp.categories._shared import deep_merge, merge_lists, merge_localized_fields, summarize_data
from contentful_mcp.categories.ai_actions import manage_ai_actions_action
from contentful_mcp.categories.assets import manage_assets_action
from contentful_mcp.categories.comments import manage_comments_action
from contentful_mcp.categories.content_types import manage_content_types_action, to_camel_case
from contentful_mcp.categories.entries import manage_entries_action
from contentful_mcp.categories.graphql import query_graphql_action
from contentful_mcp.categories.spaces import manage_spaces_action
from contentful_mcp.client import ContentfulClient
from contentful_mcp.config import Settings


SETTINGS = Settings(management_token='token', space_id='space1', environment_id='master')


class Recorder:
    """MockTransport handler answering from a {(method, path): response} table."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request):
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, dict(request.url.params), body, request.headers))
        response = self.routes.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={'message': f'No route for {request.method} {request.url.path}'})
        if callable(response):
            response = response(request)
        return httpx.Response(200, json=response)

    def find(self, method, path):
        return [r for r in self.requests if r[0] == method and r[1] == path]


def _client(recorder):
    http = httpx.AsyncClient(transport=httpx.MockTransport(recorder), base_url=SETTINGS.base_url)
    return ContentfulClient(SETTINGS, http_client=http)


ENV = '/spaces/space1/environments/master'


class TestMergeHelpers:
    """Verify field and list merging."""

    def test_localized_fields_keep_other_locales(self):
        current = {'title': {'en-US': 'Hello', 'de-DE': 'Hallo'}, 'body': {'en-US': 'Text'}}
        merged = merge_localized_fields(current, {'title': {'en-US': 'Hi'}, 'slug': {'en-US': 'hi'}})
        assert merged == {
            'title': {'en-US': 'Hi', 'de-DE': 'Hallo'},
            'body': {'en-US': 'Text'},
            'slug': {'en-US': 'hi'},
        }
        assert current['title']['en-US'] == 'Hello'

    def test_merge_lists_by_id(self):
        base = [{'id': 'title', 'required': True, 'type': 'Symbol'}, {'id': 'body', 'type': 'Text'}]
        override = [{'id': 'title', 'required': False}, {'id': 'slug', 'type': 'Symbol'}]
        assert merge_lists(base, override) == [
            {'id': 'title', 'required': False, 'type': 'Symbol'},
            {'id': 'body', 'type': 'Text'},
            {'id': 'slug', 'type': 'Symbol'},
        ]

    def test_merge_lists_without_ids_replaces(self):
        assert merge_lists(['a', 'b'], ['c']) == ['c']

    def test_deep_merge_nested(self):
        base = {'a': {'b': 1, 'c': 2}, 'items': [{'id': 1, 'x': 1}]}
        merged = deep_merge(base, {'a': {'c': 3}, 'items': [{'id': 1, 'y': 2}]})
        assert merged == {'a': {'b': 1, 'c': 3}, 'items': [{'id': 1, 'x': 1, 'y': 2}]}


class TestSummarizeData:
    """Verify collection trimming."""

    def test_small_collection_unchanged(self):
        data = {'items': [1, 2], 'total': 2}
        assert summarize_data(data, max_items=3) is data

    def test_large_collection_trimmed(self):
        data = {'items': list(range(5)), 'total': 20}
        assert summarize_data(data, max_items=3, remaining_message='more') == {
            'items': [0, 1, 2], 'total': 20, 'showing': 3, 'remaining': 17, 'message': 'more',
        }

    def test_plain_list_trimmed(self):
        assert summarize_data(list(range(4)), max_items=2)['remaining'] == 2

    def test_scalar_unchanged(self):
        assert summarize_data('text') == 'text'


class TestRouting:
    """Verify unknown actions and exception conversion."""

    @pytest.mark.asyncio
    async def test_unknown_action(self):
        result = await manage_entries_action(_client(Recorder({})), SETTINGS, 'explode')
        assert result['_success'] is False
        assert result['error'] == 'Unknown action: explode'
        assert 'search' in result['valid_actions']

    @pytest.mark.asyncio
    async def test_api_error_is_converted(self):
        result = await manage_entries_action(_client(Recorder({})), SETTINGS, 'get', resource_id='missing')
        assert result['_success'] is False
        assert result['status_code'] == 404
        assert result['exception_type'] == 'ContentfulApiError'

    @pytest.mark.asyncio
    async def test_missing_parameter(self):
        result = await manage_entries_action(_client(Recorder({})), SETTINGS, 'get')
        assert result['_success'] is False
        assert 'resource_id' in result['error']

    @pytest.mark.asyncio
    async def test_missing_space_id(self):
        settings = Settings(management_token='token')
        http = httpx.AsyncClient(transport=httpx.MockTransport(Recorder({})), base_url=settings.base_url)
        result = await manage_entries_action(ContentfulClient(settings, http_client=http), settings, 'search')
        assert result['_success'] is False
        assert 'spaceId is required' in result['error']


class TestEntries:
    """Verify entry search, update merge and bulk delegation."""

    @pytest.mark.asyncio
    async def test_search_caps_limit(self):
        recorder = Recorder({('GET', f'{ENV}/entries'): {'items': [{'sys': {'id': 'e1'}}], 'total': 1}})
        result = await manage_entries_action(
            _client(recorder), SETTINGS, 'search', {'query': {'content_type': 'post', 'limit': 50}},
        )
        assert result['_success'] is True
        params = recorder.requests[0][2]
        assert params == {'content_type': 'post', 'limit': '3', 'skip': '0'}

    @pytest.mark.asyncio
    async def test_update_merges_locales(self):
        current = {'sys': {'id': 'e1', 'version': 5}, 'fields': {'title': {'en-US': 'Old', 'de-DE': 'Alt'}}}
        recorder = Recorder({
            ('GET', f'{ENV}/entries/e1'): current,
            ('PUT', f'{ENV}/entries/e1'): {'sys': {'id': 'e1', 'version': 6}},
        })
        result = await manage_entries_action(
            _client(recorder), SETTINGS, 'update', {'fields': {'title': {'en-US': 'New'}}}, resource_id='e1',
        )
        assert result['_success'] is True
        put = recorder.find('PUT', f'{ENV}/entries/e1')[0]
        assert put[3] == {'fields': {'title': {'en-US': 'New', 'de-DE': 'Alt'}}}
        assert put[4]['X-Contentful-Version'] == '5'

    @pytest.mark.asyncio
    async def test_publish_list_uses_bulk_action(self, monkeypatch):
        monkeypatch.setattr(bulk_actions, 'BULK_POLL_INTERVAL', 0)
        statuses = iter(['inProgress', 'succeeded'])
        recorder = Recorder({
            ('GET', f'{ENV}/entries/e1'): {'sys': {'id': 'e1', 'version': 2}},
            ('GET', f'{ENV}/entries/e2'): {'sys': {'id': 'e2', 'version': 4}},
            ('POST', f'{ENV}/bulk_actions/publish'): {'sys': {'id': 'b1', 'status': 'created'}},
            ('GET', f'{ENV}/bulk_actions/actions/b1'): lambda request: {
                'sys': {'id': 'b1', 'status': next(statuses)},
                'succeeded': [{'sys': {'id': 'e1'}}, {'sys': {'id': 'e2'}}],
            },
        })
        result = await manage_entries_action(_client(recorder), SETTINGS, 'publish', resource_id='["e1", "e2"]')
        assert result['_success'] is True
        assert result['succeeded'] == 2
        body = recorder.find('POST', f'{ENV}/bulk_actions/publish')[0][3]
        assert body == {'entities': {'sys': {'type': 'Array'}, 'items': [
            {'sys': {'type': 'Link', 'linkType': 'Entry', 'id': 'e1', 'version': 2}},
            {'sys': {'type': 'Link', 'linkType': 'Entry', 'id': 'e2', 'version': 4}},
        ]}}

    @pytest.mark.asyncio
    async def test_publish_single_entry(self):
        recorder = Recorder({
            ('GET', f'{ENV}/entries/e1'): {'sys': {'id': 'e1', 'version': 9}},
            ('PUT', f'{ENV}/entries/e1/published'): {'sys': {'id': 'e1', 'publishedVersion': 9}},
        })
        result = await manage_entries_action(_client(recorder), SETTINGS, 'publish', resource_id='e1')
        assert result['_success'] is True
        assert recorder.find('PUT', f'{ENV}/entries/e1/published')[0][4]['X-Contentful-Version'] == '9'


class TestAssets:
    """Verify asset upload processing."""

    FILE_DATA = {'fileName': 'cat.png', 'contentType': 'image/png', 'upload': 'https://example.com/cat.png'}

    def _upload_routes(self, get_response):
        return {
            ('POST', f'{ENV}/assets'): {
                'sys': {'id': 'a1', 'version': 1},
                'fields': {'file': {'en-US': self.FILE_DATA, 'de-DE': self.FILE_DATA}},
            },
            ('PUT', f'{ENV}/assets/a1/files/en-US/process'): {},
            ('PUT', f'{ENV}/assets/a1/files/de-DE/process'): {},
            ('GET', f'{ENV}/assets/a1'): get_response,
        }

    @pytest.mark.asyncio
    async def test_upload_waits_for_file_urls(self, monkeypatch):
        monkeypatch.setattr(assets, 'PROCESS_POLL_INTERVAL', 0)
        unprocessed = {'sys': {'id': 'a1', 'version': 2}, 'fields': {'file': {'en-US': self.FILE_DATA}}}
        processed = {'sys': {'id': 'a1', 'version': 3}, 'fields': {'file': {
            'en-US': {'fileName': 'cat.png', 'url': '//images.ctfassets.net/cat.png'},
            'de-DE': {'fileName': 'cat.png', 'url': '//images.ctfassets.net/cat.png'},
        }}}
        responses = iter([unprocessed, processed])
        recorder = Recorder(self._upload_routes(lambda request: next(responses)))

        result = await manage_assets_action(
            _client(recorder), SETTINGS, 'upload', {'title': 'Cat', 'file': self.FILE_DATA},
        )

        assert result['_success'] is True
        assert result['asset']['sys']['version'] == 3
        assert 'message' not in result
        assert len(recorder.find('GET', f'{ENV}/assets/a1')) == 2
        assert recorder.requests[0][3] == {'fields': {'title': {'en-US': 'Cat'}, 'file': {'en-US': self.FILE_DATA}}}
        assert len(recorder.find('PUT', f'{ENV}/assets/a1/files/de-DE/process')) == 1

    @pytest.mark.asyncio
    async def test_upload_wait_is_bounded(self, monkeypatch):
        monkeypatch.setattr(assets, 'PROCESS_POLL_INTERVAL', 0)
        monkeypatch.setattr(assets, 'PROCESS_POLL_MAX_ATTEMPTS', 3)
        recorder = Recorder(self._upload_routes({'sys': {'id': 'a1', 'version': 2}}))

        result = await manage_assets_action(
            _client(recorder), SETTINGS, 'upload', {'title': 'Cat', 'file': self.FILE_DATA},
        )

        assert result['_success'] is True
        assert 'still processing' in result['message']
        assert len(recorder.find('GET', f'{ENV}/assets/a1')) == 3

    @pytest.mark.asyncio
    async def test_upload_requires_file_keys(self):
        result = await manage_assets_action(
            _client(Recorder({})), SETTINGS, 'upload', {'title': 'Cat', 'file': {'fileName': 'cat.png'}},
        )
        assert result['_success'] is False
        assert 'file.contentType' in result['error']


class TestBulkActions:
    """Verify bulk action bounds and validate payloads."""

    @pytest.mark.asyncio
    async def test_validate_sends_publish_action(self, monkeypatch):
        monkeypatch.setattr(bulk_actions, 'BULK_POLL_INTERVAL', 0)
        recorder = Recorder({
            ('GET', f'{ENV}/entries/e1'): {'sys': {'id': 'e1', 'version': 1}},
            ('POST', f'{ENV}/bulk_actions/validate'): {'sys': {'id': 'b2'}},
            ('GET', f'{ENV}/bulk_actions/actions/b2'): {'sys': {'id': 'b2', 'status': 'succeeded'}},
        })
        result = await bulk_actions.manage_bulk_actions_action(
            _client(recorder), SETTINGS, 'validate', {'entry_ids': ['e1']},
        )
        assert result['status'] == 'succeeded'
        body = recorder.find('POST', f'{ENV}/bulk_actions/validate')[0][3]
        assert body['action'] == 'publish'

    @pytest.mark.asyncio
    async def test_polling_is_bounded(self, monkeypatch):
        monkeypatch.setattr(bulk_actions, 'BULK_POLL_INTERVAL', 0)
        monkeypatch.setattr(bulk_actions, 'BULK_POLL_MAX_ATTEMPTS', 3)
        recorder = Recorder({
            ('GET', f'{ENV}/assets/a1'): {'sys': {'id': 'a1', 'version': 1}},
            ('POST', f'{ENV}/bulk_actions/unpublish'): {'sys': {'id': 'b3'}},
            ('GET', f'{ENV}/bulk_actions/actions/b3'): {'sys': {'id': 'b3', 'status': 'inProgress'}},
        })
        result = await bulk_actions.manage_bulk_actions_action(
            _client(recorder), SETTINGS, 'unpublish', {'entities': [{'id': 'a1', 'type': 'Asset'}]},
        )
        assert result['status'] == 'inProgress'
        assert len(recorder.find('GET', f'{ENV}/bulk_actions/actions/b3')) == 3

    def test_invalid_entity_type(self):
        with pytest.raises(ValueError, match='Invalid entity type'):
            bulk_actions.normalize_entities([{'id': 'x', 'type': 'ContentType'}])

    def test_accepts_sys_wrapped_entities(self):
        assert bulk_actions.normalize_entities([{'sys': {'id': 'a', 'type': 'Asset'}}, 'e']) == [
            {'id': 'a', 'type': 'Asset'}, {'id': 'e', 'type': 'Entry'},
        ]


class TestContentTypes:
    """Verify content type creation IDs and update merging."""

    def test_camel_case(self):
        assert to_camel_case('Blog Post') == 'blogPost'
        assert to_camel_case('  product   LISTING page ') == 'productListingPage'

    @pytest.mark.asyncio
    async def test_create_uses_camel_case_id(self):
        recorder = Recorder({('PUT', f'{ENV}/content_types/blogPost'): {'sys': {'id': 'blogPost'}}})
        fields = [{'id': 'title', 'name': 'Title', 'type': 'Symbol'}]
        result = await manage_content_types_action(
            _client(recorder), SETTINGS, 'create', {'name': 'Blog Post', 'fields': fields},
        )
        assert result['_success'] is True
        body = recorder.requests[0][3]
        assert body['displayField'] == 'title'
        assert body['description'] == ''

    @pytest.mark.asyncio
    async def test_update_merges_fields_and_keeps_metadata(self):
        current = {
            'sys': {'id': 'post', 'version': 3},
            'name': 'Post',
            'displayField': 'title',
            'description': 'A post',
            'metadata': {'annotations': {'ContentType': []}},
            'fields': [{'id': 'title', 'type': 'Symbol', 'required': True}, {'id': 'body', 'type': 'Text'}],
        }
        recorder = Recorder({
            ('GET', f'{ENV}/content_types/post'): current,
            ('PUT', f'{ENV}/content_types/post'): {'sys': {'id': 'post', 'version': 4}},
        })
        await manage_content_types_action(
            _client(recorder), SETTINGS, 'update', {'fields': [{'id': 'title', 'required': False}]},
            resource_id='post',
        )
        method, path, _, body, headers = recorder.find('PUT', f'{ENV}/content_types/post')[0]
        assert headers['X-Contentful-Version'] == '3'
        assert body['fields'][0] == {'id': 'title', 'type': 'Symbol', 'required': False}
        assert body['fields'][1] == {'id': 'body', 'type': 'Text'}
        assert body['metadata'] == current['metadata']
        assert body['name'] == 'Post'


class TestComments:
    """Verify local pagination and reply headers."""

    @pytest.mark.asyncio
    async def test_list_paginates_locally(self):
        items = [{'sys': {'id': f'c{i}'}} for i in range(5)]
        recorder = Recorder({('GET', f'{ENV}/entries/e1/comments'): {'items': items, 'total': 5}})
        result = await manage_comments_action(
            _client(recorder), SETTINGS, 'list', {'limit': 2, 'skip': 1}, resource_id='e1',
        )
        assert [c['sys']['id'] for c in result['items']] == ['c1', 'c2']
        assert result['remaining'] == 2
        assert result['skip'] == 3
        assert recorder.requests[0][2] == {'status': 'active'}

    @pytest.mark.asyncio
    async def test_list_all_statuses_sends_no_filter(self):
        recorder = Recorder({('GET', f'{ENV}/entries/e1/comments'): {'items': [], 'total': 0}})
        result = await manage_comments_action(_client(recorder), SETTINGS, 'list', {'status': 'all'}, resource_id='e1')
        assert recorder.requests[0][2] == {}
        assert 'skip' not in result

    @pytest.mark.asyncio
    async def test_reply_sets_parent_header(self):
        recorder = Recorder({('POST', f'{ENV}/entries/e1/comments'): {'sys': {'id': 'c9'}}})
        await manage_comments_action(
            _client(recorder), SETTINGS, 'create', {'body': 'Agreed', 'parent': 'c1'}, resource_id='e1',
        )
        _, _, _, body, headers = recorder.requests[0]
        assert body == {'body': 'Agreed', 'status': 'active'}
        assert headers['X-Contentful-Parent-Id'] == 'c1'


class TestSpaces:
    """Verify environment creation."""

    @pytest.mark.asyncio
    async def test_create_environment(self):
        recorder = Recorder({('PUT', '/spaces/space1/environments/staging'): {'sys': {'id': 'staging'}}})
        result = await manage_spaces_action(
            _client(recorder), SETTINGS, 'create_environment', {'name': 'Staging'}, environment_id='staging',
        )
        assert result['_success'] is True
        assert recorder.requests[0][3] == {'name': 'Staging'}


class TestAiActionCategory:
    """Verify the static AI Action tool."""

    @pytest.mark.asyncio
    async def test_invoke_with_raw_variables(self):
        recorder = Recorder({
            ('POST', f'{ENV}/ai/actions/act1/invoke'): {
                'sys': {'id': 'inv1', 'status': 'COMPLETED'},
                'result': {'type': 'text', 'content': 'Done', 'metadata': {}},
            },
        })
        raw = [{'id': 'v1', 'value': {'entityType': 'Entry', 'entityId': 'e1'}}]
        result = await manage_ai_actions_action(
            _client(recorder), SETTINGS, 'invoke', {'rawVariables': raw}, resource_id='act1',
        )
        assert result['content'] == 'Done'
        assert recorder.requests[0][3] == {'outputFormat': 'Markdown', 'variables': raw}

    @pytest.mark.asyncio
    async def test_invoke_with_simple_variables(self):
        recorder = Recorder({
            ('POST', f'{ENV}/ai/actions/act1/invoke'): {'sys': {'id': 'inv1', 'status': 'SCHEDULED'}},
        })
        result = await manage_ai_actions_action(
            _client(recorder), SETTINGS, 'invoke',
            {'variables': {'v1': 'hello'}, 'waitForCompletion': False}, resource_id='act1',
        )
        assert result['status'] == 'SCHEDULED'
        assert recorder.requests[0][3]['variables'] == [{'id': 'v1', 'value': 'hello'}]

    @pytest.mark.asyncio
    async def test_invoke_rejects_both_variable_shapes(self):
        result = await manage_ai_actions_action(
            _client(Recorder({})), SETTINGS, 'invoke',
            {'variables': {'v1': 'x'}, 'rawVariables': []}, resource_id='act1',
        )
        assert result['_success'] is False
        assert 'not both' in result['error']

    @pytest.mark.asyncio
    async def test_delete_uses_current_version(self):
        recorder = Recorder({
            ('GET', '/spaces/space1/ai/actions/act1'): {'sys': {'id': 'act1', 'version': 4}},
            ('DELETE', '/spaces/space1/ai/actions/act1'): {},
        })
        result = await manage_ai_actions_action(_client(recorder), SETTINGS, 'delete', resource_id='act1')
        assert result['_success'] is True
        assert recorder.find('DELETE', '/spaces/space1/ai/actions/act1')[0][4]['X-Contentful-Version'] == '4'


class TestGraphqlQuery:
    """Verify GraphQL error surfacing."""

    @pytest.mark.asyncio
    async def test_errors_are_reported(self):
        def handler(request):
            return httpx.Response(200, json={'data': None, 'errors': [{'message': 'Unknown field "x"'}]})

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=SETTINGS.base_url)
        result = await query_graphql_action(ContentfulClient(SETTINGS, http_client=http), SETTINGS, '{ x }')
        assert result['_success'] is False
        assert result['error'] == 'Unknown field "x"'

    @pytest.mark.asyncio
    async def test_data_is_returned(self):
        def handler(request):
            return httpx.Response(200, json={'data': {'postCollection': {'total': 1}}})

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=SETTINGS.base_url)
        result = await query_graphql_action(ContentfulClient(SETTINGS, http_client=http), SETTINGS, '{ postCollection { total } }')
        assert result == {'_success': True, 'data': {'postCollection': {'total': 1}}}

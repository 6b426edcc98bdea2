"""
Async client for the Contentful Management API.

A thin layer over httpx: it builds URLs, adds auth and versioning headers and
turns non-2xx responses into ContentfulApiError. It does not retry; callers
decide what to do with a failure.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import Settings


logger = logging.getLogger(__name__)

CMA_CONTENT_TYPE = "application/vnd.contentful.management.v1+json"


class ContentfulApiError(Exception):
    """Non-2xx response (or transport failure) from a Contentful API."""

    def __init__(self, message: str, status_code: int = 0, details: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ContentfulApiError":
        """Use the remote message when the body carries one, else a generic fallback."""
        details = None
        message = None
        try:
            details = response.json()
        except ValueError:
            details = response.text or None
        if isinstance(details, dict):
            message = details.get("message")
            if not message and isinstance(details.get("sys"), dict):
                message = details["sys"].get("id")
        if not message:
            message = f"HTTP {response.status_code} from Contentful API"
        return cls(message, status_code=response.status_code, details=details)


def _version_header(version: int) -> Dict[str, str]:
    return {"X-Contentful-Version": str(version)}


class ContentfulClient:
    """Management API client bound to one access token and host."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._http = http_client or httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.timeout,
        )

    async def aclose(self):
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Send one request and return the decoded JSON body (None for empty bodies)."""
        all_headers = {
            "Authorization": f"Bearer {self.settings.management_token}",
            "Content-Type": CMA_CONTENT_TYPE,
        }
        if headers:
            all_headers.update(headers)

        try:
            response = await self._http.request(
                method, path, json=json, params=params, headers=all_headers
            )
        except httpx.HTTPError as e:
            raise ContentfulApiError(f"Request to Contentful failed: {e}") from e

        if response.status_code >= 400:
            error = ContentfulApiError.from_response(response)
            logger.info("%s %s -> HTTP %s: %s", method, path, response.status_code, error.message)
            raise error

        if not response.content:
            return None
        return response.json()

    @staticmethod
    def _env_path(space_id: str, environment_id: str) -> str:
        return f"/spaces/{space_id}/environments/{environment_id}"

    # ------------------------------------------------------------------
    # Spaces & environments
    # ------------------------------------------------------------------

    async def list_spaces(self) -> Dict[str, Any]:
        return await self.request("GET", "/spaces")

    async def get_space(self, space_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"/spaces/{space_id}")

    async def list_environments(self, space_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"/spaces/{space_id}/environments")

    async def create_environment(self, space_id: str, environment_id: str, name: str) -> Dict[str, Any]:
        return await self.request(
            "PUT", f"/spaces/{space_id}/environments/{environment_id}", json={"name": name}
        )

    async def delete_environment(self, space_id: str, environment_id: str) -> None:
        await self.request("DELETE", f"/spaces/{space_id}/environments/{environment_id}")

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    async def list_entries(self, space_id: str, environment_id: str,
                           query: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request(
            "GET", f"{self._env_path(space_id, environment_id)}/entries", params=query
        )

    async def get_entry(self, space_id: str, environment_id: str, entry_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"{self._env_path(space_id, environment_id)}/entries/{entry_id}")

    async def create_entry(self, space_id: str, environment_id: str, content_type_id: str,
                           fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request(
            "POST",
            f"{self._env_path(space_id, environment_id)}/entries",
            json={"fields": fields},
            headers={"X-Contentful-Content-Type": content_type_id},
        )

    async def update_entry(self, space_id: str, environment_id: str, entry_id: str,
                           fields: Dict[str, Any], version: int) -> Dict[str, Any]:
        return await self.request(
            "PUT",
            f"{self._env_path(space_id, environment_id)}/entries/{entry_id}",
            json={"fields": fields},
            headers=_version_header(version),
        )

    async def delete_entry(self, space_id: str, environment_id: str, entry_id: str) -> None:
        await self.request("DELETE", f"{self._env_path(space_id, environment_id)}/entries/{entry_id}")

    async def publish_entry(self, space_id: str, environment_id: str, entry_id: str,
                            version: int) -> Dict[str, Any]:
        return await self.request(
            "PUT",
            f"{self._env_path(space_id, environment_id)}/entries/{entry_id}/published",
            headers=_version_header(version),
        )

    async def unpublish_entry(self, space_id: str, environment_id: str, entry_id: str,
                              version: int) -> Dict[str, Any]:
        return await self.request(
            "DELETE",
            f"{self._env_path(space_id, environment_id)}/entries/{entry_id}/published",
            headers=_version_header(version),
        )

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    async def list_assets(self, space_id: str, environment_id: str,
                          query: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request(
            "GET", f"{self._env_path(space_id, environment_id)}/assets", params=query
        )

    async def get_asset(self, space_id: str, environment_id: str, asset_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"{self._env_path(space_id, environment_id)}/assets/{asset_id}")

    async def create_asset(self, space_id: str, environment_id: str,
                           fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request(
            "POST", f"{self._env_path(space_id, environment_id)}/assets", json={"fields": fields}
        )

    async def update_asset(self, space_id: str, environment_id: str, asset_id: str,
                           fields: Dict[str, Any], version: int) -> Dict[str, Any]:
        return await self.request(
            "PUT",
            f"{self._env_path(space_id, environment_id)}/assets/{asset_id}",
            json={"fields": fields},
            headers=_version_header(version),
        )

    async def process_asset(self, space_id: str, environment_id: str, asset_id: str,
                            locale: str, version: int) -> None:
        await self.request(
            "PUT",
            f"{self._env_path(space_id, environment_id)}/assets/{asset_id}/files/{locale}/process",
            headers=_version_header(version),
        )

    async def delete_asset(self, space_id: str, environment_id: str, asset_id: str) -> None:
        await self.request("DELETE", f"{self._env_path(space_id, environment_id)}/assets/{asset_id}")

    async def publish_asset(self, space_id: str, environment_id: str, asset_id: str,
                            version: int) -> Dict[str, Any]:
        return await self.request(
            "PUT",
            f"{self._env_path(space_id, environment_id)}/assets/{asset_id}/published",
            headers=_version_header(version),
        )

    async def unpublish_asset(self, space_id: str, environment_id: str, asset_id: str,
                              version: int) -> Dict[str, Any]:
        return await self.request(
            "DELETE",
            f"{self._env_path(space_id, environment_id)}/assets/{asset_id}/published",
            headers=_version_header(version),
        )

    # ------------------------------------------------------------------
    # Content types
    # ------------------------------------------------------------------

    async def list_content_types(self, space_id: str, environment_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"{self._env_path(space_id, environment_id)}/content_types")

    async def get_content_type(self, space_id: str, environment_id: str,
                               content_type_id: str) -> Dict[str, Any]:
        return await self.request(
            "GET", f"{self._env_path(space_id, environment_id)}/content_types/{content_type_id}"
        )

    async def put_content_type(self, space_id: str, environment_id: str, content_type_id: str,
                               body: Dict[str, Any], version: Optional[int] = None) -> Dict[str, Any]:
        """Create (no version) or update (with version) a content type by ID."""
        return await self.request(
            "PUT",
            f"{self._env_path(space_id, environment_id)}/content_types/{content_type_id}",
            json=body,
            headers=_version_header(version) if version is not None else None,
        )

    async def delete_content_type(self, space_id: str, environment_id: str,
                                  content_type_id: str) -> None:
        await self.request(
            "DELETE", f"{self._env_path(space_id, environment_id)}/content_types/{content_type_id}"
        )

    async def publish_content_type(self, space_id: str, environment_id: str,
                                   content_type_id: str, version: int) -> Dict[str, Any]:
        return await self.request(
            "PUT",
            f"{self._env_path(space_id, environment_id)}/content_types/{content_type_id}/published",
            headers=_version_header(version),
        )

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    async def list_comments(self, space_id: str, environment_id: str, entry_id: str,
                            body_format: str = "plain-text",
                            status: Optional[str] = None) -> Dict[str, Any]:
        params = {"status": status} if status else None
        return await self.request(
            "GET",
            f"{self._env_path(space_id, environment_id)}/entries/{entry_id}/comments",
            params=params,
            headers={"X-Contentful-Comment-Body-Format": body_format},
        )

    async def get_comment(self, space_id: str, environment_id: str, entry_id: str,
                          comment_id: str, body_format: str = "plain-text") -> Dict[str, Any]:
        return await self.request(
            "GET",
            f"{self._env_path(space_id, environment_id)}/entries/{entry_id}/comments/{comment_id}",
            headers={"X-Contentful-Comment-Body-Format": body_format},
        )

    async def create_comment(self, space_id: str, environment_id: str, entry_id: str,
                             body: str, parent_id: Optional[str] = None) -> Dict[str, Any]:
        headers = {"X-Contentful-Parent-Id": parent_id} if parent_id else None
        return await self.request(
            "POST",
            f"{self._env_path(space_id, environment_id)}/entries/{entry_id}/comments",
            json={"body": body, "status": "active"},
            headers=headers,
        )

    async def update_comment(self, space_id: str, environment_id: str, entry_id: str,
                             comment_id: str, data: Dict[str, Any], version: int) -> Dict[str, Any]:
        return await self.request(
            "PUT",
            f"{self._env_path(space_id, environment_id)}/entries/{entry_id}/comments/{comment_id}",
            json=data,
            headers=_version_header(version),
        )

    async def delete_comment(self, space_id: str, environment_id: str, entry_id: str,
                             comment_id: str, version: int) -> None:
        await self.request(
            "DELETE",
            f"{self._env_path(space_id, environment_id)}/entries/{entry_id}/comments/{comment_id}",
            headers=_version_header(version),
        )

    # ------------------------------------------------------------------
    # Bulk actions
    # ------------------------------------------------------------------

    async def create_bulk_action(self, space_id: str, environment_id: str, kind: str,
                                 body: Dict[str, Any]) -> Dict[str, Any]:
        """kind is one of publish, unpublish, validate."""
        return await self.request(
            "POST", f"{self._env_path(space_id, environment_id)}/bulk_actions/{kind}", json=body
        )

    async def get_bulk_action(self, space_id: str, environment_id: str,
                              bulk_action_id: str) -> Dict[str, Any]:
        return await self.request(
            "GET", f"{self._env_path(space_id, environment_id)}/bulk_actions/actions/{bulk_action_id}"
        )

    # ------------------------------------------------------------------
    # AI Actions
    # ------------------------------------------------------------------

    async def list_ai_actions(self, space_id: str, environment_id: str = "master",
                              limit: int = 100, skip: int = 0,
                              status: Optional[str] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {"limit": limit, "skip": skip}
        if status:
            params["status"] = status
        return await self.request("GET", f"/spaces/{space_id}/ai/actions", params=params)

    async def list_all_ai_actions(self, space_id: str, environment_id: str = "master",
                                  status: Optional[str] = "published",
                                  page_size: int = 100) -> List[Dict[str, Any]]:
        """Follow skip/limit pagination until every action has been fetched."""
        items: List[Dict[str, Any]] = []
        skip = 0
        while True:
            page = await self.list_ai_actions(
                space_id, environment_id, limit=page_size, skip=skip, status=status
            )
            batch = (page or {}).get("items") or []
            items.extend(batch)
            total = (page or {}).get("total")
            skip += len(batch)
            if not batch or len(batch) < page_size or (total is not None and skip >= total):
                return items

    async def get_ai_action(self, space_id: str, environment_id: str,
                            ai_action_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"/spaces/{space_id}/ai/actions/{ai_action_id}")

    async def create_ai_action(self, space_id: str, action_data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("POST", f"/spaces/{space_id}/ai/actions", json=action_data)

    async def update_ai_action(self, space_id: str, ai_action_id: str, version: int,
                               action_data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request(
            "PUT",
            f"/spaces/{space_id}/ai/actions/{ai_action_id}",
            json=action_data,
            headers=_version_header(version),
        )

    async def delete_ai_action(self, space_id: str, ai_action_id: str, version: int) -> None:
        await self.request(
            "DELETE", f"/spaces/{space_id}/ai/actions/{ai_action_id}", headers=_version_header(version)
        )

    async def publish_ai_action(self, space_id: str, ai_action_id: str, version: int) -> Dict[str, Any]:
        return await self.request(
            "PUT",
            f"/spaces/{space_id}/ai/actions/{ai_action_id}/published",
            json={},
            headers=_version_header(version),
        )

    async def unpublish_ai_action(self, space_id: str, ai_action_id: str) -> Dict[str, Any]:
        return await self.request("DELETE", f"/spaces/{space_id}/ai/actions/{ai_action_id}/published")

    async def invoke_ai_action(self, space_id: str, environment_id: str, ai_action_id: str,
                               payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request(
            "POST",
            f"{self._env_path(space_id, environment_id)}/ai/actions/{ai_action_id}/invoke",
            json=payload,
            headers={"X-Contentful-Include-Invocation-Metadata": "true"},
        )

    async def get_ai_action_invocation(self, space_id: str, environment_id: str,
                                       ai_action_id: str, invocation_id: str) -> Dict[str, Any]:
        return await self.request(
            "GET",
            f"{self._env_path(space_id, environment_id)}/ai/actions/{ai_action_id}"
            f"/invocations/{invocation_id}",
            headers={"X-Contentful-Include-Invocation-Metadata": "true"},
        )

    # ------------------------------------------------------------------
    # GraphQL Content API
    # ------------------------------------------------------------------

    async def graphql_query(self, space_id: str, environment_id: str, query: str,
                            variables: Optional[Dict[str, Any]] = None,
                            access_token: Optional[str] = None) -> httpx.Response:
        """POST a query to the GraphQL Content API and hand back the raw response.

        GraphQL reports query errors inside a 200 body, so status handling is
        left to the caller.
        """
        token = access_token or self.settings.delivery_token or self.settings.management_token
        url = (
            f"{self.settings.graphql_url}/content/v1/spaces/{space_id}"
            f"/environments/{environment_id}"
        )
        try:
            return await self._http.post(
                url,
                json={"query": query, "variables": variables or {}},
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as e:
            raise ContentfulApiError(f"GraphQL request failed: {e}") from e

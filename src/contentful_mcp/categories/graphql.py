"""
GraphQL Content API query tool.

Queries go to the delivery GraphQL endpoint, authenticated with the
delivery token when one is configured and the management token otherwise.
"""

import logging
from typing import Any, Dict, Optional

from ..client import ContentfulApiError, ContentfulClient
from ..config import Settings


logger = logging.getLogger(__name__)


async def query_graphql_action(
    client: ContentfulClient,
    settings: Settings,
    query: str,
    variables: Optional[Dict[str, Any]] = None,
    space_id: Optional[str] = None,
    environment_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Run one GraphQL query; GraphQL 'errors' are reported as a failure."""
    if not query or not query.strip():
        return {"_success": False, "error": "query is required"}

    try:
        space, environment = settings.resolve_space_env(space_id, environment_id)
        response = await client.graphql_query(space, environment, query, variables)
    except (ContentfulApiError, ValueError) as e:
        return {"_success": False, "error": str(e), "exception_type": type(e).__name__}

    try:
        body = response.json()
    except ValueError:
        return {
            "_success": False,
            "error": f"GraphQL endpoint returned HTTP {response.status_code} with a non-JSON body",
            "status_code": response.status_code,
        }

    if response.status_code >= 400 and not (isinstance(body, dict) and body.get("errors")):
        message = body.get("message") if isinstance(body, dict) else None
        return {
            "_success": False,
            "error": message or f"HTTP {response.status_code} from GraphQL API",
            "status_code": response.status_code,
        }

    errors = body.get("errors") if isinstance(body, dict) else None
    if errors:
        logger.info("GraphQL query returned %d error(s)", len(errors))
        return {
            "_success": False,
            "error": "; ".join(e.get("message", str(e)) if isinstance(e, dict) else str(e) for e in errors),
            "errors": errors,
            "data": body.get("data"),
        }

    return {"_success": True, "data": body.get("data")}

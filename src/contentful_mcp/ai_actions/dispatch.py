"""
AI Action tool dispatch: load the catalog, list tool schemas, run invocations.

invoke_tool() is the error boundary. Anything raised below it comes back
as a {"_success": False, ...} result instead of an exception.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..client import ContentfulApiError, ContentfulClient
from ..config import Settings
from .errors import AiActionError, PollingCancelledError, PollingExhaustedError, UnknownActionError
from .models import AiAction
from .naming import build_action_mapping
from .polling import SleepFunc, invocation_id, invocation_status, invoke_and_wait
from .registry import ActionRegistry
from .schema import action_id_from_tool_name, build_tool_schema
from .translate import map_to_invocation, translate_parameters


logger = logging.getLogger(__name__)

ReloadCallback = Callable[[], Awaitable[Any]]


# ============================================================================
# Result formatting
# ============================================================================

def format_invocation_result(ai_action_id: str, result: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten an invocation into the shape returned to MCP callers."""
    status = invocation_status(result)
    payload = (result or {}).get("result") or {}
    formatted: Dict[str, Any] = {
        "_success": status != "FAILED" and status != "CANCELLED",
        "ai_action_id": ai_action_id,
        "invocation_id": invocation_id(result),
        "status": status,
    }
    if status in ("COMPLETED", None) and payload:
        formatted["type"] = payload.get("type")
        formatted["content"] = payload.get("content")
        formatted["metadata"] = payload.get("metadata") or {}
        formatted["note"] = (
            "This content has NOT been applied to any entry. "
            "Update the entry yourself if it should be saved."
        )
    elif status == "FAILED":
        error = (result.get("sys") or {}).get("errorCode") or payload.get("message")
        formatted["error"] = f"AI Action invocation failed{': ' + error if error else ''}"
    elif status == "CANCELLED":
        formatted["error"] = "AI Action invocation was cancelled"
    else:
        formatted["message"] = (
            f"Invocation is {status}. Fetch it later with "
            f"manage_ai_actions(action='get_invocation') and this invocation_id."
        )
    return formatted


def _payload_id(item: Any) -> str:
    if isinstance(item, dict) and isinstance(item.get("sys"), dict):
        return str(item["sys"].get("id") or "<no id>")
    return "<no id>"


def error_result(message: str, exc: Optional[BaseException] = None, **extra) -> Dict[str, Any]:
    result: Dict[str, Any] = {"_success": False, "error": message}
    if exc is not None:
        result["exception_type"] = type(exc).__name__
    result.update(extra)
    return result


# ============================================================================
# Toolset
# ============================================================================

class AiActionToolset:
    """Owns the action registry for one deployment and runs invocations."""

    def __init__(self, settings: Settings, client: ContentfulClient,
                 registry: Optional[ActionRegistry] = None,
                 sleep: Optional[SleepFunc] = None):
        self.settings = settings
        self.client = client
        self.registry = registry or ActionRegistry(settings.space_id, settings.environment_id)
        self._sleep = sleep
        self._shutdown = asyncio.Event()

    @property
    def enabled(self) -> bool:
        return self.settings.ai_actions_enabled

    @property
    def cancel_event(self) -> asyncio.Event:
        return self._shutdown

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def load_actions(self) -> int:
        """Reload every published AI Action for the configured space.

        Returns the number of actions loaded (0 when AI Actions are disabled).
        API errors propagate and the previous catalog stays in place.
        """
        if not self.enabled:
            logger.info("AI Action tools disabled (DISABLE_AI_ACTIONS set or no SPACE_ID)")
            return 0

        space_id, environment_id = self.settings.resolve_space_env()
        items = await self.client.list_all_ai_actions(space_id, environment_id, status="published")

        actions: List[AiAction] = []
        for item in items:
            try:
                action = AiAction.from_dict(item)
                # A definition that cannot produce a tool schema is dropped on its own
                build_tool_schema(action, build_action_mapping(action))
            except Exception as e:
                logger.warning("Skipping malformed AI Action %s: %s", _payload_id(item), e)
                continue
            actions.append(action)
        return self.registry.reload(actions)

    def list_tool_schemas(self) -> List[Dict[str, Any]]:
        return [schema.to_dict() for schema in self.registry.list_tool_schemas()]

    async def run_refresh_loop(self, on_reload: Optional[ReloadCallback] = None) -> None:
        """Reload the catalog every refresh_interval seconds until shutdown()."""
        interval = self.settings.refresh_interval
        while not self._shutdown.is_set():
            try:
                await asyncio.wait_for(self._shutdown.wait(), timeout=interval)
                break
            except asyncio.TimeoutError:
                pass
            try:
                count = await self.load_actions()
                logger.info("Refreshed AI Actions: %d loaded", count)
                if on_reload is not None:
                    await on_reload()
            except Exception:
                logger.exception("AI Action refresh failed; keeping previous catalog")

    def shutdown(self) -> None:
        """Stop the refresh loop and abort in-flight polling."""
        self._shutdown.set()

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------

    async def invoke_tool(self, tool_name: str, arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        ai_action_id = action_id_from_tool_name(tool_name)
        arguments = arguments or {}
        try:
            return await self._invoke(ai_action_id, arguments)
        except PollingExhaustedError as e:
            return error_result(
                str(e), e,
                ai_action_id=ai_action_id,
                invocation_id=e.invocation_id,
                attempts=e.attempts,
                last_status=e.last_status,
                hint="The invocation may still finish; fetch it later with "
                     "manage_ai_actions(action='get_invocation').",
            )
        except PollingCancelledError as e:
            return error_result(str(e), e, ai_action_id=ai_action_id, invocation_id=e.invocation_id)
        except ContentfulApiError as e:
            return error_result(e.message, e, ai_action_id=ai_action_id, status_code=e.status_code)
        except (AiActionError, ValueError) as e:
            return error_result(str(e), e, ai_action_id=ai_action_id)
        except Exception as e:
            logger.exception("AI Action %s invocation failed", ai_action_id)
            return error_result(f"AI Action '{ai_action_id}' failed: {str(e)}", e)

    async def _invoke(self, ai_action_id: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        # One generation for the whole call, even if a refresh lands mid-poll
        snapshot = self.registry.snapshot()
        action = snapshot.get(ai_action_id)
        if action is None:
            raise UnknownActionError(ai_action_id)

        mapping = snapshot.mapping(ai_action_id)
        translated = translate_parameters(mapping, arguments)
        payload = map_to_invocation(action, translated, mapping)
        space_id, environment_id = self.settings.resolve_space_env(
            translated.get("spaceId"), translated.get("environmentId")
        )
        wait = translated.get("waitForCompletion", True) is not False

        result = await invoke_and_wait(
            self.client,
            space_id,
            environment_id,
            ai_action_id,
            payload,
            wait_for_completion=wait,
            max_attempts=self.settings.poll_max_attempts,
            initial_delay=self.settings.poll_initial_delay,
            max_delay=self.settings.poll_max_delay,
            cancel_event=self._shutdown,
            sleep=self._sleep,
        )
        return format_invocation_result(ai_action_id, result)

"""
Helpers shared by the category routers.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..client import ContentfulApiError, ContentfulClient
from ..config import Settings


Handler = Callable[..., Awaitable[Dict[str, Any]]]


# ============================================================================
# Routing
# ============================================================================

async def route_action(
    actions: Dict[str, Handler],
    action: str,
    client: ContentfulClient,
    settings: Settings,
    config_data: Optional[Dict[str, Any]] = None,
    **kwargs,
) -> Dict[str, Any]:
    """Dispatch to actions[action] and turn any exception into an error dict."""
    if config_data is None:
        config_data = {}

    # Explicit keyword arguments win over config keys
    merged = {**config_data, **{k: v for k, v in kwargs.items() if v is not None}}

    handler = actions.get(action)
    if not handler:
        return {
            "_success": False,
            "error": f"Unknown action: {action}",
            "valid_actions": list(actions.keys()),
        }

    try:
        return await handler(client, settings, **merged)
    except ContentfulApiError as e:
        return {
            "_success": False,
            "error": f"Action '{action}' failed: {e.message}",
            "status_code": e.status_code,
            "exception_type": type(e).__name__,
        }
    except Exception as e:
        return {
            "_success": False,
            "error": f"Action '{action}' failed: {str(e)}",
            "exception_type": type(e).__name__,
        }


def resolve_space_env(settings: Settings, kwargs: Dict[str, Any]):
    """(space_id, environment_id) for one call; accepts snake or camel keys."""
    return settings.resolve_space_env(
        kwargs.get("space_id") or kwargs.get("spaceId"),
        kwargs.get("environment_id") or kwargs.get("environmentId"),
    )


def require(kwargs: Dict[str, Any], *names: str) -> List[Any]:
    """Fetch required parameters, raising ValueError naming the missing ones."""
    missing = [n for n in names if kwargs.get(n) in (None, "")]
    if missing:
        raise ValueError(f"Missing required parameter(s): {', '.join(missing)}")
    return [kwargs[n] for n in names]


def version_of(entity: Dict[str, Any]) -> int:
    return (entity.get("sys") or {}).get("version")


# ============================================================================
# Summaries
# ============================================================================

def summarize_data(data: Any, max_items: int = 10,
                   remaining_message: str = "To see more items, please ask me to retrieve them.") -> Any:
    """Trim a collection to max_items and say how many were left out.

    Collections ({items, total}) and plain lists are trimmed; anything else,
    or a collection already within the limit, comes back unchanged.
    """
    if isinstance(data, dict) and "items" in data and "total" in data:
        items = data["items"]
        total = data["total"]
        if len(items) <= max_items:
            return data
        return {
            "items": items[:max_items],
            "total": total,
            "showing": max_items,
            "remaining": total - max_items,
            "message": remaining_message,
        }

    if isinstance(data, list):
        if len(data) <= max_items:
            return data
        return {
            "items": data[:max_items],
            "total": len(data),
            "showing": max_items,
            "remaining": len(data) - max_items,
            "message": remaining_message,
        }

    return data


# ============================================================================
# Merging
# ============================================================================

def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override into base dict. Override values take precedence.

    For lists of dicts, items are matched by 'id' and merged individually so
    that sibling items in the base are preserved.
    """
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = deep_merge(merged[key], value)
        elif key in merged and isinstance(merged[key], list) and isinstance(value, list):
            merged[key] = merge_lists(merged[key], value)
        else:
            merged[key] = value
    return merged


def merge_lists(base_list: list, override_list: list, id_key: str = "id") -> list:
    """Merge two lists of dicts on id_key, keeping base order.

    Matching items are deep-merged, new override items are appended. Lists
    whose items are not dicts carrying id_key are replaced wholesale.
    """
    if not base_list or not override_list:
        return override_list if override_list else base_list

    if not all(isinstance(item, dict) and id_key in item for item in base_list + override_list):
        return override_list

    override_by_id = {item[id_key]: item for item in override_list}
    seen = set()
    result = []
    for item in base_list:
        item_id = item[id_key]
        if item_id in override_by_id:
            result.append(deep_merge(item, override_by_id[item_id]))
            seen.add(item_id)
        else:
            result.append(item)
    for item in override_list:
        if item[id_key] not in seen:
            result.append(item)
    return result


def merge_localized_fields(current: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """Merge {field: {locale: value}} maps one locale at a time.

    Locales not mentioned in updates keep their current values. A locale
    value is replaced as a whole, it is not merged further.
    """
    merged = {name: dict(locales) if isinstance(locales, dict) else locales
              for name, locales in current.items()}
    for name, locales in updates.items():
        if isinstance(locales, dict) and isinstance(merged.get(name), dict):
            merged[name].update(locales)
        else:
            merged[name] = locales
    return merged

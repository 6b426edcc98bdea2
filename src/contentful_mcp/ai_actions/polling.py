"""
Invoke an AI Action and poll until the invocation finishes.

Polls run one at a time with backoff delay = min(delay * 1.5, max_delay).
The budget is an attempt count, not a deadline. A failed poll request is
not retried; the ContentfulApiError propagates to the caller.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from .errors import AiActionError, PollingCancelledError, PollingExhaustedError
from .models import TERMINAL_STATUSES


logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_INITIAL_DELAY = 1.0
DEFAULT_MAX_DELAY = 5.0
BACKOFF_FACTOR = 1.5

SleepFunc = Callable[[float], Awaitable[Any]]


def invocation_status(result: Optional[Dict[str, Any]]) -> Optional[str]:
    return ((result or {}).get("sys") or {}).get("status")


def invocation_id(result: Optional[Dict[str, Any]]) -> Optional[str]:
    return ((result or {}).get("sys") or {}).get("id")


def is_terminal(result: Optional[Dict[str, Any]]) -> bool:
    return invocation_status(result) in TERMINAL_STATUSES


async def _wait(delay: float, cancel_event: Optional[asyncio.Event],
                sleep: Optional[SleepFunc]) -> bool:
    """Sleep for `delay`; returns True if cancellation was requested meanwhile."""
    if sleep is not None:
        await sleep(delay)
        return cancel_event is not None and cancel_event.is_set()
    if cancel_event is None:
        await asyncio.sleep(delay)
        return False
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
        return True
    except asyncio.TimeoutError:
        return False


async def poll_invocation(
    client,
    space_id: str,
    environment_id: str,
    ai_action_id: str,
    invocation_id_: str,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    cancel_event: Optional[asyncio.Event] = None,
    sleep: Optional[SleepFunc] = None,
) -> Dict[str, Any]:
    """Fetch the invocation until it reaches a terminal status.

    Raises:
        PollingExhaustedError: After max_attempts fetches without a terminal status
        PollingCancelledError: If cancel_event is set while waiting
    """
    delay = initial_delay
    attempts = 0
    last_status = None

    while attempts < max_attempts:
        if cancel_event is not None and cancel_event.is_set():
            raise PollingCancelledError(invocation_id_, attempts)

        result = await client.get_ai_action_invocation(
            space_id, environment_id, ai_action_id, invocation_id_
        )
        attempts += 1
        last_status = invocation_status(result)
        logger.debug("Invocation %s poll %d/%d: %s", invocation_id_, attempts, max_attempts, last_status)
        if last_status in TERMINAL_STATUSES:
            return result

        if attempts >= max_attempts:
            break
        if await _wait(delay, cancel_event, sleep):
            raise PollingCancelledError(invocation_id_, attempts)
        delay = min(delay * BACKOFF_FACTOR, max_delay)

    raise PollingExhaustedError(attempts, invocation_id_, last_status)


async def invoke_and_wait(
    client,
    space_id: str,
    environment_id: str,
    ai_action_id: str,
    payload: Dict[str, Any],
    wait_for_completion: bool = True,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    cancel_event: Optional[asyncio.Event] = None,
    sleep: Optional[SleepFunc] = None,
) -> Dict[str, Any]:
    """Invoke the action; poll to completion unless told not to wait.

    The invoke response is returned as-is when wait_for_completion is False
    or its status is already terminal.

    Raises:
        AiActionError: If a pending invoke response carries no invocation ID
    """
    logger.debug("Invoking AI Action %s with %s", ai_action_id, payload)
    result = await client.invoke_ai_action(space_id, environment_id, ai_action_id, payload)

    if not wait_for_completion or is_terminal(result):
        return result

    inv_id = invocation_id(result)
    if not inv_id:
        raise AiActionError(
            f"AI Action {ai_action_id}: invoke response has no invocation id "
            f"(status: {invocation_status(result)})"
        )

    return await poll_invocation(
        client,
        space_id,
        environment_id,
        ai_action_id,
        inv_id,
        max_attempts=max_attempts,
        initial_delay=initial_delay,
        max_delay=max_delay,
        cancel_event=cancel_event,
        sleep=sleep,
    )

"""Errors raised by the AI Action tool layer."""

from typing import Optional


class AiActionError(Exception):
    """Base class for caller-visible AI Action errors."""


class UnknownActionError(AiActionError):
    def __init__(self, action_id: str):
        super().__init__(f"AI Action not found: {action_id}")
        self.action_id = action_id


class MissingVariableError(AiActionError):
    def __init__(self, variable_id: str, friendly_name: Optional[str] = None):
        if friendly_name and friendly_name != variable_id:
            message = f"Missing required variable '{friendly_name}' (id: {variable_id})"
        else:
            message = f"Missing required variable: {variable_id}"
        super().__init__(message)
        self.variable_id = variable_id
        self.friendly_name = friendly_name


class PollingExhaustedError(AiActionError):
    """The invocation did not reach a terminal status within the attempt budget.

    Carries the invocation ID so the caller can fetch it again later.
    """

    def __init__(self, attempts: int, invocation_id: str, last_status: Optional[str] = None):
        super().__init__(
            f"AI Action invocation polling exceeded maximum attempts ({attempts})"
        )
        self.attempts = attempts
        self.invocation_id = invocation_id
        self.last_status = last_status


class PollingCancelledError(AiActionError):
    def __init__(self, invocation_id: str, attempts: int):
        super().__init__(
            f"AI Action invocation polling cancelled after {attempts} attempt(s)"
        )
        self.invocation_id = invocation_id
        self.attempts = attempts

"""
Environment-driven configuration for the Contentful MCP server.

All settings come from environment variables so the server can be launched
by any MCP client (stdio) or container runtime (http) without a config file.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional


DEFAULT_HOST = "api.contentful.com"
DEFAULT_GRAPHQL_HOST = "graphql.contentful.com"
DEFAULT_ENVIRONMENT = "master"
VALID_TRANSPORTS = ("stdio", "http", "sse")


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def _env_number(env: Mapping[str, str], key: str, default, cast):
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    """Deployment configuration shared by the tools and the AI Action layer."""

    management_token: str
    host: str = DEFAULT_HOST
    graphql_host: str = DEFAULT_GRAPHQL_HOST
    delivery_token: Optional[str] = None
    space_id: Optional[str] = None
    environment_id: Optional[str] = None
    disable_ai_actions: bool = False
    refresh_interval: float = 300.0
    poll_max_attempts: int = 10
    poll_initial_delay: float = 1.0
    poll_max_delay: float = 5.0
    timeout: float = 30.0
    transport: str = "stdio"
    mcp_host: str = "127.0.0.1"
    mcp_port: int = 8000

    @property
    def ai_actions_enabled(self) -> bool:
        """AI Action tools need a fixed space to load actions from."""
        return not self.disable_ai_actions and bool(self.space_id)

    @property
    def base_url(self) -> str:
        return f"https://{self.host}"

    @property
    def graphql_url(self) -> str:
        return f"https://{self.graphql_host}"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ValueError: If the management token is missing or a value is invalid
        """
        if env is None:
            env = os.environ

        token = (env.get("CONTENTFUL_MANAGEMENT_ACCESS_TOKEN") or "").strip()
        if not token:
            raise ValueError("CONTENTFUL_MANAGEMENT_ACCESS_TOKEN must be set")

        transport = (env.get("MCP_TRANSPORT") or "stdio").strip().lower()
        if transport not in VALID_TRANSPORTS:
            raise ValueError(
                f"Invalid MCP_TRANSPORT: '{transport}'. "
                f"Valid values: {', '.join(VALID_TRANSPORTS)}"
            )

        return cls(
            management_token=token,
            host=env.get("CONTENTFUL_HOST") or DEFAULT_HOST,
            graphql_host=env.get("CONTENTFUL_GRAPHQL_HOST") or DEFAULT_GRAPHQL_HOST,
            delivery_token=env.get("CONTENTFUL_DELIVERY_ACCESS_TOKEN") or None,
            space_id=env.get("SPACE_ID") or None,
            environment_id=env.get("ENVIRONMENT_ID") or None,
            disable_ai_actions=_env_flag(env.get("DISABLE_AI_ACTIONS")),
            refresh_interval=_env_number(env, "AI_ACTIONS_REFRESH_SECONDS", 300.0, float),
            poll_max_attempts=_env_number(env, "AI_ACTIONS_POLL_MAX_ATTEMPTS", 10, int),
            poll_initial_delay=_env_number(env, "AI_ACTIONS_POLL_INITIAL_DELAY", 1.0, float),
            poll_max_delay=_env_number(env, "AI_ACTIONS_POLL_MAX_DELAY", 5.0, float),
            timeout=_env_number(env, "CONTENTFUL_TIMEOUT", 30.0, float),
            transport=transport,
            mcp_host=env.get("MCP_HOST") or "127.0.0.1",
            mcp_port=_env_number(env, "MCP_PORT", 8000, int),
        )

    def resolve_space_env(self, space_id: Optional[str] = None,
                          environment_id: Optional[str] = None):
        """Pick the space/environment for one call.

        Explicit per-call values win over the configured defaults; the
        environment falls back to 'master'.

        Raises:
            ValueError: If no space ID is available
        """
        space = space_id or self.space_id
        if not space:
            raise ValueError(
                "spaceId is required. Provide space_id or set the SPACE_ID environment variable."
            )
        environment = environment_id or self.environment_id or DEFAULT_ENVIRONMENT
        return space, environment

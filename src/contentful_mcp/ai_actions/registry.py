"""
In-memory catalog of AI Actions and their parameter name tables.

The catalog and both name tables live together in one Generation. Changes
build a new Generation and publish it with a single attribute assignment,
so a reader never sees actions from one load paired with mappings from
another. Code that awaits between lookups should take a snapshot() first.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

from .models import AiAction
from .naming import ActionMapping, build_action_mapping
from .schema import ToolSchema, build_tool_schema


logger = logging.getLogger(__name__)

__all__ = ["ActionMapping", "ActionRegistry", "Generation"]


@dataclass(frozen=True)
class Generation:
    number: int = 0
    actions: Mapping[str, AiAction] = field(default_factory=lambda: MappingProxyType({}))
    mappings: Mapping[str, ActionMapping] = field(default_factory=lambda: MappingProxyType({}))

    def get(self, action_id: str) -> Optional[AiAction]:
        return self.actions.get(action_id)

    def mapping(self, action_id: str) -> Optional[ActionMapping]:
        return self.mappings.get(action_id)

    def parameter_map(self, action_id: str) -> Optional[Dict[str, str]]:
        """friendly name -> variable id, or None when no schema was generated."""
        mapping = self.mappings.get(action_id)
        return dict(mapping.parameters) if mapping else None

    def path_map(self, action_id: str) -> Optional[Dict[str, str]]:
        mapping = self.mappings.get(action_id)
        return dict(mapping.paths) if mapping else None


def _freeze(d: Dict) -> Mapping:
    return MappingProxyType(d)


class ActionRegistry:
    """AI Action cache plus the derived friendly-name tables.

    space_id / environment_id are the deployment defaults; when one is unset
    the generated tool schemas ask the caller for it.
    """

    def __init__(self, space_id: Optional[str] = None, environment_id: Optional[str] = None):
        self.space_id = space_id
        self.environment_id = environment_id
        self._generation = Generation()

    # ------------------------------------------------------------------
    # Generations
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        return self._generation.number

    def snapshot(self) -> Generation:
        return self._generation

    def _publish(self, actions: Dict[str, AiAction], mappings: Dict[str, ActionMapping]):
        self._generation = Generation(
            number=self._generation.number + 1,
            actions=_freeze(actions),
            mappings=_freeze(mappings),
        )

    # ------------------------------------------------------------------
    # Catalog operations
    # ------------------------------------------------------------------

    def add(self, action: AiAction) -> None:
        current = self._generation
        actions = dict(current.actions)
        mappings = dict(current.mappings)
        actions[action.id] = action
        mappings[action.id] = build_action_mapping(action)
        self._publish(actions, mappings)

    def get(self, action_id: str) -> Optional[AiAction]:
        return self._generation.get(action_id)

    def remove(self, action_id: str) -> None:
        current = self._generation
        if action_id not in current.actions and action_id not in current.mappings:
            return
        actions = {k: v for k, v in current.actions.items() if k != action_id}
        mappings = {k: v for k, v in current.mappings.items() if k != action_id}
        self._publish(actions, mappings)

    def all(self) -> List[AiAction]:
        return list(self._generation.actions.values())

    def clear(self) -> None:
        """Drop every action and both name tables in one step."""
        self._publish({}, {})

    def reload(self, actions: Iterable[AiAction]) -> int:
        """Replace the whole catalog with `actions`; returns the new size.

        Mappings are built before anything is published, so an exception
        here leaves the previous generation in place.
        """
        new_actions: Dict[str, AiAction] = {}
        new_mappings: Dict[str, ActionMapping] = {}
        for action in actions:
            new_actions[action.id] = action
            new_mappings[action.id] = build_action_mapping(action)
        self._publish(new_actions, new_mappings)
        logger.info("AI Action catalog generation %d: %d action(s)", self.generation, len(new_actions))
        return len(new_actions)

    def __len__(self) -> int:
        return len(self._generation.actions)

    def __contains__(self, action_id: str) -> bool:
        return action_id in self._generation.actions

    # ------------------------------------------------------------------
    # Schemas
    # ------------------------------------------------------------------

    def _schema_options(self) -> Dict[str, bool]:
        return {
            "include_space_id": not self.space_id,
            "include_environment_id": not self.environment_id,
        }

    def generate_tool_schema(self, action: AiAction) -> ToolSchema:
        """Rebuild the action's name tables, publish them and return its descriptor."""
        mapping = build_action_mapping(action)
        current = self._generation
        mappings = dict(current.mappings)
        mappings[action.id] = mapping
        self._publish(dict(current.actions), mappings)
        return build_tool_schema(action, mapping, **self._schema_options())

    def tool_schema(self, action_id: str) -> Optional[ToolSchema]:
        """Descriptor for a cached action, or None if it is not in the catalog."""
        snapshot = self._generation
        action = snapshot.get(action_id)
        mapping = snapshot.mapping(action_id)
        if action is None or mapping is None:
            return None
        return build_tool_schema(action, mapping, **self._schema_options())

    def list_tool_schemas(self) -> List[ToolSchema]:
        snapshot = self._generation
        options = self._schema_options()
        schemas = []
        for action_id, action in snapshot.actions.items():
            try:
                schemas.append(build_tool_schema(action, snapshot.mappings[action_id], **options))
            except Exception:
                logger.exception("Cannot build tool schema for AI Action %s; leaving it out", action_id)
        return schemas

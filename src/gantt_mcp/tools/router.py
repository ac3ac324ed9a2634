"""Action routing for action-based MCP tools.

One tool exposes several operations through an ``action`` parameter. The
router maps each action name (case-insensitive, with optional aliases) to a
handler and forwards keyword arguments unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Sequence


@dataclass(frozen=True)
class ActionDefinition:
    """One routable action of a tool."""

    name: str
    handler: Callable[..., dict]
    summary: str = ""
    aliases: Sequence[str] = field(default_factory=tuple)


class ActionRouterError(ValueError):
    """Raised when an action name is not registered on the router."""

    def __init__(self, message: str, *, allowed_actions: Iterable[str]) -> None:
        super().__init__(message)
        self.allowed_actions: List[str] = list(allowed_actions)


class ActionRouter:
    """Dispatch table from action names to handlers."""

    def __init__(self, tool_name: str, actions: Iterable[ActionDefinition]) -> None:
        self.tool_name = tool_name
        self._definitions: Dict[str, ActionDefinition] = {}
        self._lookup: Dict[str, ActionDefinition] = {}
        for definition in actions:
            key = definition.name.lower()
            if key in self._lookup:
                raise ValueError(f"Duplicate action '{definition.name}' for tool {tool_name}")
            self._definitions[definition.name] = definition
            self._lookup[key] = definition
            for alias in definition.aliases:
                self._lookup[alias.lower()] = definition

    def allowed_actions(self) -> List[str]:
        return list(self._definitions)

    def describe(self) -> Dict[str, str]:
        """Action name -> one-line summary."""
        return {name: d.summary for name, d in self._definitions.items()}

    def dispatch(self, action: str, **kwargs: Any) -> dict:
        definition = self._lookup.get((action or "").strip().lower())
        if definition is None:
            raise ActionRouterError(
                f"Unsupported {self.tool_name} action '{action}'",
                allowed_actions=self.allowed_actions(),
            )
        return definition.handler(**kwargs)

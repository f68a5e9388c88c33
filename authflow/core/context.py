"""Execution-time data scopes seen by actions, expressions and mappings.

Design goals:
- A flow execution owns exactly one `flowScope` dict; nested flows get their own.
- Nothing crosses a subflow boundary unless an attribute mapper copies it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

FLOW_SCOPE = "flowScope"
REQUEST_SCOPE = "requestScope"
CURRENT_EVENT = "currentEvent"


def set_by_path(target: Dict[str, Any], dotted_key: str, value: Any) -> None:
    """Set a dotted path on a dict, creating intermediate dicts as needed."""
    parts = [p for p in dotted_key.split(".") if p]
    if not parts:
        raise ValueError("Variable name must be non-empty")
    cur: Dict[str, Any] = target
    for part in parts[:-1]:
        nxt = cur.get(part)
        if not isinstance(nxt, dict):
            nxt = {}
            cur[part] = nxt
        cur = nxt
    cur[parts[-1]] = value


@dataclass
class View:
    """A rendered view: the view id plus whatever model the factory attached."""

    view_id: str
    model: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RequestContext:
    flow_id: str
    flow_scope: Dict[str, Any] = field(default_factory=dict)
    request_scope: Dict[str, Any] = field(default_factory=dict)
    current_event: Optional[str] = None
    rendered_views: List[View] = field(default_factory=list)

    def resolve_variable(self, name: str) -> Any:
        """Resolve a top-level expression name.

        Scope names win, then flow scope, then request scope. Raises KeyError
        when the name is unknown.
        """
        if name == FLOW_SCOPE:
            return self.flow_scope
        if name == REQUEST_SCOPE:
            return self.request_scope
        if name == CURRENT_EVENT:
            return self.current_event
        if name in self.flow_scope:
            return self.flow_scope[name]
        if name in self.request_scope:
            return self.request_scope[name]
        raise KeyError(name)

    def assign_variable(self, path: str, value: Any) -> None:
        """Assign a dotted path; unqualified paths land in flow scope."""
        head, _, rest = path.partition(".")
        if head == FLOW_SCOPE and rest:
            set_by_path(self.flow_scope, rest, value)
        elif head == REQUEST_SCOPE and rest:
            set_by_path(self.request_scope, rest, value)
        else:
            set_by_path(self.flow_scope, path, value)

    def render(self, view: View) -> None:
        self.rendered_views.append(view)

    @property
    def last_rendered_view(self) -> Optional[View]:
        return self.rendered_views[-1] if self.rendered_views else None

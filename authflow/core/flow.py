"""Flow graph model.

A `Flow` is a mutable graph of states keyed by id with one designated start
state. It is owned by a configurer while it is being assembled and handed to a
runner afterwards.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional

from ..errors import DuplicateStateError, FlowBuilderError, NoSuchStateError
from .states import State, TransitionableState


class Flow:
    """A named flow of states.

    Example:
        >>> from authflow.core.states import EndState
        >>> flow = Flow("login")
        >>> _ = flow.add_state(EndState("done"))
        >>> flow.start_state_id
        'done'
    """

    def __init__(self, flow_id: str) -> None:
        if not isinstance(flow_id, str) or not flow_id.strip():
            raise ValueError("Flow id must be a non-empty string")
        self.flow_id = flow_id
        self.states: Dict[str, State] = {}
        self.start_state_id: Optional[str] = None

    @property
    def id(self) -> str:
        return self.flow_id

    def add_state(self, state: State) -> State:
        """Add a state; the first state added becomes the start state."""
        if state.id in self.states:
            raise DuplicateStateError(self.flow_id, state.id)
        self.states[state.id] = state
        if self.start_state_id is None:
            self.start_state_id = state.id
        return state

    def contains_state(self, state_id: str) -> bool:
        return state_id in self.states

    def get_state(self, state_id: str) -> State:
        try:
            return self.states[state_id]
        except KeyError:
            raise NoSuchStateError(self.flow_id, state_id) from None

    def get_transitionable_state(self, state_id: str) -> TransitionableState:
        state = self.get_state(state_id)
        if not state.is_transitionable:
            raise FlowBuilderError(
                f"State '{state_id}' of flow '{self.flow_id}' is a {state.kind.value} state and has no transitions"
            )
        return state  # type: ignore[return-value]

    def set_start_state(self, state_id: str) -> None:
        if state_id not in self.states:
            raise NoSuchStateError(self.flow_id, state_id)
        self.start_state_id = state_id

    @property
    def start_state(self) -> Optional[State]:
        if self.start_state_id is None:
            return None
        return self.states.get(self.start_state_id)

    @property
    def state_ids(self) -> List[str]:
        return list(self.states)

    def validate(self) -> List[str]:
        """Return human-readable structural errors (empty when the graph is complete)."""
        errors: List[str] = []
        if not self.states:
            errors.append(f"Flow '{self.flow_id}' has no states")
            return errors
        if self.start_state_id is None:
            errors.append(f"Flow '{self.flow_id}' has no start state")
        elif self.start_state_id not in self.states:
            errors.append(f"Start state '{self.start_state_id}' does not exist")
        for state in self.states.values():
            if not state.is_transitionable:
                continue
            for t in state.transitions:  # type: ignore[union-attr]
                if t.target_state_id not in self.states:
                    errors.append(
                        f"Transition '{t.id}' of state '{state.id}' targets unknown state '{t.target_state_id}'"
                    )
        return errors

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe summary of the graph (ids, kinds, transitions)."""
        states: List[Dict[str, Any]] = []
        for state in self.states.values():
            entry: Dict[str, Any] = {"id": state.id, "kind": state.kind.value}
            if state.is_transitionable:
                entry["transitions"] = [
                    {"on": t.id, "to": t.target_state_id}
                    for t in state.transitions  # type: ignore[union-attr]
                ]
            subflow = getattr(state, "subflow", None)
            if subflow is not None:
                entry["subflow"] = subflow.subflow_id
            states.append(entry)
        return {"id": self.flow_id, "start_state": self.start_state_id, "states": states}

    def __contains__(self, state_id: object) -> bool:
        return state_id in self.states

    def __iter__(self) -> Iterator[State]:
        return iter(list(self.states.values()))

    def __len__(self) -> int:
        return len(self.states)

    def __repr__(self) -> str:
        return f"Flow(id={self.flow_id!r}, states={len(self.states)})"

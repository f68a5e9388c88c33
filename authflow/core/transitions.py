"""Transitions: criteria + lazily resolved target state.

A transition never holds a reference to its target state. It stores the
symbolic target id and resolves it against the owning flow only when the
runner traverses it, which permits forward references while a flow is being
assembled.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator, List, Optional

from ..constants import WILDCARD_EVENT_ID
from ..errors import DuplicateWildcardTransitionError

if TYPE_CHECKING:
    from ..expressions import Expression
    from .flow import Flow
    from .states import State


class TransitionCriteria:
    """Decides whether a transition applies to the current request."""

    def test(self, context: Any) -> bool:
        raise NotImplementedError


class WildcardTransitionCriteria(TransitionCriteria):
    """Matches any outcome. Use the module-level `WILDCARD` instance."""

    def test(self, context: Any) -> bool:
        return True

    def __str__(self) -> str:
        return WILDCARD_EVENT_ID

    def __repr__(self) -> str:
        return "WildcardTransitionCriteria()"


WILDCARD = WildcardTransitionCriteria()


class EventIdTransitionCriteria(TransitionCriteria):
    """Exact string match against the current event id."""

    def __init__(self, event_id: str) -> None:
        self.event_id = event_id

    def test(self, context: Any) -> bool:
        return getattr(context, "current_event", None) == self.event_id

    def __str__(self) -> str:
        return self.event_id

    def __repr__(self) -> str:
        return f"EventIdTransitionCriteria({self.event_id!r})"


class ExpressionTransitionCriteria(TransitionCriteria):
    """Evaluates an expression against the context.

    A boolean result is the match itself; any other result is compared, as a
    string, with the current event id.
    """

    def __init__(self, expression: "Expression") -> None:
        self.expression = expression

    def test(self, context: Any) -> bool:
        result = self.expression.get_value(context)
        if isinstance(result, bool):
            return result
        return str(result) == getattr(context, "current_event", None)

    def __str__(self) -> str:
        return str(self.expression)

    def __repr__(self) -> str:
        return f"ExpressionTransitionCriteria({str(self.expression)!r})"


class TargetStateResolver:
    def __init__(self, target_state_id: str) -> None:
        self.target_state_id = target_state_id

    def resolve(self, flow: "Flow") -> "State":
        """Look the target up in `flow`; raises NoSuchStateError when absent."""
        return flow.get_state(self.target_state_id)

    def __repr__(self) -> str:
        return f"TargetStateResolver({self.target_state_id!r})"


class Transition:
    def __init__(
        self,
        criteria: Optional[TransitionCriteria],
        target_state_resolver: TargetStateResolver,
    ) -> None:
        self.criteria: TransitionCriteria = criteria if criteria is not None else WILDCARD
        self.target_state_resolver = target_state_resolver

    @property
    def id(self) -> str:
        return str(self.criteria)

    @property
    def target_state_id(self) -> str:
        return self.target_state_resolver.target_state_id

    @property
    def is_wildcard(self) -> bool:
        return isinstance(self.criteria, WildcardTransitionCriteria)

    def matches(self, context: Any) -> bool:
        return self.criteria.test(context)

    def __repr__(self) -> str:
        return f"Transition(on={self.id!r}, to={self.target_state_id!r})"


class TransitionSet:
    """Ordered transitions with at most one wildcard, always kept last."""

    def __init__(self) -> None:
        self._transitions: List[Transition] = []

    def add(self, transition: Transition) -> Transition:
        wildcard = self.wildcard
        if transition.is_wildcard:
            if wildcard is not None:
                raise DuplicateWildcardTransitionError(
                    f"Transition set already has a fallback transition to '{wildcard.target_state_id}'"
                )
            self._transitions.append(transition)
        elif wildcard is not None:
            self._transitions.insert(len(self._transitions) - 1, transition)
        else:
            self._transitions.append(transition)
        return transition

    @property
    def wildcard(self) -> Optional[Transition]:
        if self._transitions and self._transitions[-1].is_wildcard:
            return self._transitions[-1]
        return None

    def get_transition(self, transition_id: str) -> Optional[Transition]:
        """Return the transition whose id (criteria string) equals `transition_id`."""
        for t in self._transitions:
            if t.id == transition_id:
                return t
        return None

    def get_matching_transition(self, context: Any) -> Optional[Transition]:
        for t in self._transitions:
            if t.matches(context):
                return t
        return None

    def __iter__(self) -> Iterator[Transition]:
        return iter(list(self._transitions))

    def __len__(self) -> int:
        return len(self._transitions)

    def __getitem__(self, index: int) -> Transition:
        return self._transitions[index]

    def __repr__(self) -> str:
        return f"TransitionSet({self._transitions!r})"

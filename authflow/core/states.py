"""State variants of a flow graph.

`State` is a tagged union over five dataclasses; `kind` is the tag. Every
variant carries an id and ordered entry actions. All variants except
`EndState` are transitionable and own a `TransitionSet`; each variant adds only
its own payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, ClassVar, List, Optional, Union

from .transitions import Transition, TransitionSet

if TYPE_CHECKING:
    from ..mapping import SubflowAttributeMapper
    from ..views import ViewFactory, ViewFactoryActionAdapter
    from .registry import SubflowExpression

# An action receives the RequestContext and returns an outcome (event id,
# bool, or None for "success").
Action = Callable[[Any], Any]


class StateKind(str, Enum):
    ACTION = "action"
    DECISION = "decision"
    VIEW = "view"
    END = "end"
    SUBFLOW = "subflow"


@dataclass(eq=False)
class _StateBase:
    id: str
    entry_actions: List[Action] = field(default_factory=list)

    kind: ClassVar[StateKind]

    @property
    def is_transitionable(self) -> bool:
        return False


@dataclass(eq=False)
class _TransitionableState(_StateBase):
    transitions: TransitionSet = field(default_factory=TransitionSet)

    @property
    def is_transitionable(self) -> bool:
        return True

    def get_transition(self, transition_id: str) -> Optional[Transition]:
        return self.transitions.get_transition(transition_id)


@dataclass(eq=False)
class ActionState(_TransitionableState):
    actions: List[Action] = field(default_factory=list)

    kind: ClassVar[StateKind] = StateKind.ACTION


@dataclass(eq=False)
class DecisionState(_TransitionableState):
    kind: ClassVar[StateKind] = StateKind.DECISION


@dataclass(eq=False)
class ViewState(_TransitionableState):
    view_factory: Optional["ViewFactory"] = None

    kind: ClassVar[StateKind] = StateKind.VIEW


@dataclass(eq=False)
class EndState(_StateBase):
    final_response_action: Optional["ViewFactoryActionAdapter"] = None

    kind: ClassVar[StateKind] = StateKind.END


@dataclass(eq=False)
class SubflowState(_TransitionableState):
    subflow: Optional["SubflowExpression"] = None
    attribute_mapper: Optional["SubflowAttributeMapper"] = None

    kind: ClassVar[StateKind] = StateKind.SUBFLOW


State = Union[ActionState, DecisionState, ViewState, EndState, SubflowState]
TransitionableState = Union[ActionState, DecisionState, ViewState, SubflowState]

"""Flow graph model: flows, states, transitions and registries."""

from __future__ import annotations

from .context import RequestContext, View
from .flow import Flow
from .registry import FlowDefinitionRegistry, SubflowExpression, merge_into
from .states import (
    ActionState,
    DecisionState,
    EndState,
    State,
    StateKind,
    SubflowState,
    TransitionableState,
    ViewState,
)
from .transitions import (
    WILDCARD,
    EventIdTransitionCriteria,
    ExpressionTransitionCriteria,
    TargetStateResolver,
    Transition,
    TransitionCriteria,
    TransitionSet,
    WildcardTransitionCriteria,
)

__all__ = [
    "Flow",
    "FlowDefinitionRegistry",
    "SubflowExpression",
    "merge_into",
    "RequestContext",
    "View",
    "State",
    "StateKind",
    "TransitionableState",
    "ActionState",
    "DecisionState",
    "EndState",
    "SubflowState",
    "ViewState",
    "Transition",
    "TransitionSet",
    "TransitionCriteria",
    "TargetStateResolver",
    "WildcardTransitionCriteria",
    "EventIdTransitionCriteria",
    "ExpressionTransitionCriteria",
    "WILDCARD",
]

"""AuthFlow - build and compose multi-step authentication flow graphs."""

from __future__ import annotations

from .configurer import AbstractWebflowConfigurer
from .core import (
    ActionState,
    DecisionState,
    EndState,
    Flow,
    FlowDefinitionRegistry,
    RequestContext,
    State,
    StateKind,
    SubflowState,
    Transition,
    ViewState,
    merge_into,
)
from .expressions import Expression, ExpressionParser, LiteralExpression
from .mapping import DefaultMapper, Mapping, SubflowAttributeMapper
from .runner import FlowExecutionResult, FlowExecutionStatus, FlowRunner
from .services import FlowBuilderServices
from .settings import WebflowSettings

__version__ = "0.1.0"

__all__ = [
    "AbstractWebflowConfigurer",
    "FlowBuilderServices",
    "WebflowSettings",
    "Flow",
    "FlowDefinitionRegistry",
    "merge_into",
    "RequestContext",
    "State",
    "StateKind",
    "ActionState",
    "DecisionState",
    "EndState",
    "SubflowState",
    "ViewState",
    "Transition",
    "Expression",
    "ExpressionParser",
    "LiteralExpression",
    "Mapping",
    "DefaultMapper",
    "SubflowAttributeMapper",
    "FlowRunner",
    "FlowExecutionResult",
    "FlowExecutionStatus",
]

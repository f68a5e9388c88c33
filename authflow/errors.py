"""Exception taxonomy for AuthFlow.

Build-time errors (`FlowBuilderError`) come from the configurer while a flow is
being assembled. Execution-time errors (`FlowExecutionError`, `MappingError`,
`ExpressionError`) surface only when a graph is actually traversed.
"""

from __future__ import annotations

from typing import Any, Optional


class AuthFlowError(Exception):
    """Base class for every error raised by this package."""


class FlowBuilderError(AuthFlowError):
    """A flow could not be assembled as requested."""


class StateCreationError(FlowBuilderError):
    def __init__(self, flow_id: str, state_id: str, reason: str) -> None:
        super().__init__(f"Failed to create state '{state_id}' in flow '{flow_id}': {reason}")
        self.flow_id = flow_id
        self.state_id = state_id


class DuplicateStateError(FlowBuilderError):
    def __init__(self, flow_id: str, state_id: str) -> None:
        super().__init__(f"Flow '{flow_id}' already contains a state with id '{state_id}'")
        self.flow_id = flow_id
        self.state_id = state_id


class DuplicateWildcardTransitionError(FlowBuilderError):
    """A transition set may hold at most one wildcard (fallback) transition."""


class NoSuchStateError(AuthFlowError):
    def __init__(self, flow_id: str, state_id: str) -> None:
        super().__init__(f"No state with id '{state_id}' exists in flow '{flow_id}'")
        self.flow_id = flow_id
        self.state_id = state_id


class NoSuchFlowDefinitionError(AuthFlowError):
    def __init__(self, flow_id: str) -> None:
        super().__init__(f"No flow definition '{flow_id}' is registered")
        self.flow_id = flow_id


class ExpressionError(AuthFlowError):
    """Base class for expression parse and evaluation failures."""

    def __init__(self, message: str, expression: Optional[str] = None) -> None:
        super().__init__(message)
        self.expression = expression


class ParseError(ExpressionError):
    pass


class EvaluationError(ExpressionError):
    pass


class ConversionError(AuthFlowError):
    def __init__(self, value: Any, target_type: Any, reason: str = "") -> None:
        type_name = getattr(target_type, "__name__", str(target_type))
        message = f"Unable to convert {value!r} to {type_name}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.value = value
        self.target_type = target_type


class MappingError(AuthFlowError):
    """A value could not be copied across a data scope boundary."""


class RequiredMappingError(MappingError):
    def __init__(self, source: str, target: str, cause: Optional[BaseException] = None) -> None:
        message = f"Required mapping '{source}' -> '{target}' failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.source = source
        self.target = target
        self.cause = cause


class FlowExecutionError(AuthFlowError):
    """The runner could not continue a flow execution."""


class NoMatchingTransitionError(FlowExecutionError):
    def __init__(self, flow_id: str, state_id: str, event_id: Optional[str]) -> None:
        super().__init__(
            f"No transition of state '{state_id}' in flow '{flow_id}' matches event '{event_id}'"
        )
        self.flow_id = flow_id
        self.state_id = state_id
        self.event_id = event_id

"""FlowRunner - walks a flow graph in-process.

This is a small reference engine, not a durable one: executions live in memory
and are lost with the process. It exists so assembled graphs can be exercised
end to end:
- action states run their actions; the first outcome matching a transition wins
- decision states take their first matching transition
- view states render and pause until `resume(event)` is called
- subflow states start the nested flow with only its input-mapped values, and
  resume the parent with the child's end state id as the event
- end states render their final response once and finish (or return to the parent)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .actions import result_to_event
from .constants import TRANSITION_ID_SUCCESS
from .core.context import RequestContext, View
from .core.flow import Flow
from .core.registry import FlowDefinitionRegistry
from .core.states import ActionState, DecisionState, EndState, State, SubflowState, ViewState
from .core.transitions import Transition
from .errors import FlowExecutionError, NoMatchingTransitionError

logger = logging.getLogger(__name__)


class FlowExecutionStatus(str, Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"
    FAILED = "failed"


@dataclass
class FlowSession:
    """One active flow on the execution stack."""

    flow: Flow
    context: RequestContext
    state: Optional[State] = None


@dataclass
class FlowExecutionResult:
    status: FlowExecutionStatus
    flow_id: Optional[str] = None
    state_id: Optional[str] = None
    view: Optional[View] = None
    outcome: Optional[str] = None
    output: Dict[str, Any] = field(default_factory=dict)

    @property
    def view_id(self) -> Optional[str]:
        return self.view.view_id if self.view is not None else None


class FlowRunner:
    """Executes flows registered in a FlowDefinitionRegistry.

    Example:
        >>> runner = FlowRunner(registry)
        >>> result = runner.start("login", {"ticket": "T1"})
        >>> result.status
        <FlowExecutionStatus.ENDED: 'ended'>
    """

    def __init__(self, registry: FlowDefinitionRegistry, *, max_steps: int = 1000) -> None:
        self.registry = registry
        self.max_steps = max_steps
        self._stack: List[FlowSession] = []
        self._status = FlowExecutionStatus.NOT_STARTED
        self._outcome: Optional[str] = None
        self._output: Dict[str, Any] = {}
        self._last_view: Optional[View] = None
        self._steps = 0
        self._root_flow_id: Optional[str] = None

    @property
    def status(self) -> FlowExecutionStatus:
        return self._status

    @property
    def active_session(self) -> Optional[FlowSession]:
        return self._stack[-1] if self._stack else None

    def start(self, flow_id: str, input_data: Optional[Dict[str, Any]] = None) -> FlowExecutionResult:
        """Start a new execution of `flow_id` with `input_data` as flow scope."""
        flow = self.registry.get_flow_definition(flow_id)
        start_state = flow.start_state
        if start_state is None:
            raise FlowExecutionError(f"Flow '{flow_id}' has no start state")

        self._stack = [FlowSession(flow, RequestContext(flow.id, flow_scope=dict(input_data or {})))]
        self._status = FlowExecutionStatus.ACTIVE
        self._outcome = None
        self._output = {}
        self._last_view = None
        self._steps = 0
        self._root_flow_id = flow.id
        logger.debug(f"Starting flow {flow_id} at state {start_state.id}")
        return self._drive(start_state)

    def resume(self, event_id: str) -> FlowExecutionResult:
        """Signal `event_id` to the paused view state of the innermost flow."""
        if self._status != FlowExecutionStatus.PAUSED:
            raise FlowExecutionError(f"Cannot resume an execution that is {self._status.value}")
        session = self._stack[-1]
        state = session.state
        if not isinstance(state, ViewState):
            raise FlowExecutionError("The paused execution is not waiting in a view state")
        session.context.current_event = event_id
        self._status = FlowExecutionStatus.ACTIVE
        return self._drive(self._follow(session, self._match(session, state)))

    def run(
        self,
        flow_id: str,
        input_data: Optional[Dict[str, Any]] = None,
        events: Optional[Iterable[str]] = None,
    ) -> FlowExecutionResult:
        """Start `flow_id` and feed `events` to each view state in turn."""
        result = self.start(flow_id, input_data)
        for event_id in events or []:
            if result.status != FlowExecutionStatus.PAUSED:
                break
            result = self.resume(event_id)
        return result

    def is_paused(self) -> bool:
        return self._status == FlowExecutionStatus.PAUSED

    def is_ended(self) -> bool:
        return self._status == FlowExecutionStatus.ENDED

    # ------------------------------------------------------------------

    def _drive(self, next_state: Optional[State]) -> FlowExecutionResult:
        try:
            while next_state is not None:
                self._steps += 1
                if self._steps > self.max_steps:
                    raise FlowExecutionError(f"Exceeded {self.max_steps} steps; the flow may be looping")
                next_state = self._enter(next_state)
        except Exception:
            self._status = FlowExecutionStatus.FAILED
            raise
        return self._result()

    def _enter(self, state: State) -> Optional[State]:
        session = self._stack[-1]
        session.state = state
        context = session.context
        logger.debug(f"Entering state {state.id} of flow {session.flow.id}")
        for action in state.entry_actions:
            action(context)

        if isinstance(state, ActionState):
            return self._follow(session, self._execute_actions(session, state))
        if isinstance(state, DecisionState):
            return self._follow(session, self._match(session, state))
        if isinstance(state, ViewState):
            view = state.view_factory.get_view(context) if state.view_factory is not None else None
            if view is not None:
                context.render(view)
            self._last_view = view
            self._status = FlowExecutionStatus.PAUSED
            return None
        if isinstance(state, SubflowState):
            return self._start_subflow(session, state)
        if isinstance(state, EndState):
            return self._end(session, state)
        raise FlowExecutionError(f"Unsupported state type {type(state).__name__}")

    def _execute_actions(self, session: FlowSession, state: ActionState) -> Transition:
        context = session.context
        if not state.actions:
            context.current_event = TRANSITION_ID_SUCCESS
            return self._match(session, state)
        for action in state.actions:
            context.current_event = result_to_event(action(context))
            transition = state.transitions.get_matching_transition(context)
            if transition is not None:
                return transition
        raise NoMatchingTransitionError(session.flow.id, state.id, context.current_event)

    def _match(self, session: FlowSession, state: Any) -> Transition:
        transition = state.transitions.get_matching_transition(session.context)
        if transition is None:
            raise NoMatchingTransitionError(session.flow.id, state.id, session.context.current_event)
        return transition

    def _follow(self, session: FlowSession, transition: Transition) -> State:
        return transition.target_state_resolver.resolve(session.flow)

    def _start_subflow(self, session: FlowSession, state: SubflowState) -> Optional[State]:
        if state.subflow is None:
            raise FlowExecutionError(f"Subflow state '{state.id}' has no subflow")
        child = state.subflow.get_value(session.context)
        child_input: Dict[str, Any] = {}
        if state.attribute_mapper is not None:
            child_input = state.attribute_mapper.create_subflow_input(session.context)
        child_start = child.start_state
        if child_start is None:
            raise FlowExecutionError(f"Flow '{child.id}' has no start state")
        logger.debug(f"Launching subflow {child.id} from state {state.id} with {sorted(child_input)}")
        self._stack.append(FlowSession(child, RequestContext(child.id, flow_scope=child_input)))
        return child_start

    def _end(self, session: FlowSession, state: EndState) -> Optional[State]:
        context = session.context
        final_view: Optional[View] = None
        if state.final_response_action is not None:
            state.final_response_action(context)
            final_view = context.last_rendered_view
        self._stack.pop()
        output = dict(context.flow_scope)

        if not self._stack:
            # Only the root flow's own end state decides the final view.
            self._last_view = final_view
            self._status = FlowExecutionStatus.ENDED
            self._outcome = state.id
            self._output = output
            logger.debug(f"Flow {session.flow.id} ended in state {state.id}")
            return None

        parent = self._stack[-1]
        subflow_state = parent.state
        if not isinstance(subflow_state, SubflowState):
            raise FlowExecutionError(f"Flow '{parent.flow.id}' is not waiting on a subflow state")
        if subflow_state.attribute_mapper is not None:
            subflow_state.attribute_mapper.map_subflow_output(output, parent.context)
        parent.context.current_event = state.id
        logger.debug(f"Subflow {session.flow.id} ended in {state.id}; resuming {parent.flow.id}")
        return self._follow(parent, self._match(parent, subflow_state))

    def _result(self) -> FlowExecutionResult:
        session = self.active_session
        if session is None:
            return FlowExecutionResult(
                status=self._status,
                flow_id=self._root_flow_id,
                state_id=self._outcome,
                outcome=self._outcome,
                output=dict(self._output),
                view=self._last_view,
            )
        return FlowExecutionResult(
            status=self._status,
            flow_id=session.flow.id,
            state_id=session.state.id if session.state is not None else None,
            view=self._last_view,
        )

    def __repr__(self) -> str:
        session = self.active_session
        flow_id = session.flow.id if session is not None else None
        return f"FlowRunner(flow={flow_id!r}, status={self._status.value!r})"

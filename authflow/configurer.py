"""Webflow configurer: idempotent assembly and composition of flow graphs.

Concrete configurers subclass `AbstractWebflowConfigurer` and implement
`do_initialize()`; the base class supplies:
- state factory methods (action / decision / view / end / subflow), all
  idempotent: an existing state id is returned untouched;
- transition construction with deferred target resolution;
- subflow composition (mappings, mappers, attribute mappers) and the
  multifactor splice recipe;
- merging external registries into the login flow registry.

Leaf methods raise `FlowBuilderError` subclasses. The only failure boundary is
`initialize()`, which logs and keeps startup going.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional, Union

from .actions import EvaluateAction
from .constants import (
    FLOW_ID_LOGIN,
    STATE_ID_INITIAL_AUTHN_REQUEST_VALIDATION_CHECK,
    STATE_ID_REAL_SUBMIT,
    TRANSITION_ID_SUCCESS,
    WILDCARD_EVENT_ID,
)
from .conversion import ConversionExecutor
from .core.flow import Flow
from .core.registry import FlowDefinitionRegistry, SubflowExpression, merge_into
from .core.states import (
    Action,
    ActionState,
    DecisionState,
    EndState,
    State,
    SubflowState,
    TransitionableState,
    ViewState,
)
from .core.transitions import (
    EventIdTransitionCriteria,
    ExpressionTransitionCriteria,
    TargetStateResolver,
    Transition,
    TransitionCriteria,
    WILDCARD,
)
from .errors import FlowBuilderError, StateCreationError
from .expressions import Expression, LiteralExpression
from .mapping import DefaultMapper, Mapping, SubflowAttributeMapper
from .services import FlowBuilderServices
from .settings import WebflowSettings
from .views import ViewFactory, ViewFactoryActionAdapter

logger = logging.getLogger(__name__)

StateRef = Union[str, State]
ViewSource = Union[str, Expression]


def _state_id(state: StateRef) -> str:
    return state if isinstance(state, str) else state.id


class AbstractWebflowConfigurer(ABC):
    """Entry point for customizing the login webflow."""

    # State ids the multifactor splice attaches to.
    real_submit_state_id: str = STATE_ID_REAL_SUBMIT
    initial_validation_check_state_id: str = STATE_ID_INITIAL_AUTHN_REQUEST_VALIDATION_CHECK

    def __init__(
        self,
        flow_builder_services: FlowBuilderServices,
        login_flow_definition_registry: FlowDefinitionRegistry,
        settings: Optional[WebflowSettings] = None,
    ) -> None:
        self.flow_builder_services = flow_builder_services
        self.login_flow_definition_registry = login_flow_definition_registry
        self.settings = settings or WebflowSettings()

    # ------------------------------------------------------------------
    # Lifecycle

    def initialize(self) -> bool:
        """Run `do_initialize()` unless auto-configuration is disabled.

        Returns True when `do_initialize()` completed. Failures are logged and
        never propagated: a broken assembly must not abort startup.
        """
        name = type(self).__name__
        logger.debug(f"Initializing webflow configuration via {name}...")
        if not self.settings.autoconfigure:
            logger.warning(f"Webflow auto-configuration is disabled. {name} will not modify the webflow")
            return False
        try:
            self.do_initialize()
        except Exception as e:
            logger.exception(f"Webflow configuration via {name} failed: {e}")
            return False
        return True

    @abstractmethod
    def do_initialize(self) -> None:
        """Assemble or customize flows. Implemented by concrete configurers."""

    # ------------------------------------------------------------------
    # Flow access

    def get_login_flow(self) -> Flow:
        return self.login_flow_definition_registry.get_flow_definition(FLOW_ID_LOGIN)

    def contains_flow_state(self, flow: Flow, state_id: str) -> bool:
        return flow.contains_state(state_id)

    def get_start_state(self, flow: Flow) -> Optional[State]:
        return flow.start_state

    def set_start_state(self, flow: Flow, state: StateRef) -> None:
        flow.set_start_state(_state_id(state))
        logger.debug(f"Start state of flow {flow.id} is now set to {flow.start_state_id}")

    def _existing(self, flow: Flow, state_id: str, expected: type) -> Optional[State]:
        if not self.contains_flow_state(flow, state_id):
            return None
        logger.debug(f"Flow {flow.id} already contains a definition for state id {state_id}")
        state = flow.get_state(state_id)
        if not isinstance(state, expected):
            raise StateCreationError(
                flow.id, state_id, f"existing state is a {state.kind.value} state, not {expected.__name__}"
            )
        return state

    # ------------------------------------------------------------------
    # State factory

    def create_action_state(self, flow: Flow, state_id: str, *actions: Action) -> ActionState:
        existing = self._existing(flow, state_id, ActionState)
        if existing is not None:
            return existing  # type: ignore[return-value]
        state = ActionState(state_id, actions=list(actions))
        flow.add_state(state)
        logger.debug(f"Created action state {state_id} with actions {state.actions}")
        return state

    def create_decision_state(
        self,
        flow: Flow,
        state_id: str,
        test_expression: str,
        then_state_id: StateRef,
        else_state_id: StateRef,
    ) -> DecisionState:
        """Binary branch: predicate transition to `then`, wildcard fallback to `else`."""
        existing = self._existing(flow, state_id, DecisionState)
        if existing is not None:
            return existing  # type: ignore[return-value]
        expression = self.create_expression(test_expression, bool)
        state = DecisionState(state_id)
        state.transitions.add(self.create_transition(expression, then_state_id))
        state.transitions.add(self.create_transition(WILDCARD_EVENT_ID, else_state_id))
        flow.add_state(state)
        logger.debug(f"Created decision state {state_id} testing '{test_expression}'")
        return state

    def create_view_state(self, flow: Flow, state_id: str, view: ViewSource) -> ViewState:
        existing = self._existing(flow, state_id, ViewState)
        if existing is not None:
            return existing  # type: ignore[return-value]
        view_factory = self._create_view_factory(flow, state_id, view)
        state = ViewState(state_id, view_factory=view_factory)
        flow.add_state(state)
        logger.debug(f"Added view state {state_id}")
        return state

    def create_end_state(
        self,
        flow: Flow,
        state_id: str,
        view: Union[ViewSource, ViewFactory, None] = None,
    ) -> EndState:
        """End state whose view (if any) is rendered once by its final response action."""
        existing = self._existing(flow, state_id, EndState)
        if existing is not None:
            return existing  # type: ignore[return-value]
        final_response_action = None
        if view is not None:
            view_factory = view if isinstance(view, ViewFactory) else self._create_view_factory(flow, state_id, view)
            final_response_action = ViewFactoryActionAdapter(view_factory)
        state = EndState(state_id, final_response_action=final_response_action)
        flow.add_state(state)
        logger.debug(f"Created end state {state_id} on flow id {flow.id}, backed by {final_response_action}")
        return state

    def create_subflow_state(
        self,
        flow: Flow,
        state_id: str,
        subflow_id: str,
        entry_action: Optional[Action] = None,
    ) -> SubflowState:
        """State that runs `subflow_id` (looked up at execution time) then resumes."""
        existing = self._existing(flow, state_id, SubflowState)
        if existing is not None:
            return existing  # type: ignore[return-value]
        state = SubflowState(state_id, subflow=SubflowExpression(subflow_id, self.login_flow_definition_registry))
        if entry_action is not None:
            state.entry_actions.append(entry_action)
        flow.add_state(state)
        logger.debug(f"Created subflow state {state_id} invoking flow {subflow_id}")
        return state

    def _create_view_factory(self, flow: Flow, state_id: str, view: Any) -> ViewFactory:
        expression = LiteralExpression(view) if isinstance(view, str) else view
        try:
            return self.flow_builder_services.view_factory_creator.create_view_factory(expression)
        except (TypeError, ValueError) as e:
            raise StateCreationError(flow.id, state_id, str(e)) from e

    # ------------------------------------------------------------------
    # Expressions and actions

    def create_expression(self, expression: str, expected_type: Any = None) -> Expression:
        return self.flow_builder_services.expression_parser.parse_expression(expression, expected_type)

    def create_evaluate_action(self, expression: str) -> EvaluateAction:
        action = EvaluateAction(self.create_expression(expression))
        logger.debug(f"Created evaluate action for expression {expression}")
        return action

    def convert_class_to_target_type(self, target_type: Any) -> ConversionExecutor:
        return self.flow_builder_services.conversion_service.get_conversion_executor(target_type)

    # ------------------------------------------------------------------
    # Transitions

    def create_transition(
        self,
        criteria_outcome: Union[str, Expression, State],
        target_state: Optional[StateRef] = None,
    ) -> Transition:
        """Build a transition; the target id is resolved only when traversed.

        `create_transition(target)` is unconditional. With an outcome, the
        reserved "*" gives wildcard semantics, a literal gives an exact event
        match, and any other expression is evaluated as criteria.
        """
        if target_state is None:
            return Transition(WILDCARD, TargetStateResolver(_state_id(criteria_outcome)))  # type: ignore[arg-type]
        resolver = TargetStateResolver(_state_id(target_state))
        return Transition(self._create_criteria(criteria_outcome), resolver)  # type: ignore[arg-type]

    def _create_criteria(self, outcome: Union[str, Expression]) -> TransitionCriteria:
        if str(outcome) == WILDCARD_EVENT_ID:
            return WILDCARD
        if isinstance(outcome, str):
            return EventIdTransitionCriteria(outcome)
        if isinstance(outcome, LiteralExpression):
            return EventIdTransitionCriteria(str(outcome))
        return ExpressionTransitionCriteria(outcome)

    def create_transition_for_state(
        self,
        state: TransitionableState,
        criteria_outcome: Union[str, Expression],
        target_state: StateRef,
    ) -> Transition:
        transition = self.create_transition(criteria_outcome, target_state)
        state.transitions.add(transition)
        logger.debug(f"Added transition {transition.id} to the state {state.id}")
        return transition

    def add_default_transition(
        self, state: Optional[TransitionableState], target_state: StateRef
    ) -> Optional[Transition]:
        """Attach an unconditional transition.

        A missing state is a logged no-op. A state that already has a fallback
        keeps it, so repeated configuration passes leave the graph unchanged.
        """
        if state is None:
            logger.debug(
                f"Cannot add default transition of [{_state_id(target_state)}]: "
                "the given state is null and cannot be found in the flow."
            )
            return None
        existing = state.transitions.wildcard
        if existing is not None:
            logger.debug(
                f"State {state.id} already has a default transition to [{existing.target_state_id}]; "
                f"not adding one to [{_state_id(target_state)}]"
            )
            return existing
        return state.transitions.add(self.create_transition(target_state))

    # ------------------------------------------------------------------
    # Subflow composition

    def create_mapper_to_subflow_state(self, mappings: Iterable[Mapping]) -> DefaultMapper:
        return DefaultMapper(mappings)

    def create_mapping_to_subflow_state(
        self,
        name: str,
        value: str,
        required: bool,
        target_type: Any,
    ) -> Mapping:
        """Map `value` (an expression) to `name` (a settable expression) coerced to `target_type`."""
        parser = self.flow_builder_services.expression_parser
        source = parser.parse_expression(value)
        target = parser.parse_expression(name)
        return Mapping(
            source,
            target,
            required=required,
            type_converter=self.convert_class_to_target_type(target_type),
        )

    def create_subflow_attribute_mapper(
        self,
        input_mapper: Optional[DefaultMapper],
        output_mapper: Optional[DefaultMapper],
    ) -> SubflowAttributeMapper:
        return SubflowAttributeMapper(input_mapper, output_mapper)

    def register_flow_definition_into_login_flow_registry(self, source_registry: FlowDefinitionRegistry) -> None:
        merge_into(self.login_flow_definition_registry, source_registry)

    def register_multifactor_provider_authentication_webflow(
        self,
        flow: Flow,
        subflow_id: str,
        registry: FlowDefinitionRegistry,
    ) -> SubflowState:
        """Splice a multifactor flow into `flow`.

        `subflow_id` is the trigger event, the subflow state id and the
        registry key. Control rejoins wherever the real-submit action state's
        success transition pointed. Requires the real-submit and initial
        validation check states to exist.
        """
        subflow_state = self.create_subflow_state(flow, subflow_id, subflow_id)
        action_state = flow.get_transitionable_state(self.real_submit_state_id)
        success = action_state.get_transition(TRANSITION_ID_SUCCESS)
        if success is None:
            raise FlowBuilderError(
                f"State '{action_state.id}' of flow '{flow.id}' has no '{TRANSITION_ID_SUCCESS}' transition"
            )
        target_state_id = success.target_state_id

        input_mapper = self.create_mapper_to_subflow_state([])
        subflow_state.attribute_mapper = self.create_subflow_attribute_mapper(input_mapper, None)
        if subflow_state.get_transition(TRANSITION_ID_SUCCESS) is None:
            subflow_state.transitions.add(self.create_transition(TRANSITION_ID_SUCCESS, target_state_id))

        logger.debug(f"Retrieved action state {action_state.id}")
        if action_state.get_transition(subflow_id) is None:
            self.create_transition_for_state(action_state, subflow_id, subflow_id)

        self.register_flow_definition_into_login_flow_registry(registry)

        check_state = flow.get_transitionable_state(self.initial_validation_check_state_id)
        if check_state.get_transition(subflow_id) is None:
            self.create_transition_for_state(check_state, subflow_id, subflow_id)
        return subflow_state

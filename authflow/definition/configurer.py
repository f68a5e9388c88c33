"""Assemble flows from declarative definitions."""

from __future__ import annotations

import logging
from typing import List, Optional

from ..configurer import AbstractWebflowConfigurer
from ..core.flow import Flow
from ..core.registry import FlowDefinitionRegistry
from ..core.states import State
from ..errors import FlowBuilderError
from ..expressions import Expression
from ..mapping import DefaultMapper
from ..services import FlowBuilderServices
from ..settings import WebflowSettings
from .models import (
    MAPPING_TYPES,
    FlowDefinitionDocument,
    FlowDefinitionModel,
    MappingModel,
    StateModel,
    StateType,
    validate_flow_definition,
)

logger = logging.getLogger(__name__)


class DefinitionWebflowConfigurer(AbstractWebflowConfigurer):
    """Builds every flow of a definition document into the login registry.

    Flows already present in the registry are extended rather than replaced,
    and existing states and transitions are left alone, so the same document
    can be applied more than once.
    """

    def __init__(
        self,
        flow_builder_services: FlowBuilderServices,
        login_flow_definition_registry: FlowDefinitionRegistry,
        document: FlowDefinitionDocument,
        settings: Optional[WebflowSettings] = None,
    ) -> None:
        super().__init__(flow_builder_services, login_flow_definition_registry, settings)
        self.document = document

    def do_initialize(self) -> None:
        problems: List[str] = []
        for model in self.document.flows:
            problems.extend(validate_flow_definition(model))
        if problems:
            raise FlowBuilderError("Invalid flow definition: " + "; ".join(problems))
        for model in self.document.flows:
            self.build_flow(model)

    def build_flow(self, model: FlowDefinitionModel) -> Flow:
        registry = self.login_flow_definition_registry
        if registry.contains_flow_definition(model.id):
            flow = registry.get_flow_definition(model.id)
        else:
            flow = Flow(model.id)
            registry.register_flow_definition(flow)

        for state_model in model.states:
            state = self._create_state(flow, state_model)
            if state_model.entry_actions and not state.entry_actions:
                state.entry_actions.extend(self.create_evaluate_action(a) for a in state_model.entry_actions)
            if state.is_transitionable:
                for t in state_model.transitions:
                    if state.get_transition(t.on) is None:  # type: ignore[union-attr]
                        self.create_transition_for_state(state, t.on, t.to)  # type: ignore[arg-type]

        if model.start_state:
            self.set_start_state(flow, model.start_state)
        logger.debug(f"Assembled flow {flow.id} with {len(flow)} states")
        return flow

    def _create_state(self, flow: Flow, model: StateModel) -> State:
        if model.type == StateType.ACTION:
            actions = [self.create_evaluate_action(a) for a in model.actions]
            return self.create_action_state(flow, model.id, *actions)
        if model.type == StateType.DECISION:
            return self.create_decision_state(flow, model.id, model.test or "", model.then or "", model.else_ or "")
        if model.type == StateType.VIEW:
            return self.create_view_state(flow, model.id, self._view_source(model))
        if model.type == StateType.END:
            view = self._view_source(model) if (model.view or model.view_expression) else None
            return self.create_end_state(flow, model.id, view)
        state = self.create_subflow_state(flow, model.id, model.subflow or "")
        if state.attribute_mapper is None and (model.input_mappings or model.output_mappings):
            state.attribute_mapper = self.create_subflow_attribute_mapper(
                self._mapper(model.input_mappings),
                self._mapper(model.output_mappings),
            )
        return state

    def _view_source(self, model: StateModel) -> "str | Expression":
        if model.view_expression:
            return self.create_expression(model.view_expression, str)
        return model.view or ""

    def _mapper(self, mappings: List[MappingModel]) -> Optional[DefaultMapper]:
        if not mappings:
            return None
        return self.create_mapper_to_subflow_state(
            [
                self.create_mapping_to_subflow_state(m.name, m.value, m.required, MAPPING_TYPES[m.type])
                for m in mappings
            ]
        )

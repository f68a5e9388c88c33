"""Declarative (JSON) flow definitions."""

from __future__ import annotations

from .configurer import DefinitionWebflowConfigurer
from .models import (
    FlowDefinitionDocument,
    FlowDefinitionModel,
    MappingModel,
    StateModel,
    StateType,
    TransitionModel,
    load_flow_definition_json,
    validate_flow_definition,
)

__all__ = [
    "DefinitionWebflowConfigurer",
    "FlowDefinitionDocument",
    "FlowDefinitionModel",
    "MappingModel",
    "StateModel",
    "StateType",
    "TransitionModel",
    "load_flow_definition_json",
    "validate_flow_definition",
]

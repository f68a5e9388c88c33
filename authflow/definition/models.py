"""Pydantic models for declarative flow definitions (JSON).

A definition document lists flows; each flow lists its states with their
transitions. Documents are assembled into `Flow` graphs by
`DefinitionWebflowConfigurer`, through the same idempotent state factory a
hand-written configurer uses.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class StateType(str, Enum):
    """Kinds of states a definition may declare."""

    ACTION = "action"
    DECISION = "decision"
    VIEW = "view"
    END = "end"
    SUBFLOW = "subflow"


# Declared mapping types -> Python types used for coercion.
MAPPING_TYPES: Dict[str, Any] = {
    "any": Any,
    "string": str,
    "str": str,
    "integer": int,
    "int": int,
    "number": float,
    "float": float,
    "boolean": bool,
    "bool": bool,
    "object": dict,
    "array": list,
}


class TransitionModel(BaseModel):
    """An outgoing edge: `on` is an event id (or "*"), `to` a state id."""

    on: str = "*"
    to: str


class MappingModel(BaseModel):
    """Copy `value` (an expression) into `name` (a settable path)."""

    name: str
    value: str
    required: bool = False
    type: str = "any"


class StateModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: StateType
    # action
    actions: List[str] = Field(default_factory=list)
    # view / end
    view: Optional[str] = None
    view_expression: Optional[str] = Field(default=None, alias="viewExpression")
    # decision
    test: Optional[str] = None
    then: Optional[str] = None
    else_: Optional[str] = Field(default=None, alias="else")
    # subflow
    subflow: Optional[str] = None
    input_mappings: List[MappingModel] = Field(default_factory=list, alias="inputMappings")
    output_mappings: List[MappingModel] = Field(default_factory=list, alias="outputMappings")
    entry_actions: List[str] = Field(default_factory=list, alias="entryActions")
    transitions: List[TransitionModel] = Field(default_factory=list)


class FlowDefinitionModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    description: str = ""
    start_state: Optional[str] = Field(default=None, alias="startState")
    states: List[StateModel] = Field(default_factory=list)


class FlowDefinitionDocument(BaseModel):
    flows: List[FlowDefinitionModel] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _accept_single_flow(cls, data: Any) -> Any:
        # A bare flow object is accepted as a one-flow document.
        if isinstance(data, dict) and "flows" not in data and "states" in data:
            return {"flows": [data]}
        return data


def load_flow_definition_json(path: Union[str, Path]) -> FlowDefinitionDocument:
    raw = Path(path).read_text(encoding="utf-8")
    return FlowDefinitionDocument.model_validate(json.loads(raw))


def validate_flow_definition(flow: FlowDefinitionModel) -> List[str]:
    """Validate a flow definition's shape.

    Returns a list of human-friendly error strings (empty when valid).
    """
    errors: List[str] = []
    if not flow.states:
        return [f"Flow '{flow.id}' must declare at least one state."]

    ids = [s.id for s in flow.states]
    seen: set[str] = set()
    for sid in ids:
        if sid in seen:
            errors.append(f"Flow '{flow.id}' declares state '{sid}' more than once.")
        seen.add(sid)

    if flow.start_state and flow.start_state not in seen:
        errors.append(f"Start state '{flow.start_state}' is not declared in flow '{flow.id}'.")

    for state in flow.states:
        label = f"State '{state.id}'"
        if state.type == StateType.DECISION:
            if not state.test:
                errors.append(f"{label} is a decision state and needs a 'test' expression.")
            if not state.then or not state.else_:
                errors.append(f"{label} is a decision state and needs both 'then' and 'else'.")
        if state.type == StateType.VIEW and not (state.view or state.view_expression):
            errors.append(f"{label} is a view state and needs a 'view' or 'viewExpression'.")
        if state.type == StateType.SUBFLOW and not state.subflow:
            errors.append(f"{label} is a subflow state and needs a 'subflow' id.")
        if state.type == StateType.END and state.transitions:
            errors.append(f"{label} is an end state and cannot declare transitions.")
        wildcards = [t for t in state.transitions if t.on == "*"]
        if len(wildcards) > 1:
            errors.append(f"{label} declares more than one '*' transition.")
        for m in list(state.input_mappings) + list(state.output_mappings):
            if m.type not in MAPPING_TYPES:
                errors.append(f"{label} mapping '{m.name}' has unknown type '{m.type}'.")

        targets = [t.to for t in state.transitions]
        if state.type == StateType.DECISION:
            targets += [t for t in (state.then, state.else_) if t]
        for target in targets:
            if target not in seen:
                errors.append(f"{label} transitions to unknown state '{target}'.")

    return errors

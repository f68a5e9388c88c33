"""Flow definition registry and registry merge."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ..errors import NoSuchFlowDefinitionError
from .flow import Flow

logger = logging.getLogger(__name__)


class FlowDefinitionRegistry:
    """Lookup table from flow id to `Flow`.

    Registries are plain owned objects: a configurer receives the one it
    targets explicitly.
    """

    def __init__(self, flows: Optional[Iterable[Flow]] = None) -> None:
        self._flows: Dict[str, Flow] = {}
        for flow in flows or []:
            self.register_flow_definition(flow)

    def get_flow_definition_ids(self) -> List[str]:
        return list(self._flows)

    def get_flow_definition(self, flow_id: str) -> Flow:
        try:
            return self._flows[flow_id]
        except KeyError:
            raise NoSuchFlowDefinitionError(flow_id) from None

    def contains_flow_definition(self, flow_id: str) -> bool:
        return flow_id in self._flows

    def register_flow_definition(self, flow: Flow) -> None:
        """Register `flow`, replacing any definition under the same id."""
        self._flows[flow.id] = flow

    def get_flow_definition_count(self) -> int:
        return len(self._flows)

    def __contains__(self, flow_id: object) -> bool:
        return flow_id in self._flows

    def __iter__(self) -> Iterator[Flow]:
        return iter(list(self._flows.values()))

    def __len__(self) -> int:
        return len(self._flows)

    def __repr__(self) -> str:
        return f"FlowDefinitionRegistry({self.get_flow_definition_ids()!r})"


def merge_into(target: FlowDefinitionRegistry, source: FlowDefinitionRegistry) -> None:
    """Copy every flow of `source` into `target`.

    Duplicate ids are overwritten silently; this is composition, not conflict
    detection.
    """
    for flow_id in source.get_flow_definition_ids():
        definition = source.get_flow_definition(flow_id)
        logger.debug(f"Registering flow definition [{flow_id}]")
        target.register_flow_definition(definition)


class SubflowExpression:
    """Resolves a nested flow by id from a registry at execution time."""

    def __init__(self, subflow_id: str, registry: FlowDefinitionRegistry) -> None:
        self.subflow_id = subflow_id
        self.registry = registry

    def get_value(self, context: Any = None) -> Flow:
        return self.registry.get_flow_definition(self.subflow_id)

    def __str__(self) -> str:
        return self.subflow_id

    def __repr__(self) -> str:
        return f"SubflowExpression({self.subflow_id!r})"

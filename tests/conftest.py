"""AuthFlow test bootstrap.

Tests build flows through a minimal concrete configurer whose
`do_initialize()` runs a callback supplied by the test (or nothing).
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from authflow.configurer import AbstractWebflowConfigurer  # noqa: E402
from authflow.core.flow import Flow  # noqa: E402
from authflow.core.registry import FlowDefinitionRegistry  # noqa: E402
from authflow.services import FlowBuilderServices  # noqa: E402
from authflow.settings import WebflowSettings  # noqa: E402


class CallbackConfigurer(AbstractWebflowConfigurer):
    def __init__(self, *args, on_initialize: Optional[Callable[["CallbackConfigurer"], None]] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.on_initialize = on_initialize
        self.initialized = 0

    def do_initialize(self) -> None:
        self.initialized += 1
        if self.on_initialize is not None:
            self.on_initialize(self)


@pytest.fixture
def registry() -> FlowDefinitionRegistry:
    return FlowDefinitionRegistry()


@pytest.fixture
def configurer(registry: FlowDefinitionRegistry) -> CallbackConfigurer:
    return CallbackConfigurer(FlowBuilderServices(), registry, WebflowSettings())


@pytest.fixture
def login_flow(registry: FlowDefinitionRegistry) -> Flow:
    flow = Flow("login")
    registry.register_flow_definition(flow)
    return flow


@pytest.fixture
def make_configurer(registry: FlowDefinitionRegistry):
    def factory(settings: Optional[WebflowSettings] = None, on_initialize=None) -> CallbackConfigurer:
        return CallbackConfigurer(
            FlowBuilderServices(), registry, settings or WebflowSettings(), on_initialize=on_initialize
        )

    return factory

"""Collaborators a configurer needs to build states."""

from __future__ import annotations

from dataclasses import dataclass, field

from .conversion import ConversionService
from .expressions import ExpressionParser
from .views import ViewFactoryCreator


@dataclass
class FlowBuilderServices:
    conversion_service: ConversionService = field(default_factory=ConversionService)
    expression_parser: ExpressionParser = None  # type: ignore[assignment]
    view_factory_creator: ViewFactoryCreator = field(default_factory=ViewFactoryCreator)

    def __post_init__(self) -> None:
        if self.expression_parser is None:
            self.expression_parser = ExpressionParser(self.conversion_service)

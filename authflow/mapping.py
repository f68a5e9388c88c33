"""Attribute mapping across flow boundaries.

A `Mapping` copies one value from a source scope to a target scope:
- the source is an expression evaluated against the source context;
- the target is a settable expression (a dotted path) on the target;
- an optional type converter coerces the value to the declared type.

Failure policy is decided per mapping by `required`:
- required: a missing/unresolvable source, a None value or a failed
  coercion raises `RequiredMappingError`;
- optional: evaluation and coercion failures are skipped (target untouched).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping as MappingABC, Optional

from .conversion import ConversionExecutor
from .errors import AuthFlowError, ConversionError, ExpressionError, RequiredMappingError
from .expressions import Expression

logger = logging.getLogger(__name__)


@dataclass
class MappingResult:
    mapping: "Mapping"
    success: bool
    value: Any = None
    error: Optional[str] = None


class MappingResults:
    def __init__(self) -> None:
        self.results: List[MappingResult] = []

    def add(self, result: MappingResult) -> None:
        self.results.append(result)

    @property
    def has_errors(self) -> bool:
        return any(not r.success for r in self.results)

    @property
    def errors(self) -> List[MappingResult]:
        return [r for r in self.results if not r.success]

    @property
    def mapped_targets(self) -> List[str]:
        return [str(r.mapping.target_expression) for r in self.results if r.success]

    def __len__(self) -> int:
        return len(self.results)


class Mapping:
    def __init__(
        self,
        source_expression: Expression,
        target_expression: Expression,
        *,
        required: bool = False,
        type_converter: Optional[ConversionExecutor] = None,
    ) -> None:
        self.source_expression = source_expression
        self.target_expression = target_expression
        self.required = bool(required)
        self.type_converter = type_converter

    def map(self, source: Any, target: Any) -> MappingResult:
        """Copy the source value into `target`, honoring the `required` flag."""
        try:
            value = self.source_expression.get_value(source)
        except ExpressionError as e:
            return self._failed(e)

        if value is None and self.required:
            return self._failed(None, reason="source value is null")

        if value is not None and self.type_converter is not None:
            try:
                value = self.type_converter.execute(value)
            except ConversionError as e:
                return self._failed(e)

        self.target_expression.set_value(target, value)
        return MappingResult(mapping=self, success=True, value=value)

    def _failed(self, cause: Optional[AuthFlowError], reason: str = "") -> MappingResult:
        if self.required:
            raise RequiredMappingError(
                str(self.source_expression),
                str(self.target_expression),
                cause if cause is not None else ValueError(reason),
            )
        message = str(cause) if cause is not None else reason
        logger.debug(f"Skipping optional mapping {self}: {message}")
        return MappingResult(mapping=self, success=False, error=message)

    def __repr__(self) -> str:
        flag = " (required)" if self.required else ""
        return f"Mapping({self.source_expression} -> {self.target_expression}{flag})"


class DefaultMapper:
    """An ordered list of mappings applied together."""

    def __init__(self, mappings: Optional[Iterable[Mapping]] = None) -> None:
        self.mappings: List[Mapping] = list(mappings or [])

    def add_mapping(self, mapping: Mapping) -> None:
        self.mappings.append(mapping)

    def map(self, source: Any, target: Any) -> MappingResults:
        results = MappingResults()
        for mapping in self.mappings:
            results.add(mapping.map(source, target))
        return results

    def __len__(self) -> int:
        return len(self.mappings)

    def __repr__(self) -> str:
        return f"DefaultMapper({self.mappings!r})"


class SubflowAttributeMapper:
    """Input/output mapping contract of a subflow state.

    Only mapped values cross the boundary: the child's initial variables are
    built from scratch by the input mapper, and only output-mapped child values
    are copied back into the parent.
    """

    def __init__(self, input_mapper: Optional[DefaultMapper], output_mapper: Optional[DefaultMapper]) -> None:
        self.input_mapper = input_mapper
        self.output_mapper = output_mapper

    def create_subflow_input(self, context: Any) -> Dict[str, Any]:
        subflow_input: Dict[str, Any] = {}
        if self.input_mapper is not None:
            self.input_mapper.map(context, subflow_input)
        return subflow_input

    def map_subflow_output(self, output: MappingABC[str, Any], context: Any) -> None:
        if self.output_mapper is not None and output is not None:
            self.output_mapper.map(dict(output), context)

    def __repr__(self) -> str:
        return f"SubflowAttributeMapper(input={self.input_mapper!r}, output={self.output_mapper!r})"

"""Runtime type coercion backed by pydantic.

Mappings and typed expressions coerce their values through a
`ConversionExecutor` bound to a declared target type. Coercion uses pydantic's
lax validation mode, so `"true"` becomes `True` for `bool`, `"42"` becomes
`42` for `int`, and so on.
"""

from __future__ import annotations

from typing import Any, Dict

from pydantic import TypeAdapter, ValidationError

from .errors import ConversionError


def _first_error_message(exc: ValidationError) -> str:
    try:
        errors = exc.errors()
    except Exception:
        return str(exc)
    if errors and isinstance(errors[0], dict):
        return str(errors[0].get("msg") or "")
    return str(exc)


class ConversionExecutor:
    """Coerces values to a single target type."""

    def __init__(self, target_type: Any) -> None:
        self.target_type = target_type
        self._adapter: TypeAdapter = TypeAdapter(target_type)

    def execute(self, value: Any) -> Any:
        """Convert `value`; `None` passes through unchanged."""
        if value is None:
            return None
        try:
            return self._adapter.validate_python(value)
        except ValidationError as e:
            raise ConversionError(value, self.target_type, _first_error_message(e)) from e

    def __repr__(self) -> str:
        name = getattr(self.target_type, "__name__", str(self.target_type))
        return f"ConversionExecutor(target_type={name})"


class ConversionService:
    """Hands out (cached) conversion executors per target type."""

    def __init__(self) -> None:
        self._executors: Dict[Any, ConversionExecutor] = {}

    def get_conversion_executor(self, target_type: Any) -> ConversionExecutor:
        executor = self._executors.get(target_type)
        if executor is None:
            executor = ConversionExecutor(target_type)
            self._executors[target_type] = executor
        return executor

    def execute_conversion(self, value: Any, target_type: Any) -> Any:
        return self.get_conversion_executor(target_type).execute(value)

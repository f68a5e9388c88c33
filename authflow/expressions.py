"""Expression subsystem.

Expressions are parsed once at build time and evaluated many times by the
runner. Sources are Python expressions compiled with RestrictedPython, so
private names and dunder access are rejected at compile time and attribute
and item access go through guards:

- names resolve against the execution context (`flowScope`, `requestScope`,
  `currentEvent`, then flow/request scope variables);
- `null` / `true` / `false` are accepted alongside `None` / `True` / `False`;
- dotted member access works on dicts (key lookup) and objects (attributes);
- only RestrictedPython's safe builtins are callable, plus callables already
  in the context.
"""

from __future__ import annotations

import re
from types import CodeType
from typing import Any, Dict, Iterator, Mapping, MutableMapping, Optional

from RestrictedPython import compile_restricted_eval, limited_builtins, safe_builtins
from RestrictedPython.Eval import default_guarded_getitem, default_guarded_getiter
from RestrictedPython.Guards import guarded_iter_unpack_sequence, safer_getattr

from .conversion import ConversionService
from .core.context import set_by_path
from .errors import ConversionError, EvaluationError, ExpressionError, ParseError

_CONSTANT_NAMES: Dict[str, Any] = {
    "null": None,
    "true": True,
    "false": False,
}

_SETTABLE_PATH = re.compile(r"^[A-Za-z][A-Za-z0-9_]*(\.[A-Za-z][A-Za-z0-9_]*)*$")

_BUILTINS: Dict[str, Any] = {**safe_builtins, **limited_builtins}


def _settable_path(source: str) -> Optional[str]:
    """Return `source` when it is a plain dotted name path, else None."""
    if not _SETTABLE_PATH.match(source) or source.split(".")[0] in _CONSTANT_NAMES:
        return None
    return source


def _guarded_getattr(obj: Any, name: str) -> Any:
    if obj is None:
        raise KeyError(f"Cannot read '{name}' of null")
    if isinstance(obj, Mapping):
        if name not in obj:
            raise KeyError(f"Unknown property '{name}'")
        return obj[name]
    if not hasattr(obj, name):
        raise KeyError(f"Unknown property '{name}'")
    return safer_getattr(obj, name)


class _ContextNamespace(Mapping):
    """Read-only name lookup over an execution context, used as eval locals."""

    def __init__(self, context: Any) -> None:
        self.context = context

    def __getitem__(self, name: str) -> Any:
        if name in _CONSTANT_NAMES:
            return _CONSTANT_NAMES[name]
        resolver = getattr(self.context, "resolve_variable", None)
        if callable(resolver):
            return resolver(name)
        if isinstance(self.context, Mapping):
            return self.context[name]
        raise KeyError(name)

    def __iter__(self) -> Iterator[str]:
        return iter(_CONSTANT_NAMES)

    def __len__(self) -> int:
        return len(_CONSTANT_NAMES)


def _restricted_globals() -> Dict[str, Any]:
    return {
        "__builtins__": _BUILTINS,
        "_getattr_": _guarded_getattr,
        "_getitem_": default_guarded_getitem,
        "_getiter_": default_guarded_getiter,
        "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
    }


class Expression:
    """A parsed, re-evaluable expression bound to an optional expected type."""

    def __init__(
        self,
        expression_string: str,
        expected_type: Any = None,
        conversion_service: Optional[ConversionService] = None,
    ) -> None:
        self.expression_string = expression_string
        self.expected_type = expected_type
        self._conversion_service = conversion_service

    def _evaluate(self, context: Any) -> Any:
        raise NotImplementedError

    def get_value(self, context: Any) -> Any:
        """Evaluate against `context` and coerce to the expected type."""
        value = self._evaluate(context)
        if self.expected_type is None or self.expected_type is Any:
            return value
        service = self._conversion_service or ConversionService()
        try:
            return service.execute_conversion(value, self.expected_type)
        except ConversionError as e:
            raise EvaluationError(
                f"Result of '{self.expression_string}' is not a valid {getattr(self.expected_type, '__name__', self.expected_type)}: {e}",
                self.expression_string,
            ) from e

    def set_value(self, context: Any, value: Any) -> None:
        raise EvaluationError(f"Expression '{self.expression_string}' is not settable", self.expression_string)

    def __str__(self) -> str:
        return self.expression_string

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.expression_string!r})"


class LiteralExpression(Expression):
    """A constant string value; evaluation ignores the context."""

    def __init__(self, value: str) -> None:
        super().__init__(str(value))

    def _evaluate(self, context: Any) -> Any:
        return self.expression_string


class ParsedExpression(Expression):
    def __init__(
        self,
        expression_string: str,
        code: CodeType,
        expected_type: Any = None,
        conversion_service: Optional[ConversionService] = None,
    ) -> None:
        super().__init__(expression_string, expected_type, conversion_service)
        self._code = code
        self.path = _settable_path(expression_string)

    def _evaluate(self, context: Any) -> Any:
        try:
            return eval(self._code, _restricted_globals(), _ContextNamespace(context))
        except ExpressionError:
            raise
        except NameError as e:
            raise self._failed(f"Unknown variable: {e}") from None
        except KeyError as e:
            raise self._failed(str(e.args[0]) if e.args else "Unknown key") from None
        except Exception as e:
            raise self._failed(f"{type(e).__name__}: {e}") from e

    def _failed(self, message: str) -> EvaluationError:
        return EvaluationError(f"{message} (expression '{self.expression_string}')", self.expression_string)

    def set_value(self, context: Any, value: Any) -> None:
        if not self.path:
            super().set_value(context, value)
            return
        assign = getattr(context, "assign_variable", None)
        if callable(assign):
            assign(self.path, value)
        elif isinstance(context, MutableMapping):
            set_by_path(context, self.path, value)  # type: ignore[arg-type]
        else:
            raise EvaluationError(
                f"Cannot assign '{self.path}' on {type(context).__name__}", self.expression_string
            )


class ExpressionParser:
    def __init__(self, conversion_service: Optional[ConversionService] = None) -> None:
        self.conversion_service = conversion_service or ConversionService()

    def parse_expression(self, expression: str, expected_type: Any = None) -> Expression:
        """Compile `expression`; raises ParseError on invalid or rejected syntax."""
        source = str(expression or "").strip()
        if not source:
            raise ParseError("Expression must be non-empty", source)
        result = compile_restricted_eval(source, "<expression>")
        if result.errors or result.code is None:
            raise ParseError(f"Invalid expression '{source}': {'; '.join(result.errors)}", source)
        return ParsedExpression(source, result.code, expected_type, self.conversion_service)

"""View factories consumed by view and end states.

A view factory turns an expression into a rendered `View` at execution time,
so the view shown to a user may be computed from flow data.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .constants import TRANSITION_ID_SUCCESS
from .core.context import View
from .expressions import Expression


@runtime_checkable
class ViewFactory(Protocol):
    def get_view(self, context: Any) -> View: ...


class ExpressionViewFactory:
    def __init__(self, view_id_expression: Expression) -> None:
        self.view_id_expression = view_id_expression

    def get_view(self, context: Any) -> View:
        view_id = self.view_id_expression.get_value(context)
        return View(view_id=str(view_id))

    def __repr__(self) -> str:
        return f"ExpressionViewFactory({str(self.view_id_expression)!r})"


class ViewFactoryCreator:
    def create_view_factory(self, expression: Expression) -> ViewFactory:
        if not isinstance(expression, Expression):
            raise TypeError(f"A view factory needs an Expression, got {type(expression).__name__}")
        if not str(expression).strip():
            raise ValueError("View id expression must be non-empty")
        return ExpressionViewFactory(expression)


class ViewFactoryActionAdapter:
    """Renders a view as a one-shot action (used as an end state's final response)."""

    def __init__(self, view_factory: ViewFactory) -> None:
        self.view_factory = view_factory

    def __call__(self, context: Any) -> str:
        view = self.view_factory.get_view(context)
        render = getattr(context, "render", None)
        if callable(render):
            render(view)
        return TRANSITION_ID_SUCCESS

    def __repr__(self) -> str:
        return f"ViewFactoryActionAdapter({self.view_factory!r})"

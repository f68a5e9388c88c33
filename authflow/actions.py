"""Actions executed by action states (and as entry actions of any state)."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from .constants import TRANSITION_ID_NO, TRANSITION_ID_SUCCESS, TRANSITION_ID_YES
from .expressions import Expression

logger = logging.getLogger(__name__)


def result_to_event(result: Any) -> str:
    """Map an action result to an event id.

    None -> "success", True/False -> "yes"/"no", enums -> their value,
    anything else -> its string form.
    """
    if result is None:
        return TRANSITION_ID_SUCCESS
    if isinstance(result, bool):
        return TRANSITION_ID_YES if result else TRANSITION_ID_NO
    if isinstance(result, Enum):
        return str(result.value)
    return str(result)


class EvaluateAction:
    """Evaluates an expression and signals its result as an event."""

    def __init__(self, expression: Expression) -> None:
        self.expression = expression

    def __call__(self, context: Any) -> str:
        result = self.expression.get_value(context)
        event = result_to_event(result)
        logger.debug(f"Evaluated '{self.expression}' -> {event}")
        return event

    def __repr__(self) -> str:
        return f"EvaluateAction({str(self.expression)!r})"

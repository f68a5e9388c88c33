"""Configuration for the webflow configurer."""

from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel

AUTOCONFIGURE_ENV = "AUTHFLOW_WEBFLOW_AUTOCONFIGURE"

_FALSY = {"0", "false", "no", "off"}


class WebflowSettings(BaseModel):
    """Webflow settings.

    `autoconfigure` gates every mutation a configurer performs on the flows it
    targets. When disabled, `initialize()` only logs a warning.
    """

    autoconfigure: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "WebflowSettings":
        env = os.environ if environ is None else environ
        raw = str(env.get(AUTOCONFIGURE_ENV) or "").strip().lower()
        if not raw:
            return cls()
        return cls(autoconfigure=raw not in _FALSY)

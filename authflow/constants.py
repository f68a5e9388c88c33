"""Well-known flow, state and transition identifiers."""

from __future__ import annotations

FLOW_ID_LOGIN = "login"

# Reserved outcome that turns a transition into a catch-all.
WILDCARD_EVENT_ID = "*"

STATE_ID_REAL_SUBMIT = "realSubmit"
STATE_ID_INITIAL_AUTHN_REQUEST_VALIDATION_CHECK = "initialAuthenticationRequestValidationCheck"

TRANSITION_ID_SUCCESS = "success"
TRANSITION_ID_YES = "yes"
TRANSITION_ID_NO = "no"

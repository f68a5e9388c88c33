from __future__ import annotations

import pytest

from authflow.core.context import RequestContext
from authflow.core.states import ActionState, DecisionState, EndState, SubflowState, ViewState
from authflow.core.transitions import ExpressionTransitionCriteria, WildcardTransitionCriteria
from authflow.errors import ParseError, StateCreationError
from authflow.views import ExpressionViewFactory, ViewFactoryActionAdapter


def _noop(context):
    return None


def test_action_state_is_created_with_actions(configurer, login_flow) -> None:
    state = configurer.create_action_state(login_flow, "submit", _noop)

    assert isinstance(state, ActionState)
    assert state.actions == [_noop]
    assert login_flow.get_state("submit") is state


@pytest.mark.parametrize(
    "create",
    [
        lambda c, f: c.create_action_state(f, "s", _noop),
        lambda c, f: c.create_decision_state(f, "s", "ticket != null", "a", "b"),
        lambda c, f: c.create_view_state(f, "s", "casLoginView"),
        lambda c, f: c.create_end_state(f, "s", "casLogoutView"),
        lambda c, f: c.create_subflow_state(f, "s", "mfa-otp"),
    ],
    ids=["action", "decision", "view", "end", "subflow"],
)
def test_every_constructor_is_idempotent(configurer, login_flow, create) -> None:
    first = create(configurer, login_flow)
    second = create(configurer, login_flow)

    assert second is first
    assert login_flow.state_ids == ["s"]


def test_second_call_does_not_clobber_customization(configurer, login_flow) -> None:
    state = configurer.create_action_state(login_flow, "submit", _noop)
    configurer.create_transition_for_state(state, "success", "done")

    again = configurer.create_action_state(login_flow, "submit")
    assert again.actions == [_noop]
    assert [t.id for t in again.transitions] == ["success"]


def test_existing_state_of_another_kind_is_reported(configurer, login_flow) -> None:
    configurer.create_end_state(login_flow, "done")
    with pytest.raises(StateCreationError):
        configurer.create_action_state(login_flow, "done")


def test_idempotent_reuse_is_logged(configurer, login_flow, caplog) -> None:
    configurer.create_action_state(login_flow, "submit")
    with caplog.at_level("DEBUG", logger="authflow.configurer"):
        configurer.create_action_state(login_flow, "submit")
    assert "Flow login already contains a definition for state id submit" in caplog.text


def test_decision_state_has_predicate_then_wildcard(configurer, login_flow) -> None:
    state = configurer.create_decision_state(login_flow, "hasTicket", "ticket != null", "viewSuccess", "viewFailure")

    assert isinstance(state, DecisionState)
    transitions = list(state.transitions)
    assert len(transitions) == 2
    assert isinstance(transitions[0].criteria, ExpressionTransitionCriteria)
    assert transitions[0].target_state_id == "viewSuccess"
    assert isinstance(transitions[1].criteria, WildcardTransitionCriteria)
    assert transitions[1].target_state_id == "viewFailure"
    assert transitions[0].criteria.expression.expected_type is bool


def test_decision_state_rejects_malformed_predicate(configurer, login_flow) -> None:
    with pytest.raises(ParseError):
        configurer.create_decision_state(login_flow, "broken", "ticket !=", "a", "b")
    assert not login_flow.contains_state("broken")


def test_view_state_accepts_literal_view_id(configurer, login_flow) -> None:
    state = configurer.create_view_state(login_flow, "viewLoginForm", "casLoginView")

    assert isinstance(state, ViewState)
    assert isinstance(state.view_factory, ExpressionViewFactory)
    assert state.view_factory.get_view(RequestContext("login")).view_id == "casLoginView"


def test_view_state_accepts_computed_view(configurer, login_flow) -> None:
    expr = configurer.create_expression("'cas' + theme + 'View'")
    state = configurer.create_view_state(login_flow, "viewLoginForm", expr)

    ctx = RequestContext("login", flow_scope={"theme": "Dark"})
    assert state.view_factory.get_view(ctx).view_id == "casDarkView"


def test_view_state_creation_failure_is_raised_not_swallowed(configurer, login_flow) -> None:
    with pytest.raises(StateCreationError):
        configurer.create_view_state(login_flow, "viewBroken", 42)
    assert not login_flow.contains_state("viewBroken")


def test_end_state_binds_view_through_final_response_action(configurer, login_flow) -> None:
    state = configurer.create_end_state(login_flow, "viewServiceErrorView", "casServiceErrorView")

    assert isinstance(state, EndState)
    assert isinstance(state.final_response_action, ViewFactoryActionAdapter)
    ctx = RequestContext("login")
    assert state.final_response_action(ctx) == "success"
    assert [v.view_id for v in ctx.rendered_views] == ["casServiceErrorView"]


def test_end_state_without_view(configurer, login_flow) -> None:
    state = configurer.create_end_state(login_flow, "redirect")
    assert state.final_response_action is None


def test_subflow_state_with_entry_action(configurer, login_flow) -> None:
    state = configurer.create_subflow_state(login_flow, "mfa", "mfa-otp", _noop)

    assert isinstance(state, SubflowState)
    assert state.entry_actions == [_noop]
    assert state.subflow.subflow_id == "mfa-otp"
    assert state.attribute_mapper is None


def test_evaluate_action_and_start_state(configurer, login_flow) -> None:
    action = configurer.create_evaluate_action("attempts < 3")
    first = configurer.create_action_state(login_flow, "check", action)
    second = configurer.create_view_state(login_flow, "form", "casLoginView")

    assert configurer.get_start_state(login_flow) is first
    configurer.set_start_state(login_flow, second)
    assert configurer.get_start_state(login_flow) is second
    assert action(RequestContext("login", flow_scope={"attempts": 1})) == "yes"


def test_get_login_flow(configurer, login_flow) -> None:
    assert configurer.get_login_flow() is login_flow

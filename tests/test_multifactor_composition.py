from __future__ import annotations

import pytest

from authflow.constants import STATE_ID_INITIAL_AUTHN_REQUEST_VALIDATION_CHECK, STATE_ID_REAL_SUBMIT
from authflow.core.flow import Flow
from authflow.core.registry import FlowDefinitionRegistry
from authflow.core.states import SubflowState
from authflow.errors import FlowBuilderError, NoSuchStateError
from authflow.runner import FlowRunner


def _login_states(configurer, login_flow: Flow) -> None:
    check = configurer.create_action_state(login_flow, STATE_ID_INITIAL_AUTHN_REQUEST_VALIDATION_CHECK)
    configurer.create_transition_for_state(check, "success", "viewLoginForm")
    form = configurer.create_view_state(login_flow, "viewLoginForm", "casLoginView")
    configurer.create_transition_for_state(form, "submit", STATE_ID_REAL_SUBMIT)
    submit = configurer.create_action_state(
        login_flow, STATE_ID_REAL_SUBMIT, lambda ctx: ctx.flow_scope.get("event")
    )
    configurer.create_transition_for_state(submit, "success", "sendTicketGrantingTicket")
    configurer.create_end_state(login_flow, "sendTicketGrantingTicket")


def _provider_registry(configurer) -> FlowDefinitionRegistry:
    provider = FlowDefinitionRegistry()
    mfa = Flow("mfa-otp")
    provider.register_flow_definition(mfa)
    configurer.create_end_state(mfa, "success")
    return provider


def test_splices_provider_flow_into_login(configurer, registry, login_flow) -> None:
    _login_states(configurer, login_flow)

    state = configurer.register_multifactor_provider_authentication_webflow(
        login_flow, "mfa-otp", _provider_registry(configurer)
    )

    assert isinstance(state, SubflowState)
    assert state.id == "mfa-otp"
    assert str(state.subflow) == "mfa-otp"
    assert state.attribute_mapper is not None
    assert state.get_transition("success").target_state_id == "sendTicketGrantingTicket"

    submit = login_flow.get_transitionable_state(STATE_ID_REAL_SUBMIT)
    assert submit.get_transition("mfa-otp").target_state_id == "mfa-otp"
    check = login_flow.get_transitionable_state(STATE_ID_INITIAL_AUTHN_REQUEST_VALIDATION_CHECK)
    assert check.get_transition("mfa-otp").target_state_id == "mfa-otp"

    assert registry.contains_flow_definition("mfa-otp")
    assert registry.contains_flow_definition("login")


def test_splice_is_idempotent(configurer, login_flow) -> None:
    _login_states(configurer, login_flow)
    provider = _provider_registry(configurer)

    first = configurer.register_multifactor_provider_authentication_webflow(login_flow, "mfa-otp", provider)
    shape = {sid: len(login_flow.get_state(sid).transitions) for sid in login_flow.state_ids if sid != "sendTicketGrantingTicket"}
    second = configurer.register_multifactor_provider_authentication_webflow(login_flow, "mfa-otp", provider)

    assert first is second
    assert shape == {sid: len(login_flow.get_state(sid).transitions) for sid in shape}


def test_spliced_flow_rejoins_at_the_submit_success_target(configurer, registry, login_flow) -> None:
    _login_states(configurer, login_flow)
    configurer.register_multifactor_provider_authentication_webflow(
        login_flow, "mfa-otp", _provider_registry(configurer)
    )

    runner = FlowRunner(registry)
    runner.start("login", {"event": "mfa-otp"})
    result = runner.resume("submit")

    assert result.outcome == "sendTicketGrantingTicket"


def test_splice_requires_the_submit_state(configurer, login_flow) -> None:
    check = configurer.create_action_state(login_flow, STATE_ID_INITIAL_AUTHN_REQUEST_VALIDATION_CHECK)
    configurer.create_transition_for_state(check, "success", "done")
    configurer.create_end_state(login_flow, "done")

    with pytest.raises(NoSuchStateError):
        configurer.register_multifactor_provider_authentication_webflow(
            login_flow, "mfa-otp", _provider_registry(configurer)
        )


def test_splice_requires_a_submit_success_transition(configurer, login_flow) -> None:
    configurer.create_action_state(login_flow, STATE_ID_INITIAL_AUTHN_REQUEST_VALIDATION_CHECK)
    configurer.create_action_state(login_flow, STATE_ID_REAL_SUBMIT)

    with pytest.raises(FlowBuilderError):
        configurer.register_multifactor_provider_authentication_webflow(
            login_flow, "mfa-otp", _provider_registry(configurer)
        )


def test_splice_state_ids_can_be_overridden(registry, configurer) -> None:
    configurer.real_submit_state_id = "submit"
    configurer.initial_validation_check_state_id = "check"
    flow = Flow("custom")
    check = configurer.create_action_state(flow, "check")
    configurer.create_transition_for_state(check, "success", "submit")
    submit = configurer.create_action_state(flow, "submit")
    configurer.create_transition_for_state(submit, "success", "done")
    configurer.create_end_state(flow, "done")

    configurer.register_multifactor_provider_authentication_webflow(flow, "mfa-otp", _provider_registry(configurer))

    assert flow.get_transitionable_state("submit").get_transition("mfa-otp") is not None
    assert flow.get_transitionable_state("check").get_transition("mfa-otp") is not None
    assert flow.get_transitionable_state("submit").get_transition("mfa-otp").target_state_id == "mfa-otp"
    assert flow.get_transitionable_state("mfa-otp").get_transition("success").target_state_id == "done"
    assert registry.get_flow_definition_ids() == ["mfa-otp"]

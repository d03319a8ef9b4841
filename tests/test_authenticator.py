"""Test module for the SMS authenticator."""

import logging
from unittest import mock

import pytest

from sms_authenticator.authenticator import (
    MOBILE_NUMBER_REQUIRED_ACTION,
    SmsAuthenticator,
    create_authenticator,
)
from sms_authenticator.challenge import OtpChallenge
from sms_authenticator.exceptions import ConfigurationError
from sms_authenticator.gateway import GatewayDispatcher, SimulationTransport
from sms_authenticator.session import MemoryAuthNotes
from sms_authenticator.types import AuthenticationFlow, Outcome, Requirement
from sms_authenticator.validator import OtpValidator, RetryThrottle


@pytest.fixture()
def authenticator(config, directory, transport, clock):
    return SmsAuthenticator(
        config,
        directory,
        dispatcher=GatewayDispatcher(config, transport=transport),
        validator=OtpValidator(delay_policy=RetryThrottle(2.0), clock=clock),
        clock=clock,
    )


def test_requires_user(authenticator):
    """Test the step always needs an identified user."""
    assert authenticator.requires_user() is True


def test_is_applicable(authenticator):
    """Test only identities with a mobile number can use the step."""
    assert authenticator.is_applicable("alice") is True
    assert authenticator.is_applicable("bob") is False
    assert authenticator.is_applicable("mallory") is False


def test_set_required_actions(config, directory, transport):
    """Test the mobile number required action is requested."""
    registrar = mock.Mock()
    authenticator = SmsAuthenticator(
        config,
        directory,
        dispatcher=GatewayDispatcher(config, transport=transport),
        registrar=registrar,
    )

    authenticator.set_required_actions("bob")

    registrar.add_required_action.assert_called_once_with(
        "bob", MOBILE_NUMBER_REQUIRED_ACTION
    )


def test_set_required_actions_without_registrar(authenticator):
    """Test a missing registrar is tolerated."""
    authenticator.set_required_actions("bob")


def test_authenticate_without_mobile_number(authenticator, transport):
    """Test the step is skipped for identities without a number."""
    flow = AuthenticationFlow(flow_id="flow-2", identity="bob", notes=MemoryAuthNotes())

    result = authenticator.authenticate(flow)

    assert result.outcome is Outcome.NOT_APPLICABLE
    assert result.error_key == "smsAuthMissingMobileNumber"
    assert transport.sent == []
    assert OtpChallenge.load(flow.notes) is None


def test_authenticate_then_accept(authenticator, transport, clock, make_flow):
    """Test a full round trip from issuing to accepting a code."""
    flow = make_flow()

    presented = authenticator.authenticate(flow)
    assert presented.outcome is Outcome.CHALLENGE_PRESENTED
    assert transport.sent[0][0] == "4510101010"

    code = OtpChallenge.load(flow.notes).code
    assert code in transport.sent[0][1]

    clock.advance(30)
    assert authenticator.action(flow, code).outcome is Outcome.ACCEPTED


def test_wrong_code_then_retry(authenticator, clock, make_flow):
    """Test a user can retry with the same code after the delay."""
    flow = make_flow(Requirement.REQUIRED)
    authenticator.authenticate(flow)
    code = OtpChallenge.load(flow.notes).code

    assert authenticator.action(flow, "00000").outcome is Outcome.INVALID
    clock.advance(2)
    assert authenticator.action(flow, code).outcome is Outcome.ACCEPTED


def test_resend_clears_retry_delay(authenticator, clock, make_flow):
    """Test a freshly issued code can be entered without waiting out the delay."""
    flow = make_flow(Requirement.REQUIRED)
    authenticator.authenticate(flow)
    assert authenticator.action(flow, "00000").outcome is Outcome.INVALID

    authenticator.authenticate(flow)
    clock.advance(1)
    code = OtpChallenge.load(flow.notes).code

    assert authenticator.action(flow, code).outcome is Outcome.ACCEPTED


def test_create_authenticator_in_simulation(directory, make_flow, caplog):
    """Test an authenticator built from a config map in simulation mode."""
    authenticator = create_authenticator(
        {"length": "5", "ttl": "300", "senderId": "Acme", "simulation": "true"},
        None,
        directory,
    )
    flow = make_flow()

    with caplog.at_level(logging.WARNING):
        result = authenticator.authenticate(flow)

    assert result.outcome is Outcome.CHALLENGE_PRESENTED
    assert isinstance(authenticator.dispatcher.transport, SimulationTransport)
    code = OtpChallenge.load(flow.notes).code
    assert any(
        "SIMULATION MODE" in record.getMessage()
        and "4510101010" in record.getMessage()
        and code in record.getMessage()
        for record in caplog.records
    )


def test_create_authenticator_without_credential(directory):
    """Test a live provider without a credential fails before any flow."""
    with pytest.raises(ConfigurationError):
        create_authenticator({"length": "5", "ttl": "300"}, None, directory)


def test_close_releases_transport(authenticator, transport):
    """Test closing the authenticator closes the transport."""
    authenticator.close()
    assert transport.closed is True

"""Shared fixtures for the SMS authenticator tests."""

from datetime import datetime, timedelta, timezone

import pytest

ISSUED_AT = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now=ISSUED_AT):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class RecordingTransport:
    """Transport that records messages and optionally fails."""

    def __init__(self, error=None):
        self.sent = []
        self.error = error
        self.closed = False

    def send(self, recipient, message):
        self.sent.append((recipient, message))
        if self.error is not None:
            raise self.error

    def close(self):
        self.closed = True


class Directory:
    """Identity directory backed by a dict of attribute dicts."""

    def __init__(self, attributes):
        self.attributes = attributes

    def get_attribute(self, identity, name):
        return self.attributes.get(identity, {}).get(name)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def config():
    from sms_authenticator.config import GatewayConfig

    return GatewayConfig(
        provider_credential="test-token", sender_id="Acme", ttl_seconds=300
    )


@pytest.fixture()
def directory():
    return Directory(
        {"alice": {"mobile_number": "+45 10 10 10 10"}, "bob": {"email": "bob@example.com"}}
    )


@pytest.fixture()
def make_flow():
    """Build a flow with fresh in-memory notes."""
    from sms_authenticator.session import MemoryAuthNotes
    from sms_authenticator.types import AuthenticationFlow, Requirement

    def _make_flow(requirement=Requirement.REQUIRED, flow_id="flow-1", notes=None):
        return AuthenticationFlow(
            flow_id=flow_id,
            identity="alice",
            notes=notes if notes is not None else MemoryAuthNotes(),
            requirement=requirement,
        )

    return _make_flow

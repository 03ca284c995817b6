"""Shared test fixtures for the notifier tests."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from notifier import transport
from notifier.events import Event, ObjectReference, Severity


class RecordingTransport:
    """
    Collects every outbound request and answers through ``handler``.

    The default handler replies 200 with an empty JSON object.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.handler = lambda request: httpx.Response(200, json={})

    def factory(self) -> httpx.AsyncBaseTransport:
        return httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request):
        self.requests.append(request)
        return self.handler(request)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def mock_http():
    """Route outbound requests into a RecordingTransport for the test's duration."""
    recorder = RecordingTransport()
    transport.set_transport_factory(recorder.factory)
    yield recorder
    transport.set_transport_factory(None)


@pytest.fixture
def clock():
    return FakeClock(datetime.now(timezone.utc))


@pytest.fixture
def sample_event():
    """An info event as emitted by the source controller."""
    return Event(
        involved_object=ObjectReference(
            kind="GitRepository",
            name="webapp",
            namespace="gitops-system",
        ),
        severity=Severity.INFO,
        timestamp=datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc),
        message="message",
        reason="reason",
        metadata={"test": "metadata"},
        reporting_controller="source-controller",
        reporting_instance="source-controller-xyz",
    )


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_private_key) -> bytes:
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )

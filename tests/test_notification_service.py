"""Tests for single sends and broadcast fan-out."""
from __future__ import annotations

import asyncio

import pytest

from yatri.models.notifications import BroadcastReport, MessageContent, Recipient
from yatri.services.mail_transport import SendTimeout, TransportUnavailable
from yatri.services.notification_service import NotificationService


CONTENT = MessageContent(subject="Hello", html_body="<p>Hi</p>")


class SlowTransport:
    """Tracks how many sends are in flight at once."""

    def __init__(self) -> None:
        self.available = True
        self.account = "portal@example.com"
        self.in_flight = 0
        self.peak = 0

    async def send(self, recipient: Recipient, content: MessageContent) -> str:
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        await asyncio.sleep(0.01)
        self.in_flight -= 1
        return f"<{recipient.address}>"


class TimingOutTransport:
    available = True
    account = "portal@example.com"

    async def send(self, recipient: Recipient, content: MessageContent) -> str:
        raise SendTimeout("Email send timeout after 60s")


class ExplodingTransport:
    available = True
    account = "portal@example.com"

    async def send(self, recipient: Recipient, content: MessageContent) -> str:
        raise RuntimeError("socket went away")


@pytest.mark.asyncio
async def test_send_one_success(fake_transport):
    service = NotificationService(fake_transport)

    outcome = await service.send_one(Recipient("a@x.com", "A"), CONTENT)

    assert outcome.succeeded is True
    assert outcome.message_id == "<1@test.local>"
    assert outcome.error is None
    assert fake_transport.sent[0][0].address == "a@x.com"


@pytest.mark.asyncio
@pytest.mark.parametrize("transport_available", [False, None])
async def test_send_one_without_transport_never_raises(make_transport, transport_available):
    transport = None if transport_available is None else make_transport(available=False)
    service = NotificationService(transport)

    outcome = await service.send_one(Recipient("a@x.com"), CONTENT)

    assert outcome.succeeded is False
    assert outcome.error == "Email service not available"


@pytest.mark.asyncio
async def test_send_one_timeout_is_distinguishable():
    service = NotificationService(TimingOutTransport())

    outcome = await service.send_one(Recipient("a@x.com"), CONTENT)

    assert outcome.succeeded is False
    assert "timeout" in outcome.error.lower()


@pytest.mark.asyncio
async def test_send_one_relay_rejection_is_not_a_timeout(make_transport):
    service = NotificationService(make_transport(fail_for={"a@x.com"}))

    outcome = await service.send_one(Recipient("a@x.com"), CONTENT)

    assert outcome.succeeded is False
    assert "rejected" in outcome.error.lower()
    assert "timeout" not in outcome.error.lower()


@pytest.mark.asyncio
async def test_send_one_captures_unexpected_errors():
    service = NotificationService(ExplodingTransport())

    outcome = await service.send_one(Recipient("a@x.com"), CONTENT)

    assert outcome.succeeded is False
    assert "socket went away" in outcome.error


@pytest.mark.asyncio
async def test_broadcast_empty_list_skips_transport(make_transport):
    transport = make_transport(available=False)
    service = NotificationService(transport)

    report = await service.broadcast([], CONTENT)

    assert report == BroadcastReport(total_recipients=0, succeeded=0, failed=())
    assert transport.sent == []


@pytest.mark.asyncio
async def test_broadcast_unavailable_transport_short_circuits(make_transport):
    transport = make_transport(available=False)
    service = NotificationService(transport)

    with pytest.raises(TransportUnavailable, match="Email service not available"):
        await service.broadcast([Recipient("a@x.com"), Recipient("b@x.com")], CONTENT)
    assert transport.sent == []


@pytest.mark.asyncio
async def test_broadcast_partial_failure(make_transport):
    transport = make_transport(fail_for={"b@x.com"})
    service = NotificationService(transport)

    report = await service.notify_broadcast(
        "Update",
        "New menu",
        "Admin1",
        [Recipient("a@x.com"), Recipient("b@x.com")],
    )

    assert report.total_recipients == 2
    assert report.succeeded == 1
    assert [outcome.recipient.address for outcome in report.failed] == ["b@x.com"]
    assert report.to_dict()["failed"][0]["email"] == "b@x.com"
    assert transport.sent[0][1].subject == "📢 Update"


@pytest.mark.asyncio
@pytest.mark.parametrize("size", [1, 4, 25])
async def test_broadcast_counts_add_up(make_transport, size):
    addresses = [f"staff{i}@x.com" for i in range(size)]
    failing = set(addresses[::3])
    service = NotificationService(make_transport(fail_for=failing))

    report = await service.broadcast([Recipient(a) for a in addresses], CONTENT)

    assert report.total_recipients == size
    assert report.succeeded + len(report.failed) == size
    assert {o.recipient.address for o in report.failed} == failing


@pytest.mark.asyncio
async def test_broadcast_runs_concurrently_within_worker_bound():
    transport = SlowTransport()
    service = NotificationService(transport, broadcast_workers=3)

    report = await service.broadcast([Recipient(f"s{i}@x.com") for i in range(10)], CONTENT)

    assert report.succeeded == 10
    assert transport.peak == 3


@pytest.mark.asyncio
async def test_notify_welcome_renders_and_sends(fake_transport):
    service = NotificationService(fake_transport)

    outcome = await service.notify_welcome(Recipient("a@x.com"), "Jane Doe", "S100", "Tmp#123")

    assert outcome.succeeded is True
    recipient, content = fake_transport.sent[0]
    assert recipient.address == "a@x.com"
    assert content.subject == "🎉 Welcome to YATRI Training Portal!"
    assert "S100" in content.html_body
    assert "Tmp#123" in content.html_body


@pytest.mark.asyncio
async def test_send_self_test_targets_account(fake_transport):
    service = NotificationService(fake_transport)

    outcome = await service.send_self_test()

    assert outcome.succeeded is True
    assert fake_transport.sent[0][0].address == "portal@example.com"


def test_worker_count_must_be_positive(fake_transport):
    with pytest.raises(ValueError):
        NotificationService(fake_transport, broadcast_workers=0)

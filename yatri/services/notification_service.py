"""Notification dispatching helpers."""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from fastapi import Request

from yatri.models.notifications import BroadcastReport, MessageContent, Recipient, SendOutcome
from yatri.services import email_templates
from yatri.services.mail_transport import (
    UNAVAILABLE_MESSAGE,
    MailTransport,
    SendTimeout,
    TransportError,
    TransportUnavailable,
)


logger = logging.getLogger(__name__)


class NotificationService:
    """Sends portal emails through a shared ``MailTransport``.

    Single sends never raise: every failure comes back as a ``SendOutcome``
    so one bad address cannot abort a broadcast.
    """

    def __init__(self, transport: MailTransport | None, broadcast_workers: int = 5) -> None:
        if broadcast_workers < 1:
            raise ValueError("broadcast_workers must be at least 1")
        self._transport = transport
        self._broadcast_workers = broadcast_workers

    @property
    def available(self) -> bool:
        return self._transport is not None and self._transport.available

    @property
    def transport(self) -> MailTransport | None:
        return self._transport

    async def send_one(self, recipient: Recipient, content: MessageContent) -> SendOutcome:
        """Deliver one message and report the outcome."""

        if not self.available:
            return SendOutcome.failure(recipient, UNAVAILABLE_MESSAGE)

        try:
            message_id = await self._transport.send(recipient, content)
        except SendTimeout as err:
            logger.warning("Email to %s timed out: %s", recipient.address, err)
            return SendOutcome.failure(recipient, str(err))
        except TransportError as err:
            logger.warning("Email to %s failed: %s", recipient.address, err)
            return SendOutcome.failure(recipient, str(err))
        except Exception as err:
            logger.exception("Unexpected error sending email to %s", recipient.address)
            return SendOutcome.failure(recipient, f"Unexpected error: {err}")

        logger.info("Email sent to %s (message_id=%s)", recipient.address, message_id)
        return SendOutcome.success(recipient, message_id)

    async def broadcast(self, recipients: Iterable[Recipient], content: MessageContent) -> BroadcastReport:
        """Send the same message to every recipient and wait for the whole batch.

        Raises:
            TransportUnavailable: the transport is down; nothing was attempted.
        """
        recipients = list(recipients)
        if not recipients:
            return BroadcastReport.empty()
        if not self.available:
            raise TransportUnavailable(UNAVAILABLE_MESSAGE)

        workers = asyncio.Semaphore(self._broadcast_workers)

        async def _send(recipient: Recipient) -> SendOutcome:
            async with workers:
                return await self.send_one(recipient, content)

        # gather keeps results aligned with the recipients they came from.
        outcomes = await asyncio.gather(*(_send(recipient) for recipient in recipients))
        report = BroadcastReport.from_outcomes(outcomes)
        logger.info(
            "Broadcast finished | subject=%s | total=%d | succeeded=%d | failed=%d",
            content.subject,
            report.total_recipients,
            report.succeeded,
            len(report.failed),
        )
        return report

    async def notify_welcome(
        self,
        recipient: Recipient,
        staff_name: str,
        staff_id: str,
        temporary_password: str,
    ) -> SendOutcome:
        """Welcome a newly created staff member with their login details."""

        content = email_templates.welcome_email(staff_name, staff_id, temporary_password)
        return await self.send_one(recipient, content)

    async def notify_broadcast(
        self,
        subject: str,
        message: str,
        sender_display_name: str,
        recipients: Iterable[Recipient],
    ) -> BroadcastReport:
        content = email_templates.broadcast_email(subject, message, sender_display_name)
        return await self.broadcast(recipients, content)

    async def send_self_test(self) -> SendOutcome:
        """Send the configuration check message to the mail account itself."""

        address = self._transport.account if self._transport is not None else None
        recipient = Recipient(address=address or "", display_name="YATRI Training Portal")
        return await self.send_one(recipient, email_templates.self_test_email())


def get_notifier(request: Request) -> NotificationService:
    """FastAPI dependency returning the process-wide notifier.

    Falls back to a transport-less service (every send fails fast) when the
    application started without running its lifespan.
    """
    notifier = getattr(request.app.state, "notifier", None)
    if notifier is None:
        notifier = NotificationService(transport=None)
    return notifier

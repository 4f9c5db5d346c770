"""SMTP transport shared by every notification send.

One ``MailTransport`` is opened per process (see ``yatri.main``). Blocking
smtplib calls run in worker threads; the event loop only enforces the
connection cap, the per-window send cap and the per-operation timeouts.
"""
from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
import threading
from collections import deque
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Callable

from yatri.config import Settings
from yatri.models.notifications import MessageContent, Recipient


logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Email service not available"

SmtpFactory = Callable[[str, int, float], smtplib.SMTP]


class TransportError(Exception):
    """Base class for mail transport failures."""


class ConfigurationMissing(TransportError):
    """Mail account address or secret is not configured."""


class TransportUnavailable(TransportError):
    """The relay cannot be used for the rest of the process lifetime."""


class VerificationTimeout(TransportError, TimeoutError):
    """The relay did not answer the verification probe in time."""


class SendTimeout(TransportError, TimeoutError):
    """A single delivery exceeded the send timeout."""


class RelayRejected(TransportError):
    """The relay refused the message."""


def _default_smtp_factory(host: str, port: int, timeout: float) -> smtplib.SMTP:
    context = ssl.create_default_context()
    if port == 465:
        return smtplib.SMTP_SSL(host, port, timeout=timeout, context=context)
    client = smtplib.SMTP(host, port, timeout=timeout)
    client.starttls(context=context)
    return client


class _PooledSession:
    """An authenticated SMTP session and how many messages it has carried."""

    def __init__(self, smtp: smtplib.SMTP) -> None:
        self.smtp = smtp
        self.sent = 0


class _SendThrottle:
    """Sliding-window cap on messages handed to the relay."""

    def __init__(self, limit: int, window: float) -> None:
        self._limit = limit
        self._window = window
        self._sent: deque[float] = deque()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            loop = asyncio.get_running_loop()
            while True:
                now = loop.time()
                while self._sent and now - self._sent[0] >= self._window:
                    self._sent.popleft()
                if len(self._sent) < self._limit:
                    self._sent.append(now)
                    return
                await asyncio.sleep(self._window - (now - self._sent[0]))


class MailTransport:
    """Owns the pool of SMTP sessions to the configured relay."""

    def __init__(self, settings: Settings, smtp_factory: SmtpFactory | None = None) -> None:
        self._settings = settings
        self._smtp_factory = smtp_factory or _default_smtp_factory
        self._sender = formataddr((settings.email_from_name, settings.email_user or ""))
        account = settings.email_user or ""
        self._msgid_domain = account.partition("@")[2] or settings.smtp_host

        self._idle: list[_PooledSession] = []
        self._idle_lock = threading.Lock()
        self._slots: asyncio.Semaphore | None = None
        self._throttle: _SendThrottle | None = None

        self._state = "closed"  # closed | ready | disabled | shut
        self._verified = False
        self._error: str | None = None

    @property
    def account(self) -> str | None:
        return self._settings.email_user

    @property
    def available(self) -> bool:
        return self._state == "ready"

    @property
    def verified(self) -> bool:
        return self._verified

    @property
    def error(self) -> str | None:
        return self._error

    def status(self) -> dict:
        """Snapshot used by the status endpoint and the check script."""

        return {
            "configured": self._settings.email_configured,
            "available": self.available,
            "verified": self._verified,
            "error": self._error,
        }

    async def open(self) -> None:
        """Prepare the pool and verify the relay once.

        Missing credentials or a hard verification failure disable the
        transport until the process exits. A verification timeout leaves it
        usable; the first real send doubles as the check.
        """
        if self._state != "closed":
            return

        if not self._settings.email_configured:
            self._disable(
                ConfigurationMissing("Email credentials not configured (EMAIL_USER / EMAIL_PASS)")
            )
            return

        self._slots = asyncio.Semaphore(self._settings.email_max_connections)
        self._throttle = _SendThrottle(
            self._settings.email_rate_limit,
            self._settings.email_rate_window,
        )
        self._state = "ready"

        try:
            await self.verify()
        except VerificationTimeout as err:
            logger.warning("%s; continuing unverified", err)
        except TransportError as err:
            self._disable(err)
        else:
            logger.info(
                "Email transport ready (%s:%s as %s)",
                self._settings.smtp_host,
                self._settings.smtp_port,
                self._settings.email_user,
            )

    async def verify(self) -> None:
        """Connect, authenticate and NOOP against the relay."""

        if self._state == "disabled":
            raise TransportUnavailable(self._error or UNAVAILABLE_MESSAGE)

        timeout = self._settings.email_verify_timeout
        try:
            await asyncio.wait_for(asyncio.to_thread(self._probe), timeout=timeout)
        except VerificationTimeout:
            raise
        except asyncio.TimeoutError as err:
            raise VerificationTimeout(f"SMTP verification timeout after {timeout:g}s") from err
        self._verified = True

    async def send(self, recipient: Recipient, content: MessageContent) -> str:
        """Submit one message and return its Message-ID."""

        if not self.available:
            raise TransportUnavailable(UNAVAILABLE_MESSAGE)

        message = self._build_message(recipient, content)
        queue_timeout = self._settings.email_queue_timeout
        try:
            await asyncio.wait_for(self._reserve(), timeout=queue_timeout)
        except asyncio.TimeoutError as err:
            raise SendTimeout(
                f"Email send timeout after {queue_timeout:g}s waiting for relay capacity"
            ) from err

        timeout = self._settings.email_send_timeout
        try:
            message_id = await asyncio.wait_for(
                asyncio.to_thread(self._deliver, message),
                timeout=timeout,
            )
        except SendTimeout:
            raise
        except asyncio.TimeoutError as err:
            # The worker thread keeps going until its socket timeout fires.
            raise SendTimeout(f"Email send timeout after {timeout:g}s") from err
        finally:
            self._slots.release()

        self._verified = True
        return message_id

    async def close(self) -> None:
        """Quit idle sessions. Later sends fail as unavailable and the
        transport cannot be reopened."""

        if self._state != "disabled":
            self._state = "shut"
        with self._idle_lock:
            sessions, self._idle = self._idle, []
        for session in sessions:
            await asyncio.to_thread(self._quit, session.smtp)
        logger.info("Email transport closed (%d session(s) released)", len(sessions))

    async def _reserve(self) -> None:
        """Take a connection slot, then a place in the send window."""
        await self._slots.acquire()
        try:
            await self._throttle.acquire()
        except BaseException:
            self._slots.release()
            raise

    def _disable(self, err: TransportError) -> None:
        self._state = "disabled"
        self._error = str(err)
        logger.warning("Email notifications disabled: %s", err)

    def _build_message(self, recipient: Recipient, content: MessageContent) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = content.subject
        message["From"] = self._sender
        message["To"] = recipient.formatted()
        message["Message-ID"] = make_msgid(domain=self._msgid_domain)
        message.set_content(content.html_body, subtype="html")
        return message

    # Worker-thread side

    def _connect(self, timeout: float) -> smtplib.SMTP:
        smtp = self._smtp_factory(self._settings.smtp_host, self._settings.smtp_port, timeout)
        try:
            smtp.login(self._settings.email_user, self._settings.email_pass)
        except Exception:
            self._quit(smtp)
            raise
        return smtp

    @staticmethod
    def _quit(smtp: smtplib.SMTP) -> None:
        try:
            smtp.quit()
        except (smtplib.SMTPException, OSError):
            logger.debug("SMTP QUIT failed; closing socket", exc_info=True)
            smtp.close()

    def _probe(self) -> None:
        try:
            smtp = self._connect(self._settings.email_verify_timeout)
            try:
                smtp.noop()
            finally:
                self._quit(smtp)
        except TimeoutError as err:
            raise VerificationTimeout(f"SMTP verification timeout: {err}") from err
        except smtplib.SMTPAuthenticationError as err:
            raise TransportUnavailable(f"SMTP authentication failed: {err}") from err
        except (smtplib.SMTPException, OSError) as err:
            raise TransportUnavailable(f"SMTP connection failed: {err}") from err

    def _checkout(self) -> _PooledSession:
        with self._idle_lock:
            if self._idle:
                return self._idle.pop()
        return _PooledSession(self._connect(self._settings.email_send_timeout))

    def _checkin(self, session: _PooledSession) -> None:
        if session.sent >= self._settings.email_max_messages or self._state != "ready":
            self._quit(session.smtp)
            return
        with self._idle_lock:
            self._idle.append(session)

    def _drop(self, session: _PooledSession | None) -> None:
        if session is not None:
            self._quit(session.smtp)

    def _deliver(self, message: EmailMessage) -> str:
        session = None
        try:
            session = self._checkout()
            session.smtp.send_message(message)
        except TimeoutError as err:
            self._drop(session)
            raise SendTimeout(f"SMTP timeout while sending: {err}") from err
        except (
            smtplib.SMTPRecipientsRefused,
            smtplib.SMTPSenderRefused,
            smtplib.SMTPDataError,
        ) as err:
            # smtplib resets the session after these, so it stays reusable.
            self._checkin(session)
            raise RelayRejected(f"Relay rejected message: {err}") from err
        except (smtplib.SMTPException, OSError) as err:
            self._drop(session)
            raise TransportError(f"SMTP delivery failed: {err}") from err

        session.sent += 1
        self._checkin(session)
        logger.debug("Delivered %s to %s", message["Message-ID"], message["To"])
        return message["Message-ID"]

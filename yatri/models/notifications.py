"""Value objects passed through the notification dispatch path."""
from __future__ import annotations

from dataclasses import dataclass, field
from email.utils import formataddr
from typing import Iterable


@dataclass(frozen=True)
class Recipient:
    """One addressee, built from a staff record for the duration of a send."""

    address: str
    display_name: str = ""

    def formatted(self) -> str:
        """RFC 5322 ``To`` header value."""
        return formataddr((self.display_name, self.address))


@dataclass(frozen=True)
class MessageContent:
    """Rendered subject and HTML body."""

    subject: str
    html_body: str


@dataclass(frozen=True)
class SendOutcome:
    """Result of a single send attempt. Failures are values, not exceptions."""

    recipient: Recipient
    succeeded: bool
    message_id: str | None = None
    error: str | None = None

    @classmethod
    def success(cls, recipient: Recipient, message_id: str | None) -> "SendOutcome":
        return cls(recipient=recipient, succeeded=True, message_id=message_id)

    @classmethod
    def failure(cls, recipient: Recipient, error: str) -> "SendOutcome":
        return cls(recipient=recipient, succeeded=False, error=error)

    def to_dict(self) -> dict:
        return {
            "email": self.recipient.address,
            "name": self.recipient.display_name,
            "succeeded": self.succeeded,
            "messageId": self.message_id,
            "error": self.error,
        }


@dataclass(frozen=True)
class BroadcastReport:
    """Aggregate of a broadcast batch."""

    total_recipients: int
    succeeded: int
    failed: tuple[SendOutcome, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> "BroadcastReport":
        return cls(total_recipients=0, succeeded=0, failed=())

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[SendOutcome]) -> "BroadcastReport":
        outcomes = list(outcomes)
        failed = tuple(outcome for outcome in outcomes if not outcome.succeeded)
        return cls(
            total_recipients=len(outcomes),
            succeeded=len(outcomes) - len(failed),
            failed=failed,
        )

    def to_dict(self) -> dict:
        return {
            "totalRecipients": self.total_recipients,
            "succeeded": self.succeeded,
            "failed": [
                {
                    "email": outcome.recipient.address,
                    "name": outcome.recipient.display_name,
                    "error": outcome.error,
                }
                for outcome in self.failed
            ],
        }

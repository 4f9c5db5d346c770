"""Admin broadcast and email configuration endpoints."""
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from yatri.database import get_db
from yatri.models.database_models import Staff
from yatri.models.notifications import Recipient
from yatri.models.schemas import (
    BroadcastRequest,
    BroadcastResponse,
    EmailStatusResponse,
    SendOutcomeResponse,
)
from yatri.services.mail_transport import TransportUnavailable
from yatri.services.notification_service import NotificationService, get_notifier


logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"])


@router.post("/api/admin/broadcast", response_model=BroadcastResponse)
async def broadcast_message(
    payload: BroadcastRequest,
    db: Annotated[Session, Depends(get_db)],
    notifier: Annotated[NotificationService, Depends(get_notifier)],
):
    """
    Email an announcement to every staff member with an address on file.

    Returns:
        BroadcastResponse: totals plus one entry per failed recipient

    Raises:
        HTTPException: 503 if the mail transport is unavailable
    """
    rows = (
        db.query(Staff.email, Staff.name)
        .filter(Staff.email.is_not(None), Staff.email != "")
        .order_by(Staff.id)
        .all()
    )
    recipients = [Recipient(address=email, display_name=name) for email, name in rows]

    try:
        report = await notifier.notify_broadcast(
            payload.subject,
            payload.message,
            payload.admin_id,
            recipients,
        )
    except TransportUnavailable as err:
        logger.warning("Broadcast by %s refused: %s", payload.admin_id, err)
        raise HTTPException(status_code=503, detail=str(err))

    logger.info(
        "Broadcast by %s: %d/%d delivered",
        payload.admin_id,
        report.succeeded,
        report.total_recipients,
    )
    return BroadcastResponse(**report.to_dict())


@router.get("/api/email/status", response_model=EmailStatusResponse)
async def email_status(
    notifier: Annotated[NotificationService, Depends(get_notifier)],
):
    transport = notifier.transport
    if transport is None:
        return EmailStatusResponse(
            configured=False,
            available=False,
            verified=False,
            error="Email service not initialised",
        )
    return EmailStatusResponse(**transport.status())


@router.post("/api/email/test", response_model=SendOutcomeResponse)
async def send_test_email(
    notifier: Annotated[NotificationService, Depends(get_notifier)],
):
    """Send the configuration test message to the mail account itself."""
    outcome = await notifier.send_self_test()
    return SendOutcomeResponse(**outcome.to_dict())

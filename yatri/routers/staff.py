"""API endpoints for staff record management."""
from __future__ import annotations

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from yatri.database import get_db
from yatri.models.database_models import Staff
from yatri.models.notifications import Recipient
from yatri.models.schemas import (
    ChangeResponse,
    StaffCreate,
    StaffCreateResponse,
    StaffRecord,
    StaffUpdate,
)
from yatri.services.notification_service import NotificationService, get_notifier
from yatri.services.passwords import hash_password


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/staff", tags=["staff"])


@router.get("", response_model=list[StaffRecord])
async def list_staff(db: Annotated[Session, Depends(get_db)]):
    """All staff records for the admin dashboard, without password hashes."""
    return db.query(Staff).order_by(Staff.id).all()


@router.post("", response_model=StaffCreateResponse)
async def create_staff(
    payload: StaffCreate,
    db: Annotated[Session, Depends(get_db)],
    notifier: Annotated[NotificationService, Depends(get_notifier)],
):
    """
    Enrol a staff member and email them their login details.

    The record is committed before the welcome email goes out. A failed
    email is reported in ``emailError`` but does not fail the request.

    Raises:
        HTTPException: 400 if the staff ID is already taken
    """
    staff = Staff(
        name=payload.name,
        staff_id=payload.staff_id,
        email=payload.email or None,
        password=await asyncio.to_thread(hash_password, payload.password),
        progress="{}",
        created_by=payload.admin_id or "Unknown",
    )
    db.add(staff)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Staff ID already exists.")
    db.refresh(staff)
    logger.info("Created staff %s (id=%s) by %s", staff.staff_id, staff.id, staff.created_by)

    response = StaffCreateResponse(id=staff.id)
    if staff.email:
        outcome = await notifier.notify_welcome(
            Recipient(address=staff.email, display_name=staff.name),
            staff_name=staff.name,
            staff_id=staff.staff_id,
            temporary_password=payload.password,
        )
        response.emailSent = outcome.succeeded
        response.emailError = outcome.error
        if not outcome.succeeded:
            logger.warning(
                "Staff %s created, welcome email not sent: %s", staff.staff_id, outcome.error
            )
    return response


@router.put("/{current_staff_id}", response_model=ChangeResponse)
async def update_staff(
    current_staff_id: str,
    payload: StaffUpdate,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Edit a staff record. The password hash only changes when a new password is sent.

    Raises:
        HTTPException: 400 if the new staff ID clashes with another record
    """
    values = {
        Staff.name: payload.name,
        Staff.staff_id: payload.staff_id,
        Staff.email: payload.email or None,
    }
    if payload.password:
        values[Staff.password] = await asyncio.to_thread(hash_password, payload.password)

    try:
        changes = (
            db.query(Staff)
            .filter(Staff.staff_id == current_staff_id)
            .update(values, synchronize_session=False)
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Staff ID might already be in use.")

    logger.info("Updated staff %s -> %s (changes=%d)", current_staff_id, payload.staff_id, changes)
    return ChangeResponse(changes=changes)


@router.delete("/{staff_id}", response_model=ChangeResponse)
async def delete_staff(
    staff_id: str,
    db: Annotated[Session, Depends(get_db)],
):
    changes = (
        db.query(Staff)
        .filter(Staff.staff_id == staff_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("Deleted staff %s (changes=%d)", staff_id, changes)
    return ChangeResponse(changes=changes)

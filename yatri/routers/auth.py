"""Credential checks for the admin and staff login forms."""
from __future__ import annotations

import asyncio
import logging
import secrets
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from yatri.config import get_settings
from yatri.database import get_db
from yatri.models.database_models import Staff
from yatri.models.schemas import AdminLoginRequest, StaffLoginRequest
from yatri.services.passwords import verify_password


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


def _unauthorized(message: str) -> JSONResponse:
    return JSONResponse(status_code=401, content={"success": False, "message": message})


@router.post("/admin/login")
async def admin_login(payload: AdminLoginRequest):
    """Check the posted pair against the configured admin accounts."""
    accounts = get_settings().admin_accounts
    expected = accounts.get(payload.admin_id)
    if expected is None or not secrets.compare_digest(
        expected.encode("utf-8"), payload.password.encode("utf-8")
    ):
        logger.info("Rejected admin login for %r", payload.admin_id)
        return _unauthorized("Invalid Admin credentials.")

    logger.info("Admin %s logged in", payload.admin_id)
    return {"success": True}


@router.post("/staff/login")
async def staff_login(
    payload: StaffLoginRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Authenticate a staff member by staff ID and password.

    Returns:
        ``{"success": true, "user": {...}}`` with the record minus its
        password hash, or a 401 with the same message for an unknown ID and
        a wrong password.
    """
    staff = db.query(Staff).filter(Staff.staff_id == payload.staff_id).first()
    if staff is None or not await asyncio.to_thread(verify_password, payload.password, staff.password):
        return _unauthorized("Invalid Staff ID or password.")

    logger.info("Staff %s logged in", staff.staff_id)
    return {"success": True, "user": staff.to_public_dict()}

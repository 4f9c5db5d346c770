"""Training progress and quiz score updates."""
from __future__ import annotations

import json
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from yatri.database import get_db
from yatri.models.database_models import Staff
from yatri.models.schemas import ProgressUpdate


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/progress", tags=["progress"])


def _provided(value: Any) -> bool:
    """False for null, false, 0 and ""; objects and arrays count even when empty."""
    if isinstance(value, (dict, list)):
        return True
    return bool(value)


@router.post("")
async def update_progress(
    payload: ProgressUpdate,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """
    Store either a progress document or a quiz score for one staff member.

    A progress document wins when both are sent. ``false``, ``0`` and empty
    strings count as not sent. An unknown staff ID is not an error; nothing
    is updated.

    Raises:
        HTTPException: 400 if neither field is provided
    """
    if _provided(payload.progress):
        field = "progress"
        values = {Staff.progress: json.dumps(payload.progress)}
    elif _provided(payload.quiz_score):
        field = "quiz_score"
        values = {Staff.quiz_score: str(payload.quiz_score)}
    else:
        raise HTTPException(status_code=400, detail="No progress or quiz score provided.")

    changes = (
        db.query(Staff)
        .filter(Staff.staff_id == payload.staff_id)
        .update(values, synchronize_session=False)
    )
    db.commit()
    logger.info(
        "Progress update for %s (%s, changes=%d)",
        payload.staff_id,
        field,
        changes,
    )
    return {"success": True}

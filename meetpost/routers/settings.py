from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from meetpost.auth.session import get_current_user_id
from meetpost.db import crud
from meetpost.deps import get_db
from meetpost.schemas import SettingsIn, settings_out

router = APIRouter(prefix="/settings", tags=["settings"])

MAX_JOIN_MINUTES = 60


@router.get("")
def get_settings(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)) -> Dict[str, Any]:
    return {"settings": settings_out(crud.get_or_create_settings(db, user_id))}


@router.post("")
def save_settings(
    body: SettingsIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    minutes = changes.get("bot_join_minutes_before")
    if minutes is not None and not 0 <= minutes <= MAX_JOIN_MINUTES:
        raise HTTPException(400, f"Bot join time must be between 0 and {MAX_JOIN_MINUTES} minutes")
    return {"settings": settings_out(crud.update_settings(db, user_id, changes))}

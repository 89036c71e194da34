from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from meetpost.auth.session import get_current_user_id
from meetpost.db import crud
from meetpost.db.models import AUTOMATION_TYPES, SOCIAL_PLATFORMS
from meetpost.deps import get_db
from meetpost.schemas import AutomationIn, AutomationUpdate, automation_out

router = APIRouter(prefix="/automations", tags=["automations"])


def _check_fields(data: Dict[str, Any]) -> None:
    if "type" in data and data["type"] not in AUTOMATION_TYPES:
        raise HTTPException(400, f"Unsupported automation type: {data['type']}")
    if "platform" in data and data["platform"] not in SOCIAL_PLATFORMS:
        raise HTTPException(400, f"Unsupported platform: {data['platform']}")


@router.get("")
def list_automations(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)) -> Dict[str, Any]:
    return {"automations": [automation_out(a) for a in crud.list_automations(db, user_id)]}


@router.post("", status_code=201)
def create_automation(
    body: AutomationIn,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    data = body.model_dump()
    _check_fields(data)
    return {"automation": automation_out(crud.create_automation(db, user_id, data))}


@router.put("")
def update_automation(
    body: AutomationUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    automation = crud.get_automation(db, user_id, body.id)
    changes = body.model_dump(exclude_unset=True, exclude={"id"})
    for key in ("name", "type", "platform", "description", "is_active",
                "trigger_meeting_ended", "trigger_has_transcript", "trigger_min_duration"):
        if key in changes and changes[key] is None:
            raise HTTPException(400, f"{key} cannot be null")
    _check_fields(changes)
    return {"automation": automation_out(crud.update_automation(db, automation, changes))}


@router.delete("/{automation_id}")
def delete_automation(
    automation_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    crud.delete_automation(db, crud.get_automation(db, user_id, automation_id))
    return {"success": True}

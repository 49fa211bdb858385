"""
Emergency profile store: name, blood type, allergies, emergency contact.
The chat core only reads it; clients save it here and send it with each message.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ayuda.db.database import get_db
from ayuda.db.models import Profile
from ayuda.schemas.profile import UserProfile

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/{profile_id}")
def get_profile(profile_id: str, db: Session = Depends(get_db)):
    row = db.query(Profile).filter(Profile.id == profile_id).first()
    if row is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return row.to_schema().to_wire()


@router.put("/{profile_id}")
def save_profile(profile_id: str, body: UserProfile, db: Session = Depends(get_db)):
    row = db.query(Profile).filter(Profile.id == profile_id).first()
    if row is None:
        row = Profile(id=profile_id)
        db.add(row)
    row.update_from(body)
    db.commit()
    db.refresh(row)
    logger.info("Saved emergency profile %s", profile_id)
    return row.to_schema().to_wire()


@router.delete("/{profile_id}")
def delete_profile(profile_id: str, db: Session = Depends(get_db)):
    deleted = db.query(Profile).filter(Profile.id == profile_id).delete()
    db.commit()
    return {"deleted": bool(deleted)}

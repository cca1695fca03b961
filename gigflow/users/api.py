from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from gigflow.shared.db import get_db
from gigflow.shared.auth import Requester, get_requester
from gigflow.shared.http import ok
from gigflow.users.service import update_profile, delete_user

router = APIRouter(prefix="/users", tags=["Users"])

class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=120)
    email: EmailStr | None = None
    password: str | None = None

@router.put("/profile")
def api_update_profile(inb: ProfileUpdate, user: Requester = Depends(get_requester), db: Session = Depends(get_db)):
    u = update_profile(db, user.id, name=inb.name, email=inb.email, password=inb.password)
    return {"ok": True, "user": {"id": u.id, "name": u.name, "email": u.email, "role": u.role}}

@router.delete("/{user_id}")
def api_delete_user(user_id: str, user: Requester = Depends(get_requester), db: Session = Depends(get_db)):
    delete_user(db, user_id, user.id)
    return ok(message="user removed")

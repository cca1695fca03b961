# gigflow/auth/api.py
from typing import Literal

from fastapi import APIRouter, Depends, Response
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from gigflow.shared.db import get_db
from gigflow.shared.auth import Requester, create_access_token, get_requester
from gigflow.shared.config import settings
from gigflow.shared.http import ok
from gigflow.auth.models import User
from gigflow.auth.service import register_user, verify_otp, authenticate_user

router = APIRouter(prefix="/auth", tags=["Auth"])

class RegisterIn(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(min_length=1)
    role: Literal["client", "freelancer"] = "client"

class VerifyIn(BaseModel):
    email: EmailStr
    otp: str = Field(min_length=1, max_length=12)

class LoginIn(BaseModel):
    email: EmailStr
    password: str

def _user_out(u: User | Requester) -> dict:
    return {"id": u.id, "name": u.name, "email": u.email, "role": u.role}

def _issue(response: Response, u: User) -> dict:
    token = create_access_token(sub=u.id, role=u.role)
    response.set_cookie(
        settings.AUTH_COOKIE,
        token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.JWT_EXPIRE_MIN * 60,
    )
    return {"ok": True, "user": _user_out(u), "access_token": token, "token_type": "bearer"}

@router.post("/register", status_code=201)
def api_register(inb: RegisterIn, db: Session = Depends(get_db)):
    user = register_user(db, inb.name, inb.email, inb.password, inb.role)
    return {"ok": True, "message": "verification code sent", "user": _user_out(user)}

@router.post("/verify-otp")
def api_verify_otp(inb: VerifyIn, response: Response, db: Session = Depends(get_db)):
    user = verify_otp(db, inb.email, inb.otp)
    return _issue(response, user)

@router.post("/login")
def api_login(inb: LoginIn, response: Response, db: Session = Depends(get_db)):
    user = authenticate_user(db, inb.email, inb.password)
    return _issue(response, user)

@router.post("/token")
def api_token(response: Response, form: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    # Swagger 'Authorize' flow: username is the email
    user = authenticate_user(db, form.username, form.password)
    return _issue(response, user)

@router.post("/logout")
def api_logout(response: Response):
    response.delete_cookie(settings.AUTH_COOKIE)
    return ok(message="logged out")

@router.get("/me")
def api_me(user: Requester = Depends(get_requester)):
    return {"ok": True, "user": _user_out(user)}

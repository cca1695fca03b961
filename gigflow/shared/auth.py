# gigflow/shared/auth.py
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError  # python-jose[cryptography]
from sqlalchemy.orm import Session

from gigflow.auth.models import User
from gigflow.shared.config import settings
from gigflow.shared.db import SessionLocal, get_db
from gigflow.shared.errors import AuthenticationError

# routes that depend on this are the ones OpenAPI marks with bearerAuth
bearer = HTTPBearer(auto_error=False, scheme_name="bearerAuth", bearerFormat="JWT")


@dataclass(frozen=True)
class Requester:
    """An already-authenticated caller. Services only ever look at `id`."""
    id: str
    role: str
    name: str
    email: str


def create_access_token(sub: str, role: str = "client") -> str:
    """Session token for a verified user; lives for JWT_EXPIRE_MIN, same as the auth cookie."""
    issued = datetime.now(timezone.utc)
    claims: Dict[str, Any] = {
        "sub": sub,
        "role": role,
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(minutes=settings.JWT_EXPIRE_MIN)).timestamp()),
    }
    # issuer and audience are only checked when configured
    claims.update({k: v for k, v in (("iss", settings.JWT_ISS), ("aud", settings.JWT_AUD)) if v})
    return jwt.encode(claims, settings.JWT_KEY, algorithm=settings.JWT_ALG)

def decode_token(token: str) -> str:
    """Returns the subject (user id) of a valid token."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_KEY,
            algorithms=[settings.JWT_ALG],
            audience=settings.JWT_AUD,
            issuer=settings.JWT_ISS,
            options={
                "verify_aud": bool(settings.JWT_AUD),
                "verify_iss": bool(settings.JWT_ISS),
            },
        )
    except JWTError as e:
        raise AuthenticationError(f"invalid token: {e}")

    sub = payload.get("sub")
    if not sub:
        raise AuthenticationError("invalid token: missing sub")
    return sub

def _token(request: Request, creds: HTTPAuthorizationCredentials | None) -> str:
    # bearer header first, then the cookie set at login
    token = creds.credentials if creds else request.cookies.get(settings.AUTH_COOKIE)
    if not token:
        raise AuthenticationError("not authorized, no token")
    return token

def resolve_requester(db: Session, token: str) -> Requester:
    user = db.get(User, decode_token(token))
    if not user or not user.is_verified:
        raise AuthenticationError("not authorized, user not found")
    return Requester(id=user.id, role=user.role, name=user.name, email=user.email)

def get_requester(
    request: Request,
    creds: HTTPAuthorizationCredentials = Depends(bearer),
    db: Session = Depends(get_db),
) -> Requester:
    return resolve_requester(db, _token(request, creds))

def get_stream_requester(
    request: Request,
    creds: HTTPAuthorizationCredentials = Depends(bearer),
) -> Requester:
    # long-lived responses must not pin a request-scoped session
    with SessionLocal() as db:
        return resolve_requester(db, _token(request, creds))

from fastapi import APIRouter, Body, Depends, Header
from typing import Any, Optional

from app.core.auth import get_identity_service
from app.domains.identity.schemas import (
    Credentials, VerifyRequest, RegisterResponse, LoginResponse, UserPublic, VerifyResponse
)
from app.domains.identity.services import IdentityService

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=RegisterResponse)
def register(
    data: Credentials,
    identity_service: IdentityService = Depends(get_identity_service)
):
    """Register a new user"""
    identity_service.register(data.email, data.senha)
    return RegisterResponse(sucesso=True)


@router.post("/login", response_model=LoginResponse)
def login(
    data: Credentials,
    identity_service: IdentityService = Depends(get_identity_service)
):
    """Log in and receive a bearer token"""
    token, user = identity_service.login(data.email, data.senha)
    return LoginResponse(token=token, user=UserPublic(**user.public()))


@router.post("/verify", response_model=VerifyResponse, response_model_exclude_none=True)
def verify(
    body: Any = Body(None),
    authorization: Optional[str] = Header(None),
    identity_service: IdentityService = Depends(get_identity_service)
):
    """Check a token sent in the body or in the Authorization header"""
    data = VerifyRequest.model_validate(body) if isinstance(body, dict) else VerifyRequest()
    raw_token = data.token
    if raw_token:
        token = raw_token if isinstance(raw_token, str) else None
    elif authorization:
        parts = authorization.split(" ")
        token = parts[1] if len(parts) > 1 else None
    else:
        token = None

    verification = identity_service.verify(token)
    if not verification.valid:
        return VerifyResponse(valido=False)
    return VerifyResponse(valido=True, user=verification.claims)

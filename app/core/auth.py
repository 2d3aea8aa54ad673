from typing import Optional

from fastapi import Depends, Header, Request

from app.core.exceptions import Unauthorized
from app.core.security import extract_token_from_header
from app.domains.chats.services import ChatService
from app.domains.identity.entities import AuthenticatedUser
from app.domains.identity.services import IdentityService


def get_identity_service(request: Request) -> IdentityService:
    return request.app.state.identity_service


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def require_auth(
    authorization: Optional[str] = Header(None),
    identity_service: IdentityService = Depends(get_identity_service),
) -> AuthenticatedUser:
    """Identity of the caller from `Authorization: Bearer <token>`"""
    token = extract_token_from_header(authorization)
    user = identity_service.authenticate(token)
    if user is None:
        raise Unauthorized()
    return user

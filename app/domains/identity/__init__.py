from app.domains.identity.entities import AuthenticatedUser, TokenVerification, User
from app.domains.identity.schemas import (
    Credentials, VerifyRequest, UserPublic,
    RegisterResponse, LoginResponse, VerifyResponse
)

__all__ = [
    "User", "AuthenticatedUser", "TokenVerification",
    "Credentials", "VerifyRequest", "UserPublic",
    "RegisterResponse", "LoginResponse", "VerifyResponse",
]

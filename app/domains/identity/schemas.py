from pydantic import BaseModel
from typing import Any, Dict, Optional


class Credentials(BaseModel):
    """Body of /auth/register and /auth/login"""
    email: Optional[str] = None
    senha: Optional[str] = None


class VerifyRequest(BaseModel):
    """Any token value is accepted here; non-strings simply fail verification"""
    token: Any = None


class UserPublic(BaseModel):
    id: int
    email: str


class RegisterResponse(BaseModel):
    sucesso: bool = True


class LoginResponse(BaseModel):
    token: str
    user: UserPublic


class VerifyResponse(BaseModel):
    valido: bool
    user: Optional[Dict[str, Any]] = None

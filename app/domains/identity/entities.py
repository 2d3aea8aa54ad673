from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from app.domains.timestamps import utc_now_iso


@dataclass
class User:
    """Registered account; `password` holds the bcrypt hash"""

    id: int
    email: str
    password: str
    created_at: str

    @classmethod
    def create_user(cls, user_id: int, email: str, password_hash: str) -> "User":
        return cls(id=user_id, email=email, password=password_hash, created_at=utc_now_iso())

    def public(self) -> Dict[str, Any]:
        """Fields safe to send back to a client"""
        return {"id": self.id, "email": self.email}

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=data["id"],
            email=data["email"],
            password=data["password"],
            created_at=data.get("created_at", ""),
        )


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity decoded from a verified bearer token"""

    id: int
    email: str


@dataclass(frozen=True)
class TokenVerification:
    valid: bool
    claims: Optional[Dict[str, Any]] = None

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from app.domains.timestamps import utc_now_iso

DEFAULT_CHAT_TITLE = "Novo chat"

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


@dataclass
class Chat:
    """Conversation thread owned by a single user"""

    id: int
    user_id: int
    title: str
    created_at: str

    @classmethod
    def create_chat(cls, chat_id: int, user_id: int, title: Optional[str] = None) -> "Chat":
        return cls(
            id=chat_id,
            user_id=user_id,
            title=title or DEFAULT_CHAT_TITLE,
            created_at=utc_now_iso(),
        )

    def is_owned_by(self, user_id: int) -> bool:
        return self.user_id == user_id

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Chat":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            title=data.get("title") or DEFAULT_CHAT_TITLE,
            created_at=data.get("created_at", ""),
        )


@dataclass
class Message:
    """Single append-only entry of a chat"""

    id: int
    chat_id: int
    role: str
    content: str
    created_at: str

    @classmethod
    def create_message(cls, message_id: int, chat_id: int, role: str, content: str) -> "Message":
        return cls(
            id=message_id,
            chat_id=chat_id,
            role=role,
            content=content,
            created_at=utc_now_iso(),
        )

    def to_prompt(self) -> Dict[str, str]:
        """Role/content pair for the completion API; anything but assistant counts as user"""
        role = ROLE_ASSISTANT if self.role == ROLE_ASSISTANT else ROLE_USER
        return {"role": role, "content": self.content}

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        return cls(
            id=data["id"],
            chat_id=data["chat_id"],
            role=data.get("role", ROLE_USER),
            content=data.get("content", ""),
            created_at=data.get("created_at", ""),
        )

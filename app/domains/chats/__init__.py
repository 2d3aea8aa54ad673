from app.domains.chats.entities import Chat, Message, DEFAULT_CHAT_TITLE, ROLE_USER, ROLE_ASSISTANT
from app.domains.chats.schemas import (
    ChatCreate, ChatCreated, ChatResponse, MessageResponse, ChatDetailResponse,
    SendMessageRequest, SendMessageResponse, DeleteResponse
)

__all__ = [
    "Chat", "Message", "DEFAULT_CHAT_TITLE", "ROLE_USER", "ROLE_ASSISTANT",
    "ChatCreate", "ChatCreated", "ChatResponse", "MessageResponse", "ChatDetailResponse",
    "SendMessageRequest", "SendMessageResponse", "DeleteResponse"
]

from fastapi import APIRouter, Depends
from typing import List, Optional

from app.core.auth import get_chat_service, require_auth
from app.domains.chats.schemas import (
    ChatCreate, ChatCreated, ChatResponse, MessageResponse, ChatDetailResponse,
    SendMessageRequest, SendMessageResponse, DeleteResponse
)
from app.domains.chats.services import ChatService
from app.domains.identity.entities import AuthenticatedUser

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/new", response_model=ChatCreated)
def create_chat(
    data: Optional[ChatCreate] = None,
    user: AuthenticatedUser = Depends(require_auth),
    chat_service: ChatService = Depends(get_chat_service)
):
    """Create an empty chat"""
    chat = chat_service.create_chat(user.id, data.title if data else None)
    return ChatCreated(id=chat.id, title=chat.title)


@router.get("/list", response_model=List[ChatResponse])
def list_chats(
    user: AuthenticatedUser = Depends(require_auth),
    chat_service: ChatService = Depends(get_chat_service)
):
    """Chats of the current user, newest first"""
    return [ChatResponse.model_validate(chat) for chat in chat_service.list_chats(user.id)]


@router.post("/send", response_model=SendMessageResponse)
async def send_message(
    data: SendMessageRequest,
    user: AuthenticatedUser = Depends(require_auth),
    chat_service: ChatService = Depends(get_chat_service)
):
    """Send a message and get the assistant's reply"""
    reply, chat_id = await chat_service.send_message(user.id, data.chatId, data.mensagem)
    return SendMessageResponse(resposta=reply, chatId=chat_id)


@router.get("/{chat_id}", response_model=ChatDetailResponse)
def get_chat(
    chat_id: str,
    user: AuthenticatedUser = Depends(require_auth),
    chat_service: ChatService = Depends(get_chat_service)
):
    """Chat with its messages"""
    chat, messages = chat_service.get_chat(user.id, chat_id)
    return ChatDetailResponse(
        chat=ChatResponse.model_validate(chat),
        mensagens=[MessageResponse.model_validate(m) for m in messages]
    )


@router.delete("/{chat_id}", response_model=DeleteResponse)
def delete_chat(
    chat_id: str,
    user: AuthenticatedUser = Depends(require_auth),
    chat_service: ChatService = Depends(get_chat_service)
):
    """Delete a chat and its messages"""
    chat_service.delete_chat(user.id, chat_id)
    return DeleteResponse(sucesso=True)

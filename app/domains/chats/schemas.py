from pydantic import BaseModel, ConfigDict
from typing import List, Optional, Union


class ChatCreate(BaseModel):
    title: Optional[str] = None


class ChatCreated(BaseModel):
    id: int
    title: str


class ChatResponse(BaseModel):
    id: int
    user_id: int
    title: str
    created_at: str

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    id: int
    chat_id: int
    role: str
    content: str
    created_at: str

    model_config = ConfigDict(from_attributes=True)


class ChatDetailResponse(BaseModel):
    chat: ChatResponse
    mensagens: List[MessageResponse]


class SendMessageRequest(BaseModel):
    """Body of /chat/send; without chatId a new chat is started"""
    chatId: Optional[Union[int, str]] = None
    mensagem: Optional[str] = None


class SendMessageResponse(BaseModel):
    resposta: str
    chatId: int


class DeleteResponse(BaseModel):
    sucesso: bool = True

import logging
from typing import List, Optional, Tuple, Union

from starlette.concurrency import run_in_threadpool

from app.core.config import Settings
from app.core.exceptions import EmptyMessage, ExternalServiceFailure, NotFound, ServiceError
from app.domains.chats.entities import Chat, Message, ROLE_ASSISTANT, ROLE_USER
from app.infrastructure.completion import CompletionGateway, PromptMessages
from app.infrastructure.storage import ChatStore, Document

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Desculpe, não consegui gerar resposta."

ChatId = Union[int, str, None]


def parse_chat_id(value: ChatId) -> Optional[int]:
    """Chat id from a path or body value; None when it is not an integer"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


class ChatService:
    """Chat threads and messages of an authenticated user"""

    def __init__(
        self,
        store: ChatStore,
        gateway: CompletionGateway,
        system_prompt: str,
        history_limit: int = 30,
        max_tokens: int = 800,
    ):
        self.store = store
        self.gateway = gateway
        self.system_prompt = system_prompt
        self.history_limit = history_limit
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(
        cls, store: ChatStore, gateway: CompletionGateway, settings: Settings
    ) -> "ChatService":
        return cls(
            store,
            gateway,
            system_prompt=settings.system_prompt,
            history_limit=settings.history_limit,
            max_tokens=settings.completion_max_tokens,
        )

    def create_chat(self, user_id: int, title: Optional[str] = None) -> Chat:
        """Create an empty chat"""
        with self.store.transaction() as document:
            chat = self._new_chat(document, user_id, title)

        logger.info(f"User {user_id} created chat {chat.id}")
        return chat

    def list_chats(self, user_id: int) -> List[Chat]:
        """User's chats, most recent first"""
        document = self.store.snapshot()
        chats = [c for c in document.chats if c.is_owned_by(user_id)]
        return sorted(chats, key=lambda c: c.created_at, reverse=True)

    def get_chat(self, user_id: int, chat_id: ChatId) -> Tuple[Chat, List[Message]]:
        """Chat with its messages in the order they were added"""
        document = self.store.snapshot()
        chat = self._find_owned_chat(document, user_id, parse_chat_id(chat_id))
        if not chat:
            raise NotFound()

        messages = [m for m in document.messages if m.chat_id == chat.id]
        return chat, messages

    def delete_chat(self, user_id: int, chat_id: ChatId) -> None:
        """Delete an owned chat and all of its messages; unknown ids are ignored"""
        chat_id = parse_chat_id(chat_id)
        with self.store.transaction() as document:
            chat = self._find_owned_chat(document, user_id, chat_id)
            if not chat:
                return

            document.chats = [c for c in document.chats if c.id != chat.id]
            document.messages = [m for m in document.messages if m.chat_id != chat.id]

        logger.info(f"User {user_id} deleted chat {chat.id}")

    async def send_message(
        self, user_id: int, chat_id: ChatId, content: Optional[str]
    ) -> Tuple[str, int]:
        """Store the user's message, ask the model and store its reply"""
        if not content:
            raise EmptyMessage()

        try:
            return await self._converse(user_id, chat_id, content)
        except ServiceError:
            raise
        except Exception as e:
            logger.exception(f"Conversation failed for user {user_id}")
            raise ExternalServiceFailure() from e

    async def _converse(self, user_id: int, chat_id: ChatId, content: str) -> Tuple[str, int]:
        chat, history = await run_in_threadpool(
            self._record_user_message, user_id, chat_id, content
        )

        prompt: PromptMessages = [{"role": "system", "content": self.system_prompt}]
        prompt.extend(m.to_prompt() for m in history)

        reply = await self.gateway.complete(prompt, self.max_tokens)
        if not reply:
            logger.warning(f"Empty completion for chat {chat.id}, using fallback reply")
            reply = FALLBACK_REPLY

        await run_in_threadpool(self._record_reply, chat.id, reply)
        return reply, chat.id

    def _record_user_message(
        self, user_id: int, chat_id: ChatId, content: str
    ) -> Tuple[Chat, List[Message]]:
        with self.store.transaction() as document:
            if chat_id:
                chat = self._find_owned_chat(document, user_id, parse_chat_id(chat_id))
                if not chat:
                    raise NotFound()
            else:
                chat = self._new_chat(document, user_id)
                logger.info(f"User {user_id} started chat {chat.id}")

            document.messages.append(
                Message.create_message(
                    Document.next_id(document.messages), chat.id, ROLE_USER, content
                )
            )
            history = [m for m in document.messages if m.chat_id == chat.id]

        if self.history_limit <= 0:
            return chat, []
        return chat, history[-self.history_limit:]

    def _record_reply(self, chat_id: int, reply: str) -> None:
        with self.store.transaction() as document:
            if not any(c.id == chat_id for c in document.chats):
                # chat was deleted while the model was answering
                logger.warning(f"Chat {chat_id} no longer exists, dropping reply")
                return

            document.messages.append(
                Message.create_message(
                    Document.next_id(document.messages), chat_id, ROLE_ASSISTANT, reply
                )
            )

    @staticmethod
    def _new_chat(document: Document, user_id: int, title: Optional[str] = None) -> Chat:
        chat = Chat.create_chat(Document.next_id(document.chats), user_id, title)
        document.chats.append(chat)
        return chat

    @staticmethod
    def _find_owned_chat(
        document: Document, user_id: int, chat_id: Optional[int]
    ) -> Optional[Chat]:
        if chat_id is None:
            return None
        return next(
            (c for c in document.chats if c.id == chat_id and c.is_owned_by(user_id)),
            None,
        )

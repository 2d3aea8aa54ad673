import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Sequence, TypeVar

from app.domains.chats.entities import Chat, Message
from app.domains.identity.entities import User
from app.domains.timestamps import now_ms

logger = logging.getLogger(__name__)

T = TypeVar("T")

# collection names used by documents written before the rename
LEGACY_KEYS = {"usuarios": "users", "mensagens": "messages"}


@dataclass
class Document:
    """The whole persisted state: users, chats and messages"""

    users: List[User] = field(default_factory=list)
    chats: List[Chat] = field(default_factory=list)
    messages: List[Message] = field(default_factory=list)

    @staticmethod
    def next_id(items: Sequence[Any]) -> int:
        """Timestamp-derived id that never repeats within a collection"""
        last = max((item.id for item in items), default=0)
        return max(now_ms(), last + 1)

    def to_dict(self) -> Dict[str, list]:
        return {
            "users": [user.to_dict() for user in self.users],
            "chats": [chat.to_dict() for chat in self.chats],
            "messages": [message.to_dict() for message in self.messages],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        if not isinstance(data, dict):
            raise ValueError("Document root must be an object")

        data = dict(data)
        for legacy, current in LEGACY_KEYS.items():
            if legacy in data and current not in data:
                data[current] = data.pop(legacy)

        return cls(
            users=_parse_records(data, "users", User.from_dict),
            chats=_parse_records(data, "chats", Chat.from_dict),
            messages=_parse_records(data, "messages", Message.from_dict),
        )


def _parse_records(data: Dict[str, Any], key: str, parse: Callable[[Dict[str, Any]], T]) -> List[T]:
    """Records of one collection; malformed entries are skipped, not fatal"""
    items = data.get(key) or []
    if not isinstance(items, list):
        logger.warning(f"Collection '{key}' is not a list, ignoring it")
        return []

    records = []
    for index, item in enumerate(items):
        try:
            records.append(parse(item))
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping malformed {key} record #{index}: {e!r}")
    return records


class ChatStore(ABC):
    """Load/save access to the single persisted document"""

    def __init__(self):
        self._lock = threading.RLock()

    @abstractmethod
    def load(self) -> Document:
        """Return a fresh copy of the stored document"""

    @abstractmethod
    def save(self, document: Document) -> None:
        """Replace the stored document entirely"""

    @contextmanager
    def transaction(self) -> Iterator[Document]:
        """Load, let the caller mutate, then save, all under the writer lock.

        Nothing is saved if the block raises.
        """
        with self._lock:
            document = self.load()
            yield document
            self.save(document)

    def snapshot(self) -> Document:
        """Read-only view; changes to it are never persisted"""
        with self._lock:
            return self.load()

from app.infrastructure.storage.base import ChatStore, Document
from app.infrastructure.storage.json_file import JsonFileStore
from app.infrastructure.storage.memory import InMemoryStore

__all__ = [
    "ChatStore",
    "Document",
    "JsonFileStore",
    "InMemoryStore",
]

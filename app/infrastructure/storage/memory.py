import copy
from typing import Optional

from app.infrastructure.storage.base import ChatStore, Document


class InMemoryStore(ChatStore):
    """Process-local store, mainly for tests"""

    def __init__(self, document: Optional[Document] = None):
        super().__init__()
        self._document = copy.deepcopy(document) if document else Document()

    def load(self) -> Document:
        with self._lock:
            return copy.deepcopy(self._document)

    def save(self, document: Document) -> None:
        with self._lock:
            self._document = copy.deepcopy(document)

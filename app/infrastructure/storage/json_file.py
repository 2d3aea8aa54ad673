import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from app.infrastructure.storage.base import ChatStore, Document

logger = logging.getLogger(__name__)


class JsonFileStore(ChatStore):
    """Document kept in one JSON file, replaced atomically on every save"""

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)

    def load(self) -> Document:
        with self._lock:
            try:
                with self.path.open("r", encoding="utf-8") as fh:
                    return Document.from_dict(json.load(fh))
            except FileNotFoundError:
                logger.info(f"No database at {self.path}, creating an empty one")
            except ValueError as e:
                # invalid JSON or a root that is not an object
                logger.warning(f"Database at {self.path} is unreadable ({e}), resetting it")

            document = Document()
            self.save(document)
            return document

    def save(self, document: Document) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(document.to_dict(), fh, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise

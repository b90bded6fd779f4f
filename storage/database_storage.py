import json
from typing import Any, Callable, Iterable, List

from sqlalchemy.exc import SQLAlchemyError

from models.kv_entry import KeyValueEntry
from utils.logger import setup_logger


class DatabaseStorage:
    """Key-value persistence backed by the ``kv_entries`` table."""

    def __init__(self, session_factory: Callable[[], Any], *, logger=None) -> None:
        self.session_factory = session_factory
        self.logger = logger or setup_logger(self.__class__.__name__)

    def load(self, key: str) -> List[dict]:
        """Return the collection stored under ``key``; empty when missing or corrupt."""
        session = self.session_factory()
        try:
            entry = KeyValueEntry.get(session, key)
            if entry is None:
                return []
            data = json.loads(entry.value)
            if isinstance(data, list):
                return data
            self.logger.error("Stored value for key %s is not a list; starting empty.", key)
        except json.JSONDecodeError as exc:
            self.logger.error("JSON parse error for key %s: %s", key, exc)
        except SQLAlchemyError as exc:
            self.logger.error("Unable to read key %s: %s", key, exc)
        finally:
            session.close()
        return []

    def save(self, key: str, data: Iterable[dict]) -> bool:
        """Replace the collection stored under ``key``."""
        session = self.session_factory()
        try:
            KeyValueEntry.put(session, key, json.dumps(list(data), ensure_ascii=False))
            return True
        except (SQLAlchemyError, TypeError, ValueError) as exc:
            session.rollback()
            self.logger.error("Failed to save key %s: %s", key, exc)
            return False
        finally:
            session.close()

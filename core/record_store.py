from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional

from core.bidding_record import BiddingRecord, blank_record
from core.errors import RecordNotFoundError
from core.metrics import refresh_derived
from core.record_editor import apply_fields, create_record, generate_id, normalize_record
from storage.database_storage import DatabaseStorage
from storage.file_storage import FileStorage
from utils.logger import setup_logger


class RecordStore:
    """In-memory ordered record collection backed by a durable key-value store.

    The collection is read once by :meth:`load`. Mutations only change memory;
    the owning layer calls :meth:`save_snapshot` afterwards to persist the
    whole collection under a single key.
    """

    def __init__(
        self,
        storage,
        *,
        key: str = "licit_pro_db",
        template: Optional[BiddingRecord] = None,
        logger=None,
    ) -> None:
        self.storage = storage
        self.key = key
        self.template = template if template is not None else blank_record()
        self.logger = logger or setup_logger(self.__class__.__name__)
        self._records: List[BiddingRecord] = []
        self._loaded = False

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any],
        *,
        base_dir: Optional[Path] = None,
        logger=None,
        session_factory: Optional[Callable[[], Any]] = None,
    ) -> "RecordStore":
        """Build a store using the backend selected by ``storage.backend``."""
        logger = logger or setup_logger(cls.__name__)
        storage_cfg = config.get("storage", {})
        records_cfg = config.get("records", {})

        if storage_cfg.get("backend") == "database" and session_factory is not None:
            storage = DatabaseStorage(session_factory, logger=logger)
        else:
            data_dir = _resolve_path(
                config.get("paths", {}).get("data_dir", "data"), base=base_dir or Path.cwd()
            )
            storage = FileStorage(data_dir, logger=logger)

        template = blank_record(
            meta_dias=int(records_cfg.get("default_meta_dias", 25)),
            status=str(records_cfg.get("default_status", "PUBLICADA")),
        )
        return cls(
            storage,
            key=storage_cfg.get("key", "licit_pro_db"),
            template=template,
            logger=logger,
        )

    @property
    def records(self) -> List[BiddingRecord]:
        """Snapshot of the current collection, newest first."""
        return list(self._records)

    @property
    def ids(self) -> set:
        return {record.id for record in self._records}

    def load(self) -> List[BiddingRecord]:
        """Read the collection from storage once; later calls are no-ops."""
        if self._loaded:
            return self.records

        loaded: List[BiddingRecord] = []
        seen = set()
        for payload in self.storage.load(self.key):
            if not isinstance(payload, Mapping):
                self.logger.warning("Skipping stored entry that is not a record: %r", payload)
                continue
            record = normalize_record(payload)
            if not record.id or record.id in seen:
                record = record.with_values(id=generate_id(seen))
            seen.add(record.id)
            loaded.append(record)

        self._records = loaded
        self._loaded = True
        self.logger.info("Loaded %d record(s) from '%s'.", len(loaded), self.key)
        return self.records

    def save_snapshot(self) -> bool:
        """Persist the entire collection, replacing what was stored before."""
        saved = self.storage.save(self.key, [record.to_dict() for record in self._records])
        if saved:
            self.logger.info("Saved %d record(s) to '%s'.", len(self._records), self.key)
        return saved

    def get(self, record_id: str) -> Optional[BiddingRecord]:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def create(self, raw_fields: Mapping[str, Any]) -> BiddingRecord:
        """Create a record from raw input and insert it at the front."""
        record = create_record(raw_fields, existing_ids=self.ids, template=self.template)
        self._records.insert(0, record)
        self.logger.info("Created record %s.", record.id)
        return record

    def replace(self, record: BiddingRecord) -> BiddingRecord:
        """Replace the stored record with the same id, recomputing derived fields."""
        fresh = refresh_derived(record)
        for index, existing in enumerate(self._records):
            if existing.id == record.id:
                self._records[index] = fresh
                self.logger.info("Updated record %s.", record.id)
                return fresh
        raise RecordNotFoundError(record.id)

    def update(self, record_id: str, raw_fields: Mapping[str, Any]) -> BiddingRecord:
        """Full-record replacement from raw form values."""
        existing = self.get(record_id)
        if existing is None:
            raise RecordNotFoundError(record_id)
        return self.replace(apply_fields(existing, raw_fields))

    def delete(self, record_id: str) -> bool:
        """Remove a record. Callers must obtain confirmation beforehand."""
        remaining = [record for record in self._records if record.id != record_id]
        if len(remaining) == len(self._records):
            return False
        self._records = remaining
        self.logger.warning("Deleted record %s.", record_id)
        return True


def _resolve_path(path_value: str, *, base: Path) -> Path:
    path = Path(path_value)
    if not path.is_absolute():
        path = (base / path).resolve()
    return path

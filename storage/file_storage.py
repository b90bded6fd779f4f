import json
import shutil
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from utils.logger import setup_logger


class FileStorage:
    """Key-value store keeping one JSON document per key under ``base_dir``.

    Each document holds a list of records. Writes go through a ``.tmp``
    sibling; the version being replaced is copied to a timestamped ``.bak``
    and only the newest ``keep_backups`` copies survive. A document that
    cannot be decoded is renamed to ``.corrupt`` and read as empty.
    """

    def __init__(self, base_dir: Path, *, logger=None, keep_backups: int = 3) -> None:
        self.base_dir = Path(base_dir)
        self.keep_backups = keep_backups
        self.logger = logger or setup_logger(self.__class__.__name__)

    def path_for(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def load(self, key: str) -> List[dict]:
        path = self.path_for(key)
        if not path.exists():
            return []

        try:
            document = json.loads(path.read_bytes().decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            self.logger.error("Stored collection '%s' is unreadable: %s", key, exc)
            self._set_aside(path, "corrupt")
            return []
        except OSError as exc:
            self.logger.error("Unable to read %s: %s", path, exc)
            return []

        if not isinstance(document, list):
            self.logger.error("Stored collection '%s' is not a list; starting empty.", key)
            return []
        return document

    def save(self, key: str, records: Iterable[dict]) -> bool:
        """Replace the collection stored under ``key``. Returns False on failure."""
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        previous = self._set_aside(path, "bak", keep_original=True) if path.exists() else None

        tmp_path = path.with_name(path.name + ".tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as fp:
                json.dump(list(records), fp, ensure_ascii=False, indent=2)
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as exc:
            self.logger.error("Failed to save collection '%s': %s", key, exc)
            tmp_path.unlink(missing_ok=True)
            if previous is not None:
                self._put_back(previous, path)
            return False

        self._prune_backups(path)
        return True

    def _set_aside(self, path: Path, suffix: str, *, keep_original: bool = False) -> Optional[Path]:
        """Copy (or move) ``path`` to a timestamped sibling ending in ``suffix``."""
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        target = path.with_name(f"{path.name}.{stamp}.{suffix}")
        try:
            if keep_original:
                shutil.copy2(path, target)
            else:
                shutil.move(str(path), str(target))
                self.logger.info("Moved %s aside to %s", path, target)
        except OSError as exc:
            self.logger.error("Could not set %s aside: %s", path, exc)
            return None
        return target

    def _prune_backups(self, path: Path) -> None:
        # Timestamps sort lexically, newest last.
        backups = sorted(path.parent.glob(f"{path.name}.*.bak"))
        for stale in backups[: max(len(backups) - self.keep_backups, 0)]:
            try:
                stale.unlink()
            except OSError as exc:
                self.logger.warning("Failed to remove old backup %s: %s", stale, exc)

    def _put_back(self, backup_path: Path, target_path: Path) -> None:
        try:
            shutil.copy2(backup_path, target_path)
            self.logger.info("Restored %s after failed save.", backup_path)
        except OSError as exc:
            self.logger.error("Failed to restore backup %s: %s", backup_path, exc)

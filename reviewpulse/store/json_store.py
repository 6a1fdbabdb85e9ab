"""
JSON file analytics store.

Keeps the tables in memory and writes the whole file on every commit and
every child replacement, using the atomic write pattern: backup, write to
a temp file, rename.
"""

import json
import logging
import os
import shutil
from datetime import datetime, timezone
from typing import List

from reviewpulse.errors import PersistenceError
from reviewpulse.store.memory import InMemoryAnalyticsStore

logger = logging.getLogger(__name__)


class JsonAnalyticsStore(InMemoryAnalyticsStore):
    """
    File-backed store at a single JSON path.

    A corrupted file is restored from its .backup copy; with no usable
    backup the store starts empty.
    """

    VERSION = "1.0.0"

    def __init__(self, store_path: str):
        """
        Args:
            store_path: Path to the analytics store JSON file
        """
        super().__init__()
        self.store_path = str(store_path)
        self.last_updated = None

        directory = os.path.dirname(self.store_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        if os.path.exists(self.store_path):
            self._load()
        else:
            logger.info(f"No existing store found at {self.store_path}, initializing empty store")

    def _load(self) -> None:
        """Load all tables from disk, falling back to the backup once."""
        try:
            self._apply(self._read_tables(self.store_path))
        except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Failed to parse analytics store: {e}")
            self._try_restore_from_backup()
            return

        logger.info(
            f"Loaded analytics store: {len(self.overviews)} overviews, "
            f"{len(self.period_metrics)} period rows"
        )

    @staticmethod
    def _read_tables(path: str) -> dict:
        """
        Parse a store file into its tables without touching the live store.

        Raises:
            ValueError: If the file does not hold a JSON object of tables
        """
        with open(path, 'r') as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object in {path}, got {type(data).__name__}")

        return {
            "last_updated": data.get("last_updated"),
            "overviews": dict(data.get("overviews", {})),
            "distributions": dict(data.get("distributions", {})),
            "period_metrics": {
                (record["overview_id"], int(record["period_key"])): record
                for record in data.get("period_metrics", [])
            },
            "children": {
                (entry["owner_id"], entry["kind"]): entry["rows"]
                for entry in data.get("children", [])
            },
        }

    def _apply(self, tables: dict) -> None:
        self.last_updated = tables["last_updated"]
        self.overviews = tables["overviews"]
        self.distributions = tables["distributions"]
        self.period_metrics = tables["period_metrics"]
        self.children = tables["children"]

    def _try_restore_from_backup(self) -> None:
        """Attempt to restore from backup file if the main file is corrupted."""
        backup_path = f"{self.store_path}.backup"
        if not os.path.exists(backup_path):
            logger.warning("No backup file found. Starting with empty store.")
            self._reset()
            return

        logger.warning(f"Attempting to restore from backup: {backup_path}")
        try:
            tables = self._read_tables(backup_path)
        except (OSError, json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Backup restoration failed: {e}. Starting with empty store.")
            self._reset()
            return

        self._apply(tables)
        shutil.copy(backup_path, self.store_path)
        logger.info("Successfully restored from backup")

    def _reset(self) -> None:
        self.overviews = {}
        self.distributions = {}
        self.period_metrics = {}
        self.children = {}

    def _commit(self) -> None:
        self.save()
        super()._commit()

    def replace_children(self, owner_id: str, kind: str, rows: List[dict]) -> int:
        with self._lock:
            previous = self.children.get((owner_id, kind))
            count = super().replace_children(owner_id, kind, rows)
            # Inside a transaction the commit writes the file
            if self._snapshot is not None:
                return count
            try:
                self.save()
            except PersistenceError:
                if previous is None:
                    self.children.pop((owner_id, kind), None)
                else:
                    self.children[(owner_id, kind)] = previous
                raise
            return count

    def save(self) -> None:
        """
        Persist all tables with atomic write pattern.
        Creates backup before write.

        Raises:
            PersistenceError: If the file cannot be written
        """
        with self._lock:
            self.last_updated = datetime.now(timezone.utc).isoformat()

            data = {
                "version": self.VERSION,
                "last_updated": self.last_updated,
                "overviews": self.overviews,
                "distributions": self.distributions,
                "period_metrics": list(self.period_metrics.values()),
                "children": [
                    {"owner_id": owner_id, "kind": kind, "rows": rows}
                    for (owner_id, kind), rows in self.children.items()
                ],
            }

            temp_path = f"{self.store_path}.tmp"
            try:
                if os.path.exists(self.store_path):
                    shutil.copy(self.store_path, f"{self.store_path}.backup")

                with open(temp_path, 'w') as f:
                    json.dump(data, f, indent=2)

                os.replace(temp_path, self.store_path)
                logger.debug(f"Analytics store saved to {self.store_path}")

            except (OSError, TypeError, ValueError) as e:
                logger.error(f"Failed to save analytics store: {e}")
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise PersistenceError(f"Failed to write {self.store_path}: {e}") from e

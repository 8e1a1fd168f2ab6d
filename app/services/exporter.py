"""
Snapshot Exporter with Concurrency Control

Writes every collection of the store into one Excel workbook, one sheet per
collection. Concurrent exports are serialized with a file lock so a reader
never opens a half-written workbook.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import pandas as pd
from filelock import FileLock, Timeout
from sqlalchemy import inspect

from app.core.config import get_settings
from app import models

logger = logging.getLogger(__name__)


def record_to_dict(record: Any) -> dict[str, Any]:
    """Column values of an ORM record, ready for JSON serialization."""
    return {
        column.key: getattr(record, column.key)
        for column in inspect(type(record)).column_attrs
    }


def serialize_snapshot(snapshot: dict[str, list]) -> dict[str, list[dict[str, Any]]]:
    """Convert a `FoodDeliveryService.snapshot()` result to plain dicts."""
    return {
        name: [record_to_dict(record) for record in records]
        for name, records in snapshot.items()
    }


class SnapshotExporter:
    """File-locked workbook writer."""

    def __init__(
        self,
        data_directory: str,
        filename: str,
        lock_timeout: int = 30,
    ):
        self.data_dir = Path(data_directory)
        self.workbook = self.data_dir / filename
        self.lock_file = self.data_dir / f"{filename}.lock"
        self.lock_timeout = lock_timeout

    @classmethod
    def from_settings(cls) -> "SnapshotExporter":
        settings = get_settings()
        return cls(
            data_directory=settings.data_directory,
            filename=settings.export_filename,
            lock_timeout=settings.export_lock_timeout,
        )

    def _ensure_data_dir(self) -> None:
        """Create data directory if needed."""
        if not self.data_dir.exists():
            self.data_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {self.data_dir}")

    @staticmethod
    def _build_frame(table_name: str, rows: list[dict[str, Any]]) -> pd.DataFrame:
        """
        DataFrame for one sheet. Columns follow the table definition so that
        empty collections still get a header row; lists become JSON text.
        """
        table = models.Base.metadata.tables.get(table_name)
        columns = list(table.columns.keys()) if table is not None else None

        cleaned = [
            {
                key: json.dumps(value) if isinstance(value, (list, dict)) else value
                for key, value in row.items()
            }
            for row in rows
        ]
        return pd.DataFrame(cleaned, columns=columns)

    def export_snapshot(self, snapshot: dict[str, list[dict[str, Any]]]) -> dict[str, Any]:
        """
        Write `snapshot` (table name -> rows) to the workbook.

        Returns:
            dict with success, message, path, record_counts and exported_at

        Raises:
            OSError: the workbook could not be written
        """
        self._ensure_data_dir()

        result = {
            "success": False,
            "message": "",
            "path": str(self.workbook),
            "record_counts": {name: len(rows) for name, rows in snapshot.items()},
            "exported_at": None,
        }

        try:
            lock = FileLock(str(self.lock_file), timeout=self.lock_timeout)

            with lock:
                logger.debug(f"Lock acquired for {self.workbook}")

                export_time = datetime.now().isoformat()
                with pd.ExcelWriter(self.workbook, engine="openpyxl") as writer:
                    for name, rows in snapshot.items():
                        frame = self._build_frame(name, rows)
                        frame.to_excel(writer, sheet_name=name, index=False)

                total = sum(result["record_counts"].values())
                logger.info(f"Snapshot exported: {total} records to {self.workbook}")

                result["success"] = True
                result["message"] = f"{total} records exported"
                result["exported_at"] = export_time

            logger.debug(f"Lock released for {self.workbook}")

        except Timeout:
            result["message"] = f"Lock timeout ({self.lock_timeout}s)"
            logger.error(f"Lock timeout exporting {self.workbook}")

        return result

    def read_snapshot(self) -> Optional[dict[str, pd.DataFrame]]:
        """Load every sheet of the workbook, or None if nothing was exported."""
        if not self.workbook.exists():
            return None
        return pd.read_excel(self.workbook, sheet_name=None, engine="openpyxl")

"""
application_store.py   -  Application Record Store
====================================================
Reference persistence collaborator for the applications table.

Each application is one JSON file on disk:
    data/applications/{application_id}.json

The codec never talks to this module; the applications API loads a row,
hands it to decode_application, and writes the patch produced by
encode_application back through update_application.

Design notes
------------
- JSON-only storage. Rows use the column names of the applications table
  so they can move to a database unchanged.
- Writes go to a temp file first and are swapped in with os.replace, under a
  process-wide lock.
- A patch is merged into the stored row: columns missing from the patch keep
  their stored value.
- Missing rows return None; corrupt rows (invalid JSON, or JSON that is not
  an object) raise ValueError. Callers decide whether to translate these
  into HTTP 404/500.
- update_application can check the stored status under the write lock and
  raises StatusConflictError on a mismatch (HTTP 409 in the API).
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import threading
import uuid
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

# Columns a patch may never overwrite
_PROTECTED_COLUMNS = ("id", "created_at")

# Columns list_applications can filter on
LIST_FILTER_COLUMNS = (
    "status",
    "application_type",
    "province",
    "district",
    "water_source",
    "sla_status",
    "applicant_id",
    "assigned_reviewer_id",
    "assigned_inspector_id",
)


class StatusConflictError(Exception):
    """Raised when a guarded update finds the row in a different status."""

    def __init__(self, application_id: str, status: Any, expected: str):
        super().__init__(
            f"Application {application_id} is {status!r}, expected {expected!r}"
        )
        self.application_id = application_id
        self.status = status
        self.expected = expected


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _as_value_set(value: Union[str, Iterable[str], None]) -> set[str]:
    if value is None:
        return set()
    if isinstance(value, str):
        return {value}
    return {item for item in value if item}


class ApplicationStore:
    """
    On-disk layout:

    {root_dir}/
      {application_id}.json   (one applications-table row)
    """

    def __init__(self, root_dir: str | Path = "data/applications"):
        self.root = Path(root_dir)
        self.root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    # ---------- Paths ----------

    def _row_path(self, application_id: str) -> Optional[Path]:
        if not isinstance(application_id, str) or not _ID_PATTERN.match(application_id):
            return None
        return self.root / f"{application_id}.json"

    def _read(self, path: Path) -> dict[str, Any]:
        try:
            row = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Corrupt application data in {path.name}: {exc}") from exc
        if not isinstance(row, dict):
            raise ValueError(
                f"Corrupt application data in {path.name}: expected an object, got {type(row).__name__}"
            )
        return row

    def _write(self, path: Path, row: dict[str, Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(row, fh, ensure_ascii=False, indent=2, default=str)
            os.replace(tmp_name, path)
        except Exception:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    # ---------- Write operations ----------

    def create_application(self, patch: dict[str, Any]) -> dict[str, Any]:
        """Insert a new row built from an encoded patch and return it."""
        application_id = str(uuid.uuid4())
        timestamp = _now()
        row = {
            **{k: v for k, v in patch.items() if k not in _PROTECTED_COLUMNS},
            "id": application_id,
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        path = self._row_path(application_id)
        with self._lock:
            self._write(path, row)
        logger.info("Application %s created (status=%s)", application_id, row.get("status"))
        return row

    def update_application(
        self,
        application_id: str,
        patch: dict[str, Any],
        expected_status: Optional[str] = None,
    ) -> Optional[dict[str, Any]]:
        """
        Merge ``patch`` into a stored row. Returns the updated row, or None if missing.

        With ``expected_status`` the stored status is checked under the same
        lock as the write; a mismatch raises StatusConflictError and nothing
        is written.
        """
        path = self._row_path(application_id)
        if path is None:
            return None
        with self._lock:
            if not path.exists():
                logger.warning("Application %s not found for update", application_id)
                return None
            row = self._read(path)
            if expected_status is not None and row.get("status") != expected_status:
                raise StatusConflictError(application_id, row.get("status"), expected_status)
            row.update({k: v for k, v in patch.items() if k not in _PROTECTED_COLUMNS})
            row["updated_at"] = _now()
            self._write(path, row)
        logger.info("Application %s updated (status=%s)", application_id, row.get("status"))
        return row

    def delete_application(self, application_id: str) -> bool:
        path = self._row_path(application_id)
        if path is None:
            return False
        with self._lock:
            if not path.exists():
                return False
            path.unlink()
        logger.info("Application %s deleted", application_id)
        return True

    # ---------- Read operations ----------

    def get_application(self, application_id: str) -> Optional[dict[str, Any]]:
        path = self._row_path(application_id)
        if path is None:
            return None
        try:
            return self._read(path)
        except FileNotFoundError:
            return None

    def list_applications(
        self,
        created_from: Optional[str] = None,
        created_to: Optional[str] = None,
        **filters: Union[str, Iterable[str], None],
    ) -> list[dict[str, Any]]:
        """
        All rows matching the filters, newest first. Corrupt files are skipped.

        Column filters (``status``, ``application_type``, ``province``,
        ``district``, ``water_source``, ``sla_status``, ``applicant_id``,
        ``assigned_reviewer_id``, ``assigned_inspector_id``) take one value
        or a list of accepted values. ``created_from`` / ``created_to`` bound
        ``created_at`` inclusively; a bare date as ``created_to`` covers
        the whole day.
        """
        unknown = set(filters) - set(LIST_FILTER_COLUMNS)
        if unknown:
            raise TypeError(f"Unknown application filters: {sorted(unknown)}")
        accepted: dict[str, set[str]] = {}
        for column, value in filters.items():
            values = _as_value_set(value)
            if values:
                accepted[column] = values

        rows: list[dict[str, Any]] = []
        for path in self.root.glob("*.json"):
            try:
                row = self._read(path)
            except (OSError, ValueError) as exc:
                logger.warning("Skipping unreadable application file %s: %s", path.name, exc)
                continue
            if any(row.get(column) not in values for column, values in accepted.items()):
                continue
            created_at = row.get("created_at") or ""
            if created_from and created_at < created_from:
                continue
            if created_to and created_at[:len(created_to)] > created_to:
                continue
            rows.append(row)
        rows.sort(key=lambda row: row.get("created_at") or "", reverse=True)
        return rows

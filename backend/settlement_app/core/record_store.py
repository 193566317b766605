from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from typing import List, Optional, Protocol, Sequence

from settlement_app.core.errors import PersistenceError
from settlement_app.core.telemetry import utc_now
from settlement_app.schemas.settlement_contract import (
    FORM_FIELD_NAMES,
    SettlementFields,
    SettlementRecord,
)

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    """Two-phase write: ``create`` at request time, ``update_files`` after upload."""

    def create(self, fields: SettlementFields) -> SettlementRecord: ...

    def update_files(self, record_id: str, file_ids: Sequence[str]) -> SettlementRecord: ...

    def get(self, record_id: str) -> Optional[SettlementRecord]: ...


def sqlite_path_from_uri(uri: str) -> str:
    """Accept ``sqlite:///path``, ``sqlite://`` (memory is refused) or a bare path."""
    if uri.startswith("sqlite:///"):
        return uri[len("sqlite:///"):]
    if uri.startswith("sqlite://"):
        raise ValueError("in-memory sqlite cannot be shared between connections; give a file path")
    if "://" in uri:
        raise ValueError(f"unsupported record store URI: {uri}")
    return uri


class SQLiteRecordStore:
    table = "settlements"

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._init()

    @classmethod
    def from_uri(cls, uri: str) -> "SQLiteRecordStore":
        return cls(sqlite_path_from_uri(uri))

    def _connect(self) -> sqlite3.Connection:
        con = sqlite3.connect(self.db_path)
        con.row_factory = sqlite3.Row
        return con

    def _init(self) -> None:
        columns = ",\n".join(f'    "{name}" TEXT' for name in FORM_FIELD_NAMES)
        con = self._connect()
        try:
            con.execute(f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    id TEXT PRIMARY KEY,
                    created_at TEXT NOT NULL,
                    {columns},
                    files TEXT NOT NULL DEFAULT '[]'
                )
            """)
            con.execute(f"CREATE INDEX IF NOT EXISTS idx_{self.table}_created ON {self.table}(created_at)")
            con.commit()
        finally:
            con.close()

    def _row_to_record(self, row: sqlite3.Row) -> SettlementRecord:
        data = {name: row[name] for name in FORM_FIELD_NAMES}
        data["id"] = row["id"]
        data["created_at"] = row["created_at"]
        data["files"] = json.loads(row["files"])
        return SettlementRecord.model_validate(data)

    def create(self, fields: SettlementFields) -> SettlementRecord:
        record_id = uuid.uuid4().hex
        values = fields.wire_values()
        column_list = ", ".join(f'"{name}"' for name in FORM_FIELD_NAMES)
        placeholders = ", ".join("?" for _ in FORM_FIELD_NAMES)
        try:
            con = self._connect()
            try:
                con.execute(
                    f"INSERT INTO {self.table} (id, created_at, {column_list}, files) "
                    f"VALUES (?, ?, {placeholders}, ?)",
                    (record_id, utc_now(), *(values[name] for name in FORM_FIELD_NAMES), "[]"),
                )
                con.commit()
                row = con.execute(f"SELECT * FROM {self.table} WHERE id = ?", (record_id,)).fetchone()
            finally:
                con.close()
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e
        logger.info("settlement record %s created", record_id)
        return self._row_to_record(row)

    def update_files(self, record_id: str, file_ids: Sequence[str]) -> SettlementRecord:
        try:
            con = self._connect()
            try:
                cur = con.execute(
                    f"UPDATE {self.table} SET files = ? WHERE id = ?",
                    (json.dumps(list(file_ids)), record_id),
                )
                if cur.rowcount == 0:
                    raise PersistenceError(f"record {record_id} not found", record_id=record_id)
                con.commit()
                row = con.execute(f"SELECT * FROM {self.table} WHERE id = ?", (record_id,)).fetchone()
            finally:
                con.close()
        except sqlite3.Error as e:
            raise PersistenceError(str(e), record_id=record_id) from e
        return self._row_to_record(row)

    def get(self, record_id: str) -> Optional[SettlementRecord]:
        con = self._connect()
        try:
            row = con.execute(f"SELECT * FROM {self.table} WHERE id = ?", (record_id,)).fetchone()
        finally:
            con.close()
        return self._row_to_record(row) if row else None

    def all(self) -> List[SettlementRecord]:
        con = self._connect()
        try:
            rows = con.execute(f"SELECT * FROM {self.table} ORDER BY created_at").fetchall()
        finally:
            con.close()
        return [self._row_to_record(r) for r in rows]

    def count(self) -> int:
        con = self._connect()
        try:
            return con.execute(f"SELECT COUNT(*) FROM {self.table}").fetchone()[0]
        finally:
            con.close()

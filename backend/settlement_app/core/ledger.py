"""
Shared spreadsheet ledger: one denormalized row per completed settlement.

Row layout (fixed): timestamp followed by the form fields in form order, see
``LEDGER_COLUMNS``. The stored ``files`` ids are not part of the row.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from settlement_app.core.errors import LedgerError
from settlement_app.core.google_services import SheetsClient
from settlement_app.schemas.settlement_contract import LEDGER_COLUMNS, SettlementRecord

logger = logging.getLogger(__name__)


def build_ledger_row(record: SettlementRecord, timestamp: Optional[str] = None) -> List[str]:
    values = record.wire_values()
    ts = timestamp or datetime.now(timezone.utc).isoformat()
    return [ts] + [values.get(name) or "" for name in LEDGER_COLUMNS[1:]]


class LedgerAppender:
    def __init__(self, sheets: SheetsClient, spreadsheet_id: str, range_: str):
        self.sheets = sheets
        self.spreadsheet_id = spreadsheet_id
        self.range = range_

    def append(self, record: SettlementRecord) -> List[str]:
        row = build_ledger_row(record)
        try:
            self.sheets.append_row(self.spreadsheet_id, self.range, row)
        except Exception as e:
            raise LedgerError(str(e), record_id=record.id) from e
        logger.info("ledger row appended for record %s", record.id)
        return row

"""
Shared fakes for the external capabilities (Drive, Sheets, SMTP) and
orchestrator/app fixtures built on a temporary SQLite record store.
"""

import smtplib
import sqlite3
import threading
import time
from typing import Dict, List, Optional, Set, Tuple

import pytest

from settlement_app.core.config import ServiceConfig
from settlement_app.core.ledger import LedgerAppender
from settlement_app.core.notifier import Notifier
from settlement_app.core.orchestrator import SubmissionOrchestrator
from settlement_app.core.record_store import SQLiteRecordStore
from settlement_app.core.storage import FileUploader, FolderResolver
from settlement_app.schemas.settlement_contract import Attachment

PARENT = "parent-folder"
SHEET = "sheet-id"


class FakeDrive:
    def __init__(self):
        self.folders: Dict[Tuple[str, str], List[str]] = {}
        self.find_calls: List[Tuple[str, str]] = []
        self.create_calls: List[Tuple[str, str]] = []
        self.upload_calls: List[Tuple[str, str]] = []
        self.completed: List[str] = []
        self.delays: Dict[str, float] = {}
        self.fail_on: Set[str] = set()
        self.fail_find = False
        self.on_upload = None
        self._lock = threading.Lock()

    def find_folders(self, name, parent_id):
        self.find_calls.append((name, parent_id))
        if self.fail_find:
            raise ConnectionError("drive unreachable")
        return list(self.folders.get((name, parent_id), []))

    def create_folder(self, name, parent_id):
        self.create_calls.append((name, parent_id))
        folder_id = f"folder-{len(self.create_calls)}"
        self.folders.setdefault((name, parent_id), []).append(folder_id)
        return folder_id

    def upload_file(self, folder_id, attachment):
        with self._lock:
            self.upload_calls.append((folder_id, attachment.filename))
        if self.on_upload:
            self.on_upload(attachment)
        time.sleep(self.delays.get(attachment.filename, 0.0))
        if attachment.filename in self.fail_on:
            raise IOError(f"upload of {attachment.filename} rejected")
        with self._lock:
            self.completed.append(attachment.filename)
            return f"file-{attachment.filename}"


class FakeSheets:
    def __init__(self):
        self.rows: List[Tuple[str, str, list]] = []
        self.fail = False

    def append_row(self, spreadsheet_id, range_, row):
        if self.fail:
            raise RuntimeError("quota exceeded")
        self.rows.append((spreadsheet_id, range_, list(row)))


class FakeTransport:
    def __init__(self):
        self.messages = []
        self.fail = False

    def send_message(self, message):
        if self.fail:
            raise smtplib.SMTPAuthenticationError(535, b"auth rejected")
        self.messages.append(message)


class FailingRecordStore:
    """Rejects every create; counts calls on the rest."""

    def __init__(self):
        self.update_calls = 0

    def create(self, fields):
        raise sqlite3.OperationalError("unable to open database file")

    def update_files(self, record_id, file_ids):
        self.update_calls += 1

    def get(self, record_id):
        return None


def make_attachments(*names: str) -> List[Attachment]:
    return [Attachment(filename=n, content_type="text/plain", content=n.encode()) for n in names]


SAMPLE_FORM = {
    "email": "a@b.com",
    "name": "A",
    "advSetlDate": "2024-03-01",
    "area": "North",
    "placeProg": "Hall 2",
    "project": "Proj1",
    "prjCode": "P-001",
    "coversheet": "yes",
    "dateProg": "2024-02-20",
    "progTitle": "Training",
    "summary": "Two-day workshop",
    "food": "40",
    "travel": "30",
    "stationery": "5",
    "printing": "5",
    "accom": "10",
    "communication": "3",
    "resource": "4",
    "other": "3",
    "total": "100",
    "inword": "One hundred",
    "vendor": "Acme",
    "individual": "no",
    "totalAdvTake": "120",
    "receivable": "20",
}


@pytest.fixture
def config(tmp_path):
    return ServiceConfig(
        record_store_uri=f"sqlite:///{tmp_path / 'settlements.sqlite'}",
        email_user="office@example.org",
        ledger_spreadsheet_id=SHEET,
        parent_folder_id=PARENT,
        background_timeout_s=10.0,
    )


@pytest.fixture
def drive():
    return FakeDrive()


@pytest.fixture
def sheets():
    return FakeSheets()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def store(config):
    return SQLiteRecordStore.from_uri(config.record_store_uri)


def build_orchestrator(config, store, drive, sheets, transport) -> SubmissionOrchestrator:
    return SubmissionOrchestrator(
        config=config,
        record_store=store,
        notifier=Notifier(transport, sender=config.email_user),
        folder_resolver=FolderResolver(drive),
        file_uploader=FileUploader(drive),
        ledger_appender=LedgerAppender(sheets, config.ledger_spreadsheet_id, config.ledger_range),
    )


@pytest.fixture
def orchestrator(config, store, drive, sheets, transport):
    return build_orchestrator(config, store, drive, sheets, transport)

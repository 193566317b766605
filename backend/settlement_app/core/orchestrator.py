"""
orchestrator.py
===============
SUBMISSION ORCHESTRATOR

Flow for one request:
    submit()                       blocks the response
        ├─ record_store.create()       fatal on failure, nothing else runs
        └─ notifier.send()             fatal on failure, record stays stored
    -- 201 sent to caller --
    process_background()           best effort, never raises
        ├─ folder_resolver.resolve()
        ├─ file_uploader.upload()      concurrent, all-or-nothing
        ├─ record_store.update_files()
        └─ ledger_appender.append()

Rules:
    - Background failures are logged and reported, never retried.
    - A failed background stage leaves files=[] and writes no ledger row.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from settlement_app.core.config import ServiceConfig
from settlement_app.core.errors import NotificationError, PersistenceError, classify
from settlement_app.core.ledger import LedgerAppender
from settlement_app.core.notifier import CONFIRMATION_SUBJECT, Notifier, confirmation_message
from settlement_app.core.record_store import RecordStore
from settlement_app.core.storage import FileUploader, FolderResolver
from settlement_app.core.telemetry import BackgroundFailure, FailureReport
from settlement_app.schemas.settlement_contract import Attachment, SettlementFields, SettlementRecord

logger = logging.getLogger(__name__)

# folder for submissions without a project name; keeps find-or-create stable
UNASSIGNED_PROJECT = "Unassigned"


def project_folder_name(record: SettlementRecord) -> str:
    return (record.project or "").strip() or UNASSIGNED_PROJECT


class SubmissionOrchestrator:
    def __init__(
        self,
        config: ServiceConfig,
        record_store: RecordStore,
        notifier: Notifier,
        folder_resolver: FolderResolver,
        file_uploader: FileUploader,
        ledger_appender: LedgerAppender,
        failure_report: Optional[FailureReport] = None,
    ):
        self.config = config
        self.record_store = record_store
        self.notifier = notifier
        self.folder_resolver = folder_resolver
        self.file_uploader = file_uploader
        self.ledger_appender = ledger_appender
        self.failure_report = failure_report or FailureReport()

    @classmethod
    def from_config(cls, config: ServiceConfig) -> "SubmissionOrchestrator":
        """Wire the production collaborators (SQLite, SMTP, Google Drive/Sheets)."""
        from settlement_app.core.google_services import (
            GoogleDriveClient, GoogleSheetsClient, LazyCredentials,
        )
        from settlement_app.core.notifier import SmtpTransport
        from settlement_app.core.record_store import SQLiteRecordStore

        # loaded on first Google call: a missing key file fails the
        # background stage only, record and email still work
        credentials = LazyCredentials(config.google_credentials_file)
        drive = GoogleDriveClient(credentials)
        return cls(
            config=config,
            record_store=SQLiteRecordStore.from_uri(config.record_store_uri),
            notifier=Notifier(
                SmtpTransport(config.smtp_host, config.smtp_port, config.email_user, config.email_password),
                sender=config.email_user,
            ),
            folder_resolver=FolderResolver(drive),
            file_uploader=FileUploader(drive),
            ledger_appender=LedgerAppender(
                GoogleSheetsClient(credentials), config.ledger_spreadsheet_id, config.ledger_range,
            ),
        )

    # ─────────────── synchronous phase ───────────────
    async def submit(self, fields: SettlementFields, attachments: Sequence[Attachment]) -> SettlementRecord:
        try:
            record = await asyncio.to_thread(self.record_store.create, fields)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(str(e)) from e

        try:
            await asyncio.to_thread(
                self.notifier.send,
                record.email,
                CONFIRMATION_SUBJECT,
                confirmation_message(record.name),
                list(attachments),
            )
        except Exception as e:
            # record is already stored; it stays without a confirmation
            logger.error("record %s persisted but confirmation failed: %s", record.id, e)
            if isinstance(e, NotificationError):
                e.record_id = record.id
                raise
            raise NotificationError(str(e), record_id=record.id) from e
        return record

    # ─────────────── background phase ───────────────
    async def process_background(self, record: SettlementRecord, attachments: Sequence[Attachment]) -> bool:
        """Resolve folder, upload, store file ids, append ledger row. Returns success."""
        stage = {"name": "folder"}
        try:
            await self._run_background(record, attachments, stage)
        except Exception as e:
            logger.exception("background stage %r failed for record %s", stage["name"], record.id)
            self.failure_report.record(BackgroundFailure(
                record_id=record.id,
                stage=stage["name"],
                error_class=classify(e),
                detail=str(e) or type(e).__name__,
            ))
            return False
        return True

    async def _run_background(self, record: SettlementRecord, attachments: Sequence[Attachment], stage: dict) -> None:
        # the timeout only bounds the Drive work; once update_files starts,
        # it and the ledger append run to completion
        async with asyncio.timeout(self.config.background_timeout_s or None):
            stage["name"] = "folder"
            folder_id = await asyncio.to_thread(
                self.folder_resolver.resolve, project_folder_name(record), self.config.parent_folder_id
            )

            stage["name"] = "upload"
            file_ids = await self.file_uploader.upload(folder_id, attachments)
        logger.info("uploaded %d file(s) for record %s into folder %s", len(file_ids), record.id, folder_id)

        stage["name"] = "update_files"
        updated = await asyncio.to_thread(self.record_store.update_files, record.id, file_ids)

        stage["name"] = "ledger"
        await asyncio.to_thread(self.ledger_appender.append, updated)

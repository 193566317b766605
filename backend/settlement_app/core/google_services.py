"""
google_services.py
==================
Thin adapters over the Google Drive v3 and Sheets v4 SDKs.

The rest of the service only sees the ``DriveClient`` / ``SheetsClient``
capabilities; tests substitute in-process fakes for both.

A service object is built per call: the httplib2 transport underneath
``googleapiclient`` is not thread-safe and uploads run on worker threads.
"""

from __future__ import annotations

import io
import threading
from typing import Any, List, Optional, Protocol, Sequence

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseUpload

from settlement_app.schemas.settlement_contract import Attachment

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


class DriveClient(Protocol):
    def find_folders(self, name: str, parent_id: str) -> List[str]: ...

    def create_folder(self, name: str, parent_id: str) -> str: ...

    def upload_file(self, folder_id: str, attachment: Attachment) -> str: ...


class SheetsClient(Protocol):
    def append_row(self, spreadsheet_id: str, range_: str, row: Sequence[Any]) -> None: ...


def load_credentials(credentials_file: Optional[str]) -> service_account.Credentials:
    if not credentials_file:
        raise RuntimeError("GOOGLE_CLOUD_CREDENTIALS is not set")
    return service_account.Credentials.from_service_account_file(credentials_file, scopes=SCOPES)


class LazyCredentials:
    """Service-account credentials read from the key file on first use."""

    def __init__(self, credentials_file: Optional[str]):
        self.credentials_file = credentials_file
        self._credentials: Optional[service_account.Credentials] = None
        self._lock = threading.Lock()

    def get(self) -> service_account.Credentials:
        with self._lock:
            if self._credentials is None:
                self._credentials = load_credentials(self.credentials_file)
            return self._credentials


def escape_query_value(value: str) -> str:
    """Escape a literal for a Drive ``q`` expression (single-quoted)."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveClient:
    def __init__(self, credentials: LazyCredentials):
        self.credentials = credentials

    def _service(self):
        return build("drive", "v3", credentials=self.credentials.get(), cache_discovery=False)

    def find_folders(self, name: str, parent_id: str) -> List[str]:
        q = (
            f"'{escape_query_value(parent_id)}' in parents"
            f" and name = '{escape_query_value(name)}'"
            f" and mimeType = '{FOLDER_MIME_TYPE}'"
            " and trashed = false"
        )
        res = self._service().files().list(q=q, fields="files(id, name)").execute()
        return [f["id"] for f in res.get("files", [])]

    def create_folder(self, name: str, parent_id: str) -> str:
        metadata = {"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]}
        folder = self._service().files().create(body=metadata, fields="id").execute()
        return folder["id"]

    def upload_file(self, folder_id: str, attachment: Attachment) -> str:
        metadata = {"name": attachment.filename, "parents": [folder_id]}
        media = MediaIoBaseUpload(
            io.BytesIO(attachment.content),
            mimetype=attachment.content_type,
            resumable=False,
        )
        created = self._service().files().create(body=metadata, media_body=media, fields="id").execute()
        return created["id"]


class GoogleSheetsClient:
    def __init__(self, credentials: LazyCredentials):
        self.credentials = credentials

    def append_row(self, spreadsheet_id: str, range_: str, row: Sequence[Any]) -> None:
        service = build("sheets", "v4", credentials=self.credentials.get(), cache_discovery=False)
        service.spreadsheets().values().append(
            spreadsheetId=spreadsheet_id,
            range=range_,
            valueInputOption="USER_ENTERED",
            body={"values": [list(row)]},
        ).execute()

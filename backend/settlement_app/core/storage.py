"""
Project folder resolution and attachment upload.

    FolderResolver.resolve(project, parent)   find-or-create, by exact name
    FileUploader.upload(folder, attachments)  concurrent fan-out, ordered join

Known limitation: two first-time submissions for the same project can both
miss each other's folder and create two. No lock is taken; duplicates are
tolerated.
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Sequence

from settlement_app.core.errors import FolderResolutionError, UploadError
from settlement_app.core.google_services import DriveClient
from settlement_app.schemas.settlement_contract import Attachment

logger = logging.getLogger(__name__)


class FolderResolver:
    def __init__(self, drive: DriveClient):
        self.drive = drive

    def resolve(self, project_name: str, parent_folder_id: str) -> str:
        """Return the folder named ``project_name`` under the parent, creating it if absent.

        With several same-named folders the first one listed wins; the listing
        order is whatever the backend returns.
        """
        try:
            existing = self.drive.find_folders(project_name, parent_folder_id)
            if existing:
                return existing[0]
            folder_id = self.drive.create_folder(project_name, parent_folder_id)
        except Exception as e:
            raise FolderResolutionError(f"{project_name!r}: {e}") from e
        logger.info("created folder %s for project %r", folder_id, project_name)
        return folder_id


class FileUploader:
    def __init__(self, drive: DriveClient):
        self.drive = drive

    async def upload(self, folder_id: str, attachments: Sequence[Attachment]) -> List[str]:
        if not attachments:
            return []
        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [
                    tg.create_task(asyncio.to_thread(self.drive.upload_file, folder_id, a))
                    for a in attachments
                ]
        except ExceptionGroup as eg:
            first = eg.exceptions[0]
            raise UploadError(
                f"{len(eg.exceptions)} of {len(attachments)} uploads failed: {first}"
            ) from first
        # read back through the handles, in input order
        return [t.result() for t in tasks]

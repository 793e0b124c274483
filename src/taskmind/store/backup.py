"""Best-effort cloud backup of the task list to Google Drive."""

from __future__ import annotations

import json
from typing import Protocol

from taskmind.logging import get_logger
from taskmind.sources.google_api import GoogleApiClient

log = get_logger("taskmind.store.backup")

DRIVE_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"


class BackupUploader(Protocol):
    """Anything that can put a blob somewhere safe."""

    async def upload(self, blob: bytes, filename: str) -> None: ...


class DriveBackup(GoogleApiClient):
    """Uploads backups to the user's Drive (``drive.file`` scope)."""

    async def upload(self, blob: bytes, filename: str) -> None:
        """Upload ``blob`` as a new JSON file named ``filename``.

        Raises:
            GoogleApiError: if Drive rejects the upload.
        """
        metadata = json.dumps({"name": filename, "mimeType": "application/json"})
        result = await self._post_multipart(
            DRIVE_UPLOAD_URL,
            {
                "metadata": (None, metadata.encode("utf-8"), "application/json"),
                "file": (filename, blob, "application/json"),
            },
            params={"uploadType": "multipart"},
        )
        log.info("backup_uploaded", filename=filename, file_id=result.get("id"), size=len(blob))

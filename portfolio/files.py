"""
File attachments: two-phase upload (blob, then metadata record) and the
list/delete operations over `project_files`.
"""

from __future__ import annotations

import logging
import os
import time
import uuid
from typing import Optional

from portfolio.db import ProjectFile, StoreClient
from portfolio.errors import ValidationFailure
from portfolio.storage import StorageClient

logger = logging.getLogger(__name__)

UPLOAD_PREFIX = "public"


def generate_storage_key(file_name: str, prefix: str = UPLOAD_PREFIX) -> str:
    """
    Build a collision-free object key: epoch millis plus a random suffix,
    keeping the original extension.
    """
    _, ext = os.path.splitext(file_name or "")
    stamp = int(time.time() * 1000)
    name = f"{stamp}_{uuid.uuid4().hex[:8]}{ext}"
    return f"{prefix}/{name}" if prefix else name


class FileAttachments:
    def __init__(self, store: StoreClient, storage: StorageClient):
        self.store = store
        self.storage = storage

    def upload(
        self,
        project_id: str,
        file_name: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> ProjectFile:
        if not file_name:
            raise ValidationFailure("A file is required")

        key = generate_storage_key(file_name)
        # Nothing is recorded if the blob never made it into the bucket.
        self.storage.upload(key, data, content_type=content_type)
        public_url = self.storage.get_public_url(key)

        try:
            record = self.store.insert_project_file(
                project_id=project_id,
                file_name=file_name,
                file_url=public_url,
            )
        except Exception:
            logger.warning(
                "Metadata insert failed for project %s; blob %s left orphaned",
                project_id,
                key,
            )
            raise
        logger.info("Uploaded %s to project %s as %s", file_name, project_id, key)
        return record

    def list_for_project(self, project_id: str) -> list[ProjectFile]:
        return self.store.list_project_files(project_id)

    def delete(self, file_id: str) -> None:
        # The blob stays in the bucket; only the record goes.
        self.store.delete_project_file(file_id)
        logger.info("Deleted file record %s", file_id)

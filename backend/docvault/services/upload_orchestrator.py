"""Upload orchestrator — uploads, deletes and metadata edits with cache reconciliation."""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, Iterable

from docvault.exceptions import (
    ConflictError,
    DocumentError,
    ValidationError,
    classify_error,
    translate_errors,
)
from docvault.schemas.files import FileMetadataPatch, FileRecord
from docvault.schemas.uploads import UNKNOWN_FILE, PendingUpload, UploadFailure, UploadOutcome
from docvault.services.document_list import DocumentList
from docvault.services.file_cache import FileCache

if TYPE_CHECKING:
    from docvault.services.folder_registry import FolderRegistry
    from docvault.services.gateway import RecordsGateway

logger = logging.getLogger(__name__)

NO_RESULT_REASON = "No result reported by server"


class UploadOrchestrator:
    """Runs mutations against the remote API and reconciles local state.

    Local state is only touched after the server confirmed a mutation: new
    records are prepended to the document list and the folder's cache entry
    is invalidated so the next read reconciles with the server.
    """

    def __init__(
        self,
        gateway: RecordsGateway,
        cache: FileCache,
        registry: FolderRegistry,
        documents: DocumentList | None = None,
    ):
        self._gateway = gateway
        self._cache = cache
        self._registry = registry
        self._documents = documents if documents is not None else DocumentList()
        self._in_progress: set[str] = set()
        self._active_uploads = 0

    @property
    def documents(self) -> tuple[FileRecord, ...]:
        return self._documents.snapshot()

    @property
    def pending_ids(self) -> frozenset[str]:
        return frozenset(self._in_progress)

    @property
    def is_uploading(self) -> bool:
        return self._active_uploads > 0

    def is_busy(self, file_id: str) -> bool:
        return file_id in self._in_progress

    # --- uploads ---

    async def upload(
        self, files: list[PendingUpload], folder_id: str, description: str = ""
    ) -> UploadOutcome:
        """Upload one or many files, choosing the single or batch endpoint."""
        if not files:
            raise ValidationError("No files selected")
        if len(files) > 1:
            return await self.upload_batch(files, folder_id, description)

        _require_folder(folder_id)
        try:
            record = await self.upload_single(files[0], folder_id, description)
        except DocumentError as e:
            return UploadOutcome(
                failed=[UploadFailure(file=files[0].name, reason=e.message, error_type=e.kind)]
            )
        return UploadOutcome(succeeded=[record])

    async def upload_single(
        self, file: PendingUpload, folder_id: str, description: str = ""
    ) -> FileRecord:
        _require_folder(folder_id)

        self._active_uploads += 1
        try:
            with translate_errors(f"Upload {file.name}"):
                record = await self._gateway.upload_one(file, folder_id, description)
        finally:
            self._active_uploads -= 1

        record = self._registry.annotate([_in_folder(record, folder_id)])[0]
        self._documents.prepend([record])
        self._cache.invalidate(folder_id)
        logger.info("Uploaded %s to folder %s", record.name, folder_id)
        return record

    async def upload_batch(
        self, files: list[PendingUpload], folder_id: str, description: str = ""
    ) -> UploadOutcome:
        """Upload all files in one call; partial failure is a normal outcome."""
        _require_folder(folder_id)
        if not files:
            raise ValidationError("No files selected")

        self._active_uploads += 1
        try:
            result = await self._gateway.upload_many(files, folder_id, description)
        except Exception as exc:
            error = classify_error(exc)
            logger.error("Batch upload of %d files failed: %s", len(files), error.message)
            return UploadOutcome(
                failed=[
                    UploadFailure(file=f.name, reason=error.message, error_type=error.kind)
                    for f in files
                ]
            )
        finally:
            self._active_uploads -= 1

        succeeded = self._registry.annotate(_in_folder(r, folder_id) for r in result.successful)
        failed = _name_failures(files, succeeded, result.failed)
        failed.extend(_unaccounted(files, succeeded, failed))

        if succeeded:
            self._documents.prepend(succeeded)
        self._cache.invalidate(folder_id)

        outcome = UploadOutcome(succeeded=succeeded, failed=failed)
        if outcome.failed:
            logger.warning("Batch upload to %s: %s", folder_id, outcome.summary)
        else:
            logger.info("Batch upload to %s: %s", folder_id, outcome.summary)
        return outcome

    # --- deletion / metadata ---

    async def delete_file(self, file_id: str) -> FileRecord | None:
        """Delete a file; the record stays in the list unless the server confirms."""
        if not file_id:
            raise ValidationError("File id is required")
        if file_id in self._in_progress:
            raise ConflictError(f"File {file_id} is already being deleted")

        self._in_progress.add(file_id)
        try:
            with translate_errors(f"Delete file {file_id}"):
                await self._gateway.delete_file(file_id)

            removed = self._documents.remove(file_id)
            folder_id = removed.folder_id if removed else self._cache.locate(file_id)
            if folder_id:
                self._cache.invalidate(folder_id)
            logger.info("Deleted file %s", file_id)
            return removed
        finally:
            self._in_progress.discard(file_id)

    async def update_file(self, file_id: str, patch: FileMetadataPatch) -> FileRecord:
        """Apply a metadata patch, then merge it into the in-memory record."""
        if not file_id:
            raise ValidationError("File id is required")
        if patch.is_empty:
            raise ValidationError("Nothing to update")
        if patch.name is not None and not patch.name.strip():
            raise ValidationError("File name must not be empty")

        with translate_errors(f"Update file {file_id}"):
            server_record = await self._gateway.update_file_metadata(file_id, patch)

        record = self._documents.get(file_id)
        if record is not None:
            record = record.model_copy(update=patch.to_update())
            self._documents.replace(record)
            folder_id = record.folder_id
        else:
            record = server_record
            folder_id = server_record.folder_id or self._cache.locate(file_id)

        if folder_id:
            self._cache.invalidate(folder_id)
        return record

    # --- list maintenance ---

    def replace_documents(self, records: Iterable[FileRecord]) -> None:
        """Swap in a freshly loaded document list."""
        self._documents.reset(records)

    def drop_folder(self, folder_id: str) -> int:
        """Forget the records of a deleted folder."""
        return self._documents.remove_folder(folder_id)


def _require_folder(folder_id: str) -> None:
    if not folder_id or not folder_id.strip():
        raise ValidationError("Please select a folder")


def _in_folder(record: FileRecord, folder_id: str) -> FileRecord:
    if record.folder_id:
        return record
    return record.model_copy(update={"folder_id": folder_id})


def _name_failures(
    files: list[PendingUpload], succeeded: list[FileRecord], failed: list[UploadFailure]
) -> list[UploadFailure]:
    """Fill in file names the server left out of its failure entries.

    Unnamed failures are matched, in order, to the uploads that were
    neither reported as uploaded nor named in another failure.
    """
    reported = Counter(r.name for r in succeeded) + Counter(
        f.file for f in failed if f.file != UNKNOWN_FILE
    )
    unnamed = []
    for upload in files:
        if reported[upload.name] > 0:
            reported[upload.name] -= 1
            continue
        unnamed.append(upload.name)

    named = []
    for failure in failed:
        if failure.file == UNKNOWN_FILE and unnamed:
            failure = failure.model_copy(update={"file": unnamed.pop(0)})
        named.append(failure)
    return named


def _unaccounted(
    files: list[PendingUpload], succeeded: list[FileRecord], failed: list[UploadFailure]
) -> list[UploadFailure]:
    """Files the server reported neither as uploaded nor as failed."""
    missing = len(files) - len(succeeded) - len(failed)
    if missing <= 0:
        return []

    reported = Counter(r.name for r in succeeded) + Counter(f.file for f in failed)
    unaccounted = []
    for upload in files:
        if reported[upload.name] > 0:
            reported[upload.name] -= 1
            continue
        unaccounted.append(UploadFailure(file=upload.name, reason=NO_RESULT_REASON))
    return unaccounted[:missing]

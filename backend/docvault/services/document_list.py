"""In-memory document list shown by the document screen."""

from __future__ import annotations

from typing import Iterable, Iterator

from docvault.schemas.files import FileRecord


class DocumentList:
    """Copy-on-write list of file records, newest additions first.

    Every mutation swaps in a new tuple; ``snapshot()`` hands out the current
    tuple, which later mutations never touch.
    """

    def __init__(self, records: Iterable[FileRecord] = ()):
        self._records: tuple[FileRecord, ...] = tuple(records)

    def snapshot(self) -> tuple[FileRecord, ...]:
        return self._records

    def get(self, file_id: str) -> FileRecord | None:
        for record in self._records:
            if record.id == file_id:
                return record
        return None

    def prepend(self, records: Iterable[FileRecord]) -> None:
        new = tuple(records)
        new_ids = {r.id for r in new}
        self._records = new + tuple(r for r in self._records if r.id not in new_ids)

    def remove(self, file_id: str) -> FileRecord | None:
        removed = self.get(file_id)
        if removed is not None:
            self._records = tuple(r for r in self._records if r.id != file_id)
        return removed

    def replace(self, record: FileRecord) -> bool:
        if self.get(record.id) is None:
            return False
        self._records = tuple(record if r.id == record.id else r for r in self._records)
        return True

    def remove_folder(self, folder_id: str) -> int:
        kept = tuple(r for r in self._records if r.folder_id != folder_id)
        removed = len(self._records) - len(kept)
        self._records = kept
        return removed

    def reset(self, records: Iterable[FileRecord]) -> None:
        self._records = tuple(records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[FileRecord]:
        return iter(self._records)

"""
store.py - File-backed storage for training records

Each record lives in its own <id>.txt file inside the records directory, in
the text format described in connect4_rag.ai.records. Every write appends the
record id to a change log so the vector index knows which records must be
re-embedded; the change log is only cleared explicitly, after a reindex.

Writes are serialized with a file lock and done atomically through a
temporary file, so a crashed write never leaves a half-written record.
"""

import os
import shutil
import uuid
from typing import Dict, List, Optional

import filelock

from connect4_rag.ai.records import FeedbackLabel, TrainingRecord
from connect4_rag.debug import debug
from connect4_rag.errors import RecordStoreError
from connect4_rag.game import encoder

RECORD_SUFFIX = ".txt"
CHANGE_LOG_FILE = "change_log.txt"
LOCK_TIMEOUT_S = 10


class FileRecordStore:
    """
    Append-or-merge store for TrainingRecords keyed by canonical board text.

    Args:
        data_dir: Directory holding the records directory and the change log
    """

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self.records_dir = os.path.join(data_dir, 'training-data')
        self.change_log_path = os.path.join(data_dir, CHANGE_LOG_FILE)
        self._lock = filelock.FileLock(os.path.join(data_dir, '.records.lock'), timeout=LOCK_TIMEOUT_S)

        try:
            os.makedirs(self.records_dir, exist_ok=True)
        except OSError as e:
            raise RecordStoreError(f"cannot create records directory {self.records_dir}: {e}") from e

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def _path(self, record_id: str) -> str:
        return os.path.join(self.records_dir, record_id + RECORD_SUFFIX)

    def record_ids(self) -> List[str]:
        """Ids of every stored record, sorted for a stable order."""
        try:
            names = os.listdir(self.records_dir)
        except OSError as e:
            raise RecordStoreError(f"cannot list {self.records_dir}: {e}") from e
        return sorted(name[:-len(RECORD_SUFFIX)] for name in names if name.endswith(RECORD_SUFFIX))

    def read(self, record_id: str) -> TrainingRecord:
        """
        Read a single record.

        Raises:
            RecordStoreError: if the file is missing or malformed
        """
        try:
            with open(self._path(record_id), 'r', encoding='utf-8') as f:
                text = f.read()
        except OSError as e:
            raise RecordStoreError(f"cannot read record {record_id}: {e}") from e

        try:
            return TrainingRecord.from_text(record_id, text)
        except ValueError as e:
            raise RecordStoreError(f"malformed record {record_id}: {e}") from e

    def all_records(self) -> List[TrainingRecord]:
        """Read every stored record; unreadable files are logged and skipped."""
        records = []
        for record_id in self.record_ids():
            try:
                records.append(self.read(record_id))
            except RecordStoreError as e:
                debug.error(f"Skipping record: {e}", "store")
        return records

    def find_by_board(self, board: str) -> Optional[TrainingRecord]:
        """Find the record whose canonical board equals the given text."""
        for record in self.all_records():
            if encoder.equal(record.board, board):
                return record
        return None

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def upsert(self, board: str, markers: int, column: int,
               feedback: FeedbackLabel = FeedbackLabel.NORMAL) -> TrainingRecord:
        """
        Record that `column` was chosen on `board`.

        If a record with the same canonical board exists, the column is merged
        into its moves; otherwise a new record with a fresh id is created.

        Returns:
            The record as written
        """
        try:
            with self._lock:
                existing = self.find_by_board(board)
                if existing is None:
                    record = TrainingRecord(
                        id=str(uuid.uuid4()),
                        board=board,
                        markers=markers,
                        moves=(column,),
                        feedback=feedback,
                    )
                    debug.info(f"New record {record.id}: column {column} ({feedback.value})", "store")
                else:
                    record = existing.with_move(column, feedback)
                    debug.info(f"Merged column {column} into record {record.id}: moves={list(record.moves)}", "store")

                self._write(record)
                self._append_change(record.id)
                return record
        except filelock.Timeout as e:
            raise RecordStoreError(f"timed out waiting for record lock: {e}") from e

    def _write(self, record: TrainingRecord) -> None:
        path = self._path(record.id)
        temp_file = f"{path}.tmp"
        try:
            with open(temp_file, 'w', encoding='utf-8') as f:
                f.write(record.to_text())
            # Replace the original file (atomic operation)
            shutil.move(temp_file, path)
        except OSError as e:
            raise RecordStoreError(f"cannot write record {record.id}: {e}") from e

    # ------------------------------------------------------------------
    # Change log
    # ------------------------------------------------------------------

    def _append_change(self, record_id: str) -> None:
        try:
            with open(self.change_log_path, 'a', encoding='utf-8') as f:
                f.write(record_id + "\n")
        except OSError as e:
            raise RecordStoreError(f"cannot update change log: {e}") from e

    def pending_changes(self) -> List[str]:
        """Record ids written since the change log was last cleared (deduplicated, in order)."""
        if not os.path.exists(self.change_log_path):
            return []
        try:
            with open(self.change_log_path, 'r', encoding='utf-8') as f:
                ids = [line.strip() for line in f if line.strip()]
        except OSError as e:
            raise RecordStoreError(f"cannot read change log: {e}") from e
        return list(dict.fromkeys(ids))

    def clear_changelog(self) -> None:
        """Forget pending changes; called after the index has caught up."""
        try:
            with self._lock:
                if os.path.exists(self.change_log_path):
                    os.remove(self.change_log_path)
                    debug.debug("Cleared change log", "store")
        except filelock.Timeout as e:
            raise RecordStoreError(f"timed out waiting for record lock: {e}") from e
        except OSError as e:
            raise RecordStoreError(f"cannot clear change log: {e}") from e

    def summary(self) -> Dict[str, int]:
        """Counts per feedback label, for the CLI."""
        counts = {label.value: 0 for label in FeedbackLabel}
        for record in self.all_records():
            counts[record.feedback.value] += 1
        return counts

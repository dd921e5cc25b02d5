"""
JSON File Storage Implementation

DESIGN DECISION: A single JSON file acts as a small key-value store,
mirroring the browser's local storage: an object mapping keys to the
serialized JSON text of each value. The ledger owns one key.

TRADEOFFS:
- The whole file is rewritten on every save (fine for personal use)
- Writes go to a temporary file first and are swapped in with
  os.replace, so a crash never leaves a half-written file behind
"""

import json
import os
from pathlib import Path
from typing import Optional, Union

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from expense_ledger.config import get_settings
from expense_ledger.models.expense import LedgerState
from expense_ledger.services.storage.interface import (
    LedgerStorageInterface,
    StorageError,
    decode_state,
    encode_state,
)


_logger = structlog.get_logger(__name__)


class JsonFileLedgerStorage(LedgerStorageInterface):
    """
    File-backed key-value slot for the ledger state.

    Other keys in the file are preserved untouched.
    """

    def __init__(
        self,
        path: Union[str, Path, None] = None,
        key: Optional[str] = None,
    ):
        settings = get_settings().ledger
        self._path = Path(path or settings.storage_path)
        self._key = key or settings.state_key

    @property
    def path(self) -> Path:
        return self._path

    def _read_slots(self) -> dict:
        """
        Read every key in the file.

        A missing file is an empty store. A file that is not a JSON
        object is treated as empty too, and will be replaced on save.

        Raises:
            OSError: If the file exists but cannot be read
        """
        if not self._path.exists():
            return {}

        try:
            slots = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            _logger.warning("storage_file_corrupt", path=str(self._path), error=str(e))
            return {}

        if not isinstance(slots, dict):
            _logger.warning("storage_file_not_an_object", path=str(self._path))
            return {}
        return slots

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _write_slots(self, slots: dict) -> None:
        """Write every key atomically."""
        self._path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(
            json.dumps(slots, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        os.replace(tmp_path, self._path)

    def save(self, state: LedgerState) -> None:
        """Overwrite the ledger key with the serialized state."""
        try:
            slots = self._read_slots()
            slots[self._key] = encode_state(state)
            self._write_slots(slots)
        except OSError as e:
            raise StorageError(f"Failed to save ledger state to {self._path}: {e}") from e

    def load(self) -> Optional[LedgerState]:
        """Load the ledger key, None if absent or malformed."""
        try:
            slots = self._read_slots()
        except OSError as e:
            _logger.warning("storage_file_unreadable", path=str(self._path), error=str(e))
            return None

        return decode_state(slots.get(self._key))

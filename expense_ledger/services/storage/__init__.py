"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
The ledger state lives in a JSON file by default; in-memory slots are used
for tests and ephemeral sessions.
"""

from expense_ledger.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
    StorageError,
    decode_state,
    encode_state,
)
from expense_ledger.services.storage.json_file import JsonFileLedgerStorage
from expense_ledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    # Exceptions
    "StorageError",
    # Serialization
    "decode_state",
    "encode_state",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryLedgerStorage",
    "JsonFileLedgerStorage",
]

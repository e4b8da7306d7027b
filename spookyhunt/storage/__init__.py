"""
Storage - The engine's view of its collaborators.

- HuntBackend: durable players, locations and progress records
- KeyValueStore: ephemeral device-local state (identity, cooldowns)
"""

from .kv import KeyValueStore, InMemoryKeyValueStore, JsonFileKeyValueStore
from .backend import (
    HuntBackend,
    InMemoryHuntBackend,
    BackendResult,
    ErrorKind,
    SubmissionReceipt,
    RegistrationReceipt,
    map_submission,
    map_registration,
)

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "HuntBackend",
    "InMemoryHuntBackend",
    "BackendResult",
    "ErrorKind",
    "SubmissionReceipt",
    "RegistrationReceipt",
    "map_submission",
    "map_registration",
]

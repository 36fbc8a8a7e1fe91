"""Durable storage adapters for ledger state."""

from .filesystem import FilesystemStore
from .interface import StateStore
from .memory import MemoryStore
from .sql import SqlStore

__all__ = ["FilesystemStore", "MemoryStore", "SqlStore", "StateStore"]

"""Configuration for hosting the ledger: store backend and its location.

Precedence, highest first:
1. COLLAB_LEDGER__* environment variables (optionally from a .env file)
2. --ledger.* command line arguments
3. Defaults below
"""

from __future__ import annotations

import argparse
import os
from typing import Literal

import bittensor as bt
from dotenv import load_dotenv
from pydantic import BaseModel

from collabledger.ledger.service import ProofOfCollaboration
from collabledger.ledger.store import FilesystemStore, MemoryStore, SqlStore, StateStore

DEFAULT_DATA_DIR = "collabledger/data"
DEFAULT_DB_URL = "sqlite:///collabledger.db"


class LedgerSettings(BaseModel):
    """Resolved host settings."""

    store: Literal["memory", "filesystem", "sql"] = "memory"
    data_dir: str = DEFAULT_DATA_DIR
    db_url: str = DEFAULT_DB_URL
    verify_on_load: bool = True


def add_args(parser: argparse.ArgumentParser) -> None:
    """
    Adds ledger hosting arguments to the parser.
    """

    parser.add_argument(
        "--ledger.store",
        type=str,
        choices=["memory", "filesystem", "sql"],
        help="Where committed ledger state is kept.",
        default="memory",
    )

    parser.add_argument(
        "--ledger.data_dir",
        type=str,
        help="Root directory for the filesystem store.",
        default=DEFAULT_DATA_DIR,
    )

    parser.add_argument(
        "--ledger.db_url",
        type=str,
        help="SQLAlchemy URL for the sql store.",
        default=DEFAULT_DB_URL,
    )

    parser.add_argument(
        "--ledger.skip_verify_on_load",
        action="store_true",
        help="If set, loaded state is not audited before use.",
        default=False,
    )


def config() -> bt.Config:
    """
    Returns the configuration object with ledger and logging arguments.

    bittensor only parses the command line when BT_NO_PARSE_CLI_ARGS=false;
    otherwise the returned config carries no ledger section and
    load_settings falls back to env and defaults.
    """
    parser = argparse.ArgumentParser(description="Proof of Collaboration ledger")
    bt.logging.add_args(parser)
    add_args(parser)
    return bt.Config(parser)


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


def load_settings(args: argparse.Namespace | bt.Config | None = None) -> LedgerSettings:
    """Resolve settings from env, then parsed arguments, then defaults."""
    if os.environ.get("COLLAB_LEDGER_TEST_MODE", "").lower() not in ("true", "1"):
        load_dotenv()

    def from_args(name: str, default):
        if args is None:
            return default
        # argparse keeps dotted dests flat; bt.Config nests them.
        value = getattr(args, f"ledger.{name}", None)
        if value is None:
            section = getattr(args, "ledger", None)
            value = getattr(section, name, None) if section is not None else None
        return default if value is None else value

    verify_on_load = not from_args("skip_verify_on_load", False)
    env_verify = os.environ.get("COLLAB_LEDGER__VERIFY_ON_LOAD")
    if env_verify is not None:
        verify_on_load = _env_flag(env_verify)

    return LedgerSettings(
        store=os.environ.get("COLLAB_LEDGER__STORE", from_args("store", "memory")),
        data_dir=os.environ.get("COLLAB_LEDGER__DATA_DIR", from_args("data_dir", DEFAULT_DATA_DIR)),
        db_url=os.environ.get("COLLAB_LEDGER__DB_URL", from_args("db_url", DEFAULT_DB_URL)),
        verify_on_load=verify_on_load,
    )


def build_store(settings: LedgerSettings) -> StateStore:
    if settings.store == "filesystem":
        return FilesystemStore(data_dir=settings.data_dir)
    if settings.store == "sql":
        return SqlStore(url=settings.db_url)
    return MemoryStore()


def build_ledger(settings: LedgerSettings | None = None) -> ProofOfCollaboration:
    """Wire the configured store into a ready ledger."""
    settings = settings if settings is not None else load_settings()
    bt.logging.info({"ledger_config": {"store": settings.store, "verify_on_load": settings.verify_on_load}})
    return ProofOfCollaboration(
        store=build_store(settings),
        verify_on_load=settings.verify_on_load,
    )


__all__ = [
    "LedgerSettings",
    "add_args",
    "build_ledger",
    "build_store",
    "config",
    "load_settings",
]

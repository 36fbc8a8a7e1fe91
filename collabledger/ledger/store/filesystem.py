"""Filesystem-based StateStore implementation.

Layout under {data_dir}/ledger/:
  state_{hash16}.json.gz  - gzip-compressed snapshot, content addressed
  manifest.json           - plain JSON pointer: schema version, hash, file name

A commit writes the new snapshot file first and then atomically replaces
the manifest, so a crash mid-commit leaves the previous snapshot current.
Superseded snapshot files are pruned after the manifest swap.
"""

from __future__ import annotations

import gzip
import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import bittensor as bt

from collabledger.ledger.determinism import compute_state_hash
from collabledger.ledger.errors import StateIntegrityError
from collabledger.ledger.models import LEDGER_SCHEMA_VERSION, LedgerState


def _atomic_write(path: Path, raw: bytes) -> None:
    """Write bytes via tmp file + rename, creating parent dirs as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(tmp_fd, "wb") as f:
            f.write(raw)
        os.replace(tmp_path, str(path))
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def _write_gzip_json(path: Path, data: Any) -> None:
    raw = json.dumps(data, default=str, sort_keys=True).encode()
    _atomic_write(path, gzip.compress(raw))


def _read_gzip_json(path: Path) -> Any:
    with gzip.open(path, "rb") as f:
        return json.loads(f.read())


def _write_json(path: Path, data: Any) -> None:
    _atomic_write(path, json.dumps(data, default=str, sort_keys=True).encode())


def _read_json(path: Path) -> Any:
    with open(path) as f:
        return json.load(f)


class FilesystemStore:
    """Local filesystem StateStore implementation."""

    def __init__(self, data_dir: str):
        self.base = Path(data_dir) / "ledger"
        self.manifest_path = self.base / "manifest.json"
        self.base.mkdir(parents=True, exist_ok=True)

    def load(self) -> LedgerState | None:
        """Read the snapshot named by the manifest and check its hash."""
        if not self.manifest_path.exists():
            bt.logging.info({"filesystem_store": "no_manifest, starting fresh"})
            return None

        try:
            manifest = _read_json(self.manifest_path)
        except (OSError, ValueError) as e:
            raise StateIntegrityError(f"manifest unreadable: {e}") from e

        schema_version = manifest.get("schema_version")
        if schema_version != LEDGER_SCHEMA_VERSION:
            raise StateIntegrityError(
                f"schema_version mismatch: got {schema_version}, "
                f"expected {LEDGER_SCHEMA_VERSION}"
            )

        state_path = self.base / manifest.get("state_file", "")
        if not state_path.is_file():
            raise StateIntegrityError(f"state file missing: {state_path.name}")

        try:
            state = LedgerState(**_read_gzip_json(state_path))
        except (OSError, ValueError) as e:
            raise StateIntegrityError(f"state unreadable: {e}") from e

        expected = manifest.get("content_hash", "")
        actual = compute_state_hash(state)
        if actual != expected:
            raise StateIntegrityError(
                f"content hash mismatch: expected {expected[:16]}..., got {actual[:16]}..."
            )

        bt.logging.info({"filesystem_store": "state_loaded", "last_contribution_id": state.last_contribution_id})
        return state

    def commit(self, state: LedgerState) -> None:
        content_hash = compute_state_hash(state)
        state_file = f"state_{content_hash[:16]}.json.gz"

        _write_gzip_json(self.base / state_file, state.model_dump(mode="json"))
        _write_json(self.manifest_path, {
            "schema_version": state.schema_version,
            "content_hash": content_hash,
            "state_file": state_file,
            "last_contribution_id": state.last_contribution_id,
            "committed_at": datetime.now(timezone.utc).isoformat(),
        })

        self._prune(keep=state_file)

    def _prune(self, keep: str) -> None:
        """Remove snapshot files the manifest no longer points at."""
        for path in self.base.glob("state_*.json.gz"):
            if path.name != keep:
                path.unlink(missing_ok=True)


__all__ = ["FilesystemStore"]

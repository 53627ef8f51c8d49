# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# store.py

"""
Verification records: one per accepted proof, keyed by the proof fingerprint.

A record is persisted as a canonical CBOR map

    { 0 => bstr fingerprint, 1 => bstr inputs commitment, 2 => tstr vk id }

Stores guarantee that a fingerprint is recorded at most once and that the
check-and-insert is atomic per key.
"""

import logging
import os
import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import cbor2

from zkproof.errors import DuplicateRecord, StorageFailure
from zkproof.files import load_bytes, write_temporary

logger = logging.getLogger(__name__)

_DIGEST_RE = re.compile(r"^[0-9a-f]{64}$")


def _check_digest(value: str, what: str) -> None:
    if not isinstance(value, str) or not _DIGEST_RE.match(value):
        raise ValueError(f"{what} must be 64 lowercase hex characters")


@dataclass(frozen=True)
class VerificationRecord:
    fingerprint: str
    inputs_commitment: str
    vk_id: str

    def __post_init__(self):
        _check_digest(self.fingerprint, "fingerprint")
        _check_digest(self.inputs_commitment, "inputs commitment")
        if not self.vk_id:
            raise ValueError("vk_id must not be empty")

    def to_payload(self) -> bytes:
        """Canonical CBOR encoding of the record."""
        m = {
            0: bytes.fromhex(self.fingerprint),
            1: bytes.fromhex(self.inputs_commitment),
            2: self.vk_id,
        }
        return cbor2.dumps(m, canonical=True)

    @classmethod
    def from_payload(cls, data: bytes) -> "VerificationRecord":
        """
        Parse a CBOR encoded record.

        Raises:
            ValueError: If the CBOR structure does not match the record schema.
        """
        m = cbor2.loads(data)
        if not isinstance(m, dict):
            raise ValueError(f"Expected CBOR map, got {type(m).__name__}")
        if set(m) != {0, 1, 2}:
            raise ValueError(f"Expected keys 0, 1, 2, got {sorted(m, key=str)}")
        if not isinstance(m[0], bytes) or not isinstance(m[1], bytes):
            raise ValueError("fingerprint and commitment must be byte strings")
        if not isinstance(m[2], str):
            raise ValueError("vk id must be a text string")
        return cls(fingerprint=m[0].hex(), inputs_commitment=m[1].hex(), vk_id=m[2])


class RecordStore(ABC):
    @abstractmethod
    def record(self, rec: VerificationRecord) -> VerificationRecord:
        """
        Insert a record.

        Raises:
            DuplicateRecord: If the fingerprint is already recorded.
            StorageFailure: If the write did not complete; nothing was stored.
        """

    @abstractmethod
    def get(self, fingerprint: str) -> VerificationRecord | None: ...

    @abstractmethod
    def records(self) -> Iterator[VerificationRecord]: ...

    @abstractmethod
    def prune(self, fingerprint: str) -> bool:
        """Delete a record; host-level housekeeping only. Returns whether it existed."""

    def exists(self, fingerprint: str) -> bool:
        return self.get(fingerprint) is not None

    def __len__(self) -> int:
        return sum(1 for _ in self.records())


class MemoryRecordStore(RecordStore):
    """In-process store; a lock makes check-and-insert atomic."""

    def __init__(self):
        self._records: dict[str, VerificationRecord] = {}
        self._lock = threading.Lock()

    def record(self, rec: VerificationRecord) -> VerificationRecord:
        with self._lock:
            if rec.fingerprint in self._records:
                raise DuplicateRecord(rec.fingerprint)
            self._records[rec.fingerprint] = rec
        return rec

    def get(self, fingerprint: str) -> VerificationRecord | None:
        with self._lock:
            return self._records.get(fingerprint)

    def records(self) -> Iterator[VerificationRecord]:
        with self._lock:
            snapshot = list(self._records.values())
        return iter(snapshot)

    def prune(self, fingerprint: str) -> bool:
        with self._lock:
            return self._records.pop(fingerprint, None) is not None


class FileRecordStore(RecordStore):
    """
    One file per record under a directory, named `<fingerprint>.cbor`.

    A record is first written and synced under a temporary name, then
    published with `os.link`, which fails if the target already exists. The
    link is atomic, so concurrent writers of the same fingerprint (threads or
    processes) resolve to exactly one record and readers never observe a
    partial file.
    """

    SUFFIX = ".cbor"

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, fingerprint: str) -> Path:
        return self.root / f"{fingerprint}{self.SUFFIX}"

    def record(self, rec: VerificationRecord) -> VerificationRecord:
        target = self._path(rec.fingerprint)
        try:
            tmp = write_temporary(self.root, rec.to_payload())
        except OSError as e:
            raise StorageFailure(f"could not write record {rec.fingerprint}: {e}") from e

        try:
            os.link(tmp, target)
        except FileExistsError:
            raise DuplicateRecord(rec.fingerprint) from None
        except OSError as e:
            raise StorageFailure(f"could not publish record {rec.fingerprint}: {e}") from e
        finally:
            tmp.unlink(missing_ok=True)

        logger.debug(f"record {rec.fingerprint} written to {target}")
        return rec

    def get(self, fingerprint: str) -> VerificationRecord | None:
        # anything else cannot name a record file
        if not _DIGEST_RE.match(fingerprint):
            return None
        path = self._path(fingerprint)
        try:
            data = load_bytes(path)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageFailure(f"could not read record {fingerprint}: {e}") from e
        try:
            return VerificationRecord.from_payload(data)
        except (ValueError, cbor2.CBORDecodeError) as e:
            raise StorageFailure(f"corrupt record {fingerprint}: {e}") from e

    def records(self) -> Iterator[VerificationRecord]:
        for path in sorted(self.root.glob(f"*{self.SUFFIX}")):
            rec = self.get(path.name[: -len(self.SUFFIX)])
            if rec is not None:
                yield rec

    def prune(self, fingerprint: str) -> bool:
        if not _DIGEST_RE.match(fingerprint):
            return False
        try:
            self._path(fingerprint).unlink()
        except FileNotFoundError:
            return False
        return True

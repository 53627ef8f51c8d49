# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# errors.py

"""
Error taxonomy for proof verification.

Exceptions are raised by the codec and the record store; the submission
handler turns them into tagged outcomes using `Reason`.
"""

from enum import Enum


class Reason(str, Enum):
    """Why a submission was not accepted."""

    DECODE_ERROR = "DecodeError"
    INPUT_LENGTH_MISMATCH = "InputLengthMismatch"
    PAIRING_CHECK_FAILED = "PairingCheckFailed"
    DUPLICATE = "Duplicate"
    STORAGE_FAILURE = "StorageFailure"

    @property
    def retryable(self) -> bool:
        # only an incomplete write may succeed on a second attempt
        return self is Reason.STORAGE_FAILURE


class ZkProofError(Exception):
    """Base class for every error raised by this package."""


class DecodeError(ZkProofError, ValueError):
    """Malformed, truncated, non-canonical or off-curve input bytes."""


class DuplicateRecord(ZkProofError):
    """A record with the same fingerprint is already stored."""

    def __init__(self, fingerprint: str):
        super().__init__(f"fingerprint already recorded: {fingerprint}")
        self.fingerprint = fingerprint


class StorageFailure(ZkProofError):
    """The record store could not complete a write; nothing was persisted."""


class UnknownKey(ZkProofError, KeyError):
    """No verifying key is registered under the requested identifier."""

    def __str__(self) -> str:
        return f"unknown verifying key: {self.args[0]}"

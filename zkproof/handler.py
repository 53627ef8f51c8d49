# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# handler.py

"""
Submission handler: the boundary between a host and the verifier.

A submission is three byte strings (verifying key, proof, public inputs).
The handler decodes them, evaluates the pairing equation and records the
accepted proof, turning every failure into a tagged `VerificationOutcome`.
Nothing is written to the record store unless the proof is accepted.
"""

import logging
import threading
from dataclasses import dataclass

from zkproof.bls12381 import PairingEngine
from zkproof.codec import (
    decode_proof,
    decode_public_inputs,
    decode_verifying_key,
    encode_proof,
    encode_public_inputs,
    encode_verifying_key,
)
from zkproof.config import DuplicatePolicy, Settings
from zkproof.errors import DecodeError, DuplicateRecord, Reason, StorageFailure, UnknownKey
from zkproof.groth16 import (
    PreparedVerifyingKey,
    VerifyingKey,
    prepare_verifying_key,
    verify,
    verify_prepared,
)
from zkproof.hashing import fingerprint, inputs_commitment, key_identifier
from zkproof.store import MemoryRecordStore, RecordStore, VerificationRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationOutcome:
    accepted: bool
    reason: Reason | None = None
    detail: str = ""
    record: VerificationRecord | None = None
    already_recorded: bool = False

    @property
    def status(self) -> str:
        return "Accepted" if self.accepted else self.reason.value

    @property
    def retryable(self) -> bool:
        return self.reason is not None and self.reason.retryable

    def __bool__(self) -> bool:
        return self.accepted


class SubmissionHandler:
    """
    Drive decode -> verify -> record for proof submissions.

    Args:
        store: Where accepted proofs are recorded. In-memory by default.
        settings: Encoding, safety and replay settings.
        engine: Curve arithmetic backend passed through to the verifier.
    """

    def __init__(
        self,
        store: RecordStore | None = None,
        settings: Settings | None = None,
        engine: PairingEngine | None = None,
    ):
        self.store = store if store is not None else MemoryRecordStore()
        self.settings = settings or Settings()
        self.engine = engine
        self._keys: dict[str, PreparedVerifyingKey] = {}
        self._keys_lock = threading.Lock()

    # queries

    def exists(self, fingerprint_hex: str) -> bool:
        return self.store.exists(fingerprint_hex)

    # key registry

    def _decode_vk(self, vk_bytes: bytes) -> VerifyingKey:
        return decode_verifying_key(
            vk_bytes,
            compressed=self.settings.compressed,
            subgroup_check=self.settings.subgroup_checks,
            max_public_inputs=self.settings.max_public_inputs,
        )

    def register_key(self, vk_bytes: bytes, vk_id: str | None = None) -> str:
        """
        Decode, prepare and register a verifying key under a stable identifier.

        Args:
            vk_bytes: The encoded verifying key.
            vk_id: Identifier chosen by the host. Defaults to the hash of the
                key's canonical compressed encoding.

        Returns:
            The identifier the key is registered under.

        Raises:
            DecodeError: If `vk_bytes` is not a valid verifying key.
            ValueError: If `vk_id` is already bound to a different key.
        """
        vk = self._decode_vk(vk_bytes)
        canonical = encode_verifying_key(vk)
        vk_id = vk_id or key_identifier(canonical)

        with self._keys_lock:
            current = self._keys.get(vk_id)
            if current is not None:
                if encode_verifying_key(current.vk) != canonical:
                    raise ValueError(f"verifying key id {vk_id} is bound to another key")
                return vk_id

        prepared = prepare_verifying_key(vk, self.engine)
        with self._keys_lock:
            current = self._keys.setdefault(vk_id, prepared)
        if current is not prepared:
            if encode_verifying_key(current.vk) != canonical:
                raise ValueError(f"verifying key id {vk_id} is bound to another key")
            return vk_id
        logger.info(f"registered verifying key {vk_id} ({vk.n_public} public inputs)")
        return vk_id

    def key(self, vk_id: str) -> VerifyingKey:
        with self._keys_lock:
            prepared = self._keys.get(vk_id)
        if prepared is None:
            raise UnknownKey(vk_id)
        return prepared.vk

    # submissions

    def submit(
        self,
        vk_bytes: bytes,
        proof_bytes: bytes,
        public_input_bytes: bytes,
        vk_id: str | None = None,
    ) -> VerificationOutcome:
        """
        Verify a proof against a verifying key given inline.

        Args:
            vk_bytes: The encoded verifying key.
            proof_bytes: The encoded proof.
            public_input_bytes: The encoded public inputs.
            vk_id: Identifier to record; defaults to the key's hash. An id
                already bound with `register_key` must name the same key.

        Returns:
            The tagged outcome. Only an accepted outcome carries a new record.
        """
        oversize = self._check_size(vk_bytes, proof_bytes, public_input_bytes)
        if oversize is not None:
            return oversize

        try:
            vk = self._decode_vk(vk_bytes)
        except DecodeError as e:
            return self._reject(Reason.DECODE_ERROR, f"verifying key: {e}")

        canonical = encode_verifying_key(vk)
        vk_id = vk_id or key_identifier(canonical)

        # an id bound with `register_key` names exactly one key
        with self._keys_lock:
            prepared = self._keys.get(vk_id)
        if prepared is not None and encode_verifying_key(prepared.vk) != canonical:
            return self._reject(
                Reason.DECODE_ERROR, f"verifying key id {vk_id} is bound to another key"
            )

        return self._process(vk, prepared, vk_id, proof_bytes, public_input_bytes)

    def submit_with_key(
        self, vk_id: str, proof_bytes: bytes, public_input_bytes: bytes
    ) -> VerificationOutcome:
        """Verify a proof against a key previously bound with `register_key`."""
        oversize = self._check_size(proof_bytes, public_input_bytes)
        if oversize is not None:
            return oversize

        with self._keys_lock:
            prepared = self._keys.get(vk_id)
        if prepared is None:
            return self._reject(Reason.DECODE_ERROR, str(UnknownKey(vk_id)))

        return self._process(prepared.vk, prepared, vk_id, proof_bytes, public_input_bytes)

    def _check_size(self, *parts: bytes) -> VerificationOutcome | None:
        size = sum(len(p) for p in parts)
        if size > self.settings.max_submission_bytes:
            return self._reject(
                Reason.DECODE_ERROR,
                f"submission of {size} bytes exceeds {self.settings.max_submission_bytes}",
            )
        return None

    def _process(
        self,
        vk: VerifyingKey,
        prepared: PreparedVerifyingKey | None,
        vk_id: str,
        proof_bytes: bytes,
        public_input_bytes: bytes,
    ) -> VerificationOutcome:
        try:
            proof = decode_proof(
                proof_bytes,
                compressed=self.settings.compressed,
                subgroup_check=self.settings.subgroup_checks,
            )
        except DecodeError as e:
            return self._reject(Reason.DECODE_ERROR, f"proof: {e}")

        try:
            inputs = decode_public_inputs(public_input_bytes)
        except DecodeError as e:
            return self._reject(Reason.DECODE_ERROR, f"public inputs: {e}")

        if len(inputs) != vk.n_public:
            return self._reject(
                Reason.INPUT_LENGTH_MISMATCH,
                f"got {len(inputs)} public inputs, key expects {vk.n_public}",
            )

        rec = VerificationRecord(
            fingerprint=fingerprint(encode_proof(proof)),
            inputs_commitment=inputs_commitment(encode_public_inputs(inputs)),
            vk_id=vk_id,
        )

        # replays that can only be rejected are answered before any pairing
        try:
            existing = self.store.get(rec.fingerprint)
        except StorageFailure as e:
            return self._reject(Reason.STORAGE_FAILURE, str(e))
        if existing is not None and not self._replays(rec, existing):
            return self._duplicate(rec, existing)

        if prepared is None:
            verdict = verify(vk, proof, inputs, self.engine)
        else:
            verdict = verify_prepared(prepared, proof, inputs, self.engine)
        if not verdict:
            return self._reject(verdict.reason, verdict.detail)

        if existing is not None:
            return self._duplicate(rec, existing)

        try:
            self.store.record(rec)
        except DuplicateRecord:
            # lost a race against a concurrent submission of the same proof
            try:
                existing = self.store.get(rec.fingerprint)
            except StorageFailure as e:
                return self._reject(Reason.STORAGE_FAILURE, str(e))
            return self._duplicate(rec, existing or rec)
        except StorageFailure as e:
            logger.error(f"record write failed for {rec.fingerprint}: {e}")
            return VerificationOutcome(
                accepted=False, reason=Reason.STORAGE_FAILURE, detail=str(e)
            )

        logger.info(f"accepted proof {rec.fingerprint} under key {vk_id}")
        return VerificationOutcome(accepted=True, record=rec)

    def _replays(self, rec: VerificationRecord, existing: VerificationRecord) -> bool:
        """Whether `existing` is the very same statement and replays are idempotent."""
        return self.settings.duplicate_policy is DuplicatePolicy.IDEMPOTENT and existing == rec

    def _duplicate(
        self, rec: VerificationRecord, existing: VerificationRecord
    ) -> VerificationOutcome:
        # only reached after `rec` verified when `_replays` holds
        if self._replays(rec, existing):
            logger.info(f"proof {rec.fingerprint} already recorded")
            return VerificationOutcome(accepted=True, record=existing, already_recorded=True)
        return self._reject(Reason.DUPLICATE, f"fingerprint {rec.fingerprint} already recorded")

    def _reject(self, reason: Reason, detail: str) -> VerificationOutcome:
        logger.warning(f"submission rejected: {reason.value}: {detail}")
        return VerificationOutcome(accepted=False, reason=reason, detail=detail)

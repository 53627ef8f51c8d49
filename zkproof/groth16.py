# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# groth16.py

"""
Groth16 verification over BLS12-381.

A proof (A, B, C) is valid for public inputs x_1..x_n under the verifying
key (alpha, beta, gamma, delta, IC) iff

    e(A, B) * e(-IC_acc, gamma) * e(-C, delta) == e(alpha, beta)

where IC_acc = IC_0 + x_1 * IC_1 + ... + x_n * IC_n. The three left-hand
pairings are computed as Miller loops and share one final exponentiation;
the right-hand side is a constant of the verifying key and can be cached
with `prepare_verifying_key`.
"""

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from zkproof.bls12381 import G1Point, G2Point, PairingEngine, PyEccEngine
from zkproof.constants import SCALAR_MODULUS
from zkproof.errors import DecodeError, Reason

logger = logging.getLogger(__name__)

DEFAULT_ENGINE = PyEccEngine()


@dataclass(frozen=True)
class Proof:
    a: G1Point
    b: G2Point
    c: G1Point


@dataclass(frozen=True)
class VerifyingKey:
    alpha_g1: G1Point
    beta_g2: G2Point
    gamma_g2: G2Point
    delta_g2: G2Point
    ic: tuple

    def __post_init__(self):
        if len(self.ic) < 1:
            raise ValueError("verifying key needs at least the constant IC point")

    @property
    def n_public(self) -> int:
        return len(self.ic) - 1


@dataclass(frozen=True)
class PreparedVerifyingKey:
    vk: VerifyingKey
    alpha_beta: Any


@dataclass(frozen=True)
class Verdict:
    """Result of a pairing-equation evaluation: accepted, or rejected with a reason."""

    accepted: bool
    reason: Reason | None = None
    detail: str = ""

    def __bool__(self) -> bool:
        return self.accepted


ACCEPTED = Verdict(accepted=True)


def rejected(reason: Reason, detail: str = "") -> Verdict:
    return Verdict(accepted=False, reason=reason, detail=detail)


def prepare_verifying_key(
    vk: VerifyingKey, engine: PairingEngine | None = None
) -> PreparedVerifyingKey:
    """
    Precompute the target group constant e(alpha, beta) of a verifying key.

    Args:
        vk: The verifying key.
        engine: Curve arithmetic backend, py_ecc by default.

    Returns:
        A `PreparedVerifyingKey` reusable across any number of verifications.
    """
    engine = engine or DEFAULT_ENGINE
    alpha_beta = engine.final_exponentiate(engine.miller_loop(vk.alpha_g1, vk.beta_g2))
    return PreparedVerifyingKey(vk=vk, alpha_beta=alpha_beta)


def _precheck(
    vk: VerifyingKey, proof: Proof, public_inputs: Sequence[int], engine: PairingEngine
) -> Verdict | None:
    # the count check must run before any curve arithmetic
    if len(public_inputs) != vk.n_public:
        return rejected(
            Reason.INPUT_LENGTH_MISMATCH,
            f"got {len(public_inputs)} public inputs, key expects {vk.n_public}",
        )

    for i, x in enumerate(public_inputs):
        if not 0 <= x < SCALAR_MODULUS:
            raise DecodeError(f"public input {i} is not a canonical scalar")

    for name, point in (("A", proof.a), ("B", proof.b), ("C", proof.c)):
        if engine.is_identity(point):
            return rejected(Reason.PAIRING_CHECK_FAILED, f"proof element {name} is the identity")

    return None


def _pairing_check(
    prepared: PreparedVerifyingKey,
    proof: Proof,
    public_inputs: Sequence[int],
    engine: PairingEngine,
) -> Verdict:
    vk = prepared.vk

    ic_acc = vk.ic[0]
    for x, point in zip(public_inputs, vk.ic[1:]):
        ic_acc = engine.add(ic_acc, engine.multiply(point, x))

    product = engine.miller_loop(proof.a, proof.b)
    product *= engine.miller_loop(engine.neg(ic_acc), vk.gamma_g2)
    product *= engine.miller_loop(engine.neg(proof.c), vk.delta_g2)

    if engine.final_exponentiate(product) == prepared.alpha_beta:
        return ACCEPTED

    logger.debug("pairing equation does not hold")
    return rejected(Reason.PAIRING_CHECK_FAILED, "pairing equation does not hold")


def verify_prepared(
    prepared: PreparedVerifyingKey,
    proof: Proof,
    public_inputs: Sequence[int],
    engine: PairingEngine | None = None,
) -> Verdict:
    """Same as `verify`, reusing the cached e(alpha, beta) of a prepared key."""
    engine = engine or DEFAULT_ENGINE
    verdict = _precheck(prepared.vk, proof, public_inputs, engine)
    if verdict is not None:
        return verdict
    return _pairing_check(prepared, proof, public_inputs, engine)


def verify(
    vk: VerifyingKey,
    proof: Proof,
    public_inputs: Sequence[int],
    engine: PairingEngine | None = None,
) -> Verdict:
    """
    Evaluate the Groth16 pairing equation.

    Args:
        vk: The verifying key.
        proof: The proof (A, B, C).
        public_inputs: Scalars in [0, r), one per IC point after the first.
        engine: Curve arithmetic backend, py_ecc by default.

    Returns:
        `ACCEPTED`, or a rejected `Verdict` with reason
        `INPUT_LENGTH_MISMATCH` or `PAIRING_CHECK_FAILED`.

    Raises:
        DecodeError: If a public input is outside the scalar field.
    """
    engine = engine or DEFAULT_ENGINE
    verdict = _precheck(vk, proof, public_inputs, engine)
    if verdict is not None:
        return verdict
    return _pairing_check(prepare_verifying_key(vk, engine), proof, public_inputs, engine)


def verify_proof(vk: VerifyingKey, proof: Proof, public_inputs: Sequence[int]) -> bool:
    return verify(vk, proof, public_inputs).accepted

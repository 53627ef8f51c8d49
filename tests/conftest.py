# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# tests/conftest.py

"""
Test fixtures: a toy trusted setup and prover for the one-constraint circuit

    w * w = out        (out public, w private)

and a trapdoor simulator for keys with several public inputs. Both exist
only to produce valid (vk, proof, inputs) triples for the verifier tests.

With a single constraint the QAP polynomials are constants: u_w = v_w = 1,
w_out = 1, everything else 0, and h(X) = 0 for a satisfying witness. The
Groth16 setup and proof then reduce to

    IC_0 = 0,  IC_1 = [1/gamma]G1
    A = [alpha + w + r*delta]G1
    B = [beta + w + s*delta]G2
    C = [w*(alpha + beta)/delta + s*a + r*b - r*s*delta]G1
"""

from dataclasses import dataclass

import pytest
from py_ecc.fields import optimized_bls12_381_FQ as FQ
from py_ecc.optimized_bls12_381 import G1, G2, Z1, curve_order, field_modulus, multiply

from zkproof.codec import encode_proof, encode_public_inputs, encode_verifying_key
from zkproof.groth16 import Proof, VerifyingKey

R = curve_order


def inv(x: int) -> int:
    return pow(x, -1, R)


def g1(scalar: int):
    return multiply(G1, scalar % R)


def g2(scalar: int):
    return multiply(G2, scalar % R)


@dataclass(frozen=True)
class Toxic:
    alpha: int = 11
    beta: int = 13
    gamma: int = 17
    delta: int = 19


def square_circuit_key(t: Toxic) -> VerifyingKey:
    return VerifyingKey(
        alpha_g1=g1(t.alpha),
        beta_g2=g2(t.beta),
        gamma_g2=g2(t.gamma),
        delta_g2=g2(t.delta),
        ic=(Z1, g1(inv(t.gamma))),
    )


def prove_square(t: Toxic, w: int, r: int = 5, s: int = 7) -> Proof:
    a = (t.alpha + w + r * t.delta) % R
    b = (t.beta + w + s * t.delta) % R
    c = (w * (t.alpha + t.beta) * inv(t.delta) + s * a + r * b - r * s * t.delta) % R
    return Proof(a=g1(a), b=g2(b), c=g1(c))


def simulated_key(t: Toxic, ic_scalars: list[int]) -> VerifyingKey:
    return VerifyingKey(
        alpha_g1=g1(t.alpha),
        beta_g2=g2(t.beta),
        gamma_g2=g2(t.gamma),
        delta_g2=g2(t.delta),
        ic=tuple(g1(k) for k in ic_scalars),
    )


def simulate_proof(t: Toxic, ic_scalars: list[int], inputs: list[int], a: int = 23, b: int = 29) -> Proof:
    """Proof for any statement, built from the trapdoor."""
    acc = ic_scalars[0] + sum(x * k for x, k in zip(inputs, ic_scalars[1:]))
    c = (a * b - t.alpha * t.beta - acc * t.gamma) * inv(t.delta) % R
    return Proof(a=g1(a), b=g2(b), c=g1(c))


@dataclass(frozen=True)
class Fixture:
    vk: VerifyingKey
    proof: Proof
    inputs: tuple

    @property
    def vk_bytes(self) -> bytes:
        return encode_verifying_key(self.vk)

    @property
    def proof_bytes(self) -> bytes:
        return encode_proof(self.proof)

    @property
    def input_bytes(self) -> bytes:
        return encode_public_inputs(self.inputs)


@pytest.fixture(scope="session")
def toxic() -> Toxic:
    return Toxic()


@pytest.fixture(scope="session")
def square(toxic) -> Fixture:
    """Proof that the prover knows w = 3 with w * w = 9."""
    return Fixture(vk=square_circuit_key(toxic), proof=prove_square(toxic, 3), inputs=(9,))


@pytest.fixture(scope="session")
def resquare() -> Fixture:
    """The square circuit under an independent setup: same arity, different key."""
    t = Toxic(alpha=23, beta=29, gamma=31, delta=37)
    return Fixture(vk=square_circuit_key(t), proof=prove_square(t, 3), inputs=(9,))


@pytest.fixture(scope="session")
def wide(toxic) -> Fixture:
    """Simulated proof for a key with three public inputs."""
    ic_scalars = [101, 103, 107, 109]
    inputs = [1, 2**200 + 7, R - 1]
    return Fixture(
        vk=simulated_key(toxic, ic_scalars),
        proof=simulate_proof(toxic, ic_scalars, inputs),
        inputs=tuple(inputs),
    )


def _sqrt_candidates():
    """(x, y) on y^2 = x^3 + 4 for small x; p = 3 mod 4 so y = rhs^((p+1)/4)."""
    p = field_modulus
    for x in range(1, 1000):
        rhs = (x**3 + 4) % p
        if pow(rhs, (p - 1) // 2, p) == 1:
            yield x, pow(rhs, (p + 1) // 4, p)


@pytest.fixture(scope="session")
def g1_outside_subgroup():
    """A point on the G1 curve that is not in the prime-order subgroup."""
    x, y = next(_sqrt_candidates())
    return (FQ(x), FQ(y), FQ.one())


@pytest.fixture(scope="session")
def non_residue_x() -> int:
    """An x coordinate with no point on the G1 curve."""
    p = field_modulus
    return next(x for x in range(1, 1000) if pow((x**3 + 4) % p, (p - 1) // 2, p) != 1)


@pytest.fixture(scope="session")
def prove(toxic):
    """Honest prover for the square circuit: prove(w, r=5, s=7)."""

    def _prove(w: int, r: int = 5, s: int = 7) -> Proof:
        return prove_square(toxic, w, r, s)

    return _prove

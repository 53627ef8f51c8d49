# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
from typing import Any, Protocol

from py_ecc.fields import optimized_bls12_381_FQ12 as FQ12
from py_ecc.optimized_bls12_381 import (
    Z1,
    Z2,
    add,
    b,
    b2,
    curve_order,
    final_exponentiate,
    is_inf,
    is_on_curve,
    multiply,
    neg,
    pairing,
)


# py_ecc points are opaque projective tuples
G1Point = Any
G2Point = Any


def on_curve_g1(point: G1Point) -> bool:
    """
    Checks that a point satisfies the G1 curve equation y^2 = x^3 + 4.

    Args:
        point (G1Point): A projective G1 point.

    Returns:
        bool: True if the point is on the curve (the identity always is).
    """
    return is_on_curve(point, b)


def on_curve_g2(point: G2Point) -> bool:
    """
    Checks that a point satisfies the twisted G2 curve equation y^2 = x^3 + 4(u + 1).

    Args:
        point (G2Point): A projective G2 point.

    Returns:
        bool: True if the point is on the curve (the identity always is).
    """
    return is_on_curve(point, b2)


def in_subgroup(point: G1Point | G2Point) -> bool:
    """
    Check membership of the prime-order subgroup.

    A point P is in the subgroup iff [r]P is the identity, where r is the
    curve order. Works for both G1 and G2 points.
    """
    return is_inf(multiply(point, curve_order))


class PairingEngine(Protocol):
    """
    The curve arithmetic the Groth16 verifier depends on.

    Values returned by `miller_loop` and `final_exponentiate` must support
    `*` and `==` as target group multiplication and exact equality.
    """

    def add(self, left: G1Point, right: G1Point) -> G1Point: ...

    def multiply(self, point: G1Point, scalar: int) -> G1Point: ...

    def neg(self, point: G1Point) -> G1Point: ...

    def is_identity(self, point: G1Point | G2Point) -> bool: ...

    def miller_loop(self, g1_element: G1Point, g2_element: G2Point) -> Any: ...

    def final_exponentiate(self, value: Any) -> Any: ...


class PyEccEngine:
    """`PairingEngine` backed by `py_ecc.optimized_bls12_381`."""

    def add(self, left: G1Point, right: G1Point) -> G1Point:
        return add(left, right)

    def multiply(self, point: G1Point, scalar: int) -> G1Point:
        return multiply(point, scalar)

    def neg(self, point: G1Point) -> G1Point:
        return neg(point)

    def is_identity(self, point: G1Point | G2Point) -> bool:
        return is_inf(point)

    def miller_loop(self, g1_element: G1Point, g2_element: G2Point) -> FQ12:
        # py_ecc takes the G2 argument first
        return pairing(g2_element, g1_element, final_exponentiate=False)

    def final_exponentiate(self, value: FQ12) -> FQ12:
        return final_exponentiate(value)


# identity elements
g1_identity = Z1
g2_identity = Z2

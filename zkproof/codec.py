# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# codec.py

"""
Canonical byte encoding of BLS12-381 field elements, points, proofs and
verifying keys.

Points follow the ZCash serialization used by py_ecc: the three most
significant bits of the first byte carry the compression, infinity and
sign flags, coordinates are 48-byte big-endian integers, and Fq2 elements
are written imaginary part first.

    G1 compressed      48 bytes    x
    G2 compressed      96 bytes    x.c1 || x.c0
    G1 uncompressed    96 bytes    x || y
    G2 uncompressed   192 bytes    x.c1 || x.c0 || y.c1 || y.c0

Aggregate layouts:

    proof           A(G1) || B(G2) || C(G1)
    verifying key   alpha(G1) || beta(G2) || gamma(G2) || delta(G2)
                    || n (8-byte big-endian) || IC_0 .. IC_{n-1} (G1)
    public inputs   x_1 || ... || x_k, each a 32-byte big-endian scalar

Every decoder consumes an exact number of bytes and raises `DecodeError`
for anything else. Values are never reduced: a coordinate >= p or a
scalar >= r is an error.
"""

from typing import Sequence, cast

from eth_typing import BLSPubkey, BLSSignature
from py_ecc.bls.g2_primitives import (
    G1_to_pubkey,
    G2_to_signature,
    pubkey_to_G1,
    signature_to_G2,
)
from py_ecc.fields import optimized_bls12_381_FQ as FQ
from py_ecc.fields import optimized_bls12_381_FQ2 as FQ2
from py_ecc.optimized_bls12_381 import is_inf, normalize

from zkproof.bls12381 import (
    G1Point,
    G2Point,
    g1_identity,
    g2_identity,
    in_subgroup,
    on_curve_g1,
    on_curve_g2,
)
from zkproof.constants import (
    BASE_FIELD_SIZE,
    BASE_MODULUS,
    COMPRESSION_FLAG,
    FLAG_MASK,
    G1_COMPRESSED_SIZE,
    G1_UNCOMPRESSED_SIZE,
    G2_COMPRESSED_SIZE,
    G2_UNCOMPRESSED_SIZE,
    IC_COUNT_SIZE,
    INFINITY_FLAG,
    SCALAR_MODULUS,
    SCALAR_SIZE,
    SIGN_FLAG,
)
from zkproof.errors import DecodeError
from zkproof.groth16 import Proof, VerifyingKey


def g1_size(compressed: bool = True) -> int:
    return G1_COMPRESSED_SIZE if compressed else G1_UNCOMPRESSED_SIZE


def g2_size(compressed: bool = True) -> int:
    return G2_COMPRESSED_SIZE if compressed else G2_UNCOMPRESSED_SIZE


def proof_size(compressed: bool = True) -> int:
    return 2 * g1_size(compressed) + g2_size(compressed)


def _expect_length(data: bytes, size: int, what: str) -> None:
    if len(data) != size:
        raise DecodeError(f"{what} must be {size} bytes, got {len(data)}")


# scalars and base field elements


def decode_scalar(data: bytes) -> int:
    """
    Decode a 32-byte big-endian scalar field element.

    Raises:
        DecodeError: On a wrong length or a value >= r.
    """
    _expect_length(data, SCALAR_SIZE, "scalar")
    value = int.from_bytes(data, "big")
    if value >= SCALAR_MODULUS:
        raise DecodeError("non-canonical scalar: value is not below the curve order")
    return value


def encode_scalar(value: int) -> bytes:
    if not 0 <= value < SCALAR_MODULUS:
        raise DecodeError("scalar out of range")
    return value.to_bytes(SCALAR_SIZE, "big")


def decode_base_field(data: bytes) -> int:
    """
    Decode a 48-byte big-endian base field element.

    Raises:
        DecodeError: On a wrong length or a value >= p.
    """
    _expect_length(data, BASE_FIELD_SIZE, "base field element")
    value = int.from_bytes(data, "big")
    if value >= BASE_MODULUS:
        raise DecodeError("non-canonical residue: value is not below the field modulus")
    return value


def encode_base_field(value: int) -> bytes:
    if not 0 <= value < BASE_MODULUS:
        raise DecodeError("base field element out of range")
    return value.to_bytes(BASE_FIELD_SIZE, "big")


# points


def _split_flags(data: bytes) -> tuple[int, bytes]:
    """Return the flag bits of the first byte and the data with those bits cleared."""
    flags = data[0] & FLAG_MASK
    return flags, bytes([data[0] & ~FLAG_MASK & 0xFF]) + data[1:]


def _check_flags(flags: int, payload: bytes, compressed: bool) -> bool:
    """
    Validate the flag bits and return whether the encoding is the identity.
    """
    if bool(flags & COMPRESSION_FLAG) != compressed:
        raise DecodeError(
            "expected a compressed point encoding"
            if compressed
            else "expected an uncompressed point encoding"
        )
    if flags & INFINITY_FLAG:
        if flags & SIGN_FLAG or any(payload):
            raise DecodeError("non-canonical encoding of the point at infinity")
        return True
    if not compressed and flags & SIGN_FLAG:
        raise DecodeError("sign flag set on an uncompressed point")
    return False


def _finish(point, on_curve, subgroup_check: bool, group: str):
    if not on_curve(point):
        raise DecodeError(f"point is not on the {group} curve")
    if subgroup_check and not in_subgroup(point):
        raise DecodeError(f"point is not in the {group} prime-order subgroup")
    return point


def decode_g1(data: bytes, compressed: bool = True, subgroup_check: bool = True) -> G1Point:
    """
    Decode a G1 point.

    Args:
        data: The encoded point.
        compressed: Whether `data` uses the 48-byte compressed form.
        subgroup_check: Reject points outside the prime-order subgroup.
            Only disable this for input of trusted provenance.

    Returns:
        A py_ecc projective G1 point.

    Raises:
        DecodeError: If the bytes are not a canonical encoding of a valid point.
    """
    _expect_length(data, g1_size(compressed), "G1 point")
    flags, payload = _split_flags(data)
    if _check_flags(flags, payload, compressed):
        return g1_identity

    if compressed:
        decode_base_field(payload)
        try:
            point = pubkey_to_G1(cast(BLSPubkey, data))
        except ValueError as e:
            raise DecodeError(f"invalid G1 point: {e}") from e
    else:
        x = decode_base_field(payload[:BASE_FIELD_SIZE])
        y = decode_base_field(payload[BASE_FIELD_SIZE:])
        point = (FQ(x), FQ(y), FQ.one())

    return _finish(point, on_curve_g1, subgroup_check, "G1")


def decode_g2(data: bytes, compressed: bool = True, subgroup_check: bool = True) -> G2Point:
    """
    Decode a G2 point. See `decode_g1` for the arguments.
    """
    _expect_length(data, g2_size(compressed), "G2 point")
    flags, payload = _split_flags(data)
    if _check_flags(flags, payload, compressed):
        return g2_identity

    coords = [
        decode_base_field(payload[i : i + BASE_FIELD_SIZE])
        for i in range(0, len(payload), BASE_FIELD_SIZE)
    ]

    if compressed:
        try:
            point = signature_to_G2(cast(BLSSignature, data))
        except ValueError as e:
            raise DecodeError(f"invalid G2 point: {e}") from e
    else:
        x_c1, x_c0, y_c1, y_c0 = coords
        point = (FQ2([x_c0, x_c1]), FQ2([y_c0, y_c1]), FQ2.one())

    return _finish(point, on_curve_g2, subgroup_check, "G2")


def encode_g1(point: G1Point, compressed: bool = True) -> bytes:
    if compressed:
        return bytes(G1_to_pubkey(point))
    if is_inf(point):
        return bytes([INFINITY_FLAG]) + bytes(G1_UNCOMPRESSED_SIZE - 1)
    x, y = normalize(point)
    return encode_base_field(x.n) + encode_base_field(y.n)


def encode_g2(point: G2Point, compressed: bool = True) -> bytes:
    if compressed:
        return bytes(G2_to_signature(point))
    if is_inf(point):
        return bytes([INFINITY_FLAG]) + bytes(G2_UNCOMPRESSED_SIZE - 1)
    x, y = normalize(point)
    x_c0, x_c1 = x.coeffs
    y_c0, y_c1 = y.coeffs
    return b"".join(encode_base_field(int(c)) for c in (x_c1, x_c0, y_c1, y_c0))


# aggregates


def decode_proof(data: bytes, compressed: bool = True, subgroup_check: bool = True) -> Proof:
    """
    Decode a proof laid out as A || B || C.

    Raises:
        DecodeError: On a wrong total length or any invalid point.
    """
    _expect_length(data, proof_size(compressed), "proof")
    n1, n2 = g1_size(compressed), g2_size(compressed)
    return Proof(
        a=decode_g1(data[:n1], compressed, subgroup_check),
        b=decode_g2(data[n1 : n1 + n2], compressed, subgroup_check),
        c=decode_g1(data[n1 + n2 :], compressed, subgroup_check),
    )


def encode_proof(proof: Proof, compressed: bool = True) -> bytes:
    return (
        encode_g1(proof.a, compressed)
        + encode_g2(proof.b, compressed)
        + encode_g1(proof.c, compressed)
    )


def decode_verifying_key(
    data: bytes,
    compressed: bool = True,
    subgroup_check: bool = True,
    max_public_inputs: int | None = None,
) -> VerifyingKey:
    """
    Decode a verifying key.

    Args:
        data: The encoded key.
        compressed: Point encoding of every point in the key.
        subgroup_check: Reject points outside the prime-order subgroups.
        max_public_inputs: Upper bound on the declared number of public
            inputs, checked before any point is decoded.

    Returns:
        The `VerifyingKey`.

    Raises:
        DecodeError: On an inconsistent length, an out of bounds IC count or
            any invalid point.
    """
    n1, n2 = g1_size(compressed), g2_size(compressed)
    header = n1 + 3 * n2 + IC_COUNT_SIZE
    if len(data) < header:
        raise DecodeError(f"verifying key must be at least {header} bytes, got {len(data)}")

    count = int.from_bytes(data[header - IC_COUNT_SIZE : header], "big")
    if count < 1:
        raise DecodeError("verifying key has no IC points")
    if max_public_inputs is not None and count - 1 > max_public_inputs:
        raise DecodeError(
            f"verifying key declares {count - 1} public inputs, limit is {max_public_inputs}"
        )
    _expect_length(data, header + count * n1, "verifying key")

    offset = 0

    def take(size: int) -> bytes:
        nonlocal offset
        chunk = data[offset : offset + size]
        offset += size
        return chunk

    alpha = decode_g1(take(n1), compressed, subgroup_check)
    beta = decode_g2(take(n2), compressed, subgroup_check)
    gamma = decode_g2(take(n2), compressed, subgroup_check)
    delta = decode_g2(take(n2), compressed, subgroup_check)
    take(IC_COUNT_SIZE)
    ic = tuple(decode_g1(take(n1), compressed, subgroup_check) for _ in range(count))

    return VerifyingKey(alpha_g1=alpha, beta_g2=beta, gamma_g2=gamma, delta_g2=delta, ic=ic)


def encode_verifying_key(vk: VerifyingKey, compressed: bool = True) -> bytes:
    return b"".join(
        [
            encode_g1(vk.alpha_g1, compressed),
            encode_g2(vk.beta_g2, compressed),
            encode_g2(vk.gamma_g2, compressed),
            encode_g2(vk.delta_g2, compressed),
            len(vk.ic).to_bytes(IC_COUNT_SIZE, "big"),
        ]
        + [encode_g1(point, compressed) for point in vk.ic]
    )


def decode_public_inputs(data: bytes) -> tuple[int, ...]:
    """
    Decode a concatenation of 32-byte big-endian scalars.

    Raises:
        DecodeError: If the length is not a multiple of 32 or a value is >= r.
    """
    if len(data) % SCALAR_SIZE:
        raise DecodeError(
            f"public inputs length {len(data)} is not a multiple of {SCALAR_SIZE}"
        )
    return tuple(
        decode_scalar(data[i : i + SCALAR_SIZE]) for i in range(0, len(data), SCALAR_SIZE)
    )


def encode_public_inputs(values: Sequence[int]) -> bytes:
    return b"".join(encode_scalar(v) for v in values)

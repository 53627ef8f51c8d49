# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# formats.py

"""
Human readable transports for the canonical bytes of `zkproof.codec`.

Text:
  - hex (an optional "0x" prefix is accepted)
  - base64 (standard alphabet, padding required)

gnark JSON outputs (compressed hex points):
  - vk.json: {nPublic, vkAlpha, vkBeta, vkGamma, vkDelta, vkIC, ...}
  - proof.json: {piA, piB, piC, ...}
  - public.json: {inputs: [decimal strings], ...}

Pallet JSON submissions, one object per proof:
  {
    "a": {"x": b64, "y": b64},
    "b": {"x": {"c0": b64, "c1": b64}, "y": {"c0": b64, "c1": b64}},
    "c": {"x": b64, "y": b64},
    "public_inputs": [b64, ...],      # or a single "public_hash": b64
    "verifying_key": b64
  }
  Coordinates are 48-byte little-endian field elements and public inputs
  are 32-byte little-endian scalars, as arkworks serializes Fq and Fr.
  Values at or above the modulus are rejected, never reduced. A point with
  every coordinate zero is the point at infinity. The verifying key is
  either an arkworks compressed `PreparedVerifyingKey` or canonical
  verifying key bytes; the writer always emits the canonical form.
"""

import base64
import binascii
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from zkproof.codec import (
    decode_g1,
    decode_g2,
    decode_proof,
    decode_verifying_key,
    encode_g1,
    encode_g2,
    encode_proof,
    encode_public_inputs,
    encode_verifying_key,
    g1_size,
    g2_size,
)
from zkproof.constants import (
    BASE_FIELD_SIZE,
    G1_COMPRESSED_SIZE,
    G2_COMPRESSED_SIZE,
    IC_COUNT_SIZE,
    INFINITY_FLAG,
    SCALAR_SIZE,
)
from zkproof.errors import DecodeError
from zkproof.files import load_json

TEXT_ENCODINGS = ("hex", "base64")


@dataclass(frozen=True)
class Submission:
    vk_bytes: bytes
    proof_bytes: bytes
    public_input_bytes: bytes

    def recode(self, compressed: bool) -> "Submission":
        """
        Re-encode the points of a compressed submission in the requested form.

        Subgroup membership is not checked here; the handler does that when
        it decodes the result.
        """
        if compressed:
            return self
        vk = decode_verifying_key(self.vk_bytes, subgroup_check=False)
        proof = decode_proof(self.proof_bytes, subgroup_check=False)
        return Submission(
            vk_bytes=encode_verifying_key(vk, compressed=False),
            proof_bytes=encode_proof(proof, compressed=False),
            public_input_bytes=self.public_input_bytes,
        )


def to_text(data: bytes, encoding: str = "hex") -> str:
    if encoding == "hex":
        return data.hex()
    if encoding == "base64":
        return base64.b64encode(data).decode("ascii")
    raise ValueError(f"unknown text encoding {encoding!r}, expected one of {TEXT_ENCODINGS}")


def from_text(text: str, encoding: str = "hex") -> bytes:
    """
    Decode hex or base64 text into bytes.

    Raises:
        DecodeError: If the text is not valid in the chosen encoding.
        ValueError: If the encoding name is unknown.
    """
    text = text.strip()
    if encoding == "hex":
        if text[:2].lower() == "0x":
            text = text[2:]
        try:
            return bytes.fromhex(text)
        except ValueError as e:
            raise DecodeError(f"invalid hex: {e}") from e
    if encoding == "base64":
        try:
            return base64.b64decode(text, validate=True)
        except binascii.Error as e:
            raise DecodeError(f"invalid base64: {e}") from e
    raise ValueError(f"unknown text encoding {encoding!r}, expected one of {TEXT_ENCODINGS}")


def _hex_field(doc: dict[str, Any], key: str, size: int) -> bytes:
    try:
        raw = from_text(doc[key], "hex")
    except KeyError:
        raise DecodeError(f"missing field {key!r}") from None
    except AttributeError:
        raise DecodeError(f"field {key!r} must be a hex string") from None
    if len(raw) != size:
        raise DecodeError(f"{key} must be {size} bytes, got {len(raw)}")
    return raw


# gnark


def gnark_vk_to_bytes(vk: dict[str, Any]) -> bytes:
    """
    Convert a gnark vk.json object into canonical compressed verifying key bytes.

    Args:
        vk: Dict from gnark's vk.json

    Returns:
        The verifying key in the `zkproof.codec` layout.

    Raises:
        DecodeError: If a field is missing or malformed, or `nPublic` does
            not match the number of IC points.
    """
    ic = vk.get("vkIC")
    if not isinstance(ic, list):
        raise DecodeError("vk.json: 'vkIC' must be a list")
    try:
        n_public = int(vk["nPublic"])
    except (KeyError, TypeError, ValueError):
        raise DecodeError("vk.json: 'nPublic' must be an integer") from None
    if len(ic) != n_public + 1:
        raise DecodeError(
            f"IC length mismatch: len(vkIC)={len(ic)} vs nPublic+1={n_public + 1}"
        )

    return b"".join(
        [
            _hex_field(vk, "vkAlpha", G1_COMPRESSED_SIZE),
            _hex_field(vk, "vkBeta", G2_COMPRESSED_SIZE),
            _hex_field(vk, "vkGamma", G2_COMPRESSED_SIZE),
            _hex_field(vk, "vkDelta", G2_COMPRESSED_SIZE),
            len(ic).to_bytes(IC_COUNT_SIZE, "big"),
        ]
        + [_hex_field({"vkIC": p}, "vkIC", G1_COMPRESSED_SIZE) for p in ic]
    )


def gnark_proof_to_bytes(proof: dict[str, Any]) -> bytes:
    """
    Convert a gnark proof.json object into canonical compressed proof bytes.

    Commitment extensions (`commitments`, `commitmentPok`) are not part of
    plain Groth16 and must be absent or empty.
    """
    if proof.get("commitments"):
        raise DecodeError("proof.json: commitment extensions are not supported")
    return (
        _hex_field(proof, "piA", G1_COMPRESSED_SIZE)
        + _hex_field(proof, "piB", G2_COMPRESSED_SIZE)
        + _hex_field(proof, "piC", G1_COMPRESSED_SIZE)
    )


def gnark_public_to_bytes(public: dict[str, Any], drop_leading_one: bool = False) -> bytes:
    """
    Convert a gnark public.json object into canonical public input bytes.

    Args:
        public: Dict with key `inputs`, a list of decimal strings.
        drop_leading_one: Skip the constant "1" some exports put first
            (the constant term is carried by IC_0).

    Returns:
        The concatenated 32-byte big-endian scalars.
    """
    inputs = public.get("inputs")
    if not isinstance(inputs, list):
        raise DecodeError("public.json: 'inputs' must be a list")
    if drop_leading_one:
        if not inputs or str(inputs[0]) != "1":
            raise DecodeError("public.json: expected a leading '1' input")
        inputs = inputs[1:]
    try:
        values = [int(v) for v in inputs]
    except (TypeError, ValueError):
        raise DecodeError("public.json: inputs must be decimal integers") from None
    return encode_public_inputs(values)


def load_gnark_submission(
    vk_path: str | Path,
    proof_path: str | Path,
    public_path: str | Path,
    drop_leading_one: bool = False,
) -> Submission:
    """
    Read gnark's vk.json, proof.json and public.json into a `Submission`.

    Args:
        vk_path: Path to gnark's vk.json
        proof_path: Path to gnark's proof.json
        public_path: Path to gnark's public.json
        drop_leading_one: See `gnark_public_to_bytes`.
    """
    return Submission(
        vk_bytes=gnark_vk_to_bytes(load_json(vk_path)),
        proof_bytes=gnark_proof_to_bytes(load_json(proof_path)),
        public_input_bytes=gnark_public_to_bytes(load_json(public_path), drop_leading_one),
    )


# pallet

# arkworks sizes of the precomputed half of a PreparedVerifyingKey
FQ12_SIZE = 12 * BASE_FIELD_SIZE
ELL_COEFF_SIZE = 6 * BASE_FIELD_SIZE


def _b64_field(value: Any, size: int, what: str) -> bytes:
    """Decode a base64 little-endian field element and return it big-endian."""
    if not isinstance(value, str):
        raise DecodeError(f"{what} must be a base64 string")
    raw = from_text(value, "base64")
    if len(raw) != size:
        raise DecodeError(f"{what} must be {size} bytes, got {len(raw)}")
    return raw[::-1]


def _le_b64(data: bytes) -> str:
    return to_text(data[::-1], "base64")


def _uncompressed(coords: list[bytes]) -> bytes:
    if not any(any(c) for c in coords):
        return bytes([INFINITY_FLAG]) + bytes(len(coords) * BASE_FIELD_SIZE - 1)
    return b"".join(coords)


def _pallet_g1(point: Any, what: str, compressed: bool) -> bytes:
    if not isinstance(point, dict):
        raise DecodeError(f"{what} must be an object with x and y")
    coords = [
        _b64_field(point.get(k), BASE_FIELD_SIZE, f"{what}.{k}") for k in ("x", "y")
    ]
    decoded = decode_g1(_uncompressed(coords), compressed=False, subgroup_check=False)
    return encode_g1(decoded, compressed)


def _pallet_g2(point: Any, what: str, compressed: bool) -> bytes:
    if not isinstance(point, dict) or not all(isinstance(point.get(k), dict) for k in ("x", "y")):
        raise DecodeError(f"{what} must be an object with x and y Fq2 coordinates")
    coords = [
        _b64_field(point[k].get(c), BASE_FIELD_SIZE, f"{what}.{k}.{c}")
        for k in ("x", "y")
        for c in ("c1", "c0")
    ]
    decoded = decode_g2(_uncompressed(coords), compressed=False, subgroup_check=False)
    return encode_g2(decoded, compressed)


def _take(data: bytes, offset: int, size: int, what: str) -> tuple[bytes, int]:
    if offset + size > len(data):
        raise DecodeError(f"arkworks verifying key truncated in {what}")
    return data[offset : offset + size], offset + size


def _counted(data: bytes, offset: int, item_size: int, what: str) -> tuple[bytes, int]:
    """Read an arkworks Vec: a u64 little-endian length, then the items."""
    count, offset = _take(data, offset, IC_COUNT_SIZE, what)
    n = int.from_bytes(count, "little")
    if n > (len(data) - offset) // item_size:
        raise DecodeError(f"arkworks verifying key truncated in {what}")
    return _take(data, offset, n * item_size, what)


def arkworks_key_to_bytes(data: bytes, compressed: bool = True) -> bytes:
    """
    Convert a compressed arkworks `PreparedVerifyingKey<Bls12_381>` into
    canonical verifying key bytes.

    The arkworks layout is alpha, beta, gamma and delta as zcash compressed
    points, the IC points as a u64 little-endian count followed by the
    points, then the precomputed values: e(alpha, beta) as twelve base field
    elements and the line coefficients of -gamma and -delta, each a counted
    list of three Fq2 triples followed by an infinity byte. The precomputed
    values are checked for shape and dropped, the verifier derives its own.

    Args:
        data: The serialized prepared key.
        compressed: Point form of the returned key bytes.

    Returns:
        The canonical verifying key bytes.

    Raises:
        DecodeError: If the bytes do not have the arkworks layout.
    """
    head, offset = _take(data, 0, G1_COMPRESSED_SIZE + 3 * G2_COMPRESSED_SIZE, "points")
    ic, offset = _counted(data, offset, G1_COMPRESSED_SIZE, "IC")
    _, offset = _take(data, offset, FQ12_SIZE, "e(alpha, beta)")
    for what in ("-gamma lines", "-delta lines"):
        _, offset = _counted(data, offset, ELL_COEFF_SIZE, what)
        infinity, offset = _take(data, offset, 1, what)
        if infinity[0] > 1:
            raise DecodeError(f"{what} infinity flag must be 0 or 1")
    if offset != len(data):
        raise DecodeError(f"{len(data) - offset} trailing bytes after the arkworks verifying key")

    n = len(ic) // G1_COMPRESSED_SIZE
    canonical = head + n.to_bytes(IC_COUNT_SIZE, "big") + ic
    if compressed:
        return canonical
    vk = decode_verifying_key(canonical, compressed=True, subgroup_check=False)
    return encode_verifying_key(vk, compressed=False)


def _is_canonical_key(data: bytes) -> bool:
    for compressed in (True, False):
        head = g1_size(compressed) + 3 * g2_size(compressed)
        if len(data) < head + IC_COUNT_SIZE:
            continue
        n = int.from_bytes(data[head : head + IC_COUNT_SIZE], "big")
        if len(data) == head + IC_COUNT_SIZE + n * g1_size(compressed):
            return True
    return False


def pallet_json_to_submission(doc: dict[str, Any], compressed: bool = True) -> Submission:
    """
    Convert a pallet JSON submission into canonical bytes.

    Args:
        doc: The parsed JSON object (see the module docstring).
        compressed: Point form of the produced proof and key bytes. A
            verifying key given in canonical layout is passed through
            unchanged and must already use that form.

    Returns:
        The `Submission`.

    Raises:
        DecodeError: If a field is missing or malformed, or a coordinate is
            not a canonical field element of a point on the curve.
    """
    if not isinstance(doc, dict):
        raise DecodeError("submission must be a JSON object")

    if "public_inputs" in doc:
        encoded_inputs = doc["public_inputs"]
        if not isinstance(encoded_inputs, list):
            raise DecodeError("public_inputs must be a list")
    elif "public_hash" in doc:
        encoded_inputs = [doc["public_hash"]]
    else:
        raise DecodeError("missing field 'public_inputs'")

    proof_bytes = (
        _pallet_g1(doc.get("a"), "a", compressed)
        + _pallet_g2(doc.get("b"), "b", compressed)
        + _pallet_g1(doc.get("c"), "c", compressed)
    )
    public_input_bytes = b"".join(
        _b64_field(v, SCALAR_SIZE, f"public_inputs[{i}]") for i, v in enumerate(encoded_inputs)
    )
    vk = doc.get("verifying_key")
    if not isinstance(vk, str):
        raise DecodeError("verifying_key must be a base64 string")
    vk_bytes = from_text(vk, "base64")
    if not _is_canonical_key(vk_bytes):
        vk_bytes = arkworks_key_to_bytes(vk_bytes, compressed)

    return Submission(
        vk_bytes=vk_bytes,
        proof_bytes=proof_bytes,
        public_input_bytes=public_input_bytes,
    )


def submission_to_pallet_json(submission: Submission, compressed: bool = True) -> dict[str, Any]:
    """
    Inverse of `pallet_json_to_submission`, producing little-endian base64
    coordinates and scalars. The verifying key is written in canonical layout.
    """
    proof = decode_proof(submission.proof_bytes, compressed=compressed, subgroup_check=False)

    def coords(raw: bytes) -> list[str]:
        if raw[0] & INFINITY_FLAG:
            raw = bytes(len(raw))
        return [_le_b64(raw[i : i + BASE_FIELD_SIZE]) for i in range(0, len(raw), BASE_FIELD_SIZE)]

    ax, ay = coords(encode_g1(proof.a, compressed=False))
    bx1, bx0, by1, by0 = coords(encode_g2(proof.b, compressed=False))
    cx, cy = coords(encode_g1(proof.c, compressed=False))
    data = submission.public_input_bytes
    return {
        "a": {"x": ax, "y": ay},
        "b": {"x": {"c0": bx0, "c1": bx1}, "y": {"c0": by0, "c1": by1}},
        "c": {"x": cx, "y": cy},
        "public_inputs": [
            _le_b64(data[i : i + SCALAR_SIZE]) for i in range(0, len(data), SCALAR_SIZE)
        ],
        "verifying_key": to_text(submission.vk_bytes, "base64"),
    }

# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# tests/test_codec.py

import pytest
from py_ecc.bls.g2_primitives import G1_to_pubkey
from py_ecc.optimized_bls12_381 import G1, G2, Z1, Z2, curve_order, field_modulus, multiply

from zkproof.bls12381 import on_curve_g1
from zkproof.codec import (
    decode_base_field,
    decode_g1,
    decode_g2,
    decode_proof,
    decode_public_inputs,
    decode_scalar,
    decode_verifying_key,
    encode_base_field,
    encode_g1,
    encode_g2,
    encode_proof,
    encode_public_inputs,
    encode_scalar,
    encode_verifying_key,
    proof_size,
)
from zkproof.errors import DecodeError


def _with_flags(data: bytes, flags: int) -> bytes:
    return bytes([data[0] | flags]) + data[1:]


class TestScalars:
    def test_largest_scalar(self):
        data = (curve_order - 1).to_bytes(32, "big")
        assert decode_scalar(data) == curve_order - 1

    def test_curve_order_rejected(self):
        with pytest.raises(DecodeError, match="non-canonical scalar"):
            decode_scalar(curve_order.to_bytes(32, "big"))

    def test_above_curve_order_rejected(self):
        with pytest.raises(DecodeError):
            decode_scalar((curve_order + 1).to_bytes(32, "big"))

    def test_wrong_length(self):
        with pytest.raises(DecodeError, match="32 bytes"):
            decode_scalar(bytes(31))

    def test_encode_out_of_range(self):
        with pytest.raises(DecodeError):
            encode_scalar(curve_order)
        with pytest.raises(DecodeError):
            encode_scalar(-1)

    def test_big_endian(self):
        assert encode_scalar(9) == bytes(31) + b"\x09"


class TestBaseField:
    def test_largest_element(self):
        data = (field_modulus - 1).to_bytes(48, "big")
        assert decode_base_field(data) == field_modulus - 1

    def test_modulus_rejected(self):
        with pytest.raises(DecodeError, match="non-canonical residue"):
            decode_base_field(field_modulus.to_bytes(48, "big"))

    def test_encode_round_trip(self):
        assert decode_base_field(encode_base_field(12345)) == 12345


class TestG1:
    def test_compressed_round_trip(self):
        point = multiply(G1, 987654321)
        data = encode_g1(point)
        assert len(data) == 48
        assert encode_g1(decode_g1(data)) == data

    def test_uncompressed_round_trip(self):
        point = multiply(G1, 987654321)
        data = encode_g1(point, compressed=False)
        assert len(data) == 96
        assert encode_g1(decode_g1(data, compressed=False)) == encode_g1(point)

    def test_identity_compressed(self):
        data = encode_g1(Z1)
        assert data == b"\xc0" + bytes(47)
        assert encode_g1(decode_g1(data)) == data

    def test_identity_uncompressed(self):
        data = encode_g1(Z1, compressed=False)
        assert data == b"\x40" + bytes(95)
        assert encode_g1(decode_g1(data, compressed=False)) == encode_g1(Z1)

    def test_x_equal_to_modulus_compressed(self):
        data = _with_flags(field_modulus.to_bytes(48, "big"), 0x80)
        with pytest.raises(DecodeError, match="non-canonical residue"):
            decode_g1(data)

    def test_x_equal_to_modulus_uncompressed(self):
        data = field_modulus.to_bytes(48, "big") + bytes(48)
        with pytest.raises(DecodeError, match="non-canonical residue"):
            decode_g1(data, compressed=False)

    def test_missing_compression_flag(self):
        data = encode_g1(G1)
        with pytest.raises(DecodeError, match="expected a compressed"):
            decode_g1(bytes([data[0] & 0x7F]) + data[1:])

    def test_compression_flag_on_uncompressed(self):
        data = _with_flags(encode_g1(G1, compressed=False), 0x80)
        with pytest.raises(DecodeError, match="expected an uncompressed"):
            decode_g1(data, compressed=False)

    def test_infinity_with_payload(self):
        with pytest.raises(DecodeError, match="infinity"):
            decode_g1(b"\xc0" + bytes(46) + b"\x01")

    def test_infinity_with_sign(self):
        with pytest.raises(DecodeError, match="infinity"):
            decode_g1(b"\xe0" + bytes(47))

    def test_sign_flag_on_uncompressed(self):
        data = _with_flags(encode_g1(G1, compressed=False), 0x20)
        with pytest.raises(DecodeError, match="sign flag"):
            decode_g1(data, compressed=False)

    def test_off_curve_uncompressed(self):
        data = (1).to_bytes(48, "big") + (1).to_bytes(48, "big")
        with pytest.raises(DecodeError, match="not on the G1 curve"):
            decode_g1(data, compressed=False)

    def test_off_curve_compressed(self, non_residue_x):
        data = _with_flags(non_residue_x.to_bytes(48, "big"), 0x80)
        with pytest.raises(DecodeError):
            decode_g1(data)

    def test_outside_subgroup(self, g1_outside_subgroup):
        with pytest.raises(DecodeError):
            decode_g1(bytes(G1_to_pubkey(g1_outside_subgroup)))
        data = encode_g1(g1_outside_subgroup, compressed=False)
        with pytest.raises(DecodeError, match="subgroup"):
            decode_g1(data, compressed=False)

    def test_outside_subgroup_unchecked(self, g1_outside_subgroup):
        data = encode_g1(g1_outside_subgroup, compressed=False)
        point = decode_g1(data, compressed=False, subgroup_check=False)
        assert on_curve_g1(point)
        assert encode_g1(point, compressed=False) == data

    @pytest.mark.parametrize("size", [0, 47, 49, 96])
    def test_wrong_length(self, size):
        with pytest.raises(DecodeError, match="48 bytes"):
            decode_g1(bytes(size))


class TestG2:
    def test_compressed_round_trip(self):
        data = encode_g2(multiply(G2, 42))
        assert len(data) == 96
        assert encode_g2(decode_g2(data)) == data

    def test_uncompressed_round_trip(self):
        point = multiply(G2, 42)
        data = encode_g2(point, compressed=False)
        assert len(data) == 192
        assert encode_g2(decode_g2(data, compressed=False)) == encode_g2(point)

    def test_identity(self):
        assert encode_g2(decode_g2(encode_g2(Z2))) == b"\xc0" + bytes(95)
        assert encode_g2(Z2, compressed=False) == b"\x40" + bytes(191)

    def test_imaginary_part_first(self):
        data = encode_g2(G2, compressed=False)
        x_c0, x_c1 = G2[0].coeffs
        assert int.from_bytes(data[:48], "big") == int(x_c1)
        assert int.from_bytes(data[48:96], "big") == int(x_c0)

    def test_coordinate_equal_to_modulus(self):
        data = encode_g2(G2)
        bad = _with_flags(field_modulus.to_bytes(48, "big"), 0x80) + data[48:]
        with pytest.raises(DecodeError, match="non-canonical residue"):
            decode_g2(bad)

    def test_off_curve_uncompressed(self):
        one = (1).to_bytes(48, "big")
        zero = bytes(48)
        with pytest.raises(DecodeError, match="not on the G2 curve"):
            decode_g2(zero + one + zero + one, compressed=False)

    def test_wrong_length(self):
        with pytest.raises(DecodeError, match="96 bytes"):
            decode_g2(bytes(95))


class TestProof:
    def test_sizes(self):
        assert proof_size(True) == 192
        assert proof_size(False) == 384

    def test_round_trip(self, square):
        data = square.proof_bytes
        assert len(data) == 192
        assert encode_proof(decode_proof(data)) == data

    def test_uncompressed_round_trip(self, square):
        data = encode_proof(square.proof, compressed=False)
        assert len(data) == 384
        proof = decode_proof(data, compressed=False)
        assert encode_proof(proof) == square.proof_bytes

    def test_trailing_byte(self, square):
        with pytest.raises(DecodeError, match="proof must be 192 bytes"):
            decode_proof(square.proof_bytes + b"\x00")

    def test_truncated(self, square):
        with pytest.raises(DecodeError):
            decode_proof(square.proof_bytes[:-1])

    def test_wrong_form(self, square):
        with pytest.raises(DecodeError):
            decode_proof(square.proof_bytes, compressed=False)


class TestVerifyingKey:
    def test_layout(self, square):
        data = square.vk_bytes
        assert len(data) == 48 + 3 * 96 + 8 + 2 * 48
        assert data[336:344] == (2).to_bytes(8, "big")

    def test_round_trip(self, wide):
        vk = decode_verifying_key(wide.vk_bytes)
        assert vk.n_public == 3
        assert encode_verifying_key(vk) == wide.vk_bytes

    def test_uncompressed_round_trip(self, square):
        data = encode_verifying_key(square.vk, compressed=False)
        vk = decode_verifying_key(data, compressed=False)
        assert encode_verifying_key(vk) == square.vk_bytes

    def test_identity_ic_allowed(self, square):
        vk = decode_verifying_key(square.vk_bytes)
        assert encode_g1(vk.ic[0]) == encode_g1(Z1)

    def test_zero_ic_points(self, square):
        data = square.vk_bytes[:336] + bytes(8)
        with pytest.raises(DecodeError, match="no IC points"):
            decode_verifying_key(data)

    def test_count_disagrees_with_length(self, square):
        data = square.vk_bytes[:336] + (3).to_bytes(8, "big") + square.vk_bytes[344:]
        with pytest.raises(DecodeError, match="verifying key must be"):
            decode_verifying_key(data)

    def test_huge_count(self, square):
        data = square.vk_bytes[:336] + (2**63).to_bytes(8, "big") + square.vk_bytes[344:]
        with pytest.raises(DecodeError):
            decode_verifying_key(data)

    def test_trailing_byte(self, square):
        with pytest.raises(DecodeError):
            decode_verifying_key(square.vk_bytes + b"\x00")

    def test_shorter_than_header(self):
        with pytest.raises(DecodeError, match="at least"):
            decode_verifying_key(bytes(100))

    def test_public_input_limit(self, wide):
        with pytest.raises(DecodeError, match="limit is 2"):
            decode_verifying_key(wide.vk_bytes, max_public_inputs=2)
        assert decode_verifying_key(wide.vk_bytes, max_public_inputs=3).n_public == 3


class TestPublicInputs:
    def test_round_trip(self, wide):
        assert decode_public_inputs(encode_public_inputs(wide.inputs)) == wide.inputs

    def test_empty(self):
        assert decode_public_inputs(b"") == ()

    def test_not_a_multiple_of_32(self):
        with pytest.raises(DecodeError, match="multiple of 32"):
            decode_public_inputs(bytes(33))

    def test_non_canonical_input(self):
        data = (9).to_bytes(32, "big") + curve_order.to_bytes(32, "big")
        with pytest.raises(DecodeError):
            decode_public_inputs(data)


if __name__ == "__main__":
    pytest.main()

# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
from py_ecc.optimized_bls12_381 import curve_order, field_modulus

# domain tags
FPR_DOMAIN_TAG = "PROOF|Fingerprint|v1|".encode("utf-8").hex()
PIC_DOMAIN_TAG = "PUBLIC|Inputs|Commitment|v1|".encode("utf-8").hex()
VKI_DOMAIN_TAG = "VK|Identifier|v1|".encode("utf-8").hex()

# byte sizes of the canonical encodings
SCALAR_SIZE = 32
BASE_FIELD_SIZE = 48
G1_COMPRESSED_SIZE = 48
G2_COMPRESSED_SIZE = 96
G1_UNCOMPRESSED_SIZE = 96
G2_UNCOMPRESSED_SIZE = 192
IC_COUNT_SIZE = 8

# zcash serialization flags, first byte of every point encoding
COMPRESSION_FLAG = 0x80
INFINITY_FLAG = 0x40
SIGN_FLAG = 0x20
FLAG_MASK = 0xE0

# moduli
SCALAR_MODULUS = curve_order
BASE_MODULUS = field_modulus

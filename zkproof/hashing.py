# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

import hashlib
import binascii

from zkproof.constants import FPR_DOMAIN_TAG, PIC_DOMAIN_TAG, VKI_DOMAIN_TAG


def generate(input_string: str) -> str:
    """
    Calculates the blake2b_224 hash digest of the input string.

    Args:
        input_string (str): The hex string to be hashed.

    Returns:
        str: The blake2b_224 hash digest of the input string.
    """
    # Calculate the hash digest using blake2b_224
    hash_digest = hashlib.blake2b(
        binascii.unhexlify(input_string), digest_size=28
    ).hexdigest()

    return hash_digest


def tagged_digest(domain_tag: str, data: bytes) -> str:
    """
    Calculates a domain separated blake2b_256 digest.

    The hashed message is `domain_tag || data`, where the tag is the hex
    encoding of an ASCII label (see `zkproof.constants`).

    Args:
        domain_tag (str): Hex encoded domain tag.
        data (bytes): The message.

    Returns:
        str: The 32-byte digest as lowercase hex.
    """
    return hashlib.blake2b(
        binascii.unhexlify(domain_tag) + data, digest_size=32
    ).hexdigest()


def fingerprint(proof_bytes: bytes) -> str:
    """Fingerprint of a proof's canonical compressed bytes."""
    return tagged_digest(FPR_DOMAIN_TAG, proof_bytes)


def inputs_commitment(public_input_bytes: bytes) -> str:
    """Commitment to the canonical encoding of a public input sequence."""
    return tagged_digest(PIC_DOMAIN_TAG, public_input_bytes)


def key_identifier(vk_bytes: bytes) -> str:
    """Default identifier of a verifying key: blake2b_224 of its canonical bytes."""
    return generate(VKI_DOMAIN_TAG + vk_bytes.hex())

# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
"""Groth16 proof verification over BLS12-381 with replay-safe verification records."""

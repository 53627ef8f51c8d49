# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# config.py

"""
Verification settings.

Defaults are safe for untrusted input. Every field can be overridden from
the environment with a `ZKPROOF_` prefixed variable, e.g.

    ZKPROOF_DUPLICATE_POLICY=idempotent
    ZKPROOF_SUBGROUP_CHECKS=false
    ZKPROOF_STORE_DIR=/var/lib/zkproof/records
"""

import os
from dataclasses import dataclass, fields
from enum import Enum
from typing import Mapping

ENV_PREFIX = "ZKPROOF_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class DuplicatePolicy(str, Enum):
    """What resubmitting an already recorded proof returns."""

    REJECT = "reject"
    IDEMPOTENT = "idempotent"


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name}: expected a boolean, got {raw!r}")


def _parse_int(name: str, raw: str) -> int:
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValueError(f"{name}: expected an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name}: must not be negative")
    return value


@dataclass(frozen=True)
class Settings:
    compressed: bool = True
    subgroup_checks: bool = True
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.REJECT
    max_public_inputs: int = 256
    max_submission_bytes: int = 65536
    log_level: str = "INFO"
    store_dir: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Build settings from `ZKPROOF_*` environment variables.

        Args:
            environ: Mapping to read instead of `os.environ` (used by tests).

        Returns:
            The settings, with defaults for every unset variable.

        Raises:
            ValueError: If a variable is set to an unparsable value.
        """
        environ = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            name = ENV_PREFIX + f.name.upper()
            if name not in environ:
                continue
            raw = environ[name]
            if f.type is bool:
                overrides[f.name] = _parse_bool(name, raw)
            elif f.type is int:
                overrides[f.name] = _parse_int(name, raw)
            elif f.name == "duplicate_policy":
                try:
                    overrides[f.name] = DuplicatePolicy(raw.strip().lower())
                except ValueError:
                    raise ValueError(f"{name}: unknown policy {raw!r}") from None
            elif f.name == "log_level":
                overrides[f.name] = raw.strip().upper()
            else:
                overrides[f.name] = raw.strip() or None
        return cls(**overrides)

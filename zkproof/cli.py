# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# cli.py

"""
Command line entry point.

    zkproof verify  --vk vk.hex --proof proof.hex --public public.hex
    zkproof verify  --gnark out/
    zkproof submit  --pallet submission.json --store records/
    zkproof exists  <fingerprint> --store records/
    zkproof records --store records/
    zkproof convert --gnark out/ --out converted/ [--to base64|pallet]

Settings come from `ZKPROOF_*` environment variables; flags override them.
Exit status is 0 when a proof is accepted (or a fingerprint exists), 1 when
it is rejected or the input is unusable.
"""

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path

from zkproof.codec import decode_proof, decode_public_inputs, decode_verifying_key, encode_proof
from zkproof.config import DuplicatePolicy, Settings
from zkproof.errors import DecodeError, Reason
from zkproof.files import load_bytes, load_json, load_string, save_json, save_string
from zkproof.formats import (
    TEXT_ENCODINGS,
    Submission,
    from_text,
    load_gnark_submission,
    pallet_json_to_submission,
    submission_to_pallet_json,
    to_text,
)
from zkproof.groth16 import verify
from zkproof.handler import SubmissionHandler
from zkproof.hashing import fingerprint
from zkproof.store import FileRecordStore


def _read(path: str, encoding: str) -> bytes:
    if encoding == "raw":
        return load_bytes(path)
    return from_text(load_string(path), encoding)


def load_submission(args: argparse.Namespace, settings: Settings) -> Submission:
    """Build a submission from whichever input flags were given."""
    if args.gnark:
        out_dir = Path(args.gnark)
        return load_gnark_submission(
            out_dir / "vk.json",
            out_dir / "proof.json",
            out_dir / "public.json",
            drop_leading_one=args.drop_leading_one,
        ).recode(settings.compressed)
    if args.pallet:
        return pallet_json_to_submission(load_json(args.pallet), settings.compressed)
    if not (args.vk and args.proof and args.public):
        raise SystemExit("error: give --gnark DIR, --pallet FILE, or all of --vk/--proof/--public")
    return Submission(
        vk_bytes=_read(args.vk, args.encoding),
        proof_bytes=_read(args.proof, args.encoding),
        public_input_bytes=_read(args.public, args.encoding),
    )


def _settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    overrides = {}
    if getattr(args, "uncompressed", False):
        overrides["compressed"] = False
    if getattr(args, "no_subgroup_check", False):
        overrides["subgroup_checks"] = False
    if getattr(args, "idempotent", False):
        overrides["duplicate_policy"] = DuplicatePolicy.IDEMPOTENT
    if getattr(args, "store", None):
        overrides["store_dir"] = args.store
    if args.log_level:
        overrides["log_level"] = args.log_level.upper()
    return dataclasses.replace(settings, **overrides)


def _store(settings: Settings) -> FileRecordStore:
    if not settings.store_dir:
        raise SystemExit("error: --store DIR (or ZKPROOF_STORE_DIR) is required")
    return FileRecordStore(settings.store_dir)


def cmd_verify(args: argparse.Namespace, settings: Settings) -> int:
    try:
        sub = load_submission(args, settings)
        vk = decode_verifying_key(
            sub.vk_bytes,
            compressed=settings.compressed,
            subgroup_check=settings.subgroup_checks,
            max_public_inputs=settings.max_public_inputs,
        )
        proof = decode_proof(
            sub.proof_bytes,
            compressed=settings.compressed,
            subgroup_check=settings.subgroup_checks,
        )
        inputs = decode_public_inputs(sub.public_input_bytes)
    except DecodeError as e:
        print(f"Rejected({Reason.DECODE_ERROR.value}): {e}")
        return 1

    verdict = verify(vk, proof, inputs)
    if verdict:
        print(f"Accepted {fingerprint(encode_proof(proof))}")
        return 0
    print(f"Rejected({verdict.reason.value}): {verdict.detail}")
    return 1


def cmd_submit(args: argparse.Namespace, settings: Settings) -> int:
    handler = SubmissionHandler(store=_store(settings), settings=settings)
    try:
        sub = load_submission(args, settings)
    except DecodeError as e:
        print(f"Rejected({Reason.DECODE_ERROR.value}): {e}")
        return 1

    outcome = handler.submit(sub.vk_bytes, sub.proof_bytes, sub.public_input_bytes, args.vk_id)
    if outcome:
        suffix = " (already recorded)" if outcome.already_recorded else ""
        print(f"Accepted {outcome.record.fingerprint}{suffix}")
        return 0
    print(f"Rejected({outcome.status}): {outcome.detail}")
    return 1


def cmd_exists(args: argparse.Namespace, settings: Settings) -> int:
    found = _store(settings).exists(args.fingerprint.strip().lower())
    print("true" if found else "false")
    return 0 if found else 1


def cmd_records(args: argparse.Namespace, settings: Settings) -> int:
    for rec in _store(settings).records():
        print(json.dumps(dataclasses.asdict(rec), sort_keys=True))
    return 0


def cmd_convert(args: argparse.Namespace, settings: Settings) -> int:
    try:
        sub = load_submission(args, settings)
    except DecodeError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    out_dir = Path(args.out)
    if args.to == "pallet":
        save_json(out_dir / "submission.json", submission_to_pallet_json(sub, settings.compressed))
    else:
        suffix = "hex" if args.to == "hex" else "b64"
        save_string(out_dir / f"vk.{suffix}", to_text(sub.vk_bytes, args.to))
        save_string(out_dir / f"proof.{suffix}", to_text(sub.proof_bytes, args.to))
        save_string(out_dir / f"public.{suffix}", to_text(sub.public_input_bytes, args.to))
    print(out_dir)
    return 0


def _add_inputs(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--vk", help="verifying key file")
    parser.add_argument("--proof", help="proof file")
    parser.add_argument("--public", help="public inputs file")
    parser.add_argument(
        "--encoding",
        choices=TEXT_ENCODINGS + ("raw",),
        default="hex",
        help="encoding of the --vk/--proof/--public files (default: hex)",
    )
    parser.add_argument("--gnark", help="directory holding gnark vk.json, proof.json, public.json")
    parser.add_argument(
        "--drop-leading-one",
        action="store_true",
        help="skip the constant '1' at the start of gnark public inputs",
    )
    parser.add_argument("--pallet", help="pallet JSON submission file")
    parser.add_argument("--uncompressed", action="store_true", help="points use the uncompressed form")
    parser.add_argument(
        "--no-subgroup-check",
        action="store_true",
        help="skip subgroup checks (trusted input only)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="zkproof", description="Groth16 BLS12-381 proof verification")
    parser.add_argument("--log-level", help="logging level (default: ZKPROOF_LOG_LEVEL or INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("verify", help="verify a proof without recording it")
    _add_inputs(p)
    p.set_defaults(func=cmd_verify)

    p = sub.add_parser("submit", help="verify a proof and record it")
    _add_inputs(p)
    p.add_argument("--store", help="record store directory")
    p.add_argument("--vk-id", help="identifier to record for the verifying key")
    p.add_argument("--idempotent", action="store_true", help="resubmitting a recorded proof succeeds")
    p.set_defaults(func=cmd_submit)

    p = sub.add_parser("exists", help="check whether a fingerprint is recorded")
    p.add_argument("fingerprint")
    p.add_argument("--store", help="record store directory")
    p.set_defaults(func=cmd_exists)

    p = sub.add_parser("records", help="list recorded proofs as JSON lines")
    p.add_argument("--store", help="record store directory")
    p.set_defaults(func=cmd_records)

    p = sub.add_parser("convert", help="convert gnark or pallet JSON to text files or pallet JSON")
    _add_inputs(p)
    p.add_argument("--out", required=True, help="output directory")
    p.add_argument(
        "--to",
        choices=TEXT_ENCODINGS + ("pallet",),
        default="hex",
        help="hex or base64 text files, or a pallet JSON submission",
    )
    p.set_defaults(func=cmd_convert)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = _settings(args)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())

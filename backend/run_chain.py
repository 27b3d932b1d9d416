#!/usr/bin/env python3
"""CLI tool to compute the nondh validity chain for an upload file (dry run).

Nothing is stored; the payload is validated, sorted and run through the
validity chain exactly as an upload would be.

Usage:
    python run_chain.py <payload.json>             # Pretty print
    python run_chain.py <payload.json> --trace     # With LRMS_TRACE sorter/chain logs
    python run_chain.py <payload.json> --json      # Output raw JSON

Examples:
    python run_chain.py samples/ukardi.json
    python run_chain.py samples/ukardi.json --json
"""

import argparse
import json
import os
import sys
from pathlib import Path

# Ensure the backend package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent))


def load_payload(path_ref: str) -> dict:
    path = Path(path_ref)
    if not path.exists():
        print(f"File '{path_ref}' not found.")
        sys.exit(1)
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        print(f"Invalid JSON in '{path_ref}': {e}")
        sys.exit(1)


def run_chain(payload: dict, trace: bool = False, output_json: bool = False) -> int:
    """Validate and compute the chain; returns a process exit code."""
    if trace:
        os.environ["LRMS_TRACE"] = "1"

    import logging
    if trace:
        logging.basicConfig(level=logging.DEBUG, format="%(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    from lrms.pipeline.validator import validate_upload_structure
    from lrms.pipeline.upload import run_validity_chain

    structural_errors = validate_upload_structure(payload)
    if structural_errors:
        if output_json:
            print(json.dumps({"success": False, "errors": structural_errors}, indent=2))
        else:
            print("Invalid JSON structure:")
            for e in structural_errors:
                print(f"  ✗ {e}")
        return 1

    result = run_validity_chain(payload)

    if output_json:
        print(json.dumps(result, indent=2, default=str, ensure_ascii=False))
        return 0

    basic = payload["basicInfo"]
    parcel = basic.get("blockNo") or basic.get("reSurveyNo")
    print(f"\n{'═' * 70}")
    print(f"  Validity chain: {basic.get('village')}, {basic.get('taluka')}, {basic.get('district')} [{parcel}]")
    print(f"{'═' * 70}\n")

    print(f"  ORDER ({len(result['order'])} nondhs)")
    print(f"  {'─' * 60}")
    for position, number in enumerate(result["order"], start=1):
        icon = "✓" if result["validity"].get(number, True) else "✗"
        print(f"  {position:>3}. {icon} Nondh {number}")
    print()

    if result["skipped"]:
        print(f"  SKIPPED DETAILS ({len(result['skipped'])})")
        print(f"  {'─' * 60}")
        for reason in result["skipped"]:
            print(f"  ⚠ {reason}")
        print()

    invalid = sum(1 for v in result["validity"].values() if not v)
    print(f"{'═' * 70}")
    print(f"  Summary: {len(result['validity']) - invalid} valid, {invalid} invalid, "
          f"{len(result['skipped'])} skipped")
    print(f"{'═' * 70}\n")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="LRMS CLI: compute the nondh validity chain for an upload file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("payload", help="Upload JSON file (basicInfo, nondhs, nondhDetails)")
    parser.add_argument("--trace", action="store_true", help="Enable LRMS_TRACE debug output")
    parser.add_argument("--json", action="store_true", help="Output raw JSON instead of pretty print")

    args = parser.parse_args()
    payload = load_payload(args.payload)
    sys.exit(run_chain(payload, trace=args.trace, output_json=args.json))


if __name__ == "__main__":
    main()

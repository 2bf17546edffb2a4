from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Any, Dict, List

from .core import DEFAULT_POLICIES, preset_options, validate_password
from .errors import PolicyConfigurationError
from .hibp import BreachChecker
from .log import setup_logging


def _dump(obj: Any, as_json: bool) -> None:
    if as_json:
        print(json.dumps(obj, ensure_ascii=False, indent=2))
    else:
        print(obj)


def _print_result(out: Dict[str, Any]) -> None:
    print("Password Check:")
    print(f"  - Preset: {out['preset']}")
    print(f"  - Valid: {'yes' if out['valid'] else 'no'}")
    if out["errors"]:
        print("\nProblems:")
        for e in out["errors"]:
            print(f"  * {e}")


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if args.min_length is not None:
        out["min_length"] = args.min_length
    if args.max_length is not None:
        out["max_length"] = args.max_length
    if args.block:
        out["blocklist"] = list(args.block)
    if args.sensitivity is not None:
        out["matching_sensitivity"] = args.sensitivity
    if args.max_edit_distance is not None:
        out["max_edit_distance"] = args.max_edit_distance
    if args.no_trim:
        out["trim_whitespace"] = False
    if args.error_limit is not None:
        out["error_limit"] = args.error_limit
    if args.no_hibp:
        out["hibp_check"] = False
    return out


def main(argv: List[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="passwordgate", description="PasswordGate: check passwords against length, blocklist and breach policies.")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_check = sub.add_parser("check", help="Validate a password against a policy.")
    p_check.add_argument("password", help="Password to evaluate (not stored).")
    p_check.add_argument("--preset", choices=sorted(DEFAULT_POLICIES), default="nist")
    p_check.add_argument("--min-length", type=int, default=None)
    p_check.add_argument("--max-length", type=int, default=None)
    p_check.add_argument("--block", action="append", default=[], help="Blocklisted term (repeatable).")
    p_check.add_argument("--sensitivity", type=float, default=None, help="Fuzzy matching sensitivity, 0..1.")
    p_check.add_argument("--max-edit-distance", type=int, default=None)
    p_check.add_argument("--no-trim", action="store_true", help="Keep leading/trailing whitespace.")
    p_check.add_argument("--error-limit", type=int, default=None)
    p_check.add_argument("--no-hibp", action="store_true", help="Skip the breach database lookup.")
    p_check.add_argument("--json", action="store_true")

    p_policies = sub.add_parser("policies", help="List policy presets.")
    p_policies.add_argument("--json", action="store_true")

    p_serve = sub.add_parser("serve", help="Run FastAPI server.")
    p_serve.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    p_serve.add_argument("--port", type=int, default=int(os.getenv("PORT", "5005")))
    p_serve.add_argument("--reload", action="store_true")

    args = p.parse_args(argv)
    setup_logging(level=os.getenv("LOG_LEVEL", "WARNING"))

    if args.cmd == "check":
        try:
            options = preset_options(args.preset, **_overrides(args))
            result = asyncio.run(validate_password(args.password, options, breach_checker=BreachChecker()))
        except PolicyConfigurationError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2
        out = {"preset": args.preset, **result.to_dict()}
        if args.json:
            _dump(out, True)
        else:
            _print_result(out)
        return 0 if result.valid else 1

    if args.cmd == "policies":
        _dump({"presets": DEFAULT_POLICIES}, args.json)
        return 0

    if args.cmd == "serve":
        import uvicorn
        from .api import create_app
        app = create_app()
        uvicorn.run(app, host=args.host, port=args.port, reload=args.reload)
        return 0

    return 2


if __name__ == "__main__":
    sys.exit(main())

from __future__ import annotations

import argparse
import os
import sys
from typing import Optional, Sequence

from .base32 import generate_base32_secret
from .engine import Totp
from .errors import TotpError
from .event_log import EventLog
from .settings import ENV_PREFIX, load_engine_settings


CLI_SLOT = "cli"


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="slot-totp",
        description="Generate and check RFC 6238 one-time codes.",
    )
    sub = p.add_subparsers(dest="command", required=True)

    nk = sub.add_parser("new-key", help="print a fresh random Base32 key")
    nk.add_argument("--bytes", type=int, default=20, dest="nbytes")

    def _key_args(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--key", default=None, help=f"Base32 key (default: ${ENV_PREFIX}KEY)")
        sp.add_argument("--param", default=None, help="derivation parameter")
        sp.add_argument("--at-ms", type=int, default=None, dest="at_ms", help="unix time in milliseconds")

    code = sub.add_parser("code", help="print the code for the current time step")
    _key_args(code)

    check = sub.add_parser("check", help="exit 0 if TOKEN is valid, 1 otherwise")
    check.add_argument("token")
    _key_args(check)

    ev = sub.add_parser("events", help="print the most recent logged events")
    ev.add_argument("--limit", type=int, default=20)

    return p


def _engine_with_key(args: argparse.Namespace, log: EventLog) -> Optional[Totp]:
    key = args.key
    if key is None:
        key = os.environ.get(ENV_PREFIX + "KEY", "")
    if not key:
        print(f"no key given (use --key or ${ENV_PREFIX}KEY)", file=sys.stderr)
        return None

    engine = Totp.from_settings(load_engine_settings(), on_event=log.record)
    engine.set_key(CLI_SLOT, key)
    return engine


def main(argv: Optional[Sequence[str]] = None) -> int:
    if sys.version_info < (3, 11):
        raise RuntimeError("slot-totp requires Python 3.11+")

    args = _build_parser().parse_args(argv)
    log = EventLog()

    if args.command == "new-key":
        print(generate_base32_secret(nbytes=max(1, args.nbytes)))
        log.record("NEWKEY", {"bytes": max(1, args.nbytes)})
        return 0

    if args.command == "events":
        for event in log.tail(args.limit):
            print(event.to_line())
        return 0

    engine = _engine_with_key(args, log)
    if engine is None:
        return 2

    try:
        if args.command == "code":
            print(engine.generate(CLI_SLOT, args.param, timestamp_ms=args.at_ms))
            return 0

        ok = engine.validate(CLI_SLOT, args.token, args.param, timestamp_ms=args.at_ms)
    except TotpError as e:
        print(str(e), file=sys.stderr)
        return 2

    print("valid" if ok else "invalid")
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())

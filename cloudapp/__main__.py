"""Command line entry point.

Usage:
    python -m cloudapp samples.order_api.main:application            # run locally
    python -m cloudapp samples.order_api.main:application list       # print resources
    python -m cloudapp samples.order_api.main:application synth      # write cdk.out/template.yaml
    python -m cloudapp samples.order_api.main:application deploy|diff|destroy
"""

from __future__ import annotations

import argparse
import os
import sys

from cloudapp.exceptions import CloudAppError
from cloudapp.hosting import load_application
from cloudapp.logs import configure_logging
from cloudapp.settings import get_settings

COMMANDS = ("run", "list", "synth", "deploy", "diff", "destroy")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="cloudapp", description="Run, list or deploy a cloudapp application.")
    parser.add_argument("application", help="Application as 'module:attribute'")
    parser.add_argument("command", nargs="?", default="run", choices=COMMANDS)
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args(argv)

    # Applications usually build at import time; they see the verb and the target through these.
    os.environ.setdefault("CLOUDAPP_APPLICATION", args.application)
    if args.log_level:
        os.environ["LOG_LEVEL"] = args.log_level
    get_settings.cache_clear()
    sys.argv = [sys.argv[0]] + ([] if args.command == "run" else [args.command])

    configure_logging(get_settings().log_level, json_logs=False)
    try:
        load_application(args.application).run()
    except CloudAppError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

# pyEnvoy Module - Command Line
# -*- coding: utf-8 -*-
"""
 Python module to collect telemetry from an Enphase Envoy solar gateway

 Poll the Envoy once and print InfluxDB line protocol:
    python -m pyenvoy -username <user> -password <pass> -url https://<envoy>

 Connection settings may also come from ENVOY_USERNAME, ENVOY_PASSWORD and
 ENVOY_URL, either exported or in a .env file.
"""

import argparse
import os
import sys

import dotenv

# Modules
from pyenvoy import Envoy, PyEnvoyException, set_debug, version


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pyenvoy", description=f"pyEnvoy Module v{version}")
    p.add_argument("-username", type=str, default=os.getenv("ENVOY_USERNAME"),
                   help="Envoy username [env ENVOY_USERNAME]")
    p.add_argument("-password", type=str, default=os.getenv("ENVOY_PASSWORD"),
                   help="Envoy password [env ENVOY_PASSWORD]")
    p.add_argument("-url", type=str, default=os.getenv("ENVOY_URL"),
                   help="Envoy base URL, e.g. https://192.168.1.50 [env ENVOY_URL]")
    p.add_argument("-debug", action="store_true", default=False, help="Enable debug output")
    p.add_argument("-version", action="version", version=f"pyEnvoy [{version}]")
    return p


def main(argv=None) -> int:
    # Load .env before the parser reads its defaults from the environment
    dotenv.load_dotenv(dotenv.find_dotenv(usecwd=True))
    p = build_parser()
    args = p.parse_args(argv)

    missing = [name for name in ("username", "password", "url") if not getattr(args, name)]
    if missing:
        p.error("missing required settings: %s" % ", ".join("-" + m for m in missing))

    if args.debug:
        set_debug(True)

    try:
        envoy = Envoy(args.url, args.username, args.password)
        try:
            lines = envoy.lines()
        finally:
            envoy.close()
    except PyEnvoyException as exc:
        print(f"ERROR: {exc.stage}: {exc}", file=sys.stderr)
        return 1

    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())

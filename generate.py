#!/usr/bin/env python3
import argparse
import json
import logging
import sys

from config import load_settings, default_database_path
from errors import SourceError, OutputError
from generator import ConfigGenerator
from emitters.gateway import build_dial_peers, parse_dial_peers, diff_dial_peers
from utils.logs import enable_logging

logger = logging.getLogger(__name__)


STATS_LABELS = [
    ("total", "Total records"),
    ("active", "Active"),
    ("t27", "Yealink T27G"),
    ("t23", "Yealink T23G"),
    ("fanvil", "Fanvil"),
    ("cisco", "Cisco/Fax"),
    ("with_mac", "With MAC address"),
    ("local", "Local only"),
]


def print_stats(stats):
    print("\nStatistics:")
    data = stats.as_dict()
    for key, label in STATS_LABELS:
        print(f"  {label + ':':<22}{data[key]}")


def _generator(args) -> ConfigGenerator:
    return ConfigGenerator(output_dir=args.output, settings=load_settings(args.config))


def _finish(gen, args):
    stats = gen.generate(atomic=args.staging)
    print_stats(stats)
    if args.stats_json:
        with open(args.stats_json, "w", encoding="utf-8") as f:
            json.dump(stats.as_dict(), f, indent=2)
    print(f"\nResults written to: {args.output}")


# ========= csv =========
def cmd_csv(args):
    gen = _generator(args)
    gen.load_csv(args.path, delimiter=args.delimiter)
    _finish(gen, args)


# ========= db =========
def cmd_db(args):
    gen = _generator(args)
    gen.load_database(args.database)
    _finish(gen, args)


# ========= diff-gateway =========
def cmd_diff_gateway(args):
    gen = _generator(args)
    gen.load_csv(args.path, delimiter=args.delimiter)
    try:
        with open(args.running, "r", encoding="utf-8") as f:
            running = f.read()
    except OSError as e:
        raise SourceError(f"cannot read {args.running}: {e}") from e

    diff = diff_dial_peers(build_dial_peers(gen.records, gen.settings), parse_dial_peers(running))
    if diff.is_empty():
        print("Gateway dial-peers match the directory.")
        return 0
    for line in diff.lines():
        print(line)
    return 4


# ========= CLI =========
def build_parser():
    p = argparse.ArgumentParser(
        description="Generate switch, phone and gateway provisioning files from the extension directory.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    p.add_argument("-o", "--output", default="results", help="Output root directory")
    p.add_argument("-c", "--config", default=None, help="Settings file (.yaml/.yml/.json)")
    p.add_argument("--staging", action="store_true",
                   help="Build into a staging directory and swap it in when complete")
    p.add_argument("--stats-json", default=None, help="Also write the run statistics to this JSON file")
    p.add_argument("-v", "--verbose", action="count", default=0,
                   help="Increase output verbosity (-v = warning, -vv = message, -vvv = info, -vvvv = debug)")

    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("csv", help="Generate from a delimited directory export")
    sp.add_argument("path", help="Directory export (25 columns, header row first)")
    sp.add_argument("--delimiter", default=",", help="Field delimiter")
    sp.set_defaults(func=cmd_csv)

    sp2 = sub.add_parser("db", help="Generate from the directory database")
    sp2.add_argument("--database", default=default_database_path(), help="SQLite database path")
    sp2.set_defaults(func=cmd_db)

    sp3 = sub.add_parser("diff-gateway", help="Compare generated dial-peers with a saved 'show run | sec dial-peer'")
    sp3.add_argument("path", help="Directory export (25 columns, header row first)")
    sp3.add_argument("running", help="Saved dial-peer section of the gateway running config")
    sp3.add_argument("--delimiter", default=",", help="Field delimiter")
    sp3.set_defaults(func=cmd_diff_gateway)

    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    enable_logging(args.verbose)
    try:
        return args.func(args) or 0
    except SourceError as e:
        print(f"[source] {e}", file=sys.stderr)
        return 2
    except OutputError as e:
        print(f"[output] {e}", file=sys.stderr)
        return 3
    except Exception as e:
        logger.debug("Generation failed", exc_info=True)
        print(f"[error] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

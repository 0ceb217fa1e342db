#!/usr/bin/env python3
"""
Convert an FSM file describing a Mealy machine to ETF.

Usage:
  python -m pymealy machine.fsm
  python -m pymealy machine.fsm --alternating --etf machine.etf
  python -m pymealy machine.fsm --render machine --format svg
"""

import argparse
import logging
import sys

from pymealy.mealy import MealyMachine
from pymealy._private.exceptions import FSMParseError


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(prog="pymealy", description="Read a Mealy machine from an FSM file and write it as ETF.")
    ap.add_argument("fsmfile", help="FSM source to read")
    ap.add_argument("--alternating", action="store_true",
                    help="transition lines carry one label, alternating between input and output")
    ap.add_argument("--etf", metavar="OUT", help="write ETF to OUT instead of standard output")
    ap.add_argument("--render", metavar="OUT", help="also render the machine with Graphviz to OUT")
    ap.add_argument("--format", default="pdf", help="file format for --render (default: pdf)")
    ap.add_argument("-v", "--verbose", action="store_true", help="log parsing progress")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(message)s")
    semantics = 'alternating' if args.alternating else 'direct'
    try:
        machine = MealyMachine.load_fsm(args.fsmfile, semantics=semantics)
    except FSMParseError as e:
        print(f"{e.filename}:{e.lineno}:{e.offset}: {e.msg}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"pymealy: {e}", file=sys.stderr)
        return 1

    if args.etf:
        machine.save_etf(args.etf)
    else:
        sys.stdout.write(machine.to_etfstring())
    if args.render:
        machine.render(view=False, filename=args.render, format=args.format)
    return 0


if __name__ == "__main__":
    sys.exit(main())

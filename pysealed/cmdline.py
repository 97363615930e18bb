"""
pysealed command line

Usage:
    pysealed check src/ other_module.py
    pysealed check src/ --emit-llvm build/dispatch
    python -m pysealed check src/ --log-level debug

Exit status is 0 when no problem is found, 1 otherwise.
"""

import argparse
import sys

from .build import OutputManager
from .logger import LogLevel, set_log_level
from .static import check_paths


def _level(name):
    key = name.upper()
    if key not in LogLevel.__members__:
        raise argparse.ArgumentTypeError(f"unknown log level '{name}'")
    return LogLevel[key]


def build_parser():
    parser = argparse.ArgumentParser(
        prog='pysealed',
        description='Check sealed class hierarchies and match statements without importing them',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    subparsers = parser.add_subparsers(dest='command')
    subparsers.required = True

    check = subparsers.add_parser('check', help='Check files and directories')
    check.add_argument('paths', nargs='+', help='Python files or directories to check')
    check.add_argument('--emit-llvm', metavar='DIR', default=None,
                       help='Write the dispatch tables of checked matches as .ll files to DIR')
    check.add_argument('--log-level', type=_level, default=None,
                       help='debug, info, warning or error (default: PYSEALED_LOG_LEVEL or warning)')
    return parser


def run_check(args):
    if args.log_level is not None:
        set_log_level(args.log_level)

    report = check_paths(args.paths)

    if args.emit_llvm and report.plans:
        manager = OutputManager()
        manager.add_plans(report.plans)
        for path in manager.flush_all(args.emit_llvm):
            print(f"wrote {path}")

    for diag in report.diagnostics:
        print(f"{diag.kind}: {diag}")

    count = len(report.diagnostics)
    if count:
        print(f"{count} problem{'s' if count != 1 else ''} found "
              f"({report.checked} match statements checked)")
        return 1
    print(f"No problems found ({report.checked} match statements checked)")
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == 'check':
        return run_check(args)
    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())

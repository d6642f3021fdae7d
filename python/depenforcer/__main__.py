"""Main CLI entry point for depenforcer."""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import RULES, EnforcerConfig, create_policy, load_config
from .exceptions import EnforcementFailure, EnforcerError
from .formatters import ViolationReporter
from .parsers import GraphParser

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, log_level: Optional[str] = None):
    """Configure logging based on verbosity flags."""
    if log_level:
        level = getattr(logging, log_level.upper(), logging.WARNING)
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s'
    )


def _build_config(args) -> EnforcerConfig:
    if args.rules:
        config = load_config(args.rules)
    else:
        config = EnforcerConfig()

    for name in args.rule or []:
        config.policies.append(create_policy(name))

    if args.warn_only:
        config.fail = False
    if args.fail_fast:
        config.fail_fast = True
    return config


def handle_check(args):
    """Handle the 'check' subcommand."""
    setup_logging(args.verbose, args.loglevel)

    try:
        config = _build_config(args)
        graph = GraphParser.parse(args.input)
    except EnforcerError as e:
        logger.error(f"Error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 2

    logger.info(f"Input: {args.input} ({len(graph)} nodes)")

    try:
        report = config.create_enforcer().enforce(graph)
    except EnforcementFailure as e:
        print(str(e), file=sys.stderr)
        return 1
    except EnforcerError as e:
        logger.error(f"Error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 2

    output = report.format()
    if output:
        print(output)
    if report.errors or report.warnings:
        print(f"{len(report.errors)} rule(s) failed, {len(report.warnings)} rule(s) warned")
    else:
        print("All rules passed")
    return 0


def handle_tree(args):
    """Handle the 'tree' subcommand."""
    setup_logging(args.verbose, args.loglevel)

    try:
        graph = GraphParser.parse(args.input)
    except EnforcerError as e:
        logger.error(f"Error parsing input file: {e}")
        print(f"Error parsing input file: {e}", file=sys.stderr)
        return 2

    output = ViolationReporter.format_tree(graph)
    if args.output == '-':
        print(output, end='')
    else:
        with open(args.output, 'w') as f:
            f.write(output)
        print(f"Output written to: {args.output}")
    return 0


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog='depenforcer',
        description='Dependency convergence and policy checks for resolved dependency graphs'
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Subcommands')

    # Check command
    check_parser = subparsers.add_parser('check', help='Evaluate rules against a dependency graph')
    check_parser.add_argument('input', help='Dependency graph (JSON tree, CycloneDX SBOM, dependency:tree output or URL)')
    check_parser.add_argument('--rules', help='JSON rules file')
    check_parser.add_argument('--rule', action='append', choices=sorted(RULES),
                              help='Add a rule with default options (repeatable)')
    check_parser.add_argument('--warn-only', action='store_true',
                              help='Report failed rules without failing')
    check_parser.add_argument('--fail-fast', action='store_true',
                              help='Stop at the first failed rule')
    check_parser.add_argument('-v', '--verbose', action='store_true',
                              help='Verbose output')
    check_parser.add_argument('--loglevel',
                              choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                              help='Set log level')
    check_parser.set_defaults(func=handle_check)

    # Tree command
    tree_parser = subparsers.add_parser('tree', help='Print a dependency graph as dependency:tree output')
    tree_parser.add_argument('input', help='Dependency graph file or URL')
    tree_parser.add_argument('output', nargs='?', default='-',
                             help='Output file (default: stdout, use - for stdout)')
    tree_parser.add_argument('-v', '--verbose', action='store_true', help='Verbose logging')
    tree_parser.add_argument('--loglevel', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    tree_parser.set_defaults(func=handle_tree)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())

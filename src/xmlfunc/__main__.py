#!/usr/bin/env python3
"""
CLI for compiling and evaluating xmlfunc documents.

Usage:
    python -m xmlfunc check FILE [--json]
    python -m xmlfunc list FILE
    python -m xmlfunc ast FILE [--func NAME|INDEX] [--json]
    python -m xmlfunc eval FILE ARG... [--func NAME|INDEX] [--json]

Global options (before the subcommand):
    --config FILE    YAML or JSON parse options
    --unquoted       accept unquoted attribute values
    -v, --verbose    debug logging

Examples:
    # Check a document for errors
    python -m xmlfunc check examples/circle.xml

    # List functions and their signatures
    python -m xmlfunc list examples/geometry.xml

    # Evaluate a named function
    python -m xmlfunc eval examples/geometry.xml 2.0 3.0 --func rect_area

    # Show the expression tree as JSON
    python -m xmlfunc ast examples/circle.xml --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Union

from .errors import XmlFuncError
from .function import XmlFunc
from .options import ParseOptions, OptionsError


def parse_argument(value_str: str) -> Union[int, float]:
    """Parse a command-line argument as an int if it looks like one, else a float."""
    value_str = value_str.strip()
    try:
        return int(value_str)
    except ValueError:
        pass

    try:
        return float(value_str)
    except ValueError:
        pass

    raise ValueError(f"Invalid argument: {value_str} (expected a number)")


def parse_selector(selector: Optional[str]) -> Union[int, str, None]:
    """A --func value is an index when it is all digits, else a name."""
    if selector is None:
        return None
    return int(selector) if selector.isdigit() else selector


def load_options(args) -> ParseOptions:
    options = ParseOptions.load(args.config) if args.config else ParseOptions()
    if args.unquoted:
        options = ParseOptions(
            normalize_case=options.normalize_case,
            allow_unquoted_values=True,
            strip_comments=options.strip_comments,
        )
    return options


def compile_file(args) -> XmlFunc:
    source_path = Path(args.file)
    if not source_path.exists():
        raise FileNotFoundError(f"File not found: {source_path}")
    return XmlFunc.from_file(source_path, load_options(args))


def report_error(e: Exception, args) -> int:
    """Print an error to stderr, as a JSON diagnostic when --json was given."""
    if getattr(args, "json", False) and isinstance(e, XmlFuncError):
        print(json.dumps({"error": e.diagnostic.to_json()}), file=sys.stderr)
    else:
        print(f"Error: {e}", file=sys.stderr)
    return 1


def cmd_check(args):
    """Compile a document and report the result."""
    try:
        func = compile_file(args)
    except (XmlFuncError, OptionsError, OSError) as e:
        return report_error(e, args)

    print(f"OK: {Path(args.file).name} - {len(func)} function(s), no errors")
    return 0


def cmd_list(args):
    """List the functions in a document."""
    try:
        func = compile_file(args)
    except (XmlFuncError, OptionsError, OSError) as e:
        return report_error(e, args)

    print(f"Functions ({len(func)}):")
    for entry in func:
        print(f"  [{entry.index}] {entry.signature}")
    return 0


def cmd_ast(args):
    """Print expression trees."""
    try:
        func = compile_file(args)
        selector = parse_selector(args.func)
        entries = [func.function(selector)] if selector is not None else list(func)
    except (XmlFuncError, OptionsError, OSError) as e:
        return report_error(e, args)

    if args.json:
        print(json.dumps([entry.describe() for entry in entries], indent=2))
    else:
        for entry in entries:
            print(entry.format())
    return 0


def cmd_eval(args):
    """Evaluate a function with arguments from the command line."""
    try:
        values = [parse_argument(value) for value in args.args]
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        func = compile_file(args)
        entry = func.function(parse_selector(args.func))
        result = entry.eval(values)
    except (XmlFuncError, OptionsError, OSError) as e:
        return report_error(e, args)

    if args.json:
        print(json.dumps({
            "function": entry.label,
            "kind": result.kind.value,
            "value": result.value,
        }))
    else:
        print(result)
    return 0


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        prog='python -m xmlfunc',
        description='Compile and evaluate xmlfunc documents',
    )
    parser.add_argument('--config', metavar='FILE', help='YAML or JSON parse options file')
    parser.add_argument('--unquoted', action='store_true',
                        help='Accept unquoted attribute values')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='action', required=True)

    # check command
    check_parser = subparsers.add_parser('check', help='Check a document for errors')
    check_parser.add_argument('file', help='Document file')
    check_parser.add_argument('--json', action='store_true', help='Report errors as JSON')

    # list command
    list_parser = subparsers.add_parser('list', help='List functions in a document')
    list_parser.add_argument('file', help='Document file')

    # ast command
    ast_parser = subparsers.add_parser('ast', help='Print expression trees')
    ast_parser.add_argument('file', help='Document file')
    ast_parser.add_argument('--func', metavar='NAME|INDEX', help='Function to show')
    ast_parser.add_argument('--json', action='store_true', help='Print as JSON')

    # eval command
    eval_parser = subparsers.add_parser('eval', help='Evaluate a function')
    eval_parser.add_argument('file', help='Document file')
    eval_parser.add_argument('args', nargs='*', metavar='ARG', help='Argument values')
    eval_parser.add_argument('--func', metavar='NAME|INDEX', help='Function to evaluate')
    eval_parser.add_argument('--json', action='store_true', help='Print result as JSON')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.action == 'check':
        return cmd_check(args)
    elif args.action == 'list':
        return cmd_list(args)
    elif args.action == 'ast':
        return cmd_ast(args)
    elif args.action == 'eval':
        return cmd_eval(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())

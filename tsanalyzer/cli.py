#!/usr/bin/env python3
"""
Command-line front end
======================

Reads TypeScript from a file or stdin, prints the analysis result as JSON on
stdout. Statistics, logs and input errors go to stderr only.

Usage:
    tsa [options] FILE
    tsa --stdin [options] < FILE

Options:
    --lex-only        Tokens only, skip parsing
    --filter TYPES    Keep only these token types (e.g. keyword,identifier)
    --no-whitespace   Drop whitespace and newline tokens
    --only-malformed  Keep only malformed tokens
    --stats           Print token statistics to stderr
"""

import argparse
import io
import json
import logging
import sys
from typing import List, Optional

from . import __version__
from .api import AnalysisOptions, analyze, load_source
from .errors import SourceAcquisitionError


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tsa",
        description="Lexical and syntactic analysis of TypeScript source",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    tsa app.ts                              # Tokens, AST and diagnostics
    tsa --lex-only --no-whitespace app.ts   # Significant tokens only
    tsa --filter keyword,identifier app.ts  # Only keywords and identifiers
    cat app.ts | tsa --stdin --stats        # Read stdin, stats on stderr
        """
    )

    # Input
    parser.add_argument('file', nargs='?', metavar='FILE',
                        help='TypeScript source file')
    parser.add_argument('--stdin', action='store_true',
                        help='Read source from standard input')

    # Analysis
    parser.add_argument('--lex-only', action='store_true',
                        help='Run the scanner only')
    parser.add_argument('--filter', metavar='TYPES',
                        help='Comma-separated token types to keep')
    parser.add_argument('--no-whitespace', action='store_true',
                        help='Omit whitespace and newline tokens')
    parser.add_argument('--only-malformed', action='store_true',
                        help='Show only malformed tokens')

    # Output
    parser.add_argument('--stats', action='store_true',
                        help='Print token statistics to stderr')
    parser.add_argument('--pretty', action='store_true',
                        help='Indent the JSON output')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Debug logging on stderr')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    return parser


def options_from_args(args: argparse.Namespace) -> AnalysisOptions:
    kwargs = dict(
        lexical_only=args.lex_only,
        exclude_whitespace=args.no_whitespace,
        only_malformed=args.only_malformed,
    )
    if args.filter:
        return AnalysisOptions.from_type_names(args.filter.split(','), **kwargs)
    return AnalysisOptions(**kwargs)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        options = options_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    try:
        if args.stdin:
            stream = sys.stdin
            if hasattr(stream, 'buffer'):
                stream = io.TextIOWrapper(stream.buffer, encoding='utf-8', errors='replace', newline='')
            source = load_source(stream=stream)
        elif args.file:
            source = load_source(path=args.file)
        else:
            source = load_source()
    except SourceAcquisitionError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    result = analyze(source, options)

    if args.stats:
        stats = result.statistics
        print(f"tokens: {stats.total} (malformed: {stats.malformed})", file=sys.stderr)
        for type_name, count in stats.by_type.items():
            if count:
                print(f"  {type_name}: {count}", file=sys.stderr)

    json.dump(result.to_dict(), sys.stdout, indent=2 if args.pretty else None, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
